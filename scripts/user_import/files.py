"""Pattern expansion and the pre-upload size check."""

from __future__ import annotations

import glob
import logging
import os
from typing import Iterable

logger = logging.getLogger("user_import.files")

MAX_FILE_SIZE = 500_000  # bytes


def expand(pattern: str) -> list[str]:
    """Files matching ``pattern``, sorted. No match yields an empty list."""
    files = sorted(
        p for p in glob.glob(pattern, recursive=True) if os.path.isfile(p)
    )
    logger.debug("Pattern %s matches the following files: %s", pattern, files)
    return files


def resolve_files(patterns: Iterable[str]) -> list[str]:
    """Concatenate the expansion of every pattern, in input order."""
    files: list[str] = []
    for pattern in patterns:
        files.extend(expand(pattern))
    return files


def admit(path: str, max_size: int = MAX_FILE_SIZE) -> bool:
    size = os.path.getsize(path)
    logger.debug("File %s size %d bytes", path, size)
    if size > max_size:
        logger.warning(
            "File %s exceeds the limit of %d bytes so it won't be processed",
            path,
            max_size,
            extra={"file": path},
        )
        return False
    return True


def admitted_files(patterns: Iterable[str], max_size: int = MAX_FILE_SIZE) -> list[str]:
    return [f for f in resolve_files(patterns) if admit(f, max_size)]
