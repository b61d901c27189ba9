"""Run-level data structures shared by the import pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

SUMMARY_FIELDS = ("inserted", "updated", "failed")


@dataclass(frozen=True)
class Connection:
    id: str
    name: str


@dataclass
class FileResult:
    """Outcome of one submitted file: the terminal job payload and its errors."""

    name: str
    result: dict[str, Any]
    errors: list[dict[str, Any]] = field(default_factory=list)

    @property
    def summary(self) -> dict[str, int]:
        raw = self.result.get("summary") or {}
        return {k: int(raw.get(k) or 0) for k in SUMMARY_FIELDS}

    @property
    def has_errors(self) -> bool:
        return bool(self.errors) or self.summary["failed"] > 0

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "result": self.result, "errors": self.errors}


@dataclass
class RunStats:
    """Mutable aggregate for a single import run."""

    start_time: datetime
    connection: Optional[Connection]
    upsert: bool = False
    email: bool = False
    files: list[FileResult] = field(default_factory=list)
    end_time: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    def totals(self) -> dict[str, int]:
        """Sum summary counters across all files."""
        totals = dict.fromkeys(SUMMARY_FIELDS, 0)
        for f in self.files:
            for k, v in f.summary.items():
                totals[k] += v
        return totals

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "connection": (
                {"id": self.connection.id, "name": self.connection.name}
                if self.connection
                else None
            ),
            "upsert": self.upsert,
            "email": self.email,
            "files": [f.to_dict() for f in self.files],
        }
