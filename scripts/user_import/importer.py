"""Import orchestration: files -> connection -> one job per file -> results."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

import requests
from apscheduler.schedulers.base import BaseScheduler

from scripts.user_import.api import ManagementApiClient
from scripts.user_import.config import ImporterConfig, api_url_for, token_url_for
from scripts.user_import.connections import ConnectionValidator
from scripts.user_import.credentials import CredentialManager
from scripts.user_import.errors import ConfigurationError
from scripts.user_import.files import MAX_FILE_SIZE, admitted_files
from scripts.user_import.jobs import WAIT_INTERVAL, JobPipeline
from scripts.user_import.models import RunStats


class UserImporter:
    """Imports user files into a database connection of one tenant."""

    def __init__(
        self,
        domain: str,
        client_id: str,
        client_secret: str,
        *,
        session: Optional[requests.Session] = None,
        scheduler: Optional[BaseScheduler] = None,
        logger: Optional[logging.Logger] = None,
        request_timeout: float = 30.0,
        poll_interval: float = WAIT_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
        max_file_size: int = MAX_FILE_SIZE,
    ) -> None:
        if not domain or not client_id or not client_secret:
            raise ConfigurationError(
                "domain, client_id and client_secret are required"
            )
        self.logger = logger or logging.getLogger("user_import.importer")
        self.max_file_size = max_file_size
        session = session or requests.Session()
        api_url = api_url_for(domain)

        self.credentials = CredentialManager(
            token_url=token_url_for(domain),
            client_id=client_id,
            client_secret=client_secret,
            audience=api_url,
            session=session,
            scheduler=scheduler,
            timeout=request_timeout,
        )
        self.api = ManagementApiClient(
            api_url, self.credentials, session=session, timeout=request_timeout
        )
        self.validator = ConnectionValidator(self.api, client_id)
        self.pipeline = JobPipeline(self.api, poll_interval=poll_interval, sleep=sleep)

    @classmethod
    def from_config(cls, config: ImporterConfig, **kwargs) -> "UserImporter":
        return cls(
            config.domain,
            config.client_id,
            config.client_secret,
            request_timeout=config.request_timeout,
            poll_interval=config.poll_interval,
            **kwargs,
        )

    def import_users(
        self,
        connection: str,
        patterns: Optional[Iterable[str]],
        upsert: bool = False,
        email: bool = False,
    ) -> RunStats:
        """Import every admitted file matching ``patterns`` into ``connection``.

        Files are submitted one at a time; a job finishing with per-record
        errors is reported in the result, not raised. Authentication,
        connection validation and transport failures abort the run.
        """
        if not connection:
            raise ConfigurationError(
                "You must specify a connection name in options.connection"
            )
        patterns = list(patterns or [])

        self.logger.info("Starting import")
        self.logger.debug(
            "Parameters: connection=%s upsert=%s email=%s patterns=%s",
            connection, upsert, email, patterns,
        )

        if not patterns:
            now = datetime.now(timezone.utc)
            return RunStats(
                start_time=now, connection=None, upsert=bool(upsert),
                email=bool(email), files=[], end_time=now,
            )

        self.logger.info("Enumerating all files")
        files = admitted_files(patterns, self.max_file_size)

        with self.credentials:
            stats = self.validator.resolve(connection, upsert, email)
            for path in files:
                stats = self.pipeline.submit(stats, path)

        stats.end_time = datetime.now(timezone.utc)
        if any(f.errors for f in stats.files):
            self.logger.warning(
                "Finished importing %d files. Some files had errors",
                len(stats.files),
                extra={"files": len(stats.files)},
            )
        else:
            self.logger.info(
                "Finished importing %d files",
                len(stats.files),
                extra={"files": len(stats.files)},
            )
        return stats
