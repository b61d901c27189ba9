"""Import job submission and completion polling.

Each file becomes one ``users-imports`` job. The job is polled at a fixed
interval until its status leaves ``pending``; there is no timeout. Once the
job is terminal its error listing is fetched and a FileResult is appended to
the run.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Callable

from scripts.user_import.api import ManagementApiClient
from scripts.user_import.errors import JobSubmissionError
from scripts.user_import.models import FileResult, RunStats

logger = logging.getLogger("user_import.jobs")

JOB_STATUS_PENDING = "pending"
WAIT_INTERVAL = 5.0  # seconds


def _wire_bool(value: bool) -> str:
    return "true" if value else "false"


class JobPipeline:
    def __init__(
        self,
        api: ManagementApiClient,
        poll_interval: float = WAIT_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.api = api
        self.poll_interval = poll_interval
        self._sleep = sleep

    def submit(self, stats: RunStats, path: str) -> RunStats:
        """Upload ``path`` as an import job and wait for it to finish."""
        logger.info("File: %s ==> Sending file to Auth0", path, extra={"file": path})
        with open(path, "rb") as fh:
            job = self.api.post(
                "jobs/users-imports",
                files={"users": (os.path.basename(path), fh, "application/json")},
                data={
                    "connection_id": stats.connection.id,
                    "upsert": _wire_bool(stats.upsert),
                    "send_completion_email": _wire_bool(stats.email),
                },
            )
        if not isinstance(job, dict) or not job.get("id"):
            raise JobSubmissionError(
                f"File {path} was accepted but no import job was returned",
                file=path,
            )
        logger.debug(
            "File: %s ==> Job created %s",
            path,
            job.get("id"),
            extra={"file": path, "job_id": job.get("id")},
        )
        return self.wait_for_completion(stats, path, job)

    def wait_for_completion(
        self, stats: RunStats, name: str, job: dict[str, Any]
    ) -> RunStats:
        while job.get("status") == JOB_STATUS_PENDING:
            logger.debug(
                "File: %s ==> Still processing. Will check again in %s seconds",
                name,
                self.poll_interval,
                extra={"file": name, "job_id": job.get("id")},
            )
            self._sleep(self.poll_interval)
            job = self.api.get(f"jobs/{job['id']}")
            logger.debug("File: %s ==> Job status response %s", name, job)

        errors = self.api.get(f"jobs/{job['id']}/errors")
        logger.debug("File: %s ==> Job error details response %s", name, errors)
        # an error-free job answers with an empty body or the job object
        if not isinstance(errors, list):
            errors = []
        extra = {"file": name, "job_id": job.get("id"), "status": job.get("status")}
        if errors:
            logger.warning("File: %s ==> Import job finished with errors", name, extra=extra)
        else:
            logger.info("File: %s ==> Import job finished", name, extra=extra)

        stats.files.append(FileResult(name=name, result=job, errors=list(errors)))
        return stats
