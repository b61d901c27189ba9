"""Management API token lifecycle: client credentials grant plus proactive renewal.

One token is shared by every API call of a run. It is requested on first use
and renewed by a one-shot APScheduler job shortly before it expires. The
renewal job is cancelled when the manager is closed.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Optional

import requests
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler

from scripts.user_import.errors import AuthenticationError

logger = logging.getLogger("user_import.credentials")

TOKEN_SCOPE = "create:users read:connections"
RENEW_INTERVAL = 60  # seconds before expiry
MAX_TIMER_DELAY = 2147483647 / 1000  # 2^31-1 ms
RENEWAL_JOB_ID = "management-token-renewal"


def renewal_delay(expires_in: float) -> float:
    """Seconds from now at which a token valid for ``expires_in`` is renewed."""
    return max(0.0, min(expires_in - RENEW_INTERVAL, MAX_TIMER_DELAY))


class CredentialManager:
    """Owns the bearer token used for every Management API request."""

    def __init__(
        self,
        token_url: str,
        client_id: str,
        client_secret: str,
        audience: str,
        session: Optional[requests.Session] = None,
        scheduler: Optional[BaseScheduler] = None,
        timeout: float = 30.0,
    ) -> None:
        self._token_url = token_url
        self._client_id = client_id
        self._client_secret = client_secret
        self._audience = audience
        self._session = session or requests.Session()
        self._timeout = timeout
        # an owned scheduler is created per run and discarded by close()
        self._owns_scheduler = scheduler is None
        self._scheduler: Optional[BaseScheduler] = scheduler
        self._lock = threading.Lock()
        self._token: Optional[str] = None
        self._error: Optional[AuthenticationError] = None
        self._renewal_job = None
        self._closed = False

    @property
    def client_id(self) -> str:
        return self._client_id

    def acquire(self) -> str:
        """Return the current token, authenticating on first use.

        An authentication failure is remembered and raised to every later
        caller; nothing is retried.
        """
        with self._lock:
            if self._error is not None:
                raise self._error
            if self._token is None:
                self._refresh_locked()
            return self._token

    def close(self) -> None:
        """Cancel the pending renewal. Safe to call more than once."""
        with self._lock:
            self._cancel_renewal_locked()
            self._token = None
            self._closed = True
            owned = self._scheduler if self._owns_scheduler else None
            if owned is not None:
                self._scheduler = None
        if owned is not None and owned.running:
            owned.shutdown(wait=False)

    def __enter__(self) -> "CredentialManager":
        # each run authenticates from scratch
        with self._lock:
            self._closed = False
            self._error = None
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Token request / renewal
    # ------------------------------------------------------------------

    def _renew(self) -> None:
        with self._lock:
            self._renewal_job = None
            if self._closed:
                return
            try:
                self._refresh_locked()
            except AuthenticationError as exc:
                logger.error("Management API token renewal failed: %s", exc)

    def _refresh_locked(self) -> None:
        try:
            payload = self._request_token()
        except AuthenticationError as exc:
            self._token = None
            self._error = exc
            raise
        expires_in = float(payload.get("expires_in") or 0)
        self._token = payload["access_token"]
        logger.debug(
            "API ==> Management API access token retrieved. "
            "Access token valid for %s seconds",
            payload.get("expires_in"),
        )
        self._schedule_renewal_locked(renewal_delay(expires_in))

    def _request_token(self) -> dict:
        try:
            resp = self._session.post(
                self._token_url,
                json={
                    "grant_type": "client_credentials",
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                    "audience": self._audience,
                    "scope": TOKEN_SCOPE,
                },
                timeout=self._timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise AuthenticationError(
                f"Unable to obtain a Management API token: {exc}"
            ) from exc
        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise AuthenticationError("Token response did not include an access_token")
        return payload

    def _schedule_renewal_locked(self, delay: float) -> None:
        self._cancel_renewal_locked()
        if self._scheduler is None:
            self._scheduler = BackgroundScheduler(timezone=timezone.utc)
            self._scheduler.start()
        run_date = datetime.now(timezone.utc) + timedelta(seconds=delay)
        self._renewal_job = self._scheduler.add_job(
            self._renew,
            "date",
            run_date=run_date,
            id=RENEWAL_JOB_ID,
            replace_existing=True,
        )
        logger.debug("Management API token renewal scheduled in %.0f seconds", delay)

    def _cancel_renewal_locked(self) -> None:
        if self._renewal_job is None:
            return
        try:
            self._renewal_job.remove()
        except LookupError:
            # already fired or removed by the scheduler
            pass
        self._renewal_job = None
