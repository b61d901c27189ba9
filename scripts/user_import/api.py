"""Authenticated Management API client.

Every remote call goes through ``ManagementApiClient.request`` so the bearer
token and base URL are attached uniformly. Errors are not retried here.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from scripts.user_import.credentials import CredentialManager

logger = logging.getLogger("user_import.api")


class ManagementApiClient:
    def __init__(
        self,
        api_url: str,
        credentials: CredentialManager,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ) -> None:
        self._base = api_url if api_url.endswith("/") else f"{api_url}/"
        self._credentials = credentials
        self._session = session or requests.Session()
        self._timeout = timeout

    @property
    def client_id(self) -> str:
        return self._credentials.client_id

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Any = None,
        data: Optional[dict] = None,
        files: Optional[dict] = None,
    ) -> Any:
        """Issue a request relative to the API base URL and return decoded JSON.

        Raises requests.HTTPError for non-2xx responses.
        """
        token = self._credentials.acquire()
        url = f"{self._base}{path.lstrip('/')}"
        logger.debug("API ==> Invoking Management Api endpoint %s - %s", method, path)
        resp = self._session.request(
            method,
            url,
            params=params,
            json=json,
            data=data,
            files=files,
            headers={"Authorization": f"Bearer {token}"},
            timeout=self._timeout,
        )
        resp.raise_for_status()
        if not resp.content:
            return None
        return resp.json()

    def get(self, path: str, params: Optional[dict] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, **kwargs) -> Any:
        return self.request("POST", path, **kwargs)
