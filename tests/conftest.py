from __future__ import annotations

import json as jsonlib
from collections import deque
from pathlib import Path
from typing import Any, Callable

import pytest
import requests

DOMAIN = "tenant.example.com"
API_URL = f"https://{DOMAIN}/api/v2/"
TOKEN_URL = f"https://{DOMAIN}/oauth/token"
CLIENT_ID = "client-123"
CLIENT_SECRET = "s3cret"


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200) -> None:
        self.status_code = status_code
        self._payload = payload

    @property
    def content(self) -> bytes:
        if self._payload is None:
            return b""
        return jsonlib.dumps(self._payload).encode()

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    """Stands in for requests.Session; responses are queued per (method, url).

    The last queued response for a route is repeated once the queue drains.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], deque] = {}
        self.calls: list[dict[str, Any]] = []

    def add(self, method: str, url: str, *responses: FakeResponse | Callable) -> None:
        self.routes.setdefault((method, url), deque()).extend(responses)

    def add_token(self, token: str = "tok-1", expires_in: int = 86400) -> None:
        self.add("POST", TOKEN_URL, FakeResponse({"access_token": token, "expires_in": expires_in}))

    def _respond(self, method: str, url: str, call: dict[str, Any]) -> FakeResponse:
        self.calls.append(call)
        queue = self.routes.get((method, url))
        if not queue:
            raise AssertionError(f"unexpected request {method} {url}")
        response = queue.popleft() if len(queue) > 1 else queue[0]
        if callable(response):
            response = response(call)
        return response

    def post(self, url: str, json: Any = None, timeout: float | None = None) -> FakeResponse:
        return self._respond("POST", url, {"method": "POST", "url": url, "json": json})

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        files = kwargs.get("files")
        call = {
            "method": method,
            "url": url,
            "params": kwargs.get("params"),
            "data": kwargs.get("data"),
            "headers": kwargs.get("headers"),
            # file handles are closed after the request, keep what was sent
            "files": {k: (v[0], v[1].read(), v[2]) for k, v in files.items()} if files else None,
        }
        return self._respond(method, url, call)

    def requests_to(self, url: str, method: str | None = None) -> list[dict[str, Any]]:
        return [c for c in self.calls if c["url"] == url and (method is None or c["method"] == method)]


class FakeJob:
    def __init__(self, scheduler: "FakeScheduler", func: Callable, run_date) -> None:
        self._scheduler = scheduler
        self.func = func
        self.run_date = run_date
        self.removed = False

    def remove(self) -> None:
        if self.removed:
            raise LookupError("job already removed")
        self.removed = True
        self._scheduler.jobs.remove(self)

    def fire(self) -> None:
        self.removed = True
        self._scheduler.jobs.remove(self)
        self.func()


class FakeScheduler:
    running = False

    def __init__(self) -> None:
        self.jobs: list[FakeJob] = []
        self.added: list[FakeJob] = []

    def add_job(self, func, trigger, run_date=None, id=None, replace_existing=False):
        assert trigger == "date"
        if replace_existing:
            for j in self.jobs:
                j.removed = True
            self.jobs = []
        job = FakeJob(self, func, run_date)
        self.jobs.append(job)
        self.added.append(job)
        return job


@pytest.fixture()
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture()
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture()
def write_users(tmp_path: Path) -> Callable[..., str]:
    """Write a users file of roughly ``size`` bytes and return its path."""

    def _write(name: str, users: list[dict] | None = None, size: int | None = None) -> str:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if size is not None:
            path.write_bytes(b" " * size)
        else:
            path.write_text(jsonlib.dumps(users or [{"email": f"{name}@example.com"}]))
        return str(path)

    return _write
