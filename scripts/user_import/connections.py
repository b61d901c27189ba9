"""Target connection lookup and eligibility checks."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from scripts.user_import.api import ManagementApiClient
from scripts.user_import.errors import (
    ClientNotEnabledError,
    ConnectionNotFoundError,
    NotDatabaseConnectionError,
)
from scripts.user_import.models import Connection, RunStats

logger = logging.getLogger("user_import.connections")

DATABASE_STRATEGY = "auth0"


class ConnectionValidator:
    def __init__(self, api: ManagementApiClient, client_id: str) -> None:
        self.api = api
        self.client_id = client_id

    def resolve(self, name: str, upsert: bool = False, email: bool = False) -> RunStats:
        """Look up ``name`` and return an empty RunStats seeded with it.

        Checks, in order: the connection exists, it is a database connection,
        and the importing client is enabled on it.
        """
        start_time = datetime.now(timezone.utc)
        logger.info("Connection ==> Retrieving connection", extra={"connection": name})
        connections = self.api.get("connections", params={"name": name})

        if not connections:
            raise ConnectionNotFoundError(
                f"Connection {name} was not found", connection=name
            )
        found = connections[0]
        if found.get("strategy") != DATABASE_STRATEGY:
            raise NotDatabaseConnectionError(
                f"Connection {name} is not a database connection", connection=name
            )
        if self.client_id not in (found.get("enabled_clients") or []):
            raise ClientNotEnabledError(
                f"Connection {name} is not enabled for client {self.client_id}",
                connection=name,
            )

        logger.info("Connection ==> successfully retrieved and validated")
        logger.debug("Connection ==> %s", found)

        return RunStats(
            start_time=start_time,
            connection=Connection(id=found["id"], name=found["name"]),
            upsert=bool(upsert),
            email=bool(email),
            files=[],
        )
