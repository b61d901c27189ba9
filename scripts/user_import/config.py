"""Configuration from a JSON file, command line values and the environment.

Precedence, lowest to highest:
  - JSON configuration file (``--config-file``)
  - command line options
  - ``AUTH0_CLIENT_SECRET`` environment variable (client secret only)

The client secret may be a cloud secret reference (see ``secrets.py``).
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from scripts.user_import.errors import ConfigurationError, MissingSettingError
from scripts.user_import.secrets import resolve_secret

CLIENT_SECRET_ENV = "AUTH0_CLIENT_SECRET"

# JSON config file key -> ImporterConfig field
FILE_KEYS: dict[str, str] = {
    "auth0domain": "domain",
    "clientId": "client_id",
    "clientSecret": "client_secret",
    "connectionName": "connection_name",
    "upsert": "upsert",
    "email": "email",
    "verbose": "verbose",
    "out": "out",
    "requestTimeout": "request_timeout",
    "pollInterval": "poll_interval",
}


def api_url_for(domain: str) -> str:
    return f"https://{domain}/api/v2/"


def token_url_for(domain: str) -> str:
    return f"https://{domain}/oauth/token"


@dataclass(frozen=True)
class ImporterConfig:
    domain: str
    client_id: str
    client_secret: str
    connection_name: str
    files: list[str] = field(default_factory=list)
    upsert: bool = False
    email: bool = False
    verbose: bool = False
    out: Optional[str] = None
    request_timeout: float = 30.0
    poll_interval: float = 5.0

    @property
    def api_url(self) -> str:
        return api_url_for(self.domain)

    @property
    def token_url(self) -> str:
        return token_url_for(self.domain)


def read_config_file(path: Optional[str]) -> dict[str, Any]:
    """Parse a JSON config file into ImporterConfig field names."""
    if not path:
        return {}
    try:
        with open(path, encoding="utf-8") as fh:
            raw = json.load(fh)
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"Unable to read configuration file: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(
            f"Configuration file {path} must contain a JSON object"
        )
    return {FILE_KEYS[k]: v for k, v in raw.items() if k in FILE_KEYS}


def validate_config(values: Mapping[str, Any]) -> None:
    """Raise MissingSettingError for the first required setting that is absent."""
    if not values.get("files"):
        raise MissingSettingError(
            "You must specify a file to import", exit_code=2, setting="files"
        )
    if not values.get("domain"):
        raise MissingSettingError(
            "You must specify the Auth0 domain where you want to import the users",
            exit_code=3,
            setting="domain",
        )
    if not values.get("client_id"):
        raise MissingSettingError(
            "You must specify a client Id in either the configuration file "
            "or the command line",
            exit_code=4,
            setting="client_id",
        )
    if not values.get("client_secret"):
        raise MissingSettingError(
            "You must specify a client secret in either the configuration file, "
            f"the command line or the {CLIENT_SECRET_ENV} environment variable",
            exit_code=5,
            setting="client_secret",
        )
    if not values.get("connection_name"):
        raise MissingSettingError(
            "You must specify a connection name in either the configuration file "
            "or the command line",
            exit_code=6,
            setting="connection_name",
        )


def load_config(
    cli_values: Mapping[str, Any], config_file: Optional[str] = None
) -> ImporterConfig:
    """Merge file, CLI and environment settings into an ImporterConfig.

    ``cli_values`` uses ImporterConfig field names; ``None`` means "not given
    on the command line" and leaves the file value in place.
    """
    load_dotenv()

    values = read_config_file(config_file)
    values.update({k: v for k, v in cli_values.items() if v is not None})
    values["client_secret"] = os.environ.get(CLIENT_SECRET_ENV) or values.get(
        "client_secret"
    )

    validate_config(values)
    values["client_secret"] = resolve_secret(values["client_secret"])

    return ImporterConfig(
        domain=values["domain"],
        client_id=values["client_id"],
        client_secret=values["client_secret"],
        connection_name=values["connection_name"],
        files=list(values["files"]),
        upsert=bool(values.get("upsert", False)),
        email=bool(values.get("email", False)),
        verbose=bool(values.get("verbose", False)),
        out=values.get("out"),
        request_timeout=float(values.get("request_timeout", 30.0)),
        poll_interval=float(values.get("poll_interval", 5.0)),
    )
