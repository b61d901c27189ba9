import json

import pytest

from scripts.user_import.config import CLIENT_SECRET_ENV, load_config, read_config_file
from scripts.user_import.errors import ConfigurationError, MissingSettingError

FULL_CLI = {
    "files": ["users.json"],
    "domain": "tenant.example.com",
    "client_id": "client-123",
    "client_secret": "cli-secret",
    "connection_name": "users-db",
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv(CLIENT_SECRET_ENV, raising=False)


@pytest.fixture()
def config_file(tmp_path):
    def _write(values):
        path = tmp_path / "config.json"
        path.write_text(json.dumps(values))
        return str(path)

    return _write


def test_cli_values_override_file(config_file):
    path = config_file({
        "auth0domain": "file.example.com",
        "clientId": "file-client",
        "clientSecret": "file-secret",
        "connectionName": "file-db",
        "upsert": True,
    })

    config = load_config({"files": ["a.json"], "connection_name": "cli-db", "upsert": None}, path)

    assert config.domain == "file.example.com"
    assert config.client_id == "file-client"
    assert config.connection_name == "cli-db"
    assert config.upsert is True
    assert config.files == ["a.json"]


def test_environment_overrides_client_secret(monkeypatch):
    monkeypatch.setenv(CLIENT_SECRET_ENV, "env-secret")

    config = load_config(FULL_CLI)

    assert config.client_secret == "env-secret"


def test_defaults():
    config = load_config(FULL_CLI)

    assert config.upsert is False
    assert config.email is False
    assert config.out is None
    assert config.poll_interval == 5.0
    assert config.api_url == "https://tenant.example.com/api/v2/"


@pytest.mark.parametrize(
    "missing, exit_code",
    [
        ("files", 2),
        ("domain", 3),
        ("client_id", 4),
        ("client_secret", 5),
        ("connection_name", 6),
    ],
)
def test_missing_settings_have_distinct_exit_codes(missing, exit_code):
    values = {k: v for k, v in FULL_CLI.items() if k != missing}

    with pytest.raises(MissingSettingError) as exc:
        load_config(values)

    assert exc.value.exit_code == exit_code
    assert exc.value.setting == missing


def test_unknown_file_keys_are_ignored(config_file):
    path = config_file({"auth0domain": "file.example.com", "theme": "dark"})

    assert read_config_file(path) == {"domain": "file.example.com"}


def test_malformed_config_file(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")

    with pytest.raises(ConfigurationError, match="Unable to read configuration file"):
        read_config_file(str(path))


def test_config_file_must_hold_an_object(config_file):
    with pytest.raises(ConfigurationError):
        read_config_file(config_file(["not", "an", "object"]))


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigurationError):
        read_config_file(str(tmp_path / "nope.json"))
