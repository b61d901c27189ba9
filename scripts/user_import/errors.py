"""Exception hierarchy for the user import tool.

Hierarchy::

    UserImportError
    ├── ConfigurationError          - missing or unreadable settings
    │   └── MissingSettingError     - a required setting was not provided
    ├── AuthenticationError         - token request rejected
    ├── JobSubmissionError          - import job not created
    └── ConnectionValidationError   - target connection is unusable
        ├── ConnectionNotFoundError
        ├── NotDatabaseConnectionError
        └── ClientNotEnabledError

Transport and server failures are not wrapped: they surface as
``requests.RequestException`` subclasses.
"""

from __future__ import annotations


class UserImportError(Exception):
    """Base exception for all user import errors."""

    def __init__(self, message: str, *, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(UserImportError):
    """Raised when configuration loading or validation fails."""


class MissingSettingError(ConfigurationError):
    """A required setting is absent. ``exit_code`` identifies which one."""

    def __init__(self, message: str, *, exit_code: int, setting: str) -> None:
        super().__init__(message, details={"setting": setting})
        self.exit_code = exit_code
        self.setting = setting


class AuthenticationError(UserImportError):
    """Raised when a Management API token cannot be obtained."""


class JobSubmissionError(UserImportError):
    """Raised when an accepted upload does not return a job descriptor."""

    def __init__(self, message: str, *, file: str) -> None:
        super().__init__(message, details={"file": file})
        self.file = file


class ConnectionValidationError(UserImportError):
    """Raised when the target connection fails validation."""

    def __init__(self, message: str, *, connection: str) -> None:
        super().__init__(message, details={"connection": connection})
        self.connection = connection


class ConnectionNotFoundError(ConnectionValidationError):
    pass


class NotDatabaseConnectionError(ConnectionValidationError):
    pass


class ClientNotEnabledError(ConnectionValidationError):
    pass
