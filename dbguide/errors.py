"""Error taxonomy shared by the config, connection, and DAO layers."""

from __future__ import annotations


class DatabaseError(Exception):
    """Base class for every fault raised by dbguide."""


class ConfigurationError(DatabaseError):
    """Raised when connection settings are missing or malformed."""


class ConfigFileError(ConfigurationError, OSError):
    """Raised when the config file cannot be found or read."""


class DatabaseConnectionError(DatabaseError):
    """Raised when a session with the database server cannot be opened."""


class StatementError(DatabaseError):
    """Raised when a single statement fails; carries the driver's message."""


class SchemaError(StatementError):
    """Raised when the entity table cannot be created."""


class ConstraintError(StatementError):
    """Raised on invalid input or a constraint violation."""


class QueryError(StatementError):
    """Raised when a query or write statement fails."""


__all__ = [
    "ConfigFileError",
    "ConfigurationError",
    "ConstraintError",
    "DatabaseConnectionError",
    "DatabaseError",
    "QueryError",
    "SchemaError",
    "StatementError",
]
