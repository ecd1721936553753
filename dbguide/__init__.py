"""Configuration-driven CRUD walkthrough for PostgreSQL and MySQL."""

from .config import ConnectionConfig, load_config
from .connections import open_session
from .dao import AsyncEmployeeDAO, EmployeeDAO
from .errors import (
    ConfigFileError,
    ConfigurationError,
    ConstraintError,
    DatabaseConnectionError,
    DatabaseError,
    QueryError,
    SchemaError,
    StatementError,
)
from .models import Employee
from .query import QueryResult, QueryRunner

__all__ = [
    "AsyncEmployeeDAO",
    "ConfigFileError",
    "ConfigurationError",
    "ConnectionConfig",
    "ConstraintError",
    "DatabaseConnectionError",
    "DatabaseError",
    "Employee",
    "EmployeeDAO",
    "QueryError",
    "QueryResult",
    "QueryRunner",
    "SchemaError",
    "StatementError",
    "load_config",
    "open_session",
]
