"""CRUD data access for the employees table."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from types import TracebackType
from typing import Callable, Mapping

from .config import ConnectionConfig
from .connections import ConnectionFactory, open_session
from .errors import ConstraintError, SchemaError, StatementError
from .models import Employee
from .runner import LoopRunner

LOG = logging.getLogger(__name__)

DEFAULT_TABLE = "employees"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True, slots=True)
class Statements:
    """SQL for one dialect; every value goes through a bound parameter."""

    create_table: str
    insert: str
    select_all: str
    update: str
    delete: str


def _postgresql_statements(table: str) -> Statements:
    return Statements(
        create_table=(
            f"CREATE TABLE IF NOT EXISTS {table} ("
            "id SERIAL PRIMARY KEY, "
            "name VARCHAR(100) NOT NULL, "
            "position VARCHAR(100) NOT NULL)"
        ),
        insert=f"INSERT INTO {table} (name, position) VALUES ($1, $2) RETURNING id",
        select_all=f"SELECT id, name, position FROM {table}",
        update=f"UPDATE {table} SET name = $1, position = $2 WHERE id = $3",
        delete=f"DELETE FROM {table} WHERE id = $1",
    )


def _mysql_statements(table: str) -> Statements:
    return Statements(
        create_table=(
            f"CREATE TABLE IF NOT EXISTS {table} ("
            "id INT AUTO_INCREMENT PRIMARY KEY, "
            "name VARCHAR(100) NOT NULL, "
            "position VARCHAR(100) NOT NULL)"
        ),
        insert=f"INSERT INTO {table} (name, position) VALUES (%s, %s)",
        select_all=f"SELECT id, name, position FROM {table}",
        update=f"UPDATE {table} SET name = %s, position = %s WHERE id = %s",
        delete=f"DELETE FROM {table} WHERE id = %s",
    )


DIALECTS: Mapping[str, Callable[[str], Statements]] = {
    "postgresql": _postgresql_statements,
    "mysql": _mysql_statements,
}


def statements_for(driver: str, table: str = DEFAULT_TABLE) -> Statements:
    """Build the statement set for ``driver`` against ``table``."""

    if not _IDENTIFIER.match(table):
        raise ValueError(f"'{table}' is not a plain SQL identifier.")
    return DIALECTS[driver](table)


class AsyncEmployeeDAO:
    """Coroutine CRUD operations; each call owns exactly one connection."""

    def __init__(
        self,
        config: ConnectionConfig,
        *,
        factory: ConnectionFactory | None = None,
        table: str = DEFAULT_TABLE,
    ) -> None:
        self._config = config
        self._factory = factory
        self._statements = statements_for(config.driver, table)

    @property
    def statements(self) -> Statements:
        return self._statements

    async def ensure_schema(self) -> None:
        LOG.debug("Ensuring employees table exists")
        async with open_session(self._config, self._factory) as session:
            try:
                await session.execute(self._statements.create_table)
            except StatementError as exc:
                raise SchemaError(str(exc)) from exc

    async def insert(self, name: str, position: str) -> int | None:
        _require_fields(name, position)
        LOG.debug("Inserting employee")
        async with open_session(self._config, self._factory) as session:
            return await session.insert(self._statements.insert, name, position)

    async def list_all(self) -> list[Employee]:
        async with open_session(self._config, self._factory) as session:
            rows = await session.fetch(self._statements.select_all)
        return [Employee.from_row(row) for row in rows]

    async def update_by_key(self, employee_id: int, name: str, position: str) -> int:
        _require_fields(name, position)
        LOG.debug("Updating employee %s", employee_id)
        async with open_session(self._config, self._factory) as session:
            return await session.execute(self._statements.update, name, position, employee_id)

    async def delete_by_key(self, employee_id: int) -> int:
        LOG.debug("Deleting employee %s", employee_id)
        async with open_session(self._config, self._factory) as session:
            return await session.execute(self._statements.delete, employee_id)


class EmployeeDAO:
    """Blocking facade over ``AsyncEmployeeDAO``.

    Owns a private event loop; call ``close()`` (or use it as a context
    manager) when done.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        *,
        factory: ConnectionFactory | None = None,
        table: str = DEFAULT_TABLE,
    ) -> None:
        self._dao = AsyncEmployeeDAO(config, factory=factory, table=table)
        self._runner = LoopRunner()

    def ensure_schema(self) -> None:
        """Create the employees table if it does not exist."""

        self._runner.run(self._dao.ensure_schema())

    def insert(self, name: str, position: str) -> int | None:
        """Insert one employee; returns the generated id when reported."""

        return self._runner.run(self._dao.insert(name, position))

    def list_all(self) -> list[Employee]:
        """Every employee in the server's scan order."""

        return self._runner.run(self._dao.list_all())

    def update_by_key(self, employee_id: int, name: str, position: str) -> int:
        """Update one employee; returns rows affected (0 when absent)."""

        return self._runner.run(self._dao.update_by_key(employee_id, name, position))

    def delete_by_key(self, employee_id: int) -> int:
        """Delete one employee; returns rows affected (0 when absent)."""

        return self._runner.run(self._dao.delete_by_key(employee_id))

    def close(self) -> None:
        self._runner.close()

    def __enter__(self) -> EmployeeDAO:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def _require_fields(name: str, position: str) -> None:
    missing = [label for label, value in (("name", name), ("position", position)) if not value or not value.strip()]
    if missing:
        raise ConstraintError(f"Employee {' and '.join(missing)} must not be empty.")


__all__ = [
    "AsyncEmployeeDAO",
    "DEFAULT_TABLE",
    "EmployeeDAO",
    "Statements",
    "statements_for",
]
