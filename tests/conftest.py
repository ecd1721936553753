"""Shared fixtures: an in-memory store behind the session interface."""

from __future__ import annotations

import aiomysql
from pydantic import SecretStr
import pytest

from dbguide.config import ConnectionConfig
from dbguide.errors import DatabaseConnectionError, QueryError


class FakeStore:
    """Keeps employee rows and records every statement it receives."""

    def __init__(self) -> None:
        self.table_created = False
        self.rows: dict[int, dict[str, object]] = {}
        self.statements: list[tuple[str, tuple[object, ...]]] = []
        self._next_id = 1
        self.fail_with: Exception | None = None

    def run(self, sql: str, args: tuple[object, ...]) -> object:
        self.statements.append((sql, args))
        if self.fail_with is not None:
            raise self.fail_with
        verb = sql.split(None, 1)[0].upper()
        if verb == "CREATE":
            self.table_created = True
            return 0
        if not self.table_created:
            raise QueryError('relation "employees" does not exist')
        if verb == "INSERT":
            name, position = args
            employee_id = self._next_id
            self._next_id += 1
            self.rows[employee_id] = {"id": employee_id, "name": name, "position": position}
            return employee_id
        if verb == "SELECT":
            return [dict(row) for row in self.rows.values()]
        if verb == "UPDATE":
            name, position, employee_id = args
            row = self.rows.get(employee_id)
            if row is None:
                return 0
            row.update(name=name, position=position)
            return 1
        if verb == "DELETE":
            (employee_id,) = args
            return 1 if self.rows.pop(employee_id, None) is not None else 0
        raise QueryError(f"syntax error at or near \"{verb}\"")


class FakeSession:
    def __init__(self, store: FakeStore) -> None:
        self._store = store
        self.closed = False

    async def fetch(self, sql: str, *args: object) -> list[dict[str, object]]:
        return self._store.run(sql, args)  # type: ignore[return-value]

    async def execute(self, sql: str, *args: object) -> int:
        return self._store.run(sql, args)  # type: ignore[return-value]

    async def insert(self, sql: str, *args: object) -> int | None:
        return self._store.run(sql, args)  # type: ignore[return-value]

    async def close(self) -> None:
        self.closed = True


class FakeFactory:
    """Connection factory that hands out sessions over one ``FakeStore``."""

    def __init__(self, store: FakeStore | None = None) -> None:
        self.store = store or FakeStore()
        self.sessions: list[FakeSession] = []
        self.refuse = False

    async def open(self, config: ConnectionConfig) -> FakeSession:
        if self.refuse:
            raise DatabaseConnectionError(f"Failed to connect to {config.describe()}: connection refused")
        session = FakeSession(self.store)
        self.sessions.append(session)
        return session


class EscapingMysqlConnection:
    """Minimal connection that real aiomysql cursors can run against."""

    loop = None

    def __init__(self) -> None:
        self.closed = False
        self.quit_sent = False

    def cursor(self, cursor_class=None):
        return (cursor_class or aiomysql.Cursor)(self)

    def escape(self, value: object) -> str:
        return "'" + str(value).replace("'", "''") + "'"

    async def ensure_closed(self) -> None:
        self.quit_sent = True
        self.closed = True

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def pg_config() -> ConnectionConfig:
    return ConnectionConfig(
        driver="postgresql",
        host="db.example.com",
        port=5432,
        database="company",
        user="app",
        password=SecretStr("s3cret"),
    )


@pytest.fixture
def mysql_config() -> ConnectionConfig:
    return ConnectionConfig(
        driver="mysql",
        host="localhost",
        port=3306,
        database="company",
        user="root",
        password=SecretStr("s3cret"),
    )


@pytest.fixture
def fake_factory() -> FakeFactory:
    return FakeFactory()


@pytest.fixture
def escaping_mysql(monkeypatch: pytest.MonkeyPatch) -> EscapingMysqlConnection:
    conn = EscapingMysqlConnection()

    async def _connect(**kwargs: object) -> EscapingMysqlConnection:
        return conn

    monkeypatch.setattr("dbguide.connections.aiomysql.connect", _connect)
    return conn
