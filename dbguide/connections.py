"""Connection factories and the per-operation session wrapper."""

from __future__ import annotations

from contextlib import asynccontextmanager, contextmanager
import logging
from typing import Any, AsyncIterator, Iterator, Mapping, Protocol, runtime_checkable

import aiomysql
import asyncpg
from pymysql.constants import CLIENT

from .config import ConnectionConfig
from .errors import ConstraintError, DatabaseConnectionError, QueryError

LOG = logging.getLogger(__name__)

Row = dict[str, object]


@runtime_checkable
class DatabaseSession(Protocol):
    """One live session with the server, used for a single operation."""

    async def fetch(self, sql: str, *args: object) -> list[Row]:
        """Run a row-returning statement."""

    async def execute(self, sql: str, *args: object) -> int:
        """Run a write statement and return the number of rows it matched."""

    async def insert(self, sql: str, *args: object) -> int | None:
        """Run an insert and return the generated identifier, if reported."""

    async def close(self) -> None:
        """Release the session."""


class ConnectionFactory(Protocol):
    """Interface implemented by connection factories."""

    async def open(self, config: ConnectionConfig) -> DatabaseSession: ...


class AsyncpgSession:
    """Session over an asyncpg connection (``$1`` placeholders)."""

    def __init__(self, conn: Any) -> None:
        self._conn = conn

    async def fetch(self, sql: str, *args: object) -> list[Row]:
        with _asyncpg_errors():
            records = await self._conn.fetch(sql, *args)
        return [dict(record.items()) for record in records]

    async def execute(self, sql: str, *args: object) -> int:
        with _asyncpg_errors():
            status = await self._conn.execute(sql, *args)
        return _affected_rows(status)

    async def insert(self, sql: str, *args: object) -> int | None:
        with _asyncpg_errors():
            generated = await self._conn.fetchval(sql, *args)
        return int(generated) if generated is not None else None

    async def close(self) -> None:
        await self._conn.close()


class AiomysqlSession:
    """Session over an aiomysql connection (``%s`` placeholders, autocommit)."""

    def __init__(self, conn: Any) -> None:
        self._conn = conn

    async def fetch(self, sql: str, *args: object) -> list[Row]:
        with _mysql_errors():
            async with self._conn.cursor(aiomysql.DictCursor) as cursor:
                await cursor.execute(sql, args or None)
                rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def execute(self, sql: str, *args: object) -> int:
        with _mysql_errors():
            async with self._conn.cursor() as cursor:
                await cursor.execute(sql, args or None)
                return max(cursor.rowcount, 0)

    async def insert(self, sql: str, *args: object) -> int | None:
        with _mysql_errors():
            async with self._conn.cursor() as cursor:
                await cursor.execute(sql, args or None)
                return cursor.lastrowid or None

    async def close(self) -> None:
        try:
            await self._conn.ensure_closed()
        except Exception:
            LOG.debug("COM_QUIT failed; dropping the MySQL transport", exc_info=True)
            self._conn.close()


class AsyncpgConnectionFactory:
    """Opens PostgreSQL sessions via asyncpg."""

    def __init__(self, *, connect_timeout: float = 5.0) -> None:
        self._connect_timeout = connect_timeout

    async def open(self, config: ConnectionConfig) -> AsyncpgSession:
        try:
            conn = await asyncpg.connect(**self._connect_kwargs(config))
        except Exception as exc:
            raise DatabaseConnectionError(f"Failed to connect to {config.describe()}: {exc}") from exc
        return AsyncpgSession(conn)

    def _connect_kwargs(self, config: ConnectionConfig) -> dict[str, object]:
        return {
            "host": config.host,
            "port": config.port,
            "user": config.user,
            "password": config.password.get_secret_value(),
            "database": config.database,
            "timeout": self._connect_timeout,
        }


class AiomysqlConnectionFactory:
    """Opens MySQL sessions via aiomysql."""

    def __init__(self, *, connect_timeout: float = 5.0) -> None:
        self._connect_timeout = connect_timeout

    async def open(self, config: ConnectionConfig) -> AiomysqlSession:
        try:
            conn = await aiomysql.connect(**self._connect_kwargs(config))
        except Exception as exc:
            raise DatabaseConnectionError(f"Failed to connect to {config.describe()}: {exc}") from exc
        return AiomysqlSession(conn)

    def _connect_kwargs(self, config: ConnectionConfig) -> dict[str, object]:
        return {
            "host": config.host,
            "port": config.port,
            "user": config.user,
            "password": config.password.get_secret_value(),
            "db": config.database,
            "connect_timeout": self._connect_timeout,
            "autocommit": True,
            # Report matched rows for UPDATE, as PostgreSQL does.
            "client_flag": CLIENT.FOUND_ROWS,
        }


FACTORIES: Mapping[str, type[AsyncpgConnectionFactory] | type[AiomysqlConnectionFactory]] = {
    "postgresql": AsyncpgConnectionFactory,
    "mysql": AiomysqlConnectionFactory,
}


def factory_for(config: ConnectionConfig) -> ConnectionFactory:
    """Return the connection factory matching ``config.driver``."""

    return FACTORIES[config.driver]()


@asynccontextmanager
async def open_session(
    config: ConnectionConfig,
    factory: ConnectionFactory | None = None,
) -> AsyncIterator[DatabaseSession]:
    """Open a session and close it on every exit path."""

    factory = factory or factory_for(config)
    session = await factory.open(config)
    LOG.debug("Opened session to %s", config.describe())
    try:
        yield session
    finally:
        try:
            await session.close()
        except Exception:  # pragma: no cover - best effort cleanup
            LOG.warning("Failed to close session to %s", config.describe(), exc_info=True)
        else:
            LOG.debug("Closed session to %s", config.describe())


def _affected_rows(status: str | None) -> int:
    """Parse asyncpg command tags such as ``UPDATE 2`` or ``INSERT 0 1``."""

    if not status:
        return 0
    tail = status.rsplit(None, 1)[-1]
    return int(tail) if tail.isdigit() else 0


@contextmanager
def _asyncpg_errors() -> Iterator[None]:
    try:
        yield
    except asyncpg.IntegrityConstraintViolationError as exc:
        raise ConstraintError(str(exc)) from exc
    except (asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
        raise QueryError(str(exc)) from exc


@contextmanager
def _mysql_errors() -> Iterator[None]:
    try:
        yield
    except aiomysql.IntegrityError as exc:
        raise ConstraintError(str(exc)) from exc
    except aiomysql.MySQLError as exc:
        raise QueryError(str(exc)) from exc
    except (TypeError, ValueError) as exc:
        # Client-side placeholder substitution: argument count or format mismatch.
        raise QueryError(str(exc)) from exc


__all__ = [
    "AiomysqlConnectionFactory",
    "AiomysqlSession",
    "AsyncpgConnectionFactory",
    "AsyncpgSession",
    "ConnectionFactory",
    "DatabaseSession",
    "FACTORIES",
    "factory_for",
    "open_session",
]
