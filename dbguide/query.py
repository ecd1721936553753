"""Ad-hoc query runner built on the connection factories."""

from __future__ import annotations

from dataclasses import dataclass
import time
from typing import Iterable, Mapping, Sequence

from .config import ConnectionConfig
from .connections import ConnectionFactory, open_session
from .errors import QueryError

_ROW_RETURNING = {"select", "with", "show", "values", "explain"}


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Normalized query output returned to the CLI."""

    columns: tuple[str, ...]
    rows: tuple[tuple[object, ...], ...]
    status: str
    elapsed_ms: int
    row_count: int | None = None


class QueryRunner:
    """Runs one parameterized statement per call on a fresh session."""

    def __init__(self, *, factory: ConnectionFactory | None = None) -> None:
        self._factory = factory

    async def execute(
        self,
        config: ConnectionConfig,
        sql: str,
        params: Sequence[object] = (),
    ) -> QueryResult:
        statement = sql.strip()
        if not statement:
            raise QueryError("Provide SQL to execute.")
        started = time.perf_counter()
        async with open_session(config, self._factory) as session:
            if _returns_rows(statement):
                records = await session.fetch(statement, *params)
                columns, rows = _records_to_rows(records)
                row_count: int | None = len(rows)
                status = f"{row_count} row(s)"
            else:
                affected = await session.execute(statement, *params)
                columns, rows = (), ()
                row_count = None
                status = f"{affected} row(s) affected"
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        return QueryResult(
            columns=columns,
            rows=rows,
            status=status,
            elapsed_ms=elapsed_ms,
            row_count=row_count,
        )


def format_result(result: QueryResult) -> str:
    """Render a result as a plain-text table followed by its status line."""

    if not result.columns:
        return result.status
    cells = [[str(value) for value in row] for row in result.rows]
    widths = [
        max([len(column)] + [len(row[idx]) for row in cells])
        for idx, column in enumerate(result.columns)
    ]
    lines = [
        " | ".join(column.ljust(width) for column, width in zip(result.columns, widths)),
        "-+-".join("-" * width for width in widths),
    ]
    lines.extend(" | ".join(cell.ljust(width) for cell, width in zip(row, widths)) for row in cells)
    lines.append(f"({result.status})")
    return "\n".join(lines)


def _returns_rows(statement: str) -> bool:
    token = statement.lstrip().split(None, 1)
    if not token:
        return False
    return token[0].lower() in _ROW_RETURNING


def _records_to_rows(
    records: Iterable[Mapping[str, object]],
) -> tuple[tuple[str, ...], tuple[tuple[object, ...], ...]]:
    rows: list[tuple[object, ...]] = []
    columns: tuple[str, ...] = ()
    for record in records:
        if not columns:
            columns = tuple(str(key) for key in record.keys())
        if not columns:
            continue
        rows.append(tuple(record[key] for key in columns))
    return columns, tuple(rows)


__all__ = [
    "QueryResult",
    "QueryRunner",
    "format_result",
]
