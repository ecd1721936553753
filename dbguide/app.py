"""Command line entry point: the CRUD walkthrough and the query runner."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence, TextIO

from .config import ConnectionConfig, default_config_path, load_config
from .connections import ConnectionFactory, factory_for
from .dao import EmployeeDAO
from .errors import ConfigurationError, DatabaseConnectionError, DatabaseError, SchemaError
from .query import QueryRunner, format_result
from .runner import LoopRunner

LOG = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_STARTUP_FAILURE = 1
EXIT_CONFIG_ERROR = 2

SAMPLE_EMPLOYEES: tuple[tuple[str, str], ...] = (
    ("John Doe", "Developer"),
    ("Jane Smith", "Manager"),
)


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="dbguide",
        description="Walk through CRUD operations against PostgreSQL or MySQL.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Config file (default: $DBGUIDE_CONFIG or ./database.ini)",
    )
    parser.add_argument("--section", default=None, help="Config section to read (postgresql or mysql)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log driver activity to stderr")
    commands = parser.add_subparsers(dest="command")
    commands.add_parser("demo", help="Create, list, update and delete sample employees (default)")
    query = commands.add_parser("query", help="Run a single SQL statement")
    query.add_argument("sql", help="Statement to execute; use driver placeholders for parameters")
    query.add_argument(
        "-p",
        "--param",
        action="append",
        default=[],
        dest="params",
        help="Bound parameter value (repeatable, in placeholder order)",
    )
    return parser.parse_args(argv)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def run_demo(
    config: ConnectionConfig,
    *,
    factory: ConnectionFactory | None = None,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Run the walkthrough; returns the process exit status."""

    out = out or sys.stdout
    err = err or sys.stderr
    with EmployeeDAO(config, factory=factory) as dao:
        print(f"Connecting to {config.describe()}", file=out)
        try:
            dao.ensure_schema()
        except (DatabaseConnectionError, SchemaError) as exc:
            print(f"Start-up failed: {exc}", file=err)
            return EXIT_STARTUP_FAILURE
        print("Employees table is ready.", file=out)

        inserted: list[int | None] = []
        for name, position in SAMPLE_EMPLOYEES:
            try:
                employee_id = dao.insert(name, position)
            except DatabaseError as exc:
                print(f"Insert of {name!r} failed: {exc}", file=err)
                inserted.append(None)
                continue
            inserted.append(employee_id)
            print(f"Inserted {name} (id={employee_id}).", file=out)

        _print_listing(dao, "Employees:", out, err)

        first, second = inserted[0], inserted[1]
        if first is None:
            print("Skipping update: no id for the first sample employee.", file=err)
        else:
            try:
                count = dao.update_by_key(first, "John Doe", "Senior Developer")
            except DatabaseError as exc:
                print(f"Update of id={first} failed: {exc}", file=err)
            else:
                print(f"Updated id={first}: {count} row(s) affected.", file=out)

        if second is None:
            print("Skipping delete: no id for the second sample employee.", file=err)
        else:
            try:
                count = dao.delete_by_key(second)
            except DatabaseError as exc:
                print(f"Delete of id={second} failed: {exc}", file=err)
            else:
                print(f"Deleted id={second}: {count} row(s) affected.", file=out)

        _print_listing(dao, "Employees after update and delete:", out, err)
    return EXIT_OK


def run_query(
    config: ConnectionConfig,
    sql: str,
    params: Sequence[object] = (),
    *,
    factory: ConnectionFactory | None = None,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Execute one statement and print its result table."""

    out = out or sys.stdout
    err = err or sys.stderr
    runner = LoopRunner()
    try:
        result = runner.run(QueryRunner(factory=factory).execute(config, sql, params))
    except DatabaseConnectionError as exc:
        print(f"Start-up failed: {exc}", file=err)
        return EXIT_STARTUP_FAILURE
    except DatabaseError as exc:
        print(f"Query failed: {exc}", file=err)
        return EXIT_STARTUP_FAILURE
    finally:
        runner.close()
    print(format_result(result), file=out)
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.verbose)
    path = args.config or default_config_path()
    try:
        config = load_config(path, section=args.section)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    LOG.debug("Loaded %s settings from %s", config.driver, path)
    factory = factory_for(config)
    if args.command == "query":
        return run_query(config, args.sql, args.params, factory=factory)
    return run_demo(config, factory=factory)


def _print_listing(dao: EmployeeDAO, title: str, out: TextIO, err: TextIO) -> None:
    try:
        employees = dao.list_all()
    except DatabaseError as exc:
        print(f"Listing employees failed: {exc}", file=err)
        return
    print(title, file=out)
    if not employees:
        print("  (none)", file=out)
    for employee in employees:
        print(f"  {employee}", file=out)


__all__ = ["main", "parse_args", "run_demo", "run_query"]
