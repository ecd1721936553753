"""Tests for the command line walkthrough."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from dbguide import app as app_module
from dbguide.app import main, run_demo
from dbguide.errors import QueryError


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "database.ini"
    path.write_text("[postgresql]\nhost=localhost\ndatabase=company\nuser=app\npassword=s3cret\n")
    return path


def test_demo_walks_through_crud(
    config_file: Path,
    fake_factory,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setattr(app_module, "factory_for", lambda _config: fake_factory)

    status = main(["--config", str(config_file)])

    out, err = capsys.readouterr()
    assert status == 0
    assert err == ""
    assert "Inserted John Doe (id=1)." in out
    assert "Updated id=1: 1 row(s) affected." in out
    assert "Deleted id=2: 1 row(s) affected." in out
    final_listing = out.split("Employees after update and delete:")[1]
    assert "Employee{id=1, name='John Doe', position='Senior Developer'}" in final_listing
    assert "Jane Smith" not in final_listing
    assert all(session.closed for session in fake_factory.sessions)


def test_missing_config_exits_with_config_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    status = main(["--config", str(tmp_path / "absent.ini")])

    _, err = capsys.readouterr()
    assert status == 2
    assert "Configuration error" in err


def test_missing_section_exits_with_config_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "database.ini"
    path.write_text("[redis]\nhost=localhost\n")

    status = main(["--config", str(path)])

    assert status == 2
    assert "not found" in capsys.readouterr().err


def test_connection_failure_at_startup_is_fatal(
    config_file: Path,
    fake_factory,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    fake_factory.refuse = True
    monkeypatch.setattr(app_module, "factory_for", lambda _config: fake_factory)

    status = main(["--config", str(config_file)])

    out, err = capsys.readouterr()
    assert status == 1
    assert "connection refused" in err
    assert "Inserted" not in out


def test_failed_step_is_reported_and_skipped(pg_config, fake_factory) -> None:
    out, err = io.StringIO(), io.StringIO()
    original = fake_factory.store.run

    def _reject_deletes(sql: str, args: tuple[object, ...]) -> object:
        if sql.startswith("DELETE"):
            raise QueryError("permission denied for table employees")
        return original(sql, args)

    fake_factory.store.run = _reject_deletes  # type: ignore[method-assign]

    status = run_demo(pg_config, factory=fake_factory, out=out, err=err)

    assert status == 0
    assert "Delete of id=2 failed: permission denied" in err.getvalue()
    assert "Employee{id=2, name='Jane Smith', position='Manager'}" in out.getvalue().split("after update and delete:")[1]


def test_query_command_prints_table(
    config_file: Path,
    fake_factory,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    fake_factory.store.table_created = True
    fake_factory.store.run("INSERT", ("John Doe", "Developer"))
    monkeypatch.setattr(app_module, "factory_for", lambda _config: fake_factory)

    status = main(["--config", str(config_file), "query", "SELECT id, name, position FROM employees"])

    out, _ = capsys.readouterr()
    assert status == 0
    assert "John Doe" in out
    assert "(1 row(s))" in out


def test_query_with_wrong_parameter_count_reports_failure(
    tmp_path: Path,
    escaping_mysql,
    capsys: pytest.CaptureFixture[str],
) -> None:
    path = tmp_path / "database.ini"
    path.write_text("[mysql]\nhost=localhost\ndatabase=company\nuser=root\npassword=s3cret\n")

    status = main(["--config", str(path), "query", "SELECT %s", "-p", "a", "-p", "b"])

    out, err = capsys.readouterr()
    assert status == 1
    assert "Query failed:" in err
    assert out == ""
    assert escaping_mysql.quit_sent is True
