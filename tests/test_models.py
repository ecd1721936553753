"""Tests for the employee record."""

from __future__ import annotations

from dbguide.models import Employee


def test_employee_renders_fields() -> None:
    employee = Employee(id=7, name="John Doe", position="Developer")

    assert str(employee) == "Employee{id=7, name='John Doe', position='Developer'}"


def test_employee_renders_missing_id_before_insert() -> None:
    assert str(Employee(None, "Jane", "Manager")) == "Employee{id=None, name='Jane', position='Manager'}"


def test_employee_fields_are_writable() -> None:
    employee = Employee(id=1, name="John Doe", position="Developer")

    employee.position = "Senior Developer"

    assert employee.position == "Senior Developer"
    assert employee == Employee(1, "John Doe", "Senior Developer")


def test_employee_from_row_coerces_identifier() -> None:
    employee = Employee.from_row({"id": "3", "name": "O'Brien", "position": "QA"})

    assert employee.id == 3
    assert employee.name == "O'Brien"
