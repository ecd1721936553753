"""Entity records mirrored from the employees table."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping


@dataclass(slots=True)
class Employee:
    """One row of the employees table; ``id`` stays ``None`` until inserted."""

    id: int | None
    name: str
    position: str

    @classmethod
    def from_row(cls, row: Mapping[str, object]) -> Employee:
        raw_id = row["id"]
        return cls(
            id=int(raw_id) if raw_id is not None else None,
            name=str(row["name"]),
            position=str(row["position"]),
        )

    def __str__(self) -> str:
        return f"Employee{{id={self.id}, name='{self.name}', position='{self.position}'}}"


__all__ = ["Employee"]
