"""Field filters for caption queries.

A ``FilterOptions`` value is a list of ``name <op> value`` conditions that the
storage layer turns into a ``WHERE`` clause. Column names are checked against
the caller's whitelist so they can be interpolated safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Collection


class Operator(Enum):
    EQ = "="
    NOT_EQ = "!="


@dataclass(frozen=True)
class Field:
    name: str
    value: Any
    operator: Operator = Operator.EQ


class FilterOptions:
    def __init__(self) -> None:
        self._fields: list[Field] = []

    def add(self, name: str, value: Any, operator: Operator = Operator.EQ) -> "FilterOptions":
        self._fields.append(Field(name=name, value=value, operator=operator))
        return self

    def to_sql(self, allowed_columns: Collection[str]) -> tuple[str, tuple[Any, ...]]:
        """Return ``(where_clause, params)``; the clause is empty when there are no fields."""
        clauses: list[str] = []
        params: list[Any] = []
        for field in self._fields:
            if field.name not in allowed_columns:
                raise ValueError(f"Cannot filter on unknown column {field.name!r}")
            value = int(field.value) if isinstance(field.value, bool) else field.value
            clauses.append(f"{field.name} {field.operator.value} ?")
            params.append(value)
        if not clauses:
            return "", ()
        return "WHERE " + " AND ".join(clauses), tuple(params)
