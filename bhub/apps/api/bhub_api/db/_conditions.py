"""Shared WHERE-clause builder for conditional (compare-and-swap) updates."""

from typing import Any

from sqlalchemy import ColumnElement


def build_conditions(model: Any, conditions: dict[str, Any]) -> list[ColumnElement[bool]]:
    """Translate {column: expected} into SQLAlchemy predicates.

    None means IS NULL; a tuple/list/set/frozenset means IN (...).
    """
    clauses: list[ColumnElement[bool]] = []
    for key, expected in conditions.items():
        column = getattr(model, key)
        if expected is None:
            clauses.append(column.is_(None))
        elif isinstance(expected, (tuple, list, set, frozenset)):
            clauses.append(column.in_(list(expected)))
        else:
            clauses.append(column == expected)
    return clauses
