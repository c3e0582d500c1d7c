"""
SQL fragment builders for partial updates and search filters.

Each builder turns a sparse mapping into a clause plus the values bound to
its ``$n`` placeholders. Values are never interpolated into the SQL text.
Keys are trusted: callers validate them against the schema allow-lists in
``jobly.schema`` before building.
"""

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from .errors import ValidationError


@dataclass
class SqlFragment:
    """A partial SQL clause and its positional parameter values."""

    clause: str
    values: List[Any] = field(default_factory=list)


class _Placeholders:
    """Hands out ``$n`` placeholders and collects their values in order."""

    def __init__(self, start_index: int = 1):
        self.next_idx = start_index
        self.values: List[Any] = []

    def add(self, value: Any) -> str:
        self.values.append(value)
        placeholder = f"${self.next_idx}"
        self.next_idx += 1
        return placeholder


def _escape_like(value: str) -> str:
    """Escape \\, % and _ so they match literally under ESCAPE '\\'."""
    value = value.replace("\\", "\\\\")
    return value.replace("%", "\\%").replace("_", "\\_")


def _substring_match(column: str, text: str, params: _Placeholders) -> str:
    placeholder = params.add(f"%{_escape_like(text)}%")
    return f"lower({column}) LIKE lower({placeholder}) ESCAPE '\\'"


def _where(predicates: List[str], params: _Placeholders) -> SqlFragment:
    # No predicates: empty clause, the caller splices nothing.
    if not predicates:
        return SqlFragment("", [])
    return SqlFragment("WHERE " + " AND ".join(predicates), params.values)


def build_update_fragment(
    patch: Mapping[str, Any],
    column_map: Optional[Mapping[str, str]] = None,
    *,
    start_index: int = 1,
) -> SqlFragment:
    """
    Build the SET clause of a partial update.

    Args:
        patch: Field name -> new value, e.g. {"firstName": "Aliya", "age": 32}
        column_map: External field name -> column name; unmapped fields pass through
        start_index: Number of the first placeholder

    Returns:
        SqlFragment('"first_name"=$1, "age"=$2', ["Aliya", 32])

    Raises:
        ValidationError: If patch is empty
    """
    if not patch:
        raise ValidationError("No data")

    column_map = column_map or {}
    params = _Placeholders(start_index)
    assignments = [
        f'"{column_map.get(key, key)}"={params.add(value)}'
        for key, value in patch.items()
    ]
    return SqlFragment(", ".join(assignments), params.values)


def build_company_filter_clause(filters: Mapping[str, Any]) -> SqlFragment:
    """
    Build the WHERE clause for a company search.

    Supported filters: name (case-insensitive substring), minEmployees,
    maxEmployees. Raises ValidationError if minEmployees > maxEmployees.
    """
    params = _Placeholders()
    predicates: List[str] = []

    name = filters.get("name")
    if name:
        predicates.append(_substring_match("name", name, params))

    min_employees = filters.get("minEmployees")
    max_employees = filters.get("maxEmployees")
    if min_employees is not None and max_employees is not None and min_employees > max_employees:
        raise ValidationError(
            "minEmployees cannot be greater than maxEmployees",
            errors=[f"minEmployees={min_employees} > maxEmployees={max_employees}"],
        )
    if min_employees is not None:
        predicates.append(f"num_employees >= {params.add(min_employees)}")
    if max_employees is not None:
        predicates.append(f"num_employees <= {params.add(max_employees)}")

    return _where(predicates, params)


def build_job_filter_clause(filters: Mapping[str, Any]) -> SqlFragment:
    """
    Build the WHERE clause for a job search.

    Supported filters: title (case-insensitive substring), minSalary (>= 0),
    hasEquity. Predicates are always ordered title, salary, equity.

    hasEquity only checks that equity is set; a stored equity of 0 still matches.
    """
    params = _Placeholders()
    predicates: List[str] = []

    title = filters.get("title")
    if title:
        predicates.append(_substring_match("title", title, params))

    min_salary = filters.get("minSalary")
    if min_salary is not None:
        if min_salary < 0:
            raise ValidationError(
                "minSalary cannot be less than 0",
                errors=[f"minSalary={min_salary}"],
            )
        predicates.append(f"salary >= {params.add(min_salary)}")

    if filters.get("hasEquity"):
        predicates.append("equity IS NOT NULL")

    return _where(predicates, params)


__all__ = [
    "SqlFragment",
    "build_update_fragment",
    "build_company_filter_clause",
    "build_job_filter_clause",
]
