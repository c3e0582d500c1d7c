"""
JSON schemas for company, job and user payloads and for search filters.

Every schema sets additionalProperties to false, so these are also the
allow-lists of keys the SQL builders may turn into column names.
"""

from typing import Any, Dict, Iterable, List, Mapping

from jsonschema import Draft7Validator, FormatChecker

from .errors import ValidationError

_EQUITY = {
    "anyOf": [
        {"type": "number", "minimum": 0, "maximum": 1},
        {"type": "string", "pattern": r"^(0(\.\d+)?|1(\.0+)?|\.\d+)$"},
        {"type": "null"},
    ]
}
_SALARY = {"type": ["integer", "null"], "minimum": 0}
_NUM_EMPLOYEES = {"type": ["integer", "null"], "minimum": 0}

COMPANY_NEW: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "handle": {"type": "string", "minLength": 1, "maxLength": 25},
        "name": {"type": "string", "minLength": 1},
        "numEmployees": _NUM_EMPLOYEES,
        "description": {"type": "string"},
        "logoUrl": {"type": ["string", "null"], "format": "uri"},
    },
    "required": ["handle", "name", "description"],
}

COMPANY_UPDATE: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "numEmployees": _NUM_EMPLOYEES,
        "description": {"type": "string"},
        "logoUrl": {"type": ["string", "null"], "format": "uri"},
    },
}

JOB_NEW: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "title": {"type": "string", "minLength": 1},
        "salary": _SALARY,
        "equity": _EQUITY,
        "companyHandle": {"type": "string", "minLength": 1, "maxLength": 25},
    },
    "required": ["title", "companyHandle"],
}

# id and companyHandle are fixed once a job exists
JOB_UPDATE: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "title": {"type": "string", "minLength": 1},
        "salary": _SALARY,
        "equity": _EQUITY,
    },
}

USER_NEW: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "username": {"type": "string", "minLength": 1, "maxLength": 25},
        "firstName": {"type": "string", "minLength": 1},
        "lastName": {"type": "string", "minLength": 1},
        "email": {"type": "string", "format": "email"},
        "isAdmin": {"type": "boolean"},
    },
    "required": ["username", "firstName", "lastName", "email"],
}

USER_UPDATE: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "firstName": {"type": "string", "minLength": 1},
        "lastName": {"type": "string", "minLength": 1},
        "email": {"type": "string", "format": "email"},
    },
}

COMPANY_FILTER: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "name": {"type": "string"},
        "minEmployees": {"type": "integer"},
        "maxEmployees": {"type": "integer"},
    },
}

JOB_FILTER: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "title": {"type": "string"},
        "minSalary": {"type": "integer"},
        "hasEquity": {"type": "boolean"},
    },
}

_TRUE_STRINGS = {"true", "1", "yes"}
_FALSE_STRINGS = {"false", "0", "no"}


def _describe(error) -> str:
    path = ".".join(str(p) for p in error.path)
    return f"{path}: {error.message}" if path else error.message


def validate_payload(data: Any, schema: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    """
    validator = Draft7Validator(schema, format_checker=FormatChecker())
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
    return [_describe(e) for e in errors]


def require_valid(data: Any, schema: Dict[str, Any]) -> None:
    """Raise ValidationError listing every schema violation in data."""
    errors = validate_payload(data, schema)
    if errors:
        raise ValidationError("; ".join(errors), errors=errors)


def coerce_query_args(
    args: Mapping[str, Any],
    int_fields: Iterable[str] = (),
    bool_fields: Iterable[str] = (),
) -> Dict[str, Any]:
    """
    Convert query-string values to the types the filter schemas expect.

    None values are dropped. "40000" becomes 40000 for int_fields and
    "true"/"false" become booleans for bool_fields; other keys pass through.

    Raises:
        ValidationError: If a value cannot be converted
    """
    int_fields = set(int_fields)
    bool_fields = set(bool_fields)
    out: Dict[str, Any] = {}

    for key, value in args.items():
        if value is None:
            continue
        if key in int_fields and isinstance(value, str):
            try:
                value = int(value.strip())
            except ValueError:
                raise ValidationError(
                    f"{key} must be an integer", errors=[f"{key}: {value!r} is not an integer"]
                ) from None
        elif key in bool_fields and isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                value = True
            elif lowered in _FALSE_STRINGS:
                value = False
            else:
                raise ValidationError(
                    f"{key} must be true or false", errors=[f"{key}: {value!r} is not a boolean"]
                )
        out[key] = value

    return out
