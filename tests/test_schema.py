"""
Tests for schema validation and query argument coercion.
"""

import pytest

from jobly.errors import ValidationError
from jobly.schema import (
    COMPANY_FILTER,
    COMPANY_NEW,
    COMPANY_UPDATE,
    JOB_FILTER,
    JOB_NEW,
    JOB_UPDATE,
    USER_NEW,
    USER_UPDATE,
    coerce_query_args,
    require_valid,
    validate_payload,
)


class TestValidatePayload:
    """Test payload validation against the schemas."""

    def test_valid_company(self, new_company):
        """Valid company should have no errors."""
        assert validate_payload(new_company, COMPANY_NEW) == []

    def test_missing_required_field(self):
        """Missing required field should error."""
        errors = validate_payload({"handle": "acme", "name": "Acme"}, COMPANY_NEW)
        assert any("description" in err for err in errors)

    def test_unknown_field_rejected(self):
        """Keys outside the allow-list are rejected."""
        errors = validate_payload({"name": "x", "handle": "y"}, COMPANY_UPDATE)
        assert any("handle" in err for err in errors)

    def test_negative_employees(self):
        errors = validate_payload({"numEmployees": -1}, COMPANY_UPDATE)
        assert any(err.startswith("numEmployees") for err in errors)

    def test_nulls_allowed_in_updates(self):
        assert validate_payload({"salary": None, "equity": None}, JOB_UPDATE) == []

    def test_job_update_rejects_id_and_handle(self):
        assert validate_payload({"id": 9999}, JOB_UPDATE)
        assert validate_payload({"companyHandle": "c3"}, JOB_UPDATE)

    def test_equity_bounds(self):
        """Equity may be a number or decimal string between 0 and 1."""
        assert validate_payload({"equity": 0.5}, JOB_UPDATE) == []
        assert validate_payload({"equity": "0.007"}, JOB_UPDATE) == []
        assert validate_payload({"equity": "1.0"}, JOB_UPDATE) == []
        assert validate_payload({"equity": 1.2}, JOB_UPDATE)
        assert validate_payload({"equity": "1.2"}, JOB_UPDATE)

    def test_salary_must_be_non_negative(self):
        assert validate_payload({"title": "t", "companyHandle": "c1", "salary": -500}, JOB_NEW)

    def test_logo_url_must_be_a_uri(self, new_company):
        """A logo URL that is not a URI is rejected on create and update."""
        bad_company = dict(new_company, logoUrl="not a url at all")
        assert any("logoUrl" in err for err in validate_payload(bad_company, COMPANY_NEW))
        assert any(
            "logoUrl" in err
            for err in validate_payload({"logoUrl": "not a url at all"}, COMPANY_UPDATE)
        )
        assert validate_payload({"logoUrl": "http://new.img"}, COMPANY_UPDATE) == []

    def test_user_email_format(self):
        user = {"username": "u", "firstName": "F", "lastName": "L", "email": "not-an-email"}
        assert any("email" in err for err in validate_payload(user, USER_NEW))

    def test_user_update_rejects_is_admin(self):
        assert validate_payload({"isAdmin": True}, USER_UPDATE)

    def test_filter_allow_lists(self):
        assert validate_payload({"name": "c", "minEmployees": 1}, COMPANY_FILTER) == []
        assert validate_payload({"title": "j", "minSalary": 1, "hasEquity": True}, JOB_FILTER) == []
        assert validate_payload({"salary": 1}, JOB_FILTER)
        assert validate_payload({"minEmployees": "2"}, COMPANY_FILTER)

    def test_empty_update_passes_schema(self):
        """Emptiness is reported by the update builder, not the schema."""
        assert validate_payload({}, COMPANY_UPDATE) == []


class TestRequireValid:
    """Test the raising variant."""

    def test_valid_passes(self, new_company):
        require_valid(new_company, COMPANY_NEW)

    def test_invalid_raises_with_all_errors(self):
        with pytest.raises(ValidationError) as exc_info:
            require_valid({"id": 1, "salary": -1}, JOB_UPDATE)
        assert exc_info.value.status == 400
        assert len(exc_info.value.errors) == 2


class TestCoerceQueryArgs:
    """Test conversion of query-string values."""

    def test_ints_and_bools(self):
        args = {"title": "j1", "minSalary": "40000", "hasEquity": "true"}
        result = coerce_query_args(args, int_fields=("minSalary",), bool_fields=("hasEquity",))
        assert result == {"title": "j1", "minSalary": 40000, "hasEquity": True}

    def test_negative_int(self):
        assert coerce_query_args({"minSalary": "-500"}, int_fields=("minSalary",)) == {"minSalary": -500}

    def test_none_dropped(self):
        assert coerce_query_args({"name": None, "minEmployees": "2"}, int_fields=("minEmployees",)) == {
            "minEmployees": 2
        }

    def test_false_strings(self):
        assert coerce_query_args({"hasEquity": "False"}, bool_fields=("hasEquity",)) == {"hasEquity": False}

    def test_non_strings_pass_through(self):
        assert coerce_query_args({"minSalary": 5}, int_fields=("minSalary",)) == {"minSalary": 5}

    def test_bad_int(self):
        with pytest.raises(ValidationError, match="minEmployees"):
            coerce_query_args({"minEmployees": "lots"}, int_fields=("minEmployees",))

    def test_bad_bool(self):
        with pytest.raises(ValidationError, match="hasEquity"):
            coerce_query_args({"hasEquity": "maybe"}, bool_fields=("hasEquity",))
