"""
Company, Job and User models.

Each model wraps a SQLAlchemy session. Inserts, single-row lookups and
deletes go through the ORM records in ``jobly.database``; searches and
partial updates splice the fragments built by ``jobly.sql`` into SQL and
bind their values.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy.exc import IntegrityError

from .database import (
    ApplicationRecord,
    CompanyRecord,
    JobRecord,
    UserRecord,
    execute_fragment,
)
from .errors import NotFoundError, ValidationError
from .logger import get_logger
from .schema import (
    COMPANY_FILTER,
    COMPANY_NEW,
    COMPANY_UPDATE,
    JOB_FILTER,
    JOB_NEW,
    JOB_UPDATE,
    USER_NEW,
    USER_UPDATE,
    require_valid,
)
from .sql import (
    build_company_filter_clause,
    build_job_filter_clause,
    build_update_fragment,
)

COMPANY_COLUMNS = {"numEmployees": "num_employees", "logoUrl": "logo_url"}
JOB_COLUMNS = {"companyHandle": "company_handle"}
USER_COLUMNS = {"firstName": "first_name", "lastName": "last_name", "isAdmin": "is_admin"}

_COMPANY_SELECT = """SELECT handle,
                  name,
                  num_employees AS "numEmployees",
                  description,
                  logo_url AS "logoUrl"
           FROM companies"""

_JOB_SELECT = """SELECT id,
                  title,
                  salary,
                  equity,
                  company_handle AS "companyHandle"
           FROM jobs"""

_USER_SELECT = """SELECT username,
                  first_name AS "firstName",
                  last_name AS "lastName",
                  email,
                  is_admin AS "isAdmin"
           FROM users"""


def _join_sql(*parts: str) -> str:
    return " ".join(p for p in parts if p)


def _equity_out(value: Any) -> Optional[str]:
    # NUMERIC comes back as a number; callers see it as a decimal string
    return None if value is None else str(value)


class _Model:
    """Shared query plumbing for the models."""

    table = ""

    def __init__(self, session):
        self.session = session

    def _validate(self, data: Any, schema: Dict[str, Any], reason: str) -> None:
        try:
            require_valid(data, schema)
        except ValidationError as e:
            logger = get_logger()
            logger.record_validation_error(reason)
            logger.warning("Rejected invalid data", table=self.table, reason=reason, errors=e.errors)
            raise

    def _build(self, reason: str, builder, *args):
        try:
            return builder(*args)
        except ValidationError as e:
            logger = get_logger()
            logger.record_validation_error(reason)
            logger.warning(f"Rejected {reason}: {e.message}", table=self.table)
            raise

    def _not_found(self, message: str) -> NotFoundError:
        get_logger().record_not_found(self.table)
        return NotFoundError(message)

    def _fetch_all(self, sql: str, values: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        get_logger().debug("Executing query", table=self.table, sql=sql, values=list(values))
        rows = [dict(r) for r in execute_fragment(self.session, sql, values).mappings().all()]
        get_logger().record_query(self.table, len(rows))
        return rows

    def _write(self, sql: str, values: Sequence[Any] = ()) -> int:
        """Execute and commit a write; returns the affected row count."""
        get_logger().debug("Executing write", table=self.table, sql=sql, values=list(values))
        try:
            result = execute_fragment(self.session, sql, values)
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise ValidationError(f"Conflicting {self.table} data: {e.orig}") from e
        get_logger().record_query(self.table)
        return result.rowcount

    def _add(self, record) -> None:
        self.session.add(record)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise ValidationError(f"Conflicting {self.table} data: {e.orig}") from e
        get_logger().record_query(self.table)


class Company(_Model):
    """Companies: handle, name, numEmployees, description, logoUrl."""

    table = "companies"

    def create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Create a company; raises ValidationError on a duplicate handle."""
        self._validate(data, COMPANY_NEW, "company_new")
        if self.session.get(CompanyRecord, data["handle"]) is not None:
            raise ValidationError(f"Duplicate company: {data['handle']}")

        self._add(CompanyRecord(
            handle=data["handle"],
            name=data["name"],
            num_employees=data.get("numEmployees"),
            description=data["description"],
            logo_url=data.get("logoUrl"),
        ))
        get_logger().info("Created company", handle=data["handle"])
        return self._select_one(data["handle"])

    def find_all(self, filters: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Find companies, optionally filtered.

        Args:
            filters: {name, minEmployees, maxEmployees}, all optional

        Returns:
            [{handle, name, numEmployees, description, logoUrl}, ...] ordered by name
        """
        filters = dict(filters or {})
        self._validate(filters, COMPANY_FILTER, "company_filter")
        where = self._build("company_filter", build_company_filter_clause, filters)
        return self._fetch_all(_join_sql(_COMPANY_SELECT, where.clause, "ORDER BY name"), where.values)

    def get(self, handle: str) -> Dict[str, Any]:
        """Return {handle, name, numEmployees, description, logoUrl, jobs}."""
        company = self._select_one(handle)
        jobs = self._fetch_all(
            "SELECT id, title, salary, equity FROM jobs WHERE company_handle = $1 ORDER BY id",
            [handle],
        )
        for job in jobs:
            job["equity"] = _equity_out(job["equity"])
        company["jobs"] = jobs
        return company

    def update(self, handle: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Update some of a company's fields.

        data may include {name, numEmployees, description, logoUrl}.
        Raises ValidationError for no or unknown fields, NotFoundError
        for a missing handle.
        """
        self._validate(data, COMPANY_UPDATE, "company_update")
        fragment = self._build("company_update", build_update_fragment, data, COMPANY_COLUMNS)
        handle_idx = f"${len(fragment.values) + 1}"
        sql = f"UPDATE companies SET {fragment.clause} WHERE handle = {handle_idx}"

        if self._write(sql, fragment.values + [handle]) == 0:
            raise self._not_found(f"No company: {handle}")
        get_logger().info("Updated company", handle=handle, fields=list(data))
        return self._select_one(handle)

    def remove(self, handle: str) -> None:
        """Delete a company and, by cascade, its jobs."""
        record = self.session.get(CompanyRecord, handle)
        if record is None:
            raise self._not_found(f"No company: {handle}")
        self.session.delete(record)
        self.session.commit()
        get_logger().record_query(self.table)
        get_logger().info("Removed company", handle=handle)

    def _select_one(self, handle: str) -> Dict[str, Any]:
        rows = self._fetch_all(_join_sql(_COMPANY_SELECT, "WHERE handle = $1"), [handle])
        if not rows:
            raise self._not_found(f"No company: {handle}")
        return rows[0]


class Job(_Model):
    """Jobs: id, title, salary, equity, companyHandle."""

    table = "jobs"

    def create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Create a job for an existing company."""
        self._validate(data, JOB_NEW, "job_new")
        if self.session.get(CompanyRecord, data["companyHandle"]) is None:
            raise self._not_found(f"No company: {data['companyHandle']}")

        record = JobRecord(
            title=data["title"],
            salary=data.get("salary"),
            equity=data.get("equity"),
            company_handle=data["companyHandle"],
        )
        self._add(record)
        get_logger().info("Created job", id=record.id, company=data["companyHandle"])
        return self._select_one(record.id)

    def find_all(self, filters: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Find jobs, optionally filtered.

        Args:
            filters: {title, minSalary, hasEquity}, all optional

        Returns:
            [{id, title, salary, equity, companyHandle}, ...] ordered by title, id
        """
        filters = dict(filters or {})
        self._validate(filters, JOB_FILTER, "job_filter")
        where = self._build("job_filter", build_job_filter_clause, filters)
        rows = self._fetch_all(_join_sql(_JOB_SELECT, where.clause, "ORDER BY title, id"), where.values)
        return [self._shape(r) for r in rows]

    def get(self, job_id: int) -> Dict[str, Any]:
        return self._select_one(job_id)

    def update(self, job_id: int, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Update some of a job's fields.

        data may include {title, salary, equity}; id and companyHandle
        cannot change.
        """
        self._validate(data, JOB_UPDATE, "job_update")
        fragment = self._build("job_update", build_update_fragment, data, JOB_COLUMNS)
        id_idx = f"${len(fragment.values) + 1}"
        sql = f"UPDATE jobs SET {fragment.clause} WHERE id = {id_idx}"

        if self._write(sql, fragment.values + [job_id]) == 0:
            raise self._not_found(f"No job: {job_id}")
        get_logger().info("Updated job", id=job_id, fields=list(data))
        return self._select_one(job_id)

    def remove(self, job_id: int) -> None:
        record = self.session.get(JobRecord, job_id)
        if record is None:
            raise self._not_found(f"No job: {job_id}")
        self.session.delete(record)
        self.session.commit()
        get_logger().record_query(self.table)
        get_logger().info("Removed job", id=job_id)

    def _select_one(self, job_id: int) -> Dict[str, Any]:
        rows = self._fetch_all(_join_sql(_JOB_SELECT, "WHERE id = $1"), [job_id])
        if not rows:
            raise self._not_found(f"No job: {job_id}")
        return self._shape(rows[0])

    @staticmethod
    def _shape(row: Dict[str, Any]) -> Dict[str, Any]:
        row["equity"] = _equity_out(row["equity"])
        return row


class User(_Model):
    """Users: username, firstName, lastName, email, isAdmin, and applications."""

    table = "users"

    def create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Create a user; raises ValidationError on a duplicate username."""
        self._validate(data, USER_NEW, "user_new")
        if self.session.get(UserRecord, data["username"]) is not None:
            raise ValidationError(f"Duplicate username: {data['username']}")

        self._add(UserRecord(
            username=data["username"],
            first_name=data["firstName"],
            last_name=data["lastName"],
            email=data["email"],
            is_admin=data.get("isAdmin", False),
        ))
        get_logger().info("Created user", username=data["username"])
        return self._select_one(data["username"])

    def find_all(self) -> List[Dict[str, Any]]:
        """Return all users ordered by username, each with the ids of jobs applied to."""
        users = self._fetch_all(_join_sql(_USER_SELECT, "ORDER BY username"))
        applications = self._fetch_all("SELECT username, job_id FROM applications ORDER BY job_id")
        for user in users:
            user["isAdmin"] = bool(user["isAdmin"])
            user["jobs"] = [a["job_id"] for a in applications if a["username"] == user["username"]]
        return users

    def get(self, username: str) -> Dict[str, Any]:
        """Return {username, firstName, lastName, email, isAdmin, jobs}."""
        user = self._select_one(username)
        applications = self._fetch_all(
            "SELECT job_id FROM applications WHERE username = $1 ORDER BY job_id",
            [username],
        )
        user["jobs"] = [a["job_id"] for a in applications]
        return user

    def update(self, username: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Update some of {firstName, lastName, email}."""
        self._validate(data, USER_UPDATE, "user_update")
        fragment = self._build("user_update", build_update_fragment, data, USER_COLUMNS)
        username_idx = f"${len(fragment.values) + 1}"
        sql = f"UPDATE users SET {fragment.clause} WHERE username = {username_idx}"

        if self._write(sql, fragment.values + [username]) == 0:
            raise self._not_found(f"No user: {username}")
        get_logger().info("Updated user", username=username, fields=list(data))
        return self._select_one(username)

    def remove(self, username: str) -> None:
        record = self.session.get(UserRecord, username)
        if record is None:
            raise self._not_found(f"No user: {username}")
        self.session.delete(record)
        self.session.commit()
        get_logger().record_query(self.table)
        get_logger().info("Removed user", username=username)

    def apply(self, username: str, job_id: int) -> int:
        """
        Record that username applied to job_id.

        Returns:
            job_id

        Raises:
            NotFoundError: If the user or job does not exist
            ValidationError: If the user already applied
        """
        if self.session.get(UserRecord, username) is None:
            raise self._not_found(f"No user: {username}")
        if self.session.get(JobRecord, job_id) is None:
            get_logger().record_not_found("jobs")
            raise NotFoundError(f"No job: {job_id}")
        if self.session.get(ApplicationRecord, (username, job_id)) is not None:
            raise ValidationError(f"{username} already applied to job {job_id}")

        self._add(ApplicationRecord(username=username, job_id=job_id))
        get_logger().info("Recorded application", username=username, job_id=job_id)
        return job_id

    def _select_one(self, username: str) -> Dict[str, Any]:
        rows = self._fetch_all(_join_sql(_USER_SELECT, "WHERE username = $1"), [username])
        if not rows:
            raise self._not_found(f"No user: {username}")
        row = rows[0]
        row["isAdmin"] = bool(row["isAdmin"])
        return row
