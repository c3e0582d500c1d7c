"""
Database schema and connection management.

Uses SQLite with SQLAlchemy. Tables are declared with the ORM; filtered
reads and partial updates run the SQL fragments from ``jobly.sql``
through ``execute_fragment``.
"""

import re
from pathlib import Path
from typing import Any, Dict, Sequence, Tuple

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    create_engine,
    event,
    text,
)
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()

_PLACEHOLDER_RE = re.compile(r"\$(\d+)")


class CompanyRecord(Base):
    """Company row."""

    __tablename__ = "companies"

    handle = Column(String(25), primary_key=True)
    name = Column(Text, unique=True, nullable=False)
    num_employees = Column(Integer, CheckConstraint("num_employees >= 0"))
    description = Column(Text, nullable=False)
    logo_url = Column(Text)


class JobRecord(Base):
    """Job posting row."""

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    salary = Column(Integer, CheckConstraint("salary >= 0"))
    equity = Column(Numeric(asdecimal=False), CheckConstraint("equity <= 1.0"))
    company_handle = Column(
        String(25),
        ForeignKey("companies.handle", ondelete="CASCADE"),
        nullable=False,
    )


class UserRecord(Base):
    """User row."""

    __tablename__ = "users"

    username = Column(String(25), primary_key=True)
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False)


class ApplicationRecord(Base):
    """A user's application to a job."""

    __tablename__ = "applications"

    username = Column(
        String(25),
        ForeignKey("users.username", ondelete="CASCADE"),
        primary_key=True,
    )
    job_id = Column(
        Integer,
        ForeignKey("jobs.id", ondelete="CASCADE"),
        primary_key=True,
    )


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine(db_path: Path):
    """
    Create an engine for the SQLite file at db_path.

    Foreign keys are switched on for every connection so ON DELETE CASCADE
    applies.
    """
    engine = create_engine(f"sqlite:///{db_path}")
    event.listen(engine, "connect", _enable_foreign_keys)
    return engine


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = get_engine(db_path)
    Base.metadata.create_all(engine)
    engine.dispose()


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    engine = get_engine(db_path)
    Session = sessionmaker(bind=engine)
    return Session()


def bind_positional(sql: str, values: Sequence[Any]) -> Tuple[str, Dict[str, Any]]:
    """
    Rewrite $n placeholders as named binds :pn.

    Returns:
        Tuple of (sql with named binds, {"p1": values[0], ...})
    """
    named_sql = _PLACEHOLDER_RE.sub(lambda m: f":p{m.group(1)}", sql)
    params = {f"p{i}": value for i, value in enumerate(values, start=1)}
    return named_sql, params


def execute_fragment(session, sql: str, values: Sequence[Any] = ()):
    """Execute SQL containing $n placeholders with its positional values."""
    named_sql, params = bind_positional(sql, values)
    return session.execute(text(named_sql), params)
