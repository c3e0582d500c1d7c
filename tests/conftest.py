"""
Pytest configuration and shared fixtures.
"""

import pytest
import json
from pathlib import Path
from typing import Dict, Any

from jobly.database import (
    ApplicationRecord,
    CompanyRecord,
    JobRecord,
    UserRecord,
    get_session,
    init_database,
)
from jobly.logger import get_logger, reset_logger


@pytest.fixture(autouse=True)
def quiet_logger(tmp_path):
    """Route the global logger to a temp dir with no console output."""
    reset_logger()
    get_logger(log_dir=tmp_path / "logs", enable_console=False)
    yield
    reset_logger()


@pytest.fixture
def db_path(tmp_path) -> Path:
    """Create an empty database with all tables."""
    path = tmp_path / "jobly.db"
    init_database(path)
    return path


@pytest.fixture
def seeded_db(db_path) -> Path:
    """
    Database with companies c1-c3, jobs j1 (c1) and j2 (c2),
    users u1 (admin) and u2, and one application each.
    """
    session = get_session(db_path)
    session.add_all([
        CompanyRecord(handle="c1", name="C1", num_employees=1, description="Desc1", logo_url="http://c1.img"),
        CompanyRecord(handle="c2", name="C2", num_employees=2, description="Desc2", logo_url="http://c2.img"),
        CompanyRecord(handle="c3", name="C3", num_employees=3, description="Desc3", logo_url="http://c3.img"),
        UserRecord(username="u1", first_name="U1F", last_name="U1L", email="u1@email.com", is_admin=True),
        UserRecord(username="u2", first_name="U2F", last_name="U2L", email="u2@email.com", is_admin=False),
    ])
    session.commit()

    j1 = JobRecord(title="j1", salary=60000, equity=0.05, company_handle="c1")
    j2 = JobRecord(title="j2", salary=80000, equity=0.07, company_handle="c2")
    session.add_all([j1, j2])
    session.commit()

    session.add_all([
        ApplicationRecord(username="u1", job_id=j1.id),
        ApplicationRecord(username="u2", job_id=j2.id),
    ])
    session.commit()
    session.close()
    return db_path


@pytest.fixture
def session(seeded_db):
    """Session on the seeded database."""
    session = get_session(seeded_db)
    yield session
    session.close()


@pytest.fixture
def job_ids(session) -> Dict[str, int]:
    """Map of job title -> id for the seeded jobs."""
    return {job.title: job.id for job in session.query(JobRecord).all()}


@pytest.fixture
def new_company() -> Dict[str, Any]:
    """Valid company payload."""
    return {
        "handle": "new",
        "name": "New",
        "numEmployees": 10,
        "description": "New Description",
        "logoUrl": "http://new.img",
    }


@pytest.fixture
def write_json(tmp_path):
    """Write a payload to a JSON file and return its path."""
    def _write(payload: Dict[str, Any], name: str = "input.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(payload))
        return path
    return _write
