import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_DB_PATH = "data/jobly.db"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_DIR = "logs"


def load_env(env_path: Optional[Path] = None) -> None:
    """Load .env from the project root if present. Existing variables win."""
    env_path = env_path or Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


@dataclass
class Settings:
    db_path: Path
    log_level: str
    log_dir: Path


def get_settings() -> Settings:
    """
    Read settings from the environment.

    JOBLY_DB_PATH: SQLite database file (default: data/jobly.db)
    JOBLY_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL (default: INFO)
    JOBLY_LOG_DIR: Directory for log files (default: logs)
    """
    return Settings(
        db_path=Path(os.getenv("JOBLY_DB_PATH", DEFAULT_DB_PATH)),
        log_level=os.getenv("JOBLY_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        log_dir=Path(os.getenv("JOBLY_LOG_DIR", DEFAULT_LOG_DIR)),
    )
