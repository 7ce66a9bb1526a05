"""
Environment loading and runtime settings.

Settings come from process environment variables, optionally seeded
from a ``.env`` file in the working directory.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def load_env(env_path: Optional[Path] = None) -> bool:
    """Load .env from project root if present.

    Existing environment variables win over values in the file.
    Returns True when a file was loaded.
    """
    env_path = env_path or Path.cwd() / ".env"
    if not env_path.exists():
        return False
    return load_dotenv(dotenv_path=env_path, override=False)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass
class Settings:
    """Runtime configuration for the CLI and maintenance scripts."""

    db_path: Path = Path("data/jobs.db")
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    featured_limit: int = 6
    duplicate_scan_limit: int = 1000
    max_job_age_days: int = 90
    refresh_rate_limit_seconds: int = 300
    discord_webhook_url: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            db_path=Path(os.getenv("JOBBOARD_DB_PATH", "data/jobs.db")),
            log_level=os.getenv("JOBBOARD_LOG_LEVEL", "INFO"),
            log_dir=Path(os.getenv("JOBBOARD_LOG_DIR", "logs")),
            featured_limit=_int_env("FEATURED_LIMIT", 6),
            duplicate_scan_limit=_int_env("DUPLICATE_SCAN_LIMIT", 1000),
            max_job_age_days=_int_env("MAX_JOB_AGE_DAYS", 90),
            refresh_rate_limit_seconds=_int_env("REFRESH_RATE_LIMIT_SECONDS", 300),
            discord_webhook_url=os.getenv("DISCORD_WEBHOOK_URL") or None,
        )
