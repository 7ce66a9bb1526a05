"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from jobboard.logger import get_logger
from jobboard.models import JobRecord
from jobboard.storage import JobStore


NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def quiet_logger(tmp_path):
    """Keep test runs from writing log files into the working tree."""
    logger = get_logger()
    logger.configure(level="DEBUG", log_dir=tmp_path / "logs", enable_file=False, enable_console=False)
    yield logger


@pytest.fixture
def now() -> datetime:
    """Fixed reference time."""
    return NOW


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "jobs.db"


@pytest.fixture
def store(db_path) -> JobStore:
    """Empty store backed by a temporary SQLite file."""
    return JobStore(db_path)


@pytest.fixture
def make_job():
    """Factory for JobRecord with sensible defaults."""
    counter = [0]

    def _make(title="Software Engineer", company="Acme", **kwargs) -> JobRecord:
        counter[0] += 1
        kwargs.setdefault("id", f"job-{counter[0]}")
        kwargs.setdefault("posted_date", NOW - timedelta(days=1))
        kwargs.setdefault("crawled_at", NOW - timedelta(days=1))
        return JobRecord(title=title, company=company, **kwargs)

    return _make


@pytest.fixture
def populated_store(store, make_job) -> JobStore:
    """Store with two near-duplicate Acme postings and one unrelated job."""
    store.add_jobs([
        make_job("Senior Solidity Engineer", "Acme", id="a1", tags=["solidity", "defi"], source="web3.career"),
        make_job("Senior Solidity Engineer (Remote)", "ACME", id="a2", tags=["remote", "solidity"], source="greenhouse"),
        make_job("Product Designer", "Beta Labs", id="b1", tags=["design"]),
    ])
    return store
