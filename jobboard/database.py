"""
Database schema and connection management.

Uses SQLite with SQLAlchemy. List-valued job fields (tags, badges,
backers) are stored as JSON-encoded text, and timestamps as naive UTC.
"""

from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path

from sqlalchemy import Boolean, Column, DateTime, Float, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def utcnow() -> datetime:
    """Current time as naive UTC, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Job(Base):
    """Job posting model."""

    __tablename__ = "jobs"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    company = Column(String, nullable=False)
    url = Column(String, nullable=False, default="")
    source = Column(String, nullable=False, default="")  # crawler source, e.g. web3.career
    location = Column(String, nullable=False, default="")
    type = Column(String, nullable=False, default="")  # Full-time, Contract, ...
    description = Column(Text, nullable=False, default="")
    salary = Column(String, nullable=True)
    salary_min = Column(Float, nullable=True)
    salary_max = Column(Float, nullable=True)
    tags = Column(Text, nullable=False, default="[]")
    badges = Column(Text, nullable=False, default="[]")
    backers = Column(Text, nullable=False, default="[]")
    posted_date = Column(DateTime, nullable=True)
    crawled_at = Column(DateTime, nullable=False, default=utcnow)
    deadline = Column(DateTime, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    featured_pinned = Column(Boolean, nullable=False, default=False)
    featured_score = Column(Float, nullable=False, default=0)
    is_featured = Column(Boolean, nullable=False, default=False)
    featured_at = Column(DateTime, nullable=True)


class DeletedJob(Base):
    """Ids removed by a merge. A deleted id is never stored again."""

    __tablename__ = "deleted_jobs"

    id = Column(String, primary_key=True)
    deleted_at = Column(DateTime, nullable=False, default=utcnow)


class RateLimit(Base):
    """Last run time per rate-limited admin action."""

    __tablename__ = "rate_limits"

    action = Column(String, primary_key=True)
    last_run_at = Column(DateTime, nullable=False)


@lru_cache(maxsize=None)
def get_engine(db_path: Path):
    """One engine per database file."""
    return create_engine(f"sqlite:///{db_path}")


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(get_engine(db_path))


def get_session_factory(db_path: Path) -> sessionmaker:
    return sessionmaker(bind=get_engine(Path(db_path)))


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    return get_session_factory(db_path)()
