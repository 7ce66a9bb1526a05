"""
Cleanup module for expiring old job postings.

A job expires when its application deadline has passed or when it was
posted more than ``max_age_days`` ago (default: 90). Expired jobs are
deactivated, not deleted, so their ids stay reserved.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from .logger import get_logger
from .models import as_utc

logger = get_logger()

MAX_JOB_AGE_DAYS = 90


@dataclass
class CleanupResult:
    deadline_expired: int = 0
    age_expired: int = 0
    active_jobs: int = 0
    inactive_jobs: int = 0

    @property
    def total_expired(self) -> int:
        return self.deadline_expired + self.age_expired

    def to_dict(self) -> dict:
        return {
            "deadlineExpired": self.deadline_expired,
            "ageExpired": self.age_expired,
            "totalExpired": self.total_expired,
            "activeJobs": self.active_jobs,
            "inactiveJobs": self.inactive_jobs,
        }


def cleanup_expired_jobs(
    store,
    max_age_days: int = MAX_JOB_AGE_DAYS,
    now: Optional[datetime] = None,
) -> CleanupResult:
    """
    Deactivate active jobs past their deadline or older than max_age_days.

    Args:
        store: JobStore
        max_age_days: Oldest posting age kept active
        now: Reference time (default: current UTC time)

    Returns:
        CleanupResult with per-reason counts and remaining totals
    """
    now = as_utc(now) or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=max_age_days)
    logger.debug("Starting expired job cleanup", cutoff=cutoff.isoformat(), max_age_days=max_age_days)

    with store.transaction():
        jobs = store.fetch_active_jobs()
        deadline_ids = [job.id for job in jobs if job.deadline is not None and job.deadline < now]
        deadline_set = set(deadline_ids)
        age_ids = [
            job.id for job in jobs
            if job.id not in deadline_set
            and job.posted_date is not None
            and job.posted_date < cutoff
        ]

        if deadline_ids:
            store.deactivate(deadline_ids)
        if age_ids:
            store.deactivate(age_ids)

        result = CleanupResult(
            deadline_expired=len(deadline_ids),
            age_expired=len(age_ids),
            active_jobs=store.count_jobs(active=True),
            inactive_jobs=store.count_jobs(active=False),
        )

    logger.record_expired(result.total_expired)
    logger.info(
        f"Cleanup complete: {result.total_expired} expired, {result.active_jobs} active remaining",
        deadline_expired=result.deadline_expired,
        age_expired=result.age_expired,
        max_age_days=max_age_days,
    )
    return result
