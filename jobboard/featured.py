"""
Featured job scoring and slate selection.

``compute_featured_score`` is a pure function of a job's stored fields
and the reference time. It never looks at a previous score, so running
a refresh twice on the same data gives the same result.

The homepage slate is every pinned job first, then the highest scored
unpinned jobs, cut to the slate size. A refresh clears ``is_featured``
on every active job that did not make the slate.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import ValidationError
from .logger import get_logger
from .models import JobRecord, as_utc
from .schema import validate_pin_request

logger = get_logger()

FEATURED_LIMIT = 6

TOP_VCS_TIER1 = (
    "a16z", "Paradigm", "Sequoia", "Polychain", "Hashed", "Binance", "Coinbase Ventures",
)
TOP_VCS_TIER2 = (
    "Dragonfly", "Pantera", "Multicoin", "Lightspeed", "Framework", "Tiger Global",
)
TOP_VCS_TIER3 = (
    "Haun", "Hack VC", "Electric Capital", "Animoca", "1kx", "Kakao",
)

VERIFIED_BADGES = {"verified", "vc verified", "trust verified"}

WEIGHTS = {
    "vc_tier1": 40,
    "vc_tier1_cap": 2,
    "vc_tier2": 25,
    "vc_tier2_cap": 2,
    "vc_tier3": 10,
    "vc_tier3_cap": 2,
    "other_backer": 5,
    "verified": 20,
    "recency_max_points": 50,
    "recency_days": 30,
    "salary_high": 30,  # >= 200k
    "salary_mid": 20,   # >= 100k
    "salary_low": 10,   # >= 50k
    "job_type_full_time": 15,
    "job_type_part_time": 8,
    "job_type_contract": 5,
}

_NUMBER = re.compile(r"[0-9]+(?:\.[0-9]+)?")


@dataclass
class RefreshResult:
    updated: int = 0
    pinned: int = 0
    top_scored: int = 0
    featured_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "updated": self.updated,
            "pinned": self.pinned,
            "topScored": self.top_scored,
            "featured": list(self.featured_ids),
        }


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _match_vc_tier(backers: Iterable[str], tier: Sequence[str]) -> Tuple[int, set]:
    """Count backers that mention any VC of the tier; also return which ones."""
    matched = set()
    for index, backer in enumerate(backers):
        lower = backer.lower()
        if any(vc.lower() in lower for vc in tier):
            matched.add(index)
    return len(matched), matched


def parse_salary_number(salary: Optional[str]) -> float:
    """
    Largest number in a free-text salary, e.g. "$150,000 - $200,000" -> 200000.
    Values under 1000 are read as thousands ("150k" -> 150000).
    """
    if not salary:
        return 0
    numbers = [float(n) for n in _NUMBER.findall(salary.replace(",", ""))]
    if not numbers:
        return 0
    largest = max(numbers)
    return largest * 1000 if largest < 1000 else largest


def _days_old(job: JobRecord, now: datetime) -> Optional[float]:
    posted = as_utc(job.posted_date or job.crawled_at)
    if posted is None:
        return None
    return (now - posted).total_seconds() / 86400


def score_breakdown(job: JobRecord, now: Optional[datetime] = None) -> Dict[str, int]:
    """Points per signal. The featured score is the sum."""
    now = as_utc(now) or datetime.now(timezone.utc)
    parts: Dict[str, int] = {}

    backers = [b for b in job.backers if b and b.strip()]
    claimed = set()
    vc_points = 0
    for tier, weight, cap in (
        (TOP_VCS_TIER1, WEIGHTS["vc_tier1"], WEIGHTS["vc_tier1_cap"]),
        (TOP_VCS_TIER2, WEIGHTS["vc_tier2"], WEIGHTS["vc_tier2_cap"]),
        (TOP_VCS_TIER3, WEIGHTS["vc_tier3"], WEIGHTS["vc_tier3_cap"]),
    ):
        count, matched = _match_vc_tier(backers, tier)
        claimed |= matched
        vc_points += min(count, cap) * weight
    if len(claimed) < len(backers):
        vc_points += WEIGHTS["other_backer"]
    parts["backers"] = vc_points

    badges = {b.strip().lower() for b in job.badges}
    parts["verified"] = WEIGHTS["verified"] if badges & VERIFIED_BADGES else 0

    recency = 0
    days_old = _days_old(job, now)
    if days_old is not None:
        window = WEIGHTS["recency_days"]
        if days_old < 0:
            recency = WEIGHTS["recency_max_points"]
        elif days_old <= window:
            recency = _round_half_up(WEIGHTS["recency_max_points"] * (1 - days_old / window))
    parts["recency"] = recency

    if job.salary_max is not None:
        salary_value = job.salary_max
    elif job.salary_min is not None:
        salary_value = job.salary_min
    else:
        salary_value = parse_salary_number(job.salary)
    if salary_value >= 200000:
        parts["salary"] = WEIGHTS["salary_high"]
    elif salary_value >= 100000:
        parts["salary"] = WEIGHTS["salary_mid"]
    elif salary_value >= 50000:
        parts["salary"] = WEIGHTS["salary_low"]
    else:
        parts["salary"] = 0

    job_type = (job.type or "").lower()
    if "full" in job_type:
        parts["job_type"] = WEIGHTS["job_type_full_time"]
    elif "part" in job_type:
        parts["job_type"] = WEIGHTS["job_type_part_time"]
    elif "contract" in job_type:
        parts["job_type"] = WEIGHTS["job_type_contract"]
    else:
        parts["job_type"] = 0

    return parts


def compute_featured_score(job: JobRecord, now: Optional[datetime] = None) -> int:
    """
    Featured score from VC backing, verification, recency, salary and job type.

    Never decreases when a job is more recent, gains a backer or
    gains a verification badge. Max score is 270 points.
    """
    return sum(score_breakdown(job, now).values())


def display_order(jobs: Sequence[JobRecord]) -> List[JobRecord]:
    """Pinned jobs first, then by featured_score descending. Stable on ties."""
    return sorted(jobs, key=lambda j: (not j.featured_pinned, -j.featured_score))


def select_featured(
    scored: Sequence[Tuple[JobRecord, float]],
    limit: int = FEATURED_LIMIT,
) -> List[str]:
    """
    Ids for the featured slate: pinned jobs in input order, then
    unpinned jobs by score, truncated to ``limit``.
    """
    pinned = [job.id for job, _ in scored if job.featured_pinned]
    unpinned = sorted(
        ((job, score) for job, score in scored if not job.featured_pinned),
        key=lambda item: item[1],
        reverse=True,
    )
    return (pinned + [job.id for job, _ in unpinned])[:max(limit, 0)]


def refresh_featured(
    store,
    limit: int = FEATURED_LIMIT,
    now: Optional[datetime] = None,
) -> RefreshResult:
    """
    Rescore every active job and rewrite the featured flags.

    Scores, winners and cleared flags are written in one transaction.
    """
    now = as_utc(now) or datetime.now(timezone.utc)

    with store.transaction():
        jobs = store.fetch_active_jobs()
        if not jobs:
            logger.info("Featured refresh: no active jobs")
            return RefreshResult()

        scored = [(job, compute_featured_score(job, now)) for job in jobs]
        winners = select_featured(scored, limit)
        winner_set = set(winners)
        losers = [job.id for job in jobs if job.id not in winner_set]

        store.set_featured_scores({job.id: score for job, score in scored})
        if winners:
            store.set_featured_flag(winners, True, now=now)
        if losers:
            store.set_featured_flag(losers, False)

    pinned = sum(1 for job in jobs if job.featured_pinned)
    unpinned = len(jobs) - pinned
    result = RefreshResult(
        updated=len(scored),
        pinned=pinned,
        top_scored=max(0, min(unpinned, limit - pinned)),
        featured_ids=winners,
    )
    logger.record_refresh(result.updated)
    logger.info(
        "Featured refresh complete",
        scored=result.updated,
        pinned=result.pinned,
        top_scored=result.top_scored,
    )
    return result


def pin_jobs(store, ids: Sequence[str], pinned: bool) -> int:
    """
    Pin or unpin jobs for featured placement.

    Pinning an already pinned job changes nothing. Returns the number
    of ids in the request.

    Raises:
        ValidationError: ids empty or pinned not a bool
    """
    errors = validate_pin_request(ids, pinned)
    if errors:
        raise ValidationError(errors)

    ids = list(dict.fromkeys(ids))
    matched = store.set_pinned(ids, pinned)
    logger.record_pin_update()
    logger.info("Updated featured pins", pinned=pinned, requested=len(ids), matched=matched)
    return len(ids)


def get_featured_jobs(store, limit: int = FEATURED_LIMIT) -> List[JobRecord]:
    """The current homepage slate in display order."""
    featured = [job for job in store.fetch_active_jobs() if job.is_featured]
    return display_order(featured)[:limit]
