"""
Duplicate job detection.

Active jobs are bucketed by normalized company name, then clustered
inside each bucket by title similarity (Jaccard over word sets).

Clustering is greedy and seeded: each unvisited job in a bucket seeds
a group and pulls in every later unvisited job whose title is similar
enough to the seed's title. A job similar only to a non-seed member is
not pulled in. This matches what the admin merge screen expects, so
groups stay stable between runs on the same data.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from .errors import StoreError
from .logger import get_logger
from .models import JobRecord
from .normalize import normalize_company, normalize_text

logger = get_logger()

SIMILARITY_THRESHOLD = 0.6
DEFAULT_SCAN_LIMIT = 1000


@dataclass
class DuplicateGroup:
    key: str
    jobs: List[JobRecord] = field(default_factory=list)
    similarity: int = 0

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "jobs": [job.to_dict() for job in self.jobs],
            "similarity": self.similarity,
        }


def similarity(a: str, b: str) -> float:
    """
    Title similarity in [0, 1].

    Identical normalized strings score 1.0; otherwise the Jaccard index
    of their space-separated word sets.
    """
    na = normalize_text(a)
    nb = normalize_text(b)
    if na == nb:
        return 1.0

    words_a = set(na.split(" "))
    words_b = set(nb.split(" "))
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def _percent(value: float) -> int:
    # half-up, so 0.625 -> 63 rather than banker's rounding
    return int(math.floor(value * 100 + 0.5))


def group_by_company(jobs: Sequence[JobRecord]) -> Dict[str, List[JobRecord]]:
    """Buckets keyed by normalized company, in first-seen order."""
    buckets: Dict[str, List[JobRecord]] = {}
    for job in jobs:
        buckets.setdefault(normalize_company(job.company), []).append(job)
    return buckets


def _cluster_bucket(
    company_key: str,
    bucket: List[JobRecord],
    threshold: float,
) -> List[DuplicateGroup]:
    groups: List[DuplicateGroup] = []
    visited = set()

    for i in range(len(bucket)):
        if i in visited:
            continue

        members = [bucket[i]]
        max_sim = 0.0

        for j in range(i + 1, len(bucket)):
            if j in visited:
                continue
            sim = similarity(bucket[i].title, bucket[j].title)
            if sim >= threshold:
                members.append(bucket[j])
                visited.add(j)
                max_sim = max(max_sim, sim)

        if len(members) > 1:
            visited.add(i)
            groups.append(DuplicateGroup(
                key=f"{company_key}-{i}",
                jobs=members,
                similarity=_percent(max_sim),
            ))

    return groups


def find_duplicate_groups(
    jobs: Sequence[JobRecord],
    threshold: float = SIMILARITY_THRESHOLD,
) -> List[DuplicateGroup]:
    """
    Group likely duplicate postings.

    Args:
        jobs: Active job records, in the order they should be scanned
        threshold: Minimum title similarity to join a seed's group

    Returns:
        Groups of two or more jobs, highest similarity first. Ties keep
        bucket order.
    """
    groups: List[DuplicateGroup] = []
    for company_key, bucket in group_by_company(jobs).items():
        if len(bucket) < 2:
            continue
        groups.extend(_cluster_bucket(company_key, bucket, threshold))

    # list.sort is stable
    groups.sort(key=lambda g: g.similarity, reverse=True)
    return groups


SOURCE_PRIORITY = {
    "priority:greenhouse": 100,
    "priority:lever": 100,
    "priority:ashby": 100,
    "greenhouse": 90,
    "lever": 90,
    "ashby": 90,
    "web3kr.jobs": 80,
    "web3.career": 70,
    "cryptojobslist.com": 60,
    "jobs.sui.io": 50,
    "jobs.solana.com": 50,
    "jobs.arbitrum.io": 50,
    "jobs.avax.network": 50,
    "remoteok.com": 40,
    "remote3.co": 40,
    "rocketpunch.com": 30,
}


def source_priority(source: str) -> int:
    """Exact source match first, then the first key contained in the source."""
    if source in SOURCE_PRIORITY:
        return SOURCE_PRIORITY[source]
    lower = (source or "").lower()
    for key, priority in SOURCE_PRIORITY.items():
        if key in lower:
            return priority
    return 0


def plan_exact_dedup(jobs: Sequence[JobRecord]) -> List[Tuple[JobRecord, List[JobRecord]]]:
    """
    Exact duplicates (same normalized company and title) with a survivor each.

    The survivor is the job from the highest priority source; ties go to
    the longer description. Largest sets come first.
    """
    sets: Dict[str, List[JobRecord]] = {}
    for job in jobs:
        key = f"{normalize_company(job.company)}|{normalize_text(job.title)}"
        sets.setdefault(key, []).append(job)

    plans = []
    for members in sorted(
        (m for m in sets.values() if len(m) > 1), key=len, reverse=True
    ):
        ranked = sorted(
            members,
            key=lambda j: (source_priority(j.source), len(j.description or "")),
            reverse=True,
        )
        plans.append((ranked[0], ranked[1:]))
    return plans


def detect_duplicates(store, limit: int = DEFAULT_SCAN_LIMIT) -> List[DuplicateGroup]:
    """
    Read active jobs from the store and return duplicate groups.

    Detection writes nothing, so a failed read is logged and yields
    an empty result instead of raising.
    """
    try:
        jobs = store.fetch_active_jobs(limit=limit, order_by_company=True)
    except StoreError as e:
        logger.error("Duplicate scan could not read jobs", error=str(e))
        logger.record_error(type(e).__name__)
        return []

    groups = find_duplicate_groups(jobs)
    logger.record_duplicate_scan(len(groups))
    logger.info(
        f"Duplicate scan complete: {len(groups)} groups",
        scanned=len(jobs),
        groups=len(groups),
    )
    return groups


@dataclass
class ExactDedupResult:
    scanned: int = 0
    groups: int = 0
    deactivated_ids: List[str] = field(default_factory=list)
    dry_run: bool = False

    def to_dict(self) -> dict:
        return {
            "scanned": self.scanned,
            "groups": self.groups,
            "deactivated": len(self.deactivated_ids),
            "dryRun": self.dry_run,
        }


def dedupe_exact(store, dry_run: bool = False) -> ExactDedupResult:
    """
    Deactivate exact duplicates, keeping one survivor per set.

    Unlike merge, losers are only deactivated and their tags are not
    folded into the survivor. With ``dry_run`` nothing is written.
    """
    with store.transaction():
        jobs = store.fetch_active_jobs(order_by_company=True)
        plans = plan_exact_dedup(jobs)
        loser_ids = [loser.id for _, losers in plans for loser in losers]
        if loser_ids and not dry_run:
            store.deactivate(loser_ids)

    result = ExactDedupResult(
        scanned=len(jobs),
        groups=len(plans),
        deactivated_ids=loser_ids,
        dry_run=dry_run,
    )
    if not dry_run:
        logger.record_exact_dedup(len(loser_ids))
    logger.info(
        "Exact dedup complete",
        scanned=result.scanned,
        groups=result.groups,
        deactivated=len(loser_ids),
        dry_run=dry_run,
    )
    return result
