"""
Load crawled job records from a JSON export into the store.

Accepts a list of job objects or ``{"jobs": [...]}``. Invalid entries
and ids already in the store are skipped, never overwritten. Ids
deleted by a merge are skipped too.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List

from .logger import get_logger
from .models import JobRecord
from .schema import validate_job_payload

logger = get_logger()


@dataclass
class ImportResult:
    imported: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)


def load_job_payloads(path: Path) -> List[Any]:
    with Path(path).open("r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("jobs", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of jobs in {path}")
    return data


def import_jobs(store, payloads: List[Any]) -> ImportResult:
    result = ImportResult()
    records: List[JobRecord] = []
    seen = set()

    for index, payload in enumerate(payloads):
        errors = validate_job_payload(payload)
        if errors:
            result.skipped += 1
            result.errors.append(f"entry {index}: {'; '.join(errors)}")
            continue
        record = JobRecord.from_dict(payload)
        if record.id in seen:
            result.skipped += 1
            continue
        seen.add(record.id)
        records.append(record)

    with store.transaction():
        existing = {job.id for job in store.get_jobs(list(seen))}
        # ids merged away earlier stay gone
        existing |= store.deleted_ids(seen)
        fresh = [r for r in records if r.id not in existing]
        result.skipped += len(records) - len(fresh)
        result.imported = store.add_jobs(fresh)

    logger.info("Imported jobs", imported=result.imported, skipped=result.skipped)
    for message in result.errors:
        logger.warning("Skipped invalid job entry", detail=message)
    return result
