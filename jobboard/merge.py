"""
Merge a reviewed duplicate group into one surviving job.

The survivor's tags become the union of its own tags and the tags of
every deleted duplicate. No other survivor field changes. The tag
update and the deletes run in a single store transaction, so a failed
delete also rolls back the tag update.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from .errors import NotFoundError, StoreError, ValidationError
from .logger import get_logger
from .schema import validate_merge_request

logger = get_logger()


@dataclass
class MergeResult:
    kept_id: str
    deleted_count: int
    deleted_ids: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "kept": self.kept_id,
            "deleted": self.deleted_count,
            "tags": list(self.tags),
        }


def merge_tags(*tag_lists: Iterable[str]) -> List[str]:
    """Order-preserving union; a tag already present is not added again."""
    merged: List[str] = []
    seen = set()
    for tags in tag_lists:
        for tag in tags:
            if tag not in seen:
                seen.add(tag)
                merged.append(tag)
    return merged


def merge_jobs(store, keep_id: str, delete_ids: Sequence[str]) -> MergeResult:
    """
    Keep one job, fold the duplicates' tags into it and delete them.

    Args:
        store: JobStore
        keep_id: Id of the surviving job
        delete_ids: Ids of the duplicates to remove

    Returns:
        MergeResult with the kept id and the number of deleted rows

    Raises:
        ValidationError: keep_id/delete_ids missing or malformed
        NotFoundError: keep_id does not exist (nothing is written)
        StoreError: the store failed; the whole merge was rolled back
    """
    errors = validate_merge_request(keep_id, delete_ids)
    if errors:
        raise ValidationError(errors)

    delete_ids = list(dict.fromkeys(delete_ids))

    try:
        with store.transaction():
            keep_job = store.get_job(keep_id)
            if keep_job is None:
                raise NotFoundError(f"Keep job not found: {keep_id}", record_id=keep_id)

            # request order, not row order, decides the merged tag order
            position = {job_id: i for i, job_id in enumerate(delete_ids)}
            dupes = sorted(store.get_jobs(delete_ids), key=lambda dupe: position[dupe.id])
            merged = merge_tags(keep_job.tags, *(dupe.tags for dupe in dupes))

            store.update_tags(keep_id, merged)
            deleted = store.delete_records(delete_ids)
    except StoreError as e:
        logger.error("Merge failed, rolled back", keep_id=keep_id, delete_ids=delete_ids, error=str(e))
        logger.record_error(type(e).__name__)
        raise

    found = {dupe.id for dupe in dupes}
    result = MergeResult(
        kept_id=keep_id,
        deleted_count=deleted,
        deleted_ids=[i for i in delete_ids if i in found],
        tags=merged,
    )
    logger.record_merge(deleted)
    logger.info(
        "Merged duplicate jobs",
        kept=keep_id,
        deleted=deleted,
        missing=[i for i in delete_ids if i not in found],
        tags=len(merged),
    )
    return result
