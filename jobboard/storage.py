"""
Record store for job postings.

JobStore is the only code that touches the jobs table. It hands out
JobRecord snapshots, exposes the narrow write operations the engines
need, and wraps every SQLAlchemy failure in StoreError.

Writes run in their own session unless they happen inside
``transaction()``, in which case they share one unit of work that
commits on success and rolls back on any exception.
"""

import json
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set

from sqlalchemy.exc import SQLAlchemyError

from .database import DeletedJob, Job, get_session_factory, init_database, utcnow
from .errors import StoreError
from .models import JobRecord

# SQLite caps bound parameters per statement
CHUNK_SIZE = 500


def _chunks(ids: Sequence[str], size: int = CHUNK_SIZE) -> Iterator[List[str]]:
    ids = list(ids)
    for i in range(0, len(ids), size):
        yield ids[i:i + size]


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _deleted_ids(session, ids: Sequence[str]) -> Set[str]:
    found: Set[str] = set()
    for chunk in _chunks(ids):
        rows = session.query(DeletedJob.id).filter(DeletedJob.id.in_(chunk))
        found.update(row.id for row in rows)
    return found


def _record_to_row(record: JobRecord) -> Job:
    return Job(
        id=record.id,
        title=record.title,
        company=record.company,
        url=record.url,
        source=record.source,
        location=record.location,
        type=record.type,
        description=record.description,
        salary=record.salary,
        salary_min=record.salary_min,
        salary_max=record.salary_max,
        tags=json.dumps(list(record.tags), ensure_ascii=False),
        badges=json.dumps(list(record.badges), ensure_ascii=False),
        backers=json.dumps(list(record.backers), ensure_ascii=False),
        posted_date=_naive_utc(record.posted_date),
        crawled_at=_naive_utc(record.crawled_at) or utcnow(),
        deadline=_naive_utc(record.deadline),
        is_active=record.is_active,
        featured_pinned=record.featured_pinned,
        featured_score=record.featured_score,
        is_featured=record.is_featured,
    )


class JobStore:
    """SQLite-backed store of job records."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        init_database(self.db_path)
        self._session_factory = get_session_factory(self.db_path)
        self._tx_session = None

    # Session handling

    @contextmanager
    def transaction(self) -> Iterator["JobStore"]:
        """
        Run several store operations as one unit of work.

        Nested calls join the outer transaction.
        """
        if self._tx_session is not None:
            yield self
            return

        session = self._session_factory()
        self._tx_session = session
        try:
            yield self
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreError(f"Transaction failed: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            self._tx_session = None
            session.close()

    @contextmanager
    def _session(self, operation: str):
        if self._tx_session is not None:
            try:
                yield self._tx_session
                self._tx_session.flush()
            except SQLAlchemyError as e:
                raise StoreError(f"{operation} failed: {e}") from e
            return

        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreError(f"{operation} failed: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # Reads

    def fetch_active_jobs(
        self,
        limit: Optional[int] = None,
        order_by_company: bool = False,
    ) -> List[JobRecord]:
        """All records with is_active = true, optionally capped."""
        with self._session("fetch_active_jobs") as session:
            query = session.query(Job).filter(Job.is_active.is_(True))
            if order_by_company:
                query = query.order_by(Job.company.asc(), Job.id.asc())
            else:
                query = query.order_by(Job.id.asc())
            if limit is not None:
                query = query.limit(limit)
            return [JobRecord.from_row(row) for row in query.all()]

    def get_job(self, job_id: str) -> Optional[JobRecord]:
        with self._session("get_job") as session:
            row = session.get(Job, job_id)
            return JobRecord.from_row(row) if row is not None else None

    def get_jobs(self, ids: Iterable[str]) -> List[JobRecord]:
        ids = list(ids)
        records: List[JobRecord] = []
        with self._session("get_jobs") as session:
            for chunk in _chunks(ids):
                rows = session.query(Job).filter(Job.id.in_(chunk)).all()
                records.extend(JobRecord.from_row(row) for row in rows)
        return records

    def count_jobs(self, active: Optional[bool] = None) -> int:
        with self._session("count_jobs") as session:
            query = session.query(Job)
            if active is not None:
                query = query.filter(Job.is_active.is_(active))
            return query.count()

    # Writes

    def add_jobs(self, records: Iterable[JobRecord]) -> int:
        """Insert new jobs. Ids removed by an earlier merge are skipped."""
        records = list(records)
        count = 0
        with self._session("add_jobs") as session:
            deleted = _deleted_ids(session, [r.id for r in records])
            for record in records:
                if record.id in deleted:
                    continue
                session.add(_record_to_row(record))
                count += 1
        return count

    def update_tags(self, job_id: str, tags: Iterable[str]) -> None:
        payload = json.dumps(list(tags), ensure_ascii=False)
        with self._session("update_tags") as session:
            updated = session.query(Job).filter(Job.id == job_id).update(
                {Job.tags: payload}, synchronize_session=False
            )
            if updated == 0:
                raise StoreError(f"update_tags failed: no job with id {job_id}")

    def delete_records(self, ids: Sequence[str]) -> int:
        """Delete jobs and tombstone their ids so they cannot return."""
        deleted = 0
        now = utcnow()
        with self._session("delete_records") as session:
            for chunk in _chunks(ids):
                existing = [
                    row.id for row in session.query(Job.id).filter(Job.id.in_(chunk))
                ]
                for job_id in existing:
                    session.merge(DeletedJob(id=job_id, deleted_at=now))
                deleted += session.query(Job).filter(Job.id.in_(chunk)).delete(
                    synchronize_session=False
                )
        return deleted

    def deleted_ids(self, ids: Iterable[str]) -> Set[str]:
        """The subset of ``ids`` removed by an earlier merge."""
        with self._session("deleted_ids") as session:
            return _deleted_ids(session, list(ids))

    def set_pinned(self, ids: Sequence[str], pinned: bool) -> int:
        updated = 0
        with self._session("set_pinned") as session:
            for chunk in _chunks(ids):
                updated += session.query(Job).filter(Job.id.in_(chunk)).update(
                    {Job.featured_pinned: pinned}, synchronize_session=False
                )
        return updated

    def set_featured_scores(self, score_by_id: Dict[str, float]) -> None:
        with self._session("set_featured_scores") as session:
            for job_id, score in score_by_id.items():
                session.query(Job).filter(Job.id == job_id).update(
                    {Job.featured_score: score}, synchronize_session=False
                )

    def set_featured_flag(
        self,
        ids: Sequence[str],
        featured: bool,
        now: Optional[datetime] = None,
    ) -> None:
        featured_at = (_naive_utc(now) or utcnow()) if featured else None
        with self._session("set_featured_flag") as session:
            for chunk in _chunks(ids):
                session.query(Job).filter(Job.id.in_(chunk)).update(
                    {Job.is_featured: featured, Job.featured_at: featured_at},
                    synchronize_session=False,
                )

    def deactivate(self, ids: Sequence[str]) -> int:
        updated = 0
        with self._session("deactivate") as session:
            for chunk in _chunks(ids):
                updated += session.query(Job).filter(Job.id.in_(chunk)).update(
                    {Job.is_active: False}, synchronize_session=False
                )
        return updated
