"""
Per-action rate limiting for admin triggers (crawl, featured refresh).

The last run time of each action lives in the ``rate_limits`` table,
so every process pointed at the same database shares one window.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .database import RateLimit, get_session_factory, init_database
from .errors import RateLimitedError, StoreError
from .models import as_utc

DEFAULT_WINDOW_SECONDS = 5 * 60


class ActionRateLimiter:
    """Allow each named action at most once per window."""

    def __init__(self, db_path: Path, window_seconds: int = DEFAULT_WINDOW_SECONDS):
        init_database(Path(db_path))
        self._session_factory = get_session_factory(Path(db_path))
        self.window = timedelta(seconds=window_seconds)

    def _last_run(self, session, action: str) -> Optional[datetime]:
        entry = session.get(RateLimit, action)
        return as_utc(entry.last_run_at) if entry is not None else None

    def check(self, action: str, now: Optional[datetime] = None) -> float:
        """Seconds until ``action`` may run again; 0 when it may run now."""
        now = as_utc(now) or datetime.now(timezone.utc)
        session = self._session_factory()
        try:
            last_run = self._last_run(session, action)
        except SQLAlchemyError as e:
            raise StoreError(f"Rate limit check failed: {e}") from e
        finally:
            session.close()

        if last_run is None:
            return 0.0
        remaining = (last_run + self.window - now).total_seconds()
        return max(0.0, remaining)

    def acquire(self, action: str, now: Optional[datetime] = None) -> None:
        """
        Record a run of ``action``.

        Raises:
            RateLimitedError: the previous run is still inside the window
        """
        now = as_utc(now) or datetime.now(timezone.utc)
        stamp = now.replace(tzinfo=None)
        session = self._session_factory()
        try:
            # conditional claim: only one caller can move last_run_at forward
            claimed = session.query(RateLimit).filter(
                RateLimit.action == action,
                RateLimit.last_run_at <= stamp - self.window,
            ).update({RateLimit.last_run_at: stamp}, synchronize_session=False)

            if not claimed:
                entry = session.get(RateLimit, action)
                if entry is not None:
                    remaining = (as_utc(entry.last_run_at) + self.window - now).total_seconds()
                    raise RateLimitedError(action, remaining)
                session.add(RateLimit(action=action, last_run_at=stamp))
            session.commit()
        except IntegrityError:
            # another process recorded the first run of this action
            session.rollback()
            raise RateLimitedError(action, self.window.total_seconds())
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreError(f"Rate limit update failed: {e}") from e
        finally:
            session.close()

