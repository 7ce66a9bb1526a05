"""
Error taxonomy for job board operations.

Validation and not-found errors are raised before any write happens.
StoreError wraps every record-store failure and is never retried here;
callers decide on retry or backoff.
"""

import math
from typing import List, Optional


class JobBoardError(Exception):
    """Base class for all job board errors."""
    pass


class ValidationError(JobBoardError):
    """Malformed input to a public operation."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid input")


class NotFoundError(JobBoardError):
    """A referenced record does not exist in the store."""

    def __init__(self, message: str, record_id: Optional[str] = None):
        self.record_id = record_id
        super().__init__(message)


class StoreError(JobBoardError):
    """Generic record-store failure on read or write."""
    pass


class RateLimitedError(JobBoardError):
    """An action was triggered again inside its rate-limit window."""

    def __init__(self, action: str, retry_after: float):
        self.action = action
        self.retry_after = retry_after
        super().__init__(
            f"Rate limited. Please wait {math.ceil(retry_after)} seconds "
            f"before running '{action}' again."
        )
