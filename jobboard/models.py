"""
In-memory job snapshot shared by the detection and scoring engines.

The engines never see ORM rows; the store converts rows to JobRecord
on read so duplicate detection and scoring stay pure functions.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional

from .logger import get_logger

logger = get_logger()


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp or datetime into aware UTC. Bad input gives None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    try:
        return as_utc(parsed)
    except OverflowError:
        # offsets that push the instant outside datetime's range
        return None


def parse_json_list(raw: Any, field_name: str = "tags") -> List[str]:
    """
    Decode a JSON-encoded string array as stored in the jobs table.

    Lists pass through. None, empty text and non-list JSON decode to [].
    """
    if raw is None:
        return []
    if isinstance(raw, (list, tuple, set)):
        return [str(item) for item in raw]
    if not isinstance(raw, str) or not raw.strip():
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Malformed JSON list field", field=field_name, raw=raw[:80])
        return []
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


def parse_tags(raw: Any) -> List[str]:
    return parse_json_list(raw, "tags")


@dataclass
class JobRecord:
    id: str
    title: str
    company: str
    tags: List[str] = field(default_factory=list)
    is_active: bool = True
    badges: List[str] = field(default_factory=list)
    backers: List[str] = field(default_factory=list)
    posted_date: Optional[datetime] = None
    crawled_at: Optional[datetime] = None
    featured_pinned: bool = False
    featured_score: float = 0
    is_featured: bool = False
    url: str = ""
    source: str = ""
    location: str = ""
    type: str = ""
    description: str = ""
    salary: Optional[str] = None
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    deadline: Optional[datetime] = None

    @property
    def is_vc_backed(self) -> bool:
        return bool(self.backers)

    @classmethod
    def from_row(cls, row) -> "JobRecord":
        return cls(
            id=row.id,
            title=row.title or "",
            company=row.company or "",
            tags=parse_tags(row.tags),
            is_active=bool(row.is_active),
            badges=parse_json_list(row.badges, "badges"),
            backers=parse_json_list(row.backers, "backers"),
            posted_date=as_utc(row.posted_date),
            crawled_at=as_utc(row.crawled_at),
            featured_pinned=bool(row.featured_pinned),
            featured_score=row.featured_score or 0,
            is_featured=bool(row.is_featured),
            url=row.url or "",
            source=row.source or "",
            location=row.location or "",
            type=row.type or "",
            description=row.description or "",
            salary=row.salary,
            salary_min=row.salary_min,
            salary_max=row.salary_max,
            deadline=as_utc(row.deadline),
        )

    @classmethod
    def from_dict(cls, data: dict) -> "JobRecord":
        """Build a record from an import payload (camelCase keys accepted)."""
        def pick(*keys, default=None):
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            company=str(data.get("company") or ""),
            tags=parse_tags(data.get("tags")),
            is_active=bool(pick("is_active", "isActive", default=True)),
            badges=parse_json_list(data.get("badges"), "badges"),
            backers=parse_json_list(data.get("backers"), "backers"),
            posted_date=parse_datetime(pick("posted_date", "postedDate")),
            crawled_at=parse_datetime(pick("crawled_at", "crawledAt")),
            featured_pinned=bool(pick("featured_pinned", default=False)),
            url=str(data.get("url") or ""),
            source=str(data.get("source") or ""),
            location=str(data.get("location") or ""),
            type=str(data.get("type") or ""),
            description=str(data.get("description") or ""),
            salary=data.get("salary"),
            salary_min=pick("salary_min", "salaryMin"),
            salary_max=pick("salary_max", "salaryMax"),
            deadline=parse_datetime(data.get("deadline")),
        )

    def to_dict(self) -> dict:
        def iso(value: Optional[datetime]) -> Optional[str]:
            return value.isoformat() if value else None

        return {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "tags": list(self.tags),
            "isActive": self.is_active,
            "badges": list(self.badges),
            "backers": list(self.backers),
            "postedDate": iso(self.posted_date),
            "crawledAt": iso(self.crawled_at),
            "featured_pinned": self.featured_pinned,
            "featured_score": self.featured_score,
            "is_featured": self.is_featured,
            "url": self.url,
            "source": self.source,
            "location": self.location,
        }
