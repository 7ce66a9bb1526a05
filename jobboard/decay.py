"""
Visual decay for aging job cards.

Decay curve by whole days since posting:
- 0-7 days: level 0 (fully vivid)
- 7-30 days: level 0 -> 0.5
- 30-90 days: level 0.5 -> 1.0
- over 90 days: level 1.0

opacity = 1 - level * 0.6 (1.0 -> 0.4)
grayscale = level * 0.6 (0 -> 0.6)

Jobs without a posting date never decay.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from .models import as_utc, parse_datetime

FRESH_DAYS = 7
AGING_DAYS = 30
EXPIRED_DAYS = 90
MAX_FADE = 0.6


@dataclass(frozen=True)
class DecayStyles:
    opacity: float
    grayscale: float
    decay_level: float
    days_old: int = 0

    @property
    def is_fading(self) -> bool:
        return self.decay_level > 0

    def to_dict(self) -> dict:
        return {
            "opacity": round(self.opacity, 4),
            "grayscale": round(self.grayscale, 4),
            "decayLevel": round(self.decay_level, 4),
            "daysOld": self.days_old,
        }


NO_DECAY = DecayStyles(opacity=1.0, grayscale=0.0, decay_level=0.0, days_old=0)


def decay_level(days_old: float) -> float:
    if math.isnan(days_old) or days_old <= FRESH_DAYS:
        return 0.0
    if days_old <= AGING_DAYS:
        return (days_old - FRESH_DAYS) / (AGING_DAYS - FRESH_DAYS) * 0.5
    if days_old <= EXPIRED_DAYS:
        return 0.5 + (days_old - AGING_DAYS) / (EXPIRED_DAYS - AGING_DAYS) * 0.5
    return 1.0


def styles_for_days(days_old: int) -> DecayStyles:
    level = decay_level(days_old)
    return DecayStyles(
        opacity=1 - level * MAX_FADE,
        grayscale=level * MAX_FADE,
        decay_level=level,
        days_old=days_old,
    )


def decay_styles(
    posted_date: Union[datetime, str, None],
    now: Optional[datetime] = None,
) -> DecayStyles:
    """
    Decay styles for a job card. Never raises.

    Args:
        posted_date: Posting time; naive datetimes are read as UTC and
            ISO strings are parsed. Missing or unparseable means no decay.
        now: Reference time (default: current UTC time)
    """
    posted = parse_datetime(posted_date)
    if posted is None:
        return NO_DECAY

    now = as_utc(now) or datetime.now(timezone.utc)
    days_old = max(0, math.floor((now - posted).total_seconds() / 86400))
    return styles_for_days(days_old)
