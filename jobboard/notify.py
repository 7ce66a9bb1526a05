"""Discord webhook summaries for moderation runs."""

from datetime import datetime, timezone
from typing import Optional

import requests

from .logger import get_logger
from .retry import RetryError, exponential_backoff, should_retry_http_status

logger = get_logger()

COLOR_OK = 0x22C55E
COLOR_WARN = 0xFFA500


class RetryableStatus(Exception):
    """Webhook answered with a status worth retrying."""
    pass


@exponential_backoff(
    max_retries=2,
    base_delay=1.0,
    exceptions=(requests.exceptions.Timeout, requests.exceptions.ConnectionError, RetryableStatus),
)
def _post_with_retry(url: str, payload: dict) -> requests.Response:
    resp = requests.post(url, json=payload, timeout=10)
    if should_retry_http_status(resp.status_code):
        raise RetryableStatus(f"Webhook returned {resp.status_code}")
    return resp


def send_discord_embed(webhook_url: Optional[str], embed: dict) -> bool:
    """
    Post one embed to a Discord webhook.

    Returns False instead of raising when the webhook is not configured
    or delivery fails; notifications never abort the caller's work.
    """
    if not webhook_url:
        logger.warning("Discord webhook URL not configured")
        return False

    embed.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    try:
        resp = _post_with_retry(webhook_url, {"embeds": [embed]})
        resp.raise_for_status()
    except (RetryError, requests.exceptions.RequestException) as e:
        logger.error("Discord notification failed", error=str(e))
        logger.record_error(type(e).__name__)
        return False
    return True


def refresh_embed(result) -> dict:
    return {
        "title": "Featured jobs refreshed",
        "description": f"{len(result.featured_ids)} jobs on the featured slate.",
        "color": COLOR_OK,
        "fields": [
            {"name": "Jobs scored", "value": str(result.updated), "inline": True},
            {"name": "Pinned", "value": str(result.pinned), "inline": True},
            {"name": "Top scored", "value": str(result.top_scored), "inline": True},
        ],
    }


def merge_embed(result) -> dict:
    return {
        "title": "Duplicate jobs merged",
        "description": f"Kept `{result.kept_id}`, removed {result.deleted_count} duplicates.",
        "color": COLOR_OK,
        "fields": [
            {"name": "Tags", "value": ", ".join(result.tags) or "-", "inline": False},
        ],
    }


def cleanup_embed(result) -> dict:
    return {
        "title": "Expired jobs cleaned up",
        "description": f"{result.total_expired} jobs deactivated.",
        "color": COLOR_WARN if result.total_expired else COLOR_OK,
        "fields": [
            {"name": "Deadline passed", "value": str(result.deadline_expired), "inline": True},
            {"name": "Too old", "value": str(result.age_expired), "inline": True},
            {"name": "Active remaining", "value": str(result.active_jobs), "inline": True},
        ],
    }


def notify_refresh(webhook_url: Optional[str], result) -> bool:
    return send_discord_embed(webhook_url, refresh_embed(result))


def notify_merge(webhook_url: Optional[str], result) -> bool:
    return send_discord_embed(webhook_url, merge_embed(result))


def notify_cleanup(webhook_url: Optional[str], result) -> bool:
    return send_discord_embed(webhook_url, cleanup_embed(result))
