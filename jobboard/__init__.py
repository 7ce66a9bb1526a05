"""Job board moderation core: duplicate detection, merging and featured scoring."""

__version__ = "0.3.0"
