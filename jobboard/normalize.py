import re

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(s: str) -> str:
    """Lower-case, keep only [a-z0-9] and whitespace, collapse runs, trim."""
    text = _NON_ALNUM.sub("", (s or "").lower())
    return _WHITESPACE.sub(" ", text).strip()


def normalize_company(company: str) -> str:
    return normalize_text(company)

