from typing import Any, Dict, List

REQUIRED_JOB_FIELDS = ["id", "title", "company"]
OPTIONAL_STR_FIELDS = ["url", "source", "location", "type"]
LIST_FIELDS = ["tags", "badges", "backers"]


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _is_id_list(v: Any) -> bool:
    return isinstance(v, list) and len(v) > 0 and all(_is_non_empty_str(i) for i in v)


def validate_merge_request(keep_id: Any, delete_ids: Any) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    """
    errors: List[str] = []

    if not _is_non_empty_str(keep_id):
        errors.append("keepId is required")
    if not _is_id_list(delete_ids):
        errors.append("deleteIds must be a non-empty list of ids")
    elif _is_non_empty_str(keep_id) and keep_id in delete_ids:
        errors.append("keepId must not appear in deleteIds")

    return errors


def validate_pin_request(ids: Any, pinned: Any) -> List[str]:
    errors: List[str] = []

    if not _is_id_list(ids):
        errors.append("ids must be a non-empty array")
    # bool only; 0/1 are rejected
    if not isinstance(pinned, bool):
        errors.append("pinned must be a boolean")

    return errors


def validate_job_payload(data: Dict[str, Any]) -> List[str]:
    """
    Checks an imported job object. Minimal shape checks only.
    """
    errors: List[str] = []

    if not isinstance(data, dict):
        return ["Job entry must be an object"]

    for f in REQUIRED_JOB_FIELDS:
        if f not in data:
            errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(data[f]):
            errors.append(f"Field '{f}' must be a non-empty string")

    for f in OPTIONAL_STR_FIELDS:
        if data.get(f) is not None and not isinstance(data[f], str):
            errors.append(f"Field '{f}' must be a string if provided")

    for f in LIST_FIELDS:
        value = data.get(f)
        if value is not None and not isinstance(value, (list, str)):
            errors.append(f"Field '{f}' must be a list or JSON array string")

    return errors
