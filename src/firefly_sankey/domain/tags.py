from typing import Any


def parse_tag_list(raw_tags: str | None) -> list[str]:
    """Split a comma-separated list, dropping blanks and repeats."""
    if not raw_tags:
        return []
    return _unique(part.strip() for part in raw_tags.split(","))


def normalize_tags(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple, set)):
        return _unique(str(item).strip() for item in value)
    if isinstance(value, str):
        return parse_tag_list(value)
    return []


def _unique(items: Any) -> list[str]:
    result: list[str] = []
    seen = set()
    for item in items:
        if item and item not in seen:
            result.append(item)
            seen.add(item)
    return result
