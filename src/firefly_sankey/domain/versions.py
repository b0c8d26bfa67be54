import re
from itertools import zip_longest

# Supported Firefly III API versions: MIN_API_VERSION <= version < MAX_API_VERSION
MIN_API_VERSION = "6.3.0"
MAX_API_VERSION = "7.0.0"

_LEADING_DIGITS = re.compile(r"\d+")


def _parts(version: str) -> list[int]:
    parts = []
    for piece in version.strip().lstrip("vV").split("."):
        match = _LEADING_DIGITS.match(piece)
        parts.append(int(match.group()) if match else 0)
    return parts


def compare_versions(left: str, right: str) -> int:
    """-1, 0 or 1. Missing parts count as zero, so ``1.0`` equals ``1.0.0``."""
    for a, b in zip_longest(_parts(left), _parts(right), fillvalue=0):
        if a != b:
            return -1 if a < b else 1
    return 0


def is_api_version_supported(version: str) -> bool:
    return (
        compare_versions(version, MIN_API_VERSION) >= 0
        and compare_versions(version, MAX_API_VERSION) < 0
    )


def version_error_message(version: str) -> str:
    if compare_versions(version, MIN_API_VERSION) < 0:
        return f"API version {version} is too old. Minimum supported version is {MIN_API_VERSION}."
    if compare_versions(version, MAX_API_VERSION) >= 0:
        return (
            f"API version {version} is too new. "
            f"Maximum supported version is below {MAX_API_VERSION}."
        )
    return f"API version {version} is not supported."
