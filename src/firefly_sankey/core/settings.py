import os
import re
from collections.abc import Callable
from typing import TypeVar

from dotenv import find_dotenv, load_dotenv

from firefly_sankey.domain.tags import parse_tag_list
from firefly_sankey.logger import get_logger
from firefly_sankey.models import SankeyOptions

logger = get_logger(__name__)

T = TypeVar("T")

CONFIG_FILENAME = "config.yaml"

DEFAULT_PAGE_SIZE = 50
DEFAULT_SANKEYMATIC_URL = "https://sankeymatic.com"

# Option field -> environment variable holding its default
_OPTION_ENV_KEYS = {
    "with_accounts": "SANKEY_WITH_ACCOUNTS",
    "with_assets": "SANKEY_WITH_ASSETS",
    "include_categories": "SANKEY_INCLUDE_CATEGORIES",
    "include_budgets": "SANKEY_INCLUDE_BUDGETS",
    "exclude_accounts": "SANKEY_EXCLUDE_ACCOUNTS",
    "exclude_categories": "SANKEY_EXCLUDE_CATEGORIES",
    "exclude_budgets": "SANKEY_EXCLUDE_BUDGETS",
    "include_tags": "SANKEY_INCLUDE_TAGS",
    "exclude_tags": "SANKEY_EXCLUDE_TAGS",
    "min_amount_transaction": "SANKEY_MIN_AMOUNT_TRANSACTION",
    "min_amount_account": "SANKEY_MIN_AMOUNT_ACCOUNT",
    "min_account_grouping_amount": "SANKEY_MIN_ACCOUNT_GROUPING",
    "min_category_grouping_amount": "SANKEY_MIN_CATEGORY_GROUPING",
}

_CONFIG_KEYS = (
    "LOG_LEVEL",
    "LOG_DIR",
    "FIREFLY_URL",
    "FIREFLY_TOKEN",
    "FIREFLY_PAGE_SIZE",
    "SANKEYMATIC_URL",
    *_OPTION_ENV_KEYS.values(),
)

# KEY: value, KEY: "quoted # value", KEY: 'quoted' with an optional trailing comment
_CONFIG_LINE = re.compile(
    r"""^\s*(?P<key>[A-Za-z_][A-Za-z0-9_]*)\s*:\s*
    (?:"(?P<double>(?:[^"\\]|\\.)*)"|'(?P<single>(?:[^'\\]|\\.)*)'|(?P<bare>[^#]*?))
    \s*(?:\#.*)?$""",
    re.VERBOSE,
)


def _config_dir_file(filename: str) -> str | None:
    config_dir = os.getenv("CONFIG_DIR")
    return os.path.join(config_dir, filename) if config_dir else None


def _resolve_dotenv_path() -> str | None:
    candidate = _config_dir_file(".env")
    if candidate and os.path.exists(candidate):
        return candidate
    return find_dotenv(usecwd=True) or None


def _resolve_config_path() -> str:
    candidate = _config_dir_file(CONFIG_FILENAME)
    if candidate:
        return candidate
    nested = os.path.join(os.getcwd(), "config", CONFIG_FILENAME)
    return nested if os.path.exists(nested) else os.path.join(os.getcwd(), CONFIG_FILENAME)


def _parse_config_line(line: str) -> tuple[str, str] | None:
    match = _CONFIG_LINE.match(line)
    if not match:
        return None
    if match["double"] is not None:
        value = match["double"].replace('\\"', '"').replace("\\\\", "\\")
    elif match["single"] is not None:
        value = match["single"].replace("\\'", "'").replace("\\\\", "\\")
    else:
        value = match["bare"]
    return match["key"], value


def read_config_file(path: str | None) -> dict[str, str]:
    """Read flat ``KEY: value`` lines. Comments and blank values are skipped."""
    if not path or not os.path.exists(path):
        return {}

    values: dict[str, str] = {}
    with open(path, encoding="utf-8") as handle:
        for line in handle:
            parsed = _parse_config_line(line.rstrip("\n"))
            if parsed and parsed[1]:
                key, value = parsed
                values[key] = value
    return values


def load_environment() -> None:
    """Load ``.env``, then fill unset keys from ``config.yaml``."""
    dotenv_path = _resolve_dotenv_path()
    if dotenv_path:
        load_dotenv(dotenv_path=dotenv_path, override=False)

    config_path = _resolve_config_path()
    file_values = read_config_file(config_path)
    if file_values:
        logger.debug("[CONFIG] Read %d value(s) from %s.", len(file_values), config_path)

    for key in _CONFIG_KEYS:
        if key in file_values:
            os.environ.setdefault(key, file_values[key])


def _get_env(name: str, default: T, convert: Callable[[str], T]) -> T:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return convert(raw)
    except ValueError:
        logger.warning("[ENV] Invalid %s='%s', using default %s.", name, raw, default)
        return default


def get_env_int(name: str, default: int, min_value: int | None = None) -> int:
    value = _get_env(name, default, int)
    if min_value is not None and value < min_value:
        logger.warning("[ENV] %s=%s is below %s, using default %s.", name, value, min_value, default)
        return default
    return value


def get_env_float(name: str, default: float | None = None) -> float | None:
    return _get_env(name, default, float)


_BOOL_VALUES = {
    "1": True, "true": True, "yes": True, "on": True,
    "0": False, "false": False, "no": False, "off": False,
}


def _to_bool(raw: str) -> bool:
    try:
        return _BOOL_VALUES[raw.strip().lower()]
    except KeyError:
        raise ValueError(raw) from None


def get_env_bool(name: str, default: bool) -> bool:
    return _get_env(name, default, _to_bool)


def get_env_tags(name: str) -> list[str]:
    return parse_tag_list(os.getenv(name))


def default_options(**overrides: object) -> SankeyOptions:
    """``SankeyOptions`` from the ``SANKEY_*`` variables, then ``overrides``."""
    fallback = SankeyOptions()
    values: dict[str, object] = {}
    for field_name, env_key in _OPTION_ENV_KEYS.items():
        current = getattr(fallback, field_name)
        if isinstance(current, bool):
            values[field_name] = get_env_bool(env_key, current)
        elif isinstance(current, list):
            values[field_name] = get_env_tags(env_key)
        else:
            values[field_name] = get_env_float(env_key, current)
    values.update({key: value for key, value in overrides.items() if value is not None})
    return SankeyOptions(**values)


_SENSITIVE_MARKERS = ("KEY", "TOKEN", "SECRET", "PASSWORD", "PASS", "AUTH", "BEARER", "PRIVATE")


def _looks_secret(name: str, value: str) -> bool:
    if any(marker in name.upper() for marker in _SENSITIVE_MARKERS):
        return True
    # bearer header or JWT
    return value.lower().startswith("bearer ") or (value.startswith("eyJ") and value.count(".") == 2)


def _mask_env_value(name: str, value: str) -> str:
    text = value.replace("\r", "\\r").replace("\n", "\\n")
    if not _looks_secret(name, text):
        return text
    return "****" if len(text) <= 4 else f"{text[:2]}...{text[-2:]}"


def log_environment() -> None:
    logger.info("[ENV] Effective configuration (secrets masked):")
    for key in _CONFIG_KEYS:
        raw_value = os.getenv(key)
        shown = "<unset>" if raw_value is None else _mask_env_value(key, raw_value)
        logger.info("[ENV] %s=%s", key, shown)


load_environment()

FIREFLY_PAGE_SIZE = get_env_int("FIREFLY_PAGE_SIZE", DEFAULT_PAGE_SIZE, min_value=1)
SANKEYMATIC_URL = os.getenv("SANKEYMATIC_URL", DEFAULT_SANKEYMATIC_URL)
