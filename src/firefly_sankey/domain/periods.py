import calendar
import re
from dataclasses import dataclass
from datetime import date

MIN_YEAR = 1900
MAX_YEAR = 2100

_YEAR_RE = re.compile(r"^\d{4}$")
_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")
_QUARTER_RE = re.compile(r"^(\d{4})-Q([1-4])$", re.IGNORECASE)
_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_QUARTERS = {
    1: ("01-01", "03-31"),
    2: ("04-01", "06-30"),
    3: ("07-01", "09-30"),
    4: ("10-01", "12-31"),
}


@dataclass(frozen=True)
class DateRange:
    start: str
    end: str


def parse_period(period: str) -> DateRange:
    """
    Turn a period string into an inclusive date range.

    Accepts ``YYYY``, ``YYYY-MM``, ``YYYY-QN`` and ``YYYY-MM-DD``.
    """
    period = period.strip()
    if _YEAR_RE.match(period):
        year = _check_year(int(period))
        return DateRange(start=f"{year}-01-01", end=f"{year}-12-31")

    match = _MONTH_RE.match(period)
    if match:
        year = _check_year(int(match.group(1)))
        month = int(match.group(2))
        if month < 1 or month > 12:
            raise ValueError(f"Invalid month: {month}. Must be between 01 and 12")
        last_day = calendar.monthrange(year, month)[1]
        return DateRange(
            start=f"{year}-{month:02d}-01",
            end=f"{year}-{month:02d}-{last_day:02d}",
        )

    match = _QUARTER_RE.match(period)
    if match:
        year = _check_year(int(match.group(1)))
        start, end = _QUARTERS[int(match.group(2))]
        return DateRange(start=f"{year}-{start}", end=f"{year}-{end}")

    if _DAY_RE.match(period):
        if not is_valid_date(period):
            raise ValueError(f"Invalid date: {period}")
        return DateRange(start=period, end=period)

    raise ValueError(
        f'Invalid period format: "{period}". Expected YYYY, YYYY-MM, YYYY-QX, or YYYY-MM-DD'
    )


def is_valid_date(value: str) -> bool:
    if not _DAY_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def default_date_range(today: date | None = None) -> DateRange:
    """The calendar month containing ``today``."""
    today = today or date.today()
    last_day = calendar.monthrange(today.year, today.month)[1]
    return DateRange(
        start=today.replace(day=1).isoformat(),
        end=today.replace(day=last_day).isoformat(),
    )


def _check_year(year: int) -> int:
    if year < MIN_YEAR or year > MAX_YEAR:
        raise ValueError(f"Invalid year: {year}. Must be between {MIN_YEAR} and {MAX_YEAR}")
    return year


def resolve_date_range(
    start: str | None = None,
    end: str | None = None,
    period: str | None = None,
    today: date | None = None,
) -> DateRange:
    """
    Pick the reporting range from explicit dates or a period string.

    A period wins over explicit dates. Missing dates fall back to the
    current month.
    """
    if period:
        return parse_period(period)

    default = default_date_range(today)
    start = start or default.start
    end = end or default.end
    for value in (start, end):
        if not is_valid_date(value):
            raise ValueError(f"Invalid date: {value}. Expected YYYY-MM-DD")
    if start > end:
        raise ValueError("Start date must be before or equal to end date.")
    return DateRange(start=start, end=end)
