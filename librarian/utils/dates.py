"""Date parsing and "today" helpers shared by the models, services and controllers."""
from datetime import date, datetime

import pytz

from ..exceptions import ValidationError
from .constants import DATE_FMT

DEFAULT_TIMEZONE = "Pacific/Auckland"


def as_date(x):
    """Coerce any date-like to a naive date (supports 'YYYY-MM-DD' or ISO with T)."""
    if isinstance(x, datetime):
        return x.date()
    if isinstance(x, date):
        return x
    if isinstance(x, str):
        base = x.split("T", 1)[0].strip()
        return datetime.strptime(base, DATE_FMT).date()
    raise ValueError(f"Unsupported date: {x!r}")


def require_date(value, name: str = "date") -> date:
    """Return `value` as a date; raise ValidationError when missing or unreadable."""
    if value is None:
        raise ValidationError(f"Error: {name} is required")
    try:
        return as_date(value)
    except ValueError:
        raise ValidationError(f"Error: invalid {name} {value!r} (expected YYYY-MM-DD)") from None


def today(tz_name: str = DEFAULT_TIMEZONE) -> date:
    """
    Current calendar date in the library's timezone.
    Falls back to UTC when the zone name is not recognised by pytz.
    """
    try:
        tz = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        tz = pytz.utc
    return datetime.now(tz).date()


def fmt_date(d: date) -> str:
    return d.strftime(DATE_FMT)
