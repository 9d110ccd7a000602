# astrokernel/core/calendar.py
# -----------------------------------------------------------------------------
# Proleptic Gregorian Calendar and ISO 8601 Text
#
# Standards Compliance:
#   • IAU SOFA/ERFA cal2jd/jd2cal for day numbers (valid from -4799)
#   • ISO 8601 extended format, optional fraction up to 18 digits
#
# Public API:
#   validate_date(year, month, day)
#   validate_time(hour, minute, seconds, allow_leap=False) -> (h, m, s, attoseconds)
#   mjd_from_date(year, month, day) -> int
#   date_from_mjd(mjd) -> (year, month, day)
#   day_of_year(year, month, day) -> int
#   parse_iso(text) -> IsoFields
#   format_iso(fields..., decimals) -> str
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
from decimal import Decimal
from typing import NamedTuple, Optional, Tuple

import erfa  # pyERFA - SOFA/ERFA

from .deltas import ATTOSECONDS_PER_SECOND, Number, _attoseconds_of, to_decimal
from .errors import InvalidCalendarField, InvalidFormat

__all__ = [
    "MJD_J2000",
    "IsoFields",
    "is_leap_year",
    "days_in_month",
    "validate_date",
    "validate_time",
    "mjd_from_date",
    "date_from_mjd",
    "day_of_year",
    "parse_iso",
    "iso_seconds",
    "format_iso",
]

MJD_J2000 = 51544          # 2000-01-01T00:00 as a modified Julian day number
MJD_ZERO = 2400000.5
MIN_YEAR = -4799           # ERFA cal2jd lower limit

_ISO_RE = re.compile(
    r"^(?P<year>[+-]?\d{4,})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"(?:[T ](?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})"
    r"(?:\.(?P<fraction>\d{1,18}))?)?"
    r"(?P<suffix>Z| +[A-Za-z0-9]+)?$"
)


class IsoFields(NamedTuple):
    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int
    attoseconds: int
    suffix: Optional[str]   # "Z", a scale name, or None


# ───────────────────────────── Validation ─────────────────────────────

def is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_month(year: int, month: int) -> int:
    if month == 2:
        return 29 if is_leap_year(year) else 28
    return 30 if month in (4, 6, 9, 11) else 31


def _require_int(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        try:
            as_int = int(value)
        except (TypeError, ValueError):
            raise InvalidCalendarField(f"{field} must be an integer, got {value!r}", field=field, value=value) from None
        if as_int != value:
            raise InvalidCalendarField(f"{field} must be an integer, got {value!r}", field=field, value=value)
        return as_int
    return value


def validate_date(year: int, month: int, day: int) -> Tuple[int, int, int]:
    year = _require_int(year, "year")
    month = _require_int(month, "month")
    day = _require_int(day, "day")
    if year < MIN_YEAR:
        raise InvalidCalendarField(f"invalid date: year must be >= {MIN_YEAR}", field="year", value=year)
    if not 1 <= month <= 12:
        raise InvalidCalendarField("invalid date: month must be in the range [1, 12]", field="month", value=month)
    last = days_in_month(year, month)
    if not 1 <= day <= last:
        raise InvalidCalendarField(
            f"invalid date: day must be in the range [1, {last}] for {year:04d}-{month:02d}",
            field="day",
            value=day,
        )
    return year, month, day


def validate_time(hour: int, minute: int, seconds: Number, allow_leap: bool = False) -> Tuple[int, int, int, int]:
    """Validate a time of day.

    Returns:
        (hour, minute, whole second, attoseconds)

    Raises:
        InvalidCalendarField: field out of range (second 60 only when allow_leap)
        NonFiniteValue: seconds is NaN or infinite
    """
    hour = _require_int(hour, "hour")
    minute = _require_int(minute, "minute")
    if not 0 <= hour <= 23:
        raise InvalidCalendarField("hour must be in the range [0, 23]", field="hour", value=hour)
    if not 0 <= minute <= 59:
        raise InvalidCalendarField("minute must be in the range [0, 59]", field="minute", value=minute)

    total = _attoseconds_of(to_decimal(seconds, "seconds"))
    upper = 61 if allow_leap else 60
    if not 0 <= total < upper * ATTOSECONDS_PER_SECOND:
        raise InvalidCalendarField(
            f"seconds must be in the range [0, {upper})", field="second", value=seconds
        )
    second, attoseconds = divmod(total, ATTOSECONDS_PER_SECOND)
    return hour, minute, second, attoseconds


# ───────────────────────────── Day Numbers ─────────────────────────────

def mjd_from_date(year: int, month: int, day: int) -> int:
    """Modified Julian day number of 00:00 on the given date."""
    year, month, day = validate_date(year, month, day)
    _, mjd = erfa.cal2jd(year, month, day)
    return int(mjd)


def date_from_mjd(mjd: int) -> Tuple[int, int, int]:
    """Calendar date of an integer modified Julian day."""
    year, month, day, _ = erfa.jd2cal(MJD_ZERO, float(mjd))
    return int(year), int(month), int(day)


def day_of_year(year: int, month: int, day: int) -> int:
    return mjd_from_date(year, month, day) - mjd_from_date(year, 1, 1) + 1


# ───────────────────────────── ISO 8601 ─────────────────────────────

def parse_iso(text: str) -> IsoFields:
    """Split ISO 8601 text into fields; range checks are left to the caller."""
    if not isinstance(text, str):
        raise InvalidFormat(f"invalid ISO string: expected str, got {type(text).__name__}", text=text)
    match = _ISO_RE.match(text.strip())
    if match is None:
        raise InvalidFormat(f"invalid ISO string: {text!r}", text=text)

    fraction = match.group("fraction") or ""
    attoseconds = int(fraction.ljust(18, "0")) if fraction else 0
    suffix = match.group("suffix")
    if suffix is not None:
        suffix = suffix.strip().upper()

    return IsoFields(
        year=int(match.group("year")),
        month=int(match.group("month")),
        day=int(match.group("day")),
        hour=int(match.group("hour") or 0),
        minute=int(match.group("minute") or 0),
        second=int(match.group("second") or 0),
        attoseconds=attoseconds,
        suffix=suffix,
    )


def iso_seconds(fields: IsoFields) -> Decimal:
    """Seconds-of-minute of parsed fields as an exact Decimal."""
    return Decimal(fields.second) + Decimal(fields.attoseconds).scaleb(-18)


def format_iso(
    year: int,
    month: int,
    day: int,
    hour: int,
    minute: int,
    second: int,
    attoseconds: int,
    decimals: int = 3,
) -> str:
    """Format fields as YYYY-MM-DDTHH:MM:SS[.fff], truncating the fraction."""
    if not 0 <= decimals <= 18:
        raise ValueError("decimals must be in the range [0, 18]")
    year_text = f"{year:04d}" if year >= 0 else f"-{-year:04d}"
    text = f"{year_text}-{month:02d}-{day:02d}T{hour:02d}:{minute:02d}:{second:02d}"
    if decimals:
        digits = f"{attoseconds:018d}"[:decimals]
        text = f"{text}.{digits}"
    return text
