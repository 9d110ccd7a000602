# astrokernel/core/timescales.py
# -----------------------------------------------------------------------------
# Continuous Time in Astronomical Time Scales
#
# Standards Compliance:
#   • IERS Conventions 2010 (Chapter 10) - TAI, TT, TCG, TDB, TCB
#   • IAU SOFA/ERFA calendar routines (proleptic Gregorian)
#   • ISO 8601 extended format with a trailing scale tag
#
# Representation:
#   • A Duration measured from J2000.0 (2000-01-01T12:00:00 in the tagged scale)
#   • Attosecond resolution, exact integer arithmetic
#   • Times in different scales never compare, order or subtract
#
# Public API:
#   TimeScale.parse(name) -> TimeScale
#   Time(scale, year, month, day, hour=0, minute=0, seconds=0.0)
#   Time.from_seconds / from_delta / from_julian_date / from_two_part_julian_date
#   Time.from_day_of_year / from_iso
#   Time.to_scale(scale, context) / to_utc(context)
# -----------------------------------------------------------------------------

from __future__ import annotations

import math
from decimal import Decimal
from enum import Enum
from functools import total_ordering
from typing import NamedTuple, Optional, Tuple, Union

from .calendar import (
    MJD_J2000,
    date_from_mjd,
    day_of_year,
    format_iso,
    iso_seconds,
    mjd_from_date,
    parse_iso,
    validate_time,
)
from .deltas import (
    ATTOSECONDS_PER_SECOND,
    SECONDS_PER_DAY,
    SECONDS_PER_JULIAN_CENTURY,
    Duration,
    Number,
    _CTX,
    to_decimal,
)
from .errors import InvalidCalendarField, InvalidFormat, ScaleMismatch

__all__ = [
    "TimeScale",
    "TwoPartJD",
    "Time",
    "JD_J2000",
]

JD_J2000 = 2451545.0

# Offset of each Julian-date epoch from J2000.0, in days
_EPOCH_OFFSET_DAYS = {
    "jd": Decimal("2451545.0"),
    "mjd": Decimal("51544.5"),
    "j1950": Decimal("18262.5"),
    "j2000": Decimal("0"),
}

_UNIT_SECONDS = {
    "days": SECONDS_PER_DAY,
    "centuries": SECONDS_PER_JULIAN_CENTURY,
}

_HALF_DAY = SECONDS_PER_DAY // 2


class TimeScale(Enum):
    """Continuous astronomical time scales."""
    TAI = "TAI"   # International Atomic Time
    TT = "TT"     # Terrestrial Time
    TDB = "TDB"   # Barycentric Dynamical Time
    TCG = "TCG"   # Geocentric Coordinate Time
    TCB = "TCB"   # Barycentric Coordinate Time
    UT1 = "UT1"   # Universal Time (Earth rotation)

    @classmethod
    def parse(cls, value: Union["TimeScale", str]) -> "TimeScale":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise InvalidFormat(f"unknown time scale: {value!r}", scale=value)

    def __str__(self) -> str:
        return self.value


class TwoPartJD(NamedTuple):
    """Two-part Julian Date as consumed by ERFA."""
    jd1: float  # J2000 day number (whole days)
    jd2: float  # fraction of day in [0, 1)

    @property
    def jd(self) -> float:
        """Collapsed single Julian Date (with minor precision loss)."""
        return math.fsum((self.jd1, self.jd2))


@total_ordering
class Time:
    """An instant in a continuous time scale.

    Internally the value is the exact elapsed time since J2000.0 in the tagged
    scale, so ``Time(TimeScale.TT, 2000, 1, 1, 12)`` holds zero seconds.
    """

    __slots__ = ("_scale", "_delta")

    def __init__(
        self,
        scale: Union[TimeScale, str],
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        seconds: Number = 0.0,
    ):
        hour, minute, second, attoseconds = validate_time(hour, minute, seconds)
        mjd = mjd_from_date(year, month, day)
        whole = (mjd - MJD_J2000) * SECONDS_PER_DAY - _HALF_DAY + hour * 3600 + minute * 60 + second
        self._scale = TimeScale.parse(scale)
        self._delta = Duration(whole, attoseconds)

    # ───────────────────────────── Constructors ─────────────────────────────

    @classmethod
    def from_delta(cls, scale: Union[TimeScale, str], delta: Duration) -> "Time":
        if not isinstance(delta, Duration):
            raise TypeError(f"delta must be a Duration, got {type(delta).__name__}")
        time = cls.__new__(cls)
        time._scale = TimeScale.parse(scale)
        time._delta = delta
        return time

    @classmethod
    def from_seconds(cls, scale: Union[TimeScale, str], seconds: Number) -> "Time":
        """Instant ``seconds`` after J2000.0."""
        return cls.from_delta(scale, Duration(seconds))

    @classmethod
    def j2000(cls, scale: Union[TimeScale, str]) -> "Time":
        return cls.from_delta(scale, Duration())

    @classmethod
    def from_two_part_julian_date(cls, scale: Union[TimeScale, str], jd1: Number, jd2: Number) -> "Time":
        """Build from a split Julian date without collapsing the two parts."""
        days = _CTX.add(
            _CTX.subtract(to_decimal(jd1, "jd1"), _EPOCH_OFFSET_DAYS["jd"]),
            to_decimal(jd2, "jd2"),
        )
        return cls.from_delta(scale, Duration(_CTX.multiply(days, Decimal(SECONDS_PER_DAY))))

    @classmethod
    def from_julian_date(cls, scale: Union[TimeScale, str], julian_date: Number, epoch: str = "jd") -> "Time":
        offset = _epoch_offset(epoch)
        days = _CTX.subtract(to_decimal(julian_date, "julian_date"), offset)
        return cls.from_delta(scale, Duration(_CTX.multiply(days, Decimal(SECONDS_PER_DAY))))

    @classmethod
    def from_day_of_year(
        cls,
        scale: Union[TimeScale, str],
        year: int,
        day_of_year: int,
        hour: int = 0,
        minute: int = 0,
        seconds: Number = 0.0,
    ) -> "Time":
        first = cls(scale, year, 1, 1, hour, minute, seconds)
        last = 366 if mjd_from_date(year, 12, 31) - mjd_from_date(year, 1, 1) == 365 else 365
        if isinstance(day_of_year, bool) or not isinstance(day_of_year, int) or not 1 <= day_of_year <= last:
            raise InvalidCalendarField(
                f"day of year must be in the range [1, {last}] for {year}",
                field="day_of_year",
                value=day_of_year,
            )
        return first + Duration((day_of_year - 1) * SECONDS_PER_DAY)

    @classmethod
    def from_iso(cls, text: str, scale: Optional[Union[TimeScale, str]] = None) -> "Time":
        """Parse ``YYYY-MM-DD[THH:MM:SS[.f...]] [SCALE]``.

        An explicit ``scale`` must agree with a textual scale tag; without
        either the instant is taken to be TAI.
        """
        fields = parse_iso(text)
        if fields.suffix == "Z":
            raise InvalidFormat(f"invalid ISO string: 'Z' denotes UTC, got {text!r}", text=text)
        tagged = TimeScale.parse(fields.suffix) if fields.suffix else None
        requested = TimeScale.parse(scale) if scale is not None else None
        if tagged is not None and requested is not None and tagged is not requested:
            raise InvalidFormat(
                f"scale mismatch: text is tagged {tagged.value} but {requested.value} was requested",
                text=text,
            )
        return cls(
            requested or tagged or TimeScale.TAI,
            fields.year,
            fields.month,
            fields.day,
            fields.hour,
            fields.minute,
            iso_seconds(fields),
        )

    # ───────────────────────────── Properties ─────────────────────────────

    @property
    def scale(self) -> TimeScale:
        return self._scale

    @property
    def delta(self) -> Duration:
        """Elapsed time since J2000.0 in this scale."""
        return self._delta

    @property
    def seconds(self) -> float:
        return self._delta.to_decimal_seconds()

    def days_since_j2000(self) -> float:
        whole_days, rem = divmod(self._delta.seconds, SECONDS_PER_DAY)
        return whole_days + (rem + self._delta.subsecond) / SECONDS_PER_DAY

    def centuries_since_j2000(self) -> float:
        return self.days_since_j2000() / 36525.0

    def _civil(self) -> Tuple[int, int, int, int, int, int]:
        days, second_of_day = divmod(self._delta.seconds + _HALF_DAY, SECONDS_PER_DAY)
        year, month, day = date_from_mjd(MJD_J2000 + days)
        hour, rem = divmod(second_of_day, 3600)
        minute, second = divmod(rem, 60)
        return year, month, day, hour, minute, second

    @property
    def year(self) -> int:
        return self._civil()[0]

    @property
    def month(self) -> int:
        return self._civil()[1]

    @property
    def day(self) -> int:
        return self._civil()[2]

    @property
    def day_of_year(self) -> int:
        year, month, day = self._civil()[:3]
        return day_of_year(year, month, day)

    @property
    def hour(self) -> int:
        return self._civil()[3]

    @property
    def minute(self) -> int:
        return self._civil()[4]

    @property
    def second(self) -> int:
        return self._civil()[5]

    @property
    def millisecond(self) -> int:
        return self._delta.attoseconds // 10**15

    @property
    def microsecond(self) -> int:
        return self._delta.attoseconds // 10**12 % 1000

    @property
    def nanosecond(self) -> int:
        return self._delta.attoseconds // 10**9 % 1000

    @property
    def picosecond(self) -> int:
        return self._delta.attoseconds // 10**6 % 1000

    @property
    def femtosecond(self) -> int:
        return self._delta.attoseconds // 10**3 % 1000

    @property
    def attosecond(self) -> int:
        return self._delta.attoseconds % 1000

    @property
    def decimal_seconds(self) -> float:
        """Seconds of the minute including the fraction."""
        return self.second + self._delta.subsecond

    def julian_date(self, epoch: str = "jd", unit: str = "days") -> float:
        """Elapsed time since ``epoch`` expressed in ``unit`` (days or centuries)."""
        offset = _epoch_offset(epoch)
        try:
            unit_seconds = _UNIT_SECONDS[unit]
        except KeyError:
            raise ValueError(f"unknown unit: {unit!r} (expected 'days' or 'centuries')") from None
        total = _CTX.add(self._delta.to_decimal(), _CTX.multiply(offset, Decimal(SECONDS_PER_DAY)))
        return float(_CTX.divide(total, Decimal(unit_seconds)))

    def two_part_julian_date(self) -> TwoPartJD:
        days, rem = divmod(self._delta.total_attoseconds, SECONDS_PER_DAY * ATTOSECONDS_PER_SECOND)
        return TwoPartJD(JD_J2000 + days, rem / (SECONDS_PER_DAY * ATTOSECONDS_PER_SECOND))

    # ───────────────────────────── Conversions ─────────────────────────────

    def to_scale(self, scale: Union[TimeScale, str], context=None) -> "Time":
        from .conversions import convert

        return convert(self, TimeScale.parse(scale), context)

    def to_utc(self, context=None):
        from .conversions import convert

        return convert(self, "UTC", context)

    # ───────────────────────────── Arithmetic ─────────────────────────────

    def _require_same_scale(self, other: "Time", operation: str) -> None:
        if other._scale is not self._scale:
            raise ScaleMismatch(
                f"cannot {operation} times in different scales: {self._scale.value} and {other._scale.value}",
                left=self._scale,
                right=other._scale,
            )

    def __add__(self, other):
        if isinstance(other, Duration):
            return Time.from_delta(self._scale, self._delta + other)
        return NotImplemented

    __radd__ = __add__

    def __sub__(self, other):
        if isinstance(other, Duration):
            return Time.from_delta(self._scale, self._delta - other)
        if isinstance(other, Time):
            self._require_same_scale(other, "subtract")
            return self._delta - other._delta
        return NotImplemented

    def __eq__(self, other):
        if not isinstance(other, Time):
            return NotImplemented
        return self._scale is other._scale and self._delta == other._delta

    def __lt__(self, other):
        if not isinstance(other, Time):
            return NotImplemented
        self._require_same_scale(other, "compare")
        return self._delta < other._delta

    def __hash__(self) -> int:
        return hash((self._scale, self._delta))

    def isclose(self, other: "Time", rel_tol: float = 1e-8, abs_tol: float = 1e-14) -> bool:
        """math.isclose on the seconds since J2000, within one scale."""
        if not isinstance(other, Time):
            raise TypeError(f"expected Time, got {type(other).__name__}")
        self._require_same_scale(other, "compare")
        difference = abs((self._delta - other._delta).to_decimal_seconds())
        magnitude = max(abs(self.seconds), abs(other.seconds))
        return difference <= max(rel_tol * magnitude, abs_tol)

    # ───────────────────────────── Formatting ─────────────────────────────

    def to_iso(self, decimals: int = 3) -> str:
        year, month, day, hour, minute, second = self._civil()
        text = format_iso(year, month, day, hour, minute, second, self._delta.attoseconds, decimals)
        return f"{text} {self._scale.value}"

    def __str__(self) -> str:
        return self.to_iso()

    def __repr__(self) -> str:
        return f"Time({self._scale.value}, {self.to_iso(decimals=18)!r})"


def _epoch_offset(epoch: str) -> Decimal:
    try:
        return _EPOCH_OFFSET_DAYS[epoch.lower()]
    except (KeyError, AttributeError):
        raise ValueError(f"unknown epoch: {epoch!r} (expected jd, mjd, j1950 or j2000)") from None
