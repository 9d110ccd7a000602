# astrokernel/core/utc.py
# -----------------------------------------------------------------------------
# Coordinated Universal Time
#
# Standards Compliance:
#   • ITU-R TF.460-6 - UTC with inserted seconds (23:59:60)
#   • ISO 8601 extended format, 'Z' suffix
#
# UTC is a labelling of TAI instants: it has no continuous arithmetic of its
# own. Durations are added in TAI and the result is relabelled, so adding two
# seconds to 2016-12-31T23:59:59 lands on 2017-01-01T00:00:00.
#
# Public API:
#   Utc(year, month, day, hour=0, minute=0, seconds=0.0, leap_seconds=None)
#   Utc.from_iso(text) / Utc.from_tai(tai)
#   utc.to_tai(leap_seconds=None) / utc.to_scale(scale, context)
# -----------------------------------------------------------------------------

from __future__ import annotations

from functools import total_ordering
from typing import Optional, Tuple, Union

from .calendar import MJD_J2000, date_from_mjd, format_iso, iso_seconds, mjd_from_date, parse_iso, validate_time
from .deltas import SECONDS_PER_DAY, Duration, Number
from .errors import InvalidCalendarField, InvalidFormat
from .leapseconds import LeapSecondTable, default_leap_seconds
from .timescales import Time, TimeScale

__all__ = ["Utc"]

_HALF_DAY = SECONDS_PER_DAY // 2


@total_ordering
class Utc:
    """A UTC calendar label, valid through inserted leap seconds."""

    __slots__ = ("_year", "_month", "_day", "_hour", "_minute", "_second", "_attoseconds", "_leap_seconds")

    def __init__(
        self,
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        seconds: Number = 0.0,
        leap_seconds: Optional[LeapSecondTable] = None,
    ):
        table = default_leap_seconds() if leap_seconds is None else leap_seconds
        hour, minute, second, attoseconds = validate_time(hour, minute, seconds, allow_leap=True)
        mjd = mjd_from_date(year, month, day)
        # raises before 1960
        table.offset_for_utc_mjd(mjd)
        if second == 60 and not (hour == 23 and minute == 59 and table.leap_second_length(mjd) >= 1.0):
            raise InvalidCalendarField(
                f"no leap second on {year:04d}-{month:02d}-{day:02d} at {hour:02d}:{minute:02d}",
                field="second",
                value=seconds,
            )
        self._year, self._month, self._day = date_from_mjd(mjd)
        self._hour = hour
        self._minute = minute
        self._second = second
        self._attoseconds = attoseconds
        self._leap_seconds = table

    # ───────────────────────────── Constructors ─────────────────────────────

    @classmethod
    def from_iso(cls, text: str, leap_seconds: Optional[LeapSecondTable] = None) -> "Utc":
        """Parse bare, 'Z'-suffixed or ' UTC'-suffixed ISO 8601 text."""
        fields = parse_iso(text)
        if fields.suffix not in (None, "Z", "UTC"):
            raise InvalidFormat(f"invalid ISO string: expected a UTC time, got {text!r}", text=text)
        return cls(
            fields.year,
            fields.month,
            fields.day,
            fields.hour,
            fields.minute,
            iso_seconds(fields),
            leap_seconds=leap_seconds,
        )

    @classmethod
    def from_tai(cls, tai: Time, leap_seconds: Optional[LeapSecondTable] = None) -> "Utc":
        table = default_leap_seconds() if leap_seconds is None else leap_seconds
        if tai.scale is not TimeScale.TAI:
            raise ValueError(f"Utc.from_tai needs a TAI instant, got {tai.scale.value}")
        offset = table.cumulative_offset(tai)
        utc = tai.delta - Duration(offset)
        in_leap = table.is_leap_second(tai)
        if in_leap:
            # label as 23:59:59.x, then bump to 60
            utc = utc - Duration(1)
        days, second_of_day = divmod(utc.seconds + _HALF_DAY, SECONDS_PER_DAY)
        year, month, day = date_from_mjd(MJD_J2000 + days)
        hour, rem = divmod(second_of_day, 3600)
        minute, second = divmod(rem, 60)
        if in_leap:
            second += 1
        label = cls.__new__(cls)
        label._year, label._month, label._day = year, month, day
        label._hour, label._minute, label._second = hour, minute, second
        label._attoseconds = utc.attoseconds
        label._leap_seconds = table
        return label

    # ───────────────────────────── Fields ─────────────────────────────

    @property
    def year(self) -> int:
        return self._year

    @property
    def month(self) -> int:
        return self._month

    @property
    def day(self) -> int:
        return self._day

    @property
    def hour(self) -> int:
        return self._hour

    @property
    def minute(self) -> int:
        return self._minute

    @property
    def second(self) -> int:
        return self._second

    @property
    def attoseconds(self) -> int:
        return self._attoseconds

    # ───────────────────────────── Conversions ─────────────────────────────

    @property
    def leap_seconds(self) -> LeapSecondTable:
        return self._leap_seconds

    @property
    def mjd(self) -> int:
        return mjd_from_date(self.year, self.month, self.day)

    @property
    def decimal_seconds(self) -> float:
        return self.second + self.attoseconds / 10**18

    def day_fraction(self) -> float:
        return (self.hour * 3600 + self.minute * 60 + self.decimal_seconds) / SECONDS_PER_DAY

    def to_tai(self, leap_seconds: Optional[LeapSecondTable] = None) -> Time:
        """TAI instant of this label, under ``leap_seconds`` if given."""
        table = self._leap_seconds if leap_seconds is None else leap_seconds
        mjd = self.mjd
        offset = table.offset_for_utc_mjd(mjd, self.day_fraction())
        whole = (mjd - MJD_J2000) * SECONDS_PER_DAY - _HALF_DAY + self.hour * 3600 + self.minute * 60 + self.second
        return Time.from_delta(TimeScale.TAI, Duration(whole, self.attoseconds) + Duration(offset))

    def to_scale(self, scale: Union[TimeScale, str], context=None) -> Time:
        from .conversions import convert

        return convert(self, TimeScale.parse(scale), context)

    # ───────────────────────────── Arithmetic ─────────────────────────────

    def __add__(self, other):
        if isinstance(other, Duration):
            return Utc.from_tai(self.to_tai() + other, self._leap_seconds)
        return NotImplemented

    __radd__ = __add__

    def __sub__(self, other):
        if isinstance(other, Duration):
            return Utc.from_tai(self.to_tai() - other, self._leap_seconds)
        if isinstance(other, Utc):
            return self.to_tai() - other.to_tai()
        return NotImplemented

    def _key(self) -> Tuple[int, ...]:
        return (self.year, self.month, self.day, self.hour, self.minute, self.second, self.attoseconds)

    def __eq__(self, other):
        if not isinstance(other, Utc):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other):
        if not isinstance(other, Utc):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    # ───────────────────────────── Formatting ─────────────────────────────

    def to_iso(self, decimals: int = 3) -> str:
        text = format_iso(self.year, self.month, self.day, self.hour, self.minute, self.second, self.attoseconds, decimals)
        return f"{text}Z"

    def __str__(self) -> str:
        text = format_iso(self.year, self.month, self.day, self.hour, self.minute, self.second, self.attoseconds)
        return f"{text} UTC"

    def __repr__(self) -> str:
        return f"Utc({self.to_iso(decimals=18)!r})"
