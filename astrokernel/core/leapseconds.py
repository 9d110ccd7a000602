# astrokernel/core/leapseconds.py
# -----------------------------------------------------------------------------
# Leap Second Table (TAI - UTC)
#
# Standards Compliance:
#   • IERS Bulletin C leap second announcements (through 2017-01-01, 37 s)
#   • IAU SOFA/ERFA dat() rubber-second model for 1960-01-01 .. 1972-01-01
#
# Sources, in order:
#   1. Operations override table (ASTRO_DELTA_AT_JSON, rows of mjd/delta_at/reference)
#   2. Built-in table
#
# Public API:
#   LeapSecondTable(entries)
#   LeapSecondTable.from_json(path)
#   default_leap_seconds() -> LeapSecondTable
#   table.cumulative_offset(tai) -> seconds
#   table.offset_for_utc_date(year, month, day, fraction=0.0) -> seconds
#   table.is_leap_second_date(year, month, day) / table.is_leap_second(tai)
# -----------------------------------------------------------------------------

from __future__ import annotations

import json
import logging
import warnings as py_warnings
from bisect import bisect_right
from functools import lru_cache
from typing import Iterable, Iterator, List, NamedTuple, Sequence, Tuple

import erfa  # pyERFA - SOFA/ERFA

from .calendar import MJD_J2000, date_from_mjd, mjd_from_date
from .config import load_config
from .deltas import SECONDS_PER_DAY, Duration
from .errors import InvalidCalendarField

__all__ = [
    "LeapSecondEntry",
    "LeapSecondTable",
    "BUILTIN_LEAP_TABLE",
    "default_leap_seconds",
]

log = logging.getLogger(__name__)

# 1960-01-01, first day UTC is defined
UTC_START_MJD = 36934


class LeapSecondEntry(NamedTuple):
    mjd: int           # UTC day on which delta_at takes effect
    delta_at: float    # TAI - UTC in seconds from that day on
    reference: str


# (MJD_UTC, delta_AT_seconds, reference)
BUILTIN_LEAP_TABLE: Tuple[LeapSecondEntry, ...] = tuple(
    LeapSecondEntry(*row)
    for row in (
        (41317, 10.0, "IERS-1972-01-01"),
        (41499, 11.0, "IERS-1972-07-01"),
        (41683, 12.0, "IERS-1973-01-01"),
        (42048, 13.0, "IERS-1974-01-01"),
        (42413, 14.0, "IERS-1975-01-01"),
        (42778, 15.0, "IERS-1976-01-01"),
        (43144, 16.0, "IERS-1977-01-01"),
        (43509, 17.0, "IERS-1978-01-01"),
        (43874, 18.0, "IERS-1979-01-01"),
        (44239, 19.0, "IERS-1980-01-01"),
        (44786, 20.0, "IERS-1981-07-01"),
        (45151, 21.0, "IERS-1982-07-01"),
        (45516, 22.0, "IERS-1983-07-01"),
        (46247, 23.0, "IERS-1985-07-01"),
        (47161, 24.0, "IERS-1988-01-01"),
        (47892, 25.0, "IERS-1990-01-01"),
        (48257, 26.0, "IERS-1991-01-01"),
        (48804, 27.0, "IERS-1992-07-01"),
        (49169, 28.0, "IERS-1993-07-01"),
        (49534, 29.0, "IERS-1994-07-01"),
        (50083, 30.0, "IERS-1996-01-01"),
        (50630, 31.0, "IERS-1997-07-01"),
        (51179, 32.0, "IERS-1999-01-01"),
        (53736, 33.0, "IERS-2006-01-01"),
        (54832, 34.0, "IERS-2009-01-01"),
        (56109, 35.0, "IERS-2012-07-01"),
        (57204, 36.0, "IERS-2015-07-01"),
        (57754, 37.0, "IERS-2017-01-01"),  # Last known leap second
    )
)


def _utc_midnight(mjd: int) -> Duration:
    """00:00 UTC of ``mjd`` as seconds since J2000.0 on the UTC day count."""
    return Duration((mjd - MJD_J2000) * SECONDS_PER_DAY - SECONDS_PER_DAY // 2)


class LeapSecondTable:
    """Immutable TAI - UTC step table.

    Rows must increase strictly in both the effective day and the offset.
    Before the first row (and not before 1960) the ERFA drift model applies.
    """

    __slots__ = ("_entries", "_mjds", "_tai_epochs", "_leap_days")

    def __init__(self, entries: Iterable[Sequence]):
        rows = [LeapSecondEntry(int(row[0]), float(row[1]), str(row[2]) if len(row) > 2 else "") for row in entries]
        if not rows:
            raise ValueError("leap second table must not be empty")
        for previous, current in zip(rows, rows[1:]):
            if current.mjd <= previous.mjd:
                raise ValueError(f"leap second table days must increase strictly: {previous.mjd} then {current.mjd}")
            if current.delta_at <= previous.delta_at:
                raise ValueError(
                    f"leap second table offsets must increase strictly: {previous.delta_at} then {current.delta_at}"
                )
        self._entries: Tuple[LeapSecondEntry, ...] = tuple(rows)
        self._mjds: List[int] = [row.mjd for row in rows]
        # TAI instant at which each row takes effect
        self._tai_epochs: List[Duration] = [_utc_midnight(row.mjd) + Duration(row.delta_at) for row in rows]
        # UTC days whose last minute holds an inserted second
        self._leap_days = frozenset(row.mjd - 1 for row in rows[1:])

    @classmethod
    def from_json(cls, path: str) -> "LeapSecondTable":
        """Load rows of ``{"mjd": ..., "delta_at": ..., "reference": ...}``."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        rows = []
        for row in data:
            rows.append((int(row["mjd"]), float(row["delta_at"]), str(row.get("reference", "ops-override"))))
        rows.sort(key=lambda r: r[0])
        log.debug(f"Loaded {len(rows)} leap second rows from {path}")
        return cls(rows)

    # ───────────────────────────── Table Access ─────────────────────────────

    @property
    def entries(self) -> Tuple[LeapSecondEntry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LeapSecondEntry]:
        return iter(self._entries)

    def __repr__(self) -> str:
        last = self._entries[-1]
        return f"LeapSecondTable({len(self)} rows, last {last.reference} = {last.delta_at:g} s)"

    # ───────────────────────────── UTC Side ─────────────────────────────

    def offset_for_utc_mjd(self, mjd: int, fraction: float = 0.0) -> float:
        """TAI - UTC on UTC day ``mjd`` at ``fraction`` of the day."""
        if mjd < UTC_START_MJD:
            year, month, day = date_from_mjd(mjd)
            raise InvalidCalendarField(
                f"UTC is undefined before 1960-01-01, got {year:04d}-{month:02d}-{day:02d}",
                field="year",
                value=year,
            )
        if mjd < self._mjds[0]:
            year, month, day = date_from_mjd(mjd)
            return float(erfa.dat(year, month, day, fraction))
        return self._entries[bisect_right(self._mjds, mjd) - 1].delta_at

    def offset_for_utc_date(self, year: int, month: int, day: int, fraction: float = 0.0) -> float:
        return self.offset_for_utc_mjd(mjd_from_date(year, month, day), fraction)

    def is_leap_second_date(self, year: int, month: int, day: int) -> bool:
        """True when 23:59:60 exists on this UTC date."""
        return mjd_from_date(year, month, day) in self._leap_days

    def leap_second_length(self, mjd: int) -> float:
        """Seconds inserted at the end of UTC day ``mjd`` (0 for ordinary days)."""
        if mjd not in self._leap_days:
            return 0.0
        index = self._mjds.index(mjd + 1)
        return self._entries[index].delta_at - self._entries[index - 1].delta_at

    # ───────────────────────────── TAI Side ─────────────────────────────

    def cumulative_offset(self, tai) -> float:
        """TAI - UTC at a TAI instant.

        During an inserted second the previous offset still applies.
        """
        delta = _tai_delta(tai)
        if delta >= self._tai_epochs[0]:
            return self._entries[bisect_right(self._tai_epochs, delta) - 1].delta_at

        # Drift era: iterate on the UTC day the instant falls in
        offset = 10.0
        for _ in range(3):
            utc_seconds = (delta - Duration(offset)).to_decimal_seconds()
            days, second_of_day = divmod(utc_seconds + SECONDS_PER_DAY // 2, SECONDS_PER_DAY)
            offset = self.offset_for_utc_mjd(MJD_J2000 + int(days), second_of_day / SECONDS_PER_DAY)
        return offset

    def is_leap_second(self, tai) -> bool:
        """True when the TAI instant falls inside an inserted UTC second."""
        delta = _tai_delta(tai)
        index = bisect_right(self._tai_epochs, delta)
        if index <= 0 or index >= len(self._tai_epochs):
            return False
        step = self._entries[index].delta_at - self._entries[index - 1].delta_at
        return self._tai_epochs[index] - Duration(step) <= delta

    def tai_epochs(self) -> Tuple[Duration, ...]:
        return tuple(self._tai_epochs)


def _tai_delta(tai) -> Duration:
    if isinstance(tai, Duration):
        return tai
    scale = getattr(tai, "scale", None)
    if scale is not None and scale.value != "TAI":
        raise ValueError(f"leap second lookups need a TAI instant, got {scale.value}")
    return tai.delta


@lru_cache(maxsize=1)
def default_leap_seconds() -> LeapSecondTable:
    """Built-in table, or the operations override named by ASTRO_DELTA_AT_JSON."""
    path = load_config().leap_second_table_path
    if path:
        try:
            table = LeapSecondTable.from_json(path)
            log.info(f"Using leap second override table {path} ({len(table)} rows)")
            return table
        except (OSError, ValueError, KeyError, TypeError) as e:
            log.warning(f"Failed to load leap second override table {path}: {e}")
            py_warnings.warn(f"Failed to load leap second override table: {e}")
    return LeapSecondTable(BUILTIN_LEAP_TABLE)
