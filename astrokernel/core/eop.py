# astrokernel/core/eop.py
# -----------------------------------------------------------------------------
# Earth Orientation Parameters
#
# Standards Compliance:
#   • IERS Conventions 2010 (Chapter 5) - UT1-UTC, polar motion xp/yp
#   • IERS Bulletin A/B column semantics (pole coordinates in arcseconds)
#
# Only the query contract lives here; reading IERS files is the caller's job.
# TabulatedEopProvider interpolates UT1-TAI rather than UT1-UTC so that leap
# second steps inside the table do not smear across neighbouring days.
#
# Public API:
#   EopRecord(ut1_minus_utc, pole_x, pole_y, within_bounds)
#   EopProvider (protocol): lookup(mjd) -> EopRecord, bounds -> (min_mjd, max_mjd)
#   TabulatedEopProvider(mjd, ut1_minus_utc, pole_x, pole_y, leap_seconds=None)
#   query_eop(provider, mjd, policy) -> EopRecord
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import warnings as py_warnings
from typing import NamedTuple, Optional, Protocol, Sequence, Tuple, runtime_checkable

import numpy as np

from .config import EopPolicy
from .errors import ExtrapolatedEop, ExtrapolatedEopWarning, MissingProvider
from .leapseconds import LeapSecondTable, default_leap_seconds

__all__ = [
    "EopRecord",
    "EopProvider",
    "TabulatedEopProvider",
    "query_eop",
]

log = logging.getLogger(__name__)


class EopRecord(NamedTuple):
    ut1_minus_utc: float   # seconds
    pole_x: float          # arcseconds
    pole_y: float          # arcseconds
    within_bounds: bool = True


@runtime_checkable
class EopProvider(Protocol):
    """Anything that can answer EOP queries by UTC modified Julian date."""

    def lookup(self, mjd: float) -> EopRecord:
        ...

    @property
    def bounds(self) -> Tuple[float, float]:
        ...


class TabulatedEopProvider:
    """Linear interpolation over an in-memory EOP series.

    Outside the table the edge values are held and ``within_bounds`` is False.
    """

    def __init__(
        self,
        mjd: Sequence[float],
        ut1_minus_utc: Sequence[float],
        pole_x: Sequence[float],
        pole_y: Sequence[float],
        leap_seconds: Optional[LeapSecondTable] = None,
    ):
        self._mjd = np.array(mjd, dtype=float)
        ut1_utc = np.array(ut1_minus_utc, dtype=float)
        self._pole_x = np.array(pole_x, dtype=float)
        self._pole_y = np.array(pole_y, dtype=float)

        n = self._mjd.shape[0]
        if self._mjd.ndim != 1 or n < 2:
            raise ValueError("EOP table needs at least two rows")
        if not (ut1_utc.shape == self._pole_x.shape == self._pole_y.shape == self._mjd.shape):
            raise ValueError("EOP columns must have the same length")
        if not np.all(np.diff(self._mjd) > 0):
            raise ValueError("EOP table dates must increase strictly")
        if not (np.all(np.isfinite(ut1_utc)) and np.all(np.isfinite(self._pole_x)) and np.all(np.isfinite(self._pole_y))):
            raise ValueError("EOP table values must be finite")

        self._leap_seconds = default_leap_seconds() if leap_seconds is None else leap_seconds
        delta_at = np.array([self._delta_at(m) for m in self._mjd])
        self._ut1_tai = ut1_utc - delta_at
        for column in (self._mjd, self._ut1_tai, self._pole_x, self._pole_y):
            column.setflags(write=False)
        log.debug(f"EOP table with {n} rows covering MJD {self._mjd[0]} .. {self._mjd[-1]}")

    def _delta_at(self, mjd: float) -> float:
        day = int(np.floor(mjd))
        return self._leap_seconds.offset_for_utc_mjd(day, mjd - day)

    @property
    def bounds(self) -> Tuple[float, float]:
        return float(self._mjd[0]), float(self._mjd[-1])

    def lookup(self, mjd: float) -> EopRecord:
        # np.interp holds the edge values outside the table
        ut1_tai = float(np.interp(mjd, self._mjd, self._ut1_tai))
        return EopRecord(
            ut1_minus_utc=ut1_tai + self._delta_at(mjd),
            pole_x=float(np.interp(mjd, self._mjd, self._pole_x)),
            pole_y=float(np.interp(mjd, self._mjd, self._pole_y)),
            within_bounds=bool(self._mjd[0] <= mjd <= self._mjd[-1]),
        )

    def __repr__(self) -> str:
        lo, hi = self.bounds
        return f"TabulatedEopProvider({len(self._mjd)} rows, MJD {lo:g}..{hi:g})"


def query_eop(provider: Optional[EopProvider], mjd: float, policy: EopPolicy = EopPolicy.RAISE) -> EopRecord:
    """Look up EOP and apply the extrapolation policy.

    Raises:
        MissingProvider: no provider was given
        ExtrapolatedEop: out of bounds under EopPolicy.RAISE
    """
    if provider is None:
        raise MissingProvider(
            "Earth orientation parameters are required for UT1 and Earth-fixed frames",
            requested_mjd=mjd,
        )
    record = provider.lookup(mjd)
    if record.within_bounds:
        return record

    min_mjd, max_mjd = provider.bounds
    message = f"EOP requested at MJD {mjd:.5f} outside table range [{min_mjd:g}, {max_mjd:g}]"
    if EopPolicy.parse(policy) is EopPolicy.RAISE:
        raise ExtrapolatedEop(message, requested_mjd=mjd, min_mjd=min_mjd, max_mjd=max_mjd, value=record)

    log.warning(message)
    py_warnings.warn(
        ExtrapolatedEopWarning(message, requested_mjd=mjd, min_mjd=min_mjd, max_mjd=max_mjd, value=record),
        stacklevel=3,
    )
    return record
