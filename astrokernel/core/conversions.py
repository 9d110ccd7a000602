# astrokernel/core/conversions.py
# -----------------------------------------------------------------------------
# Time Scale Conversion Engine
#
# Standards Compliance:
#   • IAU 1991 Resolution A4 / IAU 2000 Resolution B1.9 - TT, TCG (L_G)
#   • IAU 2006 Resolution B3 - TDB, TCB (L_B, TDB0)
#   • Fairhead & Bretagnon (1990) leading term for TDB - TT
#   • IERS Conventions 2010 (Chapter 5) - UT1 from UT1-UTC and TAI-UTC
#
# Routing:
#   Every scale has a fixed chain to TT. A conversion walks the source chain
#   up to the first shared node and down the target chain; each hop evaluates
#   its offset at the intermediate instant.
#
#     TAI -> TT        TDB -> TT        TCG -> TT
#     TCB -> TDB -> TT                  UT1 -> TAI -> TT
#
# Public API:
#   ConversionContext(eop_provider=None, leap_seconds=None, eop_policy=None)
#   convert(time, target, context=None) -> Time | Utc
#   offset(source, target, delta, context=None) -> Duration
#   two_part_jd(time, scale, context=None) -> TwoPartJD
#   earth_orientation(time, context=None) -> EopRecord
#   ut1_offset(record, utc_mjd, leap_seconds) -> Duration
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple, Union

from .config import EopPolicy, load_config
from .deltas import SECONDS_PER_DAY, Duration
from .eop import EopProvider, EopRecord, query_eop
from .leapseconds import LeapSecondTable, default_leap_seconds
from .timescales import Time, TimeScale, TwoPartJD

__all__ = [
    "ConversionContext",
    "convert",
    "offset",
    "two_part_jd",
    "earth_orientation",
    "utc_mjd",
    "ut1_offset",
    "Constants",
]

log = logging.getLogger(__name__)

# ───────────────────────────── Constants ─────────────────────────────


class Constants:
    """Defining constants of the relativistic time scales."""

    # TT - TAI, exact
    D_TAI_TT = Duration(32, 184 * 10**15)
    # 1977-01-01T00:00:32.184 TT as seconds from J2000
    J77_TT = Duration(-725803168, 184 * 10**15)

    LG = 6.969290134e-10
    INV_LG = LG / (1.0 - LG)

    LB = 1.550519768e-8
    INV_LB = LB / (1.0 - LB)
    ONE_MINUS_LB_INV = 1.0 / (1.0 - LB)
    TDB_0 = -6.55e-5
    TCB_77 = TDB_0 + LB * -725803167.816

    # TDB - TT periodic term
    K = 1.657e-3
    EB = 1.671e-2
    M_0 = 6.239996
    M_1 = 1.99096871e-7


# ───────────────────────────── Context ─────────────────────────────


@dataclass(frozen=True)
class ConversionContext:
    """Explicit inputs of scale conversions and Earth-fixed rotations."""

    eop_provider: Optional[EopProvider] = None
    leap_seconds: Optional[LeapSecondTable] = None
    eop_policy: Optional[EopPolicy] = None

    def __post_init__(self):
        if self.leap_seconds is None:
            object.__setattr__(self, "leap_seconds", default_leap_seconds())
        policy = load_config().eop_policy if self.eop_policy is None else EopPolicy.parse(self.eop_policy)
        object.__setattr__(self, "eop_policy", policy)

    @classmethod
    def coerce(cls, context) -> "ConversionContext":
        """Accept None, a context, or a bare EOP provider."""
        if context is None:
            return cls()
        if isinstance(context, cls):
            return context
        if isinstance(context, EopProvider):
            return cls(eop_provider=context)
        raise TypeError(f"expected ConversionContext or EOP provider, got {type(context).__name__}")


# ───────────────────────────── Single Hops ─────────────────────────────


def _tai_to_tt(delta: Duration, ctx: ConversionContext) -> Duration:
    return Constants.D_TAI_TT


def _tt_to_tai(delta: Duration, ctx: ConversionContext) -> Duration:
    return -Constants.D_TAI_TT


def _tt_to_tcg(delta: Duration, ctx: ConversionContext) -> Duration:
    return Duration(Constants.INV_LG * (delta - Constants.J77_TT).to_decimal_seconds())


def _tcg_to_tt(delta: Duration, ctx: ConversionContext) -> Duration:
    return Duration(-Constants.LG * (delta - Constants.J77_TT).to_decimal_seconds())


def _tdb_to_tcb(delta: Duration, ctx: ConversionContext) -> Duration:
    return Duration(
        Constants.INV_LB * delta.to_decimal_seconds() - Constants.ONE_MINUS_LB_INV * Constants.TCB_77
    )


def _tcb_to_tdb(delta: Duration, ctx: ConversionContext) -> Duration:
    return Duration(Constants.TCB_77 - Constants.LB * delta.to_decimal_seconds())


def _tdb_minus_tt(tt_seconds: float) -> float:
    g = Constants.M_0 + Constants.M_1 * tt_seconds
    return Constants.K * math.sin(g + Constants.EB * math.sin(g))


def _tt_to_tdb(delta: Duration, ctx: ConversionContext) -> Duration:
    return Duration(_tdb_minus_tt(delta.to_decimal_seconds()))


def _tdb_to_tt(delta: Duration, ctx: ConversionContext) -> Duration:
    tdb = delta.to_decimal_seconds()
    correction = 0.0
    for _ in range(2):
        g = Constants.M_0 + Constants.M_1 * (tdb + correction)
        correction = -Constants.K * math.sin(g + Constants.EB * math.sin(g))
    return Duration(correction)


def utc_mjd(tai: Union[Time, Duration], leap_seconds: LeapSecondTable) -> float:
    """UTC modified Julian date (with fraction) of a TAI instant."""
    delta = tai.delta if isinstance(tai, Time) else tai
    utc = delta - Duration(leap_seconds.cumulative_offset(delta))
    return 51544.5 + utc.to_decimal_seconds() / SECONDS_PER_DAY


def ut1_offset(record: EopRecord, mjd: float, leap_seconds: LeapSecondTable) -> Duration:
    """UT1 - TAI from a record queried at UTC MJD ``mjd``.

    TAI - UTC is taken on the same UTC day as the query; inside an inserted
    second the UTC MJD already points at the next day.
    """
    day = math.floor(mjd)
    return Duration(record.ut1_minus_utc - leap_seconds.offset_for_utc_mjd(day, mjd - day))


def _ut1_minus_tai(tai: Duration, ctx: ConversionContext) -> Duration:
    mjd = utc_mjd(tai, ctx.leap_seconds)
    return ut1_offset(query_eop(ctx.eop_provider, mjd, ctx.eop_policy), mjd, ctx.leap_seconds)


def _tai_to_ut1(delta: Duration, ctx: ConversionContext) -> Duration:
    return _ut1_minus_tai(delta, ctx)


def _ut1_to_tai(delta: Duration, ctx: ConversionContext) -> Duration:
    # solve tai + (UT1 - TAI)(tai) = ut1
    tai = delta
    for _ in range(2):
        tai = delta - _ut1_minus_tai(tai, ctx)
    return tai - delta


Hop = Callable[[Duration, ConversionContext], Duration]

_HOPS: Dict[Tuple[TimeScale, TimeScale], Hop] = {
    (TimeScale.TAI, TimeScale.TT): _tai_to_tt,
    (TimeScale.TT, TimeScale.TAI): _tt_to_tai,
    (TimeScale.TT, TimeScale.TCG): _tt_to_tcg,
    (TimeScale.TCG, TimeScale.TT): _tcg_to_tt,
    (TimeScale.TT, TimeScale.TDB): _tt_to_tdb,
    (TimeScale.TDB, TimeScale.TT): _tdb_to_tt,
    (TimeScale.TDB, TimeScale.TCB): _tdb_to_tcb,
    (TimeScale.TCB, TimeScale.TDB): _tcb_to_tdb,
    (TimeScale.TAI, TimeScale.UT1): _tai_to_ut1,
    (TimeScale.UT1, TimeScale.TAI): _ut1_to_tai,
}

_CHAIN_TO_TT: Dict[TimeScale, Tuple[TimeScale, ...]] = {
    TimeScale.TT: (TimeScale.TT,),
    TimeScale.TAI: (TimeScale.TAI, TimeScale.TT),
    TimeScale.TDB: (TimeScale.TDB, TimeScale.TT),
    TimeScale.TCG: (TimeScale.TCG, TimeScale.TT),
    TimeScale.TCB: (TimeScale.TCB, TimeScale.TDB, TimeScale.TT),
    TimeScale.UT1: (TimeScale.UT1, TimeScale.TAI, TimeScale.TT),
}


def _route(source: TimeScale, target: TimeScale) -> Tuple[TimeScale, ...]:
    up = _CHAIN_TO_TT[source]
    down = _CHAIN_TO_TT[target]
    for i, node in enumerate(up):
        if node in down:
            j = down.index(node)
            return up[: i + 1] + tuple(reversed(down[:j]))
    raise AssertionError(f"no route from {source} to {target}")


# ───────────────────────────── Public API ─────────────────────────────


def offset(
    source: Union[TimeScale, str],
    target: Union[TimeScale, str],
    delta: Union[Duration, Time],
    context=None,
) -> Duration:
    """Offset to add to an instant in ``source`` to express it in ``target``."""
    source = TimeScale.parse(source)
    target = TimeScale.parse(target)
    if isinstance(delta, Time):
        delta = delta.delta
    ctx = ConversionContext.coerce(context)

    total = Duration()
    current = delta
    path = _route(source, target)
    for a, b in zip(path, path[1:]):
        step = _HOPS[(a, b)](current, ctx)
        current = current + step
        total = total + step
    return total


def convert(time, target, context=None):
    """Express ``time`` (a Time or Utc) in ``target`` (a TimeScale or "UTC").

    Raises:
        MissingProvider: UT1 requested without EOP data
        ExtrapolatedEop: UT1 outside the EOP table under the raise policy
        InvalidFormat: unknown target scale name
    """
    from .utc import Utc

    ctx = ConversionContext.coerce(context)
    if isinstance(time, Utc):
        time = time.to_tai(ctx.leap_seconds)
    if not isinstance(time, Time):
        raise TypeError(f"expected Time or Utc, got {type(time).__name__}")

    if isinstance(target, str) and target.strip().upper() == "UTC":
        tai = time if time.scale is TimeScale.TAI else convert(time, TimeScale.TAI, ctx)
        return Utc.from_tai(tai, ctx.leap_seconds)

    target = TimeScale.parse(target)
    if time.scale is target:
        return time
    return Time.from_delta(target, time.delta + offset(time.scale, target, time.delta, ctx))


def two_part_jd(time, scale: Union[TimeScale, str], context=None) -> TwoPartJD:
    """Two-part Julian date of ``time`` in ``scale`` for ERFA routines."""
    return convert(time, scale, context).two_part_julian_date()


def earth_orientation(time, context=None) -> EopRecord:
    """EOP record at the UTC date of ``time`` under the context policy."""
    ctx = ConversionContext.coerce(context)
    tai = convert(time, TimeScale.TAI, ctx)
    mjd = utc_mjd(tai, ctx.leap_seconds)
    log.debug(f"EOP query at UTC MJD {mjd:.6f}")
    return query_eop(ctx.eop_provider, mjd, ctx.eop_policy)
