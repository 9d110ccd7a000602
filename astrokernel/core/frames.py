# astrokernel/core/frames.py
# -----------------------------------------------------------------------------
# Reference Frame Graph & Composer
#
# Standards Compliance:
#   • IERS Conventions 2010 (Chapter 5) - GCRS/ICRF to ITRS, CIO-based chain
#   • Equinox-based chain (MOD/TOD/PEF) for IAU 1980, 2000A/B and 2006A models
#   • Vallado et al. (2006) - TEME as TOD(IAU1980) rotated by the equation of
#     the equinoxes
#   • IAU WGCCRE body-fixed frames
#
# Every frame is reached from the ICRF hub along a fixed chain:
#
#   MOD(m)  = P(m)                      CIRF = C
#   TOD(m)  = N(m) P(m)                 TIRF = R(ERA) C
#   PEF(m)  = Rz(GAST) N(m) P(m)        ITRF = W(xp, yp) R(ERA) C
#   TEME    = Rz(EqEq) N(1980) P(1976)  IAU_<BODY> = Rz(W) Rx(pi/2-d) Rz(pi/2+a)
#
# and rotation(source, target) = R_target R_source^T.
#
# Public API:
#   Frame, FrameKind, Frame.parse(name)
#   rotation(source, target, time, context=None) -> Rotation
#   transform(position, velocity, source, target, time, context=None)
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Optional, Tuple, Union

import numpy as np

from .astronomy import (
    NutationModel,
    celestial_intermediate,
    earth_rotation,
    equation_of_equinoxes,
    nutation,
    polar_motion,
    precession,
    sidereal_rotation,
)
from .bodies import Body, lookup_body
from .conversions import ConversionContext, convert, earth_orientation, two_part_jd, ut1_offset, utc_mjd
from .eop import EopRecord
from .errors import InvalidFormat, UnknownBody
from .rotations import Rotation
from .timescales import Time, TimeScale, TwoPartJD

__all__ = [
    "FrameKind",
    "Frame",
    "ICRF",
    "TEME",
    "CIRF",
    "TIRF",
    "ITRF",
    "rotation",
    "transform",
]


class FrameKind(Enum):
    ICRF = "ICRF"
    MOD = "MOD"
    TOD = "TOD"
    PEF = "PEF"
    TEME = "TEME"
    CIRF = "CIRF"
    TIRF = "TIRF"
    ITRF = "ITRF"
    IAU = "IAU"


_MODEL_FRAMES = (FrameKind.MOD, FrameKind.TOD, FrameKind.PEF)
_EOP_FRAMES = (FrameKind.PEF, FrameKind.TIRF, FrameKind.ITRF)

_FRAME_RE = re.compile(r"^(?P<kind>[A-Z]+)(?:\((?P<model>[A-Z0-9_-]*)\))?$")


@dataclass(frozen=True)
class Frame:
    """Closed set of reference frames.

    MOD, TOD and PEF carry a nutation model (IAU2000A when omitted); IAU
    frames carry a body with a rotation model.
    """

    kind: FrameKind
    model: Optional[NutationModel] = None
    body: Optional[Body] = None

    def __post_init__(self):
        kind = self.kind if isinstance(self.kind, FrameKind) else FrameKind(self.kind)
        object.__setattr__(self, "kind", kind)
        if kind in _MODEL_FRAMES:
            object.__setattr__(self, "model", NutationModel.parse(self.model))
        elif self.model is not None:
            raise ValueError(f"{kind.value} does not take a nutation model")

        if kind is FrameKind.IAU:
            if self.body is None:
                raise UnknownBody("IAU frames need a body")
            body = lookup_body(self.body)
            if body.rotation_model is None:
                raise UnknownBody(f"no body-fixed frame for {body.name}", body=body.name)
            object.__setattr__(self, "body", body)
        elif self.body is not None:
            raise ValueError(f"{kind.value} does not take a body")

    # ───────────────────────────── Constructors ─────────────────────────────

    @classmethod
    def mod(cls, model=None) -> "Frame":
        return cls(FrameKind.MOD, NutationModel.parse(model))

    @classmethod
    def tod(cls, model=None) -> "Frame":
        return cls(FrameKind.TOD, NutationModel.parse(model))

    @classmethod
    def pef(cls, model=None) -> "Frame":
        return cls(FrameKind.PEF, NutationModel.parse(model))

    @classmethod
    def iau(cls, body) -> "Frame":
        return cls(FrameKind.IAU, body=lookup_body(body))

    @classmethod
    def parse(cls, value: Union["Frame", str]) -> "Frame":
        """Parse 'ICRF', 'TOD', 'TOD(IAU1980)', 'PEF(IERS2010)', 'IAU_MARS', ..."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise TypeError(f"expected Frame or str, got {type(value).__name__}")
        text = value.strip().upper()
        if text.startswith("IAU_"):
            return cls.iau(text[4:])
        match = _FRAME_RE.match(text.replace(" ", ""))
        if match is None:
            raise UnknownBody(f"unknown frame: {value!r}", frame=value)
        try:
            kind = FrameKind(match.group("kind"))
        except ValueError:
            raise UnknownBody(f"unknown frame: {value!r}", frame=value) from None
        if kind is FrameKind.IAU:
            raise UnknownBody(f"unknown frame: {value!r}", frame=value)
        model = match.group("model")
        if model is not None and kind not in _MODEL_FRAMES:
            raise InvalidFormat(f"{kind.value} does not take a nutation model", frame=value)
        return cls(kind, NutationModel.parse(model or None) if kind in _MODEL_FRAMES else None)

    # ───────────────────────────── Properties ─────────────────────────────

    @property
    def name(self) -> str:
        if self.kind is FrameKind.IAU:
            return f"IAU_{self.body.name.replace(' ', '_')}"
        if self.kind in _MODEL_FRAMES:
            return f"{self.kind.value}({self.model.value})"
        return self.kind.value

    @property
    def requires_eop(self) -> bool:
        return self.kind in _EOP_FRAMES

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"Frame({self.name})"


ICRF = Frame(FrameKind.ICRF)
TEME = Frame(FrameKind.TEME)
CIRF = Frame(FrameKind.CIRF)
TIRF = Frame(FrameKind.TIRF)
ITRF = Frame(FrameKind.ITRF)


# ───────────────────────────── Composer ─────────────────────────────


class _FrameEpoch:
    """Time arguments of one transformation, computed on first use."""

    def __init__(self, time, context: ConversionContext):
        self.time = time
        self.context = context

    @cached_property
    def tt(self) -> TwoPartJD:
        return two_part_jd(self.time, TimeScale.TT, self.context)

    @cached_property
    def tai(self) -> Time:
        return convert(self.time, TimeScale.TAI, self.context)

    @cached_property
    def eop(self) -> EopRecord:
        # one query per transformation feeds both UT1 and the pole
        return earth_orientation(self.tai, self.context)

    @cached_property
    def ut1(self) -> TwoPartJD:
        leap_seconds = self.context.leap_seconds
        offset = ut1_offset(self.eop, utc_mjd(self.tai, leap_seconds), leap_seconds)
        return Time.from_delta(TimeScale.UT1, self.tai.delta + offset).two_part_julian_date()

    @cached_property
    def tdb_seconds(self) -> float:
        return convert(self.time, TimeScale.TDB, self.context).seconds

    @cached_property
    def pole(self) -> Tuple[float, float]:
        return self.eop.pole_x, self.eop.pole_y


def _from_icrf(frame: Frame, epoch: _FrameEpoch) -> Rotation:
    kind = frame.kind
    if kind is FrameKind.ICRF:
        return Rotation.identity()
    if kind is FrameKind.IAU:
        return frame.body.rotation(epoch.tdb_seconds)
    if kind in (FrameKind.CIRF, FrameKind.TIRF, FrameKind.ITRF):
        out = celestial_intermediate(epoch.tt)
        if kind is FrameKind.CIRF:
            return out
        out = out.compose(earth_rotation(epoch.ut1))
        if kind is FrameKind.TIRF:
            return out
        return out.compose(polar_motion(epoch.tt, *epoch.pole))

    model = NutationModel.IAU1980 if kind is FrameKind.TEME else frame.model
    out = precession(model, epoch.tt)
    if kind is FrameKind.MOD:
        return out
    out = out.compose(nutation(model, epoch.tt))
    if kind is FrameKind.TOD:
        return out
    if kind is FrameKind.TEME:
        return out.compose(equation_of_equinoxes(epoch.tt))
    return out.compose(sidereal_rotation(model, epoch.ut1, epoch.tt))


def rotation(source, target, time, context=None) -> Rotation:
    """Rotation taking source-frame components to target-frame components.

    Raises:
        MissingProvider: PEF, TIRF or ITRF involved without EOP data
        ExtrapolatedEop: EOP outside the table under the raise policy
        UnknownBody: unrecognized frame name
    """
    source = Frame.parse(source)
    target = Frame.parse(target)
    if source == target:
        return Rotation.identity()
    epoch = _FrameEpoch(time, ConversionContext.coerce(context))
    return _from_icrf(source, epoch).transpose().compose(_from_icrf(target, epoch))


def transform(position, velocity, source, target, time, context=None) -> Tuple[np.ndarray, np.ndarray]:
    """Rotate a position/velocity pair, including the transport term."""
    return rotation(source, target, time, context).apply(position, velocity)
