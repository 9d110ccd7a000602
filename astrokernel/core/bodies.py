# astrokernel/core/bodies.py
# -----------------------------------------------------------------------------
# Solar-System Bodies and IAU Rotation Models
#
# Standards Compliance:
#   • Report of the IAU Working Group on Cartographic Coordinates and
#     Rotational Elements: 2015 (Archinal et al. 2018), 2009 model for Mars
#   • NAIF integer ID codes
#
# Element model (degrees; t = TDB seconds since J2000):
#   angle = c0 + c1 t/dt + c2 t^2/dt^2 + sum_i c_i f(theta0_i + theta1_i T)
#   dt = Julian century for alpha/delta and one day for W, T in Julian
#   centuries, f = cos for delta and sin otherwise
#
# Public API:
#   lookup_body(name_or_id) -> Body
#   body.rotational_elements(t) / body.rotational_element_rates(t)
#   body.rotation(t) -> Rotation (ICRF -> IAU_<BODY>)
# -----------------------------------------------------------------------------

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple, Union

from .deltas import SECONDS_PER_DAY, SECONDS_PER_JULIAN_CENTURY
from .errors import UnknownBody
from .rotations import Rotation, rx, rz

__all__ = [
    "RotationalElement",
    "RotationModel",
    "Body",
    "BODIES",
    "lookup_body",
]

Elements = Tuple[float, float, float]


@dataclass(frozen=True)
class RotationalElement:
    """One of alpha, delta or W in degrees."""

    c0: float
    c1: float = 0.0
    c2: float = 0.0
    trig: Tuple[float, ...] = ()
    declination: bool = False
    per_day: bool = False

    @property
    def dt(self) -> int:
        return SECONDS_PER_DAY if self.per_day else SECONDS_PER_JULIAN_CENTURY

    def angle(self, t: float, thetas: Sequence[Tuple[float, float]]) -> float:
        dt = self.dt
        value = self.c0 + self.c1 * t / dt + self.c2 * t**2 / dt**2
        centuries = t / SECONDS_PER_JULIAN_CENTURY
        f = math.cos if self.declination else math.sin
        for c, (theta0, theta1) in zip(self.trig, thetas):
            value += c * f(math.radians(theta0 + theta1 * centuries))
        return math.radians(value)

    def rate(self, t: float, thetas: Sequence[Tuple[float, float]]) -> float:
        dt = self.dt
        value = self.c1 / dt + 2.0 * self.c2 * t / dt**2
        centuries = t / SECONDS_PER_JULIAN_CENTURY
        # d/dt cos = -sin
        sign, f = (-1.0, math.sin) if self.declination else (1.0, math.cos)
        for c, (theta0, theta1) in zip(self.trig, thetas):
            theta_dot = math.radians(theta1) / SECONDS_PER_JULIAN_CENTURY
            value += sign * c * theta_dot * f(math.radians(theta0 + theta1 * centuries))
        return math.radians(value)


@dataclass(frozen=True)
class RotationModel:
    right_ascension: RotationalElement
    declination: RotationalElement
    rotation_angle: RotationalElement
    # nutation-precession angles (theta0 deg, theta1 deg/century)
    thetas: Tuple[Tuple[float, float], ...] = ()

    def elements(self, t: float) -> Elements:
        return (
            self.right_ascension.angle(t, self.thetas),
            self.declination.angle(t, self.thetas),
            self.rotation_angle.angle(t, self.thetas),
        )

    def rates(self, t: float) -> Elements:
        return (
            self.right_ascension.rate(t, self.thetas),
            self.declination.rate(t, self.thetas),
            self.rotation_angle.rate(t, self.thetas),
        )


def _ra(c0, c1=0.0, trig=()):
    return RotationalElement(c0, c1, trig=tuple(trig))


def _dec(c0, c1=0.0, trig=()):
    return RotationalElement(c0, c1, trig=tuple(trig), declination=True)


def _w(c0, c1, c2=0.0, trig=()):
    return RotationalElement(c0, c1, c2, trig=tuple(trig), per_day=True)


@dataclass(frozen=True)
class Body:
    naif_id: int
    name: str
    rotation_model: Optional[RotationModel] = None

    def _model(self) -> RotationModel:
        if self.rotation_model is None:
            raise UnknownBody(f"no rotation model for {self.name}", body=self.name, naif_id=self.naif_id)
        return self.rotation_model

    def rotational_elements(self, t: float) -> Elements:
        """(alpha, delta, W) in radians at ``t`` TDB seconds past J2000."""
        return self._model().elements(t)

    def rotational_element_rates(self, t: float) -> Elements:
        """Rates of (alpha, delta, W) in rad/s."""
        return self._model().rates(t)

    def rotation(self, t: float) -> Rotation:
        """ICRF -> IAU body-fixed: Rz(W) Rx(pi/2 - delta) Rz(pi/2 + alpha)."""
        alpha, delta, w = self.rotational_elements(t)
        alpha_dot, delta_dot, w_dot = self.rotational_element_rates(t)
        return (
            rz(math.pi / 2 + alpha, alpha_dot)
            .compose(rx(math.pi / 2 - delta, -delta_dot))
            .compose(rz(w % (2 * math.pi), w_dot))
        )

    def __str__(self) -> str:
        return self.name.title()


# ───────────────────────────── Rotation Models ─────────────────────────────

_SUN = RotationModel(_ra(286.13), _dec(63.87), _w(84.176, 14.1844))

_MERCURY = RotationModel(
    _ra(281.0103, -0.0328),
    _dec(61.4155, -0.0049),
    _w(329.5988, 6.1385108, trig=(0.01067257, -0.00112309, -0.0001104, -0.00002539, -0.00000571)),
    thetas=(
        (174.7910857, 149472.53587500003),
        (349.5821714, 298945.07175000006),
        (164.3732571, 448417.60762500006),
        (339.1643429, 597890.1435000001),
        (153.9554286, 747362.679375),
    ),
)

_VENUS = RotationModel(_ra(272.76), _dec(67.16), _w(160.20, -1.4813688))

_EARTH = RotationModel(_ra(0.0, -0.641), _dec(90.0, -0.557), _w(190.147, 360.9856235))

_MOON = RotationModel(
    _ra(269.9949, 0.0031, trig=(-3.8787, -0.1204, 0.0700, -0.0172, 0.0, 0.0072, 0.0, 0.0, 0.0, -0.0052, 0.0, 0.0, 0.0043)),
    _dec(66.5392, 0.0130, trig=(1.5419, 0.0239, -0.0278, 0.0068, 0.0, -0.0029, 0.0009, 0.0, 0.0, 0.0008, 0.0, 0.0, -0.0009)),
    _w(
        38.3213,
        13.17635815,
        -1.4e-12,
        trig=(3.5610, 0.1208, -0.0642, 0.0158, 0.0252, -0.0066, -0.0047, -0.0046, 0.0028, 0.0052, 0.0040, 0.0019, -0.0044),
    ),
    thetas=(
        (125.045, -1935.5364525),
        (250.089, -3871.072905),
        (260.008, 475263.3328725),
        (176.625, 487269.629985),
        (357.529, 35999.0509575),
        (311.589, 964468.49931),
        (134.963, 477198.869325),
        (276.617, 12006.300765),
        (34.226, 63863.5132425),
        (15.134, -5806.6093575),
        (119.743, 131.84064),
        (239.961, 6003.1503825),
        (25.053, 473327.79642),
    ),
)

# IAU 2009
_MARS = RotationModel(_ra(317.68143, -0.1061), _dec(52.88650, -0.0609), _w(176.630, 350.89198226))

_JUPITER = RotationModel(
    _ra(268.056595, -0.006499, trig=(0.000117, 0.000938, 0.001432, 0.000030, 0.002150)),
    _dec(64.495303, 0.002413, trig=(0.000050, 0.000404, 0.000617, -0.000013, 0.000926)),
    _w(284.95, 870.536),
    thetas=(
        (99.360714, 4850.4046),
        (175.895369, 1191.9605),
        (300.323162, 262.5475),
        (114.012305, 6070.2476),
        (49.511251, 64.3000),
    ),
)

_SATURN = RotationModel(_ra(40.589, -0.036), _dec(83.537, -0.004), _w(38.90, 810.7939024))

_URANUS = RotationModel(_ra(257.311), _dec(-15.175), _w(203.81, -501.1600928))

_NEPTUNE = RotationModel(
    _ra(299.36, trig=(0.70,)),
    _dec(43.46, trig=(-0.51,)),
    _w(249.978, 541.1397757, trig=(-0.48,)),
    thetas=((357.85, 52.316),),
)

_PLUTO = RotationModel(_ra(132.993), _dec(-6.163), _w(302.695, 56.3625225))


# ───────────────────────────── Catalog ─────────────────────────────

BODIES: Tuple[Body, ...] = (
    Body(0, "SOLAR SYSTEM BARYCENTER"),
    Body(1, "MERCURY BARYCENTER"),
    Body(2, "VENUS BARYCENTER"),
    Body(3, "EARTH BARYCENTER"),
    Body(4, "MARS BARYCENTER"),
    Body(5, "JUPITER BARYCENTER"),
    Body(6, "SATURN BARYCENTER"),
    Body(7, "URANUS BARYCENTER"),
    Body(8, "NEPTUNE BARYCENTER"),
    Body(9, "PLUTO BARYCENTER"),
    Body(10, "SUN", _SUN),
    Body(199, "MERCURY", _MERCURY),
    Body(299, "VENUS", _VENUS),
    Body(399, "EARTH", _EARTH),
    Body(301, "MOON", _MOON),
    Body(499, "MARS", _MARS),
    Body(401, "PHOBOS"),
    Body(402, "DEIMOS"),
    Body(599, "JUPITER", _JUPITER),
    Body(699, "SATURN", _SATURN),
    Body(799, "URANUS", _URANUS),
    Body(899, "NEPTUNE", _NEPTUNE),
    Body(999, "PLUTO", _PLUTO),
)

_BY_ID: Dict[int, Body] = {body.naif_id: body for body in BODIES}
_BY_NAME: Dict[str, Body] = {body.name: body for body in BODIES}
_BY_NAME.update({
    "SSB": _BY_ID[0],
    "EMB": _BY_ID[3],
    "EARTH MOON BARYCENTER": _BY_ID[3],
    "LUNA": _BY_ID[301],
})


def lookup_body(name_or_id: Union[str, int, Body]) -> Body:
    """Resolve a body by name (case-insensitive, '_' or ' ') or NAIF ID."""
    if isinstance(name_or_id, Body):
        return name_or_id
    if isinstance(name_or_id, int) and not isinstance(name_or_id, bool):
        body = _BY_ID.get(name_or_id)
    elif isinstance(name_or_id, str):
        key = " ".join(name_or_id.replace("_", " ").upper().split())
        body = _BY_NAME.get(key)
    else:
        body = None
    if body is None:
        raise UnknownBody(f"unknown body: {name_or_id!r}", body=name_or_id)
    return body
