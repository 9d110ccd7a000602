# astrokernel/core/astronomy.py
# -----------------------------------------------------------------------------
# Earth Rotation Models
#
# Standards Compliance:
#   • IAU 1976 precession / IAU 1980 nutation (IERS 1996)
#   • IAU 2000A/B precession-nutation with frame bias (IERS 2003)
#   • IAU 2006/2000A precession-nutation, CIP/CIO based chain (IERS 2010)
#   • IAU SOFA/ERFA algorithms throughout
#
# Conventions:
#   • All matrices are passive (they change the components of a fixed vector)
#   • Precession, nutation, equation of the equinoxes and the CIP matrix take
#     TT; sidereal time and the Earth rotation angle take UT1
#   • Pole coordinates enter in arcseconds
#
# Public API:
#   NutationModel.parse(name)
#   precession(model, tt) / nutation(model, tt) / equation_of_equinoxes(tt)
#   sidereal_rotation(model, ut1, tt) / greenwich_apparent_sidereal_time(...)
#   celestial_intermediate(tt) / earth_rotation(ut1) / polar_motion(tt, xp, yp)
# -----------------------------------------------------------------------------

from __future__ import annotations

import math
from enum import Enum
from typing import Optional, Union

import erfa  # pyERFA - SOFA/ERFA
import numpy as np

from .errors import InvalidFormat
from .rotations import Rotation, finite_difference, rz
from .timescales import TwoPartJD

__all__ = [
    "NutationModel",
    "Constants",
    "precession_matrix",
    "nutation_matrix",
    "precession",
    "nutation",
    "equation_of_equinoxes",
    "greenwich_apparent_sidereal_time",
    "sidereal_rotation",
    "celestial_intermediate",
    "earth_rotation",
    "polar_motion",
]

# ───────────────────────────── Constants ─────────────────────────────


class Constants:
    # Nominal Earth rotation rate (rad/s), IERS Conventions 2010
    EARTH_ROTATION_RATE = 7.292115146706979e-5
    ARCSEC_TO_RAD = math.pi / (180.0 * 3600.0)


class NutationModel(Enum):
    """Precession-nutation model families."""
    IAU1980 = "IAU1980"    # IERS 1996
    IAU2000A = "IAU2000A"  # IERS 2003
    IAU2000B = "IAU2000B"
    IAU2006A = "IAU2006A"  # IERS 2010

    @classmethod
    def parse(cls, value: Union["NutationModel", str, None]) -> "NutationModel":
        if value is None:
            return cls.IAU2000A
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().upper().replace("-", "").replace("_", "")
            name = _MODEL_ALIASES.get(name, name)
            try:
                return cls(name)
            except ValueError:
                pass
        raise InvalidFormat(f"unknown nutation model: {value!r}", model=value)


_MODEL_ALIASES = {
    "IERS1996": "IAU1980",
    "IERS2003": "IAU2000A",
    "IERS2010": "IAU2006A",
}

# ───────────────────────────── Matrices ─────────────────────────────


def precession_matrix(model: NutationModel, tt: TwoPartJD) -> np.ndarray:
    """ICRF/GCRS -> mean of date."""
    if model is NutationModel.IAU1980:
        return erfa.pmat76(tt.jd1, tt.jd2)
    if model is NutationModel.IAU2006A:
        return erfa.pmat06(tt.jd1, tt.jd2)
    # IAU 2000 bias-precession
    return erfa.pmat00(tt.jd1, tt.jd2)


def _obliquity_and_nutation(model: NutationModel, tt: TwoPartJD):
    if model is NutationModel.IAU1980:
        dpsi, deps = erfa.nut80(tt.jd1, tt.jd2)
        return erfa.obl80(tt.jd1, tt.jd2), dpsi, deps
    if model is NutationModel.IAU2006A:
        dpsi, deps = erfa.nut06a(tt.jd1, tt.jd2)
        return erfa.obl06(tt.jd1, tt.jd2), dpsi, deps
    if model is NutationModel.IAU2000B:
        dpsi, deps = erfa.nut00b(tt.jd1, tt.jd2)
    else:
        dpsi, deps = erfa.nut00a(tt.jd1, tt.jd2)
    # IAU 2000 precession-rate correction to the 1980 obliquity
    _, depspr = erfa.pr00(tt.jd1, tt.jd2)
    return erfa.obl80(tt.jd1, tt.jd2) + depspr, dpsi, deps


def nutation_matrix(model: NutationModel, tt: TwoPartJD) -> np.ndarray:
    """Mean of date -> true of date."""
    epsa, dpsi, deps = _obliquity_and_nutation(model, tt)
    return erfa.numat(epsa, dpsi, deps)


def greenwich_apparent_sidereal_time(model: NutationModel, ut1: TwoPartJD, tt: TwoPartJD) -> float:
    if model is NutationModel.IAU1980:
        gast = erfa.gmst82(ut1.jd1, ut1.jd2) + erfa.eqeq94(tt.jd1, tt.jd2)
    elif model is NutationModel.IAU2000B:
        gast = erfa.gst00b(ut1.jd1, ut1.jd2)
    elif model is NutationModel.IAU2006A:
        gast = erfa.gst06a(ut1.jd1, ut1.jd2, tt.jd1, tt.jd2)
    else:
        gast = erfa.gst00a(ut1.jd1, ut1.jd2, tt.jd1, tt.jd2)
    return float(erfa.anp(gast))


# ───────────────────────────── Rotations ─────────────────────────────


def precession(model: NutationModel, tt: TwoPartJD, step_seconds: Optional[float] = None) -> Rotation:
    return finite_difference(lambda jd: precession_matrix(model, jd), tt, step_seconds)


def nutation(model: NutationModel, tt: TwoPartJD, step_seconds: Optional[float] = None) -> Rotation:
    return finite_difference(lambda jd: nutation_matrix(model, jd), tt, step_seconds)


def equation_of_equinoxes(tt: TwoPartJD, step_seconds: Optional[float] = None) -> Rotation:
    """TOD(IAU1980) -> TEME."""
    return finite_difference(lambda jd: rz(erfa.eqeq94(jd.jd1, jd.jd2)).m, tt, step_seconds)


_EARTH_SPIN = (0.0, 0.0, Constants.EARTH_ROTATION_RATE)


def sidereal_rotation(model: NutationModel, ut1: TwoPartJD, tt: TwoPartJD) -> Rotation:
    """TOD -> PEF."""
    gast = greenwich_apparent_sidereal_time(model, ut1, tt)
    return Rotation.with_angular_velocity(rz(gast).m, _EARTH_SPIN)


def celestial_intermediate(tt: TwoPartJD, step_seconds: Optional[float] = None) -> Rotation:
    """ICRF/GCRS -> CIRS from the IAU 2006/2000A X, Y, s."""
    def matrix(jd: TwoPartJD) -> np.ndarray:
        x, y, s = erfa.xys06a(jd.jd1, jd.jd2)
        return erfa.c2ixys(x, y, s)

    return finite_difference(matrix, tt, step_seconds)


def earth_rotation(ut1: TwoPartJD) -> Rotation:
    """CIRS -> TIRS."""
    return Rotation.with_angular_velocity(rz(erfa.era00(ut1.jd1, ut1.jd2)).m, _EARTH_SPIN)


def polar_motion(tt: TwoPartJD, pole_x: float, pole_y: float) -> Rotation:
    """TIRS -> ITRS; pole coordinates in arcseconds."""
    xp = pole_x * Constants.ARCSEC_TO_RAD
    yp = pole_y * Constants.ARCSEC_TO_RAD
    return Rotation.constant(erfa.pom00(xp, yp, erfa.sp00(tt.jd1, tt.jd2)))
