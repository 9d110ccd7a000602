# astrokernel/core/rotations.py
# -----------------------------------------------------------------------------
# Time-Dependent Rotations
#
# A Rotation pairs a passive 3x3 direction-cosine matrix M (source -> target
# components) with its time derivative dM in 1/s, so that
#
#     r' = M r
#     v' = M v + dM r
#
# carries the transport term of a rotating frame.
#
# Composition (apply self, then other):
#     M  = M_o M_s
#     dM = dM_o M_s + M_o dM_s
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

from .config import load_config
from .deltas import SECONDS_PER_DAY
from .timescales import TwoPartJD

__all__ = [
    "Rotation",
    "rx",
    "rz",
    "skew",
    "finite_difference",
]


def _frozen(array, name: str) -> np.ndarray:
    out = np.array(array, dtype=float)
    if out.shape != (3, 3):
        raise ValueError(f"{name} must be a 3x3 matrix, got shape {out.shape}")
    out.setflags(write=False)
    return out


@dataclass(frozen=True, eq=False)
class Rotation:
    """Passive rotation matrix with its time derivative."""

    m: np.ndarray
    dm: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "m", _frozen(self.m, "m"))
        object.__setattr__(self, "dm", _frozen(self.dm, "dm"))

    @classmethod
    def identity(cls) -> "Rotation":
        return cls(np.eye(3), np.zeros((3, 3)))

    @classmethod
    def constant(cls, m) -> "Rotation":
        return cls(m, np.zeros((3, 3)))

    @classmethod
    def with_angular_velocity(cls, m, omega) -> "Rotation":
        """Rotation whose target frame spins at ``omega`` (rad/s, target axes)."""
        m = np.asarray(m, dtype=float)
        return cls(m, -skew(omega) @ m)

    def compose(self, other: "Rotation") -> "Rotation":
        """Apply ``self`` first, then ``other``."""
        return Rotation(other.m @ self.m, other.dm @ self.m + other.m @ self.dm)

    def transpose(self) -> "Rotation":
        return Rotation(self.m.T, self.dm.T)

    def apply(self, position, velocity) -> Tuple[np.ndarray, np.ndarray]:
        p = np.asarray(position, dtype=float)
        v = np.asarray(velocity, dtype=float)
        return self.m @ p, self.m @ v + self.dm @ p

    def __repr__(self) -> str:
        return f"Rotation(m={self.m.tolist()}, dm={self.dm.tolist()})"


def skew(vector) -> np.ndarray:
    x, y, z = (float(c) for c in vector)
    return np.array([[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]])


def rz(angle: float, rate: float = 0.0) -> Rotation:
    """Passive rotation about +z by ``angle`` rad turning at ``rate`` rad/s."""
    c, s = np.cos(angle), np.sin(angle)
    m = np.array([[c, s, 0.0], [-s, c, 0.0], [0.0, 0.0, 1.0]])
    dm = rate * np.array([[-s, c, 0.0], [-c, -s, 0.0], [0.0, 0.0, 0.0]])
    return Rotation(m, dm)


def rx(angle: float, rate: float = 0.0) -> Rotation:
    """Passive rotation about +x by ``angle`` rad turning at ``rate`` rad/s."""
    c, s = np.cos(angle), np.sin(angle)
    m = np.array([[1.0, 0.0, 0.0], [0.0, c, s], [0.0, -s, c]])
    dm = rate * np.array([[0.0, 0.0, 0.0], [0.0, -s, c], [0.0, -c, -s]])
    return Rotation(m, dm)


def finite_difference(
    matrix_at: Callable[[TwoPartJD], np.ndarray],
    jd: TwoPartJD,
    step_seconds: Optional[float] = None,
) -> Rotation:
    """Rotation at ``jd`` with a central-difference derivative.

    For the slowly varying precession/nutation/CIP matrices; ``step_seconds``
    defaults to ASTRO_DERIVATIVE_STEP_SECONDS.
    """
    h = load_config().derivative_step_seconds if step_seconds is None else float(step_seconds)
    h_days = h / SECONDS_PER_DAY
    m = np.asarray(matrix_at(jd), dtype=float)
    ahead = np.asarray(matrix_at(TwoPartJD(jd.jd1, jd.jd2 + h_days)), dtype=float)
    behind = np.asarray(matrix_at(TwoPartJD(jd.jd1, jd.jd2 - h_days)), dtype=float)
    return Rotation(m, (ahead - behind) / (2.0 * h))
