# astrokernel/core/ephemeris_adapter.py
# -----------------------------------------------------------------------------
# Ephemeris Adapter (JPL SPK)
#
# Standards Compliance:
#   • NAIF SPK type 2/3 Chebyshev segments via jplephem
#   • Positions in km, velocities in km/s, ICRF axes, solar-system barycenter
#   • Epochs evaluated in TDB (two-part Julian date)
#
# Kernel search order:
#   1. ASTRO_EPHEMERIS
#   2. EPHEM_DIR / EPHEM_FILE
#   3. ./data, ~/ephemeris, /usr/local/share/ephemeris (*.bsp)
#
# Public API:
#   Ephemeris (protocol): position_velocity(body, time) -> (r, v)
#   SpkEphemeris.open(path) / SpkEphemeris.discover()
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import os
import threading
from typing import Dict, List, NamedTuple, Optional, Protocol, Tuple

import numpy as np
from jplephem.spk import SPK

from .bodies import lookup_body
from .config import load_config
from .conversions import ConversionContext, two_part_jd
from .deltas import SECONDS_PER_DAY
from .errors import CoverageError, UnknownBody
from .timescales import TimeScale

__all__ = [
    "Ephemeris",
    "KernelInfo",
    "SpkEphemeris",
    "find_kernel_paths",
]

log = logging.getLogger(__name__)

SOLAR_SYSTEM_BARYCENTER = 0


class Ephemeris(Protocol):
    """Barycentric ICRF state source."""

    def position_velocity(self, body, time) -> Tuple[np.ndarray, np.ndarray]:
        ...


class KernelInfo(NamedTuple):
    """Information about a loaded ephemeris kernel."""
    path: Optional[str]
    name: str
    coverage_jd: Tuple[float, float]
    bodies: List[int]


def find_kernel_paths() -> List[str]:
    """Candidate SPK files, configured locations first."""
    config = load_config()
    paths = []
    if config.ephemeris_path:
        paths.append(config.ephemeris_path)

    search_dirs = [
        os.path.join(os.getcwd(), "data"),
        os.path.expanduser("~/ephemeris"),
        "/usr/local/share/ephemeris",
    ]
    if config.ephemeris_dir:
        search_dirs.insert(0, config.ephemeris_dir)

    for search_dir in search_dirs:
        if os.path.isdir(search_dir):
            for file in sorted(os.listdir(search_dir)):
                if file.lower().endswith(".bsp"):
                    paths.append(os.path.join(search_dir, file))

    return [p for p in paths if os.path.isfile(p)]


class SpkEphemeris:
    """Ephemeris backed by a jplephem SPK kernel.

    Segments are chained through their centers down to the solar-system
    barycenter, so the Moon (301 -> 3 -> 0) works with a DE kernel.
    """

    def __init__(self, kernel: SPK, path: Optional[str] = None, context: Optional[ConversionContext] = None):
        self._kernel = kernel
        self._path = path
        self._context = ConversionContext.coerce(context)
        self._segments = dict(kernel.pairs)
        self._centers: Dict[int, int] = {target: center for center, target in self._segments}
        # segment data is loaded lazily by jplephem
        self._lock = threading.Lock()

    @classmethod
    def open(cls, path: str, context: Optional[ConversionContext] = None) -> "SpkEphemeris":
        log.debug(f"Opening SPK kernel {path}")
        return cls(SPK.open(path), path=path, context=context)

    @classmethod
    def discover(cls, context: Optional[ConversionContext] = None) -> "SpkEphemeris":
        paths = find_kernel_paths()
        if not paths:
            raise FileNotFoundError(
                "No SPK kernel found; set ASTRO_EPHEMERIS or EPHEM_DIR/EPHEM_FILE"
            )
        log.info(f"Using ephemeris kernel {paths[0]}")
        return cls.open(paths[0], context=context)

    def close(self) -> None:
        self._kernel.close()

    def __enter__(self) -> "SpkEphemeris":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def info(self) -> KernelInfo:
        segments = list(self._segments.values())
        return KernelInfo(
            path=self._path,
            name=os.path.basename(self._path) if self._path else "<memory>",
            coverage_jd=(
                max(seg.start_jd for seg in segments),
                min(seg.end_jd for seg in segments),
            ),
            bodies=sorted(self._centers),
        )

    def position_velocity(self, body, time) -> Tuple[np.ndarray, np.ndarray]:
        """Barycentric ICRF position (km) and velocity (km/s) of ``body``.

        Raises:
            UnknownBody: body not in the catalog or not in the kernel
            CoverageError: epoch outside a segment's coverage
        """
        target = lookup_body(body).naif_id
        tdb = two_part_jd(time, TimeScale.TDB, self._context)
        jd = tdb.jd

        position = np.zeros(3)
        velocity = np.zeros(3)
        current = target
        while current != SOLAR_SYSTEM_BARYCENTER:
            center = self._centers.get(current)
            if center is None:
                raise UnknownBody(f"body {body!r} ({target}) is not covered by the kernel", naif_id=target)
            segment = self._segments[(center, current)]
            if not segment.start_jd <= jd <= segment.end_jd:
                raise CoverageError(
                    f"TDB JD {jd:.6f} outside segment {center}->{current} coverage "
                    f"[{segment.start_jd:.1f}, {segment.end_jd:.1f}]",
                    jd_tdb=jd,
                    segment=(center, current),
                )
            with self._lock:
                p, v = segment.compute_and_differentiate(tdb.jd1, tdb.jd2)
            position += np.asarray(p, dtype=float)
            velocity += np.asarray(v, dtype=float) / SECONDS_PER_DAY
            current = center
        return position, velocity
