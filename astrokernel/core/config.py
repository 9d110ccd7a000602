# astrokernel/core/config.py
# -----------------------------------------------------------------------------
# Process Configuration
#
# Environment Variables:
#   ASTRO_EOP_POLICY                raise | warn   (extrapolated EOP handling)
#   ASTRO_DELTA_AT_JSON             leap-second override table (JSON rows)
#   ASTRO_EPHEMERIS                 explicit SPK kernel path
#   EPHEM_DIR / EPHEM_FILE          SPK kernel directory + file name
#   ASTRO_DERIVATIVE_STEP_SECONDS   finite-difference step for slow rotations
#
# The configuration is read once per process; call load_config.cache_clear()
# after changing the environment (tests do this through a fixture).
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import math
import os
import warnings as py_warnings
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Optional

__all__ = [
    "EopPolicy",
    "KernelConfig",
    "load_config",
]

log = logging.getLogger(__name__)


class EopPolicy(Enum):
    """What to do when an EOP query falls outside the tabulated range."""
    RAISE = "raise"   # ExtrapolatedEop
    WARN = "warn"     # ExtrapolatedEopWarning + best-effort value

    @classmethod
    def parse(cls, value: "EopPolicy | str") -> "EopPolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"unknown EOP policy: {value!r} (expected 'raise' or 'warn')") from None


@dataclass(frozen=True)
class KernelConfig:
    """Process-wide defaults."""

    eop_policy: EopPolicy = EopPolicy.RAISE
    leap_second_table_path: Optional[str] = None
    ephemeris_path: Optional[str] = None
    ephemeris_dir: Optional[str] = None
    derivative_step_seconds: float = 60.0


def _env(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


def _reject(name: str, value: str, default) -> None:
    message = f"Ignoring invalid {name}={value!r}; using {default!r}"
    log.warning(message)
    py_warnings.warn(message)


@lru_cache(maxsize=1)
def load_config() -> KernelConfig:
    """Build the configuration from the environment."""
    defaults = KernelConfig()

    policy = defaults.eop_policy
    if raw := _env("ASTRO_EOP_POLICY"):
        try:
            policy = EopPolicy.parse(raw)
        except ValueError:
            _reject("ASTRO_EOP_POLICY", raw, policy.value)

    step = defaults.derivative_step_seconds
    if raw := _env("ASTRO_DERIVATIVE_STEP_SECONDS"):
        try:
            candidate = float(raw)
            if not math.isfinite(candidate) or candidate <= 0.0:
                raise ValueError(raw)
            step = candidate
        except ValueError:
            _reject("ASTRO_DERIVATIVE_STEP_SECONDS", raw, step)

    ephemeris_path = _env("ASTRO_EPHEMERIS")
    ephemeris_dir = _env("EPHEM_DIR")
    if ephemeris_path is None and ephemeris_dir and (ephem_file := _env("EPHEM_FILE")):
        ephemeris_path = os.path.join(ephemeris_dir, ephem_file)

    config = KernelConfig(
        eop_policy=policy,
        leap_second_table_path=_env("ASTRO_DELTA_AT_JSON"),
        ephemeris_path=ephemeris_path,
        ephemeris_dir=ephemeris_dir,
        derivative_step_seconds=step,
    )
    log.debug(f"Loaded configuration: {config}")
    return config
