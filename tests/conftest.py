# tests/conftest.py
# -----------------------------------------------------------------------------
# Shared fixtures: a clean process configuration per test, a synthetic EOP
# series covering 2014-12-09 .. 2024-12-31, and an ISS-like ICRF state.
# -----------------------------------------------------------------------------

import numpy as np
import pytest

from astrokernel.core.config import load_config
from astrokernel.core.eop import TabulatedEopProvider
from astrokernel.core.leapseconds import default_leap_seconds

_ENV_VARS = (
    "ASTRO_EOP_POLICY",
    "ASTRO_DELTA_AT_JSON",
    "ASTRO_EPHEMERIS",
    "EPHEM_DIR",
    "EPHEM_FILE",
    "ASTRO_DERIVATIVE_STEP_SECONDS",
)


def _clear_caches():
    load_config.cache_clear()
    default_leap_seconds.cache_clear()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    _clear_caches()
    yield
    _clear_caches()


@pytest.fixture
def reload_config():
    """Call after monkeypatching the environment."""
    return _clear_caches


@pytest.fixture
def eop_provider():
    # last row is 2024-12-31
    mjd = np.arange(57000.0, 60676.0)
    phase = 2.0 * np.pi * (mjd - mjd[0]) / 365.25
    return TabulatedEopProvider(
        mjd=mjd,
        ut1_minus_utc=-0.2 + 0.3 * np.sin(phase),
        pole_x=0.1 + 0.05 * np.sin(phase),
        pole_y=0.3 + 0.05 * np.cos(phase),
    )


@pytest.fixture
def iss_position():
    return np.array([6068.279, -1692.844, -2516.619])


@pytest.fixture
def iss_velocity():
    return np.array([-0.6604, 5.4959, -5.3031])
