import math

import numpy as np
import numpy.testing as npt
import pytest

from astrokernel.core.bodies import BODIES, lookup_body
from astrokernel.core.errors import UnknownBody


class TestJupiter:
    @pytest.fixture
    def jupiter(self):
        return lookup_body("Jupiter")

    def test_elements(self, jupiter):
        alpha, delta, w = jupiter.rotational_elements(0.0)
        assert alpha == pytest.approx(4.678480799964803, rel=1e-8)
        assert delta == pytest.approx(1.1256642372977634, rel=1e-8)
        assert w == pytest.approx(4.973315703557842, rel=1e-8)

    def test_rates(self, jupiter):
        alpha_dot, delta_dot, w_dot = jupiter.rotational_element_rates(0.0)
        assert alpha_dot == pytest.approx(-1.3266588500099516e-13, rel=1e-8)
        assert delta_dot == pytest.approx(3.004482367136341e-15, rel=1e-8)
        assert w_dot == pytest.approx(1.7585323445765458e-4, rel=1e-8)


@pytest.mark.parametrize("name", ["SUN", "MERCURY", "VENUS", "EARTH", "MOON", "MARS", "SATURN", "NEPTUNE", "PLUTO"])
def test_rotation_is_orthonormal(name):
    r = lookup_body(name).rotation(7.5e8)
    npt.assert_allclose(r.m @ r.m.T, np.eye(3), atol=1e-14)
    assert np.linalg.det(r.m) == pytest.approx(1.0)


@pytest.mark.parametrize("name", ["EARTH", "MOON", "MERCURY", "NEPTUNE"])
def test_rotation_derivative(name):
    body = lookup_body(name)
    t, h = 2.5e8, 1.0
    expected = (body.rotation(t + h).m - body.rotation(t - h).m) / (2.0 * h)
    npt.assert_allclose(body.rotation(t).dm, expected, atol=1e-9)


def test_earth_pole_at_j2000():
    # the body z axis is the IAU pole (alpha0, delta0)
    r = lookup_body("EARTH").rotation(0.0)
    npt.assert_allclose(r.m[2], [0.0, 0.0, 1.0], atol=1e-15)


def test_prime_meridian_angle_wraps():
    _, _, w = lookup_body("EARTH").rotational_elements(86400.0 * 365.0)
    assert w > 2 * math.pi


@pytest.mark.parametrize(
    "key, naif_id",
    [
        ("EARTH", 399),
        ("earth", 399),
        (399, 399),
        ("Moon", 301),
        ("luna", 301),
        ("SSB", 0),
        ("solar_system_barycenter", 0),
        ("Earth Moon Barycenter", 3),
        ("EMB", 3),
        ("  jupiter   barycenter ", 5),
    ],
)
def test_lookup(key, naif_id):
    assert lookup_body(key).naif_id == naif_id


def test_lookup_passes_bodies_through():
    body = lookup_body("MARS")
    assert lookup_body(body) is body


@pytest.mark.parametrize("key", ["VULCAN", 12345, None, 3.0, True])
def test_unknown_body(key):
    with pytest.raises(UnknownBody):
        lookup_body(key)


def test_body_without_rotation_model():
    phobos = lookup_body("PHOBOS")
    with pytest.raises(UnknownBody):
        phobos.rotation(0.0)


def test_catalog_ids_are_unique():
    ids = [body.naif_id for body in BODIES]
    assert len(ids) == len(set(ids))
