import numpy as np
import numpy.testing as npt
import pytest

from astrokernel.core.ephemeris_adapter import SpkEphemeris, find_kernel_paths
from astrokernel.core.errors import CoverageError, ErrorClass, UnknownBody
from astrokernel.core.timescales import Time, TimeScale


class FakeSegment:
    """Stands in for a jplephem segment: km and km/day."""

    def __init__(self, center, target, position, velocity_per_day, start_jd=2451545.0, end_jd=2470000.0):
        self.center = center
        self.target = target
        self.start_jd = start_jd
        self.end_jd = end_jd
        self.position = np.array(position, dtype=float)
        self.velocity = np.array(velocity_per_day, dtype=float)
        self.calls = []

    def compute_and_differentiate(self, tdb, tdb2=0.0):
        self.calls.append((tdb, tdb2))
        return self.position, self.velocity


class FakeKernel:
    def __init__(self, segments):
        self.pairs = {(s.center, s.target): s for s in segments}
        self.closed = False

    def close(self):
        self.closed = True


@pytest.fixture
def kernel():
    return FakeKernel(
        [
            FakeSegment(0, 3, [1.0e8, 2.0e7, 3.0e6], [86400.0, 0.0, -86400.0]),
            FakeSegment(3, 399, [4000.0, 0.0, 0.0], [0.0, 8640.0, 0.0]),
            FakeSegment(3, 301, [-3.0e5, 1.0e5, 0.0], [0.0, -86400.0, 0.0]),
            FakeSegment(0, 2, [1.0e8, 2.2e8, 9.4e7], [0.0, 0.0, 0.0], end_jd=2460000.0),
        ]
    )


@pytest.fixture
def epoch():
    return Time(TimeScale.TAI, 2024, 7, 5, 9, 9, 18.173)


def test_segments_chain_to_barycenter(kernel, epoch):
    ephemeris = SpkEphemeris(kernel)
    r, v = ephemeris.position_velocity("MOON", epoch)
    npt.assert_allclose(r, [1.0e8 - 3.0e5, 2.0e7 + 1.0e5, 3.0e6])
    npt.assert_allclose(v, [1.0, -1.0, -1.0])

    r, v = ephemeris.position_velocity(399, epoch)
    npt.assert_allclose(r, [1.0e8 + 4000.0, 2.0e7, 3.0e6])
    npt.assert_allclose(v, [1.0, 0.1, -1.0])


def test_evaluated_in_tdb(kernel, epoch):
    SpkEphemeris(kernel).position_velocity("EARTH BARYCENTER", epoch)
    (jd1, jd2), = kernel.pairs[(0, 3)].calls
    # noon-based fraction; TDB - TAI is about 32.18 s
    assert jd2 * 86400.0 == pytest.approx(21 * 3600 + 9 * 60 + 18.173 + 32.184, abs=0.01)


def test_unknown_body(kernel, epoch):
    ephemeris = SpkEphemeris(kernel)
    with pytest.raises(UnknownBody):
        ephemeris.position_velocity("MARS", epoch)
    with pytest.raises(UnknownBody):
        ephemeris.position_velocity("VULCAN", epoch)


def test_coverage(kernel, epoch):
    with pytest.raises(CoverageError) as exc_info:
        SpkEphemeris(kernel).position_velocity("VENUS BARYCENTER", epoch)
    assert exc_info.value.error_class is ErrorClass.EPHEMERIS_COVERAGE
    assert exc_info.value.context["segment"] == (0, 2)


def test_info_and_close(kernel):
    with SpkEphemeris(kernel, path="/data/de440s.bsp") as ephemeris:
        info = ephemeris.info
        assert info.name == "de440s.bsp"
        assert info.bodies == [2, 3, 301, 399]
        assert info.coverage_jd == (2451545.0, 2460000.0)
    assert kernel.closed


def test_find_kernel_paths(tmp_path, monkeypatch, reload_config):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    explicit = tmp_path / "custom.bsp"
    explicit.write_bytes(b"")
    kernels = tmp_path / "kernels"
    kernels.mkdir()
    (kernels / "de440s.bsp").write_bytes(b"")
    (kernels / "notes.txt").write_text("not a kernel")

    monkeypatch.setenv("ASTRO_EPHEMERIS", str(explicit))
    monkeypatch.setenv("EPHEM_DIR", str(kernels))
    reload_config()
    paths = find_kernel_paths()
    assert paths[0] == str(explicit)
    assert str(kernels / "de440s.bsp") in paths
    assert str(kernels / "notes.txt") not in paths


def test_ephem_dir_and_file(tmp_path, monkeypatch, reload_config):
    (tmp_path / "de421.bsp").write_bytes(b"")
    monkeypatch.setenv("EPHEM_DIR", str(tmp_path))
    monkeypatch.setenv("EPHEM_FILE", "de421.bsp")
    reload_config()
    assert find_kernel_paths()[0] == str(tmp_path / "de421.bsp")


def test_discover_opens_configured_kernel(tmp_path, monkeypatch, reload_config, kernel):
    path = tmp_path / "de440s.bsp"
    path.write_bytes(b"")
    opened = []

    def fake_open(cls, filename):
        opened.append(filename)
        return kernel

    monkeypatch.setattr("astrokernel.core.ephemeris_adapter.SPK.open", classmethod(fake_open))
    monkeypatch.setenv("ASTRO_EPHEMERIS", str(path))
    reload_config()
    ephemeris = SpkEphemeris.discover()
    assert opened == [str(path)]
    assert ephemeris.info.path == str(path)
