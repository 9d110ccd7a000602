import numpy as np
import pytest

from astrokernel.core.config import EopPolicy, KernelConfig, load_config
from astrokernel.core.eop import EopProvider, EopRecord, TabulatedEopProvider, query_eop
from astrokernel.core.errors import ExtrapolatedEop, ExtrapolatedEopWarning, MissingProvider


class TestConfig:
    def test_defaults(self):
        assert load_config() == KernelConfig()
        assert load_config().eop_policy is EopPolicy.RAISE
        assert load_config().derivative_step_seconds == 60.0

    def test_cached(self):
        assert load_config() is load_config()

    def test_environment(self, monkeypatch, reload_config):
        monkeypatch.setenv("ASTRO_EOP_POLICY", " WARN ")
        monkeypatch.setenv("ASTRO_DERIVATIVE_STEP_SECONDS", "30")
        monkeypatch.setenv("ASTRO_EPHEMERIS", "/kernels/de440.bsp")
        monkeypatch.setenv("ASTRO_DELTA_AT_JSON", "/ops/leap.json")
        reload_config()
        config = load_config()
        assert config.eop_policy is EopPolicy.WARN
        assert config.derivative_step_seconds == 30.0
        assert config.ephemeris_path == "/kernels/de440.bsp"
        assert config.leap_second_table_path == "/ops/leap.json"

    @pytest.mark.parametrize(
        "name, value",
        [
            ("ASTRO_EOP_POLICY", "ignore"),
            ("ASTRO_DERIVATIVE_STEP_SECONDS", "-1"),
            ("ASTRO_DERIVATIVE_STEP_SECONDS", "fast"),
            ("ASTRO_DERIVATIVE_STEP_SECONDS", "nan"),
        ],
    )
    def test_invalid_values_fall_back(self, name, value, monkeypatch, reload_config):
        monkeypatch.setenv(name, value)
        reload_config()
        with pytest.warns(UserWarning, match=name):
            config = load_config()
        assert config == KernelConfig()

    def test_policy_parse(self):
        assert EopPolicy.parse("raise") is EopPolicy.RAISE
        assert EopPolicy.parse(EopPolicy.WARN) is EopPolicy.WARN
        with pytest.raises(ValueError):
            EopPolicy.parse("sometimes")


class TestTabulatedEop:
    def test_interpolation(self):
        provider = TabulatedEopProvider([58000.0, 58002.0], [0.1, 0.3], [0.2, 0.4], [0.3, 0.1])
        record = provider.lookup(58001.0)
        assert record.ut1_minus_utc == pytest.approx(0.2)
        assert record.pole_x == pytest.approx(0.3)
        assert record.pole_y == pytest.approx(0.2)
        assert record.within_bounds
        assert provider.bounds == (58000.0, 58002.0)

    def test_leap_second_inside_table(self):
        # UT1-UTC steps by +1 s with the 2017-01-01 leap second; UT1 itself is smooth
        provider = TabulatedEopProvider([57753.0, 57754.0], [-0.4, 0.6], [0.0, 0.0], [0.0, 0.0])
        assert provider.lookup(57753.5).ut1_minus_utc == pytest.approx(-0.4, abs=1e-12)

    def test_edges_are_held(self):
        provider = TabulatedEopProvider([58000.0, 58001.0], [0.1, 0.2], [0.0, 0.0], [0.0, 0.0])
        record = provider.lookup(59000.0)
        assert record.ut1_minus_utc == pytest.approx(0.2)
        assert not record.within_bounds

    @pytest.mark.parametrize(
        "columns",
        [
            ([58000.0], [0.1], [0.0], [0.0]),
            ([58000.0, 58001.0], [0.1], [0.0, 0.0], [0.0, 0.0]),
            ([58001.0, 58000.0], [0.1, 0.1], [0.0, 0.0], [0.0, 0.0]),
            ([58000.0, 58001.0], [0.1, np.nan], [0.0, 0.0], [0.0, 0.0]),
        ],
    )
    def test_invalid_tables(self, columns):
        with pytest.raises(ValueError):
            TabulatedEopProvider(*columns)

    def test_protocol(self, eop_provider):
        assert isinstance(eop_provider, EopProvider)
        assert not isinstance(object(), EopProvider)


class TestQuery:
    def test_missing_provider(self):
        with pytest.raises(MissingProvider):
            query_eop(None, 58000.0)

    def test_within_bounds(self, eop_provider):
        assert query_eop(eop_provider, 58000.0) == eop_provider.lookup(58000.0)

    def test_raise_policy(self, eop_provider):
        with pytest.raises(ExtrapolatedEop) as exc_info:
            query_eop(eop_provider, 88069.0, EopPolicy.RAISE)
        error = exc_info.value
        assert (error.min_mjd, error.max_mjd) == eop_provider.bounds
        assert isinstance(error.value, EopRecord)

    def test_warn_policy(self, eop_provider):
        with pytest.warns(ExtrapolatedEopWarning) as record:
            value = query_eop(eop_provider, 88069.0, "warn")
        assert not value.within_bounds
        assert record[0].message.requested_mjd == 88069.0
