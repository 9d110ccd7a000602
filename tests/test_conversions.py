import itertools

import numpy as np
import pytest
from skyfield.api import load

from astrokernel.core.config import EopPolicy
from astrokernel.core.conversions import ConversionContext, convert, offset, two_part_jd
from astrokernel.core.deltas import Duration
from astrokernel.core.eop import TabulatedEopProvider
from astrokernel.core.leapseconds import LeapSecondTable, default_leap_seconds
from astrokernel.core.errors import ErrorClass, ExtrapolatedEop, ExtrapolatedEopWarning, MissingProvider
from astrokernel.core.timescales import Time, TimeScale, TwoPartJD
from astrokernel.core.utc import Utc

CONTINUOUS_SCALES = [TimeScale.TAI, TimeScale.TT, TimeScale.TDB, TimeScale.TCG, TimeScale.TCB]


def _epoch(scale):
    return Time(scale, 2024, 12, 30, 10, 27, 13.145)


def _seconds(duration):
    return duration.to_decimal_seconds()


@pytest.mark.parametrize(
    "source, target, expected, tolerance",
    [
        (TimeScale.TAI, TimeScale.TT, 32.184, 1e-7),
        (TimeScale.TAI, TimeScale.TDB, 32.183882324981056, 1e-7),
        (TimeScale.TAI, TimeScale.TCG, 33.239589335894145, 1e-7),
        (TimeScale.TT, TimeScale.TDB, -1.1768579472004603e-4, 1e-7),
        (TimeScale.TDB, TimeScale.TT, 1.176857946845189e-4, 1e-7),
        (TimeScale.TT, TimeScale.TCG, 1.055589313464182, 1e-7),
        (TimeScale.TCG, TimeScale.TT, -1.0555893127285145, 1e-7),
        (TimeScale.TDB, TimeScale.TCB, 23.48463137488165, 1e-4),
        (TimeScale.TAI, TimeScale.TCB, 55.66851419888016, 1e-4),
    ],
)
def test_reference_offsets(source, target, expected, tolerance):
    t = _epoch(source)
    converted = convert(t, target)
    assert converted.scale is target
    assert _seconds(converted.delta - t.delta) == pytest.approx(expected, abs=tolerance)
    assert _seconds(offset(source, target, t)) == pytest.approx(expected, abs=tolerance)


@pytest.mark.parametrize("source, target", list(itertools.permutations(CONTINUOUS_SCALES, 2)))
def test_round_trips(source, target):
    t = _epoch(source)
    back = convert(convert(t, target), source)
    assert abs(_seconds(back - t)) <= 1e-9


def test_same_scale_is_identity():
    t = _epoch(TimeScale.TDB)
    assert convert(t, "TDB") is t


def test_tai_tt_offset_is_exact():
    assert offset("TAI", "TT", Duration()) == Duration(32.184)
    assert offset("TT", "TAI", Duration()) == Duration(-32.184)


def test_two_part_jd():
    tai = Time(TimeScale.TAI, 2000, 1, 1, 11, 59, 27.816)
    assert two_part_jd(tai, TimeScale.TT) == TwoPartJD(2451545.0, 0.0)


class TestUtcConversions:
    def test_utc_input(self):
        assert convert(Utc(2017, 1, 1), TimeScale.TAI) == Time(TimeScale.TAI, 2017, 1, 1, 0, 0, 37)

    def test_utc_target(self):
        tt = Time(TimeScale.TT, 2017, 1, 1, 0, 1, 9.184)
        assert convert(tt, "UTC") == Utc(2017, 1, 1)
        assert tt.to_utc() == Utc(2017, 1, 1)

    def test_context_table_is_used_both_ways(self):
        table = LeapSecondTable(list(default_leap_seconds().entries) + [(58849, 38.0, "test")])
        context = ConversionContext(leap_seconds=table)
        tai = convert(Utc(2021, 1, 1), TimeScale.TAI, context)
        assert tai == Time(TimeScale.TAI, 2021, 1, 1, 0, 0, 38)
        assert convert(tai, "UTC", context) == Utc(2021, 1, 1)
        assert Utc(2021, 1, 1).to_tai(table) == tai

    def test_leap_second_through_tdb(self):
        leap = Utc(2016, 12, 31, 23, 59, 60.25)
        back = leap.to_scale(TimeScale.TDB).to_utc()
        assert (back.hour, back.minute, back.second) == (23, 59, 60)
        assert abs(_seconds(back - leap)) < 1e-12


class TestUt1:
    def test_missing_provider(self):
        with pytest.raises(MissingProvider) as exc_info:
            _epoch(TimeScale.TAI).to_scale(TimeScale.UT1)
        assert exc_info.value.error_class is ErrorClass.MISSING_PROVIDER

    def test_constant_table_offset(self):
        provider = TabulatedEopProvider([58000.0, 60000.0], [0.25, 0.25], [0.0, 0.0], [0.0, 0.0])
        tai = Time(TimeScale.TAI, 2020, 6, 1)
        ut1 = convert(tai, TimeScale.UT1, provider)
        assert ut1.scale is TimeScale.UT1
        assert _seconds(ut1.delta - tai.delta) == pytest.approx(0.25 - 37.0, abs=1e-12)

    @pytest.mark.parametrize(
        "label",
        [(2016, 12, 31, 23, 59, 59.5), (2016, 12, 31, 23, 59, 60.5), (2017, 1, 1, 0, 0, 0.5)],
    )
    def test_offset_is_continuous_across_leap_second(self, label):
        # UT1-UTC steps by +1 s with the leap second, UT1-TAI stays at -36.6 s
        provider = TabulatedEopProvider([57700.0, 57800.0], [-0.6, 0.4], [0.0, 0.0], [0.0, 0.0])
        tai = Utc(*label).to_tai()
        ut1 = convert(tai, TimeScale.UT1, provider)
        assert _seconds(ut1.delta - tai.delta) == pytest.approx(-36.6, abs=1e-9)

    def test_round_trip(self, eop_provider):
        context = ConversionContext(eop_provider=eop_provider)
        for scale in (TimeScale.TAI, TimeScale.TT, TimeScale.TDB):
            t = Time(scale, 2016, 5, 30, 12)
            back = convert(convert(t, TimeScale.UT1, context), scale, context)
            assert abs(_seconds(back - t)) <= 1e-8

    def test_extrapolation_raises(self, eop_provider):
        with pytest.raises(ExtrapolatedEop) as exc_info:
            convert(Time(TimeScale.TAI, 2100, 1, 1), TimeScale.UT1, eop_provider)
        error = exc_info.value
        assert error.max_mjd == 60675.0
        assert error.requested_mjd > error.max_mjd
        assert error.value is not None and not error.value.within_bounds

    def test_extrapolation_warns(self, eop_provider):
        context = ConversionContext(eop_provider=eop_provider, eop_policy="warn")
        with pytest.warns(ExtrapolatedEopWarning):
            ut1 = convert(Time(TimeScale.TAI, 2100, 1, 1), TimeScale.UT1, context)
        assert ut1.scale is TimeScale.UT1

    def test_policy_from_environment(self, eop_provider, monkeypatch, reload_config):
        monkeypatch.setenv("ASTRO_EOP_POLICY", "warn")
        reload_config()
        context = ConversionContext(eop_provider=eop_provider)
        assert context.eop_policy is EopPolicy.WARN
        with pytest.warns(ExtrapolatedEopWarning):
            convert(Time(TimeScale.TAI, 2100, 1, 1), TimeScale.UT1, context)


class TestContext:
    def test_coerce(self, eop_provider):
        assert ConversionContext.coerce(None).eop_provider is None
        assert ConversionContext.coerce(eop_provider).eop_provider is eop_provider
        context = ConversionContext(eop_provider=eop_provider)
        assert ConversionContext.coerce(context) is context
        with pytest.raises(TypeError):
            ConversionContext.coerce("finals2000A.all")

    def test_defaults(self):
        context = ConversionContext()
        assert context.eop_policy is EopPolicy.RAISE
        assert len(context.leap_seconds) == 28


class TestSkyfieldCrossCheck:
    """skyfield's built-in timescale as an independent implementation."""

    @pytest.fixture(scope="class")
    def ts(self):
        return load.timescale(builtin=True)

    @pytest.mark.parametrize("year", [1990, 2005, 2024, 2040])
    def test_tdb_minus_tt(self, ts, year):
        t = ts.tt(year, 3, 14, 15, 9, 26.5)
        expected = (t.tdb_fraction - t.tt_fraction) * 86400.0
        tt = Time(TimeScale.TT, year, 3, 14, 15, 9, 26.5)
        ours = _seconds(convert(tt, TimeScale.TDB).delta - tt.delta)
        # skyfield sums a few more periodic terms
        assert ours == pytest.approx(expected, abs=1e-4)

    def test_tai_to_tt_julian_date(self, ts):
        tai = Time(TimeScale.TAI, 2024, 12, 30, 10, 27, 13.145)
        t = ts.tai(2024, 12, 30, 10, 27, 13.145)
        jd = two_part_jd(tai, TimeScale.TT)
        assert np.isclose(jd.jd1 - t.whole + jd.jd2 - t.tt_fraction, 0.0, atol=1e-11)
