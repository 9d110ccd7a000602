from concurrent.futures import ThreadPoolExecutor

import numpy as np
import numpy.testing as npt
import pytest

from astrokernel.core.bodies import lookup_body
from astrokernel.core.conversions import ConversionContext
from astrokernel.core.deltas import Duration
from astrokernel.core.errors import MissingProvider, NonFiniteValue
from astrokernel.core.frames import ICRF, ITRF, Frame
from astrokernel.core.states import State, convert_times, transform_states
from astrokernel.core.timescales import Time, TimeScale
from astrokernel.core.utc import Utc


class FakeEphemeris:
    """Fixed barycentric states keyed by NAIF ID."""

    def __init__(self, states):
        self.states = states
        self.calls = []

    def position_velocity(self, body, time):
        body = lookup_body(body)
        self.calls.append((body.naif_id, time))
        r, v = self.states[body.naif_id]
        return np.array(r, dtype=float), np.array(v, dtype=float)


@pytest.fixture
def state(iss_position, iss_velocity):
    return State(Utc(2016, 5, 30, 12), iss_position, iss_velocity)


class TestState:
    def test_defaults(self, state):
        assert state.time == Time(TimeScale.TAI, 2016, 5, 30, 12, 0, 36)
        assert state.origin.naif_id == 399
        assert state.frame == ICRF

    def test_arrays_are_read_only(self, state):
        with pytest.raises(ValueError):
            state.position[0] = 0.0
        with pytest.raises(ValueError):
            state.velocity[0] = 0.0

    def test_input_is_copied(self, iss_position, iss_velocity):
        s = State(Time.j2000(TimeScale.TAI), iss_position, iss_velocity)
        iss_position[0] = 0.0
        assert s.position[0] == 6068.279

    @pytest.mark.parametrize(
        "position",
        [[np.nan, 0.0, 0.0], [0.0, np.inf, 0.0]],
    )
    def test_non_finite(self, position):
        with pytest.raises(NonFiniteValue):
            State(Time.j2000(TimeScale.TAI), position, [0.0, 0.0, 0.0])

    def test_shape(self):
        with pytest.raises(ValueError):
            State(Time.j2000(TimeScale.TAI), [1.0, 2.0], [0.0, 0.0, 0.0])

    def test_time_type(self):
        with pytest.raises(TypeError):
            State("2016-05-30", [1.0, 2.0, 3.0], [0.0, 0.0, 0.0])

    def test_frame_round_trip(self, state, eop_provider, iss_position, iss_velocity):
        itrf = state.to_frame(ITRF, eop_provider)
        assert itrf.frame == ITRF
        assert itrf.time == state.time
        back = itrf.to_frame("ICRF", eop_provider)
        npt.assert_allclose(back.position, iss_position, rtol=1e-10)
        npt.assert_allclose(back.velocity, iss_velocity, rtol=1e-8)

    def test_same_frame_returns_self(self, state):
        assert state.to_frame("ICRF") is state

    def test_to_scale(self, state):
        tdb = state.to_scale("TDB")
        assert tdb.time.scale is TimeScale.TDB
        npt.assert_array_equal(tdb.position, state.position)

    def test_with_time(self, state):
        later = state.with_time(state.time + Duration(60))
        assert later.time - state.time == Duration(60)
        assert later.frame == state.frame

    def test_equality(self, state, iss_position, iss_velocity):
        same = State(Utc(2016, 5, 30, 12), iss_position, iss_velocity, "earth", "icrf")
        assert same == state
        assert hash(same) == hash(state)
        assert state != state.with_time(state.time + Duration(1))
        assert "frame=ICRF" in repr(state)


class TestOrigin:
    def test_to_origin(self, state, iss_position, iss_velocity):
        r_earth, v_earth = [1.0e8, 2.0e7, -3.0e6], [10.0, -20.0, 1.0]
        r_venus, v_venus = [1.001977553295792e8, 2.200234656010247e8, 9.391473630346918e7], [-59.0, 22.6, 12.0]
        ephemeris = FakeEphemeris({399: (r_earth, v_earth), 299: (r_venus, v_venus)})

        venus = state.to_origin("Venus", ephemeris)
        assert venus.origin.naif_id == 299
        npt.assert_allclose(venus.position, iss_position + np.array(r_earth) - np.array(r_venus))
        npt.assert_allclose(venus.velocity, iss_velocity + np.array(v_earth) - np.array(v_venus))
        assert {call[0] for call in ephemeris.calls} == {399, 299}

    def test_same_origin(self, state):
        assert state.to_origin(399, FakeEphemeris({})) is state

    def test_requires_icrf(self, state):
        teme = state.to_frame("TEME")
        with pytest.raises(ValueError):
            teme.to_origin("Venus", FakeEphemeris({}))


class TestBatches:
    @pytest.fixture
    def states(self, iss_position, iss_velocity):
        start = Utc(2016, 5, 30, 12).to_tai()
        return [
            State(start + Duration(600 * i), iss_position, iss_velocity)
            for i in range(8)
        ]

    def test_sequential_matches_threaded(self, states, eop_provider):
        sequential = transform_states(states, "ITRF", eop_provider)
        with ThreadPoolExecutor(max_workers=4) as executor:
            threaded = transform_states(states, "ITRF", eop_provider, executor=executor)
        assert threaded == sequential
        assert all(s.frame == Frame.parse("ITRF") for s in threaded)

    def test_errors_propagate(self, states):
        with pytest.raises(MissingProvider):
            transform_states(states, "ITRF")

    def test_return_exceptions(self, states, iss_position, iss_velocity, eop_provider):
        late = State(Time(TimeScale.TAI, 2100, 1, 1), iss_position, iss_velocity)
        results = transform_states(
            states[:2] + [late],
            "ITRF",
            ConversionContext(eop_provider=eop_provider),
            return_exceptions=True,
        )
        assert isinstance(results[0], State)
        assert isinstance(results[1], State)
        assert results[2].requested_mjd > results[2].max_mjd

    def test_convert_times(self):
        times = [Time(TimeScale.TAI, 2020, 1, d) for d in range(1, 6)]
        with ThreadPoolExecutor(max_workers=2) as executor:
            tt = convert_times(times, "TT", executor=executor)
        assert [t.scale for t in tt] == [TimeScale.TT] * 5
        assert tt[0] == Time(TimeScale.TT, 2020, 1, 1, 0, 0, 32.184)

    def test_convert_times_to_utc(self):
        utc = convert_times([Time(TimeScale.TAI, 2017, 1, 1, 0, 0, 36.5)], "utc")
        assert utc == [Utc(2016, 12, 31, 23, 59, 60.5)]

    def test_convert_times_return_exceptions(self):
        results = convert_times([Time.j2000(TimeScale.TAI)], TimeScale.UT1, return_exceptions=True)
        assert isinstance(results[0], MissingProvider)
