# astrokernel/core/states.py
# -----------------------------------------------------------------------------
# Cartesian State Vectors
#
# A State is (time, position km, velocity km/s, origin, frame). It is a
# value: arrays are stored read-only and every transition returns a new State.
#
# Batch helpers run sequentially or fan out over a caller-supplied
# concurrent.futures.Executor; the core never starts threads of its own.
#
# Public API:
#   State(time, position, velocity, origin="EARTH", frame=ICRF)
#   state.to_frame / to_scale / to_origin / with_time
#   transform_states(states, frame, context=None, executor=None, return_exceptions=False)
#   convert_times(times, scale, context=None, executor=None, return_exceptions=False)
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from concurrent.futures import Executor
from typing import Callable, Iterable, List, Optional, TypeVar, Union

import numpy as np

from .bodies import Body, lookup_body
from .conversions import ConversionContext, convert
from .errors import AstroKernelError, NonFiniteValue
from .frames import ICRF, Frame, FrameKind, transform
from .timescales import Time, TimeScale

__all__ = [
    "State",
    "transform_states",
    "convert_times",
]

log = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def _vector(values, name: str) -> np.ndarray:
    out = np.array(values, dtype=float)
    if out.shape != (3,):
        raise ValueError(f"{name} must have three components, got shape {out.shape}")
    if not np.all(np.isfinite(out)):
        raise NonFiniteValue(f"{name} must be finite, got {out.tolist()}", value=out.tolist())
    out.setflags(write=False)
    return out


class State:
    """Immutable Cartesian state."""

    __slots__ = ("_time", "_position", "_velocity", "_origin", "_frame")

    def __init__(
        self,
        time,
        position,
        velocity,
        origin: Union[str, int, Body] = "EARTH",
        frame: Union[str, Frame] = ICRF,
    ):
        from .utc import Utc

        if isinstance(time, Utc):
            time = time.to_tai()
        if not isinstance(time, Time):
            raise TypeError(f"time must be a Time or Utc, got {type(time).__name__}")
        self._time = time
        self._position = _vector(position, "position")
        self._velocity = _vector(velocity, "velocity")
        self._origin = lookup_body(origin)
        self._frame = Frame.parse(frame)

    @property
    def time(self) -> Time:
        return self._time

    @property
    def position(self) -> np.ndarray:
        return self._position

    @property
    def velocity(self) -> np.ndarray:
        return self._velocity

    @property
    def origin(self) -> Body:
        return self._origin

    @property
    def frame(self) -> Frame:
        return self._frame

    # ───────────────────────────── Transitions ─────────────────────────────

    def with_time(self, time) -> "State":
        return State(time, self._position, self._velocity, self._origin, self._frame)

    def to_frame(self, frame: Union[str, Frame], context=None) -> "State":
        frame = Frame.parse(frame)
        if frame == self._frame:
            return self
        position, velocity = transform(self._position, self._velocity, self._frame, frame, self._time, context)
        return State(self._time, position, velocity, self._origin, frame)

    def to_scale(self, scale: Union[str, TimeScale], context=None) -> "State":
        return State(convert(self._time, TimeScale.parse(scale), context), self._position, self._velocity, self._origin, self._frame)

    def to_origin(self, origin: Union[str, int, Body], ephemeris) -> "State":
        """Re-center on ``origin`` using barycentric states from ``ephemeris``."""
        if self._frame.kind is not FrameKind.ICRF:
            raise ValueError(f"origin changes need an ICRF state, got {self._frame.name}")
        target = lookup_body(origin)
        if target == self._origin:
            return self
        r_old, v_old = ephemeris.position_velocity(self._origin, self._time)
        r_new, v_new = ephemeris.position_velocity(target, self._time)
        position = self._position + np.asarray(r_old) - np.asarray(r_new)
        velocity = self._velocity + np.asarray(v_old) - np.asarray(v_new)
        return State(self._time, position, velocity, target, self._frame)

    # ───────────────────────────── Value Semantics ─────────────────────────────

    def __eq__(self, other):
        if not isinstance(other, State):
            return NotImplemented
        return (
            self._time == other._time
            and self._origin == other._origin
            and self._frame == other._frame
            and np.array_equal(self._position, other._position)
            and np.array_equal(self._velocity, other._velocity)
        )

    def __hash__(self) -> int:
        return hash((self._time, self._origin, self._frame, self._position.tobytes(), self._velocity.tobytes()))

    def __repr__(self) -> str:
        return (
            f"State({self._time}, position={self._position.tolist()}, velocity={self._velocity.tolist()}, "
            f"origin={self._origin.name}, frame={self._frame.name})"
        )


# ───────────────────────────── Batch Operations ─────────────────────────────


def _run_batch(
    func: Callable[[T], R],
    items: Iterable[T],
    executor: Optional[Executor],
    return_exceptions: bool,
) -> List[Union[R, AstroKernelError]]:
    def call(item: T):
        try:
            return func(item)
        except AstroKernelError as e:
            if return_exceptions:
                log.debug(f"Batch item failed with {e.error_class.value}: {e}")
                return e
            raise

    if executor is None:
        return [call(item) for item in items]
    return list(executor.map(call, items))


def transform_states(
    states: Iterable[State],
    frame: Union[str, Frame],
    context=None,
    executor: Optional[Executor] = None,
    return_exceptions: bool = False,
) -> List[Union[State, AstroKernelError]]:
    """Move every state to ``frame``.

    With ``return_exceptions`` a failing state yields its AstroKernelError
    in place instead of aborting the batch.
    """
    frame = Frame.parse(frame)
    context = ConversionContext.coerce(context)
    return _run_batch(lambda s: s.to_frame(frame, context), states, executor, return_exceptions)


def convert_times(
    times: Iterable,
    scale: Union[str, TimeScale],
    context=None,
    executor: Optional[Executor] = None,
    return_exceptions: bool = False,
) -> List:
    if not (isinstance(scale, str) and scale.strip().upper() == "UTC"):
        scale = TimeScale.parse(scale)
    context = ConversionContext.coerce(context)
    return _run_batch(lambda t: convert(t, scale, context), times, executor, return_exceptions)
