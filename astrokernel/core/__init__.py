"""
Core time-scale and reference-frame modules.

Durations and continuous times, leap-second aware UTC, scale conversions,
Earth and body rotation models, the frame composer, and state vectors.
"""

from .deltas import Duration, TimeDelta
from .timescales import Time, TimeScale, TwoPartJD
from .leapseconds import LeapSecondTable, default_leap_seconds
from .utc import Utc
from .eop import EopProvider, EopRecord, TabulatedEopProvider
from .config import EopPolicy, KernelConfig, load_config
from .conversions import ConversionContext, convert
from .astronomy import NutationModel
from .bodies import Body, lookup_body
from .frames import Frame, FrameKind, rotation, transform
from .rotations import Rotation
from .states import State, convert_times, transform_states
from .ephemeris_adapter import Ephemeris, SpkEphemeris
from .errors import (
    AstroKernelError,
    CoverageError,
    ErrorClass,
    ExtrapolatedEop,
    ExtrapolatedEopWarning,
    InvalidCalendarField,
    InvalidFormat,
    MissingProvider,
    NonFiniteValue,
    ScaleMismatch,
    UnknownBody,
)

__all__ = [
    "Duration",
    "TimeDelta",
    "Time",
    "TimeScale",
    "TwoPartJD",
    "LeapSecondTable",
    "default_leap_seconds",
    "Utc",
    "EopProvider",
    "EopRecord",
    "TabulatedEopProvider",
    "EopPolicy",
    "KernelConfig",
    "load_config",
    "ConversionContext",
    "convert",
    "NutationModel",
    "Body",
    "lookup_body",
    "Frame",
    "FrameKind",
    "rotation",
    "transform",
    "Rotation",
    "State",
    "convert_times",
    "transform_states",
    "Ephemeris",
    "SpkEphemeris",
    "AstroKernelError",
    "CoverageError",
    "ErrorClass",
    "ExtrapolatedEop",
    "ExtrapolatedEopWarning",
    "InvalidCalendarField",
    "InvalidFormat",
    "MissingProvider",
    "NonFiniteValue",
    "ScaleMismatch",
    "UnknownBody",
]
