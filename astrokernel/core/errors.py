# astrokernel/core/errors.py
# -----------------------------------------------------------------------------
# Exception Hierarchy
#
# Every failure the core reports is a local, recoverable condition. Each
# exception carries an ErrorClass tag and a free-form context dict so that
# callers can branch on the kind of failure without parsing messages.
#
# Taxonomy:
#   InvalidCalendarField  bad year/month/day/hour/minute/second input
#   InvalidFormat         unparseable text (ISO strings, scale/frame names)
#   ScaleMismatch         ordering or arithmetic across time scales
#   MissingProvider       an operation needs EOP data that was not supplied
#   ExtrapolatedEop       EOP query outside the tabulated bounds
#   UnknownBody           unrecognized body or frame identifier
#   NonFiniteValue        NaN/Infinity passed into duration/time arithmetic
#   CoverageError         ephemeris epoch outside kernel coverage
# -----------------------------------------------------------------------------

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

__all__ = [
    "ErrorClass",
    "AstroKernelError",
    "InvalidCalendarField",
    "InvalidFormat",
    "ScaleMismatch",
    "MissingProvider",
    "ExtrapolatedEop",
    "ExtrapolatedEopWarning",
    "UnknownBody",
    "NonFiniteValue",
    "CoverageError",
]


class ErrorClass(Enum):
    INVALID_CALENDAR_FIELD = "invalid_calendar_field"
    INVALID_FORMAT = "invalid_format"
    SCALE_MISMATCH = "scale_mismatch"
    MISSING_PROVIDER = "missing_provider"
    EXTRAPOLATED_EOP = "extrapolated_eop"
    UNKNOWN_BODY = "unknown_body"
    NON_FINITE_VALUE = "non_finite_value"
    EPHEMERIS_COVERAGE = "ephemeris_coverage"


# ───────────────────────────── Exception Hierarchy ─────────────────────────────

class AstroKernelError(Exception):
    """Base exception for time and frame computations."""
    def __init__(self, message: str, error_class: ErrorClass, **context):
        super().__init__(message)
        self.error_class = error_class
        self.context = context


class InvalidCalendarField(AstroKernelError, ValueError):
    """A calendar component is out of range (month 13, hour 24, ...)."""
    def __init__(self, message: str, **context):
        super().__init__(message, ErrorClass.INVALID_CALENDAR_FIELD, **context)

    @property
    def field(self) -> Optional[str]:
        return self.context.get("field")


class InvalidFormat(AstroKernelError, ValueError):
    """Text could not be parsed."""
    def __init__(self, message: str, **context):
        super().__init__(message, ErrorClass.INVALID_FORMAT, **context)


class ScaleMismatch(AstroKernelError, TypeError):
    """Two times tagged with different scales were compared or subtracted."""
    def __init__(self, message: str, **context):
        super().__init__(message, ErrorClass.SCALE_MISMATCH, **context)


class MissingProvider(AstroKernelError):
    """Earth orientation data is required but no provider was given."""
    def __init__(self, message: str, **context):
        super().__init__(message, ErrorClass.MISSING_PROVIDER, **context)


class ExtrapolatedEop(AstroKernelError):
    """EOP query outside the provider's tabulated range."""
    def __init__(
        self,
        message: str,
        requested_mjd: float,
        min_mjd: float,
        max_mjd: float,
        value: Any = None,
        **context,
    ):
        super().__init__(
            message,
            ErrorClass.EXTRAPOLATED_EOP,
            requested_mjd=requested_mjd,
            min_mjd=min_mjd,
            max_mjd=max_mjd,
            **context,
        )
        self.requested_mjd = requested_mjd
        self.min_mjd = min_mjd
        self.max_mjd = max_mjd
        # best-effort record computed from the clamped table
        self.value = value


class ExtrapolatedEopWarning(UserWarning):
    """Warning-policy counterpart of ExtrapolatedEop."""
    def __init__(self, message: str, requested_mjd: float, min_mjd: float, max_mjd: float, value: Any = None):
        super().__init__(message)
        self.requested_mjd = requested_mjd
        self.min_mjd = min_mjd
        self.max_mjd = max_mjd
        self.value = value


class UnknownBody(AstroKernelError, ValueError):
    """Body or frame identifier is not in the catalog."""
    def __init__(self, message: str, **context):
        super().__init__(message, ErrorClass.UNKNOWN_BODY, **context)


class NonFiniteValue(AstroKernelError, ValueError):
    """NaN or infinity reached duration/time arithmetic."""
    def __init__(self, message: str, **context):
        super().__init__(message, ErrorClass.NON_FINITE_VALUE, **context)


class CoverageError(AstroKernelError):
    """Date outside ephemeris coverage."""
    def __init__(self, message: str, **context):
        super().__init__(message, ErrorClass.EPHEMERIS_COVERAGE, **context)
