# astrokernel/core/deltas.py
# -----------------------------------------------------------------------------
# Exact Elapsed Time
#
# Representation:
#   • Integer whole seconds + integer attoseconds in [0, 10**18)
#   • Negative durations keep a negative integer part and a positive fraction
#   • Float inputs enter through their shortest decimal repr, so 0.1 s is
#     exactly 100000000000000000 as
#   • Scaling uses Decimal arithmetic and rounds half-even to one attosecond
#
# Public API:
#   Duration(seconds[, attoseconds])    (alias TimeDelta)
#   Duration.from_seconds/minutes/hours/days/julian_years/julian_centuries
#   Duration.range(start, stop, step)
# -----------------------------------------------------------------------------

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Context, Decimal, ROUND_HALF_EVEN
from fractions import Fraction
from typing import Iterator, Union

from .errors import NonFiniteValue

__all__ = [
    "ATTOSECONDS_PER_SECOND",
    "Duration",
    "TimeDelta",
    "to_decimal",
]

ATTOSECONDS_PER_SECOND = 10**18

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400
SECONDS_PER_JULIAN_YEAR = 31557600
SECONDS_PER_JULIAN_CENTURY = 3155760000

# Enough digits for 1e12 s expressed in attoseconds with room to spare
_CTX = Context(prec=60, rounding=ROUND_HALF_EVEN)
_ATTO = Decimal(ATTOSECONDS_PER_SECOND)

Number = Union[int, float, Decimal, Fraction]


def to_decimal(value: Number, name: str = "value") -> Decimal:
    """Convert a number to Decimal, rejecting NaN and infinities."""
    if isinstance(value, bool):
        raise TypeError(f"{name} must be a number, not bool")
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise NonFiniteValue(f"{name} must be finite, got {value}", value=value)
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, Fraction):
        return _CTX.divide(Decimal(value.numerator), Decimal(value.denominator))
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise TypeError(f"{name} must be a real number, got {type(value).__name__}") from None
    if not math.isfinite(number):
        raise NonFiniteValue(f"{name} must be finite, got {number}", value=number)
    return Decimal(repr(number))


def _attoseconds_of(seconds: Decimal) -> int:
    return int(_CTX.multiply(seconds, _ATTO).to_integral_value(rounding=ROUND_HALF_EVEN))


@dataclass(frozen=True, order=True)
class Duration:
    """Signed elapsed time with attosecond resolution.

    ``Duration(1.5)`` is one and a half seconds; ``Duration(1, 5 * 10**17)``
    is the same value given as integer parts.
    """

    seconds: int = 0
    attoseconds: int = 0

    def __post_init__(self):
        seconds, attoseconds = self.seconds, self.attoseconds
        if not isinstance(attoseconds, int) or isinstance(attoseconds, bool):
            raise TypeError("attoseconds must be an integer")
        if isinstance(seconds, int) and not isinstance(seconds, bool):
            total = seconds * ATTOSECONDS_PER_SECOND + attoseconds
        else:
            total = _attoseconds_of(to_decimal(seconds, "seconds")) + attoseconds
        whole, fraction = divmod(total, ATTOSECONDS_PER_SECOND)
        object.__setattr__(self, "seconds", whole)
        object.__setattr__(self, "attoseconds", fraction)

    # ───────────────────────────── Constructors ─────────────────────────────

    @classmethod
    def from_attoseconds(cls, total: int) -> "Duration":
        return cls(0, int(total))

    @classmethod
    def from_seconds(cls, value: Number) -> "Duration":
        return cls(value)

    @classmethod
    def from_minutes(cls, value: Number) -> "Duration":
        return cls._scaled(value, SECONDS_PER_MINUTE)

    @classmethod
    def from_hours(cls, value: Number) -> "Duration":
        return cls._scaled(value, SECONDS_PER_HOUR)

    @classmethod
    def from_days(cls, value: Number) -> "Duration":
        return cls._scaled(value, SECONDS_PER_DAY)

    @classmethod
    def from_julian_years(cls, value: Number) -> "Duration":
        return cls._scaled(value, SECONDS_PER_JULIAN_YEAR)

    @classmethod
    def from_julian_centuries(cls, value: Number) -> "Duration":
        return cls._scaled(value, SECONDS_PER_JULIAN_CENTURY)

    @classmethod
    def _scaled(cls, value: Number, factor: int) -> "Duration":
        return cls(_CTX.multiply(to_decimal(value), Decimal(factor)))

    @classmethod
    def range(cls, start: "Duration", stop: "Duration", step: "Duration") -> Iterator["Duration"]:
        """Yield start, start + step, ... up to but excluding stop."""
        if not step:
            raise ValueError("step must not be zero")
        current = start
        forward = step > cls()
        while (current < stop) if forward else (current > stop):
            yield current
            current = current + step

    # ───────────────────────────── Accessors ─────────────────────────────

    @property
    def total_attoseconds(self) -> int:
        return self.seconds * ATTOSECONDS_PER_SECOND + self.attoseconds

    @property
    def subsecond(self) -> float:
        """Fraction of the second in [0, 1)."""
        return self.attoseconds / ATTOSECONDS_PER_SECOND

    def to_decimal(self) -> Decimal:
        """Exact value in seconds."""
        return _CTX.add(Decimal(self.seconds), _CTX.divide(Decimal(self.attoseconds), _ATTO))

    def to_decimal_seconds(self) -> float:
        return float(self.seconds) + self.attoseconds / ATTOSECONDS_PER_SECOND

    def is_negative(self) -> bool:
        return self.seconds < 0

    # ───────────────────────────── Arithmetic ─────────────────────────────

    def __add__(self, other):
        if not isinstance(other, Duration):
            return NotImplemented
        return Duration.from_attoseconds(self.total_attoseconds + other.total_attoseconds)

    def __sub__(self, other):
        if not isinstance(other, Duration):
            return NotImplemented
        return Duration.from_attoseconds(self.total_attoseconds - other.total_attoseconds)

    def __neg__(self) -> "Duration":
        return Duration.from_attoseconds(-self.total_attoseconds)

    def __pos__(self) -> "Duration":
        return self

    def __abs__(self) -> "Duration":
        return -self if self.is_negative() else self

    def __mul__(self, factor):
        if isinstance(factor, Duration) or isinstance(factor, bool):
            return NotImplemented
        if isinstance(factor, int):
            return Duration.from_attoseconds(self.total_attoseconds * factor)
        scaled = _CTX.multiply(Decimal(self.total_attoseconds), to_decimal(factor, "factor"))
        return Duration.from_attoseconds(int(scaled.to_integral_value(rounding=ROUND_HALF_EVEN)))

    __rmul__ = __mul__

    def __bool__(self) -> bool:
        return self.seconds != 0 or self.attoseconds != 0

    def __float__(self) -> float:
        return self.to_decimal_seconds()

    def __str__(self) -> str:
        text = format(self.to_decimal().normalize(_CTX), "f")
        return f"{text} seconds"

    def __repr__(self) -> str:
        return f"Duration({self.seconds}, {self.attoseconds})"


TimeDelta = Duration
