"""
Unit Arithmetic
Linear timespan units, epoch timestamp units and typed quantities.
"""

import math
from dataclasses import dataclass
from fractions import Fraction
from typing import Dict, Union


@dataclass(frozen=True)
class LinearUnit:
    """A unit expressed as a multiple of its dimension's base (seconds for time)."""

    symbol: str
    multiplier: Fraction
    dimension: str = "time"

    @property
    def delta_unit(self) -> "LinearUnit":
        return self

    def __str__(self) -> str:
        return self.symbol


@dataclass(frozen=True)
class EpochUnit:
    """
    Absolute timestamp unit counted from the Unix epoch.

    Differences between two epoch values are expressed in delta_unit.
    """

    symbol: str
    delta_unit: LinearUnit

    @property
    def multiplier(self) -> Fraction:
        return self.delta_unit.multiplier

    @property
    def dimension(self) -> str:
        return "epoch"

    def __str__(self) -> str:
        return self.symbol


Unit = Union[LinearUnit, EpochUnit]


# ============================================================================
# Standard Units
# ============================================================================

NANOSECOND = LinearUnit("ns", Fraction(1, 1_000_000_000))
MICROSECOND = LinearUnit("us", Fraction(1, 1_000_000))
MILLISECOND = LinearUnit("ms", Fraction(1, 1_000))
SECOND = LinearUnit("s", Fraction(1))
MINUTE = LinearUnit("min", Fraction(60))
HOUR = LinearUnit("h", Fraction(3600))

COUNT = LinearUnit("count", Fraction(1), dimension="count")

EPOCH_NS = EpochUnit("epochns", NANOSECOND)
EPOCH_US = EpochUnit("epochus", MICROSECOND)
EPOCH_MS = EpochUnit("epochms", MILLISECOND)
EPOCH_S = EpochUnit("epochs", SECOND)

_UNITS: Dict[str, Unit] = {
    u.symbol: u
    for u in (
        NANOSECOND, MICROSECOND, MILLISECOND, SECOND, MINUTE, HOUR,
        COUNT, EPOCH_NS, EPOCH_US, EPOCH_MS, EPOCH_S,
    )
}


def get_unit(symbol: str) -> Unit:
    """Look up a unit by symbol. Raises KeyError for unknown symbols."""
    return _UNITS[symbol]


def unit_fraction(source: Unit, target: Unit) -> Fraction:
    """Exact conversion factor from source to target."""
    if source.dimension != target.dimension:
        raise ValueError(f"Cannot convert {source} to {target}")
    return source.multiplier / target.multiplier


def unit_ratio(source: Unit, target: Unit) -> float:
    """
    Factor that converts a value expressed in source into target.

    unit_ratio(MILLISECOND, NANOSECOND) == 1e6
    """
    return float(unit_fraction(source, target))


@dataclass(frozen=True)
class Quantity:
    """A numeric value tagged with its unit."""

    value: Union[int, float]
    unit: Unit = COUNT

    def long_value(self) -> int:
        if isinstance(self.value, int):
            return self.value
        return math.trunc(self.value)

    def in_unit(self, unit: Unit) -> float:
        return self.value * unit_ratio(self.unit, unit)

    def __str__(self) -> str:
        return f"{self.value} {self.unit}"
