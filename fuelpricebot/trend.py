"""Day-over-day price trend calculation."""

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Tuple, Union

UP = "up"
DOWN = "down"

Number = Union[Decimal, float, int, str]
PriceSeries = List[Tuple[int, Decimal]]

_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class TrendResult:
    as_of: date
    current_price: Decimal
    delta: Decimal
    direction: str


def to_decimal(value: Number) -> Decimal:
    """Return ``value`` as a ``Decimal`` without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def compute_trend(
    as_of: date, current_price: Number, previous_price: Optional[Number] = None
) -> TrendResult:
    """Return the price change between two consecutive points.

    When ``previous_price`` is missing the current price is reused, so a
    series with a single point reports no change and an upward direction.
    """
    current = to_decimal(current_price)
    previous = current if previous_price is None else to_decimal(previous_price)
    delta = (current - previous).quantize(_CENTS, rounding=ROUND_HALF_UP)
    direction = DOWN if delta < 0 else UP
    return TrendResult(as_of, current, delta, direction)


def trend_from_series(series: PriceSeries, as_of: date) -> TrendResult:
    """Return the trend of a newest-first series as of ``as_of``."""
    if not series:
        raise ValueError("empty price series")
    current = series[0][1]
    previous = series[1][1] if len(series) > 1 else None
    return compute_trend(as_of, current, previous)
