"""IELTS band arithmetic.

Bands live on a 0-9 scale in half-band steps. Averages are rounded with the
IELTS convention (below .25 down, below .75 to the half band, otherwise up).
The overall band rounds the mean of the already rounded skill bands, so
rounding happens twice. Dashboards rely on that result; keep it.
"""
from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP
from typing import Iterable, Optional, Union

from app.core.constants import MIN_BAND, MAX_BAND

Number = Union[int, float, Decimal]

_QUARTER = Decimal("0.25")
_THREE_QUARTERS = Decimal("0.75")
_HALF = Decimal("0.5")


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 6.25 as 6.25 instead of its binary expansion
    return Decimal(str(value))


def _clamp(value: Decimal) -> float:
    return float(min(max(value, Decimal(str(MIN_BAND))), Decimal(str(MAX_BAND))))


def round_ielts(score: Number) -> float:
    value = _to_decimal(score)
    base = value.to_integral_value(rounding=ROUND_FLOOR)
    fraction = value - base
    if fraction < _QUARTER:
        rounded = base
    elif fraction < _THREE_QUARTERS:
        rounded = base + _HALF
    else:
        rounded = base + 1
    return _clamp(rounded)


def mean(scores: Iterable[Number]) -> Decimal:
    values = [_to_decimal(s) for s in scores if s is not None]
    if not values:
        return Decimal(0)
    return sum(values, Decimal(0)) / len(values)


def skill_band(scores: Iterable[Number]) -> float:
    return round_ielts(mean(scores))


def overall_band(reading: Number, listening: Number, writing: Number, speaking: Number) -> float:
    return round_ielts(mean([reading, listening, writing, speaking]))


def speaking_overall(
    pronunciation: Number,
    fluency: Number,
    lexical_resource: Number,
    grammar_accuracy: Number,
) -> float:
    """Mean of the four speaking criteria to the nearest half band, ties up."""
    avg = mean([pronunciation, fluency, lexical_resource, grammar_accuracy])
    doubled = (avg * 2).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return _clamp(doubled / 2)


def is_valid_band(value: Optional[Number]) -> bool:
    if value is None:
        return False
    d = _to_decimal(value)
    return Decimal(str(MIN_BAND)) <= d <= Decimal(str(MAX_BAND)) and (d * 2) % 1 == 0
