"""
Trend Calculator

Compares the current visibility score with a baseline taken from the
previous run or from a score history.
"""

from numbers import Number
from typing import Any, Optional

from ..models import Trend, TrendDirection
from .metrics import round_half_up

TREND_THRESHOLD = 5


def _score_of(item: Any) -> Optional[float]:
    if item is None or isinstance(item, bool):
        return None
    if isinstance(item, Number):
        return float(item)
    if isinstance(item, dict):
        value = item.get("visibility_score", item.get("visibilityScore"))
        return float(value) if value is not None else None
    value = getattr(item, "visibility_score", None)
    return float(value) if value is not None else None


def baseline_score(previous: Any) -> Optional[float]:
    """
    Baseline from a single previous score or a history.

    ``previous`` may be a number, an object or mapping with a visibility
    score, or a sequence of those (averaged). Entries without a score are
    ignored.
    """
    if isinstance(previous, (list, tuple)):
        scores = [s for s in (_score_of(item) for item in previous) if s is not None]
        return sum(scores) / len(scores) if scores else None
    return _score_of(previous)


def calculate_trend(current: float, previous: Any = None) -> Trend:
    """
    Direction and magnitude of the change from ``previous`` to ``current``.

    Changes smaller than five points are reported as neutral with value 0.
    """
    baseline = baseline_score(previous)
    if baseline is None:
        return Trend(TrendDirection.NEUTRAL, 0)

    delta = float(current) - baseline
    if abs(delta) < TREND_THRESHOLD:
        return Trend(TrendDirection.NEUTRAL, 0)

    direction = TrendDirection.UP if delta > 0 else TrendDirection.DOWN
    return Trend(direction, round_half_up(abs(delta)))
