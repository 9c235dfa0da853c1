"""
Conditional buy filters.

Both filters fail closed: a missing sentiment reading or a missing moving
average blocks the injection for that day.
"""

from __future__ import annotations

from src.engine.day import DayInputs
from src.engine.strategy import StrategyConfig


def sentiment_allows(day: DayInputs, threshold: int) -> bool:
    """True iff sentiment exists and is at or below ``threshold``."""
    return day.fear_greed is not None and day.fear_greed <= threshold


def trend_allows(day: DayInputs, window: int) -> bool:
    """True iff the SMA exists and price is strictly below it."""
    ma = day.moving_average(window)
    return ma is not None and day.price < ma


def allow_purchase(day: DayInputs, config: StrategyConfig) -> bool:
    """Conjunction of all enabled filters; disabled filters pass."""
    if config.enable_fear_greed_filter and not sentiment_allows(
        day, config.fear_greed_threshold
    ):
        return False
    if config.enable_ma_filter and not trend_allows(day, config.ma_threshold_type):
        return False
    return True
