"""
DCA simulation entry point.

Builds indicators over the full price history, folds ``advance_day`` over
every price point inside the strategy window, then aggregates the
timeline into a ``Summary``. A run owns its own ledger state and performs
no I/O, so independent runs can be compared freely.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

import pandas as pd

import config
from src.engine.day import DayInputs
from src.engine.ledger import LedgerRecord, LedgerState, TradeAction, advance_day
from src.engine.strategy import StrategyConfig
from src.engine.summary import Summary, summarize
from src.indicators.moving_average import build_indicators

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------

@dataclass
class SimulationResult:
    """Timeline of ledger records plus the aggregated summary."""

    timeline: list[LedgerRecord] = field(default_factory=list)
    stats: Summary = field(default_factory=Summary)

    def to_frame(self) -> pd.DataFrame:
        """Timeline as a DataFrame indexed by date."""
        if not self.timeline:
            return pd.DataFrame()
        return pd.DataFrame([r.to_dict() for r in self.timeline]).set_index("date")

    @property
    def trades(self) -> list[LedgerRecord]:
        """Records of days on which an action was taken."""
        return [r for r in self.timeline if r.is_trade_day]

    @property
    def portfolio_values(self) -> pd.Series:
        if not self.timeline:
            return pd.Series(dtype=float, name="portfolio_value")
        return pd.Series(
            [r.portfolio_value for r in self.timeline],
            index=pd.DatetimeIndex([r.date for r in self.timeline]),
            name="portfolio_value",
        )


# ---------------------------------------------------------------------------
# Input normalization
# ---------------------------------------------------------------------------

def _calendar_index(index: pd.Index) -> pd.DatetimeIndex:
    """Normalize timestamps to naive midnight calendar days."""
    idx = pd.DatetimeIndex(index)
    if idx.tz is not None:
        idx = idx.tz_localize(None)
    return idx.normalize()


def _optional(value: float) -> float | None:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    return float(value)


def sentiment_lookup(
    sentiment: pd.DataFrame | pd.Series | None,
) -> Mapping[pd.Timestamp, int]:
    """
    Read-only calendar-day → sentiment value mapping.

    Accepts a DataFrame with a ``value`` column or a Series of values.
    Missing days simply have no key.
    """
    if sentiment is None or len(sentiment) == 0:
        return MappingProxyType({})
    values = sentiment["value"] if isinstance(sentiment, pd.DataFrame) else sentiment
    values = pd.Series(values.to_numpy(), index=_calendar_index(values.index)).dropna()
    values = values[~values.index.duplicated(keep="last")]
    return MappingProxyType({day: int(v) for day, v in values.items()})


# ---------------------------------------------------------------------------
# Core entry point
# ---------------------------------------------------------------------------

def run_simulation(
    prices: pd.Series,
    sentiment: pd.DataFrame | pd.Series | None,
    strategy: StrategyConfig,
    dust_threshold: float = config.DUST_THRESHOLD,
) -> SimulationResult:
    """
    Simulate a DCA / target-ratio strategy over a daily price history.

    Parameters
    ----------
    prices : pd.Series
        Daily prices indexed by date; one point per calendar day.
    sentiment : pd.DataFrame, pd.Series or None
        Fear & greed readings (``value`` column), sparse by date.
    strategy : StrategyConfig
        Strategy parameters, already validated by the caller.
    dust_threshold : float
        Minimum rebalance trade size.

    Returns
    -------
    SimulationResult
        Empty timeline and zero summary when ``prices`` is empty.
    """
    if prices is None or len(prices) == 0:
        return SimulationResult()

    prices = pd.Series(
        prices.to_numpy(dtype=float), index=_calendar_index(prices.index)
    ).sort_index()
    indicators = build_indicators(prices)
    fear_greed = sentiment_lookup(sentiment)

    start, end = strategy.window
    in_window = prices[(prices.index >= start) & (prices.index <= end)]

    state = LedgerState.initial(strategy)
    timeline: list[LedgerRecord] = []

    for i, (date, price) in enumerate(in_window.items()):
        day = DayInputs(
            date=date,
            price=float(price),
            ma200=_optional(indicators.at[date, "ma200"]),
            ma350=_optional(indicators.at[date, "ma350"]),
            fear_greed=fear_greed.get(date),
            is_first_day=i == 0,
        )
        state, record = advance_day(state, day, strategy, dust_threshold)
        if record.action is TradeAction.LIQUIDATION:
            logger.warning(
                "Position liquidated on %s at price %.2f", date.date(), record.price
            )
        timeline.append(record)

    stats = summarize(timeline, state, strategy)

    logger.info(
        "Simulation complete: %d days | Invested: %.2f | Value: %.2f | Return: %.2f%% "
        "| Trades: %d | Rebalances: %d",
        len(timeline),
        stats.total_invested,
        stats.final_portfolio_value,
        stats.percentage_return,
        stats.trades_count,
        stats.rebalance_count,
    )

    return SimulationResult(timeline=timeline, stats=stats)
