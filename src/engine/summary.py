"""
Summary statistics for a finished simulation timeline.
"""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from src.engine.ledger import LedgerRecord, LedgerState, outstanding_loan
from src.engine.strategy import StrategyConfig


@dataclass(frozen=True)
class Summary:
    """Headline statistics for one strategy run."""

    total_invested: float = 0.0
    final_portfolio_value: float = 0.0
    total_return: float = 0.0
    percentage_return: float = 0.0
    trades_count: int = 0
    rebalance_count: int = 0
    current_price: float = 0.0
    final_cash_balance: float = 0.0
    final_asset_value: float = 0.0
    final_asset_amount: float = 0.0
    average_entry_price: float = 0.0
    current_fear_greed: int | None = None
    duration_days: int = 0
    is_liquidated: bool = False
    liquidation_date: pd.Timestamp | None = None

    def __str__(self) -> str:
        lines = [
            f"  Total Invested:       ${self.total_invested:>14,.2f}",
            f"  Final Value:          ${self.final_portfolio_value:>14,.2f}",
            f"  Total Return:         ${self.total_return:>14,.2f}",
            f"  Return:               {self.percentage_return:>14.2f}%",
            f"  DCA Trades:           {self.trades_count:>15d}",
            f"  Rebalances:           {self.rebalance_count:>15d}",
            f"  Asset Held:           {self.final_asset_amount:>15.6f}",
            f"  Avg Entry Price:      ${self.average_entry_price:>14,.2f}",
            f"  Cash:                 ${self.final_cash_balance:>14,.2f}",
            f"  Duration:             {self.duration_days:>10d} days",
        ]
        if self.is_liquidated:
            lines.append(f"  LIQUIDATED ON:        {self.liquidation_date.date()!s:>15}")
        return "\n".join(lines)


def summarize(
    timeline: list[LedgerRecord],
    state: LedgerState,
    config: StrategyConfig,
) -> Summary:
    """
    Reduce a completed timeline and final state into a ``Summary``.

    Parameters
    ----------
    timeline : list[LedgerRecord]
        Chronological ledger records.
    state : LedgerState
        Portfolio state after the last simulated day.
    config : StrategyConfig
        Strategy parameters (needed for the loan on leveraged runs).

    Returns
    -------
    Summary
        With an empty timeline, only the untouched cash is reported.
    """
    if not timeline:
        # Nothing traded: the lump sum is still held as cash.
        return Summary(
            total_invested=state.total_invested,
            final_portfolio_value=state.cash,
            final_cash_balance=state.cash,
        )

    first, last = timeline[0], timeline[-1]
    final_price = last.price

    if state.is_liquidated:
        final_value = 0.0
    else:
        final_value = (
            state.cash
            + state.asset_amount * final_price
            - outstanding_loan(state.cost_basis, config)
        )

    total_invested = last.total_invested
    total_return = final_value - total_invested
    percentage_return = total_return / total_invested * 100.0 if total_invested > 0 else 0.0
    duration_days = (last.date.normalize() - first.date.normalize()).days + 1

    return Summary(
        total_invested=total_invested,
        final_portfolio_value=final_value,
        total_return=total_return,
        percentage_return=percentage_return,
        trades_count=state.trades_count,
        rebalance_count=state.rebalance_count,
        current_price=final_price,
        final_cash_balance=state.cash,
        final_asset_value=state.asset_amount * final_price,
        final_asset_amount=state.asset_amount,
        average_entry_price=last.average_entry_price or 0.0,
        current_fear_greed=last.fear_greed_value,
        duration_days=duration_days,
        is_liquidated=state.is_liquidated,
        liquidation_date=state.liquidation_date,
    )
