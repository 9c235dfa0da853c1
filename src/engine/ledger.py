"""
Portfolio ledger: the per-day state transition of a DCA simulation.

Each simulated day runs, in order: liquidation check → initial allocation
(first day only) → scheduled injection → target-ratio rebalance →
valuation. ``advance_day`` is a pure function from (prior state, day
inputs) to (new state, ledger record); the simulation loop just folds it
over the window.

Leverage is modelled through the cost basis: every purchase adds its full
buying power to ``cost_basis`` and the implied loan is always
``cost_basis * (L - 1) / L``. Liquidation is absorbing: once triggered,
every later record is zero-valued.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from enum import Enum

import pandas as pd

import config as cfg
from src.engine.day import DayInputs
from src.engine.filters import allow_purchase
from src.engine.schedule import RebalanceFrequency, is_scheduled
from src.engine.strategy import StrategyConfig


class TradeAction(str, Enum):
    """Closed set of actions a ledger record can report."""

    NONE = "none"
    DCA_BUY = "dca_buy"
    DCA_DEPOSIT = "dca_deposit"
    REBALANCE_BUY = "rebalance_buy"
    REBALANCE_SELL = "rebalance_sell"
    LIQUIDATION = "liquidation"


# ---------------------------------------------------------------------------
# State and record containers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LedgerState:
    """Portfolio state carried from one day to the next."""

    cash: float = 0.0
    asset_amount: float = 0.0
    cost_basis: float = 0.0  # fiat buying power spent, borrowed part included
    total_invested: float = 0.0
    trades_count: int = 0
    rebalance_count: int = 0
    is_liquidated: bool = False
    liquidation_date: pd.Timestamp | None = None
    initial_allocation_done: bool = False

    @classmethod
    def initial(cls, config: StrategyConfig) -> LedgerState:
        """State before the first day: the lump sum sits in cash."""
        return cls(
            cash=float(config.initial_investment),
            total_invested=float(config.initial_investment),
        )

    @property
    def average_entry_price(self) -> float | None:
        if self.asset_amount <= 0:
            return None
        return self.cost_basis / self.asset_amount


@dataclass(frozen=True)
class LedgerRecord:
    """One row of the simulation timeline."""

    date: pd.Timestamp
    price: float
    cash_balance: float
    asset_amount: float
    asset_value: float
    portfolio_value: float
    total_invested: float
    return_rate: float
    average_entry_price: float | None
    liquidation_price: float | None
    is_liquidated: bool
    action: TradeAction
    action_amount: float
    is_trade_day: bool
    ma200: float | None
    ma350: float | None
    fear_greed_value: int | None

    def to_dict(self) -> dict:
        row = asdict(self)
        row["action"] = self.action.value
        return row


# ---------------------------------------------------------------------------
# Leverage helpers
# ---------------------------------------------------------------------------

def liquidation_price(average_entry: float, leverage: float) -> float:
    """Price at which leveraged equity is wiped out: entry × (1 − 1/L)."""
    return average_entry * (1.0 - 1.0 / leverage)


def outstanding_loan(cost_basis: float, config: StrategyConfig) -> float:
    """Borrowed part of the cost basis; 0 without leverage."""
    if not config.is_leveraged:
        return 0.0
    lev = config.leverage_ratio
    return cost_basis * (lev - 1.0) / lev


# ---------------------------------------------------------------------------
# Transition
# ---------------------------------------------------------------------------

def _liquidated_record(
    state: LedgerState,
    day: DayInputs,
    action: TradeAction,
) -> LedgerRecord:
    return LedgerRecord(
        date=day.date,
        price=day.price,
        cash_balance=0.0,
        asset_amount=0.0,
        asset_value=0.0,
        portfolio_value=0.0,
        total_invested=state.total_invested,
        return_rate=-100.0,
        average_entry_price=None,
        liquidation_price=None,
        is_liquidated=True,
        action=action,
        action_amount=0.0,
        is_trade_day=action is not TradeAction.NONE,
        ma200=day.ma200,
        ma350=day.ma350,
        fear_greed_value=day.fear_greed,
    )


def _rebalance_due(day: DayInputs, config: StrategyConfig, injected: bool) -> bool:
    if day.is_first_day:
        return True
    if config.rebalance_frequency is RebalanceFrequency.EVERY_DCA:
        return injected
    return is_scheduled(
        day.date, config.rebalance_frequency, config.day_of_week, config.day_of_month
    )


def _rebalance(
    cash: float,
    quantity: float,
    cost_basis: float,
    price: float,
    config: StrategyConfig,
    dust_threshold: float,
) -> tuple[float, float, float, TradeAction, float] | None:
    """
    Trade toward ``target_ratio`` of equity held in the asset.

    Returns
    -------
    tuple or None
        (cash, quantity, cost_basis, action, action_amount) after the
        trade, or None when no trade is executed.
    """
    lev = config.leverage_ratio
    current_gross = quantity * price
    loan = outstanding_loan(cost_basis, config) if quantity > 0 else 0.0
    equity = cash + current_gross - loan

    target_gross = equity * (config.target_ratio / 100.0) * lev
    diff = target_gross - current_gross

    if abs(diff) <= dust_threshold:
        return None

    if diff > 0:
        spend = min(diff / lev, cash)
        if spend <= 0:
            return None
        buying_power = spend * lev
        return (
            cash - spend,
            quantity + buying_power / price,
            cost_basis + buying_power,
            TradeAction.REBALANCE_BUY,
            spend,
        )

    gross_to_sell = -diff
    quantity_sold = gross_to_sell / price
    if quantity_sold > quantity:
        return None
    proceeds = gross_to_sell / lev
    remaining = max(quantity - quantity_sold, 0.0)
    # Cost basis (and with it the loan) shrinks by the fraction sold.
    if quantity > 0:
        cost_basis *= 1.0 - quantity_sold / quantity
    return (
        cash + proceeds,
        remaining,
        cost_basis,
        TradeAction.REBALANCE_SELL,
        proceeds,
    )


def advance_day(
    state: LedgerState,
    day: DayInputs,
    config: StrategyConfig,
    dust_threshold: float = cfg.DUST_THRESHOLD,
) -> tuple[LedgerState, LedgerRecord]:
    """
    Apply one simulated day to the portfolio.

    Parameters
    ----------
    state : LedgerState
        State at the close of the previous day.
    day : DayInputs
        Price, indicators and sentiment for this day.
    config : StrategyConfig
        Strategy parameters.
    dust_threshold : float
        Minimum absolute rebalance trade (gross currency units).

    Returns
    -------
    tuple[LedgerState, LedgerRecord]
        New state and the record to append to the timeline.
    """
    if state.is_liquidated:
        return state, _liquidated_record(state, day, TradeAction.NONE)

    lev = config.leverage_ratio
    price = day.price
    cash = state.cash
    quantity = state.asset_amount
    cost_basis = state.cost_basis
    total_invested = state.total_invested
    trades_count = state.trades_count
    rebalance_count = state.rebalance_count
    action = TradeAction.NONE
    action_amount = 0.0

    # ── 1. Liquidation check ──
    if config.enable_leverage and quantity > 0:
        liq = liquidation_price(cost_basis / quantity, lev)
        if liq > 0 and price <= liq:
            liquidated = replace(
                state,
                cash=0.0,
                asset_amount=0.0,
                cost_basis=0.0,
                is_liquidated=True,
                liquidation_date=day.date,
                initial_allocation_done=True,
            )
            return liquidated, _liquidated_record(liquidated, day, TradeAction.LIQUIDATION)

    # ── 2. Initial allocation ──
    if not state.initial_allocation_done and config.initial_investment > 0:
        if config.enable_kelly_rebalance:
            target_equity = config.initial_investment * (config.target_ratio / 100.0)
            buying_power = target_equity * lev
            cash -= target_equity
            action = TradeAction.REBALANCE_BUY
            action_amount = target_equity
        else:
            buying_power = config.initial_investment * lev
            cash = 0.0
            action = TradeAction.DCA_BUY
            action_amount = config.initial_investment
        quantity += buying_power / price
        cost_basis += buying_power

    # ── 3. Scheduled injection ──
    injected = (
        is_scheduled(day.date, config.frequency, config.day_of_week, config.day_of_month)
        and allow_purchase(day, config)
        and config.amount > 0
    )
    if injected:
        total_invested += config.amount
        if config.enable_kelly_rebalance:
            cash += config.amount
            if action is TradeAction.NONE:
                action = TradeAction.DCA_DEPOSIT
                action_amount = config.amount
        else:
            buying_power = config.amount * lev
            quantity += buying_power / price
            cost_basis += buying_power
            trades_count += 1
            action = TradeAction.DCA_BUY
            action_amount = config.amount

    # ── 4. Rebalance ──
    if config.enable_kelly_rebalance and _rebalance_due(day, config, injected):
        trade = _rebalance(cash, quantity, cost_basis, price, config, dust_threshold)
        if trade is not None:
            cash, quantity, cost_basis, action, action_amount = trade
            rebalance_count += 1

    # ── 5. Valuation ──
    asset_value = quantity * price
    portfolio_value = cash + asset_value - outstanding_loan(cost_basis, config)
    return_rate = (
        (portfolio_value - total_invested) / total_invested * 100.0
        if total_invested > 0
        else 0.0
    )

    new_state = replace(
        state,
        cash=cash,
        asset_amount=quantity,
        cost_basis=cost_basis,
        total_invested=total_invested,
        trades_count=trades_count,
        rebalance_count=rebalance_count,
        initial_allocation_done=True,
    )
    average_entry = new_state.average_entry_price
    liq_price = (
        liquidation_price(average_entry, lev)
        if config.enable_leverage and average_entry is not None
        else None
    )

    record = LedgerRecord(
        date=day.date,
        price=price,
        cash_balance=cash,
        asset_amount=quantity,
        asset_value=asset_value,
        portfolio_value=portfolio_value,
        total_invested=total_invested,
        return_rate=return_rate,
        average_entry_price=average_entry,
        liquidation_price=liq_price,
        is_liquidated=False,
        action=action,
        action_amount=action_amount,
        is_trade_day=action is not TradeAction.NONE,
        ma200=day.ma200,
        ma350=day.ma350,
        fear_greed_value=day.fear_greed,
    )
    return new_state, record
