"""Tests for src/engine/ledger.py."""

from __future__ import annotations

import pandas as pd
import pytest

from src.engine.day import DayInputs
from src.engine.ledger import (
    LedgerState,
    TradeAction,
    advance_day,
    liquidation_price,
    outstanding_loan,
)
from src.engine.strategy import StrategyConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _config(**overrides) -> StrategyConfig:
    params = dict(
        start_date="2024-01-01",
        end_date="2024-12-31",
        amount=0.0,
        frequency="daily",
        initial_investment=1000.0,
    )
    params.update(overrides)
    return StrategyConfig(**params)


def _day(date: str, price: float, first: bool = False, **kwargs) -> DayInputs:
    return DayInputs(date=pd.Timestamp(date), price=price, is_first_day=first, **kwargs)


def _first_day(config: StrategyConfig, price: float = 100.0):
    state = LedgerState.initial(config)
    return advance_day(state, _day("2024-01-01", price, first=True), config)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestLeverageHelpers:

    def test_liquidation_price(self):
        assert liquidation_price(100.0, 2.0) == pytest.approx(50.0)
        assert liquidation_price(100.0, 4.0) == pytest.approx(75.0)
        assert liquidation_price(100.0, 1.0) == 0.0

    def test_loan_zero_without_leverage(self):
        assert outstanding_loan(2000.0, _config(leverage=3.0)) == 0.0

    def test_loan_fraction_of_cost_basis(self):
        cfg = _config(enable_leverage=True, leverage=2.0)
        assert outstanding_loan(2000.0, cfg) == pytest.approx(1000.0)


class TestInitialAllocation:

    def test_buy_everything(self):
        cfg = _config()
        state, rec = _first_day(cfg)
        assert rec.asset_amount == pytest.approx(10.0)
        assert rec.cash_balance == 0.0
        assert rec.action is TradeAction.DCA_BUY
        assert rec.action_amount == 1000.0
        assert rec.average_entry_price == pytest.approx(100.0)
        assert rec.liquidation_price is None
        assert rec.portfolio_value == pytest.approx(1000.0)
        assert rec.return_rate == pytest.approx(0.0)
        assert state.trades_count == 0

    def test_leveraged_buy(self):
        cfg = _config(enable_leverage=True, leverage=2.0)
        state, rec = _first_day(cfg)
        assert rec.asset_amount == pytest.approx(20.0)
        assert rec.average_entry_price == pytest.approx(100.0)
        assert rec.liquidation_price == pytest.approx(50.0)
        # 2000 gross − 1000 loan
        assert rec.portfolio_value == pytest.approx(1000.0)
        assert state.cost_basis == pytest.approx(2000.0)

    def test_target_ratio_allocation(self):
        cfg = _config(enable_kelly_rebalance=True, target_ratio=80.0)
        state, rec = _first_day(cfg)
        assert rec.asset_amount == pytest.approx(8.0)
        assert rec.cash_balance == pytest.approx(200.0)
        assert rec.action is TradeAction.REBALANCE_BUY
        assert rec.action_amount == pytest.approx(800.0)
        # forced first-day rebalance finds nothing to do
        assert state.rebalance_count == 0

    def test_target_ratio_leveraged_allocation(self):
        cfg = _config(
            enable_kelly_rebalance=True, target_ratio=80.0, enable_leverage=True, leverage=2.0
        )
        state, rec = _first_day(cfg)
        assert rec.asset_amount == pytest.approx(16.0)
        assert rec.cash_balance == pytest.approx(200.0)
        assert state.cost_basis == pytest.approx(1600.0)
        assert rec.portfolio_value == pytest.approx(1000.0)
        assert state.rebalance_count == 0

    def test_runs_only_once(self):
        cfg = _config()
        state, _ = _first_day(cfg)
        state, rec = advance_day(state, _day("2024-01-02", 100.0), cfg)
        assert rec.action is TradeAction.NONE
        assert rec.asset_amount == pytest.approx(10.0)

    def test_zero_initial_investment_no_action(self):
        cfg = _config(initial_investment=0.0)
        state, rec = _first_day(cfg)
        assert rec.action is TradeAction.NONE
        assert rec.is_trade_day is False
        assert rec.average_entry_price is None
        assert rec.return_rate == 0.0


class TestInjection:

    def test_dca_buy(self):
        cfg = _config(initial_investment=0.0, amount=100.0)
        state, rec = _first_day(cfg, price=50.0)
        assert rec.action is TradeAction.DCA_BUY
        assert rec.asset_amount == pytest.approx(2.0)
        assert rec.total_invested == 100.0
        assert state.trades_count == 1

    def test_leveraged_dca_buy(self):
        cfg = _config(initial_investment=0.0, amount=100.0, enable_leverage=True, leverage=3.0)
        state, rec = _first_day(cfg, price=100.0)
        assert rec.asset_amount == pytest.approx(3.0)
        assert state.cost_basis == pytest.approx(300.0)
        assert rec.total_invested == 100.0

    def test_sentiment_filter_blocks(self):
        cfg = _config(
            initial_investment=0.0,
            amount=100.0,
            enable_fear_greed_filter=True,
            fear_greed_threshold=25,
        )
        state = LedgerState.initial(cfg)
        state, rec = advance_day(state, _day("2024-01-01", 100.0, fear_greed=30), cfg)
        assert rec.action is TradeAction.NONE
        assert rec.total_invested == 0.0
        assert rec.fear_greed_value == 30

    def test_never_frequency(self):
        cfg = _config(initial_investment=0.0, amount=100.0, frequency="never")
        _, rec = _first_day(cfg)
        assert rec.action is TradeAction.NONE

    def test_deposit_in_rebalance_mode(self):
        cfg = _config(
            amount=100.0,
            enable_kelly_rebalance=True,
            rebalance_frequency="monthly",
            day_of_month=1,
        )
        state, _ = _first_day(cfg)
        state, rec = advance_day(state, _day("2024-01-02", 100.0), cfg)
        assert rec.action is TradeAction.DCA_DEPOSIT
        assert rec.action_amount == 100.0
        assert rec.asset_amount == pytest.approx(8.8)  # day 1 rebalance bought the deposit
        assert rec.cash_balance == pytest.approx(320.0)
        assert rec.total_invested == pytest.approx(1200.0)

    def test_deposit_does_not_replace_initial_action(self):
        cfg = _config(
            amount=5.0,
            enable_kelly_rebalance=True,
            rebalance_frequency="monthly",
            day_of_month=1,
        )
        _, rec = _first_day(cfg)
        assert rec.action is TradeAction.REBALANCE_BUY
        assert rec.total_invested == pytest.approx(1005.0)


class TestRebalance:

    def _kelly(self, **overrides) -> StrategyConfig:
        params = dict(
            initial_investment=1000.0,
            enable_kelly_rebalance=True,
            target_ratio=80.0,
            rebalance_frequency="every_dca",
        )
        params.update(overrides)
        return _config(**params)

    def test_every_dca_buys_deposit(self):
        cfg = self._kelly(amount=100.0, frequency="weekly", day_of_week=2)  # Tuesdays
        state, _ = _first_day(cfg)  # 2024-01-01 is a Monday
        state, rec = advance_day(state, _day("2024-01-02", 100.0), cfg)
        # equity 1100 → target 880, holding 800 → buy 80
        assert rec.action is TradeAction.REBALANCE_BUY
        assert rec.action_amount == pytest.approx(80.0)
        assert rec.asset_amount == pytest.approx(8.8)
        assert rec.cash_balance == pytest.approx(220.0)
        assert state.rebalance_count == 1

    def test_dust_trade_skipped(self):
        cfg = self._kelly(amount=5.0, frequency="weekly", day_of_week=2)
        state, _ = _first_day(cfg)
        state, rec = advance_day(state, _day("2024-01-02", 100.0), cfg)
        # equity 1005 → target 804, diff 4 ≤ 5
        assert rec.action is TradeAction.DCA_DEPOSIT
        assert rec.asset_amount == pytest.approx(8.0)
        assert state.rebalance_count == 0

    def _half_split(self, cash: float) -> LedgerState:
        return LedgerState(
            cash=cash, asset_amount=5.0, cost_basis=500.0, total_invested=1000.0,
            initial_allocation_done=True,
        )

    def test_dust_threshold_is_inclusive(self):
        cfg = self._kelly(rebalance_frequency="daily", target_ratio=50.0, initial_investment=0.0)
        # equity 1010 → target 505, holding 500 → diff exactly 5
        state, rec = advance_day(self._half_split(510.0), _day("2024-01-02", 100.0), cfg)
        assert rec.action is TradeAction.NONE
        assert rec.asset_amount == 5.0
        assert state.rebalance_count == 0

    def test_trade_just_above_dust_threshold(self):
        cfg = self._kelly(rebalance_frequency="daily", target_ratio=50.0, initial_investment=0.0)
        # equity 1010.5 → target 505.25 → diff 5.25
        state, rec = advance_day(self._half_split(510.5), _day("2024-01-02", 100.0), cfg)
        assert rec.action is TradeAction.REBALANCE_BUY
        assert rec.action_amount == pytest.approx(5.25)
        assert rec.asset_amount == pytest.approx(5.0525)
        assert state.rebalance_count == 1

    def test_sell_after_spike(self):
        cfg = self._kelly(rebalance_frequency="daily")
        state, _ = _first_day(cfg)
        prior_basis = state.cost_basis
        state, rec = advance_day(state, _day("2024-01-02", 200.0), cfg)
        # gross 1600, equity 1800 → target 1440, sell 160 gross = 0.8 units
        assert rec.action is TradeAction.REBALANCE_SELL
        assert rec.action_amount == pytest.approx(160.0)
        assert rec.asset_amount == pytest.approx(7.2)
        assert rec.cash_balance == pytest.approx(360.0)
        assert state.cost_basis == pytest.approx(prior_basis * (1 - 0.8 / 8.0))
        assert rec.average_entry_price == pytest.approx(100.0)

    def test_leveraged_sell_returns_equity_share(self):
        cfg = self._kelly(rebalance_frequency="daily", enable_leverage=True, leverage=2.0)
        state, _ = _first_day(cfg)
        state, rec = advance_day(state, _day("2024-01-02", 80.0), cfg)
        # gross 1280, loan 800, equity 680 → target gross 1088, sell 192 gross
        assert rec.action is TradeAction.REBALANCE_SELL
        assert rec.asset_amount == pytest.approx(16.0 - 192.0 / 80.0)
        assert rec.action_amount == pytest.approx(96.0)
        assert rec.cash_balance == pytest.approx(296.0)

    def test_buy_limited_by_cash(self):
        cfg = self._kelly(rebalance_frequency="daily", target_ratio=100.0)
        state = LedgerState(
            cash=10.0, asset_amount=5.0, cost_basis=500.0, total_invested=510.0,
            initial_allocation_done=True,
        )
        state, rec = advance_day(state, _day("2024-01-02", 50.0), cfg)
        assert rec.action is TradeAction.REBALANCE_BUY
        assert rec.action_amount == pytest.approx(10.0)
        assert rec.cash_balance == pytest.approx(0.0)

    def test_no_rebalance_off_schedule(self):
        cfg = self._kelly(rebalance_frequency="monthly", day_of_month=15)
        state, _ = _first_day(cfg)
        state, rec = advance_day(state, _day("2024-01-02", 200.0), cfg)
        assert rec.action is TradeAction.NONE
        assert state.rebalance_count == 0

    def test_zero_target_sells_everything(self):
        cfg = self._kelly(rebalance_frequency="daily", target_ratio=0.0, initial_investment=0.0)
        state = LedgerState(
            cash=0.0, asset_amount=2.0, cost_basis=200.0, total_invested=200.0,
            initial_allocation_done=True,
        )
        state, rec = advance_day(state, _day("2024-01-02", 100.0), cfg)
        assert rec.action is TradeAction.REBALANCE_SELL
        assert rec.asset_amount == pytest.approx(0.0)
        assert rec.cash_balance == pytest.approx(200.0)


class TestLiquidation:

    def _leveraged(self) -> StrategyConfig:
        return _config(enable_leverage=True, leverage=2.0)

    def test_price_at_liquidation_level_liquidates(self):
        cfg = self._leveraged()
        state, _ = _first_day(cfg)
        state, rec = advance_day(state, _day("2024-01-02", 50.0), cfg)
        assert rec.action is TradeAction.LIQUIDATION
        assert rec.is_liquidated is True
        assert rec.is_trade_day is True
        assert rec.portfolio_value == 0.0
        assert rec.return_rate == -100.0
        assert state.is_liquidated is True
        assert state.asset_amount == 0.0
        assert state.cash == 0.0
        assert state.liquidation_date == pd.Timestamp("2024-01-02")

    def test_price_above_liquidation_level_survives(self):
        cfg = self._leveraged()
        state, _ = _first_day(cfg)
        state, rec = advance_day(state, _day("2024-01-02", 51.0), cfg)
        assert rec.is_liquidated is False
        assert rec.portfolio_value == pytest.approx(20 * 51.0 - 1000.0)

    def test_liquidated_state_is_absorbing(self):
        cfg = _config(amount=100.0, enable_leverage=True, leverage=2.0)
        state, _ = _first_day(cfg)
        state, _ = advance_day(state, _day("2024-01-02", 40.0), cfg)
        invested = state.total_invested
        state, rec = advance_day(state, _day("2024-01-03", 500.0), cfg)
        assert rec.is_liquidated is True
        assert rec.action is TradeAction.NONE
        assert rec.is_trade_day is False
        assert rec.portfolio_value == 0.0
        assert rec.return_rate == -100.0
        assert rec.total_invested == invested

    def test_leverage_one_never_liquidates(self):
        cfg = _config(enable_leverage=True, leverage=1.0)
        state, rec = _first_day(cfg)
        assert rec.liquidation_price == pytest.approx(0.0)
        state, rec = advance_day(state, _day("2024-01-02", 0.01), cfg)
        assert rec.is_liquidated is False

    def test_unleveraged_never_liquidates(self):
        cfg = _config()
        state, _ = _first_day(cfg)
        state, rec = advance_day(state, _day("2024-01-02", 1.0), cfg)
        assert rec.is_liquidated is False
        assert rec.liquidation_price is None
