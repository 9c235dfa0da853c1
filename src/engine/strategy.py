"""
Strategy configuration for a single simulation run.

The engine reads a ``StrategyConfig`` but never validates it; callers run
``validate()`` on user input before invoking ``run_simulation``.
"""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

import config as cfg
from src.engine.schedule import Frequency, RebalanceFrequency


@dataclass(frozen=True)
class StrategyConfig:
    """Immutable strategy parameters.

    Attributes
    ----------
    start_date, end_date : str
        Inclusive simulation window, parsed as calendar days.
    amount : float
        Periodic injection amount.
    frequency : Frequency
        Injection schedule. Strings are coerced on construction.
    day_of_week : int
        Weekday for WEEKLY schedules (0 = Sunday).
    day_of_month : int
        Day-of-month for MONTHLY schedules.
    initial_investment : float
        Lump sum allocated on the first simulated day.
    enable_kelly_rebalance : bool
        Deposit injections as cash and rebalance to ``target_ratio``
        instead of buying on every injection.
    target_ratio : float
        Percent (0-100) of equity targeted in the asset.
    rebalance_frequency : RebalanceFrequency
        Rebalance schedule, independent of the injection schedule.
    enable_leverage, leverage : bool, float
        Buying-power multiplier (1-10) applied to every purchase.
    enable_fear_greed_filter, fear_greed_threshold : bool, int
        Skip injections when sentiment exceeds the threshold.
    enable_ma_filter, ma_threshold_type : bool, int
        Skip injections unless price is below the 200- or 350-day SMA.
    """

    start_date: str
    end_date: str
    amount: float = cfg.DCA_AMOUNT
    frequency: Frequency = Frequency(cfg.DCA_FREQUENCY)
    day_of_week: int = cfg.DAY_OF_WEEK
    day_of_month: int = cfg.DAY_OF_MONTH
    initial_investment: float = cfg.INITIAL_INVESTMENT
    enable_kelly_rebalance: bool = False
    target_ratio: float = cfg.TARGET_RATIO
    rebalance_frequency: RebalanceFrequency = RebalanceFrequency(cfg.REBALANCE_FREQ)
    enable_leverage: bool = False
    leverage: float = cfg.LEVERAGE
    enable_fear_greed_filter: bool = False
    fear_greed_threshold: int = cfg.FEAR_GREED_THRESHOLD
    enable_ma_filter: bool = False
    ma_threshold_type: int = cfg.MA_THRESHOLD_TYPE

    def __post_init__(self) -> None:
        object.__setattr__(self, "frequency", Frequency.parse(self.frequency))
        object.__setattr__(
            self, "rebalance_frequency", RebalanceFrequency.parse(self.rebalance_frequency)
        )
        object.__setattr__(self, "ma_threshold_type", int(self.ma_threshold_type))

    @property
    def leverage_ratio(self) -> float:
        """Effective multiplier: ``leverage`` when enabled, else 1."""
        return float(self.leverage) if self.enable_leverage else 1.0

    @property
    def is_leveraged(self) -> bool:
        """True when a loan is carried (leverage enabled and above 1)."""
        return self.enable_leverage and self.leverage > 1.0

    @property
    def window(self) -> tuple[pd.Timestamp, pd.Timestamp]:
        """Normalized (start, end) calendar days."""
        return (
            pd.Timestamp(self.start_date).normalize(),
            pd.Timestamp(self.end_date).normalize(),
        )

    def validate(self) -> StrategyConfig:
        """
        Reject structurally invalid parameters.

        Raises
        ------
        ValueError
            On the first out-of-range field.

        Returns
        -------
        StrategyConfig
            ``self``, for chaining.
        """
        start, end = self.window
        if start > end:
            raise ValueError(f"start_date {self.start_date} is after end_date {self.end_date}")
        if self.amount < 0:
            raise ValueError(f"amount must be non-negative, got {self.amount}")
        if self.initial_investment < 0:
            raise ValueError(
                f"initial_investment must be non-negative, got {self.initial_investment}"
            )
        if not cfg.MIN_LEVERAGE <= self.leverage <= cfg.MAX_LEVERAGE:
            raise ValueError(
                f"leverage must be in [{cfg.MIN_LEVERAGE}, {cfg.MAX_LEVERAGE}], got {self.leverage}"
            )
        if not 0 <= self.target_ratio <= 100:
            raise ValueError(f"target_ratio must be in [0, 100], got {self.target_ratio}")
        if not 0 <= self.fear_greed_threshold <= 100:
            raise ValueError(
                f"fear_greed_threshold must be in [0, 100], got {self.fear_greed_threshold}"
            )
        if not 0 <= self.day_of_week <= 6:
            raise ValueError(f"day_of_week must be in 0-6, got {self.day_of_week}")
        if not 1 <= self.day_of_month <= 31:
            raise ValueError(f"day_of_month must be in 1-31, got {self.day_of_month}")
        if self.ma_threshold_type not in cfg.MA_WINDOWS:
            raise ValueError(
                f"ma_threshold_type must be one of {cfg.MA_WINDOWS}, got {self.ma_threshold_type}"
            )
        return self
