"""Per-day market inputs fed to the ledger."""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd


@dataclass(frozen=True)
class DayInputs:
    """Everything the ledger observes about one simulated calendar day."""

    date: pd.Timestamp
    price: float
    ma200: float | None = None
    ma350: float | None = None
    fear_greed: int | None = None
    is_first_day: bool = False

    def moving_average(self, window: int) -> float | None:
        """SMA for ``window`` (200 or 350), None when unavailable."""
        if window == 200:
            return self.ma200
        if window == 350:
            return self.ma350
        raise ValueError(f"No moving average tracked for window {window}")
