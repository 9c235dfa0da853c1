"""
Trailing simple moving averages.

Computed once over the full ascending price series before the day-loop.
A date with fewer than ``window`` samples up to and including it has no
average (NaN), which callers treat as unavailable rather than zero.
"""

from __future__ import annotations

import pandas as pd

import config


def compute_sma(prices: pd.Series, window: int) -> pd.Series:
    """
    Trailing simple mean of the last ``window`` prices ending at each date.

    Parameters
    ----------
    prices : pd.Series
        Prices indexed by an ascending DatetimeIndex.
    window : int
        Number of samples in the average.

    Returns
    -------
    pd.Series
        Same index as ``prices``; NaN for the first ``window - 1`` dates.
    """
    if window < 1:
        raise ValueError(f"SMA window must be positive, got {window}")
    return prices.rolling(window=window, min_periods=window).mean()


def build_indicators(
    prices: pd.Series,
    windows: tuple[int, ...] = config.MA_WINDOWS,
) -> pd.DataFrame:
    """
    Build one SMA column per window, named ``ma{window}``.

    Parameters
    ----------
    prices : pd.Series
        Full price history (not only the simulation window).
    windows : tuple[int, ...]
        SMA lengths, 200 and 350 by default.

    Returns
    -------
    pd.DataFrame
        Columns ``ma200``, ``ma350`` (or as requested), index = price dates.
    """
    return pd.DataFrame(
        {f"ma{w}": compute_sma(prices, w) for w in windows},
        index=prices.index,
    )
