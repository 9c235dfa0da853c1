"""Shared fixtures for the simulation tests."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest


def make_prices(values, start: str = "2024-01-01") -> pd.Series:
    """Daily price series from a list of values."""
    dates = pd.date_range(start, periods=len(values), freq="D")
    return pd.Series(np.asarray(values, dtype=float), index=dates, name="price")


@pytest.fixture
def flat_prices() -> pd.Series:
    """Ten days at a constant price of 100."""
    return make_prices([100.0] * 10)


@pytest.fixture
def random_prices() -> pd.Series:
    """400 days of a seeded random walk starting at 100."""
    np.random.seed(42)
    rets = np.random.normal(0.0005, 0.03, 400)
    return make_prices(100.0 * np.exp(np.cumsum(rets)), start="2023-01-01")
