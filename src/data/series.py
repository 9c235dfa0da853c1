"""
Input series preparation and loading.

Sorts, de-duplicates (one point per calendar day, last wins) and checks
the price and sentiment series before they reach the simulation engine.
``SeriesStore`` is an explicit cache handle: the caller owns its lifetime
and decides when to ``refresh()``.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

import config

logger = logging.getLogger(__name__)


def _by_calendar_day(frame: pd.DataFrame | pd.Series) -> pd.DataFrame | pd.Series:
    idx = pd.DatetimeIndex(frame.index)
    if idx.tz is not None:
        idx = idx.tz_localize(None)
    frame = frame.copy()
    frame.index = idx.normalize()
    frame = frame.sort_index(kind="stable")
    return frame[~frame.index.duplicated(keep="last")]


def prepare_price_series(prices: pd.Series) -> pd.Series:
    """
    Normalize a daily price series for the engine.

    Parameters
    ----------
    prices : pd.Series
        Prices indexed by anything ``pd.DatetimeIndex`` accepts.

    Returns
    -------
    pd.Series
        Ascending, one float price per calendar day, named ``price``.
    """
    if prices.empty:
        raise ValueError("Price series is empty")
    prices = prices.dropna().astype(float)
    if (prices <= 0).any():
        raise ValueError("Prices must be strictly positive")
    prices = _by_calendar_day(prices)
    prices.name = "price"
    prices.index.name = "date"
    return prices


def prepare_sentiment_series(sentiment: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize a fear & greed series.

    Parameters
    ----------
    sentiment : pd.DataFrame
        Must contain a ``value`` column (0-100); ``classification`` is
        optional and defaults to an empty label.

    Returns
    -------
    pd.DataFrame
        Columns ``value`` (int) and ``classification`` (str), ascending
        by calendar day.
    """
    if "value" not in sentiment.columns:
        raise ValueError("Sentiment frame must include a 'value' column")
    sentiment = sentiment.dropna(subset=["value"])
    if sentiment.empty:
        return pd.DataFrame(
            {"value": pd.Series(dtype=int), "classification": pd.Series(dtype=str)},
            index=pd.DatetimeIndex([], name="date"),
        )
    values = sentiment["value"].astype(int)
    if ((values < 0) | (values > 100)).any():
        raise ValueError("Sentiment values must be in [0, 100]")
    labels = (
        sentiment["classification"].fillna("").astype(str)
        if "classification" in sentiment.columns
        else pd.Series("", index=sentiment.index)
    )
    out = _by_calendar_day(pd.DataFrame({"value": values, "classification": labels}))
    out.index.name = "date"
    return out


def load_price_csv(path: str | Path) -> pd.Series:
    """Read a ``date,price`` CSV into a prepared price series."""
    frame = pd.read_csv(path, parse_dates=["date"], index_col="date")
    if "price" not in frame.columns:
        raise ValueError(f"{path}: missing 'price' column")
    return prepare_price_series(frame["price"])


def load_sentiment_csv(path: str | Path) -> pd.DataFrame:
    """Read a ``date,value[,classification]`` CSV into a prepared frame."""
    frame = pd.read_csv(path, parse_dates=["date"], index_col="date")
    return prepare_sentiment_series(frame)


class SeriesStore:
    """
    Lazily loaded price and sentiment series.

    Each series is read from disk on first access and kept until
    ``refresh()`` is called. A missing sentiment file yields an empty
    frame (every fear & greed lookup then reports no data).

    Parameters
    ----------
    price_path : str or Path
        CSV with ``date`` and ``price`` columns.
    sentiment_path : str or Path or None
        CSV with ``date``, ``value`` and ``classification`` columns.
    """

    def __init__(
        self,
        price_path: str | Path = config.PRICE_CSV,
        sentiment_path: str | Path | None = config.SENTIMENT_CSV,
    ):
        self.price_path = Path(price_path)
        self.sentiment_path = Path(sentiment_path) if sentiment_path else None
        self._prices: pd.Series | None = None
        self._sentiment: pd.DataFrame | None = None

    @property
    def prices(self) -> pd.Series:
        if self._prices is None:
            logger.info("Loading prices from %s", self.price_path)
            self._prices = load_price_csv(self.price_path)
        return self._prices

    @property
    def sentiment(self) -> pd.DataFrame:
        if self._sentiment is None:
            if self.sentiment_path is None or not self.sentiment_path.exists():
                logger.warning("No sentiment data at %s", self.sentiment_path)
                self._sentiment = prepare_sentiment_series(pd.DataFrame({"value": []}))
            else:
                logger.info("Loading sentiment from %s", self.sentiment_path)
                self._sentiment = load_sentiment_csv(self.sentiment_path)
        return self._sentiment

    @property
    def is_loaded(self) -> bool:
        return self._prices is not None

    def refresh(self) -> None:
        """Drop cached series; the next access reloads from disk."""
        self._prices = None
        self._sentiment = None
