"""
Strategy comparison: plain DCA vs. filtered DCA vs. target-ratio rebalance.

Reads the price and fear & greed histories from config.PRICE_CSV and
config.SENTIMENT_CSV, runs each strategy over the last year of data and
prints the report.

Usage:
    source venv/bin/activate && python run_backtest.py
"""

import logging

import pandas as pd

from src.data.series import SeriesStore
from src.engine.simulation import run_simulation
from src.engine.strategy import StrategyConfig
from src.visualization.report import generate_report

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> None:
    # ── 1. Load data ──
    store = SeriesStore()
    prices = store.prices
    sentiment = store.sentiment
    logger.info("Price history: %d days", len(prices))

    end = prices.index[-1]
    start = end - pd.DateOffset(years=1)
    window = {"start_date": str(start.date()), "end_date": str(end.date())}

    # ── 2. Strategies ──
    strategies = {
        "Weekly DCA": StrategyConfig(**window),
        "Weekly DCA + Fear Filter": StrategyConfig(**window, enable_fear_greed_filter=True),
        "Weekly DCA + 200 SMA": StrategyConfig(**window, enable_ma_filter=True),
        "80% Target Rebalance": StrategyConfig(**window, enable_kelly_rebalance=True),
        "80% Target 2x Leverage": StrategyConfig(
            **window, enable_kelly_rebalance=True, enable_leverage=True, leverage=2.0
        ),
    }

    # ── 3. Run ──
    results = {}
    for name, strategy in strategies.items():
        logger.info("Running %s...", name)
        results[name] = run_simulation(prices, sentiment, strategy.validate())

    # ── 4. Report ──
    generate_report(results)


if __name__ == "__main__":
    main()
