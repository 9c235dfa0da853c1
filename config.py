"""
Central configuration for the DCA simulation engine.
All tunable parameters live here; library code takes them as defaults.
"""

# ──────────────────────────────────────────────
# Data
# ──────────────────────────────────────────────
PRICE_CSV = "data/prices.csv"          # columns: date, price
SENTIMENT_CSV = "data/fear_greed.csv"  # columns: date, value, classification

# ──────────────────────────────────────────────
# DCA Schedule
# ──────────────────────────────────────────────
DCA_AMOUNT = 100.0           # periodic injection
DCA_FREQUENCY = "weekly"     # 'daily', 'weekly', 'monthly', 'never'
DAY_OF_WEEK = 1              # 0 = Sunday … 6 = Saturday
DAY_OF_MONTH = 1             # 1-31, no end-of-month snap-back
INITIAL_INVESTMENT = 10_000.0

# ──────────────────────────────────────────────
# Target-Ratio Rebalance
# ──────────────────────────────────────────────
TARGET_RATIO = 80.0          # % of equity held in the asset
REBALANCE_FREQ = "monthly"   # 'every_dca', 'daily', 'weekly', 'monthly'
DUST_THRESHOLD = 5.0         # no rebalance trade when |diff| <= this

# ──────────────────────────────────────────────
# Leverage
# ──────────────────────────────────────────────
LEVERAGE = 1.0
MIN_LEVERAGE = 1.0
MAX_LEVERAGE = 10.0

# ──────────────────────────────────────────────
# Buy Filters
# ──────────────────────────────────────────────
FEAR_GREED_THRESHOLD = 25    # skip injections when sentiment > this
MA_WINDOWS = (200, 350)      # trailing SMA windows (samples)
MA_THRESHOLD_TYPE = 200      # which SMA the trend filter uses

# ──────────────────────────────────────────────
# Output
# ──────────────────────────────────────────────
REPORT_PATH = "output/report.txt"
TRADE_LOG_LIMIT = 25         # most recent trade days shown in the report
