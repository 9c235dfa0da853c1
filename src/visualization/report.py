"""
Summary report generator.

Prints and saves a text report covering: headline statistics per
strategy and the most recent trade days of each strategy's ledger.
"""

from __future__ import annotations

from pathlib import Path

import config
from src.engine.ledger import LedgerRecord, TradeAction
from src.engine.simulation import SimulationResult

REPORT_PATH = Path(config.REPORT_PATH)
SEP = "=" * 66
SEP2 = "-" * 66

ACTION_LABELS = {
    TradeAction.DCA_BUY: "DCA BUY",
    TradeAction.DCA_DEPOSIT: "DEPOSIT",
    TradeAction.REBALANCE_BUY: "REBAL BUY",
    TradeAction.REBALANCE_SELL: "REBAL SELL",
    TradeAction.LIQUIDATION: "LIQUIDATED",
    TradeAction.NONE: "-",
}


def format_trade_log(timeline: list[LedgerRecord], limit: int | None = None) -> list[str]:
    """
    Trade-day rows, most recent first.

    Parameters
    ----------
    timeline : list[LedgerRecord]
        Full simulation timeline.
    limit : int or None
        Maximum rows to return (None = all).
    """
    trades = [r for r in reversed(timeline) if r.is_trade_day]
    if limit is not None:
        trades = trades[:limit]

    rows = [
        f"  {'Date':<10}  {'Operation':<10}  {'Value':>11}  {'Price':>11}"
        f"  {'Cash':>11}  {'Holdings':>12}  {'Return':>8}",
        f"  {'─'*10}  {'─'*10}  {'─'*11}  {'─'*11}  {'─'*11}  {'─'*12}  {'─'*8}",
    ]
    for r in trades:
        rows.append(
            f"  {r.date.date()!s:<10}  {ACTION_LABELS[r.action]:<10}"
            f"  {r.action_amount:>11,.2f}  {r.price:>11,.2f}"
            f"  {r.cash_balance:>11,.2f}  {r.asset_amount:>12.6f}"
            f"  {r.return_rate:>7.2f}%"
        )
    return rows


def generate_report(
    results: dict[str, SimulationResult],
    write_file: bool = True,
    trade_log_limit: int | None = config.TRADE_LOG_LIMIT,
) -> str:
    """
    Generate a text report comparing strategies.

    Parameters
    ----------
    results : dict[str, SimulationResult]
        Mapping of strategy name → SimulationResult.
    write_file : bool
        If True, save to config.REPORT_PATH.
    trade_log_limit : int or None
        Trade days listed per strategy.

    Returns
    -------
    str
        Full report text.
    """
    lines: list[str] = []

    def add(text: str = "") -> None:
        lines.append(text)

    add(SEP)
    add("  DCA STRATEGY SIMULATION — REPORT")
    add(SEP)

    for name, result in results.items():
        add()
        add(f"  ┌─ {name} " + "─" * max(0, 50 - len(name)) + "┐")
        if not result.timeline:
            add("  │  No price data in the simulation window.")
            add("  └" + "─" * 54 + "┘")
            continue
        first, last = result.timeline[0], result.timeline[-1]
        add(f"  │  Window: {first.date.date()} → {last.date.date()}")
        for row in str(result.stats).splitlines():
            add(f"  │{row}")
        add("  └" + "─" * 54 + "┘")

    for name, result in results.items():
        add()
        add(SEP2)
        add(f"  TRADE LOG — {name} ({len(result.trades)} events)")
        add(SEP2)
        for row in format_trade_log(result.timeline, trade_log_limit):
            add(row)

    add()
    add(SEP)

    text = "\n".join(lines)
    print(text)

    if write_file:
        REPORT_PATH.parent.mkdir(parents=True, exist_ok=True)
        REPORT_PATH.write_text(text)
        print(f"\n  Report saved → {REPORT_PATH}")

    return text
