"""
Calendar schedule matching for DCA injections and rebalances.

Day-of-week numbering is 0 = Sunday … 6 = Saturday. Monthly schedules
match the exact day-of-month only: day 31 never fires in a 30-day month
and day 29-31 never fire in a non-leap February.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum


class Frequency(str, Enum):
    """DCA injection schedule."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    NEVER = "never"

    @classmethod
    def parse(cls, value: str | Frequency) -> Frequency:
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown DCA frequency: '{value}'") from None


class RebalanceFrequency(str, Enum):
    """Rebalance schedule; EVERY_DCA follows the injection schedule."""

    EVERY_DCA = "every_dca"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, value: str | RebalanceFrequency) -> RebalanceFrequency:
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown rebalance frequency: '{value}'") from None


_DAILY = (Frequency.DAILY, RebalanceFrequency.DAILY)
_WEEKLY = (Frequency.WEEKLY, RebalanceFrequency.WEEKLY)
_MONTHLY = (Frequency.MONTHLY, RebalanceFrequency.MONTHLY)


def weekday_number(date: dt.date) -> int:
    """Day of week with Sunday = 0."""
    return date.isoweekday() % 7


def is_scheduled(
    date: dt.date,
    frequency: Frequency | RebalanceFrequency,
    day_of_week: int,
    day_of_month: int,
) -> bool:
    """
    Decide whether ``date`` is an event day for a calendar frequency.

    Parameters
    ----------
    date : datetime.date or pd.Timestamp
        Calendar day being simulated.
    frequency : Frequency or RebalanceFrequency
        DAILY, WEEKLY or MONTHLY. NEVER and EVERY_DCA never match here;
        EVERY_DCA is resolved by the ledger against the injection schedule.
    day_of_week : int
        Weekday for WEEKLY (0 = Sunday).
    day_of_month : int
        Day-of-month for MONTHLY.

    Returns
    -------
    bool
    """
    if frequency in _DAILY:
        return True
    if frequency in _WEEKLY:
        return weekday_number(date) == day_of_week
    if frequency in _MONTHLY:
        return date.day == day_of_month
    return False
