"""Occurrence checks for recurring income and expense obligations."""

from __future__ import annotations

import calendar
from datetime import date

from dateutil.relativedelta import relativedelta

from core.models import RecurringObligation

__all__ = [
    "MAX_MONTHLY_STEPS",
    "MAX_QUARTERLY_STEPS",
    "occurs_on",
]

# Month-stepping searches stop after ten years of advances.
MAX_MONTHLY_STEPS = 120
MAX_QUARTERLY_STEPS = 40


def occurs_on(obligation: RecurringObligation, target_date: date) -> bool:
    """Return ``True`` when ``obligation`` falls due on ``target_date``.

    The obligation's ``next_date`` is the anchor. Month-based cadences keep
    the anchor's day-of-month and clamp it to the last day of shorter months,
    so an anchor on the 31st lands on Feb 28/29 and then on Mar 31 again.
    """

    anchor = obligation.next_date
    if target_date < anchor:
        return False
    if target_date == anchor:
        return True

    frequency = obligation.frequency
    if frequency == "daily":
        return True
    if frequency == "weekly":
        return (target_date - anchor).days % 7 == 0
    if frequency == "monthly":
        return _lands_on_month_step(anchor, target_date, months=1, max_steps=MAX_MONTHLY_STEPS)
    if frequency == "quarterly":
        return _lands_on_month_step(anchor, target_date, months=3, max_steps=MAX_QUARTERLY_STEPS)
    if frequency == "yearly":
        return _matches_yearly(anchor, target_date)
    return False


def _lands_on_month_step(anchor: date, target: date, *, months: int, max_steps: int) -> bool:
    for step in range(1, max_steps + 1):
        # relativedelta clamps to the month end while keeping the anchor day.
        current = anchor + relativedelta(months=months * step)
        if current == target:
            return True
        if current > target:
            return False
    return False


def _matches_yearly(anchor: date, target: date) -> bool:
    if target.month != anchor.month:
        return False
    if target.year - anchor.year <= 0:
        return False

    days_in_month = calendar.monthrange(target.year, target.month)[1]
    if target.day == anchor.day:
        return True
    return target.day == days_in_month and anchor.day > days_in_month
