"""Daily history frames and running-total helpers for the trend series."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from core.models import ForecastDayDelta, Transaction

__all__ = [
    "build_daily_history",
    "make_cumulative",
    "make_cumulative_from_base",
    "transactions_frame",
    "window_net",
]

_COLUMNS = ["income", "expense"]


def transactions_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Return transactions as a frame with normalized dates and float amounts."""

    records = [
        {"date": txn.date, "type": str(txn.type), "amount": txn.amount}
        for txn in transactions
    ]
    frame = pd.DataFrame(records, columns=["date", "type", "amount"])
    frame["date"] = pd.to_datetime(frame["date"]).dt.normalize()
    frame["amount"] = pd.to_numeric(frame["amount"], errors="coerce").fillna(0.0).astype(float)
    return frame


def build_daily_history(
    transactions: Iterable[Transaction] | pd.DataFrame,
    history_days: int,
    today: date,
) -> pd.DataFrame:
    """Construct one zero-filled row per day for the window ending on ``today``.

    The window covers ``history_days`` days with ``today`` as the last one.
    Columns hold raw (non-cumulative) daily income and expense.
    """

    if history_days <= 0:
        empty = pd.DataFrame(columns=_COLUMNS, index=pd.DatetimeIndex([], name="Day"), dtype=float)
        return empty

    frame = transactions if isinstance(transactions, pd.DataFrame) else transactions_frame(transactions)

    end = pd.Timestamp(today).normalize()
    start = end - pd.Timedelta(days=history_days - 1)
    index = pd.date_range(start, end, freq="D")

    in_window = frame[(frame["date"] >= start) & (frame["date"] <= end)]
    daily = pd.DataFrame(index=index)
    for column in _COLUMNS:
        daily[column] = (
            in_window.loc[in_window["type"] == column]
            .groupby("date")["amount"]
            .sum()
            .reindex(index, fill_value=0.0)
            .astype(float)
        )
    daily.index.name = "Day"
    return daily


def make_cumulative(daily: pd.DataFrame) -> pd.DataFrame:
    """Replace each day's raw value with the running total seeded at zero."""

    if daily.empty:
        return daily.copy()
    cumulative = daily[_COLUMNS].fillna(0.0).cumsum()
    return cumulative


def make_cumulative_from_base(
    deltas: Sequence[ForecastDayDelta],
    base_income: float,
    base_expense: float,
) -> pd.DataFrame:
    """Turn daily forecast deltas into running totals continuing from a base.

    ``deltas`` of ``[10, 15]`` on a base of ``100`` become ``[110, 125]``.
    """

    index = pd.DatetimeIndex([pd.Timestamp(delta.date) for delta in deltas], name="Day")
    income = np.array([float(delta.predicted_income) for delta in deltas], dtype=float)
    expense = np.array([float(delta.predicted_expense) for delta in deltas], dtype=float)

    frame = pd.DataFrame(
        {
            "income": float(base_income) + np.cumsum(np.nan_to_num(income)),
            "expense": float(base_expense) + np.cumsum(np.nan_to_num(expense)),
        },
        index=index,
    )
    return frame


def window_net(cumulative: pd.DataFrame) -> float:
    """Net income minus expense accumulated across a cumulative frame."""

    if cumulative.empty:
        return 0.0
    last = cumulative.iloc[-1]
    return float(last["income"] - last["expense"])
