"""Capital synchronization between wallet balances and the trend series."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable

import pandas as pd

from core.models import Transaction, TrendPoint, Wallet

__all__ = [
    "DRIFT_TOLERANCE",
    "OpeningBalanceDrift",
    "apply_capital",
    "current_capital",
    "opening_balance_drift",
    "synchronize_capital",
]

DRIFT_TOLERANCE = 0.02


@dataclass(frozen=True)
class OpeningBalanceDrift:
    recorded_opening: float
    synced_opening: float

    @property
    def drift(self) -> float:
        return self.synced_opening - self.recorded_opening

    @property
    def is_significant(self) -> bool:
        return abs(self.drift) > DRIFT_TOLERANCE


def current_capital(wallets: Iterable[Wallet]) -> float:
    """Sum of authoritative wallet balances."""

    return float(sum(float(wallet.balance or 0.0) for wallet in wallets))


def synchronize_capital(current: float, window_net: float) -> float:
    """Return the capital at window start implied by today's balance.

    Deriving it backwards from the authoritative balance makes the last
    historical point equal ``current`` exactly, even when balances were
    edited outside of recorded transactions.
    """

    return float(current) - float(window_net)


def opening_balance_drift(
    wallets: Iterable[Wallet],
    transactions: Iterable[Transaction],
) -> OpeningBalanceDrift:
    """Compare recorded opening balances with the ones today's balance implies."""

    wallet_list = list(wallets)
    recorded = float(sum(float(wallet.opening_balance or 0.0) for wallet in wallet_list))
    net_all = 0.0
    for txn in transactions:
        amount = float(txn.amount or 0.0)
        net_all += amount if txn.type == "income" else -amount
    synced = current_capital(wallet_list) - net_all
    return OpeningBalanceDrift(recorded_opening=recorded, synced_opening=synced)


def apply_capital(
    cumulative: pd.DataFrame,
    capital_base: float,
    *,
    today: date | None = None,
    is_forecast: bool = False,
) -> list[TrendPoint]:
    """Convert a cumulative frame into trend points with capital attached.

    Every point gets ``capital_base + income - expense``; the base is fixed
    for the whole regenerated series.
    """

    today_ts = pd.Timestamp(today).normalize() if today is not None else None
    points: list[TrendPoint] = []
    for day, row in cumulative.iterrows():
        income = float(row["income"])
        expense = float(row["expense"])
        points.append(
            TrendPoint(
                date=pd.Timestamp(day).date(),
                income=income,
                expense=expense,
                capital=float(capital_base) + income - expense,
                is_today=today_ts is not None and pd.Timestamp(day) == today_ts,
                is_forecast=is_forecast,
            )
        )
    return points
