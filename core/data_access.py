"""Data access contracts consumed by the trend engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Final, Protocol, Sequence

import pandas as pd

from core.models import BudgetLimit, PlannedItem, RecurringObligation, Transaction, Wallet

__all__ = [
    "InMemoryTrendRepository",
    "TrendRepository",
    "load_transactions",
]


class TrendRepository(Protocol):
    """Unfiltered per-user records; the engine applies its own date logic."""

    async def get_transactions(self, user_id: int | str) -> Sequence[Transaction]: ...

    async def get_wallets(self, user_id: int | str) -> Sequence[Wallet]: ...

    async def get_recurring(self, user_id: int | str) -> Sequence[RecurringObligation]: ...

    async def get_planned_income(self, user_id: int | str) -> Sequence[PlannedItem]: ...

    async def get_planned_expenses(self, user_id: int | str) -> Sequence[PlannedItem]: ...

    async def get_budgets(self, user_id: int | str) -> Sequence[BudgetLimit]: ...


@dataclass
class InMemoryTrendRepository:
    """Repository backed by plain lists, keyed by user id."""

    transactions: dict[int | str, list[Transaction]] = field(default_factory=dict)
    wallets: dict[int | str, list[Wallet]] = field(default_factory=dict)
    recurring: dict[int | str, list[RecurringObligation]] = field(default_factory=dict)
    planned_income: dict[int | str, list[PlannedItem]] = field(default_factory=dict)
    planned_expenses: dict[int | str, list[PlannedItem]] = field(default_factory=dict)
    budgets: dict[int | str, list[BudgetLimit]] = field(default_factory=dict)

    async def get_transactions(self, user_id: int | str) -> Sequence[Transaction]:
        return list(self.transactions.get(user_id, []))

    async def get_wallets(self, user_id: int | str) -> Sequence[Wallet]:
        return list(self.wallets.get(user_id, []))

    async def get_recurring(self, user_id: int | str) -> Sequence[RecurringObligation]:
        return list(self.recurring.get(user_id, []))

    async def get_planned_income(self, user_id: int | str) -> Sequence[PlannedItem]:
        return list(self.planned_income.get(user_id, []))

    async def get_planned_expenses(self, user_id: int | str) -> Sequence[PlannedItem]:
        return list(self.planned_expenses.get(user_id, []))

    async def get_budgets(self, user_id: int | str) -> Sequence[BudgetLimit]:
        return list(self.budgets.get(user_id, []))


_CACHE_SIZE: Final[int] = 8


@lru_cache(maxsize=_CACHE_SIZE)
def load_transactions(csv_path: str | Path) -> tuple[Transaction, ...]:
    """Return realized transactions parsed from a ``date,type,amount`` CSV.

    Results are cached to avoid redundant disk reads when the same export is
    replayed several times during a session.
    """

    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")

    df = pd.read_csv(path, parse_dates=["date"])
    df["type"] = df["type"].astype(str).str.strip().str.lower()
    df = df[df["type"].isin(["income", "expense"])].copy()
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce").fillna(0.0).abs()

    return tuple(
        Transaction(date=row.date.date(), type=row.type, amount=float(row.amount))
        for row in df.itertuples(index=False)
    )
