"""Goal affordability service backed by the trend repository."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Callable, Iterable

from analytics.capital import current_capital
from analytics.goals import compute_monthly_stats, predict_goal, total_budget_ceiling
from analytics.history import transactions_frame
from core.data_access import TrendRepository
from core.models import GoalForecast, MonthlyStats

logger = logging.getLogger(__name__)

__all__ = ["GoalService"]


class GoalService:
    """Loads a user's monthly stats and budgets, then predicts goals."""

    def __init__(
        self,
        repository: TrendRepository,
        *,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._repository = repository
        self._today = today

    async def predict(
        self,
        user_id: int | str,
        goal_amount: float,
        *,
        use_current_capital: bool = False,
    ) -> GoalForecast:
        forecasts = await self.predict_many(user_id, [goal_amount], use_current_capital=use_current_capital)
        return forecasts[0]

    async def predict_many(
        self,
        user_id: int | str,
        goal_amounts: Iterable[float],
        *,
        use_current_capital: bool = False,
    ) -> list[GoalForecast]:
        """Predict several goals from one load of the user's records."""

        today = self._today()
        transactions, recurring, budgets, wallets = await asyncio.gather(
            self._repository.get_transactions(user_id),
            self._repository.get_recurring(user_id),
            self._repository.get_budgets(user_id),
            self._repository.get_wallets(user_id),
        )

        stats: MonthlyStats = compute_monthly_stats(transactions_frame(transactions), recurring, today)
        ceiling = total_budget_ceiling(budgets)
        capital = current_capital(wallets) if use_current_capital else None
        logger.debug(
            "Goal stats for user %s: income %.2f, expenses %.2f, budget ceiling %.2f",
            user_id,
            stats.income,
            stats.expenses,
            ceiling,
        )

        return [
            predict_goal(amount, stats, ceiling, today, current_capital=capital)
            for amount in goal_amounts
        ]
