"""
MET API — Budget Service
==========================

What:  Recomputes a budget's `currentFunds` from its transactions.
How:   currentFunds = sum(deposit amounts) - sum(withdrawal amounts),
       over every transaction whose budgetId matches.
"""

import logging

from met_api.repositories import PageQuery
from met_api.storage import Repositories

logger = logging.getLogger(__name__)


class BudgetService:
    async def recalc_funds(self, repos: Repositories, budget_id: str, owner_id: str) -> float:
        """
        Recalculates and stores the budget's funds; returns the new value.

        Raises NotFoundError when the budget does not exist or belongs to
        another user.
        """
        page = await repos.budgets.get_page(
            PageQuery(entity_id=budget_id, filters={"userId": owner_id})
        )
        budget = page[0]

        by_budget = PageQuery(filters={"budgetId": budget_id})
        deposits = await repos.budget_deposits.get_all(by_budget)
        withdrawals = await repos.withdrawals.get_all(by_budget)

        funds = sum(d.amount for d in deposits) - sum(w.amount for w in withdrawals)
        await repos.budgets.update(budget.copy_with(current_funds=funds))

        logger.info(
            "Budget %s recalculated: %d deposits, %d withdrawals, funds %s",
            budget_id,
            len(deposits),
            len(withdrawals),
            funds,
        )
        return funds


budget_service = BudgetService()
