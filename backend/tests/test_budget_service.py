"""MET API — BudgetService.recalc_funds tests."""

import pytest

from met_api.exceptions import NotFoundError
from met_api.models import Budget, DepositTransaction, WithdrawalTransaction
from met_api.services.budget_service import BudgetService


def _budget(**overrides):
    data = {"id": "b1", "userId": "user-1", "name": "Home", "currentFunds": 0}
    data.update(overrides)
    return Budget.from_json(data)


def _deposit(budget_id, amount):
    return DepositTransaction.from_json({
        "id": "",
        "budgetId": budget_id,
        "description": "pay",
        "date": "2024-01-01T00:00:00+00:00",
        "amount": amount,
    })


def _withdrawal(budget_id, amount):
    return WithdrawalTransaction.from_json({
        "id": "",
        "budgetId": budget_id,
        "expenseId": "e1",
        "description": "rent",
        "date": "2024-01-02T00:00:00+00:00",
        "amount": amount,
    })


@pytest.mark.asyncio
class TestRecalcFunds:
    async def test_deposits_minus_withdrawals(self, repositories):
        budget = await repositories.budgets.add(_budget())
        for amount in (5000, 5000):
            await repositories.budget_deposits.add(_deposit(budget.id, amount))
        await repositories.withdrawals.add(_withdrawal(budget.id, 2500))
        # Another budget's transactions do not count
        await repositories.budget_deposits.add(_deposit("other", 999))

        funds = await BudgetService().recalc_funds(repositories, budget.id, "user-1")

        assert funds == 7500
        assert (await repositories.budgets.get(budget.id)).current_funds == 7500

    async def test_no_transactions_is_zero(self, repositories):
        budget = await repositories.budgets.add(_budget(currentFunds=42))
        assert await BudgetService().recalc_funds(repositories, budget.id, "user-1") == 0

    async def test_other_users_budget_is_not_found(self, repositories):
        budget = await repositories.budgets.add(_budget())
        with pytest.raises(NotFoundError):
            await BudgetService().recalc_funds(repositories, budget.id, "user-2")
