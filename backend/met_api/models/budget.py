"""
MET API — Budget Entities
===========================

What:  Budgets with categories, planned expenses and the deposit /
       withdrawal transactions that move money in and out.
Units: All amounts are integer-or-float cents; `currentFunds` is derived
       by BudgetService.recalc_funds (deposits minus withdrawals).
"""

from pydantic import StrictStr

from met_api.models.base import Entity, IsoDateTime, Number


class Budget(Entity):
    resource_name = "budget"
    plural_name = "budgets"
    sort_field = "name"
    owner_field = "userId"

    user_id: StrictStr
    name: StrictStr
    current_funds: Number


class Category(Entity):
    resource_name = "category"
    plural_name = "categories"
    sort_field = "name"
    owner_field = "budgetId"

    budget_id: StrictStr
    name: StrictStr


class Expense(Entity):
    resource_name = "expense"
    plural_name = "expenses"
    sort_field = "description"
    owner_field = "budgetId"

    budget_id: StrictStr
    category_id: StrictStr
    description: StrictStr
    amount: Number


class DepositTransaction(Entity):
    resource_name = "deposit"
    plural_name = "deposits"
    sort_field = "date"
    sort_descending = True
    date_field = "date"
    owner_field = "budgetId"

    budget_id: StrictStr
    description: StrictStr
    date: IsoDateTime
    amount: Number


class WithdrawalTransaction(Entity):
    resource_name = "withdrawal"
    plural_name = "withdrawals"
    sort_field = "date"
    sort_descending = True
    date_field = "date"
    owner_field = "budgetId"

    budget_id: StrictStr
    expense_id: StrictStr
    description: StrictStr
    date: IsoDateTime
    amount: Number
