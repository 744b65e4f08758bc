"""
MET API — Budget Routes (/api/budget)
=======================================

What:  Budgets (scoped to the caller) and their categories, expenses,
       deposits and withdrawals (listed per ?budgetId), plus
       POST /recalcFunds which recomputes a budget's currentFunds.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from met_api.middleware.auth import AuthModel
from met_api.models import Budget, Category, DepositTransaction, Expense, WithdrawalTransaction
from met_api.routes.common import body_string, common_error_handler, json_body, require_auth
from met_api.routes.crud import Resource, register_resource
from met_api.services.budget_service import budget_service
from met_api.storage import Repositories, get_repositories

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/budget", tags=["Budget"])

RESOURCES = (
    Resource(Budget, lambda r: r.budgets, scope_to_auth=True),
    Resource(Category, lambda r: r.categories, owner_query_param="budgetId"),
    Resource(
        Expense,
        lambda r: r.expenses,
        owner_query_param="budgetId",
        extra_filters=("categoryId",),
    ),
    Resource(
        DepositTransaction,
        lambda r: r.budget_deposits,
        owner_query_param="budgetId",
        date_range=True,
    ),
    Resource(
        WithdrawalTransaction,
        lambda r: r.withdrawals,
        owner_query_param="budgetId",
        date_range=True,
        extra_filters=("expenseId",),
    ),
)

for resource in RESOURCES:
    register_resource(router, resource)


@router.post("/recalcFunds", summary="Recompute a budget's currentFunds")
async def recalc_funds(
    request: Request,
    auth: AuthModel = Depends(require_auth),
    repos: Repositories = Depends(get_repositories),
) -> Dict[str, Any]:
    try:
        budget_id = body_string(await json_body(request), "budgetId")
        funds = await budget_service.recalc_funds(repos, budget_id, auth.user_id)
        return {"funds": funds}
    except Exception as e:
        raise common_error_handler(e) from e
