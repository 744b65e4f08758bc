"""
MET API — Vice Bank Routes (/api/vice_bank)
=============================================

What:  Token ledger endpoints.

    users           scoped to the caller (userId = auth user); delete
                    takes {viceBankUserId}
    actions         list requires ?userId=<vice bank user id>
    purchasePrices  list requires ?userId
    tasks           list requires ?userId
    deposits        ?userId, optional startDate/endDate/actionId; ledger
    purchases       ?userId, optional startDate/endDate/purchasePriceId; ledger
    taskDeposits    ?userId, optional startDate/endDate/taskId; ledger

Ledger resources adjust the owning vice bank user's currentTokens and
return the new balance as `currentTokens`.
"""

from fastapi import APIRouter

from met_api.models import (
    Action,
    Deposit,
    Purchase,
    PurchasePrice,
    Task,
    TaskDeposit,
    ViceBankUser,
)
from met_api.routes.crud import Resource, register_resource

router = APIRouter(prefix="/api/vice_bank", tags=["Vice Bank"])

RESOURCES = (
    Resource(
        ViceBankUser,
        lambda r: r.vice_bank_users,
        scope_to_auth=True,
        delete_key="viceBankUserId",
    ),
    Resource(Action, lambda r: r.actions, owner_query_param="userId"),
    Resource(PurchasePrice, lambda r: r.purchase_prices, owner_query_param="userId"),
    Resource(Task, lambda r: r.tasks, owner_query_param="userId"),
    Resource(
        Deposit,
        lambda r: r.deposits,
        owner_query_param="userId",
        date_range=True,
        extra_filters=("actionId",),
        ledger=True,
    ),
    Resource(
        Purchase,
        lambda r: r.purchases,
        owner_query_param="userId",
        date_range=True,
        extra_filters=("purchasePriceId",),
        ledger=True,
    ),
    Resource(
        TaskDeposit,
        lambda r: r.task_deposits,
        owner_query_param="userId",
        date_range=True,
        extra_filters=("taskId",),
        ledger=True,
    ),
)

for resource in RESOURCES:
    register_resource(router, resource)
