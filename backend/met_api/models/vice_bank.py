"""
MET API — Vice Bank Entities
==============================

What:  Token ledger entities. A vice bank user holds a token balance;
       deposits (actions converted to tokens), task deposits and purchases
       move it up or down.
How:   Ledger entries implement `token_delta()`, the signed change they
       apply to their user's `currentTokens`. LedgerService relies on it.
"""

from typing import Annotated, Any, Literal

from pydantic import BeforeValidator, StrictStr

from met_api.models.base import Entity, IsoDateTime, Number


def _lower_frequency(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


Frequency = Annotated[Literal["day", "week", "month"], BeforeValidator(_lower_frequency)]


class ViceBankUser(Entity):
    resource_name = "user"
    plural_name = "users"
    sort_field = "name"
    owner_field = "userId"

    user_id: StrictStr
    name: StrictStr
    current_tokens: Number


class Action(Entity):
    """How many tokens a unit of some activity converts into."""

    resource_name = "action"
    plural_name = "actions"
    sort_field = "name"
    owner_field = "vbUserId"

    vb_user_id: StrictStr
    name: StrictStr
    conversion_unit: StrictStr
    deposits_per: Number
    tokens_per: Number
    min_deposit: Number


class PurchasePrice(Entity):
    resource_name = "purchasePrice"
    plural_name = "purchasePrices"
    sort_field = "name"
    owner_field = "vbUserId"

    vb_user_id: StrictStr
    name: StrictStr
    price: Number


class Task(Entity):
    resource_name = "task"
    plural_name = "tasks"
    sort_field = "name"
    owner_field = "vbUserId"

    vb_user_id: StrictStr
    name: StrictStr
    frequency: Frequency
    tokens_per: Number


# ── Ledger entries ────────────────────────────────────────────────────────


class Deposit(Entity):
    resource_name = "deposit"
    plural_name = "deposits"
    sort_field = "date"
    date_field = "date"
    owner_field = "vbUserId"

    vb_user_id: StrictStr
    date: IsoDateTime
    deposit_quantity: Number
    conversion_rate: Number
    action_id: StrictStr
    action_name: StrictStr
    conversion_unit: StrictStr

    @property
    def tokens_earned(self) -> float:
        return self.deposit_quantity * self.conversion_rate

    def token_delta(self) -> float:
        return self.tokens_earned


class Purchase(Entity):
    resource_name = "purchase"
    plural_name = "purchases"
    sort_field = "date"
    date_field = "date"
    owner_field = "vbUserId"

    vb_user_id: StrictStr
    purchase_price_id: StrictStr
    purchased_name: StrictStr
    date: IsoDateTime
    purchased_quantity: Number
    tokens_spent: Number

    def token_delta(self) -> float:
        return -self.tokens_spent


class TaskDeposit(Entity):
    resource_name = "taskDeposit"
    plural_name = "taskDeposits"
    sort_field = "date"
    date_field = "date"
    owner_field = "vbUserId"

    vb_user_id: StrictStr
    date: IsoDateTime
    task_name: StrictStr
    task_id: StrictStr
    tokens_earned: Number

    def token_delta(self) -> float:
        return self.tokens_earned
