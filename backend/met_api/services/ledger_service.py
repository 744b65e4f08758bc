"""
MET API — Vice Bank Ledger Service
====================================

What:  Keeps a vice bank user's `currentTokens` in step with the ledger
       entries (deposits, task deposits, purchases) recorded against it.
How:   Every entry exposes `token_delta()`. Adding an entry applies its
       delta, updating applies the difference between new and old, and
       deleting reverses it. A change that would leave the balance below
       zero is rejected with InvalidInputError("Not enough tokens").
Who:   Called by the vice bank routes for the three ledger collections.

Concurrency:
    Balance read-modify-write runs under one asyncio.Lock so two requests
    cannot both spend the same tokens.
"""

import asyncio
import logging
from typing import Tuple, TypeVar, Union

from met_api.exceptions import FieldError, InvalidInputError
from met_api.models import Deposit, Purchase, TaskDeposit, ViceBankUser
from met_api.repositories import PageQuery, Repository

logger = logging.getLogger(__name__)

LedgerEntry = Union[Deposit, Purchase, TaskDeposit]
L = TypeVar("L", Deposit, Purchase, TaskDeposit)


class LedgerService:
    """Applies ledger entries to vice bank user balances."""

    def __init__(self):
        self._lock = asyncio.Lock()

    async def load_user(
        self,
        users: Repository[ViceBankUser],
        vb_user_id: str,
        owner_id: str,
    ) -> ViceBankUser:
        """The vice bank user, if it belongs to `owner_id` (else NotFoundError)."""
        page = await users.get_page(
            PageQuery(entity_id=vb_user_id, filters={"userId": owner_id})
        )
        return page[0]

    @staticmethod
    def _new_balance(user: ViceBankUser, delta: float) -> float:
        balance = user.current_tokens + delta
        if balance < 0:
            raise InvalidInputError(
                message="Not enough tokens",
                field_errors=[FieldError("currentTokens", "Not enough tokens")],
                context={"vb_user_id": user.id, "balance": user.current_tokens, "delta": delta},
            )
        return balance

    async def add_entry(
        self,
        users: Repository[ViceBankUser],
        entries: Repository[L],
        entry: L,
        owner_id: str,
    ) -> Tuple[L, float]:
        """Stores `entry` and applies its delta. Returns (new entry, balance)."""
        async with self._lock:
            user = await self.load_user(users, entry.vb_user_id, owner_id)
            balance = self._new_balance(user, entry.token_delta())
            added = await entries.add(entry)
            await users.update(user.copy_with(current_tokens=balance))

        logger.info(
            "%s %s recorded for %s; balance %s",
            entry.resource_name,
            added.id,
            user.id,
            balance,
        )
        return added, balance

    async def update_entry(
        self,
        users: Repository[ViceBankUser],
        entries: Repository[L],
        entry: L,
        owner_id: str,
    ) -> Tuple[L, float]:
        """Replaces `entry`, applying the delta change. Returns (previous, balance)."""
        async with self._lock:
            current = await entries.get(entry.id)
            if current.vb_user_id != entry.vb_user_id:
                raise InvalidInputError(
                    message="Ledger entries cannot move between users",
                    field_errors=[FieldError("vbUserId", "cannot change")],
                )
            user = await self.load_user(users, entry.vb_user_id, owner_id)
            balance = self._new_balance(user, entry.token_delta() - current.token_delta())
            previous = await entries.update(entry)
            await users.update(user.copy_with(current_tokens=balance))
        return previous, balance

    async def delete_entry(
        self,
        users: Repository[ViceBankUser],
        entries: Repository[L],
        entry_id: str,
        owner_id: str,
    ) -> Tuple[L, float]:
        """Removes an entry and reverses its delta. Returns (removed, balance)."""
        async with self._lock:
            current = await entries.get(entry_id)
            user = await self.load_user(users, current.vb_user_id, owner_id)
            balance = self._new_balance(user, -current.token_delta())
            removed = await entries.delete(entry_id)
            await users.update(user.copy_with(current_tokens=balance))
        return removed, balance
