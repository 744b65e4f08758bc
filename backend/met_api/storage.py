"""
MET API — Storage Registry
============================

What:  Builds one repository per collection according to each domain's
       configured storage type and hands them to route handlers.
How:   `build_repositories()` runs at startup (lifespan) and the result is
       stored on `app.state.repositories`; routes receive it through the
       `get_repositories` dependency.

Collections:
    domain      attribute         entity                 file base name
    vice bank   vice_bank_users   ViceBankUser           vice_bank_user_data
                actions           Action                 action_data
                deposits          Deposit                deposit_data
                purchase_prices   PurchasePrice          purchase_price_data
                purchases         Purchase               purchase_data
                tasks             Task                   task_data
                task_deposits     TaskDeposit            task_deposit_data
    notes       notes             Note                   notes_data
    blog        blog_posts        BlogPost               blog_data
    files       files             FileDetails            file_data
    budget      budgets           Budget                 budget_data
                categories        Category               category_data
                expenses          Expense                expense_data
                budget_deposits   DepositTransaction     budget_deposit_data
                withdrawals       WithdrawalTransaction  withdrawal_data
"""

import asyncio
import logging
from dataclasses import dataclass, fields
from typing import Dict, Iterator, NamedTuple, Optional, Tuple, Type

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from met_api.config import Settings, StorageType
from met_api.exceptions import MetError
from met_api.models import (
    Action,
    BlogPost,
    Budget,
    Category,
    Deposit,
    DepositTransaction,
    Entity,
    Expense,
    FileDetails,
    Note,
    Purchase,
    PurchasePrice,
    Task,
    TaskDeposit,
    ViceBankUser,
    WithdrawalTransaction,
)
from met_api.repositories import (
    DatabaseRepository,
    FileRepository,
    InMemoryRepository,
    Repository,
)

logger = logging.getLogger(__name__)


class CollectionSpec(NamedTuple):
    entity_type: Type[Entity]
    domain: str
    base_name: str


COLLECTIONS: Dict[str, CollectionSpec] = {
    "vice_bank_users": CollectionSpec(ViceBankUser, "vice_bank", "vice_bank_user_data"),
    "actions": CollectionSpec(Action, "vice_bank", "action_data"),
    "deposits": CollectionSpec(Deposit, "vice_bank", "deposit_data"),
    "purchase_prices": CollectionSpec(PurchasePrice, "vice_bank", "purchase_price_data"),
    "purchases": CollectionSpec(Purchase, "vice_bank", "purchase_data"),
    "tasks": CollectionSpec(Task, "vice_bank", "task_data"),
    "task_deposits": CollectionSpec(TaskDeposit, "vice_bank", "task_deposit_data"),
    "notes": CollectionSpec(Note, "notes", "notes_data"),
    "blog_posts": CollectionSpec(BlogPost, "blog", "blog_data"),
    "files": CollectionSpec(FileDetails, "files", "file_data"),
    "budgets": CollectionSpec(Budget, "budget", "budget_data"),
    "categories": CollectionSpec(Category, "budget", "category_data"),
    "expenses": CollectionSpec(Expense, "budget", "expense_data"),
    "budget_deposits": CollectionSpec(DepositTransaction, "budget", "budget_deposit_data"),
    "withdrawals": CollectionSpec(WithdrawalTransaction, "budget", "withdrawal_data"),
}


def domain_storage(settings: Settings, domain: str) -> Tuple[StorageType, str]:
    """(storage type, data path) configured for a domain."""
    if domain == "vice_bank":
        return settings.vice_bank_storage, settings.vice_bank_file_path
    if domain == "notes":
        return settings.notes_storage, settings.notes_file_path
    if domain == "blog":
        return settings.blog_storage, settings.blog_file_path
    if domain == "files":
        return settings.files_storage, settings.files_data_path
    if domain == "budget":
        return settings.budget_storage, settings.budget_file_path
    raise ValueError(f"Unknown domain '{domain}'")


@dataclass
class Repositories:
    """Every repository the routes use, one attribute per collection."""

    vice_bank_users: Repository[ViceBankUser]
    actions: Repository[Action]
    deposits: Repository[Deposit]
    purchase_prices: Repository[PurchasePrice]
    purchases: Repository[Purchase]
    tasks: Repository[Task]
    task_deposits: Repository[TaskDeposit]
    notes: Repository[Note]
    blog_posts: Repository[BlogPost]
    files: Repository[FileDetails]
    budgets: Repository[Budget]
    categories: Repository[Category]
    expenses: Repository[Expense]
    budget_deposits: Repository[DepositTransaction]
    withdrawals: Repository[WithdrawalTransaction]

    def items(self) -> Iterator[Tuple[str, Repository]]:
        for f in fields(self):
            yield f.name, getattr(self, f.name)

    @classmethod
    def in_memory(cls) -> "Repositories":
        """Fresh in-memory repositories for every collection."""
        return cls(**{
            name: InMemoryRepository(spec.entity_type)
            for name, spec in COLLECTIONS.items()
        })


async def build_repository(
    entity_type: Type[Entity],
    storage_type: StorageType,
    data_path: str,
    base_name: str,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> Repository:
    if storage_type is StorageType.FILE:
        return await FileRepository.init(entity_type, data_path, base_name)
    if storage_type is StorageType.DATABASE:
        if session_factory is None:
            raise ValueError("Database storage requires a session factory")
        return DatabaseRepository(
            entity_type,
            session_factory,
            collection=base_name,
            backup_path=f"{data_path}/backup",
        )
    return InMemoryRepository(entity_type)


async def build_repositories(
    settings: Settings,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> Repositories:
    built = {}
    for name, spec in COLLECTIONS.items():
        storage_type, data_path = domain_storage(settings, spec.domain)
        built[name] = await build_repository(
            spec.entity_type,
            storage_type,
            data_path,
            spec.base_name,
            session_factory,
        )
        logger.info("Repository %s: %s", name, storage_type.value)
    return Repositories(**built)


async def backup_all(repositories: Repositories) -> None:
    """Runs backup() on every repository; one failure does not stop the rest."""
    failures = []
    for name, repository in repositories.items():
        try:
            await repository.backup()
        except Exception as e:
            logger.error("Backup of %s failed: %s", name, e, exc_info=True)
            failures.append(name)
    if failures:
        raise MetError(f"Backup failed for: {', '.join(failures)}", context={"collections": failures})


async def periodic_backup(repositories: Repositories, interval_seconds: int) -> None:
    """Background loop started by the lifespan when BACKUP_INTERVAL_SECONDS > 0."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await backup_all(repositories)
        except MetError as e:
            logger.error("Periodic backup incomplete: %s", e)


def get_repositories(request: Request) -> Repositories:
    """FastAPI dependency: the repositories built at startup."""
    return request.app.state.repositories
