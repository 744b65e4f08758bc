"""
MET API — Models Package
==========================

Immutable domain entities (Pydantic) per domain, plus the SQLAlchemy
`Document` table used by database-backed repositories.
"""

from met_api.models.base import Entity, IsoDateTime, Number, parse_datetime
from met_api.models.blog import BlogPost, BlogStatus
from met_api.models.budget import (
    Budget,
    Category,
    DepositTransaction,
    Expense,
    WithdrawalTransaction,
)
from met_api.models.files import FileDetails, sanitize_filename
from met_api.models.notes import Note
from met_api.models.vice_bank import (
    Action,
    Deposit,
    Purchase,
    PurchasePrice,
    Task,
    TaskDeposit,
    ViceBankUser,
)

__all__ = [
    "Entity",
    "IsoDateTime",
    "Number",
    "parse_datetime",
    "BlogPost",
    "BlogStatus",
    "Budget",
    "Category",
    "DepositTransaction",
    "Expense",
    "WithdrawalTransaction",
    "FileDetails",
    "sanitize_filename",
    "Note",
    "Action",
    "Deposit",
    "Purchase",
    "PurchasePrice",
    "Task",
    "TaskDeposit",
    "ViceBankUser",
]
