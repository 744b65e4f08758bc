"""
MET API — Repositories Package
================================

Repository Inventory:
    - Repository (abstract):  paginated CRUD contract + PageQuery
    - InMemoryRepository:     dict store with copy-on-read accessors
    - FileRepository:         InMemoryRepository mirrored to a JSON file
    - DatabaseRepository:     documents table through async SQLAlchemy
"""

from met_api.repositories.base import PageQuery, Repository
from met_api.repositories.database import DatabaseRepository
from met_api.repositories.file import FileRepository
from met_api.repositories.memory import InMemoryRepository

__all__ = [
    "PageQuery",
    "Repository",
    "InMemoryRepository",
    "FileRepository",
    "DatabaseRepository",
]
