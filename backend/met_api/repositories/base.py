"""
MET API — Repository Contract
===============================

What:  The paginated CRUD interface every storage backend implements, and
       the query object passed to it.
Who:   Route handlers and services depend on `Repository[E]` only; the
       concrete class (memory, file, database) is picked in storage.py.

Contract:
    get_page(query)  sorted, filtered, 1-indexed page; with `entity_id`
                     returns [entity] or raises NotFoundError
    count(query)     number of entities matching the query's filters
    get(id)          one entity or NotFoundError
    add(entity)      stores under a freshly minted id, returns the new entity
    update(entity)   replaces by id, returns the PREVIOUS value
    delete(id)       removes by id, returns the removed value
    backup()         snapshots the collection
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Generic, List, Mapping, Optional, Type, TypeVar

from met_api.models.base import Entity

E = TypeVar("E", bound=Entity)

DEFAULT_PAGE = 1
DEFAULT_PAGINATION = 10


@dataclass(frozen=True)
class PageQuery:
    """
    Page request. `filters` keys are JSON field names ("vbUserId").

    Non-positive page or pagination values fall back to the defaults.
    """

    page: int = DEFAULT_PAGE
    pagination: int = DEFAULT_PAGINATION
    entity_id: Optional[str] = None
    filters: Mapping[str, Any] = field(default_factory=dict)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.page < 1:
            object.__setattr__(self, "page", DEFAULT_PAGE)
        if self.pagination < 1:
            object.__setattr__(self, "pagination", DEFAULT_PAGINATION)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.pagination

    @property
    def end(self) -> int:
        return self.page * self.pagination

    def first_page_of(self, size: int) -> "PageQuery":
        """Same filters, one page big enough to hold `size` entities."""
        return replace(self, page=1, pagination=max(size, 1), entity_id=None)


class Repository(ABC, Generic[E]):
    """Abstract paginated store for one entity type."""

    entity_type: Type[E]

    @property
    def collection(self) -> str:
        return self.entity_type.plural_name

    @abstractmethod
    async def get_page(self, query: PageQuery) -> List[E]:
        ...

    @abstractmethod
    async def count(self, query: PageQuery) -> int:
        ...

    @abstractmethod
    async def get(self, entity_id: str) -> E:
        ...

    @abstractmethod
    async def add(self, entity: E) -> E:
        ...

    @abstractmethod
    async def update(self, entity: E) -> E:
        ...

    @abstractmethod
    async def delete(self, entity_id: str) -> E:
        ...

    @abstractmethod
    async def backup(self) -> None:
        ...

    async def get_all(self, query: Optional[PageQuery] = None) -> List[E]:
        """Every entity matching `query`'s filters, in sort order."""
        query = query or PageQuery()
        total = await self.count(query)
        if total == 0:
            return []
        return await self.get_page(query.first_page_of(total))
