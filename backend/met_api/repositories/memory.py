"""
MET API — In-Memory Repository
================================

What:  Process-lifetime store keyed by entity id.
How:   A plain dict guarded by copy-on-read accessors. Listing sorts on
       every access, so there is no cached order to invalidate. Entities
       are frozen, so handing them out never exposes mutable state.
Who:   Used directly for `memory` storage and as the base of
       FileRepository.
"""

import logging
import uuid
from typing import Dict, Iterable, List, Optional, Type

from met_api.exceptions import FieldError, InvalidInputError, NotFoundError
from met_api.repositories.base import E, PageQuery, Repository

logger = logging.getLogger(__name__)


class InMemoryRepository(Repository[E]):
    """Dict-backed repository; every mutation is synchronous under the hood."""

    def __init__(self, entity_type: Type[E], entities: Optional[Iterable[E]] = None):
        self.entity_type = entity_type
        self._entities: Dict[str, E] = {}
        for entity in entities or []:
            self._entities[entity.id] = entity

    # ── Copy-on-read accessors ────────────────────────────────────────────

    @property
    def entities(self) -> Dict[str, E]:
        return dict(self._entities)

    @property
    def entities_list(self) -> List[E]:
        return self._sorted(self._entities.values())

    def _sorted(self, entities: Iterable[E]) -> List[E]:
        return sorted(
            entities,
            key=lambda e: (e.sort_value(), e.id),
            reverse=self.entity_type.sort_descending,
        )

    def _matching(self, query: PageQuery) -> List[E]:
        return [
            e
            for e in self._entities.values()
            if e.matches(query.filters, query.start_date, query.end_date)
        ]

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get_page(self, query: PageQuery) -> List[E]:
        if query.entity_id is not None:
            entity = self._entities.get(query.entity_id)
            if entity is None or not entity.matches(
                query.filters, query.start_date, query.end_date
            ):
                raise NotFoundError(self.entity_type.resource_name, query.entity_id)
            return [entity]

        return self._sorted(self._matching(query))[query.skip:query.end]

    async def count(self, query: PageQuery) -> int:
        return len(self._matching(query))

    async def get(self, entity_id: str) -> E:
        entity = self._entities.get(entity_id)
        if entity is None:
            raise NotFoundError(self.entity_type.resource_name, entity_id)
        return entity

    # ── Mutations ─────────────────────────────────────────────────────────
    # The _apply_* helpers hold the in-memory effect so FileRepository can
    # run them under its write lock before persisting.

    async def add(self, entity: E) -> E:
        return self._apply_add(entity)

    async def update(self, entity: E) -> E:
        return self._apply_update(entity)

    async def delete(self, entity_id: str) -> E:
        return self._apply_delete(entity_id)

    async def backup(self) -> None:
        logger.debug("Backup skipped for in-memory %s", self.collection)

    def _apply_add(self, entity: E) -> E:
        new_entity = entity.with_id(str(uuid.uuid4()))
        self._check_unique(new_entity)
        self._entities[new_entity.id] = new_entity
        return new_entity

    def _apply_update(self, entity: E) -> E:
        previous = self._entities.get(entity.id)
        if previous is None:
            raise NotFoundError(self.entity_type.resource_name, entity.id)
        self._check_unique(entity)
        self._entities[entity.id] = entity
        return previous

    def _apply_delete(self, entity_id: str) -> E:
        removed = self._entities.pop(entity_id, None)
        if removed is None:
            raise NotFoundError(self.entity_type.resource_name, entity_id)
        return removed

    def _check_unique(self, entity: E) -> None:
        value = entity.unique_value()
        if value is None:
            return
        for other in self._entities.values():
            if other.id != entity.id and other.unique_value() == value:
                raise InvalidInputError(
                    message=f"Duplicate {self.entity_type.unique_field}",
                    field_errors=[FieldError(self.entity_type.unique_field, "already exists")],
                )
