"""
MET API — Database Repository
===============================

What:  The repository contract on the shared `documents` table.
How:   Each operation opens its own AsyncSession, so a repository can be
       shared by concurrent requests. Filters compare JSON fields inside
       `data`; ordering and date windows use the denormalized columns.

Error translation:
    IntegrityError (duplicate unique key) → InvalidInputError
    any other SQLAlchemyError              → DatabaseError
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Type

import aiofiles
import aiofiles.os
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from met_api.exceptions import (
    DatabaseError,
    FieldError,
    FileStorageError,
    InvalidInputError,
    NotFoundError,
)
from met_api.models.base import sortable_date
from met_api.models.document import Document
from met_api.repositories.base import E, PageQuery, Repository

logger = logging.getLogger(__name__)


class DatabaseRepository(Repository[E]):
    """SQL-backed repository for one collection of the documents table."""

    def __init__(
        self,
        entity_type: Type[E],
        session_factory: async_sessionmaker[AsyncSession],
        collection: Optional[str] = None,
        backup_path: Optional[str] = None,
    ):
        self.entity_type = entity_type
        self._collection = collection or entity_type.plural_name
        self._session_factory = session_factory
        self.backup_path = Path(backup_path) if backup_path else None

    @property
    def collection(self) -> str:
        return self._collection

    # ── Row mapping ───────────────────────────────────────────────────────

    def _to_entity(self, document: Document) -> E:
        try:
            return self.entity_type.from_json(document.data)
        except InvalidInputError as e:
            raise DatabaseError(
                message=f"Stored {self.entity_type.resource_name} is invalid",
                operation="load",
                context={"id": document.id, "fields": e.fields},
            ) from e

    def _apply_columns(self, document: Document, entity: E) -> None:
        date_value = entity.date_value()
        document.sort_key = entity.sort_value()
        document.unique_key = entity.unique_value()
        document.date_key = sortable_date(date_value) if date_value else None
        document.data = entity.to_json()

    def _duplicate_error(self) -> InvalidInputError:
        field = self.entity_type.unique_field or "id"
        return InvalidInputError(
            message=f"Duplicate {field}",
            field_errors=[FieldError(field, "already exists")],
        )

    # ── Query building ────────────────────────────────────────────────────

    def _filtered(self, statement, query: PageQuery):
        statement = statement.where(Document.collection == self.collection)
        for key, value in query.filters.items():
            statement = statement.where(self._json_equals(key, value))
        if query.start_date is not None or query.end_date is not None:
            statement = statement.where(Document.date_key.is_not(None))
        if query.start_date is not None:
            statement = statement.where(Document.date_key >= sortable_date(query.start_date))
        if query.end_date is not None:
            statement = statement.where(Document.date_key <= sortable_date(query.end_date))
        return statement

    @staticmethod
    def _json_equals(key: str, value: Any):
        element = Document.data[key]
        if isinstance(value, bool):
            return element.as_boolean() == value
        if isinstance(value, (int, float)):
            return element.as_float() == float(value)
        return element.as_string() == str(value)

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get_page(self, query: PageQuery) -> List[E]:
        if query.entity_id is not None:
            statement = self._filtered(select(Document), query).where(
                Document.id == query.entity_id
            )
        else:
            if self.entity_type.sort_descending:
                order = (Document.sort_key.desc(), Document.id.desc())
            else:
                order = (Document.sort_key.asc(), Document.id.asc())
            statement = (
                self._filtered(select(Document), query)
                .order_by(*order)
                .offset(query.skip)
                .limit(query.pagination)
            )

        try:
            async with self._session_factory() as session:
                documents = (await session.execute(statement)).scalars().all()
        except SQLAlchemyError as e:
            raise DatabaseError(operation="get_page", context={"error": str(e)}) from e

        if query.entity_id is not None and not documents:
            raise NotFoundError(self.entity_type.resource_name, query.entity_id)
        return [self._to_entity(d) for d in documents]

    async def count(self, query: PageQuery) -> int:
        statement = self._filtered(select(func.count()).select_from(Document), query)
        try:
            async with self._session_factory() as session:
                return (await session.execute(statement)).scalar_one()
        except SQLAlchemyError as e:
            raise DatabaseError(operation="count", context={"error": str(e)}) from e

    async def get(self, entity_id: str) -> E:
        try:
            async with self._session_factory() as session:
                document = await session.get(Document, (self.collection, entity_id))
        except SQLAlchemyError as e:
            raise DatabaseError(operation="get", context={"error": str(e)}) from e
        if document is None:
            raise NotFoundError(self.entity_type.resource_name, entity_id)
        return self._to_entity(document)

    # ── Mutations ─────────────────────────────────────────────────────────

    async def add(self, entity: E) -> E:
        new_entity = entity.with_id(str(uuid.uuid4()))
        document = Document(collection=self.collection, id=new_entity.id)
        self._apply_columns(document, new_entity)
        try:
            async with self._session_factory() as session:
                session.add(document)
                await session.commit()
        except IntegrityError as e:
            raise self._duplicate_error() from e
        except SQLAlchemyError as e:
            raise DatabaseError(operation="add", context={"error": str(e)}) from e
        return new_entity

    async def update(self, entity: E) -> E:
        try:
            async with self._session_factory() as session:
                document = await session.get(Document, (self.collection, entity.id))
                if document is None:
                    raise NotFoundError(self.entity_type.resource_name, entity.id)
                previous = self._to_entity(document)
                self._apply_columns(document, entity)
                await session.commit()
        except IntegrityError as e:
            raise self._duplicate_error() from e
        except SQLAlchemyError as e:
            raise DatabaseError(operation="update", context={"error": str(e)}) from e
        return previous

    async def delete(self, entity_id: str) -> E:
        try:
            async with self._session_factory() as session:
                document = await session.get(Document, (self.collection, entity_id))
                if document is None:
                    raise NotFoundError(self.entity_type.resource_name, entity_id)
                removed = self._to_entity(document)
                await session.delete(document)
                await session.commit()
        except SQLAlchemyError as e:
            raise DatabaseError(operation="delete", context={"error": str(e)}) from e
        return removed

    async def backup(self) -> None:
        """Dumps the collection as a JSON array next to the file backups."""
        if self.backup_path is None:
            logger.debug("No backup path for %s; skipping", self.collection)
            return

        entities = await self.get_all()
        contents = json.dumps([e.to_json() for e in entities])
        timestamp = datetime.now(timezone.utc).isoformat()
        path = self.backup_path / f"{self.collection}_backup_{timestamp}.json"
        try:
            await aiofiles.os.makedirs(self.backup_path, exist_ok=True)
            async with aiofiles.open(path, "w", encoding="utf-8") as f:
                await f.write(contents)
        except OSError as e:
            raise FileStorageError(
                message=f"Could not back up {self.collection}",
                context={"error": str(e)},
            ) from e
        logger.info("Backed up %d %s to %s", len(entities), self.collection, path)
