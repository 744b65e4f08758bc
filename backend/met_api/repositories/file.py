"""
MET API — File-Backed Repository
==================================

What:  In-memory repository that mirrors its collection to a JSON file.
How:
    - Every mutation runs under a per-repository asyncio.Lock, applies to
      memory first, then rewrites the whole collection as a JSON array.
    - Writes go to `<file>.tmp` and are renamed over the original, so a
      crash mid-write leaves the previous file intact.
    - `init()` loads the file at startup. Invalid records are skipped and
      logged. A file that is not a JSON array is copied to
      `backup/<base>_backup_<timestamp>.json` (when non-empty) and reset to
      `[]`; startup never fails because of corrupt data.

Failure semantics:
    When the write fails the in-memory change stays applied and
    FileStorageError is raised. The next successful write reconciles the
    file with memory.

Layout:
    <data_path>/<base_name>.json
    <data_path>/backup/<base_name>_backup_<ISO timestamp>.json

Deployment constraint: one process per data file. The lock only
serializes writers inside this process.
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Type

import aiofiles
import aiofiles.os

from met_api.exceptions import FileStorageError, InvalidInputError
from met_api.repositories.base import E
from met_api.repositories.memory import InMemoryRepository

logger = logging.getLogger(__name__)

BACKUP_DIR_NAME = "backup"


class FileRepository(InMemoryRepository[E]):
    """Write-after-mutate JSON file persistence on top of InMemoryRepository."""

    def __init__(self, entity_type: Type[E], data_path: str, base_name: str):
        super().__init__(entity_type)
        self.data_path = Path(data_path)
        self.base_name = base_name
        self._lock = asyncio.Lock()

    @property
    def file_path(self) -> Path:
        return self.data_path / f"{self.base_name}.json"

    @property
    def backup_path(self) -> Path:
        return self.data_path / BACKUP_DIR_NAME

    # ── Startup ───────────────────────────────────────────────────────────

    @classmethod
    async def init(cls, entity_type: Type[E], data_path: str, base_name: str) -> "FileRepository[E]":
        """
        Builds a repository from `<data_path>/<base_name>.json`.

        Creates the directory and an empty file when missing. Raises
        FileStorageError only for I/O failures, never for bad contents.
        """
        repo = cls(entity_type, data_path, base_name)
        raw = await repo._read_or_create()

        # UnicodeDecodeError is a ValueError; non-UTF-8 files recover the same way
        data: Optional[object]
        try:
            data = json.loads(raw.decode("utf-8"))
        except ValueError:
            data = None

        if not isinstance(data, list):
            logger.error("Invalid data in %s; backing up and resetting", repo.file_path)
            await repo._recover(raw)
            return repo

        skipped = 0
        for item in data:
            try:
                entity = entity_type.from_json(item)
            except InvalidInputError as e:
                skipped += 1
                logger.warning(
                    "Skipping invalid %s in %s: %s",
                    entity_type.resource_name,
                    repo.file_path,
                    ", ".join(e.fields),
                )
                continue
            repo._entities[entity.id] = entity

        logger.info(
            "Loaded %d %s from %s (%d skipped)",
            len(repo._entities),
            entity_type.plural_name,
            repo.file_path,
            skipped,
        )
        return repo

    async def _read_or_create(self) -> bytes:
        try:
            await aiofiles.os.makedirs(self.data_path, exist_ok=True)
            if not await aiofiles.os.path.exists(self.file_path):
                await self._write_text(self.file_path, "[]")
                return b"[]"
            async with aiofiles.open(self.file_path, "rb") as f:
                return await f.read()
        except OSError as e:
            raise FileStorageError(
                message=f"Could not read {self.file_path}",
                context={"error": str(e)},
            ) from e

    async def _recover(self, raw: bytes) -> None:
        try:
            if raw.strip():
                await self._write_backup(raw)
            await self._write_text(self.file_path, "[]")
        except OSError as e:
            raise FileStorageError(
                message=f"Could not reset {self.file_path}",
                context={"error": str(e)},
            ) from e

    # ── Mutations ─────────────────────────────────────────────────────────

    async def add(self, entity: E) -> E:
        async with self._lock:
            result = self._apply_add(entity)
            await self._persist()
            return result

    async def update(self, entity: E) -> E:
        async with self._lock:
            result = self._apply_update(entity)
            await self._persist()
            return result

    async def delete(self, entity_id: str) -> E:
        async with self._lock:
            result = self._apply_delete(entity_id)
            await self._persist()
            return result

    async def backup(self) -> None:
        async with self._lock:
            contents = self._serialize()
        try:
            path = await self._write_backup(contents.encode("utf-8"))
        except OSError as e:
            raise FileStorageError(
                message=f"Could not back up {self.file_path}",
                context={"error": str(e)},
            ) from e
        logger.info("Backed up %s to %s", self.collection, path)

    # ── Serialization ─────────────────────────────────────────────────────

    def _serialize(self) -> str:
        records: List[dict] = [e.to_json() for e in self._entities.values()]
        return json.dumps(records)

    async def _persist(self) -> None:
        try:
            await self._write_text(self.file_path, self._serialize())
        except OSError as e:
            logger.error("Failed to write %s: %s", self.file_path, e)
            raise FileStorageError(
                message=f"Could not write {self.file_path}",
                context={"error": str(e)},
            ) from e

    async def _write_text(self, path: Path, contents: str) -> None:
        await self._write_bytes(path, contents.encode("utf-8"))

    async def _write_bytes(self, path: Path, contents: bytes) -> None:
        tmp_path = path.with_name(f"{path.name}.tmp")
        async with aiofiles.open(tmp_path, "wb") as f:
            await f.write(contents)
        await aiofiles.os.replace(tmp_path, path)

    async def _write_backup(self, contents: bytes) -> Path:
        """Backups keep the exact bytes, including files that failed to decode."""
        await aiofiles.os.makedirs(self.backup_path, exist_ok=True)
        timestamp = datetime.now(timezone.utc).isoformat()
        path = self.backup_path / f"{self.base_name}_backup_{timestamp}.json"
        await self._write_bytes(path, contents)
        return path
