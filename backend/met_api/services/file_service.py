"""
MET API — File Storage Service
================================

What:  Validates, stores, serves and removes uploaded file bytes, and keeps
       the matching FileDetails records.
How:   Bytes are written under `uploads_path/<uuid><ext>`; the stored name
       is never derived from user input apart from the extension. The
       client's filename is sanitized and kept as `originalFilename`.

Lifecycle of an upload:
    1. Size check (empty and oversized files rejected)
    2. Bytes written to disk with a UUID filename
    3. FileDetails added to the files repository
    4. On any failure after step 2 the written file is removed
"""

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import aiofiles
import aiofiles.os

from met_api.config import settings
from met_api.exceptions import FieldError, FileStorageError, InvalidInputError, NotFoundError
from met_api.models import FileDetails, sanitize_filename
from met_api.repositories import Repository

logger = logging.getLogger(__name__)

DEFAULT_MIMETYPE = "application/octet-stream"


class FileService:
    """Manages upload storage under a root directory."""

    def __init__(self, uploads_path: Optional[str] = None, max_file_size: Optional[int] = None):
        self.uploads_path = Path(uploads_path or settings.uploads_path).resolve()
        self.max_file_size = max_file_size or settings.max_file_size

    def validate_size(self, size: int) -> None:
        if size == 0:
            raise InvalidInputError(
                message="File is empty",
                field_errors=[FieldError("file", "empty")],
            )
        if size > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            raise InvalidInputError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB",
                field_errors=[FieldError("file", "too large")],
                context={"max_size": self.max_file_size, "actual_size": size},
            )

    def file_path(self, filename: str) -> Path:
        """
        Absolute path of a stored file.

        Raises NotFoundError for names that would resolve outside the
        uploads directory (e.g. "../../etc/passwd").
        """
        path = (self.uploads_path / filename).resolve()
        if path.parent != self.uploads_path:
            raise NotFoundError("file", filename)
        return path

    async def store_file(self, content: bytes, original_filename: str) -> str:
        """Writes `content` under a fresh UUID name; returns that name."""
        extension = Path(original_filename).suffix.lower()
        filename = f"{uuid.uuid4()}{extension}"
        path = self.uploads_path / filename

        try:
            await aiofiles.os.makedirs(self.uploads_path, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file %s: %s", path, e)
            raise FileStorageError(
                message="Failed to save the uploaded file",
                context={"path": str(path), "error": str(e)},
            ) from e

        logger.info("File stored: %s (%d bytes)", filename, len(content))
        return filename

    async def cleanup_file(self, filename: str) -> None:
        """Removes a stored file; a missing file is not an error."""
        path = self.uploads_path / filename
        try:
            await aiofiles.os.remove(path)
            logger.info("Removed stored file %s", filename)
        except FileNotFoundError:
            logger.debug("Stored file %s already absent", filename)
        except OSError as e:
            raise FileStorageError(
                message="Failed to remove a stored file",
                context={"path": str(path), "error": str(e)},
            ) from e

    async def save_upload(
        self,
        repository: Repository[FileDetails],
        original_filename: str,
        content: bytes,
        mimetype: Optional[str],
        author_id: str,
        is_private: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> FileDetails:
        """Validates and stores one upload and records its FileDetails."""
        self.validate_size(len(content))
        safe_name = sanitize_filename(original_filename or "upload")
        filename = await self.store_file(content, safe_name)

        try:
            details = FileDetails.from_json({
                "id": "",
                "originalFilename": safe_name,
                "filename": filename,
                "dateAdded": datetime.now(timezone.utc).isoformat(),
                "authorId": author_id,
                "mimetype": mimetype or DEFAULT_MIMETYPE,
                "size": len(content),
                "isPrivate": is_private,
                "metadata": metadata or {},
            })
            return await repository.add(details)
        except Exception:
            await self.cleanup_file(filename)
            raise
