"""
MET API — File Routes (/api/files)
====================================

What:
    POST /api/files/upload       auth; multipart "file" (+ optional
                                 "isPrivate") → {fileDetails}
    GET  /api/files/list         auth; {files: [...], morePages}
    POST /api/files/update       auth; {filename, originalFilename?,
                                 isPrivate?} → {fileDetails: previous}
    POST /api/files/delete       auth; {filenames: [...]} →
                                 {files: [{filename, fileDetails?, error?}]}
    GET  /api/files/{filename}   file bytes; private files need auth

Security:
    Stored names are UUIDs. Lookups go through the files repository, so
    only recorded uploads can be served, and FileService.file_path refuses
    names that resolve outside the uploads directory.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import FileResponse

from met_api.exceptions import FieldError, InvalidInputError, NotFoundError
from met_api.middleware.auth import AuthModel
from met_api.models import FileDetails
from met_api.models.files import sanitize_filename
from met_api.repositories import PageQuery, Repository
from met_api.routes.common import (
    common_error_handler,
    current_auth,
    json_body,
    page_and_pagination,
    require_auth,
)
from met_api.services.file_service import FileService
from met_api.storage import Repositories, get_repositories

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files", tags=["Files"])


def get_file_service(request: Request) -> FileService:
    return request.app.state.file_service


async def _find_by_filename(repo: Repository[FileDetails], filename: str) -> FileDetails:
    results = await repo.get_page(PageQuery(pagination=1, filters={"filename": filename}))
    if not results:
        raise NotFoundError("file", filename)
    return results[0]


@router.post("/upload", summary="Upload a file")
async def upload_file(
    file: UploadFile = File(...),
    is_private: bool = Form(default=False, alias="isPrivate"),
    auth: AuthModel = Depends(require_auth),
    repos: Repositories = Depends(get_repositories),
    files: FileService = Depends(get_file_service),
) -> Dict[str, Any]:
    try:
        content = await file.read()
        details = await files.save_upload(
            repos.files,
            original_filename=file.filename or "upload",
            content=content,
            mimetype=file.content_type,
            author_id=auth.user_id,
            is_private=is_private,
        )
        return {"fileDetails": details.to_json()}
    except Exception as e:
        raise common_error_handler(e) from e
    finally:
        await file.close()


@router.get("/list", summary="List uploaded files")
async def list_files(
    request: Request,
    auth: AuthModel = Depends(require_auth),
    repos: Repositories = Depends(get_repositories),
) -> Dict[str, Any]:
    try:
        page, pagination = page_and_pagination(request)
        query = PageQuery(page=page, pagination=pagination)
        entries = await repos.files.get_page(query)
        total = await repos.files.count(query)
        return {
            "files": [f.to_json() for f in entries],
            "morePages": total > query.end,
        }
    except Exception as e:
        raise common_error_handler(e) from e


@router.post("/update", summary="Rename a file or change its privacy")
async def update_file(
    request: Request,
    auth: AuthModel = Depends(require_auth),
    repos: Repositories = Depends(get_repositories),
) -> Dict[str, Any]:
    try:
        body = await json_body(request)
        filename = body.get("filename")
        if not isinstance(filename, str):
            raise InvalidInputError(
                message="Invalid filename",
                field_errors=[FieldError("filename", "expected a string")],
            )

        current = await _find_by_filename(repos.files, filename)
        changes: Dict[str, Any] = {}
        if "originalFilename" in body:
            if not isinstance(body["originalFilename"], str) or not body["originalFilename"]:
                raise InvalidInputError(
                    message="Invalid originalFilename",
                    field_errors=[FieldError("originalFilename", "expected a string")],
                )
            changes["original_filename"] = sanitize_filename(body["originalFilename"])
        if "isPrivate" in body:
            changes["is_private"] = body["isPrivate"]

        previous = await repos.files.update(current.copy_with(**changes))
        return {"fileDetails": previous.to_json()}
    except Exception as e:
        raise common_error_handler(e) from e


@router.post("/delete", summary="Delete files by stored filename")
async def delete_files(
    request: Request,
    auth: AuthModel = Depends(require_auth),
    repos: Repositories = Depends(get_repositories),
    files: FileService = Depends(get_file_service),
) -> Dict[str, Any]:
    try:
        body = await json_body(request)
        filenames = body.get("filenames")
        if not isinstance(filenames, list) or not all(isinstance(f, str) for f in filenames):
            raise InvalidInputError(
                message="Invalid filenames",
                field_errors=[FieldError("filenames", "expected a list of strings")],
            )
    except Exception as e:
        raise common_error_handler(e) from e

    results: List[Dict[str, Any]] = []
    for filename in filenames:
        try:
            details = await _find_by_filename(repos.files, filename)
            removed = await repos.files.delete(details.id)
            await files.cleanup_file(removed.filename)
            results.append({"filename": filename, "fileDetails": removed.to_json()})
        except NotFoundError:
            results.append({"filename": filename, "error": "File not found"})
        except Exception as e:
            logger.error("Failed to delete %s: %s", filename, e, exc_info=True)
            results.append({"filename": filename, "error": "Server Error"})

    return {"files": results}


@router.get("/{filename}", summary="Download a stored file")
async def get_file(
    filename: str,
    request: Request,
    repos: Repositories = Depends(get_repositories),
    files: FileService = Depends(get_file_service),
) -> FileResponse:
    try:
        details = await _find_by_filename(repos.files, filename)
        if details.is_private:
            auth = current_auth(request)
            if auth is None or not auth.authorized:
                raise NotFoundError("file", filename)

        path = files.file_path(details.filename)
        if not path.is_file():
            raise NotFoundError("file", filename)
    except Exception as e:
        raise common_error_handler(e) from e

    return FileResponse(
        path=str(path),
        media_type=details.mimetype,
        filename=details.original_filename,
        headers={"Cache-Control": "private, max-age=3600"},
    )
