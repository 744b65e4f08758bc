"""
MET API — Shared Route Helpers
================================

What:  Error mapping, request parsing and the auth dependency used by
       every router.

Error mapping (`common_error_handler`):
    InvalidInputError   → 400 "Invalid Input"
    NotFoundError       → 404 "Not Found"   (delete routes: 500 "Server Error")
    NotAuthorizedError  → 401 "Not Authorized"
    HTTPException       → unchanged
    anything else       → logged with traceback, 500 "Server Error"

Route handlers wrap their body in try/except and re-raise the result:

    try:
        ...
    except Exception as e:
        raise common_error_handler(e) from e
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from fastapi import HTTPException, Request

from met_api.exceptions import (
    FieldError,
    InvalidInputError,
    NotAuthorizedError,
    NotFoundError,
)
from met_api.middleware.auth import AuthModel
from met_api.middleware.request_id import request_id_var
from met_api.models.base import parse_datetime
from met_api.repositories.base import DEFAULT_PAGE, DEFAULT_PAGINATION

logger = logging.getLogger(__name__)

INVALID_INPUT = "Invalid Input"
NOT_FOUND = "Not Found"
NOT_AUTHORIZED = "Not Authorized"
SERVER_ERROR = "Server Error"
INVALID_AUTH_TOKEN = "Invalid Authorization Token"


def common_error_handler(exc: Exception, *, not_found_status: int = 404) -> HTTPException:
    """Translates a domain error into the HTTPException the client sees."""
    if isinstance(exc, HTTPException):
        return exc

    if isinstance(exc, InvalidInputError):
        logger.info("[%s] Invalid input: %s %s", request_id_var.get(""), exc.message, exc.fields)
        return HTTPException(status_code=400, detail=INVALID_INPUT)

    if isinstance(exc, NotFoundError):
        if not_found_status == 500:
            logger.warning("[%s] Not found on delete: %s", request_id_var.get(""), exc.message)
            return HTTPException(status_code=500, detail=SERVER_ERROR)
        return HTTPException(status_code=404, detail=NOT_FOUND)

    if isinstance(exc, NotAuthorizedError):
        return HTTPException(status_code=401, detail=NOT_AUTHORIZED)

    logger.error(
        "[%s] Unexpected error: %s",
        request_id_var.get(""),
        exc,
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    return HTTPException(status_code=500, detail=SERVER_ERROR)


# ── Request parsing ───────────────────────────────────────────────────────


def _int_or_default(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def page_and_pagination(request: Request) -> Tuple[int, int]:
    """`page` / `pagination` query parameters, defaulting to 1 and 10."""
    params = request.query_params
    return (
        _int_or_default(params.get("page"), DEFAULT_PAGE),
        _int_or_default(params.get("pagination"), DEFAULT_PAGINATION),
    )


def query_date(request: Request, name: str) -> Optional[datetime]:
    """An optional ISO-8601 query parameter; unparseable values are a 400."""
    value = request.query_params.get(name)
    if value is None or value == "":
        return None
    try:
        return parse_datetime(value)
    except ValueError as e:
        raise InvalidInputError(
            message=f"Invalid {name}",
            field_errors=[FieldError(name, "expected an ISO-8601 date")],
        ) from e


def required_query(request: Request, name: str) -> str:
    value = request.query_params.get(name)
    if not value:
        raise InvalidInputError(
            message=f"Invalid {name}",
            field_errors=[FieldError(name, "required")],
        )
    return value


async def json_body(request: Request) -> Dict[str, Any]:
    """The request body as a JSON object, or InvalidInputError."""
    try:
        body = await request.json()
    except ValueError as e:
        raise InvalidInputError(
            message="Invalid Body",
            field_errors=[FieldError("root", "body is not JSON")],
        ) from e
    if not isinstance(body, dict):
        raise InvalidInputError(
            message="Invalid Body",
            field_errors=[FieldError("root", "expected an object")],
        )
    return body


def body_string(body: Dict[str, Any], key: str) -> str:
    value = body.get(key)
    if not isinstance(value, str):
        raise InvalidInputError(
            message=f"Invalid {key}",
            field_errors=[FieldError(key, "expected a string")],
        )
    return value


# ── Auth ──────────────────────────────────────────────────────────────────


def current_auth(request: Request) -> Optional[AuthModel]:
    auth_model = getattr(request.state, "auth_model", None)
    return auth_model if isinstance(auth_model, AuthModel) else None


async def require_auth(request: Request) -> AuthModel:
    """
    Dependency for routes that need a caller.

    400 when no auth model was attached or it lacks a user id,
    401 when the caller is not authorized.
    """
    auth_model = current_auth(request)
    if auth_model is None:
        raise HTTPException(status_code=400, detail=INVALID_AUTH_TOKEN)
    if not auth_model.authorized:
        raise HTTPException(status_code=401, detail=NOT_AUTHORIZED)
    if not auth_model.user_id:
        raise HTTPException(status_code=400, detail=INVALID_AUTH_TOKEN)
    return auth_model
