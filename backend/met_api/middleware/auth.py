"""
MET API — Auth Attachment Middleware
======================================

What:  Resolves the bearer token of each request into an AuthModel and
       attaches it as `request.state.auth_model`.
Why:   Routes only need "who is calling and are they authorized"; how a
       token is verified is a pluggable concern (TokenVerifier).
How:   `Authorization: Bearer <token>` is passed to the verifier. A missing
       or unknown token yields AuthModel(authorized=False). The middleware
       never rejects a request itself; `require_auth` (routes/common.py)
       decides per route.

Default verifier:
    StaticTokenVerifier maps fixed tokens to user ids (AUTH_TOKENS). Swap
    it for a JWT or session verifier in create_app().
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "


@dataclass(frozen=True)
class AuthModel:
    authorized: bool
    user_id: str = ""
    claims: Dict[str, Any] = field(default_factory=dict)


UNAUTHORIZED = AuthModel(authorized=False)


class TokenVerifier(ABC):
    """Turns a raw bearer token into an AuthModel."""

    @abstractmethod
    async def verify(self, token: str) -> AuthModel:
        ...


class StaticTokenVerifier(TokenVerifier):
    def __init__(self, tokens: Mapping[str, str]):
        self._tokens = dict(tokens)

    async def verify(self, token: str) -> AuthModel:
        user_id = self._tokens.get(token)
        if user_id is None:
            return UNAUTHORIZED
        return AuthModel(authorized=True, user_id=user_id)


def bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header[: len(BEARER_PREFIX)].lower() != BEARER_PREFIX:
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


class AuthMiddleware(BaseHTTPMiddleware):
    """Attaches request.state.auth_model for every request."""

    def __init__(self, app, verifier: TokenVerifier, **kwargs):
        super().__init__(app, **kwargs)
        self.verifier = verifier

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        token = bearer_token(request)
        auth_model = UNAUTHORIZED
        if token is not None:
            auth_model = await self.verifier.verify(token)
            if not auth_model.authorized:
                logger.info("Rejected bearer token for %s %s", request.method, request.url.path)

        request.state.auth_model = auth_model
        return await call_next(request)
