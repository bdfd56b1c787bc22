"""Capability gate for the validation endpoints.

Callers authenticate with ``Authorization: Bearer <token>``.  Tokens and the
capabilities they grant are configured through ``AMPSCAN_API_TOKENS``.  The
gate runs as a route dependency, so a rejected request never reaches the
correlator.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import Header, Request
from fastapi.responses import JSONResponse

from ampscan.config import settings

logger = logging.getLogger(__name__)

VALIDATE_CAPABILITY = "amp_validate"


class AuthorizationError(Exception):
    """The caller may not access validation data."""

    code = "amp_rest_cannot_validate_urls"
    message = "Sorry, you are not allowed to access validation data."

    def __init__(self, status_code: int = 401) -> None:
        super().__init__(self.message)
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "data": {"status": self.status_code},
        }


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def has_cap(token: Optional[str], capability: str = VALIDATE_CAPABILITY) -> bool:
    caps = settings.api_tokens.get(token) if token else None
    return caps is not None and capability in caps


def require_validate_capability(authorization: Optional[str] = Header(default=None)) -> None:
    """Route dependency: raise :class:`AuthorizationError` unless permitted.

    Unauthenticated callers get 401; authenticated callers without the
    capability get 403.
    """
    token = _bearer_token(authorization)
    if token is None or token not in settings.api_tokens:
        logger.info("Rejected unauthenticated request for validation data")
        raise AuthorizationError(status_code=401)
    if not has_cap(token):
        logger.info("Rejected request lacking %s capability", VALIDATE_CAPABILITY)
        raise AuthorizationError(status_code=403)


async def authorization_error_handler(request: Request, exc: AuthorizationError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
