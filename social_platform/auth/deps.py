from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from social_platform.config import Config
from social_platform.db import connect

from .crud import get_user_by_id, public_user
from .security import InvalidToken, verify_access_token


_bearer = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def get_cfg(request: Request) -> Config:
    cfg = getattr(request.app.state, "cfg", None)
    if cfg is None:
        raise HTTPException(status_code=500, detail="server_config_missing")
    return cfg


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Dict[str, Any]:
    """Authenticate a request.

    The session JWT normally arrives in the httpOnly cookie set at signup/login.
    An `Authorization: Bearer <jwt>` header is accepted when no cookie is sent
    (scripts / API clients).

    Exactly one user lookup per request. The resolved public view (no password
    hash, no reset token) is stored on `request.state.user` and returned.
    """

    cfg = get_cfg(request)

    token: str | None = request.cookies.get(cfg.AUTH_COOKIE_NAME)
    if not token and credentials is not None and credentials.credentials:
        token = credentials.credentials

    if not token:
        raise _unauthorized("missing_token")

    try:
        user_id = verify_access_token(token=token, secret=cfg.AUTH_JWT_SECRET)
    except InvalidToken as e:
        raise _unauthorized(str(e))

    with connect(cfg.DB_DSN) as conn:
        row = get_user_by_id(conn, user_id)
    # A valid token for a deleted account is not a session.
    if row is None:
        raise _unauthorized("user_not_found")

    user = public_user(row)
    request.state.user = user
    return user
