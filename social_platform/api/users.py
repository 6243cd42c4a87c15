from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Response
from pydantic import BaseModel, ConfigDict, Field

from social_platform.auth import assert_owner, create_access_token, get_cfg, get_current_user
from social_platform.auth.crud import (
    create_user,
    get_user_by_id,
    get_user_by_username,
    issue_reset_token,
    public_user,
    reset_password_with_token,
    update_user_profile,
    verify_user_credentials,
)
from social_platform.config import Config
from social_platform.db import connect
from social_platform.mail import send_reset_password_email


def _debug(msg: str) -> None:
    print(f"[api.users] {msg}")


router = APIRouter(prefix="/users", tags=["users"])


# -----------------------------
# Session cookie
# -----------------------------


def _cookie_secure(cfg: Config) -> bool:
    """Return whether the session cookie should be marked Secure."""
    samesite = str(cfg.AUTH_COOKIE_SAMESITE or "strict").lower()
    # Browsers require Secure when SameSite=None
    if samesite == "none":
        return True
    return bool(cfg.AUTH_COOKIE_SECURE)


def _set_auth_cookie(response: Response, *, token: str, cfg: Config) -> None:
    """Hand the JWT to the browser as an httpOnly cookie living as long as the token."""
    response.set_cookie(
        key=cfg.AUTH_COOKIE_NAME,
        value=str(token),
        httponly=True,
        samesite=str(cfg.AUTH_COOKIE_SAMESITE or "strict").lower(),
        secure=_cookie_secure(cfg),
        max_age=int(cfg.AUTH_TOKEN_EXPIRE_DAYS) * 24 * 60 * 60,
        path=cfg.AUTH_COOKIE_PATH or "/",
        domain=cfg.AUTH_COOKIE_DOMAIN,
    )


def _clear_auth_cookie(response: Response, cfg: Config) -> None:
    response.delete_cookie(
        key=cfg.AUTH_COOKIE_NAME,
        path=cfg.AUTH_COOKIE_PATH or "/",
        domain=cfg.AUTH_COOKIE_DOMAIN,
    )


def _issue_session(response: Response, user: Dict[str, Any], cfg: Config) -> Dict[str, Any]:
    token = create_access_token(
        secret=cfg.AUTH_JWT_SECRET,
        user_id=int(user["user_id"]),
        expires_days=int(cfg.AUTH_TOKEN_EXPIRE_DAYS),
    )
    _set_auth_cookie(response, token=token, cfg=cfg)
    return {"user": user, "access_token": token, "token_type": "bearer"}


# -----------------------------
# Request bodies
# -----------------------------
# Fields are optional at the schema level so a missing field is reported as a
# 400 with a readable code instead of a pydantic error list.


class SignupRequest(BaseModel):
    name: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class ForgetPasswordRequest(BaseModel):
    email: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    password: Optional[str] = None


class ProfileUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None
    profile_pic: Optional[str] = Field(default=None, alias="profilePic")
    password: Optional[str] = None


# -----------------------------
# Routes
# -----------------------------


@router.post("/signup", status_code=201)
def signup_user(
    payload: SignupRequest,
    response: Response,
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        try:
            u = create_user(
                conn,
                name=payload.name or "",
                username=payload.username or "",
                email=payload.email or "",
                password=payload.password or "",
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    _debug(f"Signed up user_id={u['user_id']} username={u['username']}")
    return _issue_session(response, u, cfg)


@router.post("/login")
def login_user(
    payload: LoginRequest,
    response: Response,
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        try:
            row = verify_user_credentials(conn, payload.username or "", payload.password or "")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    return _issue_session(response, public_user(row), cfg)


@router.post("/logout")
def logout_user(response: Response, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    """Clear the session cookie. The token itself stays valid until it expires."""
    _clear_auth_cookie(response, cfg)
    return {"message": "logged_out"}


@router.post("/forget-password")
def forget_password(
    payload: ForgetPasswordRequest,
    background_tasks: BackgroundTasks,
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    email = (payload.email or "").strip()
    if not email:
        raise HTTPException(status_code=400, detail="email_required")

    with connect(cfg.DB_DSN) as conn:
        try:
            row, reset_token = issue_reset_token(conn, email)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    background_tasks.add_task(
        send_reset_password_email,
        cfg,
        name=str(row["name"]),
        email=str(row["email"]),
        reset_token=reset_token,
    )
    return {"message": "reset_password_email_sent"}


@router.post("/reset-password")
def reset_password(
    payload: ResetPasswordRequest,
    reset_token: Optional[str] = Query(default=None, alias="resetToken"),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        try:
            u = reset_password_with_token(conn, reset_token or "", payload.password or "")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    _debug(f"Password reset for user_id={u['user_id']}")
    return {"message": "password_updated"}


@router.get("/me")
def get_me(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return {"user": user}


@router.get("/profile/{username}")
def get_user_profile(username: str, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        row = get_user_by_username(conn, username)
    if row is None:
        raise HTTPException(status_code=404, detail="user_not_found")
    return {"user": public_user(row)}


@router.patch("/profile/{user_id}")
def update_profile(
    user_id: int,
    payload: ProfileUpdateRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        if get_user_by_id(conn, user_id) is None:
            raise HTTPException(status_code=404, detail="user_not_found")

        assert_owner(user, user_id, "cannot_update_other_profile")

        try:
            u = update_user_profile(conn, user_id=user_id, values=payload.model_dump())
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    return {"user": u}
