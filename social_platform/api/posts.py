from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from social_platform.auth import assert_owner, get_cfg, get_current_user
from social_platform.auth.crud import get_user_by_id
from social_platform.config import Config
from social_platform.db import connect
from social_platform.posts.crud import (
    add_comment,
    create_post,
    delete_comment,
    delete_post,
    get_comment,
    get_post,
    get_post_row,
    list_posts,
    list_posts_by_user,
    update_post,
)


def _debug(msg: str) -> None:
    print(f"[api.posts] {msg}")


router = APIRouter(prefix="/posts", tags=["posts"])


class PostRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    post_img: Optional[str] = Field(default=None, alias="postImg")


class CommentRequest(BaseModel):
    text: Optional[str] = None


def _require_post_row(conn: Any, post_id: int) -> Any:
    row = get_post_row(conn, post_id)
    if row is None:
        raise HTTPException(status_code=404, detail="post_not_found")
    return row


# -----------------------------
# Public reads
# -----------------------------


@router.get("")
def get_all_posts(
    limit: int = Query(100, ge=1, le=500),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        return {"posts": list_posts(conn, limit=limit)}


@router.get("/user/{user_id}")
def get_posts_by_user(
    user_id: int,
    _user: Dict[str, Any] = Depends(get_current_user),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        if get_user_by_id(conn, user_id) is None:
            raise HTTPException(status_code=404, detail="user_not_found")
        return {"posts": list_posts_by_user(conn, user_id)}


@router.get("/{post_id}")
def get_post_by_id(post_id: int, cfg: Config = Depends(get_cfg)) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        post = get_post(conn, post_id)
    if post is None:
        raise HTTPException(status_code=404, detail="post_not_found")
    return {"post": post}


# -----------------------------
# Mutations (authenticated; owner-only where noted)
# -----------------------------


@router.post("/create", status_code=201)
def create_new_post(
    payload: PostRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        try:
            post = create_post(
                conn,
                posted_by=int(user["user_id"]),
                text=payload.text,
                post_img=payload.post_img,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    _debug(f"Created post_id={post['post_id']} by user_id={user['user_id']}")
    return {"post": post}


@router.patch("/update/{post_id}")
def update_existing_post(
    post_id: int,
    payload: PostRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        row = _require_post_row(conn, post_id)
        assert_owner(user, row["posted_by"], "not_post_owner")
        try:
            post = update_post(conn, post_id, payload.model_dump())
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    return {"post": post}


@router.delete("/{post_id}")
def delete_existing_post(
    post_id: int,
    user: Dict[str, Any] = Depends(get_current_user),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        row = _require_post_row(conn, post_id)
        assert_owner(user, row["posted_by"], "not_post_owner")
        delete_post(conn, post_id)

    _debug(f"Deleted post_id={post_id} by user_id={user['user_id']}")
    return {"message": "post_deleted", "post_id": post_id}


@router.post("/comment/{post_id}", status_code=201)
def comment_on_post(
    post_id: int,
    payload: CommentRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        _require_post_row(conn, post_id)
        try:
            post = add_comment(conn, post_id=post_id, author=user, text=payload.text)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    return {"post": post}


@router.delete("/{post_id}/comment/{comment_id}")
def delete_post_comment(
    post_id: int,
    comment_id: int,
    user: Dict[str, Any] = Depends(get_current_user),
    cfg: Config = Depends(get_cfg),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        _require_post_row(conn, post_id)
        comment = get_comment(conn, post_id, comment_id)
        if comment is None:
            raise HTTPException(status_code=404, detail="comment_not_found")
        assert_owner(user, comment["user_id"], "not_comment_author")
        delete_comment(conn, post_id, comment_id)

    return {"message": "comment_deleted", "comment_id": comment_id}
