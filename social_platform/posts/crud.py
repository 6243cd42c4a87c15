from __future__ import annotations

from typing import Any, Dict, List, Optional

from social_platform.db import fits_db_int
from social_platform.util.time import utcnow_iso


POST_TEXT_MAX = 500
COMMENT_TEXT_MAX = 300

# Columns a client may change through PATCH /update/{post_id}.
# posted_by and timestamps are never client-writable.
POST_UPDATABLE_FIELDS = ("text", "post_img")

_POST_SELECT = """
    SELECT p.post_id, p.posted_by, p.text, p.post_img, p.created_at, p.updated_at,
           u.username AS posted_by_username, u.profile_pic AS posted_by_profile_pic
    FROM posts p
    JOIN users u ON u.user_id = p.posted_by
"""


def validate_post_text(text: Optional[str]) -> str:
    t = text or ""
    if not t.strip():
        raise ValueError("text_required")
    if len(t) > POST_TEXT_MAX:
        raise ValueError(f"text_too_long_max_{POST_TEXT_MAX}")
    return t


def validate_comment_text(text: Optional[str]) -> str:
    t = text or ""
    if not t.strip():
        raise ValueError("text_required")
    if len(t) > COMMENT_TEXT_MAX:
        raise ValueError(f"text_too_long_max_{COMMENT_TEXT_MAX}")
    return t


def list_comments(conn: Any, post_id: int) -> List[Dict[str, Any]]:
    rows = conn.execute(
        """
        SELECT comment_id, post_id, user_id, text, author_username, author_profile_img, created_at
        FROM post_comments
        WHERE post_id=?
        ORDER BY comment_id ASC
        """,
        (int(post_id),),
    ).fetchall()
    return [dict(r) for r in rows]


def get_post_row(conn: Any, post_id: int) -> Optional[Any]:
    if not fits_db_int(post_id):
        return None
    return conn.execute(
        "SELECT * FROM posts WHERE post_id=?",
        (int(post_id),),
    ).fetchone()


def get_post(conn: Any, post_id: int) -> Optional[Dict[str, Any]]:
    """Post with author info and its comments (oldest first)."""
    if not fits_db_int(post_id):
        return None
    row = conn.execute(
        _POST_SELECT + " WHERE p.post_id=?",
        (int(post_id),),
    ).fetchone()
    if row is None:
        return None
    post = dict(row)
    post["comments"] = list_comments(conn, int(post_id))
    return post


def _with_comments(conn: Any, rows: List[Any]) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for r in rows:
        post = dict(r)
        post["comments"] = list_comments(conn, int(post["post_id"]))
        out.append(post)
    return out


def list_posts(conn: Any, *, limit: int = 100) -> List[Dict[str, Any]]:
    rows = conn.execute(
        _POST_SELECT + " ORDER BY p.created_at DESC, p.post_id DESC LIMIT ?",
        (int(limit),),
    ).fetchall()
    return _with_comments(conn, rows)


def list_posts_by_user(conn: Any, user_id: int) -> List[Dict[str, Any]]:
    rows = conn.execute(
        _POST_SELECT + " WHERE p.posted_by=? ORDER BY p.created_at DESC, p.post_id DESC",
        (int(user_id),),
    ).fetchall()
    return _with_comments(conn, rows)


def create_post(conn: Any, *, posted_by: int, text: Optional[str], post_img: Optional[str] = None) -> Dict[str, Any]:
    t = validate_post_text(text)
    now = utcnow_iso()
    row = conn.execute(
        """
        INSERT INTO posts (posted_by, text, post_img, created_at, updated_at)
        VALUES (?,?,?,?,?)
        RETURNING post_id
        """,
        (int(posted_by), t, (post_img or "").strip(), now, now),
    ).fetchall()[0]
    post = get_post(conn, int(row["post_id"]))
    assert post is not None
    return post


def update_post(conn: Any, post_id: int, values: Dict[str, Any]) -> Dict[str, Any]:
    """Apply allow-listed changes; keys outside POST_UPDATABLE_FIELDS are ignored."""
    fields: list[tuple[str, Any]] = []
    for k in POST_UPDATABLE_FIELDS:
        if values.get(k) is None:
            continue
        v = values[k]
        if k == "text":
            v = validate_post_text(v)
        else:
            v = str(v).strip()
        fields.append((k, v))

    if not fields:
        raise ValueError("no_updatable_fields")

    fields.append(("updated_at", utcnow_iso()))
    sets = ", ".join([f"{k}=?" for k, _ in fields])
    params = [v for _, v in fields] + [int(post_id)]
    conn.execute(f"UPDATE posts SET {sets} WHERE post_id=?", params)

    post = get_post(conn, post_id)
    assert post is not None
    return post


def delete_post(conn: Any, post_id: int) -> None:
    # Explicit so it does not depend on FK cascade being enabled.
    conn.execute("DELETE FROM post_comments WHERE post_id=?", (int(post_id),))
    conn.execute("DELETE FROM posts WHERE post_id=?", (int(post_id),))


def get_comment(conn: Any, post_id: int, comment_id: int) -> Optional[Any]:
    if not (fits_db_int(post_id) and fits_db_int(comment_id)):
        return None
    return conn.execute(
        "SELECT * FROM post_comments WHERE post_id=? AND comment_id=?",
        (int(post_id), int(comment_id)),
    ).fetchone()


def add_comment(conn: Any, *, post_id: int, author: Dict[str, Any], text: Optional[str]) -> Dict[str, Any]:
    """Append a comment, snapshotting the author's username and profile image."""
    t = validate_comment_text(text)
    now = utcnow_iso()
    conn.execute(
        """
        INSERT INTO post_comments (post_id, user_id, text, author_username, author_profile_img, created_at)
        VALUES (?,?,?,?,?,?)
        """,
        (
            int(post_id),
            int(author["user_id"]),
            t,
            author.get("username"),
            author.get("profile_pic") or "",
            now,
        ),
    )
    conn.execute("UPDATE posts SET updated_at=? WHERE post_id=?", (now, int(post_id)))
    post = get_post(conn, post_id)
    assert post is not None
    return post


def delete_comment(conn: Any, post_id: int, comment_id: int) -> None:
    now = utcnow_iso()
    conn.execute(
        "DELETE FROM post_comments WHERE post_id=? AND comment_id=?",
        (int(post_id), int(comment_id)),
    )
    conn.execute("UPDATE posts SET updated_at=? WHERE post_id=?", (now, int(post_id)))
