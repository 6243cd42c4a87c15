from __future__ import annotations

import secrets
from typing import Any, Dict, Optional

from social_platform.db import fits_db_int, is_integrity_error
from social_platform.util.time import utcnow_iso

from .security import hash_password, verify_password


# Columns a client may change through PATCH /profile/{id}. Anything else in the body is ignored.
PROFILE_FIELDS = ("name", "username", "email", "bio", "profile_pic")

_PRIVATE_FIELDS = ("password_hash", "reset_token")


def normalize_username(username: str) -> str:
    # Usernames are case-sensitive; only surrounding whitespace is dropped.
    return (username or "").strip()


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def public_user(row: Any | Dict[str, Any]) -> Dict[str, Any]:
    d = dict(row)
    for k in _PRIVATE_FIELDS:
        d.pop(k, None)
    return d


def get_user_by_id(conn: Any, user_id: int) -> Optional[Any]:
    if not fits_db_int(user_id):
        return None
    return conn.execute(
        "SELECT * FROM users WHERE user_id=?",
        (int(user_id),),
    ).fetchone()


def get_user_by_username(conn: Any, username: str) -> Optional[Any]:
    u = normalize_username(username)
    if not u:
        return None
    return conn.execute(
        "SELECT * FROM users WHERE username=?",
        (u,),
    ).fetchone()


def get_user_by_email(conn: Any, email: str) -> Optional[Any]:
    e = normalize_email(email)
    if not e:
        return None
    return conn.execute(
        "SELECT * FROM users WHERE email=?",
        (e,),
    ).fetchone()


def _taken_by_other(conn: Any, column: str, value: str, user_id: int | None) -> bool:
    row = conn.execute(
        f"SELECT user_id FROM users WHERE {column}=?",
        (value,),
    ).fetchone()
    if row is None:
        return False
    return user_id is None or int(row["user_id"]) != int(user_id)


def _unique_conflict_code(exc: BaseException) -> str:
    # sqlite: "UNIQUE constraint failed: users.email". psycopg2: diag.constraint_name "users_email_key".
    diag = getattr(exc, "diag", None)
    where = str(getattr(diag, "constraint_name", None) or exc).lower()
    return "email_exists" if "email" in where else "username_exists"


def create_user(
    conn: Any,
    *,
    name: str,
    username: str,
    email: str,
    password: str,
) -> Dict[str, Any]:
    n = (name or "").strip()
    u = normalize_username(username)
    e = normalize_email(email)
    if not n or not u or not e or not password:
        raise ValueError("missing_fields")

    if _taken_by_other(conn, "username", u, None) or _taken_by_other(conn, "email", e, None):
        raise ValueError("user_exists")

    now = utcnow_iso()
    try:
        row = conn.execute(
            """
            INSERT INTO users (name, username, email, password_hash, created_at, updated_at)
            VALUES (?,?,?,?,?,?)
            RETURNING *
            """,
            (n, u, e, hash_password(password), now, now),
        ).fetchall()[0]
    except Exception as exc:
        # A concurrent signup can take the name between the check above and the insert.
        if is_integrity_error(exc):
            raise ValueError("user_exists") from exc
        raise
    return public_user(row)


def verify_user_credentials(conn: Any, username: str, password: str) -> Any:
    """Return the user row for a valid username/password pair.

    Raises ValueError("user_not_found") or ValueError("invalid_credentials").
    """
    row = get_user_by_username(conn, username)
    if row is None:
        raise ValueError("user_not_found")
    if not verify_password(password, str(row["password_hash"])):
        raise ValueError("invalid_credentials")
    return row


def issue_reset_token(conn: Any, email: str) -> tuple[Any, str]:
    """Store a fresh one-shot reset token on the user with this email.

    Any previous token for that user stops working.
    """
    row = get_user_by_email(conn, email)
    if row is None:
        raise ValueError("user_not_found")

    token = secrets.token_urlsafe(24)
    conn.execute(
        "UPDATE users SET reset_token=?, updated_at=? WHERE user_id=?",
        (token, utcnow_iso(), int(row["user_id"])),
    )
    return row, token


def reset_password_with_token(conn: Any, reset_token: str, password: str) -> Dict[str, Any]:
    """Consume a reset token: set the new password hash and clear the token."""
    token = (reset_token or "").strip()
    if not token:
        raise ValueError("token_invalid")
    if not password:
        raise ValueError("password_required")

    row = conn.execute(
        "SELECT * FROM users WHERE reset_token=?",
        (token,),
    ).fetchone()
    if row is None:
        raise ValueError("token_invalid")

    # Guard on the token as well so two concurrent resets cannot both succeed.
    cur = conn.execute(
        "UPDATE users SET password_hash=?, reset_token=NULL, updated_at=? WHERE user_id=? AND reset_token=?",
        (hash_password(password), utcnow_iso(), int(row["user_id"]), token),
    )
    if cur.rowcount != 1:
        raise ValueError("token_invalid")
    return public_user(get_user_by_id(conn, int(row["user_id"])))


def update_user_profile(
    conn: Any,
    *,
    user_id: int,
    values: Dict[str, Any],
) -> Dict[str, Any]:
    """Apply allow-listed profile changes. `password` (if present) is re-hashed."""
    fields: list[tuple[str, Any]] = []
    for k in PROFILE_FIELDS:
        if values.get(k) is None:
            continue
        v = str(values[k])
        if k == "username":
            v = normalize_username(v)
        elif k == "email":
            v = normalize_email(v)
        elif k == "name":
            v = v.strip()
        if k in ("name", "username", "email") and not v:
            raise ValueError(f"{k}_blank")
        if k in ("username", "email") and _taken_by_other(conn, k, v, user_id):
            raise ValueError(f"{k}_exists")
        fields.append((k, v))

    password = values.get("password")
    if password:
        fields.append(("password_hash", hash_password(str(password))))

    if not fields:
        raise ValueError("no_updatable_fields")

    fields.append(("updated_at", utcnow_iso()))
    sets = ", ".join([f"{k}=?" for k, _ in fields])
    params = [v for _, v in fields] + [int(user_id)]
    try:
        conn.execute(
            f"UPDATE users SET {sets} WHERE user_id=?",
            params,
        )
    except Exception as exc:
        if is_integrity_error(exc):
            raise ValueError(_unique_conflict_code(exc)) from exc
        raise
    row = get_user_by_id(conn, user_id)
    assert row is not None
    return public_user(row)
