"""Database schema for the social platform.

Written for SQLite; the Postgres variant is derived with a small set of
transformations (pragmas + autoincrement keys).

Timestamps are ISO-8601 TEXT (UTC, with 'Z') for portability. ISO strings sort
lexicographically in time order, so `ORDER BY created_at` behaves correctly.
"""

from __future__ import annotations

import re


SCHEMA_SQLITE = r"""
PRAGMA foreign_keys = ON;

-- Users / Auth
-- Only password hashes are stored. Sessions are stateless JWTs (never stored).
-- reset_token is a one-shot password-reset secret, cleared once used.
CREATE TABLE IF NOT EXISTS users (
    user_id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    username TEXT NOT NULL UNIQUE,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    profile_pic TEXT NOT NULL DEFAULT '',
    bio TEXT NOT NULL DEFAULT '',
    reset_token TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_users_reset_token ON users (reset_token);

-- Posts (posted_by never changes after insert)
CREATE TABLE IF NOT EXISTS posts (
    post_id INTEGER PRIMARY KEY AUTOINCREMENT,
    posted_by INTEGER NOT NULL,
    text TEXT NOT NULL CHECK (length(text) <= 500),
    post_img TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY (posted_by) REFERENCES users(user_id)
);
CREATE INDEX IF NOT EXISTS idx_posts_posted_by_created ON posts (posted_by, created_at);
CREATE INDEX IF NOT EXISTS idx_posts_created ON posts (created_at);

-- Comments belong to exactly one post. comment_id order is display order.
-- Author username / profile image are snapshots taken at comment time.
CREATE TABLE IF NOT EXISTS post_comments (
    comment_id INTEGER PRIMARY KEY AUTOINCREMENT,
    post_id INTEGER NOT NULL,
    user_id INTEGER NOT NULL,
    text TEXT NOT NULL CHECK (length(text) <= 300),
    author_username TEXT,
    author_profile_img TEXT,
    created_at TEXT NOT NULL,
    FOREIGN KEY (post_id) REFERENCES posts(post_id) ON DELETE CASCADE,
    FOREIGN KEY (user_id) REFERENCES users(user_id)
);
CREATE INDEX IF NOT EXISTS idx_post_comments_post ON post_comments (post_id, comment_id);
"""


def _sqlite_to_postgres(ddl: str) -> str:
    # Remove SQLite pragmas
    lines: list[str] = []
    for line in ddl.splitlines():
        if line.strip().upper().startswith("PRAGMA "):
            continue
        lines.append(line)
    out = "\n".join(lines)

    # AUTOINCREMENT primary keys
    out = re.sub(
        r"INTEGER\s+PRIMARY\s+KEY\s+AUTOINCREMENT",
        "BIGSERIAL PRIMARY KEY",
        out,
        flags=re.IGNORECASE,
    )
    out = re.sub(r"\bAUTOINCREMENT\b", "", out, flags=re.IGNORECASE)

    return out


SCHEMA_POSTGRES = _sqlite_to_postgres(SCHEMA_SQLITE)


def get_schema_sql(dialect: str) -> str:
    d = (dialect or "").lower()
    if d.startswith("post"):
        return SCHEMA_POSTGRES
    return SCHEMA_SQLITE
