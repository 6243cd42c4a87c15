"""Per-resource ownership checks.

Each resource keeps its owner in a different column (posts.posted_by,
post_comments.user_id, users.user_id), so the check is called inline by the
handlers rather than mounted as a dependency. There is no admin override.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import HTTPException


class Forbidden(HTTPException):
    def __init__(self, detail: str = "forbidden") -> None:
        super().__init__(status_code=403, detail=detail)


def is_owner(user: Dict[str, Any], owner_id: Any) -> bool:
    if owner_id is None:
        return False
    return str(user.get("user_id")) == str(owner_id)


def assert_owner(user: Dict[str, Any], owner_id: Any, detail: str = "not_owner") -> None:
    if not is_owner(user, owner_id):
        raise Forbidden(detail)
