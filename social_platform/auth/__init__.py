"""Authentication / authorization helpers.

Auth is intentionally lightweight:

- Users table (username/email + bcrypt password hash)
- Stateless JWT sessions, held by the client in an httpOnly cookie
  (set by `/api/users/signup` and `/api/users/login`, cleared by logout)
- Inline ownership checks on every mutation

Tokens are never stored server-side, so they cannot be revoked: a token stays
valid until it expires or the signing secret changes.
"""

from .deps import get_cfg, get_current_user
from .ownership import Forbidden, assert_owner
from .security import InvalidToken, create_access_token, verify_access_token

__all__ = [
    "get_cfg",
    "get_current_user",
    "Forbidden",
    "assert_owner",
    "InvalidToken",
    "create_access_token",
    "verify_access_token",
]
