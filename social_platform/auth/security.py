from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

from social_platform.util.time import utcnow


# bcrypt with a fixed cost factor. Salt is random per call and embedded in the hash.
BCRYPT_ROUNDS = 10
# bcrypt only reads the first 72 bytes. Longer secrets are rejected rather than silently cut.
BCRYPT_MAX_BYTES = 72
_pwd = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
    bcrypt__truncate_error=True,
)
_JWT_ALG = "HS256"


class InvalidToken(ValueError):
    """Session token failed verification. `str(e)` is a short reason code."""


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("password_blank")
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError("password_too_long")
    return _pwd.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        # Could only match through truncation.
        return False
    try:
        return _pwd.verify(password, password_hash)
    except (ValueError, TypeError):
        # Unknown / malformed hash format.
        return False


def create_access_token(
    *,
    secret: str,
    user_id: int,
    expires_days: int = 15,
    now: Optional[datetime] = None,
) -> str:
    if not secret:
        raise ValueError("jwt_secret_blank")

    issued = now or utcnow()
    exp = issued + timedelta(days=max(1, int(expires_days)))

    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "iat": int(issued.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=_JWT_ALG)


def decode_access_token(*, token: str, secret: str) -> Dict[str, Any]:
    if not token:
        raise ValueError("token_blank")
    if not secret:
        raise ValueError("jwt_secret_blank")
    return jwt.decode(token, secret, algorithms=[_JWT_ALG], options={"require": ["exp", "sub"]})


def verify_access_token(*, token: str, secret: str) -> int:
    """Check signature + expiry and return the user id encoded in the token."""
    try:
        payload = decode_access_token(token=token, secret=secret)
    except jwt.ExpiredSignatureError:
        raise InvalidToken("token_expired")
    except jwt.InvalidTokenError:
        raise InvalidToken("token_invalid")
    except ValueError:
        raise InvalidToken("token_invalid")

    sub = payload.get("sub")
    if not sub:
        raise InvalidToken("token_missing_sub")

    try:
        return int(sub)
    except (TypeError, ValueError):
        raise InvalidToken("token_sub_not_int")
