import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load a local .env file if present (no-op otherwise).
load_dotenv()


def _env_bool(name: str, default: Optional[bool] = None) -> Optional[bool]:
    """Parse a boolean environment variable.

    Returns:
      - True/False if the env var is set to a recognizable value
      - default if unset or unrecognized

    Accepted truthy: 1, true, yes, y, on
    Accepted falsy:  0, false, no, n, off
    """

    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in ("1", "true", "yes", "y", "on"):
        return True
    if v in ("0", "false", "no", "n", "off"):
        return False
    return default


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    Built once at process start and attached to the app (`app.state.cfg`).
    Provide secrets via environment variables or a .env file.
    """

    # -----------------
    # Core
    # -----------------
    # Preferred: set SOCIAL_DATABASE_URL (or DATABASE_URL) to use Postgres.
    # Fallback: SOCIAL_DB_PATH for SQLite.
    DB_DSN: str = (
        os.environ.get("SOCIAL_DATABASE_URL")
        or os.environ.get("DATABASE_URL")
        or os.environ.get("SOCIAL_DB_PATH", "./social_platform.sqlite")
    )

    # Base URL used to build links in outbound email (password reset).
    PUBLIC_API_URL: str = os.environ.get("PUBLIC_API_URL", "http://localhost:5000")

    # 500 responses carry the underlying exception text when enabled.
    # Turn this off for anything facing real users.
    EXPOSE_INTERNAL_ERRORS: bool = _env_bool("EXPOSE_INTERNAL_ERRORS", True) is True

    # -----------------
    # Auth (JWT)
    # -----------------
    # NOTE: In dev, this defaults to a fixed string so you can get started.
    # In production, you MUST set JWT_SECRET to a strong random value.
    # Changing it invalidates every outstanding session.
    AUTH_JWT_SECRET: str = (
        os.environ.get("JWT_SECRET") or os.environ.get("AUTH_JWT_SECRET") or "dev_change_me"
    )
    AUTH_TOKEN_EXPIRE_DAYS: int = int(os.environ.get("AUTH_TOKEN_EXPIRE_DAYS", "15"))

    # Session cookie (httpOnly, holds the JWT)
    AUTH_COOKIE_NAME: str = os.environ.get("AUTH_COOKIE_NAME", "jwt")
    AUTH_COOKIE_DOMAIN: str | None = (os.environ.get("AUTH_COOKIE_DOMAIN") or "").strip() or None
    AUTH_COOKIE_PATH: str = os.environ.get("AUTH_COOKIE_PATH", "/")
    AUTH_COOKIE_SAMESITE: str = os.environ.get("AUTH_COOKIE_SAMESITE", "strict")  # lax|strict|none

    # If AUTH_COOKIE_SECURE is unset, we default to secure cookies when PUBLIC_APP_URL is https.
    # NOTE: Browsers require Secure when SameSite=None.
    PUBLIC_APP_URL: str = os.environ.get("PUBLIC_APP_URL", "http://localhost:3000")
    AUTH_COOKIE_SECURE: bool = (
        _env_bool("AUTH_COOKIE_SECURE", None)
        if _env_bool("AUTH_COOKIE_SECURE", None) is not None
        else PUBLIC_APP_URL.lower().startswith("https://")
    )

    # -----------------
    # CORS (development)
    # -----------------
    CORS_ALLOW_ORIGINS: str = os.environ.get(
        "CORS_ALLOW_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173",
    )

    # -----------------
    # Outbound mail (password reset)
    # -----------------
    SMTP_HOST: str = os.environ.get("SMTP_HOST", "smtp.gmail.com")
    SMTP_PORT: int = int(os.environ.get("SMTP_PORT", "587"))
    SMTP_TIMEOUT_SECONDS: float = float(os.environ.get("SMTP_TIMEOUT_SECONDS", "20"))
    ADMIN_EMAIL: str | None = os.environ.get("ADMIN_EMAIL")
    ADMIN_PASSWORD: str | None = os.environ.get("ADMIN_PASSWORD")


def load_config() -> Config:
    return Config()
