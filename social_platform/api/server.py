from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from social_platform import __version__
from social_platform.api import posts, users
from social_platform.config import Config, load_config
from social_platform.db import init_db


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


def create_app(cfg: Optional[Config] = None) -> FastAPI:
    """Build the API around one immutable Config (signing secret, DB, cookies, mail)."""
    cfg = cfg or load_config()

    app = FastAPI(title="Social Platform API", version=__version__)
    app.state.cfg = cfg

    # CORS is mainly needed for local development (SPA dev server -> API).
    # Credentials are allowed so the session cookie travels cross-origin.
    cors_origins = [o.strip() for o in (cfg.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.on_event("startup")
    def _on_startup() -> None:
        init_db(cfg.DB_DSN)

    # Malformed bodies / params are client errors like any other validation failure.
    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    @app.exception_handler(Exception)
    async def _internal_error(request: Request, exc: Exception) -> JSONResponse:
        _debug(f"{request.method} {request.url.path} failed: {type(exc).__name__}: {exc}")
        content: Dict[str, Any] = {"detail": "internal_error"}
        if cfg.EXPOSE_INTERNAL_ERRORS:
            content["message"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"status": "ok"}

    app.include_router(users.router, prefix="/api")
    app.include_router(posts.router, prefix="/api")
    return app


app = create_app()
