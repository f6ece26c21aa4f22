"""
Account backend — application entry point.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from api.middleware import register_exception_handlers, register_middleware
from api.routes import router as api_router
from auth.routes import router as users_router
from auth.tokens import TokenIssuer
from config.settings import Settings, config
from database.session import build_engine, build_session_factory, init_models
from media.base import MediaHost
from media.cloudinary import CloudinaryHost

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("httpcore", "httpx", "urllib3"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    media_host: Optional[MediaHost] = None,
    engine: Optional[AsyncEngine] = None,
) -> FastAPI:
    settings = settings or config

    # Misconfigured secrets fail here, never per request.
    token_issuer = TokenIssuer(settings)

    app = FastAPI(
        title="Account Backend",
        version="1.0.0",
        description="User accounts, sessions and profile media.",
    )

    engine = engine or build_engine(settings)
    app.state.settings = settings
    app.state.token_issuer = token_issuer
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.media_host = media_host or CloudinaryHost.from_settings(settings)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)
    register_exception_handlers(app)

    # Routes
    app.include_router(users_router, prefix="/api/v1/users")
    app.include_router(api_router, prefix="/api/v1")

    @app.on_event("startup")
    async def on_startup():
        logger.info("Creating tables…")
        await init_models(engine)
        if isinstance(app.state.media_host, CloudinaryHost) and not app.state.media_host.is_configured():
            logger.warning("Cloudinary credentials not set — image uploads will fail.")
        logger.info("Application ready to accept requests.")

    @app.on_event("shutdown")
    async def on_shutdown():
        await engine.dispose()

    return app


if __name__ == "__main__":
    uvicorn.run(
        "main:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
