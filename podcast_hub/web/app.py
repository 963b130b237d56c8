"""
FastAPI web application for PodcastHub.

Serves the JSON API used by the pages' scripts, the server-rendered pages,
static assets and, with the local storage backend, uploaded media.
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.sessions import SessionMiddleware

from podcast_hub import __version__
from podcast_hub.config import Config
from podcast_hub.db.factory import repository_from_config
from podcast_hub.db.repository import PodcastHubRepositoryInterface
from podcast_hub.storage import (
    LocalStorageProvider,
    StorageError,
    StorageProvider,
    create_storage_provider,
    ensure_buckets,
)
from podcast_hub.web.auth import LoginRequired
from podcast_hub.web.auth_routes import router as auth_router
from podcast_hub.web.catalog_routes import router as catalog_router
from podcast_hub.web.creator_routes import router as creator_router
from podcast_hub.web.library_routes import router as library_router
from podcast_hub.web.page_routes import router as page_router
from podcast_hub.web.rate_limit import limiter

# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


def _validate_jwt_config(config: Config) -> None:
    """
    Validate JWT configuration at startup.

    In DEV_MODE, allows running without JWT_SECRET_KEY by using an insecure key.
    In production, requires JWT_SECRET_KEY to be set.

    Must be called before any middleware that uses JWT_SECRET_KEY is configured.
    """
    is_dev_mode = os.getenv("DEV_MODE", "").lower() == "true"
    if not config.JWT_SECRET_KEY:
        if is_dev_mode:
            logger.warning(
                "JWT_SECRET_KEY not set - using insecure dev key. "
                "DO NOT use in production!"
            )
            config.JWT_SECRET_KEY = "dev-secret-key-insecure-do-not-use-in-prod"
        else:
            raise RuntimeError(
                "JWT_SECRET_KEY environment variable must be set. "
                "Set DEV_MODE=true to use an insecure dev key for local testing."
            )


async def _redirect_to_login(_request: Request, _exc: LoginRequired):
    """Send anonymous visitors of protected pages to the login page."""
    return RedirectResponse(url="/login", status_code=302)


def _media_mount_path(storage: StorageProvider) -> Optional[str]:
    """URL path local uploads are served from, if the provider serves them itself."""
    if not isinstance(storage, LocalStorageProvider):
        return None
    if not storage.public_base_url.startswith("/"):
        return None
    return storage.public_base_url


def create_app(
    config: Optional[Config] = None,
    repository: Optional[PodcastHubRepositoryInterface] = None,
    storage: Optional[StorageProvider] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Application configuration; loaded from the environment when omitted.
        repository: Data store; created from DATABASE_URL when omitted.
        storage: Object storage; selected by STORAGE_BACKEND when omitted.

    Returns:
        FastAPI: The configured application.
    """
    config = config or Config()

    # Validate JWT config before any middleware uses it
    _validate_jwt_config(config)

    if repository is None:
        repository = repository_from_config(config)
    if storage is None:
        storage = create_storage_provider(config)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        """
        FastAPI lifespan context manager.

        Ensures the storage buckets exist on startup and releases database
        connections on shutdown.
        """
        if config.STORAGE_AUTO_CREATE_BUCKETS:
            try:
                ensure_buckets(storage)
            except StorageError:
                logger.exception("Could not ensure storage buckets")
        logger.info("Application started")

        yield

        repository.close()
        logger.info("Application shutdown")

    app = FastAPI(
        title="PodcastHub",
        description="Publish podcasts, subscribe to shows and stream episodes",
        version=__version__,
        lifespan=lifespan,
    )

    # Add rate limiter to app state
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(LoginRequired, _redirect_to_login)

    # Session middleware (required by Authlib for OAuth state)
    app.add_middleware(
        SessionMiddleware,
        secret_key=config.JWT_SECRET_KEY,
        session_cookie="oauth_session",
        max_age=3600,  # 1 hour for OAuth flow
        https_only=config.COOKIE_SECURE,
        same_site="lax"
    )

    # CORS middleware (configurable via environment variable)
    allowed_origins = config.WEB_ALLOWED_ORIGINS.split(",") if config.WEB_ALLOWED_ORIGINS != "*" else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Store collaborators in app state for access in routes
    app.state.config = config
    app.state.repository = repository
    app.state.storage = storage

    app.include_router(auth_router)
    app.include_router(catalog_router)
    app.include_router(library_router)
    app.include_router(creator_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint for container orchestration."""
        return {"status": "healthy", "service": "podcast-hub"}

    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    media_path = _media_mount_path(storage)
    if media_path:
        app.mount(media_path, StaticFiles(directory=str(storage.root)), name="media")

    # Pages last: the catch-all must not shadow the API or mounts
    app.include_router(page_router)

    return app


def main():
    """Run the development server."""
    import uvicorn

    config = Config()
    uvicorn.run(
        "podcast_hub.web.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=config.WEB_PORT,
    )


if __name__ == "__main__":
    main()
