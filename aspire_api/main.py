"""
FastAPI application entry point for the Aspire CMS API.

Builds the app through ``create_app`` so tests can supply their own config
and collaborators: the database, the response cache, the mailer and the
upload storage all live on ``app.state`` for the lifetime of the app.
"""
import logging
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .auth import TokenService
from .cache import ResponseCache
from .config_loader import Config, config
from .database import Database
from .mailer import Mailer
from .routes import register_routes
from .storage import build_storage

# Configure logging for the application
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
    app_config: Config | None = None,
    *,
    response_cache: ResponseCache | None = None,
    mailer: Mailer | None = None,
    storage=None,
) -> FastAPI:
    """
    Assemble the application.

    Args:
        app_config: Configuration to use (module-level ``config`` by default)
        response_cache: Shared response cache; one is created when omitted
        mailer: Outbound mailer for contact notifications
        storage: Upload storage adapter (local disk or Cloudinary)
    """
    app_config = app_config or config
    response_cache = response_cache or ResponseCache(max_entries=app_config.cache_max_entries)

    @asynccontextmanager
    async def app_lifespan(app: FastAPI):
        """Open the database and start cache sweeps; undo both on shutdown."""
        logger.info("Starting Aspire CMS API")
        logger.info("Database: %s", app_config.database_path)
        logger.info("Server: %s:%s", app_config.server_host, app_config.server_port)

        db = Database(app_config.database_path)
        await db.initialize()
        await db.seed_defaults(app_config.default_admin_password)
        app.state.db = db
        response_cache.start()
        try:
            yield
        finally:
            await response_cache.close()
            await db.close()
            logger.info("Shutting down Aspire CMS API")

    app = FastAPI(
        title="Aspire CMS API",
        version="1.0.0",
        description="Content management backend for the ASPIRE Design Lab site",
        lifespan=app_lifespan,
    )
    app.state.config = app_config
    app.state.cache = response_cache
    app.state.tokens = TokenService(app_config.jwt_secret, app_config.token_expire_hours)
    app.state.mailer = mailer or Mailer.from_config(app_config)
    app.state.storage = storage or build_storage(app_config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_config.cors_origins,
        allow_origin_regex=app_config.cors_origin_regex or None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    @app.middleware("http")
    async def add_noindex_header(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Add X-Robots-Tag to every response so the API stays out of search indexes."""
        response = await call_next(request)
        response.headers["X-Robots-Tag"] = "noindex, nofollow"
        return response

    # Register routes
    register_routes(app, response_cache)
    app.mount(
        "/uploads",
        StaticFiles(directory=app_config.upload_dir, check_dir=False),
        name="uploads",
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=config.server_host,
        port=config.server_port,
        log_level="info",
    )
