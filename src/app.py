"""Main FastAPI application module.

This module builds the FastAPI application: it loads settings, connects to
MongoDB, wires the media uploader and registers all route handlers.

Run with ``python app.py`` or ``uvicorn app:create_app --factory``.
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo import MongoClient

from api.routes import auth, product
from config import Settings, load_settings
from core.database import create_client, init_db
from core.exceptions import register_exception_handlers
from core.logging_config import setup_logging
from utils.media_uploader import CloudinaryUploader, MediaUploader

logger = logging.getLogger(__name__)

API_TITLE = "Catalog API"
API_VERSION = "1.0.0"


def create_app(
    settings: Optional[Settings] = None,
    mongo_client: Optional[MongoClient] = None,
    media_uploader: Optional[MediaUploader] = None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to use; loaded from the environment when omitted.
        mongo_client: MongoDB client to use; created from settings when omitted.
        media_uploader: Image uploader; Cloudinary when omitted.

    Returns:
        The configured FastAPI application.

    Raises:
        ConfigurationError: If required configuration (the token signing
            secret) is missing.
    """
    setup_logging()
    settings = settings or load_settings()

    if not settings.media_host_configured:
        logger.warning("Cloudinary credentials are not set; image uploads will fail")

    app = FastAPI(
        title=API_TITLE,
        description="Product catalog backend with role-gated administration.",
        version=API_VERSION,
    )

    # Configure CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
        allow_headers=["*"],
    )

    client = mongo_client or create_client(settings)
    app.state.settings = settings
    app.state.mongo_client = client
    app.state.db = client[settings.mongodb_db]
    app.state.media_uploader = media_uploader or CloudinaryUploader(settings)

    register_exception_handlers(app)

    # Register route handlers
    app.include_router(auth.router)
    app.include_router(product.router)

    @app.on_event("startup")
    def startup_tasks() -> None:
        """Create store indexes."""
        init_db(app.state.db)

    @app.on_event("shutdown")
    def shutdown_tasks() -> None:
        if mongo_client is None:
            client.close()

    @app.get("/", summary="API root", tags=["Info"])
    def root() -> dict:
        """API root, returns API information and documentation links."""
        return {
            "name": API_TITLE,
            "version": API_VERSION,
            "message": "Catalog backend API is running",
            "docs": {"swagger": "/docs", "redoc": "/redoc"},
            "health": "/api/health",
        }

    @app.get("/api/health", summary="Health check", tags=["Health"])
    def health() -> dict:
        return {"status": "ok"}

    return app


# --- Startup code for direct execution ---
if __name__ == "__main__":
    import sys

    import uvicorn

    from core.exceptions import ConfigurationError

    setup_logging()
    try:
        startup_settings = load_settings()
    except ConfigurationError as e:
        logger.critical("FATAL: %s", e)
        sys.exit(1)

    server_url = f"http://{startup_settings.api_host}:{startup_settings.api_port}"
    print(f"🚀 Catalog API listening on {server_url}")
    print(f"📚 API docs: {server_url}/docs")

    uvicorn.run(
        create_app(startup_settings),
        host=startup_settings.api_host,
        port=startup_settings.api_port,
    )
