"""Dependency injection module for FastAPI.

This module provides dependency injection functions for FastAPI routes.
Shared resources (settings, database handle, media uploader) are built once
by the application factory and read from ``app.state``.
"""

from typing import Annotated

from fastapi import Depends, Request
from pymongo.database import Database

from config import Settings
from core.database import get_db
from utils import media_uploader
from utils import product_manager
from utils import user_manager


def get_settings(request: Request) -> Settings:
    """Get the application settings built at startup."""
    return request.app.state.settings


def get_user_manager(
    request: Request, db: Database = Depends(get_db)
) -> user_manager.UserManager:
    """Get UserManager instance bound to the shared database.

    Args:
        request: Incoming request, used to reach the settings.
        db: Database handle.

    Returns:
        UserManager instance.
    """
    return user_manager.UserManager(db, rounds=get_settings(request).bcrypt_rounds)


def get_product_manager(db: Database = Depends(get_db)) -> product_manager.ProductManager:
    """Get ProductManager instance bound to the shared database.

    Args:
        db: Database handle.

    Returns:
        ProductManager instance.
    """
    return product_manager.ProductManager(db)


def get_media_uploader(request: Request) -> media_uploader.MediaUploader:
    """Get the media uploader configured at startup."""
    return request.app.state.media_uploader


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
UserManagerDep = Annotated[
    user_manager.UserManager, Depends(get_user_manager)
]
ProductManagerDep = Annotated[
    product_manager.ProductManager, Depends(get_product_manager)
]
MediaUploaderDep = Annotated[
    media_uploader.MediaUploader, Depends(get_media_uploader)
]
