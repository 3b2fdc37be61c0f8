"""Configuration module for the catalog backend.

This module provides centralized configuration management: server settings,
token signing, database connection and media host credentials. Values are
read from environment variables (a local ``.env`` file is honoured) and
collected once at startup into an immutable :class:`Settings` instance that
is passed to the components that need it.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from core.exceptions import ConfigurationError

# Load environment variables from .env file
load_dotenv()

# --- API Server Configuration ---

DEFAULT_API_HOST = "0.0.0.0"
DEFAULT_API_PORT = 5000
DEFAULT_CORS_ALLOWED_ORIGINS = "*"

# --- Token Configuration ---

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60  # 1 hour

# --- Database Configuration ---

DEFAULT_MONGODB_URI = "mongodb://localhost:27017"
DEFAULT_MONGODB_DB = "catalog"

# --- Auth Configuration ---

BCRYPT_ROUNDS = 10

# --- Catalog Configuration ---

# Listing without an explicit limit returns effectively everything
DEFAULT_PAGE_LIMIT = 9999
ALL_CATEGORIES = "All"
DEFAULT_IMAGE_FOLDER = "product_images"
DEFAULT_MAX_IMAGE_SIZE_MB = 10


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, built once at startup.

    Attributes:
        jwt_secret: Secret used to sign session tokens.
        mongodb_uri: MongoDB connection string.
        mongodb_db: Name of the database holding users and products.
        cloudinary_cloud_name: Media host account name.
        cloudinary_api_key: Media host API key.
        cloudinary_api_secret: Media host API secret.
        cloudinary_folder: Folder that uploaded product images are put in.
        api_host: Interface to listen on.
        api_port: Port to listen on.
        cors_allowed_origins: Origins allowed by the CORS middleware.
        admin_registration_token: When set, self-registration as admin must
            present this value.
        max_image_size_mb: Upper bound for uploaded product images.
        token_expire_minutes: Lifetime of issued session tokens.
        jwt_algorithm: JWT signing algorithm.
        bcrypt_rounds: Cost factor for password hashing.
    """

    jwt_secret: str
    mongodb_uri: str = DEFAULT_MONGODB_URI
    mongodb_db: str = DEFAULT_MONGODB_DB
    cloudinary_cloud_name: Optional[str] = None
    cloudinary_api_key: Optional[str] = None
    cloudinary_api_secret: Optional[str] = None
    cloudinary_folder: str = DEFAULT_IMAGE_FOLDER
    api_host: str = DEFAULT_API_HOST
    api_port: int = DEFAULT_API_PORT
    cors_allowed_origins: List[str] = field(
        default_factory=lambda: _split_origins(DEFAULT_CORS_ALLOWED_ORIGINS)
    )
    admin_registration_token: Optional[str] = None
    max_image_size_mb: int = DEFAULT_MAX_IMAGE_SIZE_MB
    token_expire_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES
    jwt_algorithm: str = JWT_ALGORITHM
    bcrypt_rounds: int = BCRYPT_ROUNDS

    @property
    def media_host_configured(self) -> bool:
        return bool(
            self.cloudinary_cloud_name
            and self.cloudinary_api_key
            and self.cloudinary_api_secret
        )

    @property
    def max_image_size_bytes(self) -> int:
        return self.max_image_size_mb * 1024 * 1024


def load_settings() -> Settings:
    """Build settings from the environment.

    Returns:
        A populated Settings instance.

    Raises:
        ConfigurationError: If JWT_SECRET is missing or a numeric variable
            cannot be parsed. The process must not start in that case.
    """
    jwt_secret = os.getenv("JWT_SECRET")
    if not jwt_secret:
        raise ConfigurationError("JWT_SECRET is not defined in the environment")

    return Settings(
        jwt_secret=jwt_secret,
        mongodb_uri=os.getenv("MONGODB_URI", DEFAULT_MONGODB_URI),
        mongodb_db=os.getenv("MONGODB_DB", DEFAULT_MONGODB_DB),
        cloudinary_cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME") or None,
        cloudinary_api_key=os.getenv("CLOUDINARY_API_KEY") or None,
        cloudinary_api_secret=os.getenv("CLOUDINARY_API_SECRET") or None,
        cloudinary_folder=os.getenv("CLOUDINARY_FOLDER", DEFAULT_IMAGE_FOLDER),
        api_host=os.getenv("API_HOST", DEFAULT_API_HOST),
        api_port=_env_int("PORT", DEFAULT_API_PORT),
        cors_allowed_origins=_split_origins(
            os.getenv("CORS_ALLOWED_ORIGINS", DEFAULT_CORS_ALLOWED_ORIGINS)
        ),
        admin_registration_token=os.getenv("ADMIN_REGISTRATION_TOKEN") or None,
        max_image_size_mb=_env_int("MAX_IMAGE_SIZE_MB", DEFAULT_MAX_IMAGE_SIZE_MB),
    )
