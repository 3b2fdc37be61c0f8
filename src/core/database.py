"""Database connection management.

This module handles the MongoDB connection using pymongo. The client is
created once per application and shared through ``app.state``.
"""

import logging

from fastapi import Request
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from config import Settings

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
PRODUCTS_COLLECTION = "products"

# Bounded so a request never hangs on an unreachable server
SERVER_SELECTION_TIMEOUT_MS = 5000


def create_client(settings: Settings) -> MongoClient:
    """Create a MongoDB client for the configured URI.

    The client connects lazily and is safe to share across threads.
    """
    return MongoClient(
        settings.mongodb_uri,
        serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS,
    )


def init_db(db: Database) -> None:
    """Create the indexes the catalog relies on.

    Failures are logged rather than raised so that the service can still
    start and report store errors per request.
    """
    try:
        db[USERS_COLLECTION].create_index([("username", ASCENDING)], unique=True)
        db[PRODUCTS_COLLECTION].create_index([("createdAt", DESCENDING)])
        db[PRODUCTS_COLLECTION].create_index([("category", ASCENDING)])
    except PyMongoError as e:
        logger.error("Failed to create indexes: %s", e)
        return
    logger.info("MongoDB indexes ensured on database '%s'", db.name)


def get_db(request: Request) -> Database:
    """Dependency for getting the shared database handle."""
    return request.app.state.db
