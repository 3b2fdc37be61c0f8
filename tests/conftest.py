"""Shared fixtures: an app wired to mongomock and a fake media host."""

from datetime import datetime, timedelta
from typing import List

import mongomock
import pytest
import pytz
from bson import ObjectId
from fastapi.testclient import TestClient

from app import create_app
from config import Settings
from core.database import PRODUCTS_COLLECTION
from core.security import create_access_token
from schemas.user import Role, TokenIdentity
from utils.media_uploader import MediaUploader

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeUploader(MediaUploader):
    """Records uploads instead of sending them to the media host."""

    def __init__(self):
        super().__init__(max_size_bytes=1024 * 1024)
        self.uploads: List[bytes] = []

    def upload(self, content: bytes, content_type: str) -> str:
        self.validate(content, content_type)
        self.uploads.append(content)
        return f"https://media.example.com/product_images/{len(self.uploads)}.png"


@pytest.fixture
def settings() -> Settings:
    return Settings(jwt_secret="test-secret", mongodb_db="catalog_test", bcrypt_rounds=4)


@pytest.fixture
def mongo_client():
    return mongomock.MongoClient()


@pytest.fixture
def db(mongo_client, settings):
    return mongo_client[settings.mongodb_db]


@pytest.fixture
def uploader() -> FakeUploader:
    return FakeUploader()


@pytest.fixture
def app(settings, mongo_client, uploader):
    return create_app(settings, mongo_client=mongo_client, media_uploader=uploader)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def bearer(settings: Settings, role: Role, username: str = "tester") -> dict:
    identity = TokenIdentity(id=str(ObjectId()), username=username, role=role)
    return {"Authorization": f"Bearer {create_access_token(identity, settings)}"}


@pytest.fixture
def admin_headers(settings) -> dict:
    return bearer(settings, Role.ADMIN, "admin")


@pytest.fixture
def user_headers(settings) -> dict:
    return bearer(settings, Role.USER, "shopper")


def product_doc(name: str, category: str = "Gloves", minutes: int = 0, **extra) -> dict:
    doc = {
        "name": name,
        "description": f"{name} description",
        "price": 9.99,
        "quantity": 10,
        "category": category,
        "subcategory": "General",
        "specs": [],
        "image": f"https://media.example.com/{name}.png",
        "createdAt": datetime(2024, 1, 1, tzinfo=pytz.utc) + timedelta(minutes=minutes),
    }
    doc.update(extra)
    return doc


@pytest.fixture
def seed_products(db):
    """Insert product documents and return their ids as strings."""

    def _seed(*docs: dict) -> List[str]:
        result = db[PRODUCTS_COLLECTION].insert_many(list(docs))
        return [str(oid) for oid in result.inserted_ids]

    return _seed
