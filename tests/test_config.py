import pytest
from fastapi.testclient import TestClient

from app import create_app
from config import DEFAULT_IMAGE_FOLDER, load_settings
from core.dependencies import get_product_manager
from core.exceptions import ConfigurationError

ENV_VARS = (
    "JWT_SECRET",
    "MONGODB_URI",
    "MONGODB_DB",
    "CLOUDINARY_CLOUD_NAME",
    "CLOUDINARY_API_KEY",
    "CLOUDINARY_API_SECRET",
    "CLOUDINARY_FOLDER",
    "PORT",
    "CORS_ALLOWED_ORIGINS",
    "ADMIN_REGISTRATION_TOKEN",
    "MAX_IMAGE_SIZE_MB",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_missing_secret_is_fatal():
    with pytest.raises(ConfigurationError):
        load_settings()


def test_app_refuses_to_start_without_secret():
    with pytest.raises(ConfigurationError):
        create_app()


def test_defaults(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "s3cret")

    settings = load_settings()

    assert settings.jwt_secret == "s3cret"
    assert settings.token_expire_minutes == 60
    assert settings.bcrypt_rounds == 10
    assert settings.cloudinary_folder == DEFAULT_IMAGE_FOLDER
    assert settings.cors_allowed_origins == ["*"]
    assert settings.admin_registration_token is None
    assert not settings.media_host_configured


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "s3cret")
    monkeypatch.setenv("MONGODB_URI", "mongodb://db.internal:27017")
    monkeypatch.setenv("MONGODB_DB", "shop")
    monkeypatch.setenv("CLOUDINARY_CLOUD_NAME", "demo")
    monkeypatch.setenv("CLOUDINARY_API_KEY", "key")
    monkeypatch.setenv("CLOUDINARY_API_SECRET", "secret")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "https://shop.example.com, http://localhost:3000")
    monkeypatch.setenv("MAX_IMAGE_SIZE_MB", "2")

    settings = load_settings()

    assert settings.mongodb_uri == "mongodb://db.internal:27017"
    assert settings.mongodb_db == "shop"
    assert settings.api_port == 8080
    assert settings.cors_allowed_origins == ["https://shop.example.com", "http://localhost:3000"]
    assert settings.media_host_configured
    assert settings.max_image_size_bytes == 2 * 1024 * 1024


def test_bad_port_is_a_configuration_error(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "s3cret")
    monkeypatch.setenv("PORT", "http")

    with pytest.raises(ConfigurationError):
        load_settings()


def test_health_and_root(client):
    assert client.get("/api/health").json() == {"status": "ok"}
    assert client.get("/").status_code == 200


def test_unknown_route_uses_json_error_shape(client):
    resp = client.get("/api/nowhere")

    assert resp.status_code == 404
    assert resp.json() == {"message": "Not Found"}


def test_unexpected_errors_use_json_error_shape(app):
    class BrokenManager:
        def list_categories(self):
            raise OverflowError("MongoDB can only handle up to 8-byte ints")

    app.dependency_overrides[get_product_manager] = lambda: BrokenManager()

    with TestClient(app, raise_server_exceptions=False) as client:
        resp = client.get("/api/categories")

    assert resp.status_code == 500
    assert resp.headers["content-type"] == "application/json"
    assert resp.json() == {
        "message": "Server error",
        "error": "MongoDB can only handle up to 8-byte ints",
    }
