from __future__ import annotations
import os
from pathlib import Path

DEFAULT_JWT_SECRET = "fallback-secret-key"

class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    BASE_DIR = Path(__file__).resolve().parent
    ENV_NAME = "development"
    APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
    # SQLite file in project directory
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'app.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
    JWT_EXPIRES_IN = os.getenv("JWT_EXPIRES_IN", "7d")
    JWT_ISSUER = "shelf-taught-api"
    JWT_AUDIENCE = "shelf-taught-client"

    FRONTEND_URL = os.getenv("FRONTEND_URL", "https://shelftaught.com")
    PORT = int(os.getenv("PORT", "3001"))

    # fixed-window limits per client IP
    RATELIMIT_ENABLED = True
    RATELIMIT_API_MAX = 1000
    RATELIMIT_API_WINDOW = 15 * 60
    RATELIMIT_AUTH_MAX = 50
    RATELIMIT_AUTH_WINDOW = 15 * 60
    RATELIMIT_SEARCH_MAX = 100
    RATELIMIT_SEARCH_WINDOW = 60

    SLOW_REQUEST_MS = 1000

    # reverse proxies in front of the app; each appends one X-Forwarded-For hop
    TRUSTED_PROXIES = int(os.getenv("TRUSTED_PROXIES", "1"))

    # initial content of the admin moderation queue
    MODERATION_ITEMS = []

class DevConfig(BaseConfig):
    DEBUG = True
    MODERATION_ITEMS = [{
        "id": "1",
        "type": "review",
        "content": "Sample review content that might need moderation",
        "author": {"id": "1", "name": "John Doe", "email": "john@example.com"},
        "status": "pending",
        "createdAt": "2024-01-01T00:00:00.000Z",
        "reports": [{"id": "1", "reason": "Inappropriate content",
                     "reportedAt": "2024-01-01T00:00:00.000Z", "reportedBy": "user123"}],
    }]
    SEED_TEST_DATA = True
    DEFAULT_USERS = [
        {"email": "admin@example.com", "password": "AdminPass1", "role": "ADMIN",
         "first_name": "Admin", "last_name": "User"},
    ]

class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET = "test-secret"
    FRONTEND_URL = "https://shelftaught.test"
    ENV_NAME = "test"
    SEED_TEST_DATA = False
    DEFAULT_USERS = []
    # bcrypt at 12 rounds is slow; tests don't need it
    BCRYPT_ROUNDS = 4
    # the test client talks to the app directly
    TRUSTED_PROXIES = 0

class ProdConfig(BaseConfig):
    DEBUG = False
    ENV_NAME = "production"
    SEED_TEST_DATA = False
    DEFAULT_USERS = []
    RATELIMIT_API_MAX = 100
    RATELIMIT_AUTH_MAX = 5
    RATELIMIT_SEARCH_MAX = 30

config_map = {
    "dev": DevConfig,
    "test": TestConfig,
    "prod": ProdConfig,
    "default": DevConfig,
}
