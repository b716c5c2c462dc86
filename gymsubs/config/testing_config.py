"""
Testing environment configuration module.
"""
from gymsubs.config.base_config import BaseConfig


class TestingConfig(BaseConfig):
    """Testing environment configuration class."""

    TESTING = True
    DEBUG = True

    # In-memory database, rebuilt per test
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"

    LOG_LEVEL = "WARNING"

    # JWT settings for testing
    JWT_ACCESS_TOKEN_EXPIRES = 300  # 5 minutes
    JWT_REFRESH_TOKEN_EXPIRES = 1800  # 30 minutes
    JWT_BLACKLIST_ENABLED = True
    # Use a predictable key for testing
    JWT_SECRET_KEY = "test-jwt-secret-key-for-testing-only-0123456789"

    MAX_BATCH_ITEMS = 5
