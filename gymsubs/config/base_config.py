"""
Base configuration module with common settings.
"""
import os


class BaseConfig:
    """Base configuration class with common settings."""

    # Flask settings
    SECRET_KEY = os.getenv("SECRET_KEY", "default-dev-key-not-for-production")
    DEBUG = False
    TESTING = False

    # Database settings
    DB_ENGINE = os.getenv("DB_ENGINE", "mysql+pymysql")
    DB_USER = os.getenv("DB_USER", "user")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "password")
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "3306")
    DB_NAME = os.getenv("DB_NAME", "gym_db")

    SQLALCHEMY_DATABASE_URI = os.getenv(
        "SQLALCHEMY_DATABASE_URI",
        f"{DB_ENGINE}://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT settings
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "default-jwt-key-not-for-production")
    JWT_ACCESS_TOKEN_EXPIRES = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES", 3600))  # 1 hour
    JWT_REFRESH_TOKEN_EXPIRES = int(os.getenv("JWT_REFRESH_TOKEN_EXPIRES", 604800))  # 7 days
    JWT_ERROR_MESSAGE_KEY = "message"
    JWT_BLACKLIST_ENABLED = True

    # Let JWT errors reach flask-jwt-extended handlers instead of flask-restx 500s
    PROPAGATE_EXCEPTIONS = True

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Subscription rules
    EXPIRING_SOON_DAYS = int(os.getenv("EXPIRING_SOON_DAYS", 7))
    MAX_BATCH_ITEMS = int(os.getenv("MAX_BATCH_ITEMS", 12))

    # API settings
    API_TITLE = "Gym Subscriptions API"
    API_VERSION = "1.0"
    API_DESCRIPTION = "Memberships, subscriptions and entitlement tracking for a gym"
    API_PREFIX = "/api"
