"""
Development environment configuration module.
"""
import os

from gymsubs.config.base_config import BaseConfig


class DevelopmentConfig(BaseConfig):
    """Development environment configuration class."""

    DEBUG = True
    SQLALCHEMY_ECHO = True  # Log SQL queries
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

    DB_NAME = "gym_dev_db"
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "SQLALCHEMY_DATABASE_URI",
        "mysql+pymysql://user:password@db:3306/gym_dev_db",
    )

    # JWT settings for development
    JWT_ACCESS_TOKEN_EXPIRES = 86400  # 24 hours for easier development
    JWT_BLACKLIST_ENABLED = False  # No blacklist in development for simplicity
