"""Development environment configuration."""

import os

from .base import BaseConfig


class DevelopmentConfig(BaseConfig):
    """Local development against Postgres + pgvector."""

    DEBUG = True
    TESTING = False
    ENV = "development"

    SQLALCHEMY_ECHO = os.getenv("SQLALCHEMY_ECHO", "False").lower() == "true"

    # Human-readable logs, everything from the matching pipeline
    LOG_LEVEL = "DEBUG"
    LOG_FORMAT = "text"

    RATELIMIT_ENABLED = False
