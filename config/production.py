"""Production environment configuration."""

import os

from .base import BaseConfig


class ProductionConfig(BaseConfig):
    """Production environment configuration."""

    DEBUG = False
    TESTING = False
    ENV = "production"
    
    SQLALCHEMY_ECHO = False
    
    # CORS - Restrict to specific origins
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "localhost").split(",")
    
    # Logging
    LOG_LEVEL = "INFO"
    
    # Redis
    REDIS_URL = os.getenv("REDIS_URL")
    
    if not REDIS_URL:
        raise ValueError("REDIS_URL must be set in production")
    
    # Rate limit counters shared across workers
    RATELIMIT_STORAGE_URI = REDIS_URL

    # Embeddings are always refreshed by background jobs in production
    EMBEDDING_REFRESH_MODE = "background"
    
    # SQLAlchemy Engine Options - Stricter pooling for production
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_size": int(os.getenv("SQLALCHEMY_ENGINE_OPTIONS_POOL_SIZE", 20)),
        "pool_recycle": int(os.getenv("SQLALCHEMY_ENGINE_OPTIONS_POOL_RECYCLE", 1800)),
        "pool_pre_ping": True,
        "connect_args": {
            "connect_timeout": 10,
        },
    }
