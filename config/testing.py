"""Testing environment configuration."""

from .base import BaseConfig


class TestingConfig(BaseConfig):
    """Testing environment configuration."""

    DEBUG = True
    TESTING = True
    ENV = "testing"
    
    # Use in-memory SQLite for tests
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ECHO = False
    # SQLite uses a static pool; pool sizing options do not apply
    SQLALCHEMY_ENGINE_OPTIONS = {}
    
    # CORS - Allow all for testing
    CORS_ORIGINS = ["*"]
    
    # Logging
    LOG_LEVEL = "DEBUG"
    LOG_FORMAT = "text"
    
    # No external services
    REDIS_ENABLED = False
    RATELIMIT_ENABLED = False
    INNGEST_ENABLED = False
    
    # Embeddings are generated in-request; a fake provider is injected by the tests
    GOOGLE_API_KEY = "test-api-key"
    EMBEDDING_MAX_RETRIES = 1
    EMBEDDING_REFRESH_MODE = "inline"
    
    # Brute-force numpy search instead of pgvector
    VECTOR_INDEX_BACKEND = "exact"
