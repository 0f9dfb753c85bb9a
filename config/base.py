"""Base configuration for all environments."""

from typing import List

from config.settings import settings


class BaseConfig:
    """Base configuration class with common settings."""

    # Flask Configuration
    SECRET_KEY: str = settings.secret_key
    
    # Database Configuration
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    SQLALCHEMY_ECHO: bool = False
    
    # Connection and pool (DATABASE_URL, SQLALCHEMY_ENGINE_OPTIONS_POOL_*)
    SQLALCHEMY_DATABASE_URI: str = settings.database_url
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_size": settings.pool_size,
        "pool_recycle": settings.pool_recycle,
        "pool_pre_ping": settings.pool_pre_ping,
    }
    
    # CORS Configuration
    CORS_ORIGINS: List[str] = settings.cors_origins_list
    CORS_ALLOW_HEADERS: List[str] = ["*"]
    CORS_EXPOSE_HEADERS: List[str] = ["*"]
    CORS_SUPPORTS_CREDENTIALS: bool = True
    
    # Redis Configuration (embedding cache)
    REDIS_ENABLED: bool = True
    REDIS_URL: str = settings.redis_url
    
    # Rate limiting
    RATELIMIT_ENABLED: bool = True
    RATELIMIT_DEFAULT: str = "200 per day;50 per hour"
    
    # Logging Configuration
    LOG_LEVEL: str = settings.log_level
    LOG_FORMAT: str = settings.log_format
    
    # Server Configuration
    JSON_SORT_KEYS: bool = False
    
    # Inngest Configuration
    INNGEST_ENABLED: bool = settings.inngest_enabled
    INNGEST_SERVE_PATH: str = settings.inngest_serve_path
    
    # Embeddings
    GOOGLE_API_KEY: str = settings.google_api_key
    EMBEDDING_MODEL: str = settings.gemini_embedding_model
    EMBEDDING_DIMENSION: int = settings.gemini_embedding_dimension
    EMBEDDING_MAX_RETRIES: int = settings.embedding_max_retries
    EMBEDDING_CACHE_TTL_SECONDS: int = settings.embedding_cache_ttl_seconds
    EMBEDDING_REFRESH_MODE: str = settings.embedding_refresh_mode
    
    # Vector search
    VECTOR_INDEX_BACKEND: str = settings.vector_index_backend
    VECTOR_SEARCH_NUM_CANDIDATES: int = settings.vector_search_num_candidates
    VECTOR_SEARCH_POOL_SIZE: int = settings.vector_search_pool_size
    
    # Matching
    MATCH_DEFAULT_LIMIT: int = settings.match_default_limit
    MATCH_MAX_LIMIT: int = settings.match_max_limit
    MATCH_DEFAULT_MIN_SCORE: float = settings.match_default_min_score
    BULK_EMBEDDING_DEFAULT_LIMIT: int = settings.bulk_embedding_default_limit
    BULK_EMBEDDING_MAX_LIMIT: int = settings.bulk_embedding_max_limit
