"""
Embedding service for generating profile embeddings using Google Gemini API.

This service provides functionality to:
- Build the canonical embedding text of a matching profile
- Generate fixed-length embeddings with retry on transient provider failures
- Cache embeddings in Redis keyed by model and text hash
"""

import hashlib
import logging
from typing import Any, Dict, List, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from commute_match.utils.errors import EmbeddingProviderError
from commute_match.utils.redis_client import RedisClient
from config.settings import settings

logger = logging.getLogger(__name__)


# Provider errors worth another attempt
TRANSIENT_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.ResourceExhausted,
    google_exceptions.DeadlineExceeded,
    google_exceptions.InternalServerError,
    ConnectionError,
    TimeoutError,
)


def build_embedding_text(preferences: Any) -> str:
    """
    Serialise profession, about me, interests and languages into one string.

    Field order and labels are fixed; the result is the unit of embedding
    invalidation. Works with ORM rows and Profile snapshots alike.
    """
    profession = (getattr(preferences, "profession", None) or "").strip()
    about_me = (getattr(preferences, "about_me", None) or "").strip()
    interests = ", ".join(getattr(preferences, "interests", None) or [])
    languages = ", ".join(getattr(preferences, "languages", None) or [])

    return (
        f"Profession: {profession}\n"
        f"About: {about_me}\n"
        f"Interests: {interests}\n"
        f"Languages: {languages}"
    ).strip()


class EmbeddingService:
    """
    Service for generating embeddings using Google Gemini API.

    Acts as the embedding provider of the matching engine: text in, fixed-length
    vector out. Transient failures are retried here; anything that still fails
    is raised as EmbeddingProviderError.
    """

    RETRY_MIN_WAIT = 1  # seconds
    RETRY_MAX_WAIT = 10  # seconds

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        dimension: Optional[int] = None,
        task_type: Optional[str] = None,
        max_retries: Optional[int] = None,
        cache: Optional[RedisClient] = None,
        cache_ttl: Optional[int] = None,
    ):
        """
        Initialize EmbeddingService with Google Gemini API.

        Args:
            api_key: Google API key. Defaults to GOOGLE_API_KEY from settings.
            model_name: Gemini embedding model
            dimension: Expected vector length
            task_type: Gemini task type, SEMANTIC_SIMILARITY by default
            max_retries: Attempts per provider call
            cache: Optional Redis cache wrapper
            cache_ttl: Cache entry lifetime in seconds

        Raises:
            ValueError: If no API key is available
        """
        self.api_key = api_key or settings.google_api_key

        if not self.api_key:
            raise ValueError(
                "Google API key is required. Provide via constructor or GOOGLE_API_KEY environment variable."
            )

        self.model_name = model_name or settings.gemini_embedding_model
        self.dimension = dimension or settings.gemini_embedding_dimension
        self.task_type = task_type or settings.gemini_embedding_task_type
        self.max_retries = max_retries or settings.embedding_max_retries
        self.cache = cache
        self.cache_ttl = cache_ttl or settings.embedding_cache_ttl_seconds

        genai.configure(api_key=self.api_key)

        logger.info(f"EmbeddingService initialized with model: {self.model_name}")

    @classmethod
    def from_config(cls, config, redis_connection=None) -> "EmbeddingService":
        """Build a service from a Flask config mapping."""
        cache = RedisClient(redis_connection) if redis_connection is not None else None
        return cls(
            api_key=config.get("GOOGLE_API_KEY"),
            model_name=config.get("EMBEDDING_MODEL"),
            dimension=config.get("EMBEDDING_DIMENSION"),
            max_retries=config.get("EMBEDDING_MAX_RETRIES"),
            cache=cache,
            cache_ttl=config.get("EMBEDDING_CACHE_TTL_SECONDS"),
        )

    @property
    def version(self) -> str:
        """Identifier stored next to each embedding to detect stale vectors."""
        return self.model_name

    def _cache_key(self, text: str) -> str:
        digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
        return f"embedding:{self.model_name}:{digest}"

    def _call_provider(self, text: str) -> List[float]:
        result = genai.embed_content(
            model=self.model_name,
            content=text,
            task_type=self.task_type,
        )
        return list(result["embedding"])

    def generate_embedding(self, text: str) -> List[float]:
        """
        Generate embedding for a single text.

        Args:
            text: Input text

        Returns:
            Embedding vector of length ``self.dimension``

        Raises:
            ValueError: If text is empty
            EmbeddingProviderError: If the provider fails after retries or
                returns a vector of the wrong size
        """
        if not text or not text.strip():
            raise ValueError("Text cannot be empty or None")

        text = text.strip()
        cache_key = self._cache_key(text)

        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached and len(cached) == self.dimension:
                logger.debug(f"[EMBEDDINGS] Cache hit for {cache_key}")
                return cached
            if cached:
                # Written under a different dimension setting
                logger.warning(f"[EMBEDDINGS] Dropping cached vector of size {len(cached)} for {cache_key}")
                self.cache.delete(cache_key)

        retrying = Retrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(min=self.RETRY_MIN_WAIT, max=self.RETRY_MAX_WAIT),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            reraise=True,
        )

        try:
            logger.debug(f"Generating embedding for text (length: {len(text)})")
            embedding = retrying(self._call_provider, text)
        except (RetryError, google_exceptions.GoogleAPIError, *TRANSIENT_ERRORS) as e:
            logger.error(f"[EMBEDDINGS] Provider call failed: {str(e)}")
            raise EmbeddingProviderError(f"Failed to generate embedding: {str(e)}", stage="embedding") from e

        if len(embedding) != self.dimension:
            raise EmbeddingProviderError(
                f"Unexpected embedding dimension: {len(embedding)} (expected {self.dimension})",
                stage="embedding",
            )

        if self.cache is not None:
            self.cache.set(cache_key, embedding, ttl=self.cache_ttl)

        logger.debug(f"Successfully generated embedding (dimension: {len(embedding)})")
        return embedding

    def generate_preferences_embedding(self, preferences: Any) -> Dict[str, Any]:
        """
        Build the embedding text of a profile and embed it.

        Returns:
            {"embedding_text": str, "embedding": list[float]}
        """
        embedding_text = build_embedding_text(preferences)
        embedding = self.generate_embedding(embedding_text)
        return {
            "embedding_text": embedding_text,
            "embedding": embedding,
        }
