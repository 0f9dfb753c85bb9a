"""
Service layer.

Builders below wire services from the current Flask app's config. Tests can
put a replacement embedding provider in ``app.extensions["embedding_service"]``.
"""
import logging
from typing import Optional

from flask import current_app

from commute_match import db, get_redis
from commute_match.services.embedding_service import EmbeddingService
from commute_match.services.matching_preferences_service import MatchingPreferencesService
from commute_match.services.profile_store import ProfileStore, UserDirectory
from commute_match.services.semantic_matching_service import SemanticMatchingService
from commute_match.services.vector_index import get_vector_index

logger = logging.getLogger(__name__)


def get_embedding_service() -> Optional[EmbeddingService]:
    """Embedding provider for this app, created on first use. None when unconfigured."""
    extensions = current_app.extensions
    if "embedding_service" not in extensions:
        try:
            extensions["embedding_service"] = EmbeddingService.from_config(current_app.config, get_redis())
        except ValueError as e:
            logger.warning(f"[EMBEDDINGS] Embedding provider unavailable: {str(e)}")
            extensions["embedding_service"] = None
    return extensions["embedding_service"]


def build_matching_preferences_service() -> MatchingPreferencesService:
    return MatchingPreferencesService(
        db.session,
        embedding_service=get_embedding_service(),
        refresh_mode=current_app.config.get("EMBEDDING_REFRESH_MODE", "background"),
    )


def build_semantic_matching_service() -> SemanticMatchingService:
    config = current_app.config
    index = get_vector_index(
        config.get("VECTOR_INDEX_BACKEND", "pgvector"),
        db.session,
        num_candidates=config.get("VECTOR_SEARCH_NUM_CANDIDATES", 1000),
    )
    return SemanticMatchingService(
        ProfileStore(db.session),
        index,
        user_directory=UserDirectory(db.session),
        pool_size=config.get("VECTOR_SEARCH_POOL_SIZE", 500),
    )


__all__ = [
    "EmbeddingService",
    "MatchingPreferencesService",
    "SemanticMatchingService",
    "get_embedding_service",
    "build_matching_preferences_service",
    "build_semantic_matching_service",
]
