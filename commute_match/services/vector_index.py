"""
Nearest-neighbour search over profile embeddings.

Two backends share one interface, ``top_k(query_vector, k)``:

- PgVectorIndex: pgvector HNSW index (approximate), PostgreSQL only
- ExactVectorIndex: brute-force numpy cosine ranking, any database

Both report ``similarity = 1 - cosine_distance``.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np
from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError

from commute_match.models import UserMatchingPreference
from commute_match.services.profile_store import ProfileStore
from commute_match.utils.errors import VectorIndexError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VectorHit:
    user_id: int
    similarity: float


class VectorIndex:
    """Interface for candidate retrieval backends."""

    def top_k(self, query_vector: Sequence[float], k: int) -> List[VectorHit]:
        raise NotImplementedError


class PgVectorIndex(VectorIndex):
    """Approximate search through the HNSW index on user_matching_preferences.embedding."""

    def __init__(self, session, num_candidates: int = 1000):
        self.session = session
        self.num_candidates = num_candidates

    def top_k(self, query_vector: Sequence[float], k: int) -> List[VectorHit]:
        if k <= 0:
            return []

        distance = UserMatchingPreference.embedding.cosine_distance(list(query_vector))
        query = (
            select(UserMatchingPreference.user_id, (1 - distance).label("similarity"))
            .where(UserMatchingPreference.embedding.is_not(None))
            .order_by(distance)
            .limit(k)
        )

        try:
            # ef_search must be at least k for HNSW to return k rows
            ef_search = max(int(self.num_candidates), int(k))
            self.session.execute(text(f"SET LOCAL hnsw.ef_search = {ef_search}"))
            rows = self.session.execute(query).all()
        except SQLAlchemyError as e:
            logger.error(f"[MATCHING] Vector search failed: {str(e)}")
            self.session.rollback()
            raise VectorIndexError(f"Vector search failed: {str(e)}", stage="retrieval") from e

        return [VectorHit(user_id=row.user_id, similarity=float(row.similarity)) for row in rows]


class ExactVectorIndex(VectorIndex):
    """Exact cosine ranking of every stored embedding with numpy."""

    def __init__(self, profile_store: ProfileStore):
        self.profile_store = profile_store

    def top_k(self, query_vector: Sequence[float], k: int) -> List[VectorHit]:
        if k <= 0:
            return []

        try:
            pairs = self.profile_store.list_embedded_vectors()
        except SQLAlchemyError as e:
            logger.error(f"[MATCHING] Loading embeddings failed: {str(e)}")
            raise VectorIndexError(f"Vector search failed: {str(e)}", stage="retrieval") from e

        query = np.asarray(query_vector, dtype=np.float32)
        pairs = [(user_id, vec) for user_id, vec in pairs if len(vec) == len(query)]
        if not pairs or not np.any(query):
            return []

        user_ids = np.array([user_id for user_id, _ in pairs])
        matrix = np.vstack([np.asarray(vec, dtype=np.float32) for _, vec in pairs])

        # Normalize so the inner product is the cosine similarity
        norms = np.linalg.norm(matrix, axis=1)
        norms[norms == 0] = 1.0
        matrix = matrix / norms[:, None]
        query = query / np.linalg.norm(query)

        scores = matrix @ query
        # Stable sort keeps equal scores in user id order
        order = np.argsort(-scores, kind="stable")[:k]
        return [VectorHit(user_id=int(user_ids[i]), similarity=float(scores[i])) for i in order]


def get_vector_index(backend: str, session, num_candidates: int = 1000) -> VectorIndex:
    """Build the configured vector index backend."""
    if backend == "pgvector":
        return PgVectorIndex(session, num_candidates=num_candidates)
    if backend == "exact":
        return ExactVectorIndex(ProfileStore(session))
    raise ValueError(f"Unknown vector index backend: {backend}")
