"""
Semantic Matching Service
Hybrid ranking engine that finds the best commute partners for a user.

Uses multi-factor scoring (default weights):
- Time Overlap (30%): Shared minutes of the commute windows, midnight aware
- Commute Days (20%): Jaccard over preferred weekdays
- Languages (10%): Jaccard over spoken languages
- Interests (15%): Jaccard over interests
- Semantic Similarity (20%): Vector index similarity of profile embeddings
- Profession (5%): Exact match of normalised profession

Retrieval is delegated to a VectorIndex; scoring, filtering and sorting are
plain functions over an in-memory candidate list.
"""

import logging
from dataclasses import asdict, dataclass, field, replace
from typing import Dict, List, Optional

from commute_match.services.profile_store import Profile, ProfileStore, UserDirectory
from commute_match.services.similarity import (
    cosine_similarity,
    jaccard_similarity,
    profession_match,
    time_overlap_minutes,
    time_overlap_ratio,
)
from commute_match.services.vector_index import VectorHit, VectorIndex
from commute_match.utils.errors import EmbeddingMissingError, ProfileNotFoundError

logger = logging.getLogger(__name__)


DEFAULT_LIMIT = 50
DEFAULT_MIN_SCORE = 0.1
DEFAULT_POOL_SIZE = 500


@dataclass(frozen=True)
class MatchWeights:
    """Relative contribution of each component. Never renormalised."""

    time: float = 0.30
    days: float = 0.20
    lang: float = 0.10
    ints: float = 0.15
    sem: float = 0.20
    prof: float = 0.05

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, float]]) -> "MatchWeights":
        """Merge a partial mapping over the defaults."""
        if not data:
            return cls()
        known = {k: float(v) for k, v in data.items() if k in cls.__dataclass_fields__ and v is not None}
        return replace(cls(), **known)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class MatchQuery:
    user_id: int
    weights: MatchWeights = field(default_factory=MatchWeights)
    limit: int = DEFAULT_LIMIT
    min_score: float = DEFAULT_MIN_SCORE

    def __post_init__(self):
        if self.limit <= 0:
            raise ValueError("limit must be greater than 0")
        if self.min_score < 0:
            raise ValueError("min_score must be non-negative")

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "weights": self.weights.to_dict(),
            "limit": self.limit,
            "min_score": self.min_score,
        }


@dataclass(frozen=True)
class MatchResult:
    """One ranked candidate with its component breakdown."""

    profile: Profile
    hybrid_score: float
    sem_sim: float
    time_ratio: float
    day_jac: float
    lang_jac: float
    ints_jac: float
    prof_match: int
    user_full_name: str = "Unknown User"

    def to_dict(self) -> dict:
        return {
            "user_id": self.profile.user_id,
            "user_full_name": self.user_full_name,
            "profession": self.profile.profession,
            "languages": list(self.profile.languages),
            "interests": list(self.profile.interests),
            "commute_window": (
                {"start": self.profile.commute_start, "end": self.profile.commute_end}
                if self.profile.commute_start and self.profile.commute_end else None
            ),
            "commute_days": list(self.profile.commute_days),
            "hybrid_score": round(self.hybrid_score, 4),
            "scores": {
                "semantic": round(self.sem_sim, 4),
                "time_ratio": round(self.time_ratio, 4),
                "days": round(self.day_jac, 4),
                "languages": round(self.lang_jac, 4),
                "interests": round(self.ints_jac, 4),
                "profession": self.prof_match,
            },
        }


@dataclass(frozen=True)
class MatchReport:
    results: List[MatchResult]
    query: MatchQuery

    @property
    def count(self) -> int:
        return len(self.results)

    def to_dict(self) -> dict:
        return {
            "matches": [r.to_dict() for r in self.results],
            "count": self.count,
            "query": self.query.to_dict(),
        }


@dataclass(frozen=True)
class SimilarityMetrics:
    semantic: float
    time_overlap_minutes: int
    time_ratio: float
    days_similarity: float
    languages_similarity: float
    interests_similarity: float
    profession_match: bool

    def to_dict(self) -> dict:
        return asdict(self)


def _upper_days(days) -> set:
    return {str(d).strip().upper() for d in days or () if d}


def filter_candidates(
    requester: Profile, hits: List[VectorHit], profiles: Dict[int, Profile]
) -> List[tuple]:
    """
    Apply the cheap pre-filters to a retrieved pool.

    Drops the requester, candidates without a stored profile or embedding, and,
    when the requester picked commute days, candidates sharing none of them.

    Returns:
        List of (Profile, VectorHit) in retrieval order
    """
    requester_days = _upper_days(requester.commute_days)
    kept = []
    for hit in hits:
        if hit.user_id == requester.user_id:
            continue
        candidate = profiles.get(hit.user_id)
        if candidate is None or not candidate.has_embedding:
            continue
        if requester_days and not (requester_days & _upper_days(candidate.commute_days)):
            continue
        kept.append((candidate, hit))
    return kept


def score_candidate(
    requester: Profile, candidate: Profile, semantic_similarity: float, weights: MatchWeights
) -> MatchResult:
    """Compute all components for one candidate and their weighted sum."""
    time_ratio = time_overlap_ratio(requester.commute_segments, candidate.commute_segments)
    day_jac = jaccard_similarity(_upper_days(requester.commute_days), _upper_days(candidate.commute_days))
    lang_jac = jaccard_similarity(requester.languages, candidate.languages)
    ints_jac = jaccard_similarity(requester.interests, candidate.interests)
    prof = profession_match(requester.profession, candidate.profession)
    sem_sim = float(semantic_similarity or 0.0)

    hybrid = (
        weights.time * time_ratio
        + weights.days * day_jac
        + weights.lang * lang_jac
        + weights.ints * ints_jac
        + weights.sem * sem_sim
        + weights.prof * prof
    )

    return MatchResult(
        profile=candidate,
        hybrid_score=hybrid,
        sem_sim=sem_sim,
        time_ratio=time_ratio,
        day_jac=day_jac,
        lang_jac=lang_jac,
        ints_jac=ints_jac,
        prof_match=prof,
    )


def rank_matches(results: List[MatchResult], min_score: float, limit: int) -> List[MatchResult]:
    """Keep scores >= min_score, sort descending (ties by user id), truncate."""
    kept = [r for r in results if r.hybrid_score >= min_score]
    kept.sort(key=lambda r: (-r.hybrid_score, r.profile.user_id))
    return kept[:limit]


class SemanticMatchingService:
    """
    Ranks commute partners for a user.

    Collaborators are passed in; the service keeps no state between calls.
    """

    def __init__(
        self,
        profile_store: ProfileStore,
        vector_index: VectorIndex,
        user_directory: Optional[UserDirectory] = None,
        pool_size: int = DEFAULT_POOL_SIZE,
    ):
        self.profile_store = profile_store
        self.vector_index = vector_index
        self.user_directory = user_directory
        self.pool_size = pool_size

    def _require_profile(self, user_id: int) -> Profile:
        profile = self.profile_store.get_profile(user_id)
        if profile is None:
            raise ProfileNotFoundError("User preferences not found", user_id=user_id, stage="lookup")
        return profile

    def find_semantic_matches(self, query: MatchQuery) -> MatchReport:
        """
        Find and rank commute partners.

        Raises:
            ProfileNotFoundError: Requester has no preferences
            EmbeddingMissingError: Requester has no embedding yet
            VectorIndexError: Retrieval failed
        """
        requester = self._require_profile(query.user_id)
        if not requester.has_embedding:
            raise EmbeddingMissingError(
                "User embedding not found. Please update preferences first.",
                user_id=query.user_id,
                stage="retrieval",
            )

        hits = self.vector_index.top_k(requester.embedding, self.pool_size)
        logger.info(f"[MATCHING] Retrieved {len(hits)} candidates for user {query.user_id}")

        profiles = self.profile_store.get_profiles(hit.user_id for hit in hits)
        candidates = filter_candidates(requester, hits, profiles)

        scored = [
            score_candidate(requester, candidate, hit.similarity, query.weights)
            for candidate, hit in candidates
        ]
        ranked = rank_matches(scored, query.min_score, query.limit)

        if self.user_directory is not None and ranked:
            names = self.user_directory.get_display_names(r.profile.user_id for r in ranked)
            ranked = [replace(r, user_full_name=names[r.profile.user_id]) for r in ranked]

        logger.info(
            f"[MATCHING] User {query.user_id}: {len(candidates)} candidates after filters, "
            f"{len(ranked)} returned"
        )
        return MatchReport(results=ranked, query=query)

    def get_similarity_metrics(self, user_id: int, target_user_id: int) -> SimilarityMetrics:
        """
        Raw component values between two users, cosine recomputed from stored vectors.

        Raises:
            ProfileNotFoundError: Either user has no preferences
        """
        first = self._require_profile(user_id)
        second = self._require_profile(target_user_id)

        segments_a = first.commute_segments
        segments_b = second.commute_segments

        return SimilarityMetrics(
            semantic=cosine_similarity(first.embedding or (), second.embedding or ()),
            time_overlap_minutes=time_overlap_minutes(segments_a, segments_b),
            time_ratio=time_overlap_ratio(segments_a, segments_b),
            days_similarity=jaccard_similarity(first.commute_days, second.commute_days),
            languages_similarity=jaccard_similarity(first.languages, second.languages),
            interests_similarity=jaccard_similarity(first.interests, second.interests),
            profession_match=bool(profession_match(first.profession, second.profession)),
        )
