"""
Profile store and user directory.

Reads matching preferences from the database and hands the matching engine
immutable Profile snapshots, so scoring never touches ORM state.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func, not_, or_, select

from commute_match.models import User, UserMatchingPreference
from commute_match.services.commute_time import Segment, safe_commute_segments

logger = logging.getLogger(__name__)

UNKNOWN_USER_NAME = "Unknown User"


def missing_embedding_clause(current_version: Optional[str] = None):
    """
    SQL condition for a profile without a usable embedding.

    The vector or its text is absent, or, when ``current_version`` is given,
    the vector was produced by another model.
    """
    conditions = [
        UserMatchingPreference.embedding.is_(None),
        UserMatchingPreference.embedding_text.is_(None),
        UserMatchingPreference.embedding_text == "",
    ]
    if current_version:
        conditions.append(UserMatchingPreference.embedding_version.is_(None))
        conditions.append(UserMatchingPreference.embedding_version != current_version)
    return or_(*conditions)


@dataclass(frozen=True)
class Profile:
    """Read-only snapshot of one user's matching preferences."""

    user_id: int
    profession: str = ""
    about_me: str = ""
    languages: Tuple[str, ...] = ()
    interests: Tuple[str, ...] = ()
    commute_start: Optional[str] = None
    commute_end: Optional[str] = None
    commute_days: Tuple[str, ...] = ()
    embedding_text: str = ""
    embedding: Optional[Tuple[float, ...]] = field(default=None, repr=False)
    embedding_version: Optional[str] = None

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding) and bool(self.embedding_text)

    @property
    def commute_segments(self) -> List[Segment]:
        # Derived from the window on every read
        return safe_commute_segments(self.commute_start, self.commute_end)

    @classmethod
    def from_model(cls, row: UserMatchingPreference) -> "Profile":
        embedding = None
        if row.has_embedding:
            embedding = tuple(float(x) for x in row.embedding)
        return cls(
            user_id=row.user_id,
            profession=row.profession or "",
            about_me=row.about_me or "",
            languages=tuple(row.languages or ()),
            interests=tuple(row.interests or ()),
            commute_start=row.commute_start,
            commute_end=row.commute_end,
            commute_days=tuple(row.commute_days or ()),
            embedding_text=row.embedding_text or "",
            embedding=embedding,
            embedding_version=row.embedding_version,
        )


class ProfileStore:
    """Database access for matching preferences."""

    def __init__(self, session):
        self.session = session

    def _get_row(self, user_id: int) -> Optional[UserMatchingPreference]:
        return self.session.execute(
            select(UserMatchingPreference).where(UserMatchingPreference.user_id == user_id)
        ).scalar_one_or_none()

    def get_profile(self, user_id: int) -> Optional[Profile]:
        row = self._get_row(user_id)
        return Profile.from_model(row) if row else None

    def get_profiles(self, user_ids: Iterable[int]) -> Dict[int, Profile]:
        """Fetch several profiles at once, keyed by user id."""
        user_ids = list(user_ids)
        if not user_ids:
            return {}
        rows = self.session.execute(
            select(UserMatchingPreference).where(UserMatchingPreference.user_id.in_(user_ids))
        ).scalars().all()
        return {row.user_id: Profile.from_model(row) for row in rows}

    def list_profiles_missing_embedding(
        self, limit: int, current_version: Optional[str] = None
    ) -> List[Profile]:
        """
        Profiles without a usable embedding, oldest first.

        See ``missing_embedding_clause`` for what counts as missing.
        """
        rows = self.session.execute(
            select(UserMatchingPreference)
            .where(missing_embedding_clause(current_version))
            .order_by(UserMatchingPreference.id)
            .limit(limit)
        ).scalars().all()
        return [Profile.from_model(row) for row in rows]

    def update_embedding(
        self, user_id: int, text: str, vector: Sequence[float], version: Optional[str] = None
    ) -> None:
        """Persist a freshly generated embedding together with its source text."""
        row = self._get_row(user_id)
        if row is None:
            raise LookupError(f"No matching preferences for user {user_id}")
        row.embedding_text = text
        row.embedding = list(vector)
        row.embedding_version = version
        row.embedding_updated_at = datetime.utcnow()
        self.session.commit()

    def count_profiles(
        self, with_embedding: Optional[bool] = None, current_version: Optional[str] = None
    ) -> int:
        """
        Count profiles, optionally only those with (or without) a usable embedding.

        Uses the same rule as ``list_profiles_missing_embedding``, so a vector
        from a model other than ``current_version`` counts as missing.
        """
        query = select(func.count(UserMatchingPreference.id))
        missing = missing_embedding_clause(current_version)
        if with_embedding is True:
            query = query.where(not_(missing))
        elif with_embedding is False:
            query = query.where(missing)
        return self.session.execute(query).scalar() or 0

    def list_embedded_vectors(self) -> List[Tuple[int, Sequence[float]]]:
        """All (user_id, embedding) pairs that have a vector. Used by the exact index."""
        rows = self.session.execute(
            select(UserMatchingPreference.user_id, UserMatchingPreference.embedding)
            .where(UserMatchingPreference.embedding.is_not(None))
            .order_by(UserMatchingPreference.user_id)
        ).all()
        return [(user_id, embedding) for user_id, embedding in rows if embedding is not None]


class UserDirectory:
    """Resolves display names for presentation only."""

    def __init__(self, session):
        self.session = session

    def user_exists(self, user_id: int) -> bool:
        return self.session.get(User, user_id) is not None

    def get_display_names(self, user_ids: Iterable[int]) -> Dict[int, str]:
        user_ids = list(user_ids)
        names = {user_id: UNKNOWN_USER_NAME for user_id in user_ids}
        if not user_ids:
            return names
        rows = self.session.execute(
            select(User.id, User.full_name).where(User.id.in_(user_ids))
        ).all()
        for user_id, full_name in rows:
            names[user_id] = full_name or UNKNOWN_USER_NAME
        return names
