"""
Matching Preferences Service
Business logic for commute-partner profiles and their embedding lifecycle.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from commute_match.models import UserMatchingPreference
from commute_match.models.user_matching_preference import EMBEDDING_SOURCE_FIELDS
from commute_match.services.embedding_service import EmbeddingService
from commute_match.services.profile_store import Profile, ProfileStore, UserDirectory
from commute_match.utils.errors import (
    EmbeddingProviderError,
    PreferencesConflictError,
    ProfileNotFoundError,
)

logger = logging.getLogger(__name__)

EMBEDDING_REFRESH_EVENT = "matching-preferences/embedding.refresh"

REFRESH_BACKGROUND = "background"
REFRESH_INLINE = "inline"


class MatchingPreferencesService:
    """
    Service for managing matching preferences and their embeddings.

    Any change to a field feeding the embedding text clears the stored
    embedding in the same transaction and schedules a refresh:
    - background: an Inngest event is sent; the nightly backfill catches misses
    - inline: the embedding is regenerated before returning; provider errors are
      logged and the profile stays without an embedding
    """

    def __init__(
        self,
        session,
        embedding_service: Optional[EmbeddingService] = None,
        refresh_mode: str = REFRESH_INLINE,
    ):
        self.session = session
        self.embedding_service = embedding_service
        self.refresh_mode = refresh_mode
        self.profile_store = ProfileStore(session)
        self.user_directory = UserDirectory(session)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def _get_row(self, user_id: int) -> Optional[UserMatchingPreference]:
        return self.session.execute(
            select(UserMatchingPreference).where(UserMatchingPreference.user_id == user_id)
        ).scalar_one_or_none()

    def get_preferences(self, user_id: int) -> UserMatchingPreference:
        """
        Raises:
            ProfileNotFoundError: If the user has no preferences
        """
        row = self._get_row(user_id)
        if row is None:
            raise ProfileNotFoundError("Matching preferences not found", user_id=user_id)
        return row

    def create_preferences(self, user_id: int, fields: Dict[str, Any]) -> UserMatchingPreference:
        """
        Create preferences for an existing user and schedule embedding generation.

        Args:
            user_id: Owning user
            fields: Validated column values (see MatchingPreferencesCreateSchema.to_fields)

        Raises:
            ProfileNotFoundError: If the user does not exist
            PreferencesConflictError: If preferences already exist
        """
        if not self.user_directory.user_exists(user_id):
            raise ProfileNotFoundError("User not found", user_id=user_id)

        if self._get_row(user_id) is not None:
            raise PreferencesConflictError("Matching preferences already exist", user_id=user_id)

        row = UserMatchingPreference(user_id=user_id, **fields)
        self.session.add(row)
        self.session.commit()

        logger.info(f"Created matching preferences for user {user_id}")

        self._schedule_refresh(user_id, reason="created")
        self.session.refresh(row)
        return row

    def update_preferences(self, user_id: int, fields: Dict[str, Any]) -> UserMatchingPreference:
        """
        Partially update preferences.

        Only embedding-source changes invalidate the embedding; commute window
        and day changes leave it untouched.

        Raises:
            ProfileNotFoundError: If the user has no preferences
        """
        row = self.get_preferences(user_id)

        changed = []
        for key, value in fields.items():
            if getattr(row, key) != value:
                setattr(row, key, value)
                changed.append(key)

        invalidate = any(key in EMBEDDING_SOURCE_FIELDS for key in changed)
        if invalidate:
            row.clear_embedding()

        self.session.commit()

        logger.info(
            f"Updated matching preferences for user {user_id}: "
            f"changed={changed}, embedding_invalidated={invalidate}"
        )

        if invalidate:
            self._schedule_refresh(user_id, reason="updated")
            self.session.refresh(row)
        return row

    def delete_preferences(self, user_id: int) -> None:
        """
        Raises:
            ProfileNotFoundError: If the user has no preferences
        """
        row = self.get_preferences(user_id)
        self.session.delete(row)
        self.session.commit()
        logger.info(f"Deleted matching preferences for user {user_id}")

    # ------------------------------------------------------------------
    # Embeddings
    # ------------------------------------------------------------------

    def _require_embedding_service(self) -> EmbeddingService:
        if self.embedding_service is None:
            raise EmbeddingProviderError("Embedding provider is not configured", stage="embedding")
        return self.embedding_service

    def _schedule_refresh(self, user_id: int, reason: str) -> None:
        """Kick off embedding generation without failing the preference write."""
        if self.refresh_mode == REFRESH_BACKGROUND:
            try:
                from commute_match.inngest import inngest_client
                import inngest

                inngest_client.send_sync(
                    inngest.Event(
                        name=EMBEDDING_REFRESH_EVENT,
                        data={"user_id": user_id, "reason": reason},
                    )
                )
                logger.info(f"[INNGEST] Sent '{EMBEDDING_REFRESH_EVENT}' for user {user_id}")
            except Exception as e:
                # The nightly backfill picks up profiles without embeddings
                logger.error(f"[INNGEST] Failed to send embedding refresh for user {user_id}: {str(e)}")
            return

        try:
            self.generate_and_store_embedding(user_id)
        except EmbeddingProviderError as e:
            self.session.rollback()
            logger.error(f"[EMBEDDINGS] Inline refresh failed for user {user_id}: {e.message}")

    def generate_and_store_embedding(self, user_id: int) -> Profile:
        """
        Generate and persist the embedding of one profile.

        Raises:
            ProfileNotFoundError: If the user has no preferences
            EmbeddingProviderError: If the provider call fails
        """
        service = self._require_embedding_service()
        profile = self.profile_store.get_profile(user_id)
        if profile is None:
            raise ProfileNotFoundError("User preferences not found", user_id=user_id, stage="embedding")

        result = service.generate_preferences_embedding(profile)
        self.profile_store.update_embedding(
            user_id, result["embedding_text"], result["embedding"], version=service.version
        )
        logger.info(f"[EMBEDDINGS] Stored embedding for user {user_id}")
        return self.profile_store.get_profile(user_id)

    def regenerate_embedding(self, user_id: int) -> Dict[str, Any]:
        """Force regeneration for one profile, synchronously."""
        self.get_preferences(user_id)
        profile = self.generate_and_store_embedding(user_id)
        return {
            "success": True,
            "message": "Embedding regenerated successfully",
            "user_id": user_id,
            "embedding_version": profile.embedding_version,
        }

    def _current_version(self) -> Optional[str]:
        return self.embedding_service.version if self.embedding_service else None

    def find_profiles_without_embeddings(self, limit: int = 50) -> List[Profile]:
        return self.profile_store.list_profiles_missing_embedding(limit, current_version=self._current_version())

    def bulk_generate_embeddings(self, limit: int = 50) -> Dict[str, int]:
        """
        Backfill embeddings for up to ``limit`` profiles.

        Failures are counted per profile and never abort the batch.

        Returns:
            {"processed": n, "successful": s, "failed": f}
        """
        service = self._require_embedding_service()
        profiles = self.find_profiles_without_embeddings(limit)

        logger.info(f"[EMBEDDINGS] Backfill started for {len(profiles)} profiles")

        successful = 0
        failed = 0
        for profile in profiles:
            try:
                result = service.generate_preferences_embedding(profile)
                self.profile_store.update_embedding(
                    profile.user_id, result["embedding_text"], result["embedding"], version=service.version
                )
                successful += 1
            except Exception as e:
                self.session.rollback()
                failed += 1
                logger.error(f"[EMBEDDINGS] Failed to generate embedding for user {profile.user_id}: {str(e)}")

        logger.info(
            f"[EMBEDDINGS] Backfill complete: {successful}/{len(profiles)} successful, {failed} failed"
        )
        return {
            "processed": len(profiles),
            "successful": successful,
            "failed": failed,
        }

    def get_embedding_stats(self) -> Dict[str, Any]:
        """Coverage counted with the same stale-version rule as the backfill."""
        total = self.profile_store.count_profiles()
        with_embeddings = self.profile_store.count_profiles(
            with_embedding=True, current_version=self._current_version()
        )
        coverage = round(with_embeddings / total * 100, 2) if total else 0.0
        return {
            "total_users": total,
            "users_with_embeddings": with_embeddings,
            "users_without_embeddings": total - with_embeddings,
            "embedding_coverage": coverage,
        }
