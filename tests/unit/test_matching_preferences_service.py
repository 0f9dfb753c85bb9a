"""
Unit tests for MatchingPreferencesService
Covers the embedding lifecycle: refresh on write, invalidation, backfill, stats
"""
import pytest
from unittest.mock import patch

from commute_match.services.matching_preferences_service import (
    EMBEDDING_REFRESH_EVENT,
    MatchingPreferencesService,
)
from commute_match.utils.errors import (
    EmbeddingProviderError,
    PreferencesConflictError,
    ProfileNotFoundError,
)
from tests.fakes import FakeEmbeddingService


PROFILE_FIELDS = {
    "profession": "Software Engineer",
    "about_me": "Cycles to work",
    "languages": ["English"],
    "interests": ["cycling"],
    "commute_start": "08:00",
    "commute_end": "09:00",
    "commute_days": ["MONDAY"],
}


@pytest.fixture
def service(db, fake_embeddings):
    return MatchingPreferencesService(db.session, embedding_service=fake_embeddings, refresh_mode="inline")


@pytest.fixture
def background_service(db, fake_embeddings):
    return MatchingPreferencesService(db.session, embedding_service=fake_embeddings, refresh_mode="background")


@pytest.mark.unit
class TestCreatePreferences:

    def test_unknown_user_is_not_found(self, service):
        with pytest.raises(ProfileNotFoundError):
            service.create_preferences(999, dict(PROFILE_FIELDS))

    def test_duplicate_is_conflict(self, service, sample_user):
        service.create_preferences(sample_user.id, dict(PROFILE_FIELDS))
        with pytest.raises(PreferencesConflictError):
            service.create_preferences(sample_user.id, dict(PROFILE_FIELDS))

    def test_inline_refresh_stores_embedding(self, service, sample_user):
        prefs = service.create_preferences(sample_user.id, dict(PROFILE_FIELDS))

        assert prefs.has_embedding
        assert len(prefs.embedding) == 768
        assert prefs.embedding_version == FakeEmbeddingService.version
        assert prefs.embedding_text.startswith("Profession: Software Engineer")

    def test_provider_failure_does_not_fail_write(self, db, sample_user):
        failing = FakeEmbeddingService(fail_markers=["Software"])
        service = MatchingPreferencesService(db.session, embedding_service=failing, refresh_mode="inline")

        prefs = service.create_preferences(sample_user.id, dict(PROFILE_FIELDS))
        assert prefs.id is not None
        assert not prefs.has_embedding

    def test_background_mode_sends_event(self, background_service, sample_user, fake_embeddings):
        with patch("commute_match.inngest.inngest_client.send_sync") as send:
            prefs = background_service.create_preferences(sample_user.id, dict(PROFILE_FIELDS))

        event = send.call_args[0][0]
        assert event.name == EMBEDDING_REFRESH_EVENT
        assert event.data["user_id"] == sample_user.id
        assert not prefs.has_embedding
        assert fake_embeddings.calls == []


@pytest.mark.unit
class TestUpdatePreferences:

    def test_missing_preferences_is_not_found(self, service):
        with pytest.raises(ProfileNotFoundError):
            service.update_preferences(123, {"profession": "Nurse"})

    def test_embedding_source_change_regenerates(self, service, sample_user):
        prefs = service.create_preferences(sample_user.id, dict(PROFILE_FIELDS))
        old_text = prefs.embedding_text

        prefs = service.update_preferences(sample_user.id, {"profession": "Nurse"})

        assert prefs.has_embedding
        assert prefs.embedding_text != old_text
        assert "Profession: Nurse" in prefs.embedding_text

    def test_embedding_source_change_clears_until_refresh(self, background_service, sample_user, make_preferences):
        prefs = make_preferences(
            embedding=FakeEmbeddingService().generate_embedding("seed"),
            **PROFILE_FIELDS,
        )

        with patch("commute_match.inngest.inngest_client.send_sync") as send:
            updated = background_service.update_preferences(prefs.user_id, {"interests": ["chess"]})

        assert send.called
        assert not updated.has_embedding
        assert updated.embedding_text is None
        assert updated.embedding_version is None
        assert [p.user_id for p in background_service.find_profiles_without_embeddings(10)] == [prefs.user_id]

    def test_enqueue_failure_is_logged_not_raised(self, background_service, make_preferences):
        prefs = make_preferences(embedding=FakeEmbeddingService().generate_embedding("seed"), **PROFILE_FIELDS)

        with patch("commute_match.inngest.inngest_client.send_sync", side_effect=RuntimeError("down")):
            updated = background_service.update_preferences(prefs.user_id, {"about_me": "Runs to work"})

        assert updated.about_me == "Runs to work"
        assert not updated.has_embedding

    def test_window_change_keeps_embedding(self, service, make_preferences, fake_embeddings):
        vector = FakeEmbeddingService().generate_embedding("seed")
        prefs = make_preferences(embedding=vector, **PROFILE_FIELDS)

        updated = service.update_preferences(
            prefs.user_id, {"commute_start": "22:00", "commute_end": "02:00", "commute_days": ["FRIDAY"]}
        )

        assert updated.has_embedding
        assert list(updated.embedding) == pytest.approx(vector, abs=1e-6)
        assert fake_embeddings.calls == []

    def test_unchanged_value_does_not_invalidate(self, service, make_preferences, fake_embeddings):
        prefs = make_preferences(embedding=FakeEmbeddingService().generate_embedding("seed"), **PROFILE_FIELDS)
        updated = service.update_preferences(prefs.user_id, {"profession": PROFILE_FIELDS["profession"]})
        assert updated.has_embedding
        assert fake_embeddings.calls == []


@pytest.mark.unit
class TestDeleteAndRegenerate:

    def test_delete(self, service, make_preferences):
        prefs = make_preferences(**PROFILE_FIELDS)
        user_id = prefs.user_id
        service.delete_preferences(user_id)
        with pytest.raises(ProfileNotFoundError):
            service.get_preferences(user_id)

    def test_delete_missing_is_not_found(self, service):
        with pytest.raises(ProfileNotFoundError):
            service.delete_preferences(42)

    def test_regenerate(self, service, make_preferences):
        prefs = make_preferences(**PROFILE_FIELDS)
        result = service.regenerate_embedding(prefs.user_id)

        assert result["success"] is True
        assert result["embedding_version"] == FakeEmbeddingService.version
        assert service.get_preferences(prefs.user_id).has_embedding

    def test_regenerate_propagates_provider_failure(self, db, make_preferences):
        prefs = make_preferences(**PROFILE_FIELDS)
        service = MatchingPreferencesService(
            db.session, embedding_service=FakeEmbeddingService(fail_markers=["Profession"])
        )
        with pytest.raises(EmbeddingProviderError):
            service.regenerate_embedding(prefs.user_id)

    def test_regenerate_without_provider(self, db, make_preferences):
        prefs = make_preferences(**PROFILE_FIELDS)
        service = MatchingPreferencesService(db.session, embedding_service=None)
        with pytest.raises(EmbeddingProviderError):
            service.regenerate_embedding(prefs.user_id)


@pytest.mark.unit
class TestBulkGenerateEmbeddings:

    def test_one_failure_does_not_abort_batch(self, db, make_preferences):
        make_preferences(profession="Chef", about_me="cooks")
        make_preferences(profession="Nurse", about_me="FAIL here")
        make_preferences(profession="Pilot", about_me="flies")
        service = MatchingPreferencesService(
            db.session, embedding_service=FakeEmbeddingService(fail_markers=["FAIL"])
        )

        results = service.bulk_generate_embeddings(limit=50)

        assert results == {"processed": 3, "successful": 2, "failed": 1}
        assert service.get_embedding_stats()["users_with_embeddings"] == 2

    def test_limit_bounds_batch(self, service, make_preferences):
        for i in range(4):
            make_preferences(profession=f"Job {i}")
        assert service.bulk_generate_embeddings(limit=2)["processed"] == 2
        assert len(service.find_profiles_without_embeddings(10)) == 2

    def test_skips_profiles_with_current_embedding(self, service, make_preferences):
        make_preferences(embedding=FakeEmbeddingService().generate_embedding("x"), profession="Chef")
        assert service.bulk_generate_embeddings(limit=10)["processed"] == 0

    def test_stale_version_is_regenerated(self, db, service, make_preferences):
        prefs = make_preferences(embedding=FakeEmbeddingService().generate_embedding("x"), profession="Chef")
        prefs.embedding_version = "models/old-embedding"
        db.session.commit()

        results = service.bulk_generate_embeddings(limit=10)

        assert results["successful"] == 1
        assert service.get_preferences(prefs.user_id).embedding_version == FakeEmbeddingService.version


@pytest.mark.unit
class TestEmbeddingStats:

    def test_empty(self, service):
        assert service.get_embedding_stats() == {
            "total_users": 0,
            "users_with_embeddings": 0,
            "users_without_embeddings": 0,
            "embedding_coverage": 0.0,
        }

    def test_coverage_rounded_to_two_decimals(self, service, make_preferences):
        make_preferences(embedding=FakeEmbeddingService().generate_embedding("x"), profession="Chef")
        make_preferences(profession="Nurse")
        make_preferences(profession="Pilot")

        stats = service.get_embedding_stats()
        assert stats["total_users"] == 3
        assert stats["users_with_embeddings"] == 1
        assert stats["users_without_embeddings"] == 2
        assert stats["embedding_coverage"] == 33.33

    def test_stale_version_counts_as_missing(self, db, service, make_preferences):
        current = make_preferences(embedding=FakeEmbeddingService().generate_embedding("x"), profession="Chef")
        stale = make_preferences(embedding=FakeEmbeddingService().generate_embedding("y"), profession="Nurse")
        stale.embedding_version = "models/old-embedding"
        db.session.commit()

        stats = service.get_embedding_stats()
        missing = service.find_profiles_without_embeddings(10)

        assert stats["users_with_embeddings"] == 1
        assert stats["users_without_embeddings"] == 1 == len(missing)
        assert [p.user_id for p in missing] == [stale.user_id]
        assert current.user_id not in {p.user_id for p in missing}
