"""Tests for matching preference, matching and embedding endpoints."""

import pytest

from tests.fakes import FakeEmbeddingService, unit_vector


REQUESTER = {
    "profession": "Software Engineer",
    "about_me": "Backend developer",
    "languages": ["English"],
    "interests": ["cycling"],
    "commute_window": {"start": "08:00", "end": "09:00"},
    "commute_days": ["monday", "Wednesday"],
}

CANDIDATE = {
    "profession": "Data Scientist",
    "about_me": "Likes board games",
    "languages": ["English", "Spanish"],
    "interests": ["board games"],
    "commute_window": {"start": "08:15", "end": "09:15"},
    "commute_days": ["MONDAY", "FRIDAY"],
}


@pytest.fixture
def matched_pair(client, db, make_user):
    """Two users with preferences created through the API (inline embeddings)."""
    requester = make_user(full_name="Ana Lopez")
    candidate = make_user(full_name="Ben Carter")
    assert client.post(f"/api/matching-preferences/{requester.id}", json=REQUESTER).status_code == 201
    assert client.post(f"/api/matching-preferences/{candidate.id}", json=CANDIDATE).status_code == 201
    return requester, candidate


@pytest.mark.integration
class TestCreatePreferences:
    """Test POST /api/matching-preferences/<user_id>."""

    def test_create_returns_201_with_normalised_fields(self, client, sample_user):
        response = client.post(f"/api/matching-preferences/{sample_user.id}", json={
            **REQUESTER,
            "commute_window": {"start": "8:00", "end": "9:30"},
            "commute_days": ["monday", "MONDAY", "friday"],
        })
        assert response.status_code == 201

        prefs = response.get_json()["preferences"]
        assert prefs["commute_window"] == {"start": "08:00", "end": "09:30"}
        assert prefs["commute_days"] == ["MONDAY", "FRIDAY"]
        assert prefs["has_embedding"] is True
        assert "embedding" not in prefs

    def test_invalid_day_returns_400(self, client, sample_user):
        response = client.post(f"/api/matching-preferences/{sample_user.id}", json={
            "commute_days": ["FUNDAY"],
        })
        assert response.status_code == 400
        assert response.get_json()["details"]

    @pytest.mark.parametrize("payload", [
        {"profession": "A"},
        {"profession": "x" * 101},
        {"about_me": "x" * 1001},
        {"interests": ["ok", "x"]},
        {"interests": [f"interest {i}" for i in range(21)]},
        {"languages": [f"lang {i}" for i in range(11)]},
        {"commute_window": {"start": "25:00", "end": "09:00"}},
        {"commute_window": {"start": "08:00"}},
        {"commute_window": {"start": "08:00", "end": "8:00"}},
        {"unexpected": True},
    ])
    def test_validation_rules(self, client, sample_user, payload):
        response = client.post(f"/api/matching-preferences/{sample_user.id}", json=payload)
        assert response.status_code == 400

    def test_unknown_user_returns_404(self, client, db):
        response = client.post("/api/matching-preferences/999", json=REQUESTER)
        assert response.status_code == 404

    def test_duplicate_returns_409(self, client, sample_user):
        client.post(f"/api/matching-preferences/{sample_user.id}", json=REQUESTER)
        response = client.post(f"/api/matching-preferences/{sample_user.id}", json=REQUESTER)
        assert response.status_code == 409


@pytest.mark.integration
class TestUpdateGetDeletePreferences:
    """Test PUT/GET/DELETE /api/matching-preferences/<user_id>."""

    def test_partial_update(self, client, matched_pair):
        requester, _ = matched_pair
        response = client.put(f"/api/matching-preferences/{requester.id}", json={"profession": "Nurse"})
        assert response.status_code == 200

        prefs = response.get_json()["preferences"]
        assert prefs["profession"] == "Nurse"
        assert prefs["languages"] == ["English"]
        assert "Profession: Nurse" in prefs["embedding_text"]

    def test_clearing_window(self, client, matched_pair):
        requester, _ = matched_pair
        response = client.put(f"/api/matching-preferences/{requester.id}", json={"commute_window": None})
        assert response.status_code == 200
        assert response.get_json()["preferences"]["commute_window"] is None

    def test_empty_update_returns_400(self, client, matched_pair):
        requester, _ = matched_pair
        response = client.put(f"/api/matching-preferences/{requester.id}", json={})
        assert response.status_code == 400

    def test_update_missing_returns_404(self, client, db):
        response = client.put("/api/matching-preferences/404", json={"profession": "Nurse"})
        assert response.status_code == 404

    def test_get_and_delete(self, client, matched_pair):
        requester, _ = matched_pair

        response = client.get(f"/api/matching-preferences/{requester.id}")
        assert response.status_code == 200
        assert response.get_json()["preferences"]["user_id"] == requester.id

        assert client.delete(f"/api/matching-preferences/{requester.id}").status_code == 200
        assert client.get(f"/api/matching-preferences/{requester.id}").status_code == 404
        assert client.delete(f"/api/matching-preferences/{requester.id}").status_code == 404


@pytest.mark.integration
class TestFindMatches:
    """Test /api/matching/<user_id>/matches."""

    def test_end_to_end_component_scores(self, client, matched_pair):
        requester, candidate = matched_pair
        response = client.get(f"/api/matching/{requester.id}/matches?min_score=0")
        assert response.status_code == 200

        data = response.get_json()
        assert data["count"] == 1
        match = data["matches"][0]
        assert match["user_id"] == candidate.id
        assert match["user_full_name"] == "Ben Carter"
        assert match["scores"]["days"] == pytest.approx(0.3333, abs=1e-4)
        assert match["scores"]["languages"] == pytest.approx(0.5)
        assert match["scores"]["time_ratio"] == pytest.approx(0.75)
        assert match["scores"]["profession"] == 0

    def test_defaults_echoed(self, client, matched_pair):
        requester, _ = matched_pair
        data = client.get(f"/api/matching/{requester.id}/matches").get_json()
        assert data["query"]["limit"] == 50
        assert data["query"]["min_score"] == 0.1
        assert data["query"]["weights"]["time"] == 0.30

    def test_min_score_above_one_is_empty(self, client, matched_pair):
        requester, _ = matched_pair
        data = client.get(f"/api/matching/{requester.id}/matches?min_score=1.1").get_json()
        assert data["matches"] == []
        assert data["count"] == 0

    def test_post_with_weights(self, client, matched_pair):
        requester, _ = matched_pair
        weights = {"time": 1, "days": 0, "lang": 0, "ints": 0, "sem": 0, "prof": 0}
        response = client.post(
            f"/api/matching/{requester.id}/matches", json={"weights": weights, "min_score": 0}
        )
        assert response.status_code == 200
        match = response.get_json()["matches"][0]
        assert match["hybrid_score"] == pytest.approx(0.75)

    def test_limit_is_capped(self, client, matched_pair):
        requester, _ = matched_pair
        data = client.get(f"/api/matching/{requester.id}/matches?limit=100000").get_json()
        assert data["query"]["limit"] == 200

    @pytest.mark.parametrize("query", ["limit=0", "limit=abc", "min_score=-1"])
    def test_invalid_query_returns_400(self, client, matched_pair, query):
        requester, _ = matched_pair
        response = client.get(f"/api/matching/{requester.id}/matches?{query}")
        assert response.status_code == 400

    def test_negative_weight_returns_400(self, client, matched_pair):
        requester, _ = matched_pair
        response = client.post(f"/api/matching/{requester.id}/matches", json={"weights": {"sem": -1}})
        assert response.status_code == 400

    def test_no_preferences_returns_404(self, client, db):
        assert client.get("/api/matching/12345/matches").status_code == 404

    def test_no_embedding_returns_400(self, client, make_preferences):
        prefs = make_preferences(profession="Chef")
        response = client.get(f"/api/matching/{prefs.user_id}/matches")
        assert response.status_code == 400
        assert "embedding" in response.get_json()["message"].lower()

    def test_day_prefilter_excludes_disjoint_days(self, client, make_preferences):
        requester = make_preferences(embedding=unit_vector(0), commute_days=["MONDAY"])
        make_preferences(embedding=unit_vector(0), commute_days=["SUNDAY"])
        same_day = make_preferences(embedding=unit_vector(1), commute_days=["MONDAY"])

        data = client.get(f"/api/matching/{requester.user_id}/matches?min_score=0").get_json()
        assert [m["user_id"] for m in data["matches"]] == [same_day.user_id]

    def test_invalidated_profile_leaves_candidate_pool(self, client, app, matched_pair):
        requester, candidate = matched_pair
        app.extensions["embedding_service"] = FakeEmbeddingService(fail_markers=["Statistician"])

        client.put(f"/api/matching-preferences/{candidate.id}", json={"profession": "Statistician"})

        data = client.get(f"/api/matching/{requester.id}/matches?min_score=0").get_json()
        assert data["count"] == 0


@pytest.mark.integration
class TestSimilarity:
    """Test /api/matching/<user_id>/similarity/<target_user_id>."""

    def test_metrics(self, client, matched_pair):
        requester, candidate = matched_pair
        response = client.get(f"/api/matching/{requester.id}/similarity/{candidate.id}")
        assert response.status_code == 200

        metrics = response.get_json()["metrics"]
        assert metrics["time_overlap_minutes"] == 45
        assert metrics["time_ratio"] == pytest.approx(0.75)
        assert metrics["days_similarity"] == pytest.approx(1 / 3)
        assert metrics["languages_similarity"] == pytest.approx(0.5)
        assert metrics["profession_match"] is False
        assert -1.0 <= metrics["semantic"] <= 1.0

    def test_missing_target_returns_404(self, client, matched_pair):
        requester, _ = matched_pair
        assert client.get(f"/api/matching/{requester.id}/similarity/9999").status_code == 404


@pytest.mark.integration
class TestEmbeddingEndpoints:
    """Test /api/embeddings/*."""

    def test_stats(self, client, matched_pair, make_preferences):
        make_preferences(profession="Chef")
        data = client.get("/api/embeddings/stats").get_json()
        assert data == {
            "total_users": 3,
            "users_with_embeddings": 2,
            "users_without_embeddings": 1,
            "embedding_coverage": 66.67,
        }

    def test_bulk_generate(self, client, make_preferences):
        for i in range(3):
            make_preferences(profession=f"Job {i}")

        response = client.post("/api/embeddings/bulk-generate", json={"limit": 2})
        assert response.status_code == 200
        data = response.get_json()
        assert data["results"] == {"processed": 2, "successful": 2, "failed": 0}

    def test_bulk_generate_isolates_failures(self, client, app, make_preferences):
        app.extensions["embedding_service"] = FakeEmbeddingService(fail_markers=["Broken"])
        make_preferences(profession="Chef")
        make_preferences(profession="Broken Job")

        data = client.post("/api/embeddings/bulk-generate", json={}).get_json()
        assert data["limit"] == 50
        assert data["results"] == {"processed": 2, "successful": 1, "failed": 1}

    def test_bulk_generate_limit_is_capped(self, client, db):
        data = client.post("/api/embeddings/bulk-generate", json={"limit": 10000}).get_json()
        assert data["limit"] == 500

    def test_regenerate(self, client, make_preferences):
        prefs = make_preferences(profession="Chef")
        response = client.post(f"/api/embeddings/regenerate/{prefs.user_id}")
        assert response.status_code == 200
        assert response.get_json()["success"] is True

    def test_regenerate_missing_returns_404(self, client, db):
        assert client.post("/api/embeddings/regenerate/777").status_code == 404

    def test_regenerate_provider_failure_returns_502(self, client, app, make_preferences):
        app.extensions["embedding_service"] = FakeEmbeddingService(fail_markers=["Chef"])
        prefs = make_preferences(profession="Chef")
        assert client.post(f"/api/embeddings/regenerate/{prefs.user_id}").status_code == 502


@pytest.mark.integration
class TestErrorHandlers:
    """Test JSON error handlers."""

    def test_unknown_route_returns_json_404(self, client):
        response = client.get("/api/does-not-exist")
        assert response.status_code == 404
        assert response.get_json()["status"] == 404

    def test_wrong_method_returns_json_405(self, client):
        response = client.delete("/api/health")
        assert response.status_code == 405
        assert response.get_json()["status"] == 405
