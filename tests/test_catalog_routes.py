"""Tests for the catalog API routes."""

from datetime import datetime, timedelta
from unittest.mock import patch


class TestListPodcasts:
    """Tests for GET /api/podcasts."""

    def test_empty(self, client):
        response = client.get("/api/podcasts")

        assert response.status_code == 200
        assert response.json() == []

    def test_newest_first_with_author(self, client, repository, user):
        base = datetime(2025, 1, 1)
        for offset, title in enumerate(["Older Show", "Newer Show"]):
            repository.create_podcast(
                author_id=user.id,
                title=title,
                description="A show about everything.",
                created_at=base + timedelta(days=offset),
            )

        data = client.get("/api/podcasts").json()

        assert [p["title"] for p in data] == ["Newer Show", "Older Show"]
        assert data[0]["author"]["username"] == "alice"

    def test_limit(self, client, repository, user):
        for i in range(3):
            repository.create_podcast(author_id=user.id, title=f"Show {i}", description="Description here.")

        assert len(client.get("/api/podcasts?limit=2").json()) == 2

    def test_store_failure(self, client, repository):
        with patch.object(repository, "list_podcasts", side_effect=RuntimeError("db down")):
            response = client.get("/api/podcasts")

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to load podcasts"


class TestPodcastDetail:
    """Tests for GET /api/podcasts/{id}."""

    def test_anonymous_detail(self, client, podcast, episode):
        data = client.get(f"/api/podcasts/{podcast.id}").json()

        assert data["podcast"]["title"] == "Morning Show"
        assert [e["id"] for e in data["episodes"]] == [episode.id]
        assert data["is_subscribed"] is False

    def test_subscribed_viewer(self, auth_client, repository, user, podcast):
        repository.subscribe(user.id, podcast.id)

        data = auth_client.get(f"/api/podcasts/{podcast.id}").json()

        assert data["is_subscribed"] is True

    def test_not_found(self, client):
        response = client.get("/api/podcasts/00000000-0000-0000-0000-000000000000")

        assert response.status_code == 404
        assert response.json()["detail"] == "Podcast not found"

    def test_invalid_id(self, client):
        assert client.get("/api/podcasts/not-a-uuid").status_code == 422

    def test_subscription_check_failure_is_not_fatal(self, auth_client, repository, podcast):
        with patch.object(repository, "is_subscribed", side_effect=RuntimeError("boom")):
            response = auth_client.get(f"/api/podcasts/{podcast.id}")

        assert response.status_code == 200
        assert response.json()["is_subscribed"] is False


class TestEpisodeDetail:
    """Tests for GET /api/episodes/{id}."""

    def test_detail_includes_podcast_and_author(self, client, episode):
        data = client.get(f"/api/episodes/{episode.id}").json()

        assert data["episode"]["duration"] == 125
        assert data["podcast"]["title"] == "Morning Show"
        assert data["podcast"]["author"]["username"] == "alice"
        assert data["is_favorite"] is False

    def test_favorite_flag(self, auth_client, repository, user, episode):
        repository.add_favorite(user.id, episode.id)

        assert auth_client.get(f"/api/episodes/{episode.id}").json()["is_favorite"] is True

    def test_favorite_check_failure_reports_false(self, auth_client, repository, episode):
        with patch.object(repository, "is_favorite", side_effect=RuntimeError("boom")):
            response = auth_client.get(f"/api/episodes/{episode.id}")

        assert response.status_code == 200
        assert response.json()["is_favorite"] is False

    def test_not_found(self, client):
        response = client.get("/api/episodes/00000000-0000-0000-0000-000000000000")

        assert response.status_code == 404
        assert response.json()["detail"] == "Episode not found"
