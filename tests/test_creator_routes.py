"""Tests for the creator dashboard API routes."""

from unittest.mock import patch

import pytest

from podcast_hub.storage import AUDIO_BUCKET

MISSING_ID = "00000000-0000-0000-0000-000000000000"


@pytest.fixture(autouse=True)
def no_audio_metadata():
    with patch("podcast_hub.services.uploads.read_audio_duration", return_value=None):
        yield


class TestCreatePodcast:
    """Tests for POST /api/dashboard/podcasts."""

    def test_requires_authentication(self, client):
        response = client.post(
            "/api/dashboard/podcasts",
            data={"title": "Tech Talk", "description": "Weekly technology news."},
        )

        assert response.status_code == 401

    def test_create_without_cover(self, auth_client, user):
        response = auth_client.post(
            "/api/dashboard/podcasts",
            data={"title": "Tech Talk", "description": "Weekly technology news."},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Tech Talk"
        assert data["author_id"] == user.id
        assert data["cover_image_url"] is None

    def test_create_with_cover(self, auth_client, storage):
        response = auth_client.post(
            "/api/dashboard/podcasts",
            data={"title": "Tech Talk", "description": "Weekly technology news."},
            files={"cover_image": ("cover.jpg", b"jpeg-bytes", "image/jpeg")},
        )

        assert response.status_code == 201
        cover_url = response.json()["cover_image_url"]
        assert cover_url.startswith("/media/podcast-covers/")
        assert auth_client.get(cover_url).content == b"jpeg-bytes"

    @pytest.mark.parametrize(
        "title, description, message",
        [
            ("ab", "Weekly technology news.", "Title must be at least 3 characters"),
            ("Tech Talk", "short", "Description must be at least 10 characters"),
        ],
    )
    def test_validation_messages(self, auth_client, repository, title, description, message):
        response = auth_client.post(
            "/api/dashboard/podcasts",
            data={"title": title, "description": description},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == message
        assert repository.list_podcasts() == []

    def test_rejects_non_image_cover(self, auth_client):
        response = auth_client.post(
            "/api/dashboard/podcasts",
            data={"title": "Tech Talk", "description": "Weekly technology news."},
            files={"cover_image": ("cover.txt", b"text", "text/plain")},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Please upload an image file"


class TestManagePodcasts:
    """Tests for listing, updating and deleting podcasts."""

    def test_list_only_own_podcasts(self, auth_client, repository, other_user, podcast):
        repository.create_podcast(author_id=other_user.id, title="Bob Show", description="Not Alice's show.")

        data = auth_client.get("/api/dashboard/podcasts").json()

        assert [p["id"] for p in data] == [podcast.id]

    def test_update_podcast(self, auth_client, podcast):
        response = auth_client.patch(
            f"/api/dashboard/podcasts/{podcast.id}",
            json={"title": "Evening Show"},
        )

        assert response.status_code == 200
        assert response.json()["title"] == "Evening Show"
        assert response.json()["description"] == "A daily look at the morning news."

    def test_update_someone_elses_podcast(self, login, other_user, podcast):
        client = login(other_user)

        response = client.patch(f"/api/dashboard/podcasts/{podcast.id}", json={"title": "Mine Now"})

        assert response.status_code == 403

    def test_delete_podcast(self, auth_client, repository, podcast, episode):
        response = auth_client.delete(f"/api/dashboard/podcasts/{podcast.id}")

        assert response.status_code == 200
        assert response.json() == {"id": podcast.id, "deleted": True}
        assert repository.get_podcast(podcast.id) is None
        assert repository.get_episode(episode.id) is None

    def test_delete_by_non_owner_changes_nothing(self, login, repository, other_user, podcast):
        client = login(other_user)

        response = client.delete(f"/api/dashboard/podcasts/{podcast.id}")

        assert response.status_code == 404
        assert repository.get_podcast(podcast.id) is not None


class TestEpisodes:
    """Tests for the episode endpoints."""

    def test_create_episode(self, auth_client, podcast, storage):
        response = auth_client.post(
            f"/api/dashboard/podcasts/{podcast.id}/episodes",
            data={
                "title": "Pilot",
                "description": "The first episode of the show.",
                "published_at": "2025-04-01",
            },
            files={"audio_file": ("pilot.mp3", b"\x00" * 4096, "audio/mpeg")},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["podcast_id"] == podcast.id
        assert data["duration"] == 1
        assert data["published_at"].startswith("2025-04-01")
        assert data["audio_url"].startswith(f"/media/{AUDIO_BUCKET}/{podcast.id}/")

    def test_create_episode_requires_audio(self, auth_client, podcast):
        response = auth_client.post(
            f"/api/dashboard/podcasts/{podcast.id}/episodes",
            data={
                "title": "Pilot",
                "description": "The first episode of the show.",
                "published_at": "2025-04-01",
            },
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Please upload an audio file"

    def test_create_episode_requires_date(self, auth_client, podcast):
        response = auth_client.post(
            f"/api/dashboard/podcasts/{podcast.id}/episodes",
            data={"title": "Pilot", "description": "The first episode of the show.", "published_at": ""},
            files={"audio_file": ("pilot.mp3", b"\x00" * 16, "audio/mpeg")},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Publication date is required"

    def test_create_episode_for_someone_elses_podcast(self, login, repository, other_user, podcast):
        client = login(other_user)

        response = client.post(
            f"/api/dashboard/podcasts/{podcast.id}/episodes",
            data={
                "title": "Intruder",
                "description": "Should never be stored.",
                "published_at": "2025-04-01",
            },
            files={"audio_file": ("x.mp3", b"\x00" * 16, "audio/mpeg")},
        )

        assert response.status_code == 403
        assert repository.list_episodes(podcast.id) == []

    def test_list_episodes(self, auth_client, podcast, episode):
        data = auth_client.get(f"/api/dashboard/podcasts/{podcast.id}/episodes").json()

        assert data["podcast"]["id"] == podcast.id
        assert [e["id"] for e in data["episodes"]] == [episode.id]

    def test_list_episodes_missing_podcast(self, auth_client):
        assert auth_client.get(f"/api/dashboard/podcasts/{MISSING_ID}/episodes").status_code == 404

    def test_delete_episode(self, auth_client, repository, episode):
        response = auth_client.delete(f"/api/dashboard/episodes/{episode.id}")

        assert response.status_code == 200
        assert repository.get_episode(episode.id) is None

    def test_delete_episode_by_non_owner(self, login, repository, other_user, episode):
        client = login(other_user)

        assert client.delete(f"/api/dashboard/episodes/{episode.id}").status_code == 404
        assert repository.get_episode(episode.id) is not None
