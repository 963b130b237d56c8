"""Tests for application assembly."""


import pytest
from fastapi.testclient import TestClient

from podcast_hub.storage import AUDIO_BUCKET, COVER_BUCKET, LocalStorageProvider
from podcast_hub.web.app import _validate_jwt_config, create_app


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "podcast-hub"}


def test_static_assets_served(client):
    response = client.get("/static/app.js")

    assert response.status_code == 200


def test_delete_script_restores_empty_states(client):
    script = client.get("/static/app.js").text

    assert "showEmptyTable(table, emptyText)" in script
    assert "You haven't created any podcasts yet." in script
    assert "You haven't created any episodes yet." in script


def test_startup_creates_buckets(config, repository, tmp_path):
    storage = LocalStorageProvider(root=str(tmp_path / "startup"))
    app = create_app(config=config, repository=repository, storage=storage)

    with TestClient(app):
        assert storage.bucket_exists(COVER_BUCKET)
        assert storage.bucket_exists(AUDIO_BUCKET)


def test_builds_collaborators_from_config(config):
    app = create_app(config=config)

    client = TestClient(app)
    assert client.get("/api/podcasts").json() == []


class TestJwtConfig:
    """Tests for _validate_jwt_config."""

    def test_dev_mode_uses_insecure_key(self, config, monkeypatch):
        monkeypatch.setenv("DEV_MODE", "true")
        config.JWT_SECRET_KEY = ""

        _validate_jwt_config(config)

        assert config.JWT_SECRET_KEY

    def test_production_requires_key(self, config, monkeypatch):
        monkeypatch.setenv("DEV_MODE", "false")
        config.JWT_SECRET_KEY = ""

        with pytest.raises(RuntimeError, match="JWT_SECRET_KEY"):
            _validate_jwt_config(config)
