"""Tests for the episode player and position poller."""

import threading
import time
from unittest.mock import Mock

import pytest

from podcast_hub.player import AudioEngine, EpisodePlayer, PlayerError, PositionPoller


class FakeEngine(AudioEngine):
    """In-memory engine that records transport calls."""

    instances = []

    def __init__(self, url, volume=0.8):
        self.url = url
        self.volume = volume
        self.playing = False
        self.offset = 0.0
        self.length = None
        self.unloaded = False
        self.end_callback = None
        FakeEngine.instances.append(self)

    def play(self):
        self.playing = True

    def pause(self):
        self.playing = False

    def stop(self):
        self.playing = False
        self.offset = 0.0

    def seek(self, position):
        self.offset = position

    def position(self):
        return self.offset

    def duration(self):
        return self.length

    def set_volume(self, volume):
        self.volume = volume

    def set_end_callback(self, callback):
        self.end_callback = callback

    def unload(self):
        self.unloaded = True

    def finish(self):
        self.playing = False
        self.end_callback()


@pytest.fixture(autouse=True)
def reset_engines():
    FakeEngine.instances = []
    yield


@pytest.fixture
def player(repository, user):
    p = EpisodePlayer(repository, engine_factory=FakeEngine, user_id=user.id, poll_interval=0.01)
    yield p
    p.close()


class TestLoading:
    """Tests for EpisodePlayer.load."""

    def test_load_binds_engine_to_audio_url(self, player, episode):
        state = player.load(episode.id)

        assert state.episode_id == episode.id
        assert state.duration == 125
        assert state.is_playing is False
        assert player.podcast.title == "Morning Show"
        assert FakeEngine.instances[0].url == episode.audio_url

    def test_load_missing_episode(self, player):
        with pytest.raises(PlayerError, match="Episode not found"):
            player.load("00000000-0000-0000-0000-000000000000")

    def test_load_store_failure(self, user):
        repository = Mock()
        repository.get_episode.side_effect = RuntimeError("db down")
        player = EpisodePlayer(repository, engine_factory=FakeEngine, user_id=user.id)

        with pytest.raises(PlayerError, match="Failed to load episode details"):
            player.load("any")

    def test_load_reads_favorite_flag(self, player, repository, user, episode):
        repository.add_favorite(user.id, episode.id)

        assert player.load(episode.id).is_favorite is True

    def test_loading_another_episode_releases_engine(self, player, repository, podcast, episode):
        second = repository.create_episode(
            podcast_id=podcast.id,
            title="Episode Two",
            description="The second episode.",
            audio_url="/media/podcast-audio/two.mp3",
            duration=90,
        )

        player.load(episode.id)
        player.play()
        player.load(second.id)

        first_engine, second_engine = FakeEngine.instances
        assert first_engine.unloaded is True
        assert second_engine.url == "/media/podcast-audio/two.mp3"
        assert player.state.is_playing is False
        assert player.is_polling is False


class TestTransport:
    """Tests for play, pause, seek and volume."""

    def test_controls_require_loaded_episode(self, player):
        with pytest.raises(PlayerError):
            player.play()

    def test_play_pause_toggles_polling(self, player, episode):
        player.load(episode.id)

        assert player.toggle_play_pause() is True
        assert player.is_polling is True

        assert player.toggle_play_pause() is False
        assert player.is_polling is False

    def test_seek_is_clamped_to_duration(self, player, episode):
        player.load(episode.id)

        assert player.seek(60) == 60
        assert player.seek(500) == 125
        assert player.seek(-5) == 0
        assert FakeEngine.instances[0].offset == 0

    def test_volume_is_clamped(self, player, episode):
        player.load(episode.id)

        assert player.set_volume(1.5) == 1.0
        assert player.set_volume(0.25) == 0.25
        assert FakeEngine.instances[0].volume == 0.25

    def test_stop_rewinds(self, player, episode):
        player.load(episode.id)
        player.play()
        player.seek(30)

        player.stop()

        assert player.state.current_time == 0
        assert player.state.is_playing is False

    def test_end_of_track_resets(self, player, episode):
        player.load(episode.id)
        player.play()
        player.seek(120)

        FakeEngine.instances[0].finish()

        assert player.state.is_playing is False
        assert player.state.current_time == 0
        assert player.is_polling is False

    def test_position_updates_while_playing(self, repository, user, episode):
        updates = []
        seen = threading.Event()

        def on_update(state):
            updates.append(state)
            if state.current_time >= 42:
                seen.set()

        player = EpisodePlayer(
            repository, engine_factory=FakeEngine, user_id=user.id,
            poll_interval=0.01, on_update=on_update,
        )
        try:
            player.load(episode.id)
            player.play()
            FakeEngine.instances[0].offset = 42.0

            assert seen.wait(timeout=2)
        finally:
            player.close()


class TestFavorites:
    """Tests for EpisodePlayer.toggle_favorite."""

    def test_toggle_adds_and_removes(self, player, repository, user, episode):
        player.load(episode.id)

        assert player.toggle_favorite() is True
        assert repository.is_favorite(user.id, episode.id) is True

        assert player.toggle_favorite() is False
        assert repository.is_favorite(user.id, episode.id) is False

    def test_failure_leaves_flag_unchanged(self, player, repository, episode):
        player.load(episode.id)
        player.repository = Mock(wraps=repository)
        player.repository.add_favorite.side_effect = RuntimeError("db down")

        assert player.toggle_favorite() is False
        assert player.state.is_favorite is False

    def test_anonymous_listener_cannot_favorite(self, repository, episode):
        player = EpisodePlayer(repository, engine_factory=FakeEngine)
        player.load(episode.id)

        assert player.toggle_favorite() is False

    def test_requires_loaded_episode(self, player):
        with pytest.raises(PlayerError, match="No episode loaded"):
            player.toggle_favorite()


class TestPositionPoller:
    """Tests for PositionPoller."""

    def test_start_is_idempotent_and_stop_joins(self):
        reads = []
        poller = PositionPoller(lambda: 1.0, reads.append, interval=0.01)

        poller.start()
        first_thread = poller._thread
        poller.start()
        assert poller._thread is first_thread

        time.sleep(0.05)
        poller.stop()

        assert poller.is_running is False
        assert reads and all(r == 1.0 for r in reads)

    def test_stop_from_callback(self):
        stopped = threading.Event()
        poller = None

        def on_update(_position):
            poller.stop()
            stopped.set()

        poller = PositionPoller(lambda: 0.0, on_update, interval=0.01)
        poller.start()

        assert stopped.wait(timeout=2)
        assert poller.is_running is False
