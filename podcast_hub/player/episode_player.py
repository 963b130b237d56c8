"""
Episode player controller.

Binds one loaded episode to an audio engine, exposes transport controls and
the favorite toggle, and keeps the displayed position current with a timer
thread that runs only while audio is playing.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from podcast_hub.db.repository import PodcastHubRepositoryInterface
from podcast_hub.player.engine import AudioEngine, MpvAudioEngine

logger = logging.getLogger(__name__)

DEFAULT_VOLUME = 0.8
DEFAULT_POLL_INTERVAL = 0.25

EngineFactory = Callable[[str, float], AudioEngine]


class PlayerError(Exception):
    """Raised when the player cannot carry out a request. The message is user-facing."""


@dataclass(frozen=True)
class PlayerState:
    """Snapshot of what the player displays."""

    episode_id: Optional[str]
    is_playing: bool
    current_time: float
    duration: float
    volume: float
    is_favorite: bool


class PositionPoller:
    """
    Reads the playback offset on a fixed interval from a background thread.

    `start` is a no-op while already running; `stop` cancels the timer and
    may be called from any thread, including the poller's own callback.
    """

    def __init__(
        self,
        read_position: Callable[[], float],
        on_update: Callable[[float], None],
        interval: float = DEFAULT_POLL_INTERVAL,
    ):
        self.read_position = read_position
        self.on_update = on_update
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop_event,), name="position-poller", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.interval * 4)

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval):
            try:
                self.on_update(self.read_position())
            except Exception:
                logger.exception("Error polling playback position")


class EpisodePlayer:
    """
    Player for one episode at a time.

    Args:
        repository: Data store for episodes and favorites.
        engine_factory: Builds an engine from (audio_url, volume).
        user_id: Signed-in listener, or None for anonymous playback.
        volume: Initial volume between 0 and 1.
        poll_interval: Seconds between position reads while playing.
        on_update: Called with a PlayerState whenever the display changes.
    """

    def __init__(
        self,
        repository: PodcastHubRepositoryInterface,
        engine_factory: EngineFactory = MpvAudioEngine,
        user_id: Optional[str] = None,
        volume: float = DEFAULT_VOLUME,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        on_update: Optional[Callable[[PlayerState], None]] = None,
    ):
        self.repository = repository
        self.engine_factory = engine_factory
        self.user_id = user_id
        self.on_update = on_update

        self.episode = None
        self.podcast = None
        self._engine: Optional[AudioEngine] = None
        self._is_playing = False
        self._current_time = 0.0
        self._duration = 0.0
        self._volume = _clamp(volume, 0.0, 1.0)
        self._is_favorite = False

        self._poller = PositionPoller(self._read_position, self._handle_position, poll_interval)

    # --- Loading ---

    def load(self, episode_id: str) -> PlayerState:
        """
        Load an episode: fetch it with its podcast, check the favorite flag and
        bind a fresh audio engine to its audio URL.

        Raises:
            PlayerError: If the episode cannot be fetched.
        """
        self._release()

        try:
            episode = self.repository.get_episode(episode_id)
        except Exception as e:
            logger.exception(f"Error loading episode {episode_id}")
            raise PlayerError("Failed to load episode details") from e
        if not episode:
            raise PlayerError("Episode not found")

        self.episode = episode
        self.podcast = episode.podcast
        self._duration = float(episode.duration or 0)
        self._current_time = 0.0
        self._is_playing = False
        self._is_favorite = False

        if self.user_id:
            try:
                self._is_favorite = self.repository.is_favorite(self.user_id, episode.id)
            except Exception as e:
                logger.warning(f"Could not check favorite for episode {episode.id}: {e}")

        self._engine = self.engine_factory(episode.audio_url, self._volume)
        self._engine.set_end_callback(self._handle_end)

        logger.info(f"Loaded episode {episode.id}: {episode.title}")
        self._notify()
        return self.state

    # --- Transport ---

    def play(self) -> None:
        engine = self._require_engine()
        engine.play()
        self._is_playing = True
        self._poller.start()
        self._notify()

    def pause(self) -> None:
        engine = self._require_engine()
        engine.pause()
        self._is_playing = False
        self._poller.stop()
        self._current_time = engine.position()
        self._notify()

    def toggle_play_pause(self) -> bool:
        """Pause if playing, otherwise play. Returns the new playing state."""
        if self._is_playing:
            self.pause()
        else:
            self.play()
        return self._is_playing

    def stop(self) -> None:
        engine = self._require_engine()
        engine.stop()
        self._is_playing = False
        self._poller.stop()
        self._current_time = 0.0
        self._notify()

    def seek(self, position: float) -> float:
        """Seek within the episode; the position is clamped to its length."""
        engine = self._require_engine()
        self._refresh_duration()
        position = _clamp(position, 0.0, self._duration) if self._duration else max(0.0, position)
        engine.seek(position)
        self._current_time = position
        self._notify()
        return position

    def set_volume(self, volume: float) -> float:
        """Set the volume, clamped to 0..1. Applies to later loads as well."""
        self._volume = _clamp(volume, 0.0, 1.0)
        if self._engine is not None:
            self._engine.set_volume(self._volume)
        self._notify()
        return self._volume

    # --- Favorites ---

    def toggle_favorite(self) -> bool:
        """
        Add or remove the loaded episode from the listener's favorites.

        The local flag flips only after the store call succeeds. A failure is
        logged and leaves the flag unchanged.

        Returns:
            bool: The favorite flag after the toggle.
        """
        if self.episode is None:
            raise PlayerError("No episode loaded")
        if not self.user_id:
            logger.warning("Favorite toggle requires a signed-in user")
            return self._is_favorite

        try:
            if self._is_favorite:
                self.repository.remove_favorite(self.user_id, self.episode.id)
            else:
                self.repository.add_favorite(self.user_id, self.episode.id)
        except Exception:
            logger.exception(f"Error updating favorite for episode {self.episode.id}")
            return self._is_favorite

        self._is_favorite = not self._is_favorite
        self._notify()
        return self._is_favorite

    # --- State ---

    @property
    def state(self) -> PlayerState:
        return PlayerState(
            episode_id=self.episode.id if self.episode else None,
            is_playing=self._is_playing,
            current_time=self._current_time,
            duration=self._duration,
            volume=self._volume,
            is_favorite=self._is_favorite,
        )

    @property
    def is_polling(self) -> bool:
        return self._poller.is_running

    # --- Teardown ---

    def close(self) -> None:
        """Cancel position polling and release the audio engine."""
        self._release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # --- Internals ---

    def _require_engine(self) -> AudioEngine:
        if self._engine is None:
            raise PlayerError("No episode loaded")
        return self._engine

    def _release(self) -> None:
        self._poller.stop()
        self._is_playing = False
        if self._engine is not None:
            engine, self._engine = self._engine, None
            try:
                engine.unload()
            except Exception:
                logger.exception("Error releasing audio engine")

    def _read_position(self) -> float:
        engine = self._engine
        return engine.position() if engine is not None else self._current_time

    def _refresh_duration(self) -> None:
        if self._engine is None:
            return
        reported = self._engine.duration()
        if reported and reported > 0:
            self._duration = float(reported)

    def _handle_position(self, position: float) -> None:
        self._current_time = position
        self._refresh_duration()
        self._notify()

    def _handle_end(self) -> None:
        """End of track: stop polling and rewind the displayed position."""
        self._poller.stop()
        self._is_playing = False
        self._current_time = 0.0
        self._notify()

    def _notify(self) -> None:
        if self.on_update is None:
            return
        try:
            self.on_update(self.state)
        except Exception:
            logger.exception("Error in player update callback")


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, float(value)))
