"""
Audio engines used by the episode player.

An engine is bound to one audio URL for its whole life. The player creates a
new engine for every episode it loads and unloads the old one.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class AudioEngine(ABC):
    """Transport controls over a single audio source."""

    @abstractmethod
    def play(self) -> None:
        """Start or resume playback."""
        pass

    @abstractmethod
    def pause(self) -> None:
        """Pause playback, keeping the current position."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop playback and rewind to the start."""
        pass

    @abstractmethod
    def seek(self, position: float) -> None:
        """Seek to an absolute position in seconds."""
        pass

    @abstractmethod
    def position(self) -> float:
        """Current playback offset in seconds."""
        pass

    @abstractmethod
    def duration(self) -> Optional[float]:
        """Length of the source in seconds, or None until it is known."""
        pass

    @abstractmethod
    def set_volume(self, volume: float) -> None:
        """Set the volume, from 0.0 (muted) to 1.0 (full)."""
        pass

    @abstractmethod
    def set_end_callback(self, callback: Callable[[], None]) -> None:
        """Register the function called when playback reaches the end."""
        pass

    @abstractmethod
    def unload(self) -> None:
        """Release the underlying audio resources. The engine is unusable afterwards."""
        pass


class MpvAudioEngine(AudioEngine):
    """
    Audio-only engine backed by libmpv through python-mpv.

    The file is loaded on the first `play()`. A seek before that is kept as
    the start offset of the load. mpv unloads the file and goes idle at the
    end of the track, so both `eof-reached` and `idle-active` count as the
    end, and the next `play()` loads the file again.
    """

    def __init__(self, url: str, volume: float = 0.8):
        import mpv

        self.url = url
        # vo='null' because we are audio-only; ytdl off since URLs are direct
        self.player = mpv.MPV(vo='null', video=False, ytdl=False)
        self._loaded = False
        self._start_position = 0.0
        self._end_callback: Optional[Callable[[], None]] = None

        self.player.observe_property('eof-reached', self._handle_eof)
        self.player.observe_property('idle-active', self._handle_idle)
        self.set_volume(volume)

    def play(self) -> None:
        if not self._loaded:
            if self._start_position > 0:
                self.player.loadfile(self.url, start=f"{self._start_position}")
            else:
                self.player.play(self.url)
            self._loaded = True
        self.player.pause = False

    def pause(self) -> None:
        self.player.pause = True

    def stop(self) -> None:
        self.player.pause = True
        self._start_position = 0.0
        if self._loaded:
            self.seek(0)

    def seek(self, position: float) -> None:
        if not self._loaded:
            self._start_position = max(0.0, float(position))
            return
        try:
            self.player.seek(position, reference='absolute')
        except Exception as e:
            logger.warning(f"Error seeking to {position}: {e}")

    def position(self) -> float:
        if not self._loaded:
            return self._start_position
        time_pos = self.player.time_pos
        return self._start_position if time_pos is None else time_pos

    def duration(self) -> Optional[float]:
        return self.player.duration

    def set_volume(self, volume: float) -> None:
        # mpv volume is a percentage
        self.player.volume = max(0.0, min(1.0, volume)) * 100

    def set_end_callback(self, callback: Callable[[], None]) -> None:
        self._end_callback = callback

    def unload(self) -> None:
        self._end_callback = None
        self.player.terminate()

    def _handle_eof(self, _name, value):
        if value:
            self._track_ended()

    def _handle_idle(self, _name, value):
        # idle-active is also True before the first load
        if value and self._loaded:
            self._track_ended()

    def _track_ended(self) -> None:
        if not self._loaded:
            return
        self._loaded = False
        self._start_position = 0.0
        if self._end_callback:
            try:
                self._end_callback()
            except Exception:
                logger.exception("Error in end-of-track callback")
