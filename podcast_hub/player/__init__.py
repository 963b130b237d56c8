"""Episode playback: audio engines and the player controller."""

from .engine import AudioEngine, MpvAudioEngine
from .episode_player import EpisodePlayer, PlayerError, PlayerState, PositionPoller

__all__ = [
    "AudioEngine",
    "EpisodePlayer",
    "MpvAudioEngine",
    "PlayerError",
    "PlayerState",
    "PositionPoller",
]
