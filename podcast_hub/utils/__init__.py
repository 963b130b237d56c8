"""Utility modules for the PodcastHub application."""

from .formatting import format_time

__all__ = [
    'format_time',
]
