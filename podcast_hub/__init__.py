"""PodcastHub: podcast publishing and listening web application."""

__version__ = "1.0.0"
