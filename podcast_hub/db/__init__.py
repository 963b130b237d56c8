"""Database module for PodcastHub data persistence.

Provides:
- SQLAlchemy ORM models (Profile, Podcast, Episode, Subscription, Favorite)
- Repository interface and implementation
- Factory function for creating repositories
"""

from .factory import create_repository, redact_database_url, repository_from_config
from .models import Base, Episode, Favorite, Podcast, Profile, Subscription
from .repository import PodcastHubRepositoryInterface, SQLAlchemyPodcastHubRepository

__all__ = [
    "Base",
    "Profile",
    "Podcast",
    "Episode",
    "Subscription",
    "Favorite",
    "PodcastHubRepositoryInterface",
    "SQLAlchemyPodcastHubRepository",
    "create_repository",
    "redact_database_url",
    "repository_from_config",
]
