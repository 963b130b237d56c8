"""Repository pattern implementation for PodcastHub data persistence.

Provides an abstract interface and SQLAlchemy implementation for database operations.
Supports both SQLite (local development) and PostgreSQL (production).

Ownership rules live in the query filters here: mutations that belong to an
author only touch rows whose author matches, and the per-user join tables are
always filtered by the acting user.
"""

import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from sqlalchemy import create_engine, event, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, sessionmaker

from .models import Base, Episode, Favorite, Podcast, Profile, Subscription, as_utc, utcnow

logger = logging.getLogger(__name__)

# Podcast fields an author may change after creation
EDITABLE_PODCAST_FIELDS = ("title", "description", "cover_image_url")


def _username_base(email: str) -> str:
    """
    Derive a username candidate from the local part of an email address.

    Keeps letters, digits, dots, dashes and underscores; anything else is dropped.
    Falls back to "listener" when nothing usable remains.
    """
    local_part = email.split("@", 1)[0].lower()
    cleaned = re.sub(r"[^a-z0-9._-]", "", local_part)
    return cleaned or "listener"


class PodcastHubRepositoryInterface(ABC):
    """Abstract interface for PodcastHub data persistence.

    Implementations must support both SQLite and PostgreSQL backends.
    """

    # --- Profile Operations ---

    @abstractmethod
    def create_profile(
        self,
        email: str,
        username: Optional[str] = None,
        google_id: Optional[str] = None,
        avatar_url: Optional[str] = None,
        is_creator: bool = False,
    ) -> Profile:
        """Create a new profile.

        When no username is given, one is derived from the email address and
        made unique by appending a numeric suffix.

        Args:
            email: User's email address.
            username: Public username (optional).
            google_id: Google's unique user identifier (optional).
            avatar_url: URL to the user's avatar (optional).
            is_creator: Whether the creator navigation is shown for this user.

        Returns:
            Profile: The newly created profile, or the existing one for the same
            google_id or email.
        """
        pass

    @abstractmethod
    def get_profile(self, profile_id: str) -> Optional[Profile]:
        """Get a profile by ID."""
        pass

    @abstractmethod
    def get_profile_by_google_id(self, google_id: str) -> Optional[Profile]:
        """Get a profile by its Google ID."""
        pass

    @abstractmethod
    def get_profile_by_username(self, username: str) -> Optional[Profile]:
        """Get a profile by username."""
        pass

    @abstractmethod
    def update_profile(self, profile_id: str, **kwargs) -> Optional[Profile]:
        """Update a profile's attributes.

        Returns:
            Profile | None: The updated profile, or None if it does not exist.
        """
        pass

    @abstractmethod
    def delete_profile(self, profile_id: str) -> bool:
        """
        Delete a profile together with its podcasts, subscriptions and favorites.

        Returns:
            bool: True if the profile was deleted, False if it did not exist.
        """
        pass

    # --- Podcast Operations ---

    @abstractmethod
    def create_podcast(
        self,
        author_id: str,
        title: str,
        description: str,
        cover_image_url: Optional[str] = None,
        **kwargs,
    ) -> Podcast:
        """
        Create and persist a new podcast owned by `author_id`.

        Parameters:
            author_id (str): Profile ID of the owning author.
            title (str): Human-readable title for the podcast.
            description (str): Podcast description.
            cover_image_url (Optional[str]): Public URL of the cover image.
            **kwargs: Additional Podcast fields to set on creation.

        Returns:
            Podcast: The newly created podcast with its author loaded.
        """
        pass

    @abstractmethod
    def get_podcast(self, podcast_id: str) -> Optional[Podcast]:
        """
        Retrieve a podcast by its primary key, with its author loaded.

        Returns:
            Podcast | None: The matching Podcast instance if found, `None` otherwise.
        """
        pass

    @abstractmethod
    def list_podcasts(self, limit: Optional[int] = None) -> List[Podcast]:
        """
        List every podcast for the discovery view.

        Parameters:
            limit (Optional[int]): Maximum number of podcasts to return.

        Returns:
            List[Podcast]: Podcasts newest first, each with its author loaded.
        """
        pass

    @abstractmethod
    def list_podcasts_by_author(self, author_id: str) -> List[Podcast]:
        """
        List the podcasts owned by one author, newest first.
        """
        pass

    @abstractmethod
    def update_podcast(self, podcast_id: str, author_id: str, **kwargs) -> Optional[Podcast]:
        """
        Update editable fields of a podcast owned by `author_id`.

        Returns:
            Podcast | None: The updated podcast, or None if it does not exist or
            belongs to another author.
        """
        pass

    @abstractmethod
    def delete_podcast(self, podcast_id: str, author_id: str) -> bool:
        """
        Delete a podcast owned by `author_id`, cascading to its episodes,
        their favorites and the podcast's subscriptions.

        Returns:
            bool: True if deleted, False if missing or owned by another author.
        """
        pass

    # --- Episode Operations ---

    @abstractmethod
    def create_episode(
        self,
        podcast_id: str,
        title: str,
        description: str,
        audio_url: str,
        duration: int,
        published_at: Optional[datetime] = None,
    ) -> Episode:
        """
        Create and persist a new episode for an existing podcast.

        Parameters:
            podcast_id (str): Owning podcast.
            title (str): Episode title.
            description (str): Episode description.
            audio_url (str): Public URL of the uploaded audio.
            duration (int): Length in seconds.
            published_at (Optional[datetime]): Publication time; now when omitted.

        Returns:
            Episode: The newly created episode.
        """
        pass

    @abstractmethod
    def get_episode(self, episode_id: str) -> Optional[Episode]:
        """
        Retrieve an episode with its podcast and the podcast's author loaded.
        """
        pass

    @abstractmethod
    def list_episodes(self, podcast_id: str) -> List[Episode]:
        """
        List a podcast's episodes, most recently published first.
        """
        pass

    @abstractmethod
    def delete_episode(self, episode_id: str, author_id: str) -> bool:
        """
        Delete an episode whose podcast is owned by `author_id`.

        Returns:
            bool: True if deleted, False if missing or owned by another author.
        """
        pass

    # --- Subscription Operations ---

    @abstractmethod
    def subscribe(self, user_id: str, podcast_id: str) -> Subscription:
        """Subscribe a user to a podcast. Subscribing twice is a no-op."""
        pass

    @abstractmethod
    def unsubscribe(self, user_id: str, podcast_id: str) -> bool:
        """Unsubscribe a user from a podcast.

        Returns:
            bool: True if a subscription was removed.
        """
        pass

    @abstractmethod
    def is_subscribed(self, user_id: str, podcast_id: str) -> bool:
        """Check if a user is subscribed to a podcast."""
        pass

    @abstractmethod
    def list_subscriptions(self, user_id: str) -> List[Subscription]:
        """List a user's subscriptions newest first, each with its podcast loaded."""
        pass

    # --- Favorite Operations ---

    @abstractmethod
    def add_favorite(self, user_id: str, episode_id: str) -> Favorite:
        """Mark an episode as a user's favorite. Adding twice is a no-op."""
        pass

    @abstractmethod
    def remove_favorite(self, user_id: str, episode_id: str) -> bool:
        """Remove an episode from a user's favorites.

        Returns:
            bool: True if a favorite was removed.
        """
        pass

    @abstractmethod
    def is_favorite(self, user_id: str, episode_id: str) -> bool:
        """Check if a user has favorited an episode."""
        pass

    @abstractmethod
    def list_favorites(self, user_id: str) -> List[Favorite]:
        """List a user's favorites newest first, each with its episode and podcast loaded."""
        pass

    # --- Schema / Connection Management ---

    @abstractmethod
    def create_tables(self) -> None:
        """Create any missing tables for the ORM models."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close database connections and release resources."""
        pass


class SQLAlchemyPodcastHubRepository(PodcastHubRepositoryInterface):
    """SQLAlchemy-based implementation of the PodcastHub repository.

    Supports SQLite for local development and PostgreSQL for production.
    """

    def __init__(
        self,
        database_url: str,
        pool_size: int = 5,
        max_overflow: int = 10,
        echo: bool = False,
    ):
        """
        Initialize the repository and configure its SQLAlchemy engine and session factory.

        Parameters:
            database_url (str): SQLAlchemy-compatible database URL.
            pool_size (int): Connection pool size for non-SQLite databases.
            max_overflow (int): Maximum overflow connections for non-SQLite databases.
            echo (bool): If true, enable SQLAlchemy SQL statement logging.
        """
        self.database_url = database_url

        # SQLite doesn't support connection pooling
        if database_url.startswith("sqlite"):
            self.engine = create_engine(
                database_url,
                echo=echo,
                connect_args={"check_same_thread": False},
            )
            # Cascading deletes rely on foreign key enforcement
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        else:
            self.engine = create_engine(
                database_url,
                pool_size=pool_size,
                max_overflow=max_overflow,
                echo=echo,
            )

        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

        logger.info(f"Database initialized: {database_url.split('@')[-1] if '@' in database_url else database_url}")

    def _get_session(self) -> Session:
        """
        Obtain a new SQLAlchemy database session from the repository's session factory.
        """
        return self.SessionLocal()

    # --- Profile Operations ---

    def create_profile(
        self,
        email: str,
        username: Optional[str] = None,
        google_id: Optional[str] = None,
        avatar_url: Optional[str] = None,
        is_creator: bool = False,
    ) -> Profile:
        """Create a new profile.

        If a profile with the same google_id or email already exists,
        returns the existing profile instead of raising an error.
        """
        with self._get_session() as session:
            if not username:
                username = self._unique_username(session, _username_base(email))

            now = utcnow()
            profile = Profile(
                google_id=google_id,
                email=email,
                username=username,
                avatar_url=avatar_url,
                is_creator=is_creator,
                created_at=now,
                updated_at=now,
                last_login=now,
            )
            session.add(profile)
            try:
                session.commit()
                session.refresh(profile)
                logger.info(f"Created new profile: {username}")
                return profile
            except IntegrityError:
                session.rollback()
                logger.info(f"Profile already exists, fetching existing: {email}")
                if google_id:
                    existing = session.scalar(
                        select(Profile).where(Profile.google_id == google_id)
                    )
                    if existing:
                        return existing
                existing = session.scalar(select(Profile).where(Profile.email == email))
                if existing:
                    return existing
                # Username collision with a different account
                raise

    @staticmethod
    def _unique_username(session: Session, base: str) -> str:
        """Return `base`, or `base-N` for the first N that is not taken."""
        candidate = base
        suffix = 2
        while session.scalar(select(Profile.id).where(Profile.username == candidate)):
            candidate = f"{base}-{suffix}"
            suffix += 1
        return candidate

    def get_profile(self, profile_id: str) -> Optional[Profile]:
        """Get a profile by ID."""
        with self._get_session() as session:
            return session.get(Profile, profile_id)

    def get_profile_by_google_id(self, google_id: str) -> Optional[Profile]:
        """Get a profile by its Google ID."""
        with self._get_session() as session:
            stmt = select(Profile).where(Profile.google_id == google_id)
            return session.scalar(stmt)

    def get_profile_by_username(self, username: str) -> Optional[Profile]:
        """Get a profile by username."""
        with self._get_session() as session:
            stmt = select(Profile).where(Profile.username == username)
            return session.scalar(stmt)

    def update_profile(self, profile_id: str, **kwargs) -> Optional[Profile]:
        """Update a profile's attributes."""
        with self._get_session() as session:
            profile = session.get(Profile, profile_id)
            if not profile:
                return None

            for key, value in kwargs.items():
                if hasattr(profile, key):
                    if isinstance(value, datetime):
                        value = as_utc(value)
                    setattr(profile, key, value)

            profile.updated_at = utcnow()
            session.commit()
            session.refresh(profile)
            return profile

    def delete_profile(self, profile_id: str) -> bool:
        """Delete a profile and everything it owns."""
        with self._get_session() as session:
            profile = session.get(Profile, profile_id)
            if not profile:
                return False

            session.delete(profile)
            session.commit()
            logger.info(f"Deleted profile: {profile_id}")
            return True

    # --- Podcast Operations ---

    def create_podcast(
        self,
        author_id: str,
        title: str,
        description: str,
        cover_image_url: Optional[str] = None,
        **kwargs,
    ) -> Podcast:
        """
        Create and persist a new podcast.

        Returns:
            Podcast: The newly created Podcast with its ID and author populated.
        """
        with self._get_session() as session:
            now = utcnow()
            for key in ("created_at", "updated_at"):
                kwargs[key] = as_utc(kwargs.get(key)) or now
            podcast = Podcast(
                author_id=author_id,
                title=title,
                description=description,
                cover_image_url=cover_image_url,
                **kwargs,
            )
            session.add(podcast)
            session.commit()
            podcast_id = podcast.id
            logger.info(f"Created podcast: {title} ({podcast_id})")

        return self.get_podcast(podcast_id)

    def get_podcast(self, podcast_id: str) -> Optional[Podcast]:
        """Retrieve a podcast by its primary key, with its author loaded."""
        with self._get_session() as session:
            stmt = (
                select(Podcast)
                .options(joinedload(Podcast.author))
                .where(Podcast.id == podcast_id)
            )
            return session.scalar(stmt)

    def list_podcasts(self, limit: Optional[int] = None) -> List[Podcast]:
        """List all podcasts newest first, with authors loaded."""
        with self._get_session() as session:
            stmt = (
                select(Podcast)
                .options(joinedload(Podcast.author))
                .order_by(Podcast.created_at.desc())
            )
            if limit:
                stmt = stmt.limit(limit)
            return list(session.scalars(stmt).all())

    def list_podcasts_by_author(self, author_id: str) -> List[Podcast]:
        """List an author's podcasts newest first."""
        with self._get_session() as session:
            stmt = (
                select(Podcast)
                .options(joinedload(Podcast.author))
                .where(Podcast.author_id == author_id)
                .order_by(Podcast.created_at.desc())
            )
            return list(session.scalars(stmt).all())

    def update_podcast(self, podcast_id: str, author_id: str, **kwargs) -> Optional[Podcast]:
        """
        Update editable fields of an author's podcast.

        Fields outside title, description and cover_image_url are ignored.
        """
        with self._get_session() as session:
            podcast = session.scalar(
                select(Podcast).where(
                    Podcast.id == podcast_id,
                    Podcast.author_id == author_id,
                )
            )
            if not podcast:
                return None

            for key, value in kwargs.items():
                if key in EDITABLE_PODCAST_FIELDS:
                    setattr(podcast, key, value)

            podcast.updated_at = utcnow()
            session.commit()

        return self.get_podcast(podcast_id)

    def delete_podcast(self, podcast_id: str, author_id: str) -> bool:
        """Delete an author's podcast with its episodes, favorites and subscriptions."""
        with self._get_session() as session:
            podcast = session.scalar(
                select(Podcast).where(
                    Podcast.id == podcast_id,
                    Podcast.author_id == author_id,
                )
            )
            if not podcast:
                logger.warning(
                    f"Podcast {podcast_id} not deleted: missing or not owned by {author_id}"
                )
                return False

            session.delete(podcast)
            session.commit()
            logger.info(f"Deleted podcast: {podcast_id}")
            return True

    # --- Episode Operations ---

    def create_episode(
        self,
        podcast_id: str,
        title: str,
        description: str,
        audio_url: str,
        duration: int,
        published_at: Optional[datetime] = None,
    ) -> Episode:
        """Create and persist a new episode."""
        with self._get_session() as session:
            now = utcnow()
            episode = Episode(
                podcast_id=podcast_id,
                title=title,
                description=description,
                audio_url=audio_url,
                duration=duration,
                published_at=as_utc(published_at) or now,
                created_at=now,
            )
            session.add(episode)
            session.commit()
            session.refresh(episode)
            logger.info(f"Created episode: {title} ({episode.id})")
            return episode

    def get_episode(self, episode_id: str) -> Optional[Episode]:
        """Retrieve an episode with its podcast and author loaded."""
        with self._get_session() as session:
            stmt = (
                select(Episode)
                .options(joinedload(Episode.podcast).joinedload(Podcast.author))
                .where(Episode.id == episode_id)
            )
            return session.scalar(stmt)

    def list_episodes(self, podcast_id: str) -> List[Episode]:
        """List a podcast's episodes, most recently published first."""
        with self._get_session() as session:
            stmt = (
                select(Episode)
                .where(Episode.podcast_id == podcast_id)
                .order_by(Episode.published_at.desc())
            )
            return list(session.scalars(stmt).all())

    def delete_episode(self, episode_id: str, author_id: str) -> bool:
        """Delete an episode if its podcast belongs to `author_id`."""
        with self._get_session() as session:
            episode = session.scalar(
                select(Episode)
                .join(Podcast, Episode.podcast_id == Podcast.id)
                .where(
                    Episode.id == episode_id,
                    Podcast.author_id == author_id,
                )
            )
            if not episode:
                logger.warning(
                    f"Episode {episode_id} not deleted: missing or not owned by {author_id}"
                )
                return False

            session.delete(episode)
            session.commit()
            logger.info(f"Deleted episode: {episode_id}")
            return True

    # --- Subscription Operations ---

    def subscribe(self, user_id: str, podcast_id: str) -> Subscription:
        """Subscribe a user to a podcast."""
        with self._get_session() as session:
            # Check if already subscribed
            existing = session.scalar(
                select(Subscription).where(
                    Subscription.user_id == user_id,
                    Subscription.podcast_id == podcast_id,
                )
            )
            if existing:
                return existing

            subscription = Subscription(
                user_id=user_id,
                podcast_id=podcast_id,
                created_at=utcnow(),
            )
            session.add(subscription)
            session.commit()
            session.refresh(subscription)
            logger.info(f"User {user_id} subscribed to podcast {podcast_id}")
            return subscription

    def unsubscribe(self, user_id: str, podcast_id: str) -> bool:
        """Unsubscribe a user from a podcast."""
        with self._get_session() as session:
            subscription = session.scalar(
                select(Subscription).where(
                    Subscription.user_id == user_id,
                    Subscription.podcast_id == podcast_id,
                )
            )
            if not subscription:
                return False

            session.delete(subscription)
            session.commit()
            logger.info(f"User {user_id} unsubscribed from podcast {podcast_id}")
            return True

    def is_subscribed(self, user_id: str, podcast_id: str) -> bool:
        """Check if a user is subscribed to a podcast."""
        with self._get_session() as session:
            subscription = session.scalar(
                select(Subscription.id).where(
                    Subscription.user_id == user_id,
                    Subscription.podcast_id == podcast_id,
                )
            )
            return subscription is not None

    def list_subscriptions(self, user_id: str) -> List[Subscription]:
        """List a user's subscriptions newest first, with podcasts loaded."""
        with self._get_session() as session:
            stmt = (
                select(Subscription)
                .options(joinedload(Subscription.podcast).joinedload(Podcast.author))
                .where(Subscription.user_id == user_id)
                .order_by(Subscription.created_at.desc())
            )
            return list(session.scalars(stmt).all())

    # --- Favorite Operations ---

    def add_favorite(self, user_id: str, episode_id: str) -> Favorite:
        """Mark an episode as a user's favorite."""
        with self._get_session() as session:
            existing = session.scalar(
                select(Favorite).where(
                    Favorite.user_id == user_id,
                    Favorite.episode_id == episode_id,
                )
            )
            if existing:
                return existing

            favorite = Favorite(
                user_id=user_id,
                episode_id=episode_id,
                created_at=utcnow(),
            )
            session.add(favorite)
            session.commit()
            session.refresh(favorite)
            logger.info(f"User {user_id} favorited episode {episode_id}")
            return favorite

    def remove_favorite(self, user_id: str, episode_id: str) -> bool:
        """Remove an episode from a user's favorites."""
        with self._get_session() as session:
            favorite = session.scalar(
                select(Favorite).where(
                    Favorite.user_id == user_id,
                    Favorite.episode_id == episode_id,
                )
            )
            if not favorite:
                return False

            session.delete(favorite)
            session.commit()
            logger.info(f"User {user_id} unfavorited episode {episode_id}")
            return True

    def is_favorite(self, user_id: str, episode_id: str) -> bool:
        """Check if a user has favorited an episode."""
        with self._get_session() as session:
            favorite = session.scalar(
                select(Favorite.id).where(
                    Favorite.user_id == user_id,
                    Favorite.episode_id == episode_id,
                )
            )
            return favorite is not None

    def list_favorites(self, user_id: str) -> List[Favorite]:
        """List a user's favorites newest first, with episodes and podcasts loaded."""
        with self._get_session() as session:
            stmt = (
                select(Favorite)
                .options(
                    joinedload(Favorite.episode)
                    .joinedload(Episode.podcast)
                    .joinedload(Podcast.author)
                )
                .where(Favorite.user_id == user_id)
                .order_by(Favorite.created_at.desc())
            )
            return list(session.scalars(stmt).all())

    # --- Schema / Connection Management ---

    def create_tables(self) -> None:
        """Create any missing tables. Production schemas are managed by Alembic."""
        Base.metadata.create_all(self.engine)

    def close(self) -> None:
        """
        Dispose the SQLAlchemy engine and release database connections and resources.
        """
        self.engine.dispose()
        logger.info("Database connection closed")


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    """Turn on foreign key enforcement for each new SQLite connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
