"""SQLAlchemy ORM models for profiles, podcasts, episodes and listener relationships."""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form every DateTime column holds."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Convert an aware datetime to naive UTC for storage.

    Naive values are taken to be UTC already and returned unchanged.

    >>> as_utc(datetime(2025, 5, 1, 12, tzinfo=timezone.utc))
    datetime.datetime(2025, 5, 1, 12, 0)
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class Profile(Base):
    """User profile for Google OAuth authenticated users.

    One profile exists per authenticated user. A profile may author podcasts
    and holds the user's subscriptions and favorites.
    """

    __tablename__ = "profiles"

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )

    # Google OAuth identifiers
    google_id: Mapped[Optional[str]] = mapped_column(String(128), unique=True)
    email: Mapped[str] = mapped_column(String(256), unique=True, nullable=False)

    # Public profile
    username: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(2048))

    # Gates the creator navigation link only
    is_creator: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0"
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # Relationships
    podcasts: Mapped[List["Podcast"]] = relationship(
        "Podcast", back_populates="author", cascade="all, delete-orphan"
    )
    subscriptions: Mapped[List["Subscription"]] = relationship(
        "Subscription", back_populates="user", cascade="all, delete-orphan"
    )
    favorites: Mapped[List["Favorite"]] = relationship(
        "Favorite", back_populates="user", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_profiles_google_id", "google_id"),
        Index("ix_profiles_email", "email"),
    )

    def __repr__(self) -> str:
        """Return a concise representation of the Profile instance."""
        return f"<Profile(id={self.id}, username={self.username!r})>"


class Podcast(Base):
    """Podcast (show) model.

    Owned by one author profile and containing zero or more episodes.
    """

    __tablename__ = "podcasts"

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    author_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )

    title: Mapped[str] = mapped_column(String(512), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    cover_image_url: Mapped[Optional[str]] = mapped_column(String(2048))

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    # Relationships
    author: Mapped["Profile"] = relationship("Profile", back_populates="podcasts")
    episodes: Mapped[List["Episode"]] = relationship(
        "Episode", back_populates="podcast", cascade="all, delete-orphan"
    )
    subscriptions: Mapped[List["Subscription"]] = relationship(
        "Subscription", back_populates="podcast", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_podcasts_author_id", "author_id"),
        Index("ix_podcasts_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        """
        Provide a concise developer-facing string representation of the Podcast.

        Returns:
            str: A string in the form "<Podcast(id=<id>, title='<title>')>".
        """
        return f"<Podcast(id={self.id}, title={self.title!r})>"


class Episode(Base):
    """Episode model.

    One audio item belonging to a podcast. The audio itself lives in object
    storage; only its public URL and derived duration are stored here.
    """

    __tablename__ = "episodes"

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    podcast_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("podcasts.id", ondelete="CASCADE"), nullable=False
    )

    title: Mapped[str] = mapped_column(String(512), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    audio_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)  # seconds
    published_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    # Relationships
    podcast: Mapped["Podcast"] = relationship("Podcast", back_populates="episodes")
    favorites: Mapped[List["Favorite"]] = relationship(
        "Favorite", back_populates="episode", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_episodes_podcast_id", "podcast_id"),
        Index("ix_episodes_published_at", "published_at"),
    )

    def __repr__(self) -> str:
        """Return a concise representation of the Episode instance."""
        return f"<Episode(id={self.id}, title={self.title!r})>"


class Subscription(Base):
    """A listener's standing interest in a podcast."""

    __tablename__ = "subscriptions"

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )

    # Foreign keys
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    podcast_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("podcasts.id", ondelete="CASCADE"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    # Relationships
    user: Mapped["Profile"] = relationship("Profile", back_populates="subscriptions")
    podcast: Mapped["Podcast"] = relationship("Podcast", back_populates="subscriptions")

    __table_args__ = (
        UniqueConstraint("user_id", "podcast_id", name="uq_user_podcast_subscription"),
        Index("ix_subscriptions_user_id", "user_id"),
        Index("ix_subscriptions_podcast_id", "podcast_id"),
    )

    def __repr__(self) -> str:
        """Return a concise representation of the Subscription instance."""
        return f"<Subscription(user_id={self.user_id}, podcast_id={self.podcast_id})>"


class Favorite(Base):
    """A listener's marked interest in a specific episode."""

    __tablename__ = "favorites"

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )

    # Foreign keys
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    episode_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("episodes.id", ondelete="CASCADE"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    # Relationships
    user: Mapped["Profile"] = relationship("Profile", back_populates="favorites")
    episode: Mapped["Episode"] = relationship("Episode", back_populates="favorites")

    __table_args__ = (
        UniqueConstraint("user_id", "episode_id", name="uq_user_episode_favorite"),
        Index("ix_favorites_user_id", "user_id"),
        Index("ix_favorites_episode_id", "episode_id"),
    )

    def __repr__(self) -> str:
        """Return a concise representation of the Favorite instance."""
        return f"<Favorite(user_id={self.user_id}, episode_id={self.episode_id})>"
