"""
Pydantic models for web form validation and API responses.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

TITLE_MIN_LENGTH = 3
DESCRIPTION_MIN_LENGTH = 10


def _check_title(value: str) -> str:
    value = (value or "").strip()
    if len(value) < TITLE_MIN_LENGTH:
        raise ValueError(f"Title must be at least {TITLE_MIN_LENGTH} characters")
    return value


def _check_description(value: str) -> str:
    value = (value or "").strip()
    if len(value) < DESCRIPTION_MIN_LENGTH:
        raise ValueError(
            f"Description must be at least {DESCRIPTION_MIN_LENGTH} characters"
        )
    return value


def form_error_message(error: ValidationError) -> str:
    """
    Reduce a validation error to the first user-facing message.

    Messages raised from our validators are returned without pydantic's
    "Value error, " prefix.
    """
    first = error.errors()[0]
    message = first.get("msg", "Invalid input")
    prefix = "Value error, "
    if message.startswith(prefix):
        message = message[len(prefix):]
    return message


# --- Form Models ---


class PodcastForm(BaseModel):
    """Fields of the create-podcast form."""
    title: str = Field(default="", max_length=512, description="Podcast title")
    description: str = Field(default="", description="Podcast description")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _check_title(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        return _check_description(v)


class PodcastUpdateRequest(BaseModel):
    """Partial update of a podcast's text fields."""
    title: Optional[str] = Field(default=None, max_length=512)
    description: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _check_title(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _check_description(v)


class EpisodeForm(BaseModel):
    """Fields of the create-episode form."""
    title: str = Field(default="", max_length=512, description="Episode title")
    description: str = Field(default="", description="Episode description")
    published_at: Optional[date] = Field(default=None, description="Publication date")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _check_title(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        return _check_description(v)

    @field_validator("published_at", mode="before")
    @classmethod
    def validate_published_at(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("Publication date is required")
        return v


# --- Response Models ---


class AuthorOut(BaseModel):
    """Public fields of a podcast's author."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    avatar_url: Optional[str] = None


class PodcastOut(BaseModel):
    """A podcast with its author embedded."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    cover_image_url: Optional[str] = None
    author_id: str
    created_at: datetime
    updated_at: datetime
    author: Optional[AuthorOut] = None


class EpisodeOut(BaseModel):
    """An episode without its parent podcast."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    podcast_id: str
    title: str
    description: str
    audio_url: str
    duration: int = Field(..., description="Length in seconds")
    published_at: datetime
    created_at: datetime


class PodcastDetailResponse(BaseModel):
    """Podcast detail view: the podcast, its episodes and the viewer's subscription."""
    podcast: PodcastOut
    episodes: List[EpisodeOut]
    is_subscribed: bool = False


class ManagedPodcastResponse(BaseModel):
    """Creator view of one of their podcasts and its episodes."""
    podcast: PodcastOut
    episodes: List[EpisodeOut]


class EpisodeDetailResponse(BaseModel):
    """Episode detail view: the episode, its podcast and the viewer's favorite flag."""
    episode: EpisodeOut
    podcast: PodcastOut
    is_favorite: bool = False


class SubscriptionOut(BaseModel):
    """One of the user's subscriptions."""
    id: str
    created_at: datetime
    podcast: PodcastOut


class FavoriteOut(BaseModel):
    """One of the user's favorite episodes."""
    id: str
    created_at: datetime
    episode: EpisodeOut
    podcast: PodcastOut


class SubscriptionStatusResponse(BaseModel):
    podcast_id: str
    is_subscribed: bool


class FavoriteStatusResponse(BaseModel):
    episode_id: str
    is_favorite: bool


class DeleteResponse(BaseModel):
    id: str
    deleted: bool = True


class CurrentUserResponse(BaseModel):
    """The signed-in user's profile."""
    id: str
    email: str
    username: str
    avatar_url: Optional[str] = None
    is_creator: bool = False
