"""
Shared helpers for the web routes: id validation, upload adaptation and
conversion of ORM rows into response models.
"""

import os
import uuid
from typing import Optional

from fastapi import HTTPException, UploadFile

from podcast_hub.db.models import Episode, Favorite, Podcast, Subscription
from podcast_hub.services.uploads import UploadedFile
from podcast_hub.web.models import (
    EpisodeOut,
    FavoriteOut,
    PodcastOut,
    SubscriptionOut,
)


def is_valid_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
        return True
    except (ValueError, AttributeError, TypeError):
        return False


def validate_id(value: str, name: str) -> str:
    """
    Validate that an id path parameter is a UUID.

    Raises:
        HTTPException: 422 if the value is not a valid UUID.
    """
    if not is_valid_uuid(value):
        raise HTTPException(
            status_code=422,
            detail=f"Invalid {name}: must be a valid UUID"
        )
    return value


def to_uploaded_file(upload: Optional[UploadFile]) -> Optional[UploadedFile]:
    """Adapt a FastAPI upload; returns None when no file was chosen."""
    if upload is None or not upload.filename:
        return None

    size = upload.size
    if size is None:
        upload.file.seek(0, os.SEEK_END)
        size = upload.file.tell()
    upload.file.seek(0)

    return UploadedFile(
        filename=upload.filename,
        content_type=upload.content_type or "",
        size=size,
        fileobj=upload.file,
    )


def podcast_out(podcast: Podcast) -> PodcastOut:
    return PodcastOut.model_validate(podcast)


def episode_out(episode: Episode) -> EpisodeOut:
    return EpisodeOut.model_validate(episode)


def subscription_out(subscription: Subscription) -> SubscriptionOut:
    return SubscriptionOut(
        id=subscription.id,
        created_at=subscription.created_at,
        podcast=podcast_out(subscription.podcast),
    )


def favorite_out(favorite: Favorite) -> FavoriteOut:
    return FavoriteOut(
        id=favorite.id,
        created_at=favorite.created_at,
        episode=episode_out(favorite.episode),
        podcast=podcast_out(favorite.episode.podcast),
    )
