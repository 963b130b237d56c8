"""
Publishing workflows for creators: creating podcasts and episodes.

Each workflow validates the upload, stores the blob, resolves its public URL
and inserts the row that references it. Any failure is raised as a
PublishError whose message is suitable for showing to the user. A blob that
was stored before a later step failed is left in place.
"""

import logging
from datetime import datetime, time, timezone
from datetime import date as date_type
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from podcast_hub.db.models import Episode, Podcast
from podcast_hub.db.repository import PodcastHubRepositoryInterface
from podcast_hub.services.uploads import (
    AUDIO_MAX_BYTES,
    COVER_MAX_BYTES,
    UploadedFile,
    UploadValidationError,
    build_object_path,
    probe_duration,
    validate_audio_file,
    validate_cover_image,
)
from podcast_hub.storage import (
    AUDIO_BUCKET,
    COVER_BUCKET,
    BucketNotFoundError,
    StorageError,
    StorageProvider,
)

logger = logging.getLogger(__name__)

MISSING_COVER_BUCKET_MESSAGE = (
    f'Storage bucket "{COVER_BUCKET}" not found. '
    "Please contact the administrator to set up storage."
)


class PublishError(Exception):
    """A publishing step failed. The message is shown to the user."""


def _published_at(value) -> datetime:
    """Normalise a publication date to a UTC datetime at midnight."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date_type):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    raise PublishError("Publication date is required")


def create_podcast(
    repository: PodcastHubRepositoryInterface,
    storage: StorageProvider,
    author_id: str,
    title: str,
    description: str,
    cover: Optional[UploadedFile] = None,
    cover_max_bytes: int = COVER_MAX_BYTES,
) -> Podcast:
    """
    Create a podcast owned by `author_id`, uploading its cover image first if one is given.

    Args:
        repository: Data store.
        storage: Object storage holding the cover bucket.
        author_id: Profile ID of the creator.
        title: Validated podcast title.
        description: Validated podcast description.
        cover: Optional cover image upload.
        cover_max_bytes: Size ceiling for the cover image.

    Returns:
        Podcast: The inserted podcast.

    Raises:
        PublishError: If validation, upload or insert fails.
    """
    cover_image_url = None

    if cover is not None and cover.filename:
        try:
            validate_cover_image(cover, max_bytes=cover_max_bytes)
        except UploadValidationError as e:
            raise PublishError(str(e)) from e

        try:
            bucket_found = storage.bucket_exists(COVER_BUCKET)
        except StorageError as e:
            logger.exception("Error checking cover bucket")
            raise PublishError(f"Image upload failed: {e}") from e
        if not bucket_found:
            logger.error(f"Cover bucket {COVER_BUCKET} is missing")
            raise PublishError(MISSING_COVER_BUCKET_MESSAGE)

        path = build_object_path(author_id, cover.filename)
        try:
            cover.rewind()
            storage.upload(COVER_BUCKET, path, cover.fileobj, cover.content_type, upsert=True)
            cover_image_url = storage.get_public_url(COVER_BUCKET, path)
        except BucketNotFoundError as e:
            raise PublishError(MISSING_COVER_BUCKET_MESSAGE) from e
        except StorageError as e:
            logger.exception(f"Error uploading cover image {path}")
            raise PublishError(f"Image upload failed: {e}") from e

    try:
        podcast = repository.create_podcast(
            author_id=author_id,
            title=title,
            description=description,
            cover_image_url=cover_image_url,
        )
    except SQLAlchemyError as e:
        logger.exception("Error creating podcast")
        raise PublishError(f"Failed to create podcast: {e}") from e

    logger.info(f"Author {author_id} created podcast {podcast.id}")
    return podcast


def create_episode(
    repository: PodcastHubRepositoryInterface,
    storage: StorageProvider,
    podcast: Podcast,
    title: str,
    description: str,
    published_at,
    audio: Optional[UploadedFile],
    audio_max_bytes: int = AUDIO_MAX_BYTES,
) -> Episode:
    """
    Create an episode for `podcast` from an uploaded audio file.

    The duration comes from the audio's metadata, or from its size when the
    metadata cannot be read. The audio bucket is created if it is missing.

    Args:
        repository: Data store.
        storage: Object storage holding the audio bucket.
        podcast: The owning podcast (ownership is checked by the caller).
        title: Validated episode title.
        description: Validated episode description.
        published_at: Publication date or datetime.
        audio: The uploaded audio file.
        audio_max_bytes: Size ceiling for the audio file.

    Returns:
        Episode: The inserted episode.

    Raises:
        PublishError: If validation, upload or insert fails.
    """
    try:
        validate_audio_file(audio, max_bytes=audio_max_bytes)
    except UploadValidationError as e:
        raise PublishError(str(e)) from e

    published = _published_at(published_at)
    duration = probe_duration(audio)

    path = build_object_path(podcast.id, audio.filename)
    try:
        storage.ensure_bucket(AUDIO_BUCKET, public=True)
        audio.rewind()
        storage.upload(AUDIO_BUCKET, path, audio.fileobj, audio.content_type, upsert=False)
        audio_url = storage.get_public_url(AUDIO_BUCKET, path)
    except StorageError as e:
        logger.exception(f"Error uploading episode audio {path}")
        raise PublishError(f"Audio upload failed: {e}") from e

    try:
        episode = repository.create_episode(
            podcast_id=podcast.id,
            title=title,
            description=description,
            audio_url=audio_url,
            duration=duration,
            published_at=published,
        )
    except SQLAlchemyError as e:
        logger.exception("Error creating episode")
        raise PublishError(f"Failed to create episode: {e}") from e

    logger.info(f"Created episode {episode.id} ({duration}s) for podcast {podcast.id}")
    return episode
