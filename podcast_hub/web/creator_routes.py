"""API routes for the creator dashboard.

Provides endpoints for:
- Listing, creating, editing and deleting the creator's podcasts
- Listing and creating episodes of an owned podcast
- Deleting episodes of an owned podcast

Any signed-in user may publish. Mutations only ever touch rows the current
user owns; someone else's podcast behaves as if it did not exist for deletes.
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from pydantic import ValidationError

from podcast_hub.services.publishing import PublishError, create_episode, create_podcast
from podcast_hub.web.auth import get_current_user
from podcast_hub.web.helpers import episode_out, podcast_out, to_uploaded_file, validate_id
from podcast_hub.web.models import (
    DeleteResponse,
    EpisodeForm,
    EpisodeOut,
    ManagedPodcastResponse,
    PodcastForm,
    PodcastOut,
    PodcastUpdateRequest,
    form_error_message,
)
from podcast_hub.web.rate_limit import limiter, upload_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


async def get_owned_podcast(repository, podcast_id: str, user_id: str):
    """
    Load a podcast and check that `user_id` owns it.

    Raises:
        HTTPException: 404 if missing, 403 if owned by another author.
    """
    podcast = await asyncio.to_thread(repository.get_podcast, podcast_id)
    if not podcast:
        raise HTTPException(status_code=404, detail="Podcast not found")
    if podcast.author_id != user_id:
        raise HTTPException(status_code=403, detail="You do not own this podcast")
    return podcast


# --- Podcasts ---


@router.get("/podcasts", response_model=List[PodcastOut])
async def list_my_podcasts(
    request: Request,
    current_user: dict = Depends(get_current_user),
):
    """List the current user's podcasts, newest first."""
    repository = request.app.state.repository
    try:
        podcasts = await asyncio.to_thread(
            repository.list_podcasts_by_author, current_user["sub"]
        )
    except Exception as e:
        logger.exception("Error loading dashboard podcasts")
        raise HTTPException(status_code=500, detail="Failed to load your podcasts") from e

    return [podcast_out(p) for p in podcasts]


@router.post("/podcasts", response_model=PodcastOut, status_code=201)
@limiter.limit(upload_rate_limit)
async def create_my_podcast(
    request: Request,
    title: str = Form(default=""),
    description: str = Form(default=""),
    cover_image: Optional[UploadFile] = File(default=None),
    current_user: dict = Depends(get_current_user),
):
    """
    Create a podcast from a multipart form with an optional cover image.

    Returns 400 with a user-facing message when validation, upload or insert fails.
    """
    config = request.app.state.config
    repository = request.app.state.repository
    storage = request.app.state.storage

    try:
        form = PodcastForm(title=title, description=description)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=form_error_message(e)) from e

    try:
        podcast = await asyncio.to_thread(
            create_podcast,
            repository,
            storage,
            current_user["sub"],
            form.title,
            form.description,
            to_uploaded_file(cover_image),
            config.COVER_MAX_BYTES,
        )
    except PublishError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return podcast_out(podcast)


@router.patch("/podcasts/{podcast_id}", response_model=PodcastOut)
async def update_my_podcast(
    request: Request,
    podcast_id: str,
    body: PodcastUpdateRequest,
    current_user: dict = Depends(get_current_user),
):
    """Update the title or description of an owned podcast."""
    podcast_id = validate_id(podcast_id, "podcast_id")
    repository = request.app.state.repository
    user_id = current_user["sub"]

    await get_owned_podcast(repository, podcast_id, user_id)

    fields = body.model_dump(exclude_none=True)
    try:
        podcast = await asyncio.to_thread(
            repository.update_podcast, podcast_id, user_id, **fields
        )
    except Exception as e:
        logger.exception(f"Error updating podcast {podcast_id}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    if not podcast:
        raise HTTPException(status_code=404, detail="Podcast not found")
    return podcast_out(podcast)


@router.delete("/podcasts/{podcast_id}", response_model=DeleteResponse)
async def delete_my_podcast(
    request: Request,
    podcast_id: str,
    current_user: dict = Depends(get_current_user),
):
    """
    Delete an owned podcast along with its episodes.

    A podcast owned by someone else is left untouched and reported as not found.
    """
    podcast_id = validate_id(podcast_id, "podcast_id")
    repository = request.app.state.repository

    try:
        deleted = await asyncio.to_thread(
            repository.delete_podcast, podcast_id, current_user["sub"]
        )
    except Exception as e:
        logger.exception(f"Error deleting podcast {podcast_id}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    if not deleted:
        raise HTTPException(status_code=404, detail="Podcast not found")
    return DeleteResponse(id=podcast_id)


# --- Episodes ---


@router.get("/podcasts/{podcast_id}/episodes", response_model=ManagedPodcastResponse)
async def list_my_episodes(
    request: Request,
    podcast_id: str,
    current_user: dict = Depends(get_current_user),
):
    """List the episodes of an owned podcast, most recently published first."""
    podcast_id = validate_id(podcast_id, "podcast_id")
    repository = request.app.state.repository

    podcast = await get_owned_podcast(repository, podcast_id, current_user["sub"])
    try:
        episodes = await asyncio.to_thread(repository.list_episodes, podcast_id)
    except Exception as e:
        logger.exception(f"Error loading episodes for podcast {podcast_id}")
        raise HTTPException(status_code=500, detail="Failed to load podcast details") from e

    return ManagedPodcastResponse(
        podcast=podcast_out(podcast),
        episodes=[episode_out(e) for e in episodes],
    )


@router.post("/podcasts/{podcast_id}/episodes", response_model=EpisodeOut, status_code=201)
@limiter.limit(upload_rate_limit)
async def create_my_episode(
    request: Request,
    podcast_id: str,
    title: str = Form(default=""),
    description: str = Form(default=""),
    published_at: str = Form(default=""),
    audio_file: Optional[UploadFile] = File(default=None),
    current_user: dict = Depends(get_current_user),
):
    """
    Create an episode for an owned podcast from a multipart form.

    The audio file is required; its duration is read from the file's metadata
    or estimated from its size.
    """
    podcast_id = validate_id(podcast_id, "podcast_id")
    config = request.app.state.config
    repository = request.app.state.repository
    storage = request.app.state.storage

    podcast = await get_owned_podcast(repository, podcast_id, current_user["sub"])

    try:
        form = EpisodeForm(title=title, description=description, published_at=published_at)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=form_error_message(e)) from e

    try:
        episode = await asyncio.to_thread(
            create_episode,
            repository,
            storage,
            podcast,
            form.title,
            form.description,
            form.published_at,
            to_uploaded_file(audio_file),
            config.AUDIO_MAX_BYTES,
        )
    except PublishError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return episode_out(episode)


@router.delete("/episodes/{episode_id}", response_model=DeleteResponse)
async def delete_my_episode(
    request: Request,
    episode_id: str,
    current_user: dict = Depends(get_current_user),
):
    """Delete an episode of an owned podcast."""
    episode_id = validate_id(episode_id, "episode_id")
    repository = request.app.state.repository

    try:
        deleted = await asyncio.to_thread(
            repository.delete_episode, episode_id, current_user["sub"]
        )
    except Exception as e:
        logger.exception(f"Error deleting episode {episode_id}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    if not deleted:
        raise HTTPException(status_code=404, detail="Episode not found")
    return DeleteResponse(id=episode_id)
