"""API routes for browsing the catalog.

Provides endpoints for:
- Discovering all podcasts
- Podcast detail with episodes and the viewer's subscription state
- Episode detail with its podcast and the viewer's favorite state
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from podcast_hub.web.auth import get_optional_user
from podcast_hub.web.helpers import episode_out, podcast_out, validate_id
from podcast_hub.web.models import EpisodeDetailResponse, PodcastDetailResponse, PodcastOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/podcasts", response_model=List[PodcastOut])
async def list_podcasts(
    request: Request,
    limit: Optional[int] = Query(default=None, ge=1, le=500),
):
    """
    List every podcast, newest first, with author details embedded.
    """
    repository = request.app.state.repository
    try:
        podcasts = await asyncio.to_thread(repository.list_podcasts, limit)
    except Exception as e:
        logger.exception("Error loading podcasts")
        raise HTTPException(status_code=500, detail="Failed to load podcasts") from e

    return [podcast_out(p) for p in podcasts]


@router.get("/podcasts/{podcast_id}", response_model=PodcastDetailResponse)
async def get_podcast_detail(
    request: Request,
    podcast_id: str,
    current_user: Optional[dict] = Depends(get_optional_user),
):
    """
    Get a podcast with its episodes, most recently published first.

    `is_subscribed` reflects the signed-in viewer and is false for anonymous visitors.
    """
    podcast_id = validate_id(podcast_id, "podcast_id")
    repository = request.app.state.repository

    try:
        podcast = await asyncio.to_thread(repository.get_podcast, podcast_id)
        if not podcast:
            raise HTTPException(status_code=404, detail="Podcast not found")
        episodes = await asyncio.to_thread(repository.list_episodes, podcast_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error loading podcast {podcast_id}")
        raise HTTPException(status_code=500, detail="Failed to load podcast details") from e

    is_subscribed = False
    if current_user:
        try:
            is_subscribed = await asyncio.to_thread(
                repository.is_subscribed, current_user["sub"], podcast_id
            )
        except Exception as e:
            logger.warning(f"Could not check subscription for podcast {podcast_id}: {e}")

    return PodcastDetailResponse(
        podcast=podcast_out(podcast),
        episodes=[episode_out(e) for e in episodes],
        is_subscribed=is_subscribed,
    )


@router.get("/episodes/{episode_id}", response_model=EpisodeDetailResponse)
async def get_episode_detail(
    request: Request,
    episode_id: str,
    current_user: Optional[dict] = Depends(get_optional_user),
):
    """
    Get an episode with its podcast and author.

    A failed favorite check is logged and reported as not favorited.
    """
    episode_id = validate_id(episode_id, "episode_id")
    repository = request.app.state.repository

    try:
        episode = await asyncio.to_thread(repository.get_episode, episode_id)
    except Exception as e:
        logger.exception(f"Error loading episode {episode_id}")
        raise HTTPException(status_code=500, detail="Failed to load episode details") from e

    if not episode:
        raise HTTPException(status_code=404, detail="Episode not found")

    is_favorite = False
    if current_user:
        try:
            is_favorite = await asyncio.to_thread(
                repository.is_favorite, current_user["sub"], episode_id
            )
        except Exception as e:
            logger.warning(f"Could not check favorite for episode {episode_id}: {e}")

    return EpisodeDetailResponse(
        episode=episode_out(episode),
        podcast=podcast_out(episode.podcast),
        is_favorite=is_favorite,
    )
