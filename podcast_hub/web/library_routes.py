"""API routes for a listener's library: subscriptions and favorites.

Provides endpoints for:
- Subscribing to and unsubscribing from podcasts
- Favoriting and unfavoriting episodes
- Listing the user's subscriptions and favorites

All toggles are idempotent: repeating a request leaves the same state.
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from podcast_hub.web.auth import get_current_user
from podcast_hub.web.helpers import favorite_out, subscription_out, validate_id
from podcast_hub.web.models import (
    FavoriteOut,
    FavoriteStatusResponse,
    SubscriptionOut,
    SubscriptionStatusResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["library"])


async def _require_podcast(repository, podcast_id: str):
    podcast = await asyncio.to_thread(repository.get_podcast, podcast_id)
    if not podcast:
        raise HTTPException(status_code=404, detail="Podcast not found")
    return podcast


async def _require_episode(repository, episode_id: str):
    episode = await asyncio.to_thread(repository.get_episode, episode_id)
    if not episode:
        raise HTTPException(status_code=404, detail="Episode not found")
    return episode


# --- Subscriptions ---


@router.post("/podcasts/{podcast_id}/subscribe", response_model=SubscriptionStatusResponse)
async def subscribe_to_podcast(
    request: Request,
    podcast_id: str,
    current_user: dict = Depends(get_current_user),
):
    """Subscribe the current user to a podcast."""
    podcast_id = validate_id(podcast_id, "podcast_id")
    repository = request.app.state.repository
    await _require_podcast(repository, podcast_id)

    try:
        await asyncio.to_thread(repository.subscribe, current_user["sub"], podcast_id)
    except Exception as e:
        logger.exception(f"Error subscribing to podcast {podcast_id}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return SubscriptionStatusResponse(podcast_id=podcast_id, is_subscribed=True)


@router.delete("/podcasts/{podcast_id}/subscribe", response_model=SubscriptionStatusResponse)
async def unsubscribe_from_podcast(
    request: Request,
    podcast_id: str,
    current_user: dict = Depends(get_current_user),
):
    """Unsubscribe the current user from a podcast."""
    podcast_id = validate_id(podcast_id, "podcast_id")
    repository = request.app.state.repository
    await _require_podcast(repository, podcast_id)

    try:
        await asyncio.to_thread(repository.unsubscribe, current_user["sub"], podcast_id)
    except Exception as e:
        logger.exception(f"Error unsubscribing from podcast {podcast_id}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return SubscriptionStatusResponse(podcast_id=podcast_id, is_subscribed=False)


@router.get("/subscriptions", response_model=List[SubscriptionOut])
async def list_subscriptions(
    request: Request,
    current_user: dict = Depends(get_current_user),
):
    """List the current user's subscriptions, newest first."""
    repository = request.app.state.repository
    try:
        subscriptions = await asyncio.to_thread(
            repository.list_subscriptions, current_user["sub"]
        )
    except Exception as e:
        logger.exception("Error loading subscriptions")
        raise HTTPException(status_code=500, detail="Failed to load your subscriptions") from e

    return [subscription_out(s) for s in subscriptions]


# --- Favorites ---


@router.post("/episodes/{episode_id}/favorite", response_model=FavoriteStatusResponse)
async def favorite_episode(
    request: Request,
    episode_id: str,
    current_user: dict = Depends(get_current_user),
):
    """Add an episode to the current user's favorites."""
    episode_id = validate_id(episode_id, "episode_id")
    repository = request.app.state.repository
    await _require_episode(repository, episode_id)

    try:
        await asyncio.to_thread(repository.add_favorite, current_user["sub"], episode_id)
    except Exception as e:
        logger.exception(f"Error favoriting episode {episode_id}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return FavoriteStatusResponse(episode_id=episode_id, is_favorite=True)


@router.delete("/episodes/{episode_id}/favorite", response_model=FavoriteStatusResponse)
async def unfavorite_episode(
    request: Request,
    episode_id: str,
    current_user: dict = Depends(get_current_user),
):
    """Remove an episode from the current user's favorites."""
    episode_id = validate_id(episode_id, "episode_id")
    repository = request.app.state.repository
    await _require_episode(repository, episode_id)

    try:
        await asyncio.to_thread(repository.remove_favorite, current_user["sub"], episode_id)
    except Exception as e:
        logger.exception(f"Error unfavoriting episode {episode_id}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return FavoriteStatusResponse(episode_id=episode_id, is_favorite=False)


@router.get("/favorites", response_model=List[FavoriteOut])
async def list_favorites(
    request: Request,
    current_user: dict = Depends(get_current_user),
):
    """List the current user's favorite episodes, newest first."""
    repository = request.app.state.repository
    try:
        favorites = await asyncio.to_thread(repository.list_favorites, current_user["sub"])
    except Exception as e:
        logger.exception("Error loading favorites")
        raise HTTPException(status_code=500, detail="Failed to load your favorites") from e

    return [favorite_out(f) for f in favorites]
