"""Server-rendered HTML pages.

One route per screen: discovery, login, podcast and episode detail, the
creator dashboard with its forms, and the listener's subscriptions and
favorites. Pages that need a user depend on `require_page_user`, which
redirects to /login before the handler fetches anything. Unknown paths
redirect to the discovery page.
"""

import asyncio
import logging
from datetime import date
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

from podcast_hub.services.publishing import PublishError, create_episode, create_podcast
from podcast_hub.utils import format_time
from podcast_hub.web.auth import get_optional_user, require_page_user
from podcast_hub.web.helpers import is_valid_uuid, to_uploaded_file
from podcast_hub.web.models import EpisodeForm, PodcastForm, form_error_message

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["duration"] = format_time

router = APIRouter(tags=["pages"], include_in_schema=False)

# Path prefixes owned by other routers; the catch-all never redirects these
RESERVED_PREFIXES = ("api/", "auth/", "media/", "static/")


def render(request: Request, template: str, user: Optional[dict], status_code: int = 200, **context):
    """Render a page with the signed-in user available to the layout."""
    return templates.TemplateResponse(
        request,
        template,
        {"user": user, **context},
        status_code=status_code,
    )


async def _owned_podcast_or_none(repository, podcast_id: str, user_id: str):
    """The podcast if it exists and `user_id` owns it, otherwise None."""
    if not is_valid_uuid(podcast_id):
        return None
    podcast = await asyncio.to_thread(repository.get_podcast, podcast_id)
    if not podcast or podcast.author_id != user_id:
        return None
    return podcast


# --- Public pages ---


@router.get("/")
async def discover_page(request: Request, user: Optional[dict] = Depends(get_optional_user)):
    """Discovery list of every podcast."""
    repository = request.app.state.repository
    podcasts, error = [], None
    try:
        podcasts = await asyncio.to_thread(repository.list_podcasts)
    except Exception:
        logger.exception("Error loading podcasts for discovery page")
        error = "Failed to load podcasts"
    return render(request, "index.html", user, podcasts=podcasts, error=error)


@router.get("/login")
async def login_page(request: Request, user: Optional[dict] = Depends(get_optional_user)):
    if user:
        return RedirectResponse(url="/", status_code=302)
    return render(request, "login.html", None)


@router.get("/signup")
async def signup_page():
    """Accounts are created on first Google sign-in."""
    return RedirectResponse(url="/login", status_code=302)


@router.get("/podcasts/{podcast_id}")
async def podcast_page(
    request: Request,
    podcast_id: str,
    user: Optional[dict] = Depends(get_optional_user),
):
    """Podcast detail with episodes and the subscribe button."""
    repository = request.app.state.repository
    podcast, episodes, error = None, [], None
    is_subscribed = False

    if not is_valid_uuid(podcast_id):
        error = "Podcast not found"
    else:
        try:
            podcast = await asyncio.to_thread(repository.get_podcast, podcast_id)
            if podcast:
                episodes = await asyncio.to_thread(repository.list_episodes, podcast_id)
            else:
                error = "Podcast not found"
        except Exception:
            logger.exception(f"Error loading podcast page {podcast_id}")
            error = "Failed to load podcast details"

    if podcast and user:
        try:
            is_subscribed = await asyncio.to_thread(
                repository.is_subscribed, user["sub"], podcast_id
            )
        except Exception as e:
            logger.warning(f"Could not check subscription for podcast {podcast_id}: {e}")

    return render(
        request,
        "podcast.html",
        user,
        status_code=404 if error == "Podcast not found" else 200,
        podcast=podcast,
        episodes=episodes,
        is_subscribed=is_subscribed,
        error=error,
    )


@router.get("/episodes/{episode_id}")
async def episode_page(
    request: Request,
    episode_id: str,
    user: Optional[dict] = Depends(get_optional_user),
):
    """Episode player page."""
    repository = request.app.state.repository
    episode, error = None, None
    is_favorite = False

    if not is_valid_uuid(episode_id):
        error = "Episode not found"
    else:
        try:
            episode = await asyncio.to_thread(repository.get_episode, episode_id)
            if not episode:
                error = "Episode not found"
        except Exception:
            logger.exception(f"Error loading episode page {episode_id}")
            error = "Failed to load episode details"

    if episode and user:
        try:
            is_favorite = await asyncio.to_thread(repository.is_favorite, user["sub"], episode_id)
        except Exception as e:
            logger.warning(f"Could not check favorite for episode {episode_id}: {e}")

    return render(
        request,
        "episode.html",
        user,
        status_code=404 if error == "Episode not found" else 200,
        episode=episode,
        podcast=episode.podcast if episode else None,
        is_favorite=is_favorite,
        default_volume=request.app.state.config.PLAYER_DEFAULT_VOLUME,
        error=error,
    )


# --- Listener pages ---


@router.get("/subscriptions")
async def subscriptions_page(request: Request, user: dict = Depends(require_page_user)):
    repository = request.app.state.repository
    subscriptions, error = [], None
    try:
        subscriptions = await asyncio.to_thread(repository.list_subscriptions, user["sub"])
    except Exception:
        logger.exception("Error loading subscriptions page")
        error = "Failed to load your subscriptions"
    return render(request, "subscriptions.html", user, subscriptions=subscriptions, error=error)


@router.get("/favorites")
async def favorites_page(request: Request, user: dict = Depends(require_page_user)):
    repository = request.app.state.repository
    favorites, error = [], None
    try:
        favorites = await asyncio.to_thread(repository.list_favorites, user["sub"])
    except Exception:
        logger.exception("Error loading favorites page")
        error = "Failed to load your favorites"
    return render(request, "favorites.html", user, favorites=favorites, error=error)


# --- Creator pages ---


@router.get("/dashboard")
async def dashboard_page(request: Request, user: dict = Depends(require_page_user)):
    """The creator's own podcasts, newest first."""
    repository = request.app.state.repository
    podcasts, error = [], None
    try:
        podcasts = await asyncio.to_thread(repository.list_podcasts_by_author, user["sub"])
    except Exception:
        logger.exception("Error loading dashboard")
        error = "Failed to load your podcasts"
    return render(request, "dashboard.html", user, podcasts=podcasts, error=error)


@router.get("/dashboard/podcasts/new")
async def new_podcast_page(request: Request, user: dict = Depends(require_page_user)):
    return render(request, "podcast_form.html", user, form={}, error=None)


@router.post("/dashboard/podcasts/new")
async def submit_new_podcast(
    request: Request,
    title: str = Form(default=""),
    description: str = Form(default=""),
    cover_image: Optional[UploadFile] = File(default=None),
    user: dict = Depends(require_page_user),
):
    """Create a podcast, then continue to its episode management page."""
    config = request.app.state.config
    values = {"title": title, "description": description}

    try:
        form = PodcastForm(title=title, description=description)
    except ValidationError as e:
        return render(
            request, "podcast_form.html", user, status_code=400,
            form=values, error=form_error_message(e),
        )

    try:
        podcast = await asyncio.to_thread(
            create_podcast,
            request.app.state.repository,
            request.app.state.storage,
            user["sub"],
            form.title,
            form.description,
            to_uploaded_file(cover_image),
            config.COVER_MAX_BYTES,
        )
    except PublishError as e:
        return render(
            request, "podcast_form.html", user, status_code=400,
            form=values, error=str(e),
        )

    return RedirectResponse(url=f"/dashboard/podcasts/{podcast.id}/episodes", status_code=303)


@router.get("/dashboard/podcasts/{podcast_id}/episodes")
async def manage_episodes_page(
    request: Request,
    podcast_id: str,
    user: dict = Depends(require_page_user),
):
    """Episodes of an owned podcast; anyone else is sent back to the dashboard."""
    repository = request.app.state.repository
    podcast = await _owned_podcast_or_none(repository, podcast_id, user["sub"])
    if not podcast:
        return RedirectResponse(url="/dashboard", status_code=302)

    episodes, error = [], None
    try:
        episodes = await asyncio.to_thread(repository.list_episodes, podcast_id)
    except Exception:
        logger.exception(f"Error loading episodes for podcast {podcast_id}")
        error = "Failed to load podcast details"
    return render(
        request, "manage_episodes.html", user,
        podcast=podcast, episodes=episodes, error=error,
    )


@router.get("/dashboard/podcasts/{podcast_id}/episodes/new")
async def new_episode_page(
    request: Request,
    podcast_id: str,
    user: dict = Depends(require_page_user),
):
    podcast = await _owned_podcast_or_none(request.app.state.repository, podcast_id, user["sub"])
    if not podcast:
        return RedirectResponse(url="/dashboard", status_code=302)
    return render(
        request, "episode_form.html", user,
        podcast=podcast, form={"published_at": date.today().isoformat()}, error=None,
    )


@router.post("/dashboard/podcasts/{podcast_id}/episodes/new")
async def submit_new_episode(
    request: Request,
    podcast_id: str,
    title: str = Form(default=""),
    description: str = Form(default=""),
    published_at: str = Form(default=""),
    audio_file: Optional[UploadFile] = File(default=None),
    user: dict = Depends(require_page_user),
):
    """Create an episode, then return to the podcast's episode list."""
    config = request.app.state.config
    repository = request.app.state.repository
    podcast = await _owned_podcast_or_none(repository, podcast_id, user["sub"])
    if not podcast:
        return RedirectResponse(url="/dashboard", status_code=303)

    values = {"title": title, "description": description, "published_at": published_at}

    try:
        form = EpisodeForm(title=title, description=description, published_at=published_at)
    except ValidationError as e:
        return render(
            request, "episode_form.html", user, status_code=400,
            podcast=podcast, form=values, error=form_error_message(e),
        )

    try:
        await asyncio.to_thread(
            create_episode,
            repository,
            request.app.state.storage,
            podcast,
            form.title,
            form.description,
            form.published_at,
            to_uploaded_file(audio_file),
            config.AUDIO_MAX_BYTES,
        )
    except PublishError as e:
        return render(
            request, "episode_form.html", user, status_code=400,
            podcast=podcast, form=values, error=str(e),
        )

    return RedirectResponse(url=f"/dashboard/podcasts/{podcast.id}/episodes", status_code=303)


# --- Fallback ---


@router.get("/{unknown_path:path}")
async def catch_all(unknown_path: str):
    """Send unknown pages to discovery; unknown API paths stay 404."""
    if unknown_path.startswith(RESERVED_PREFIXES):
        raise HTTPException(status_code=404, detail="Not Found")
    return RedirectResponse(url="/", status_code=302)
