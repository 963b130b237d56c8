"""
Authentication routes for Google OAuth 2.0 flow.

Provides endpoints for:
- /auth/login - Initiate Google OAuth flow
- /auth/callback - Handle OAuth callback and create session
- /auth/logout - Clear session and redirect to login
- /auth/me - Get current user info
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse

from podcast_hub.db.repository import PodcastHubRepositoryInterface
from podcast_hub.web.auth import (
    SESSION_COOKIE,
    create_access_token,
    get_current_user,
    get_oauth,
)
from podcast_hub.web.models import CurrentUserResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["authentication"])


def build_session_payload(profile) -> dict:
    """JWT claims for a profile."""
    return {
        "sub": profile.id,
        "email": profile.email,
        "username": profile.username,
        "picture": profile.avatar_url,
        "is_creator": bool(profile.is_creator),
    }


def set_session_cookie(response, access_token: str, config) -> None:
    """Attach the session cookie carrying `access_token` to `response`."""
    try:
        expiration_days = int(config.JWT_EXPIRATION_DAYS) if config.JWT_EXPIRATION_DAYS else 7
    except (ValueError, TypeError):
        logger.warning(
            f"Invalid JWT_EXPIRATION_DAYS value: {config.JWT_EXPIRATION_DAYS}, using default 7"
        )
        expiration_days = 7

    # Build cookie kwargs, only include domain if set
    cookie_kwargs = {
        "key": SESSION_COOKIE,
        "value": access_token,
        "max_age": expiration_days * 24 * 60 * 60,
        "httponly": True,
        "secure": config.COOKIE_SECURE,
        "samesite": "lax",
    }
    if config.COOKIE_DOMAIN:
        cookie_kwargs["domain"] = config.COOKIE_DOMAIN

    response.set_cookie(**cookie_kwargs)


@router.get("/login")
async def login(request: Request):
    """
    Initiate Google OAuth login flow.

    Redirects the user to Google's authorization page.
    After authorization, Google redirects back to /auth/callback.
    """
    config = request.app.state.config

    if (
        not config.GOOGLE_CLIENT_ID
        or not config.GOOGLE_CLIENT_SECRET
        or not config.GOOGLE_REDIRECT_URI
    ):
        raise HTTPException(
            status_code=500,
            detail="OAuth not configured. Set GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, and GOOGLE_REDIRECT_URI."
        )

    oauth = get_oauth(config)
    return await oauth.google.authorize_redirect(request, config.GOOGLE_REDIRECT_URI)


@router.get("/callback")
async def auth_callback(request: Request):
    """
    Handle Google OAuth callback.

    Exchanges the authorization code for tokens, gets or creates the user's
    profile and sets the session cookie.
    """
    config = request.app.state.config
    repository: PodcastHubRepositoryInterface = request.app.state.repository
    oauth = get_oauth(config)

    try:
        token = await oauth.google.authorize_access_token(request)
    except Exception as e:
        logger.exception("OAuth callback error")
        raise HTTPException(status_code=400, detail="Authentication failed") from e

    user_info = token.get('userinfo')
    if not user_info:
        raise HTTPException(status_code=400, detail="Failed to get user info")

    google_id = user_info.get('sub')
    email = user_info.get('email')
    picture = user_info.get('picture')

    if not google_id or not email:
        raise HTTPException(status_code=400, detail="Missing required user info")

    profile = repository.get_profile_by_google_id(google_id)
    if profile:
        profile = repository.update_profile(
            profile.id,
            avatar_url=picture,
            last_login=datetime.now(timezone.utc)
        )
        logger.info(f"User logged in: user_id={profile.id}")
    else:
        profile = repository.create_profile(
            email=email,
            google_id=google_id,
            avatar_url=picture,
        )
        logger.info(f"Created new profile: user_id={profile.id}")

    access_token = create_access_token(build_session_payload(profile), config)

    response = RedirectResponse(url="/", status_code=302)
    set_session_cookie(response, access_token, config)
    return response


@router.get("/logout")
async def logout(request: Request):
    """
    Log out the current user.

    Clears the session cookie and redirects to the login page.
    """
    config = request.app.state.config

    response = RedirectResponse(url="/login", status_code=302)

    delete_kwargs = {"key": SESSION_COOKIE}
    if config.COOKIE_DOMAIN:
        delete_kwargs["domain"] = config.COOKIE_DOMAIN

    response.delete_cookie(**delete_kwargs)
    return response


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user_info(
    request: Request,
    current_user: dict = Depends(get_current_user)
):
    """
    Get current user information.

    The creator flag is read from the profile rather than the token so that
    changes apply without signing in again.
    """
    repository: PodcastHubRepositoryInterface = request.app.state.repository
    profile = repository.get_profile(current_user["sub"])

    if not profile:
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    return CurrentUserResponse(
        id=profile.id,
        email=profile.email,
        username=profile.username,
        avatar_url=profile.avatar_url,
        is_creator=profile.is_creator,
    )
