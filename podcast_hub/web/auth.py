"""
Authentication module for Google OAuth 2.0 and JWT session management.

This module provides:
- Google OAuth client configuration
- JWT token creation and verification
- FastAPI dependencies for API and page route protection
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from authlib.integrations.starlette_client import OAuth
from fastapi import Cookie, HTTPException, Request
from jose import JWTError, jwt

from podcast_hub.config import Config

logger = logging.getLogger(__name__)

SESSION_COOKIE = "podcast_hub_session"

# OAuth client singleton
_oauth: Optional[OAuth] = None


class LoginRequired(Exception):
    """Raised by page dependencies when no valid session is present."""

    def __init__(self, next_path: str = "/"):
        super().__init__("Login required")
        self.next_path = next_path


def get_oauth(config: Config) -> OAuth:
    """
    Get or create the OAuth client singleton.

    Configures Google OAuth with OpenID Connect for authentication.

    Args:
        config: Application configuration with OAuth credentials.

    Returns:
        OAuth: Configured OAuth client.
    """
    global _oauth
    if _oauth is None:
        _oauth = OAuth()
        _oauth.register(
            name='google',
            client_id=config.GOOGLE_CLIENT_ID,
            client_secret=config.GOOGLE_CLIENT_SECRET,
            server_metadata_url='https://accounts.google.com/.well-known/openid-configuration',
            client_kwargs={'scope': 'openid email profile'}
        )
    return _oauth


def create_access_token(user_data: dict, config: Config) -> str:
    """
    Create a JWT access token for the authenticated user.

    Args:
        user_data: User information to encode in the token.
            Expected keys: sub (profile id), email, username, picture, is_creator.
        config: Application configuration with JWT settings.

    Returns:
        str: Encoded JWT token.

    Raises:
        ValueError: If JWT_SECRET_KEY is not configured or algorithm is invalid.
    """
    if not config.JWT_SECRET_KEY:
        raise ValueError("JWT_SECRET_KEY must be configured")

    # Unsigned tokens would let anyone forge a session
    if config.JWT_ALGORITHM.lower() == "none":
        raise ValueError("JWT algorithm 'none' is not allowed")

    expire = datetime.now(timezone.utc) + timedelta(days=config.JWT_EXPIRATION_DAYS)
    to_encode = {
        **user_data,
        "exp": expire,
        "iat": datetime.now(timezone.utc)
    }
    return jwt.encode(to_encode, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def verify_token(token: str, config: Config) -> Optional[dict]:
    """
    Verify a JWT token and return its payload.

    Returns:
        Optional[dict]: Token payload if valid and carrying a subject, None otherwise.
    """
    try:
        payload = jwt.decode(
            token,
            config.JWT_SECRET_KEY,
            algorithms=[config.JWT_ALGORITHM]
        )
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None

    if not isinstance(payload.get("sub"), str) or not payload["sub"]:
        logger.warning("JWT verification failed: missing subject")
        return None
    return payload


async def get_current_user(
    request: Request,
    podcast_hub_session: Optional[str] = Cookie(default=None)
) -> dict:
    """
    FastAPI dependency to get the current authenticated user.

    Extracts and validates the JWT from the session cookie.

    Raises:
        HTTPException: 401 if not authenticated or token is invalid.
    """
    config = request.app.state.config

    if not podcast_hub_session:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user_data = verify_token(podcast_hub_session, config)
    if not user_data:
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    return user_data


async def get_optional_user(
    request: Request,
    podcast_hub_session: Optional[str] = Cookie(default=None)
) -> Optional[dict]:
    """
    FastAPI dependency to optionally get the current user.

    Returns None if not authenticated instead of raising an exception.
    Used by routes that support both authenticated and anonymous access.
    """
    if not podcast_hub_session:
        return None

    config = request.app.state.config
    return verify_token(podcast_hub_session, config)


async def require_page_user(
    request: Request,
    podcast_hub_session: Optional[str] = Cookie(default=None)
) -> dict:
    """
    FastAPI dependency for HTML pages that need a signed-in user.

    Resolved before the page handler runs, so nothing is fetched for anonymous
    visitors. The LoginRequired handler turns the failure into a redirect to
    the login page.

    Raises:
        LoginRequired: If there is no valid session.
    """
    user_data = await get_optional_user(request, podcast_hub_session)
    if not user_data:
        raise LoginRequired(next_path=request.url.path)
    return user_data
