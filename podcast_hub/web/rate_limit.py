"""
Shared rate limiter for upload endpoints.

The limiter lives in its own module so route modules can decorate endpoints
before the application object exists.
"""

import os

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(
    key_func=get_remote_address,
    enabled=os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true",
)


def upload_rate_limit() -> str:
    """Rate limit applied to upload endpoints, read when each request is checked."""
    return os.getenv("RATE_LIMIT", "10/minute")
