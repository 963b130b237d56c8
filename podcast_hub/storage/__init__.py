"""Object storage for uploaded cover images and episode audio.

Provides:
- StorageProvider interface and error types
- Local filesystem and S3-compatible providers
- Factory selecting a provider from configuration
"""

import logging

from .base import (
    AUDIO_BUCKET,
    BUCKETS,
    COVER_BUCKET,
    BucketNotFoundError,
    ObjectExistsError,
    StorageError,
    StorageProvider,
)
from .local import LocalStorageProvider

logger = logging.getLogger(__name__)


def create_storage_provider(config) -> StorageProvider:
    """
    Create the storage provider selected by `config.STORAGE_BACKEND`.

    Returns:
        StorageProvider: A local provider rooted at STORAGE_LOCAL_ROOT, or an
        S3 provider for the configured endpoint.
    """
    if config.STORAGE_BACKEND == "s3":
        from .s3 import S3StorageProvider

        logger.info(f"Using S3 storage at {config.S3_ENDPOINT_URL or 'AWS'}")
        return S3StorageProvider(
            endpoint_url=config.S3_ENDPOINT_URL,
            access_key=config.AWS_ACCESS_KEY_ID,
            secret_key=config.AWS_SECRET_ACCESS_KEY,
            region=config.S3_REGION,
            public_base_url=config.STORAGE_PUBLIC_BASE_URL,
        )

    logger.info(f"Using local storage at {config.STORAGE_LOCAL_ROOT}")
    return LocalStorageProvider(
        root=config.STORAGE_LOCAL_ROOT,
        public_base_url=config.STORAGE_PUBLIC_BASE_URL,
    )


def ensure_buckets(storage: StorageProvider) -> list:
    """Create any missing application buckets and return the names created."""
    created = []
    for bucket in BUCKETS:
        if storage.ensure_bucket(bucket, public=True):
            created.append(bucket)
    if created:
        logger.info(f"Created storage buckets: {', '.join(created)}")
    return created


__all__ = [
    "AUDIO_BUCKET",
    "BUCKETS",
    "COVER_BUCKET",
    "BucketNotFoundError",
    "LocalStorageProvider",
    "ObjectExistsError",
    "StorageError",
    "StorageProvider",
    "create_storage_provider",
    "ensure_buckets",
]
