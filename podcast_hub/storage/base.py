"""Object storage provider interface.

Uploaded covers and episode audio live in named buckets. Each provider stores
blobs by path within a bucket and hands out a public URL for them.
"""

from abc import ABC, abstractmethod
from typing import BinaryIO

# Bucket names
COVER_BUCKET = "podcast-covers"
AUDIO_BUCKET = "podcast-audio"
BUCKETS = (COVER_BUCKET, AUDIO_BUCKET)


class StorageError(Exception):
    """Raised when a storage operation fails."""


class BucketNotFoundError(StorageError):
    """Raised when uploading into a bucket that does not exist."""

    def __init__(self, bucket: str):
        super().__init__(f'Bucket "{bucket}" not found')
        self.bucket = bucket


class ObjectExistsError(StorageError):
    """Raised when a non-upsert upload targets a path that is already taken."""

    def __init__(self, bucket: str, path: str):
        super().__init__(f"Object already exists: {bucket}/{path}")
        self.bucket = bucket
        self.path = path


class StorageProvider(ABC):
    """Abstract base class for object storage backends."""

    @abstractmethod
    def bucket_exists(self, bucket: str) -> bool:
        """Check whether `bucket` exists."""
        pass

    @abstractmethod
    def create_bucket(self, bucket: str, public: bool = True) -> None:
        """Create `bucket`. Public buckets serve their objects without credentials."""
        pass

    def ensure_bucket(self, bucket: str, public: bool = True) -> bool:
        """
        Create `bucket` only if it is missing.

        Returns:
            bool: True if the bucket was created by this call.
        """
        if self.bucket_exists(bucket):
            return False
        self.create_bucket(bucket, public=public)
        return True

    @abstractmethod
    def upload(
        self,
        bucket: str,
        path: str,
        fileobj: BinaryIO,
        content_type: str,
        upsert: bool = False,
    ) -> str:
        """
        Store the contents of `fileobj` at `path` within `bucket`.

        Args:
            bucket: Target bucket, which must already exist.
            path: Object path within the bucket.
            fileobj: Binary file-like object positioned at the start of the data.
            content_type: MIME type recorded with the object.
            upsert: Overwrite an existing object instead of failing.

        Returns:
            str: The stored object's path.

        Raises:
            BucketNotFoundError: If the bucket does not exist.
            ObjectExistsError: If the path is taken and `upsert` is False.
            StorageError: For any other backend failure.
        """
        pass

    @abstractmethod
    def get_public_url(self, bucket: str, path: str) -> str:
        """Return the public URL of an object."""
        pass

    @abstractmethod
    def delete(self, bucket: str, path: str) -> bool:
        """
        Delete an object.

        Returns:
            bool: True if an object was removed.
        """
        pass
