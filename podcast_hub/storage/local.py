"""
Local filesystem storage provider.

Buckets are subdirectories of a root directory. The web app serves the root
directory at the public base URL, so stored blobs are reachable over HTTP.
"""

import logging
import shutil
from pathlib import Path
from typing import BinaryIO

from .base import BucketNotFoundError, ObjectExistsError, StorageError, StorageProvider

logger = logging.getLogger(__name__)


class LocalStorageProvider(StorageProvider):
    """
    Storage provider that uses the local filesystem.
    Useful for local development and single-host deployments.
    """

    def __init__(self, root: str, public_base_url: str = "/media"):
        self.root = Path(root).expanduser().absolute()
        self.root.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip("/")

    def _bucket_path(self, bucket: str) -> Path:
        if not bucket or "/" in bucket or bucket in (".", ".."):
            raise StorageError(f"Invalid bucket name: {bucket!r}")
        return self.root / bucket

    def _object_path(self, bucket: str, path: str) -> Path:
        """Absolute path for an object, refusing paths that leave the bucket."""
        bucket_path = self._bucket_path(bucket).resolve()
        object_path = (bucket_path / path).resolve()
        if bucket_path not in object_path.parents:
            raise StorageError(f"Invalid object path: {path!r}")
        return object_path

    def bucket_exists(self, bucket: str) -> bool:
        return self._bucket_path(bucket).is_dir()

    def create_bucket(self, bucket: str, public: bool = True) -> None:
        """Create a subdirectory as a bucket. Every local bucket is public."""
        self._bucket_path(bucket).mkdir(parents=True, exist_ok=True)
        logger.info(f"Created local bucket: {bucket}")

    def upload(
        self,
        bucket: str,
        path: str,
        fileobj: BinaryIO,
        content_type: str,
        upsert: bool = False,
    ) -> str:
        if not self.bucket_exists(bucket):
            raise BucketNotFoundError(bucket)

        dest_path = self._object_path(bucket, path)
        if dest_path.exists() and not upsert:
            raise ObjectExistsError(bucket, path)

        try:
            dest_path.parent.mkdir(parents=True, exist_ok=True)
            with open(dest_path, "wb") as out:
                shutil.copyfileobj(fileobj, out)
        except OSError as e:
            raise StorageError(str(e)) from e

        logger.info(f"Stored {content_type} object {bucket}/{path}")
        return path

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.public_base_url}/{bucket}/{path}"

    def delete(self, bucket: str, path: str) -> bool:
        object_path = self._object_path(bucket, path)
        if not object_path.exists():
            return False
        object_path.unlink()
        logger.info(f"Deleted local object {bucket}/{path}")
        return True
