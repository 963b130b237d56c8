"""
S3-compatible storage provider (AWS S3, Cloudflare R2, MinIO).
"""

import json
import logging
from typing import BinaryIO

import boto3
from botocore.exceptions import ClientError

from .base import BucketNotFoundError, ObjectExistsError, StorageError, StorageProvider

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = ("404", "NoSuchBucket", "NoSuchKey", "NotFound")


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class S3StorageProvider(StorageProvider):
    """Storage implementation using the boto3 S3 client."""

    def __init__(
        self,
        endpoint_url: str = "",
        access_key: str = "",
        secret_key: str = "",
        region: str = "auto",
        public_base_url: str = "",
        client=None,
    ):
        """
        Args:
            endpoint_url: Custom S3 endpoint; empty for AWS.
            access_key: Access key ID.
            secret_key: Secret access key.
            region: Region name ("auto" for R2).
            public_base_url: Base URL objects are publicly served from; defaults
                to the endpoint URL.
            client: Pre-built boto3 client, used instead of creating one.
        """
        self.endpoint_url = endpoint_url or None
        self.public_base_url = (public_base_url or endpoint_url or "").rstrip("/")
        self.s3_client = client or boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=access_key or None,
            aws_secret_access_key=secret_key or None,
            region_name=region,
        )

    def bucket_exists(self, bucket: str) -> bool:
        try:
            self.s3_client.head_bucket(Bucket=bucket)
            return True
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return False
            raise StorageError(str(e)) from e

    def create_bucket(self, bucket: str, public: bool = True) -> None:
        try:
            self.s3_client.create_bucket(Bucket=bucket)
            if public:
                policy = {
                    "Version": "2012-10-17",
                    "Statement": [
                        {
                            "Sid": "PublicRead",
                            "Effect": "Allow",
                            "Principal": "*",
                            "Action": ["s3:GetObject"],
                            "Resource": [f"arn:aws:s3:::{bucket}/*"],
                        }
                    ],
                }
                self.s3_client.put_bucket_policy(Bucket=bucket, Policy=json.dumps(policy))
        except ClientError as e:
            if _error_code(e) in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
                logger.info(f"Bucket already exists: {bucket}")
                return
            raise StorageError(str(e)) from e
        logger.info(f"Created bucket: {bucket}")

    def _object_exists(self, bucket: str, path: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=bucket, Key=path)
            return True
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return False
            raise StorageError(str(e)) from e

    def upload(
        self,
        bucket: str,
        path: str,
        fileobj: BinaryIO,
        content_type: str,
        upsert: bool = False,
    ) -> str:
        if not upsert and self._object_exists(bucket, path):
            raise ObjectExistsError(bucket, path)

        try:
            self.s3_client.upload_fileobj(
                fileobj,
                bucket,
                path,
                ExtraArgs={"ContentType": content_type, "CacheControl": "max-age=3600"},
            )
        except ClientError as e:
            if _error_code(e) == "NoSuchBucket":
                raise BucketNotFoundError(bucket) from e
            raise StorageError(str(e)) from e

        logger.info(f"Uploaded {content_type} object {bucket}/{path}")
        return path

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.public_base_url}/{bucket}/{path}"

    def delete(self, bucket: str, path: str) -> bool:
        if not self._object_exists(bucket, path):
            return False
        try:
            self.s3_client.delete_object(Bucket=bucket, Key=path)
        except ClientError as e:
            raise StorageError(str(e)) from e
        logger.info(f"Deleted object {bucket}/{path}")
        return True
