"""
S3 object storage.

Blocking boto3 calls run in a worker thread so request handlers stay async.
Timeouts and retries come from botocore's client config (standard mode).
"""

import asyncio
import logging
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from cardscan.config import settings
from cardscan.models.failure import CollaboratorUnavailableError

logger = logging.getLogger(__name__)


class S3ObjectStore:
    """
    Put-only object store over a single S3 bucket.

    Usage:
        store = S3ObjectStore(bucket="cards", region="us-east-1")
        await store.put("pokemon-abc.jpg", data, "image/jpeg")
        store.public_url("pokemon-abc.jpg")
    """

    def __init__(
        self,
        bucket: str | None = None,
        region: str | None = None,
        client: Any | None = None,
        timeout: float | None = None,
        max_attempts: int | None = None,
    ) -> None:
        """
        Initialize the store.

        Args:
            bucket: Bucket name. Defaults to settings.s3_bucket_name.
            region: AWS region. Defaults to settings.aws_region.
            client: Pre-built boto3 S3 client (tests pass a stubbed one).
            timeout: Connect and read timeout in seconds.
            max_attempts: Total attempts per call, including the first.
        """
        self.bucket = bucket or settings.s3_bucket_name
        self.region = region or settings.aws_region

        if client is None:
            timeout = settings.http_timeout_seconds if timeout is None else timeout
            max_attempts = settings.storage_max_attempts if max_attempts is None else max_attempts
            client = boto3.client(
                "s3",
                region_name=self.region,
                config=Config(
                    connect_timeout=timeout,
                    read_timeout=timeout,
                    retries={"total_max_attempts": max_attempts, "mode": "standard"},
                ),
            )
        self._client = client

    def public_url(self, key: str) -> str:
        """Virtual-hosted URL for an object in this bucket."""
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    async def put(self, key: str, body: bytes, content_type: str) -> str:
        """
        Write an object.

        Args:
            key: Object key
            body: Object bytes
            content_type: MIME type stored with the object

        Returns:
            Public URL of the written object

        Raises:
            CollaboratorUnavailableError: If S3 rejects or cannot be reached
        """
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("STORAGE_PUT_FAILED", extra={"key": key, "error": str(e)})
            raise CollaboratorUnavailableError("storage", f"put {key}: {e}") from e

        return self.public_url(key)

    def presigned_put_url(
        self,
        key: str,
        content_type: str = "image/jpeg",
        expires_in: int | None = None,
    ) -> str:
        """
        Create a short-lived URL a client can PUT an object to directly.

        Args:
            key: Object key the upload will be written to
            content_type: MIME type the upload must use
            expires_in: Lifetime in seconds. Defaults to settings.signed_url_expiry_seconds.

        Returns:
            Presigned URL

        Raises:
            CollaboratorUnavailableError: If the URL cannot be signed
        """
        if expires_in is None:
            expires_in = settings.signed_url_expiry_seconds

        try:
            url: str = self._client.generate_presigned_url(
                "put_object",
                Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            raise CollaboratorUnavailableError("storage", f"sign {key}: {e}") from e

        return url


# Default store instance
_store: S3ObjectStore | None = None


def get_object_store() -> S3ObjectStore:
    """
    Get the default object store instance.

    Returns:
        Singleton S3ObjectStore instance
    """
    global _store
    if _store is None:
        _store = S3ObjectStore()
    return _store
