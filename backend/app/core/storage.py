"""
Tubely S3-Compatible Storage Client

This module provides the object store seam of the ingestion pipeline using boto3.
It supports MinIO for development and AWS S3 for production through a configurable
endpoint URL.

Two operations are exposed:
- upload_file: stream a finalized local file into the bucket under a given key
- generate_presigned_download_url: derive a time-limited GET URL for a stored object

Failures from botocore/boto3 are logged with their cause and translated into the
pipeline's UploadFailedError / SigningFailedError so callers never see provider
exceptions.
"""

import logging

from pathlib import Path

import boto3

from boto3.exceptions import S3UploadFailedError
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.config import Settings, get_settings
from app.core.exceptions import SigningFailedError, UploadFailedError
from app.models.video import StorageReference


MIN_PRESIGNED_EXPIRATION_SECONDS = 60
MAX_PRESIGNED_EXPIRATION_SECONDS = 604800

logger = logging.getLogger(__name__)

# Singleton container for storage client instance
_singleton_container: dict[str, "StorageClient"] = {}


class StorageClient:
    """
    S3-compatible storage client supporting both MinIO and AWS S3.

    Uploaded objects are never overwritten by the pipeline: every upload uses a
    freshly derived key, so a StorageReference stays valid for the object's
    lifetime.

    Attributes:
        settings: Application settings containing S3 configuration
        s3_client: Initialized boto3 S3 client
        bucket_name: Default bucket for uploads

    Example usage:
        ```python
        from app.core.storage import get_storage_client

        storage = get_storage_client()
        reference = storage.upload_file(
            file_path="/tmp/tubely_upload_x/video.mp4.processing",
            key="landscape/5Y2x....mp4",
            content_type="video/mp4",
        )
        url = storage.generate_presigned_download_url(reference.key, expires_in=3600)
        ```
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """
        Initialize the S3 storage client with configuration from settings.

        Args:
            settings: Optional Settings instance. If None, creates a new Settings
                     instance from environment variables.
        """
        self.settings = settings or Settings()

        client_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},  # path-style for MinIO
            retries={"max_attempts": 3, "mode": "standard"},
        )

        # endpoint_url None means AWS S3
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=self.settings.s3_endpoint_url,
                aws_access_key_id=self.settings.s3_access_key_id,
                aws_secret_access_key=self.settings.s3_secret_access_key,
                region_name=self.settings.s3_region,
                config=client_config,
            )
            self.bucket_name = self.settings.s3_bucket_name

            logger.info(
                "S3 storage client initialized successfully",
                extra={
                    "bucket": self.bucket_name,
                    "region": self.settings.s3_region,
                    "endpoint": self.settings.s3_endpoint_url or "AWS S3 (default)",
                },
            )
        except (ClientError, BotoCoreError):
            logger.exception(
                "Failed to initialize S3 storage client",
                extra={"endpoint": self.settings.s3_endpoint_url},
            )
            raise

    def upload_file(
        self,
        file_path: str | Path,
        key: str,
        content_type: str,
        bucket: str | None = None,
    ) -> StorageReference:
        """
        Upload a local file to the object store.

        The file is streamed by boto3's transfer manager, which switches to a
        multipart upload for large files. The content type is recorded on the
        object so browsers can play it back directly from a signed URL.

        Args:
            file_path: Path to the finalized local file.
            key: Object key to store it under, e.g. "landscape/<token>.mp4".
            content_type: MIME type recorded on the stored object.
            bucket: Target bucket. Defaults to the configured bucket.

        Returns:
            StorageReference: Pointer to the stored object.

        Raises:
            UploadFailedError: If the store rejects the upload or the local
                file cannot be read.
        """
        target_bucket = bucket or self.bucket_name

        try:
            self.s3_client.upload_file(
                Filename=str(file_path),
                Bucket=target_bucket,
                Key=key,
                ExtraArgs={"ContentType": content_type},
            )
        except (ClientError, BotoCoreError, S3UploadFailedError, OSError) as e:
            logger.exception(
                "Failed to upload file to S3",
                extra={"file_path": str(file_path), "bucket": target_bucket, "key": key},
            )
            raise UploadFailedError(f"Upload of {key} to {target_bucket} failed: {e}") from e

        logger.info(
            "Uploaded file to S3",
            extra={"bucket": target_bucket, "key": key, "content_type": content_type},
        )

        return StorageReference(bucket=target_bucket, key=key)

    def generate_presigned_download_url(
        self,
        key: str,
        expires_in: int = 3600,
        bucket: str | None = None,
    ) -> str:
        """
        Generate a presigned GET URL for a stored object.

        Signing is a local computation; no request reaches the store and the
        object's existence is not checked.

        Args:
            key: Object key of the file.
            expires_in: URL lifetime in seconds (60 to 604800).
            bucket: Bucket holding the object. Defaults to the configured bucket.

        Returns:
            str: Presigned GET URL.

        Raises:
            ValueError: If expires_in is outside the valid range.
            SigningFailedError: If botocore cannot sign the request.
        """
        if not MIN_PRESIGNED_EXPIRATION_SECONDS <= expires_in <= MAX_PRESIGNED_EXPIRATION_SECONDS:
            raise ValueError(
                f"expires_in must be between {MIN_PRESIGNED_EXPIRATION_SECONDS} and "
                f"{MAX_PRESIGNED_EXPIRATION_SECONDS} seconds, got {expires_in}"
            )

        target_bucket = bucket or self.bucket_name

        try:
            presigned_url = self.s3_client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": target_bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            logger.exception(
                "Failed to generate presigned download URL",
                extra={"bucket": target_bucket, "key": key},
            )
            raise SigningFailedError(f"Signing {target_bucket}/{key} failed: {e}") from e

        logger.debug(
            "Generated presigned download URL",
            extra={"bucket": target_bucket, "key": key, "expires_in": expires_in},
        )

        return presigned_url


def get_storage_client() -> StorageClient:
    """
    Get the singleton StorageClient instance.

    The boto3 client is thread-safe, so one instance is shared by every request
    and by the worker threads that run blocking uploads.

    Returns:
        StorageClient: The shared storage client instance.
    """
    if "instance" not in _singleton_container:
        _singleton_container["instance"] = StorageClient(get_settings())
        logger.info("Created new StorageClient singleton instance")

    return _singleton_container["instance"]


__all__ = [
    "MAX_PRESIGNED_EXPIRATION_SECONDS",
    "MIN_PRESIGNED_EXPIRATION_SECONDS",
    "StorageClient",
    "get_storage_client",
]
