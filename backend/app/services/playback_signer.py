"""
Playback URL Signer for Tubely.

Video records persist ``bucket,key`` references. Every read converts them into
short-lived presigned GET URLs; the signed URLs are never written back.
"""

import logging

from app.core.exceptions import SigningFailedError
from app.core.storage import StorageClient
from app.models.video import StorageReference, Video


logger = logging.getLogger(__name__)


class PlaybackSigner:
    """
    Resolves a video's stored references into presigned URLs.

    Attributes:
        storage: Storage client used for signing.
        ttl_seconds: Lifetime of every issued URL.
    """

    def __init__(self, storage: StorageClient, ttl_seconds: int) -> None:
        self.storage = storage
        self.ttl_seconds = ttl_seconds

    def sign_reference(self, encoded_reference: str) -> str:
        """
        Presign one ``bucket,key`` reference.

        Raises:
            SigningFailedError: If the reference is malformed or cannot be signed.
        """
        try:
            reference = StorageReference.parse(encoded_reference)
        except ValueError as e:
            raise SigningFailedError(str(e)) from e

        try:
            return self.storage.generate_presigned_download_url(
                reference.key, expires_in=self.ttl_seconds, bucket=reference.bucket
            )
        except ValueError as e:
            raise SigningFailedError(f"Cannot sign {reference.key}: {e}") from e

    def sign_video(self, video: Video) -> Video:
        """
        Return a copy of ``video`` whose url fields hold signed URLs.

        A video without references is returned unchanged.
        """
        if video.video_url is None and video.thumbnail_url is None:
            return video

        update: dict[str, str] = {}
        if video.video_url is not None:
            update["video_url"] = self.sign_reference(video.video_url)
        if video.thumbnail_url is not None:
            update["thumbnail_url"] = self.sign_reference(video.thumbnail_url)

        logger.debug("Signed playback URLs", extra={"video_id": video.id, "fields": sorted(update)})
        return video.model_copy(update=update)


__all__ = ["PlaybackSigner"]
