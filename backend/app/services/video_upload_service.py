"""
Tubely Video Upload Service Module

The upload orchestrator. For one authenticated request against one video record
it validates ownership and media type, stages the body on local disk, probes the
container, remuxes it for fast start, uploads the result under a fresh key,
persists the storage reference and returns the record with signed URLs.

Stage order for a video upload:
1. Load the record (404) and check ownership (403)
2. Parse the declared content type; only video/mp4 is accepted (400/415)
3. Stage the body, enforcing the size limit (413)
4. Check the container signature in the staged file's first 12 bytes (415)
5. Probe dimensions and pick the orientation namespace
6. Remux for fast start; the raw staged file is deleted once superseded
7. Derive the object key and upload the remuxed file
8. Persist ``bucket,key`` into the record and sign it for the response

The staging session wraps steps 3 to 7, so every staged file is removed on
every exit path. Failures surface as TubelyError subclasses; nothing is retried.
"""

import asyncio
import logging

from datetime import UTC, datetime

from fastapi import UploadFile

from app.config import Settings
from app.core.database import VideoRepository
from app.core.exceptions import BadRequestError, ForbiddenError, UnsupportedMediaTypeError
from app.core.storage import StorageClient
from app.models.video import Video
from app.services.fast_start import FastStartNormalizer
from app.services.key_deriver import THUMBNAIL_PREFIX, derive_storage_key, extension_for
from app.services.media_probe import ContainerProber, orientation_for_dimensions
from app.services.playback_signer import PlaybackSigner
from app.services.staging import StagingArea
from app.utils.file_validator import (
    MP4_HEADER_BYTES,
    SNIFF_BYTES,
    has_mp4_signature,
    parse_media_type,
    validate_image_signature,
)
from app.utils.logger import add_log_context


logger = logging.getLogger(__name__)

VIDEO_CONTENT_TYPE = "video/mp4"


class VideoUploadService:
    """
    Orchestrates video and thumbnail ingestion for existing video records.

    Collaborators are injected so the pipeline can run against fakes: the
    prober and normalizer wrap ffprobe/ffmpeg, the storage client wraps boto3
    and the repository wraps the MongoDB videos collection. Blocking calls
    (subprocesses, boto3 transfers) run in worker threads via asyncio.to_thread.

    Example:
        ```python
        service = VideoUploadService(
            repository=get_video_repository(),
            storage=get_storage_client(),
            prober=FFprobeContainerProber(),
            normalizer=FFmpegFastStartNormalizer(),
            staging=StagingArea(),
            signer=PlaybackSigner(get_storage_client(), ttl_seconds=3600),
            settings=get_settings(),
        )
        video = await service.handle_upload(video_id, user_id, upload)
        ```
    """

    def __init__(
        self,
        repository: VideoRepository,
        storage: StorageClient,
        prober: ContainerProber,
        normalizer: FastStartNormalizer,
        staging: StagingArea,
        signer: PlaybackSigner,
        settings: Settings,
    ) -> None:
        self.repository = repository
        self.storage = storage
        self.prober = prober
        self.normalizer = normalizer
        self.staging = staging
        self.signer = signer
        self.settings = settings

    async def _load_owned_video(self, video_id: str, user_id: str) -> Video:
        video = await self.repository.get(video_id)
        if video.user_id != user_id:
            logger.warning(
                "Rejected access to a video owned by another user",
                extra={"video_id": video_id, "user_id": user_id, "owner_id": video.user_id},
            )
            raise ForbiddenError()
        return video

    async def handle_upload(self, video_id: str, user_id: str, upload: UploadFile | None) -> Video:
        """
        Ingest a video file for a video record owned by ``user_id``.

        Args:
            video_id: Identifier of the target video record.
            user_id: Authenticated caller.
            upload: The ``video`` multipart part, or None if it was absent.

        Returns:
            Video: The updated record, with signed URLs in its url fields.

        Raises:
            TubelyError: The subclass matching the failing stage.
        """
        ctx_logger = add_log_context(logger, video_id=video_id, user_id=user_id)

        video = await self._load_owned_video(video_id, user_id)

        if upload is None:
            raise BadRequestError("Missing 'video' file in form data")

        media_type = parse_media_type(upload.content_type)
        if media_type != VIDEO_CONTENT_TYPE:
            raise UnsupportedMediaTypeError(
                f"Invalid file type {media_type}; only {VIDEO_CONTENT_TYPE} is accepted"
            )

        ctx_logger.info("Uploading video", extra={"upload_filename": upload.filename})

        async with self.staging.session("video") as session:
            raw_path = await session.receive(
                upload,
                f"video.{extension_for(media_type)}",
                max_bytes=self.settings.max_video_upload_size_bytes,
            )

            header = await session.read_head(raw_path, MP4_HEADER_BYTES)
            if not has_mp4_signature(header):
                raise UnsupportedMediaTypeError("File is not a valid MP4")

            width, height = await asyncio.to_thread(self.prober.probe_dimensions, raw_path)
            orientation = orientation_for_dimensions(width, height)
            ctx_logger.info(
                "Probed video",
                extra={"width": width, "height": height, "orientation": orientation.value},
            )

            processed_path = session.adopt(
                await asyncio.to_thread(self.normalizer.remux_fast_start, raw_path)
            )
            await session.discard(raw_path)

            key = derive_storage_key(media_type, orientation)
            reference = await asyncio.to_thread(
                self.storage.upload_file, processed_path, key, media_type
            )

        ctx_logger.info("Stored video", extra={"bucket": reference.bucket, "key": reference.key})

        updated = video.model_copy(
            update={"video_url": reference.encode(), "updated_at": datetime.now(UTC)}
        )
        await self.repository.update(updated)

        ctx_logger.info("Video upload complete")
        return self.signer.sign_video(updated)

    async def handle_thumbnail_upload(
        self, video_id: str, user_id: str, upload: UploadFile | None
    ) -> Video:
        """
        Store a thumbnail image for a video record owned by ``user_id``.

        The declared type must be one of ``allowed_thumbnail_content_types``
        and the content must sniff as that same type.

        Raises:
            TubelyError: The subclass matching the failing stage.
        """
        ctx_logger = add_log_context(logger, video_id=video_id, user_id=user_id)

        video = await self._load_owned_video(video_id, user_id)

        if upload is None:
            raise BadRequestError("Missing 'thumbnail' file in form data")

        media_type = parse_media_type(upload.content_type)
        if media_type not in self.settings.allowed_thumbnail_content_types:
            raise UnsupportedMediaTypeError(f"Invalid thumbnail type {media_type}")

        async with self.staging.session("thumbnail") as session:
            image_path = await session.receive(
                upload,
                f"thumbnail.{extension_for(media_type)}",
                max_bytes=self.settings.max_thumbnail_upload_size_bytes,
            )

            head = await session.read_head(image_path, SNIFF_BYTES)
            validate_image_signature(head, media_type)

            key = derive_storage_key(media_type, THUMBNAIL_PREFIX)
            reference = await asyncio.to_thread(
                self.storage.upload_file, image_path, key, media_type
            )

        updated = video.model_copy(
            update={"thumbnail_url": reference.encode(), "updated_at": datetime.now(UTC)}
        )
        await self.repository.update(updated)

        ctx_logger.info("Thumbnail upload complete", extra={"key": reference.key})
        return self.signer.sign_video(updated)

    async def get_video(self, video_id: str) -> Video:
        """Load any video record and sign its references."""
        return self.signer.sign_video(await self.repository.get(video_id))

    async def list_videos(self, user_id: str) -> list[Video]:
        """Load the caller's videos, newest first, with signed references."""
        videos = await self.repository.list_for_user(user_id)
        return [self.signer.sign_video(video) for video in videos]


__all__ = ["VIDEO_CONTENT_TYPE", "VideoUploadService"]
