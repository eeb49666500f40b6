"""
FastAPI Videos Router for Tubely

Endpoints under /api/v1/videos:
- POST /{video_id}/upload - Upload the video file for an owned video record
- POST /{video_id}/thumbnail - Upload a thumbnail image for an owned video record
- GET /{video_id} - Fetch a video record with signed playback URLs
- GET / - List the caller's videos, newest first

All endpoints require a bearer token. Video identifiers must be UUIDs.
Pipeline failures are TubelyError subclasses and are translated here into
HTTP errors with a ``{"error", "message"}`` detail; internal failures are
logged in full and reported with a generic message only.
"""

import logging
import uuid

from typing import NoReturn

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from pydantic import BaseModel, Field

from app.config import Settings, get_settings
from app.core.auth import get_current_user_id
from app.core.database import VideoRepository, get_video_repository
from app.core.exceptions import BadRequestError, TubelyError
from app.core.storage import get_storage_client
from app.models.video import VideoResponse
from app.services.fast_start import FFmpegFastStartNormalizer
from app.services.media_probe import FFprobeContainerProber
from app.services.playback_signer import PlaybackSigner
from app.services.staging import StagingArea
from app.services.video_upload_service import VideoUploadService


logger = logging.getLogger(__name__)


# ============================================================================
# Response Models
# ============================================================================


class ErrorDetail(BaseModel):
    """Error payload carried in the ``detail`` field of error responses."""

    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Client-safe error description")


class ErrorResponse(BaseModel):
    """Error response body."""

    detail: ErrorDetail


ERROR_RESPONSES: dict[int | str, dict] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse, "description": "Malformed request"},
    status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse, "description": "Not authenticated"},
    status.HTTP_403_FORBIDDEN: {"model": ErrorResponse, "description": "Not the video owner"},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse, "description": "Video not found"},
    status.HTTP_413_CONTENT_TOO_LARGE: {
        "model": ErrorResponse,
        "description": "File too large",
    },
    status.HTTP_415_UNSUPPORTED_MEDIA_TYPE: {
        "model": ErrorResponse,
        "description": "Unsupported media type",
    },
    status.HTTP_500_INTERNAL_SERVER_ERROR: {
        "model": ErrorResponse,
        "description": "Processing or storage failure",
    },
}


router = APIRouter()


# ============================================================================
# Dependencies
# ============================================================================


def get_playback_signer(settings: Settings = Depends(get_settings)) -> PlaybackSigner:
    """Signer using the shared storage client and the configured URL lifetime."""
    return PlaybackSigner(get_storage_client(), settings.presigned_url_expiration_seconds)


def get_video_upload_service(
    repository: VideoRepository = Depends(get_video_repository),
    signer: PlaybackSigner = Depends(get_playback_signer),
    settings: Settings = Depends(get_settings),
) -> VideoUploadService:
    """Build the upload pipeline from the configured collaborators."""
    return VideoUploadService(
        repository=repository,
        storage=signer.storage,
        prober=FFprobeContainerProber(
            settings.ffprobe_binary, timeout=settings.media_tool_timeout_seconds
        ),
        normalizer=FFmpegFastStartNormalizer(
            settings.ffmpeg_binary, timeout=settings.media_tool_timeout_seconds
        ),
        staging=StagingArea(settings.staging_dir, chunk_size=settings.upload_chunk_size_bytes),
        signer=signer,
        settings=settings,
    )


# ============================================================================
# Helpers
# ============================================================================


def _parse_video_id(video_id: str) -> str:
    """Return the canonical form of a UUID path parameter."""
    try:
        return str(uuid.UUID(video_id))
    except ValueError:
        raise _to_http_exception(BadRequestError(f"Invalid video ID: {video_id!r}")) from None


def _to_http_exception(error: TubelyError) -> HTTPException:
    return HTTPException(
        status_code=error.status_code,
        detail={"error": error.error_code, "message": error.client_message},
    )


def _raise_http_error(error: TubelyError, action: str, **context: str) -> NoReturn:
    if error.is_client_error:
        logger.info(
            "%s rejected: %s",
            action,
            error,
            extra={**context, "error_code": error.error_code, "status_code": error.status_code},
        )
    else:
        logger.exception(
            "%s failed: %s", action, error, extra={**context, "error_code": error.error_code}
        )
    raise _to_http_exception(error) from error


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "internal_error",
            "message": "An unexpected error occurred while processing the request.",
        },
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "/{video_id}/upload",
    response_model=VideoResponse,
    responses=ERROR_RESPONSES,
    summary="Upload a video file",
)
async def upload_video(
    video_id: str,
    video: UploadFile | None = File(default=None, description="MP4 file (video/mp4)"),
    user_id: str = Depends(get_current_user_id),
    service: VideoUploadService = Depends(get_video_upload_service),
) -> VideoResponse:
    """
    Upload the media file for an existing video record.

    The file is staged, checked for an MP4 container signature, remuxed for
    fast start and stored under an orientation-prefixed key. The response
    carries a presigned playback URL.
    """
    canonical_id = _parse_video_id(video_id)

    try:
        updated = await service.handle_upload(canonical_id, user_id, video)
    except TubelyError as e:
        _raise_http_error(e, "Video upload", video_id=canonical_id, user_id=user_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(
            "Video upload failed unexpectedly",
            extra={"video_id": canonical_id, "user_id": user_id},
        )
        raise _internal_error() from e

    return VideoResponse.from_video(updated)


@router.post(
    "/{video_id}/thumbnail",
    response_model=VideoResponse,
    responses=ERROR_RESPONSES,
    summary="Upload a thumbnail image",
)
async def upload_thumbnail(
    video_id: str,
    thumbnail: UploadFile | None = File(default=None, description="PNG or JPEG image"),
    user_id: str = Depends(get_current_user_id),
    service: VideoUploadService = Depends(get_video_upload_service),
) -> VideoResponse:
    """Upload the thumbnail image for an existing video record."""
    canonical_id = _parse_video_id(video_id)

    try:
        updated = await service.handle_thumbnail_upload(canonical_id, user_id, thumbnail)
    except TubelyError as e:
        _raise_http_error(e, "Thumbnail upload", video_id=canonical_id, user_id=user_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(
            "Thumbnail upload failed unexpectedly",
            extra={"video_id": canonical_id, "user_id": user_id},
        )
        raise _internal_error() from e

    return VideoResponse.from_video(updated)


@router.get(
    "/{video_id}",
    response_model=VideoResponse,
    responses=ERROR_RESPONSES,
    summary="Get a video",
)
async def get_video(
    video_id: str,
    user_id: str = Depends(get_current_user_id),
    service: VideoUploadService = Depends(get_video_upload_service),
) -> VideoResponse:
    """Fetch one video record; stored references are returned as signed URLs."""
    canonical_id = _parse_video_id(video_id)

    try:
        video = await service.get_video(canonical_id)
    except TubelyError as e:
        _raise_http_error(e, "Video lookup", video_id=canonical_id, user_id=user_id)
    except Exception as e:
        logger.exception("Video lookup failed unexpectedly", extra={"video_id": canonical_id})
        raise _internal_error() from e

    return VideoResponse.from_video(video)


@router.get(
    "",
    response_model=list[VideoResponse],
    responses=ERROR_RESPONSES,
    summary="List my videos",
)
async def list_videos(
    user_id: str = Depends(get_current_user_id),
    service: VideoUploadService = Depends(get_video_upload_service),
) -> list[VideoResponse]:
    """List the caller's videos, newest first, with signed URLs."""
    try:
        videos = await service.list_videos(user_id)
    except TubelyError as e:
        _raise_http_error(e, "Video listing", user_id=user_id)
    except Exception as e:
        logger.exception("Video listing failed unexpectedly", extra={"user_id": user_id})
        raise _internal_error() from e

    return [VideoResponse.from_video(video) for video in videos]


__all__ = ["get_playback_signer", "get_video_upload_service", "router"]
