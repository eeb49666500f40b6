"""
Video Pydantic models for Tubely.

This module defines the Video record persisted in the metadata store, the API
response model returned to clients, the StorageReference pointer persisted into
a video's url fields, and the Orientation namespace used for storage keys.

Persisted url fields never hold resolved URLs. They hold a StorageReference
encoded as ``bucket,key``; signed URLs are derived from it on every read.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# CONSTANTS
# =============================================================================

# Separator between bucket and key in an encoded StorageReference
REFERENCE_SEPARATOR: str = ","

# Aspect ratio labels reported by the Container Prober
ASPECT_RATIO_LANDSCAPE: str = "16:9"
ASPECT_RATIO_PORTRAIT: str = "9:16"
ASPECT_RATIO_OTHER: str = "other"


# =============================================================================
# ENUMS
# =============================================================================


class Orientation(str, Enum):
    """
    Storage key namespace derived from a video's aspect ratio.

    Only used as the first path segment of an object key, never persisted
    on its own.
    """

    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"

    @classmethod
    def from_aspect_ratio(cls, aspect_ratio: str) -> "Orientation":
        """Map a prober aspect ratio label ("16:9", "9:16", "other") to an orientation."""
        if aspect_ratio == ASPECT_RATIO_LANDSCAPE:
            return cls.LANDSCAPE
        if aspect_ratio == ASPECT_RATIO_PORTRAIT:
            return cls.PORTRAIT
        return cls.OTHER


# =============================================================================
# MODELS
# =============================================================================


class StorageReference(BaseModel):
    """
    Durable pointer to one object in the object store.

    Immutable once written. Re-uploads produce a new reference with a new key
    rather than overwriting an existing object.

    Example:
        ```python
        reference = StorageReference(bucket="tubely-videos", key="landscape/abc.mp4")
        reference.encode()  # "tubely-videos,landscape/abc.mp4"
        StorageReference.parse("tubely-videos,landscape/abc.mp4") == reference  # True
        ```
    """

    bucket: str = Field(..., min_length=1, description="Bucket holding the object")
    key: str = Field(..., min_length=1, description="Object key inside the bucket")

    model_config = ConfigDict(frozen=True)

    def encode(self) -> str:
        """Encode as the ``bucket,key`` string stored on a video record."""
        return f"{self.bucket}{REFERENCE_SEPARATOR}{self.key}"

    @classmethod
    def parse(cls, value: str) -> "StorageReference":
        """
        Decode a ``bucket,key`` string.

        Bucket names cannot contain commas, so the first comma separates the
        two parts and any later comma belongs to the key.

        Raises:
            ValueError: If either part is missing.
        """
        bucket, separator, key = value.partition(REFERENCE_SEPARATOR)
        if not separator or not bucket or not key:
            raise ValueError(f"Malformed storage reference: {value!r}")
        return cls(bucket=bucket, key=key)


class Video(BaseModel):
    """
    Video record as stored in the metadata store.

    Records are created by the create-video flow; the ingestion pipeline only
    writes ``video_url`` and ``thumbnail_url`` (plus ``updated_at``).

    Attributes:
        id: Video identifier (aliased from MongoDB ``_id``)
        user_id: Identifier of the owning user
        title: Video title
        description: Optional video description
        video_url: Encoded StorageReference of the normalized video, if uploaded
        thumbnail_url: Encoded StorageReference of the thumbnail, if uploaded
        created_at: Record creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)
    """

    id: str = Field(..., alias="_id", description="Video identifier")
    user_id: str = Field(..., min_length=1, description="Owning user's identifier")
    title: str = Field(default="", max_length=500, description="Video title")
    description: str | None = Field(default=None, description="Video description")
    video_url: str | None = Field(
        default=None, description="Playback reference ('bucket,key') or signed URL in responses"
    )
    thumbnail_url: str | None = Field(
        default=None, description="Thumbnail reference ('bucket,key') or signed URL in responses"
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Record creation timestamp (UTC)"
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Last modification timestamp (UTC)"
    )

    model_config = ConfigDict(populate_by_name=True)

    def to_document(self) -> dict:
        """Serialize for MongoDB, keeping ``_id`` as the primary key."""
        return self.model_dump(by_alias=True)


class VideoResponse(BaseModel):
    """
    API representation of a video.

    ``video_url`` and ``thumbnail_url`` are signed URLs (or null), never raw
    storage references.
    """

    id: str = Field(..., description="Video identifier")
    user_id: str = Field(..., description="Owning user's identifier")
    title: str = Field(..., description="Video title")
    description: str | None = Field(default=None, description="Video description")
    video_url: str | None = Field(default=None, description="Signed playback URL")
    thumbnail_url: str | None = Field(default=None, description="Signed thumbnail URL")
    created_at: datetime = Field(..., description="Record creation timestamp (UTC)")
    updated_at: datetime = Field(..., description="Last modification timestamp (UTC)")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "0f8fad5b-d9cb-469f-a165-70867728950e",
                "user_id": "7c9e6679-7425-40de-944b-e07fc1f90ae7",
                "title": "Boots on the trail",
                "description": "Morning hike",
                "video_url": "https://tubely-videos.s3.amazonaws.com/landscape/x.mp4?X-Amz-Signature=...",
                "thumbnail_url": None,
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:35:00Z",
            }
        }
    )

    @classmethod
    def from_video(cls, video: Video) -> "VideoResponse":
        """Build a response from an already signed video."""
        return cls(
            id=video.id,
            user_id=video.user_id,
            title=video.title,
            description=video.description,
            video_url=video.video_url,
            thumbnail_url=video.thumbnail_url,
            created_at=video.created_at,
            updated_at=video.updated_at,
        )
