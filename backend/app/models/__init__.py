"""
Models Package for Tubely.

This package provides the Pydantic models shared by the API layer, the
metadata store and the ingestion pipeline.

Models Overview:
    - Video: Video record as persisted in MongoDB
    - VideoResponse: API representation with signed URLs
    - StorageReference: (bucket, key) pointer persisted as ``bucket,key``
    - Orientation: Storage key namespace derived from aspect ratio

Example Usage:
    ```python
    from app.models import Orientation, StorageReference, Video

    video = Video(_id="0f8fad5b-d9cb-469f-a165-70867728950e", user_id="user123", title="Trail")
    reference = StorageReference(bucket="tubely-videos", key="landscape/abc.mp4")
    video = video.model_copy(update={"video_url": reference.encode()})
    ```
"""

from app.models.video import (
    ASPECT_RATIO_LANDSCAPE,
    ASPECT_RATIO_OTHER,
    ASPECT_RATIO_PORTRAIT,
    Orientation,
    StorageReference,
    Video,
    VideoResponse,
)


__all__ = [
    "ASPECT_RATIO_LANDSCAPE",
    "ASPECT_RATIO_OTHER",
    "ASPECT_RATIO_PORTRAIT",
    "Orientation",
    "StorageReference",
    "Video",
    "VideoResponse",
]
