"""
Key Deriver for Tubely.

Object keys have the form ``<prefix>/<token>.<ext>``. The token is 32 random
bytes encoded as unpadded URL-safe base64, so keys never collide and a
re-upload always lands on a new object.
"""

import base64
import secrets

from app.core.exceptions import UnsupportedContentTypeError
from app.models.video import Orientation


TOKEN_BYTES = 32

THUMBNAIL_PREFIX = "thumbnails"

CONTENT_TYPE_EXTENSIONS: dict[str, str] = {
    "video/mp4": "mp4",
    "image/png": "png",
    "image/jpeg": "jpg",
}


def random_token(nbytes: int = TOKEN_BYTES) -> str:
    """Return ``nbytes`` of CSPRNG output as unpadded URL-safe base64."""
    return base64.urlsafe_b64encode(secrets.token_bytes(nbytes)).rstrip(b"=").decode("ascii")


def extension_for(content_type: str) -> str:
    """
    File extension for a normalized media type.

    Raises:
        UnsupportedContentTypeError: If the type has no known extension.
    """
    try:
        return CONTENT_TYPE_EXTENSIONS[content_type]
    except KeyError:
        raise UnsupportedContentTypeError(
            f"No file extension known for content type {content_type!r}"
        ) from None


def derive_storage_key(content_type: str, prefix: Orientation | str) -> str:
    """
    Build a fresh object key for an upload.

    Example:
        >>> derive_storage_key("video/mp4", Orientation.LANDSCAPE)
        'landscape/q0uGx3...Zr8.mp4'
    """
    namespace = prefix.value if isinstance(prefix, Orientation) else prefix
    return f"{namespace}/{random_token()}.{extension_for(content_type)}"


__all__ = [
    "CONTENT_TYPE_EXTENSIONS",
    "THUMBNAIL_PREFIX",
    "TOKEN_BYTES",
    "derive_storage_key",
    "extension_for",
    "random_token",
]
