"""
File Validation Utilities for Tubely

Checks applied to uploaded files before they enter the ingestion pipeline:
- Declared content type parsing (media-type parameters stripped, case-insensitive)
- MP4 container signature check on the staged file header
- Image content sniffing with libmagic to catch mislabeled thumbnails
- Human-readable size formatting for error messages and logs
"""

import logging

import magic

from app.core.exceptions import BadRequestError, UnsupportedMediaTypeError


logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

BYTES_PER_KB: int = 1024

# ISO BMFF files open with a box whose type field sits at bytes 4..8
MP4_SIGNATURE: bytes = b"ftyp"
MP4_HEADER_BYTES: int = 12

# Bytes handed to libmagic when sniffing image content
SNIFF_BYTES: int = 2048


# =============================================================================
# CONTENT TYPE PARSING
# =============================================================================


def parse_media_type(content_type: str | None) -> str:
    """
    Extract the bare media type from a Content-Type value.

    Parameters are dropped and the result is lower-cased, so
    ``"Video/MP4; codecs=avc1"`` becomes ``"video/mp4"``.

    Args:
        content_type: Raw Content-Type value of a multipart part.

    Returns:
        str: The normalized ``type/subtype`` string.

    Raises:
        BadRequestError: If the value is missing or is not a ``type/subtype`` pair.
    """
    if not content_type:
        raise BadRequestError("Missing Content-Type for uploaded file")

    media_type = content_type.split(";", 1)[0].strip().lower()
    main_type, slash, sub_type = media_type.partition("/")
    if not slash or not main_type or not sub_type:
        raise BadRequestError(f"Invalid Content-Type: {content_type!r}")

    return media_type


# =============================================================================
# CONTAINER SIGNATURE
# =============================================================================


def has_mp4_signature(header: bytes) -> bool:
    """True when the first 12 bytes of a file contain the ``ftyp`` box marker."""
    return MP4_SIGNATURE in header[:MP4_HEADER_BYTES]


# =============================================================================
# IMAGE SNIFFING
# =============================================================================


def detect_mime_type(content: bytes) -> str:
    """Detect a MIME type from raw content using libmagic."""
    return magic.from_buffer(content[:SNIFF_BYTES], mime=True).lower().strip()


def validate_image_signature(content: bytes, declared_type: str) -> str:
    """
    Confirm that image bytes match their declared type.

    Args:
        content: Leading bytes of the uploaded image.
        declared_type: Normalized media type declared by the client.

    Returns:
        str: The detected MIME type.

    Raises:
        UnsupportedMediaTypeError: If the content is empty or is not the declared type.
    """
    if not content:
        raise UnsupportedMediaTypeError("Uploaded image is empty")

    detected = detect_mime_type(content)
    if detected != declared_type:
        logger.warning(
            "Image content does not match declared type",
            extra={"declared_type": declared_type, "detected_type": detected},
        )
        raise UnsupportedMediaTypeError(
            f"File content is {detected}, not the declared {declared_type}"
        )

    return detected


# =============================================================================
# FORMATTING
# =============================================================================


def format_file_size(size_bytes: int) -> str:
    """
    Format a size in bytes as a human-readable string.

    Example:
        >>> format_file_size(1536)
        '1.50 KB'
        >>> format_file_size(1073741824)
        '1.00 GB'
    """
    if size_bytes < 0:
        return "Invalid size"

    bytes_per_mb = BYTES_PER_KB * BYTES_PER_KB
    bytes_per_gb = bytes_per_mb * BYTES_PER_KB

    if size_bytes < BYTES_PER_KB:
        return f"{size_bytes} B"
    if size_bytes < bytes_per_mb:
        return f"{size_bytes / BYTES_PER_KB:.2f} KB"
    if size_bytes < bytes_per_gb:
        return f"{size_bytes / bytes_per_mb:.2f} MB"
    return f"{size_bytes / bytes_per_gb:.2f} GB"


__all__ = [
    "MP4_HEADER_BYTES",
    "MP4_SIGNATURE",
    "detect_mime_type",
    "format_file_size",
    "has_mp4_signature",
    "parse_media_type",
    "validate_image_signature",
]
