"""
Utilities Package for the Tubely Backend Application.

Modules:
--------
file_validator:
    Checks applied to uploaded files:
    - Content-Type parsing (parameters dropped, case-insensitive)
    - MP4 ``ftyp`` container signature check
    - libmagic content sniffing for thumbnails
    - Human-readable size formatting

logger:
    Structured logging configuration:
    - JSONFormatter for one-line JSON records
    - StandardFormatter for human-readable development logs
    - setup_logging for application-wide configuration, uvicorn included
    - add_log_context for per-upload context fields

Usage:
------
    from app.utils import add_log_context, parse_media_type, setup_logging
"""

from app.utils.file_validator import (
    format_file_size,
    has_mp4_signature,
    parse_media_type,
    validate_image_signature,
)
from app.utils.logger import add_log_context, setup_logging


__all__ = [
    "add_log_context",
    "format_file_size",
    "has_mp4_signature",
    "parse_media_type",
    "setup_logging",
    "validate_image_signature",
]
