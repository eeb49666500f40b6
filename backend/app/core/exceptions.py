"""
Error taxonomy for the Tubely ingestion pipeline.

Every pipeline stage raises one of the exceptions below instead of returning
status flags. Each class carries the HTTP status code and error code the API
layer responds with, so routers translate failures without inspecting them.

Client-facing errors (4xx) expose their message as-is. Internal failures (5xx)
expose a generic message only; the specific message and the chained cause are
logged server-side.
"""


class TubelyError(Exception):
    """Base exception for all ingestion pipeline errors."""

    status_code: int = 500
    error_code: str = "internal_error"
    public_message: str = "An unexpected error occurred while processing the request."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)

    @property
    def is_client_error(self) -> bool:
        """True when the failure was caused by the request rather than the server."""
        return self.status_code < 500

    @property
    def client_message(self) -> str:
        """Message that is safe to return in an API response."""
        if self.is_client_error:
            return str(self)
        return self.public_message


# =============================================================================
# Client Errors
# =============================================================================


class BadRequestError(TubelyError):
    """Raised when the request is malformed (missing form field, bad ID, bad content type)."""

    status_code = 400
    error_code = "bad_request"
    public_message = "The request is malformed."


class UnauthorizedError(TubelyError):
    """Raised when the caller could not be authenticated."""

    status_code = 401
    error_code = "unauthorized"
    public_message = "Authentication is required."


class ForbiddenError(TubelyError):
    """Raised when the authenticated user does not own the video being mutated."""

    status_code = 403
    error_code = "forbidden"
    public_message = "You do not own this video."


class VideoNotFoundError(TubelyError):
    """Raised when no video record exists for the requested identifier."""

    status_code = 404
    error_code = "not_found"
    public_message = "Video not found."


class PayloadTooLargeError(TubelyError):
    """Raised when an upload exceeds the configured size limit."""

    status_code = 413
    error_code = "payload_too_large"
    public_message = "The uploaded file is too large."


class UnsupportedMediaTypeError(TubelyError):
    """Raised when the declared or detected media type is not accepted."""

    status_code = 415
    error_code = "unsupported_media_type"
    public_message = "Unsupported media type."


# =============================================================================
# Internal Errors
# =============================================================================


class StagingIOError(TubelyError):
    """Raised when the upload could not be written to or read from local staging."""

    error_code = "staging_failed"
    public_message = "Failed to receive the uploaded file."


class ProbeUnavailableError(TubelyError):
    """Raised when the probing tool cannot be invoked."""

    error_code = "probe_unavailable"
    public_message = "Failed to inspect the uploaded video."


class ProbeParseError(TubelyError):
    """Raised when probe output cannot be interpreted."""

    error_code = "probe_failed"
    public_message = "Failed to inspect the uploaded video."


class NoStreamsFoundError(TubelyError):
    """Raised when the probed container declares zero streams."""

    error_code = "no_streams"
    public_message = "Failed to inspect the uploaded video."


class NormalizationFailedError(TubelyError):
    """Raised when the fast-start remux exits unsuccessfully."""

    error_code = "processing_failed"
    public_message = "Failed to process the uploaded video."


class UnsupportedContentTypeError(TubelyError):
    """Raised when no file extension is known for a content type."""

    error_code = "unsupported_content_type"
    public_message = "Failed to store the uploaded file."


class UploadFailedError(TubelyError):
    """Raised when the object store rejects an upload."""

    error_code = "upload_failed"
    public_message = "Failed to store the uploaded file."


class PersistenceFailedError(TubelyError):
    """Raised when the metadata store rejects an update."""

    error_code = "persistence_failed"
    public_message = "Failed to save the video."


class SigningFailedError(TubelyError):
    """Raised when a playback URL cannot be signed."""

    error_code = "signing_failed"
    public_message = "Failed to generate a playback URL."


__all__ = [
    "BadRequestError",
    "ForbiddenError",
    "NoStreamsFoundError",
    "NormalizationFailedError",
    "PayloadTooLargeError",
    "PersistenceFailedError",
    "ProbeParseError",
    "ProbeUnavailableError",
    "SigningFailedError",
    "StagingIOError",
    "TubelyError",
    "UnauthorizedError",
    "UnsupportedContentTypeError",
    "UnsupportedMediaTypeError",
    "UploadFailedError",
    "VideoNotFoundError",
]
