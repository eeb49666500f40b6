"""
Tubely Configuration Management Module

This module provides configuration management for the Tubely video ingestion service
using Pydantic Settings. It loads and validates all environment variables required for:
- Application settings (name, environment, debug mode, logging)
- MongoDB connection and pooling for the video metadata store
- S3/MinIO object storage and presigned playback URL lifetime
- Local JWT bearer authentication
- Upload limits, staging location and thumbnail content types
- ffprobe/ffmpeg binaries used by the ingestion pipeline

All settings support environment variable overrides and .env file loading with
validation and type safety.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BYTES_PER_MB = 1024 * 1024

# Allowance for multipart boundaries and part headers on top of the file limit
MULTIPART_OVERHEAD_BYTES = BYTES_PER_MB


class Settings(BaseSettings):
    """
    Configuration settings for the Tubely backend.

    This class uses Pydantic Settings to load configuration from environment
    variables and .env files with full type validation.

    Configuration Categories:
    - Application: Core app settings like name, environment, debug mode
    - MongoDB: Database connection URI and connection pool settings
    - S3/MinIO: Object storage credentials, bucket and presigned URL lifetime
    - Auth: Local JWT signing settings
    - Upload: Size limits, staging directory, accepted thumbnail types
    - Media tools: ffprobe/ffmpeg binaries and subprocess timeout

    Example usage:
        ```python
        from app.config import Settings

        settings = Settings()
        print(f"Uploading into bucket: {settings.s3_bucket_name}")
        print(f"Playback URLs live for {settings.presigned_url_expiration_seconds}s")
        ```
    """

    # =========================================================================
    # Application Settings
    # =========================================================================

    app_name: str = Field(
        default="Tubely",
        description="Application name displayed in API documentation and logs",
    )

    app_env: str = Field(
        default="development",
        description="Application environment (development, staging, production, testing)",
    )

    debug: bool = Field(default=False, description="Enable debug mode with hot-reload")

    log_level: str = Field(
        default="info", description="Logging level (debug, info, warning, error, critical)"
    )

    json_logs: bool = Field(
        default=True, description="Emit JSON log records instead of plain text lines"
    )

    secret_key: str = Field(
        default="development-secret-key-change-in-production-32chars",
        description="Secret key for JWT signing. Must be a secure random string.",
        min_length=32,
    )

    host: str = Field(default="0.0.0.0", description="Host address for the API server to bind to")

    port: int = Field(default=8091, description="Port number for the API server", ge=1, le=65535)

    cors_origins: list[str] = Field(
        default=["http://localhost:8091"],
        description="List of allowed CORS origins for frontend access",
    )

    # =========================================================================
    # MongoDB Configuration
    # =========================================================================

    mongodb_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI (e.g., mongodb://localhost:27017)",
    )

    mongodb_db_name: str = Field(
        default="tubely", description="MongoDB database name holding video records"
    )

    mongodb_min_pool_size: int = Field(
        default=10, description="Minimum number of connections in MongoDB connection pool", ge=1
    )

    mongodb_max_pool_size: int = Field(
        default=100, description="Maximum number of connections in MongoDB connection pool", ge=10
    )

    # =========================================================================
    # S3/MinIO Storage Configuration
    # =========================================================================

    s3_endpoint_url: str | None = Field(
        default=None, description="S3-compatible endpoint URL for MinIO (None for AWS S3)"
    )

    s3_access_key_id: str = Field(
        default="minioadmin",
        description="S3/MinIO access key ID for authentication",
    )

    s3_secret_access_key: str = Field(
        default="minioadmin",
        description="S3/MinIO secret access key for authentication",
    )

    s3_bucket_name: str = Field(
        default="tubely-videos", description="S3 bucket receiving normalized videos and thumbnails"
    )

    s3_region: str = Field(
        default="us-east-1",
        description="AWS region for S3 bucket (also used for MinIO compatibility)",
    )

    presigned_url_expiration_seconds: int = Field(
        default=3600,
        description="Lifetime of signed playback URLs in seconds (1 hour)",
        ge=60,
        le=604800,
    )

    # =========================================================================
    # Auth Configuration
    # =========================================================================

    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm (HMAC family)")

    jwt_expiration_hours: int = Field(
        default=24, description="JWT token expiration time in hours", ge=1, le=168
    )

    # =========================================================================
    # Upload Settings
    # =========================================================================

    max_video_upload_size_mb: int = Field(
        default=1024,
        description="Maximum accepted video size in megabytes (1 GiB)",
        ge=1,
        le=10240,
    )

    max_thumbnail_upload_size_mb: int = Field(
        default=10,
        description="Maximum accepted thumbnail size in megabytes",
        ge=1,
        le=100,
    )

    upload_chunk_size_bytes: int = Field(
        default=BYTES_PER_MB,
        description="Chunk size used when streaming uploads into staging files",
        ge=4096,
    )

    staging_dir: str | None = Field(
        default=None,
        description="Directory for per-request staging files (None uses the system temp dir)",
    )

    allowed_thumbnail_content_types: list[str] = Field(
        default=["image/png", "image/jpeg"],
        description="Content types accepted for thumbnail uploads",
    )

    # =========================================================================
    # Media Tool Settings
    # =========================================================================

    ffprobe_binary: str = Field(default="ffprobe", description="ffprobe executable name or path")

    ffmpeg_binary: str = Field(default="ffmpeg", description="ffmpeg executable name or path")

    media_tool_timeout_seconds: int = Field(
        default=300,
        description="Upper bound for a single ffprobe/ffmpeg invocation in seconds",
        ge=1,
    )

    # =========================================================================
    # Model Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"debug", "info", "warning", "error", "critical"}
        normalized = v.lower()
        if normalized not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {', '.join(valid_levels)}")
        return normalized

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate that app_env is a valid environment name."""
        valid_envs = {"development", "staging", "production", "testing"}
        normalized = v.lower()
        if normalized not in valid_envs:
            raise ValueError(f"Invalid app_env '{v}'. Must be one of: {', '.join(valid_envs)}")
        return normalized

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Validate that jwt_algorithm is an HMAC algorithm usable with secret_key."""
        valid_algorithms = {"HS256", "HS384", "HS512"}
        if v.upper() not in valid_algorithms:
            raise ValueError(
                f"Invalid jwt_algorithm '{v}'. Must be one of: {', '.join(valid_algorithms)}"
            )
        return v.upper()

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string if provided as string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("allowed_thumbnail_content_types", mode="before")
    @classmethod
    def validate_thumbnail_types(cls, v: str | list[str]) -> list[str]:
        """Parse thumbnail content types from a comma-separated string and lower-case them."""
        if isinstance(v, str):
            v = [item for item in v.split(",") if item.strip()]
        return [item.strip().lower() for item in v]

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def max_video_upload_size_bytes(self) -> int:
        """Maximum video size in bytes, enforced while staging the upload."""
        return self.max_video_upload_size_mb * BYTES_PER_MB

    @property
    def max_thumbnail_upload_size_bytes(self) -> int:
        """Maximum thumbnail size in bytes."""
        return self.max_thumbnail_upload_size_mb * BYTES_PER_MB

    @property
    def max_request_body_bytes(self) -> int:
        """
        Largest request body accepted at the transport boundary.

        The video limit plus room for multipart framing. Requests declaring a
        larger Content-Length are rejected before the body is read, and
        streamed bodies stop being read once they pass it.
        """
        return self.max_video_upload_size_bytes + MULTIPART_OVERHEAD_BYTES

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get the global Settings instance.

    The @lru_cache decorator ensures that the Settings object is created only
    once on first call, and subsequent calls return the cached instance without
    re-reading environment variables or .env files.

    Returns:
        Settings: The global configuration instance.

    Example:
        ```python
        from app.config import get_settings

        settings = get_settings()
        print(f"Running in {settings.app_env} mode")
        ```
    """
    return Settings()
