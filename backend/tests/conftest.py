"""
Pytest Configuration and Test Fixtures for the Tubely Backend

This module provides the shared fixtures for the ingestion pipeline tests:
- Test Settings with small upload limits and a local MinIO-style endpoint
- A sample video record and a mocked VideoRepository
- A mocked StorageClient that records uploads and returns fake signed URLs
- In-process fakes for the ffprobe prober and ffmpeg normalizer
- A StagingArea rooted in pytest's tmp_path so cleanup can be asserted
- FastAPI TestClient with the upload service and settings overridden
- Bearer tokens for the owner and for another user
"""

import shutil

from datetime import UTC, datetime
from io import BytesIO
from pathlib import Path
from typing import Any, Generator
from unittest.mock import AsyncMock, Mock

import pytest

from fastapi import UploadFile
from fastapi.testclient import TestClient
from starlette.datastructures import Headers

from app.config import Settings, get_settings
from app.core.auth import create_local_jwt
from app.core.database import VideoRepository
from app.core.storage import StorageClient
from app.models.video import StorageReference, Video
from app.services.fast_start import processing_path_for
from app.services.playback_signer import PlaybackSigner
from app.services.staging import StagingArea
from app.services.video_upload_service import VideoUploadService


TEST_USER_ID = "7c9e6679-7425-40de-944b-e07fc1f90ae7"
OTHER_USER_ID = "16fd2706-8baf-433b-82eb-8c7fada847da"
TEST_VIDEO_ID = "0f8fad5b-d9cb-469f-a165-70867728950e"
TEST_BUCKET = "test-bucket"
TEST_URL_TTL = 900

# ftyp box at bytes 4..8, followed by padding standing in for media data
MP4_BYTES = b"\x00\x00\x00\x20ftypisom\x00\x00\x02\x00" + b"\x00" * 2048
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 512


# ==============================================================================
# Pytest Configuration
# ==============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """
    Configure pytest with custom markers for test categorization.

    Markers defined:
    - unit: For unit tests (isolated, no external dependencies)
    - integration: For tests requiring ffmpeg, MongoDB or MinIO
    """
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")


# ==============================================================================
# Helpers
# ==============================================================================


def make_upload(data: bytes, content_type: str | None, filename: str = "clip.mp4") -> UploadFile:
    """Build an UploadFile the way Starlette does for a multipart part."""
    headers = Headers({"content-type": content_type}) if content_type else Headers({})
    return UploadFile(file=BytesIO(data), filename=filename, headers=headers)


def signed_url(key: str, expires_in: int = TEST_URL_TTL, bucket: str | None = None) -> str:
    """Fake presigned URL used by the mocked storage client."""
    return f"https://signed.example/{bucket or TEST_BUCKET}/{key}?X-Amz-Expires={expires_in}"


def staged_leftovers(root: Path) -> list[Path]:
    """Everything still present under a staging root."""
    if not root.exists():
        return []
    return list(root.rglob("*"))


class FakeProber:
    """ContainerProber returning fixed dimensions, or raising a given error."""

    def __init__(self, width: int = 1920, height: int = 1080) -> None:
        self.dimensions = (width, height)
        self.error: Exception | None = None
        self.calls: list[Path] = []

    def probe_dimensions(self, path: Path) -> tuple[int, int]:
        self.calls.append(path)
        if self.error is not None:
            raise self.error
        return self.dimensions


class FakeNormalizer:
    """
    FastStartNormalizer that copies the input to its processing path.

    When ``error`` is set, a partial output file is written before raising,
    mimicking an ffmpeg run that dies midway.
    """

    def __init__(self) -> None:
        self.error: Exception | None = None
        self.calls: list[Path] = []

    def remux_fast_start(self, path: Path) -> Path:
        self.calls.append(path)
        output_path = processing_path_for(path)
        if self.error is not None:
            output_path.write_bytes(b"partial")
            raise self.error
        shutil.copyfile(path, output_path)
        return output_path


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def mock_settings() -> Settings:
    """
    Create a Settings instance with test-specific configuration values.

    Upload limits are 1 MB so size enforcement can be exercised with small
    bodies, and the chunk size is small so staging writes several chunks.
    """
    return Settings(
        app_env="testing",
        app_name="Tubely-Test",
        debug=True,
        json_logs=False,
        secret_key="test-secret-key-for-jwt-signing-minimum-32-chars",
        mongodb_uri="mongodb://localhost:27017/test_tubely",
        mongodb_db_name="test_tubely",
        mongodb_min_pool_size=1,
        mongodb_max_pool_size=10,
        s3_endpoint_url="http://localhost:9000",
        s3_access_key_id="test-access-key",
        s3_secret_access_key="test-secret-key",
        s3_bucket_name=TEST_BUCKET,
        s3_region="us-east-1",
        presigned_url_expiration_seconds=TEST_URL_TTL,
        jwt_algorithm="HS256",
        jwt_expiration_hours=24,
        max_video_upload_size_mb=1,
        max_thumbnail_upload_size_mb=1,
        upload_chunk_size_bytes=4096,
        allowed_thumbnail_content_types=["image/png", "image/jpeg"],
    )


# ==============================================================================
# Data Fixtures
# ==============================================================================


@pytest.fixture
def sample_video() -> Video:
    """A draft video record owned by TEST_USER_ID with nothing uploaded yet."""
    created = datetime(2024, 1, 15, 10, 30, tzinfo=UTC)
    return Video(
        _id=TEST_VIDEO_ID,
        user_id=TEST_USER_ID,
        title="Boots on the trail",
        description="Morning hike",
        created_at=created,
        updated_at=created,
    )


# ==============================================================================
# Collaborator Fixtures
# ==============================================================================


@pytest.fixture
def mock_repository(sample_video: Video) -> AsyncMock:
    """Mocked VideoRepository serving ``sample_video``."""
    repository = AsyncMock(spec=VideoRepository)
    repository.get.return_value = sample_video
    repository.update.return_value = None
    repository.list_for_user.return_value = [sample_video]
    return repository


@pytest.fixture
def mock_storage() -> Mock:
    """
    Mocked StorageClient.

    Uploads return a reference in TEST_BUCKET and record the bytes of the
    uploaded file in ``uploaded`` (keyed by object key), read while the staged
    file still exists.
    """
    storage = Mock(spec=StorageClient)
    storage.bucket_name = TEST_BUCKET
    storage.uploaded = {}

    def upload_file(
        file_path: str | Path, key: str, content_type: str, bucket: str | None = None
    ) -> StorageReference:
        storage.uploaded[key] = Path(file_path).read_bytes()
        return StorageReference(bucket=bucket or TEST_BUCKET, key=key)

    storage.upload_file.side_effect = upload_file
    storage.generate_presigned_download_url.side_effect = signed_url
    return storage


@pytest.fixture
def fake_prober() -> FakeProber:
    return FakeProber()


@pytest.fixture
def fake_normalizer() -> FakeNormalizer:
    return FakeNormalizer()


@pytest.fixture
def staging_root(tmp_path: Path) -> Path:
    return tmp_path / "staging"


@pytest.fixture
def staging_area(staging_root: Path, mock_settings: Settings) -> StagingArea:
    return StagingArea(staging_root, chunk_size=mock_settings.upload_chunk_size_bytes)


@pytest.fixture
def signer(mock_storage: Mock) -> PlaybackSigner:
    return PlaybackSigner(mock_storage, TEST_URL_TTL)


@pytest.fixture
def upload_service(
    mock_repository: AsyncMock,
    mock_storage: Mock,
    fake_prober: FakeProber,
    fake_normalizer: FakeNormalizer,
    staging_area: StagingArea,
    signer: PlaybackSigner,
    mock_settings: Settings,
) -> VideoUploadService:
    """VideoUploadService wired to fakes and mocks only."""
    return VideoUploadService(
        repository=mock_repository,
        storage=mock_storage,
        prober=fake_prober,
        normalizer=fake_normalizer,
        staging=staging_area,
        signer=signer,
        settings=mock_settings,
    )


# ==============================================================================
# Authentication Fixtures
# ==============================================================================


@pytest.fixture
def auth_headers(mock_settings: Settings) -> dict[str, str]:
    """Authorization header for the owner of ``sample_video``."""
    return {"Authorization": f"Bearer {create_local_jwt(TEST_USER_ID, mock_settings)}"}


@pytest.fixture
def other_user_headers(mock_settings: Settings) -> dict[str, str]:
    """Authorization header for a user who owns nothing."""
    return {"Authorization": f"Bearer {create_local_jwt(OTHER_USER_ID, mock_settings)}"}


# ==============================================================================
# FastAPI Test Client Fixtures
# ==============================================================================


@pytest.fixture
def test_client(
    upload_service: VideoUploadService, mock_settings: Settings
) -> Generator[TestClient, None, None]:
    """
    TestClient with the upload service and settings overridden.

    The client is not used as a context manager, so the lifespan (and with it
    the MongoDB connection) never runs.
    """
    from app.api.v1.videos import get_video_upload_service
    from app.main import app

    app.dependency_overrides[get_video_upload_service] = lambda: upload_service
    app.dependency_overrides[get_settings] = lambda: mock_settings
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def video_document(**overrides: Any) -> dict[str, Any]:
    """A raw MongoDB document for a video record."""
    document: dict[str, Any] = {
        "_id": TEST_VIDEO_ID,
        "user_id": TEST_USER_ID,
        "title": "Boots on the trail",
        "description": None,
        "video_url": None,
        "thumbnail_url": None,
        "created_at": datetime(2024, 1, 15, 10, 30, tzinfo=UTC),
        "updated_at": datetime(2024, 1, 15, 10, 30, tzinfo=UTC),
    }
    document.update(overrides)
    return document
