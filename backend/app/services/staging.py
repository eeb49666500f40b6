"""
Staging Manager for Tubely.

Owns the temporary local files that buffer an upload between network receipt
and the object store. Each request gets its own directory created with
``tempfile.mkdtemp``, so concurrent uploads never share a path, and the whole
directory is removed when the session exits, whatever the outcome.

Usage:
    ```python
    staging = StagingArea(root=settings.staging_dir, chunk_size=settings.upload_chunk_size_bytes)

    async with staging.session("upload") as session:
        raw_path = await session.receive(upload, "video.mp4", max_bytes=settings.max_video_upload_size_bytes)
        header = await session.read_head(raw_path, 12)
        ...
    # every file created in the session is gone here
    ```
"""

import asyncio
import logging
import tempfile

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiofiles

from fastapi import UploadFile

from app.config import BYTES_PER_MB
from app.core.exceptions import PayloadTooLargeError, StagingIOError
from app.utils.file_validator import format_file_size


logger = logging.getLogger(__name__)

STAGING_DIR_PREFIX = "tubely_upload_"


class StagingSession:
    """
    One request's staging directory and the files tracked inside it.

    Attributes:
        directory: The per-request directory holding every staged file.
        files: Files currently owned by the session.
    """

    def __init__(self, directory: Path, chunk_size: int) -> None:
        self.directory = directory
        self.chunk_size = chunk_size
        self.files: list[Path] = []

    async def receive(self, upload: UploadFile, name: str, max_bytes: int) -> Path:
        """
        Stream an uploaded file into the staging directory.

        The body is copied chunk by chunk and the limit is checked as bytes
        arrive, so an oversized upload is rejected without being fully written.

        Args:
            upload: The multipart file part.
            name: File name to use inside the staging directory.
            max_bytes: Largest accepted size in bytes.

        Returns:
            Path: Location of the staged file.

        Raises:
            PayloadTooLargeError: If the upload exceeds ``max_bytes``.
            StagingIOError: If the body cannot be read or written.
        """
        path = self.directory / Path(name).name
        self.files.append(path)
        written = 0

        try:
            async with aiofiles.open(path, "wb") as staged:
                while chunk := await upload.read(self.chunk_size):
                    written += len(chunk)
                    if written > max_bytes:
                        raise PayloadTooLargeError(
                            f"Upload exceeds the {format_file_size(max_bytes)} limit"
                        )
                    await staged.write(chunk)
        except OSError as e:
            raise StagingIOError(f"Failed to stage upload as {path.name}: {e}") from e

        logger.debug(
            "Staged upload",
            extra={"file": path.name, "size": written, "size_mb": round(written / BYTES_PER_MB, 2)},
        )
        return path

    async def read_head(self, path: Path, size: int) -> bytes:
        """
        Read the first ``size`` bytes of a staged file from its start.

        Raises:
            StagingIOError: If the file cannot be read.
        """
        try:
            async with aiofiles.open(path, "rb") as staged:
                return await staged.read(size)
        except OSError as e:
            raise StagingIOError(f"Failed to read staged file {path.name}: {e}") from e

    def adopt(self, path: Path) -> Path:
        """Take ownership of a file another component wrote into this session."""
        if path not in self.files:
            self.files.append(path)
        return path

    async def discard(self, path: Path) -> None:
        """Delete a superseded staged file right away."""
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as cleanup_error:
            logger.warning(
                "Failed to delete staged file '%s': %s", path.name, str(cleanup_error)
            )
            return
        if path in self.files:
            self.files.remove(path)

    async def cleanup(self) -> None:
        """
        Remove every file in the staging directory and the directory itself.

        The directory is scanned rather than relying on ``files`` alone, so
        partial output left behind by a failed subprocess is removed as well.
        Filesystem calls run in a worker thread.
        """
        if await asyncio.to_thread(self._remove_directory):
            self.files.clear()
            logger.debug("Cleaned up staging directory: %s", self.directory)

    def _remove_directory(self) -> bool:
        try:
            leftovers = list(self.directory.iterdir())
        except FileNotFoundError:
            return False
        except OSError as cleanup_error:
            logger.warning(
                "Failed to list staging directory '%s': %s", self.directory, str(cleanup_error)
            )
            return False

        for path in leftovers:
            try:
                path.unlink(missing_ok=True)
            except OSError as cleanup_error:
                logger.warning(
                    "Failed to clean up staged file '%s': %s", path, str(cleanup_error)
                )

        try:
            self.directory.rmdir()
        except OSError as cleanup_error:
            logger.warning(
                "Failed to remove staging directory '%s': %s", self.directory, str(cleanup_error)
            )
            return False
        return True


class StagingArea:
    """Factory for per-request staging sessions under a common root."""

    def __init__(self, root: str | Path | None = None, chunk_size: int = BYTES_PER_MB) -> None:
        self.root = Path(root) if root is not None else None
        self.chunk_size = chunk_size

    def _make_directory(self, label: str) -> Path:
        if self.root is not None:
            self.root.mkdir(parents=True, exist_ok=True)
        return Path(
            tempfile.mkdtemp(
                prefix=f"{STAGING_DIR_PREFIX}{label}_",
                dir=str(self.root) if self.root is not None else None,
            )
        )

    @asynccontextmanager
    async def session(self, label: str = "upload") -> AsyncIterator[StagingSession]:
        """
        Open a staging session that is cleaned up on exit.

        Raises:
            StagingIOError: If the staging directory cannot be created.
        """
        try:
            directory = await asyncio.to_thread(self._make_directory, label)
        except OSError as e:
            raise StagingIOError(f"Failed to create staging directory: {e}") from e

        session = StagingSession(directory, self.chunk_size)
        try:
            yield session
        finally:
            await session.cleanup()


__all__ = [
    "STAGING_DIR_PREFIX",
    "StagingArea",
    "StagingSession",
]
