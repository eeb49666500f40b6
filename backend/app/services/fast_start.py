"""
Fast-Start Normalizer for Tubely.

Remuxes an MP4 so its moov index precedes the media payload, letting browsers
start playback before the whole object is downloaded. Streams are copied, never
re-encoded. The input file is left untouched; the caller owns both files.
"""

import logging
import subprocess

from pathlib import Path
from typing import Protocol

from app.core.exceptions import NormalizationFailedError


logger = logging.getLogger(__name__)

PROCESSING_SUFFIX = ".processing"


class FastStartNormalizer(Protocol):
    """Anything that can write a fast-start copy of a local media file."""

    def remux_fast_start(self, path: Path) -> Path: ...


def processing_path_for(path: Path) -> Path:
    """Where the remuxed copy of ``path`` is written."""
    return path.with_name(path.name + PROCESSING_SUFFIX)


class FFmpegFastStartNormalizer:
    """
    FastStartNormalizer backed by the ffmpeg executable.

    Runs ``ffmpeg -i <in> -c copy -movflags faststart -f mp4 <in>.processing``.
    A failed run may leave a partial output file next to the input; it lives in
    the same staging directory and is removed with it.
    """

    def __init__(self, binary: str = "ffmpeg", timeout: float | None = None) -> None:
        self.binary = binary
        self.timeout = timeout

    def remux_fast_start(self, path: Path) -> Path:
        """
        Write a fast-start copy of ``path`` and return its location.

        Raises:
            NormalizationFailedError: If ffmpeg cannot run, times out, or exits non-zero.
        """
        output_path = processing_path_for(path)
        cmd = [
            self.binary,
            "-i",
            str(path),
            "-c",
            "copy",
            "-movflags",
            "faststart",
            "-f",
            "mp4",
            str(output_path),
        ]

        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, timeout=self.timeout, check=False
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise NormalizationFailedError(f"Could not run {self.binary}: {e}") from e

        if result.returncode != 0:
            raise NormalizationFailedError(
                f"{self.binary} exited with {result.returncode}: "
                f"{(result.stderr or result.stdout or '').strip()}"
            )

        logger.debug("Remuxed for fast start", extra={"output": output_path.name})
        return output_path


__all__ = [
    "PROCESSING_SUFFIX",
    "FFmpegFastStartNormalizer",
    "FastStartNormalizer",
    "processing_path_for",
]
