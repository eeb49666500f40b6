"""
Container Prober for Tubely.

Inspects a staged media file with ffprobe and classifies the primary video
stream's aspect ratio. The classification decides the storage key namespace
(landscape/, portrait/ or other/).

Classification uses an absolute tolerance on the width/height ratio, so near
misses such as 1920x1061 fall outside 16:9 while 1920x1075 stays inside.
"""

import json
import logging
import subprocess

from pathlib import Path
from typing import Any, Protocol

from app.core.exceptions import NoStreamsFoundError, ProbeParseError, ProbeUnavailableError
from app.models.video import (
    ASPECT_RATIO_LANDSCAPE,
    ASPECT_RATIO_OTHER,
    ASPECT_RATIO_PORTRAIT,
    Orientation,
)


logger = logging.getLogger(__name__)

ASPECT_RATIO_TOLERANCE = 0.01

LANDSCAPE_RATIO = 16 / 9
PORTRAIT_RATIO = 9 / 16


class ContainerProber(Protocol):
    """Anything that can report the pixel dimensions of a local media file."""

    def probe_dimensions(self, path: Path) -> tuple[int, int]: ...


def classify_aspect_ratio(width: int, height: int) -> str:
    """
    Classify dimensions as "16:9", "9:16" or "other".

    Raises:
        ProbeParseError: If the height is not positive.
    """
    if height <= 0:
        raise ProbeParseError(f"Invalid stream height: {height}")

    ratio = width / height
    if abs(ratio - LANDSCAPE_RATIO) < ASPECT_RATIO_TOLERANCE:
        return ASPECT_RATIO_LANDSCAPE
    if abs(ratio - PORTRAIT_RATIO) < ASPECT_RATIO_TOLERANCE:
        return ASPECT_RATIO_PORTRAIT
    return ASPECT_RATIO_OTHER


def orientation_for_dimensions(width: int, height: int) -> Orientation:
    """Storage namespace for a stream of the given size."""
    return Orientation.from_aspect_ratio(classify_aspect_ratio(width, height))


class FFprobeContainerProber:
    """
    ContainerProber backed by the ffprobe executable.

    Runs ``ffprobe -v error -print_format json -show_streams <path>`` and reads
    the width and height of the first video stream. Containers whose streams
    carry no codec_type fall back to the first declared stream.

    Example:
        ```python
        prober = FFprobeContainerProber()
        width, height = prober.probe_dimensions(Path("/tmp/tubely_upload_x/video.mp4"))
        ```
    """

    def __init__(self, binary: str = "ffprobe", timeout: float | None = None) -> None:
        self.binary = binary
        self.timeout = timeout

    def probe_dimensions(self, path: Path) -> tuple[int, int]:
        """
        Return (width, height) of the primary video stream.

        Raises:
            ProbeUnavailableError: If ffprobe cannot be executed or times out.
            ProbeParseError: If ffprobe fails or its output is not usable.
            NoStreamsFoundError: If the container declares no streams.
        """
        cmd = [
            self.binary,
            "-v",
            "error",
            "-print_format",
            "json",
            "-show_streams",
            str(path),
        ]

        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, timeout=self.timeout, check=False
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ProbeUnavailableError(f"Could not run {self.binary}: {e}") from e

        if result.returncode != 0:
            raise ProbeParseError(
                f"{self.binary} exited with {result.returncode}: "
                f"{(result.stderr or result.stdout or '').strip()}"
            )

        try:
            output = json.loads(result.stdout or "{}")
        except json.JSONDecodeError as e:
            raise ProbeParseError(f"Unreadable {self.binary} output: {e}") from e

        streams = output.get("streams") if isinstance(output, dict) else None
        if streams is None:
            raise ProbeParseError(f"{self.binary} output has no streams list")
        if not isinstance(streams, list):
            raise ProbeParseError(f"{self.binary} streams is not a list")
        if not streams:
            raise NoStreamsFoundError(f"No streams found in {path.name}")

        stream = _primary_stream(streams)
        width, height = stream.get("width"), stream.get("height")
        if not isinstance(width, int) or not isinstance(height, int):
            raise ProbeParseError(f"Primary stream has no integer dimensions: {width}x{height}")

        logger.debug(
            "Probed stream dimensions",
            extra={"file": path.name, "width": width, "height": height},
        )
        return width, height


def _primary_stream(streams: list[Any]) -> dict[str, Any]:
    for stream in streams:
        if isinstance(stream, dict) and stream.get("codec_type") == "video":
            return stream
    first = streams[0]
    if not isinstance(first, dict):
        raise ProbeParseError("Stream entry is not an object")
    return first


__all__ = [
    "ASPECT_RATIO_TOLERANCE",
    "ContainerProber",
    "FFprobeContainerProber",
    "classify_aspect_ratio",
    "orientation_for_dimensions",
]
