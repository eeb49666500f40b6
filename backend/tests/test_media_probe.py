"""
Container Prober Test Suite

Tests aspect ratio classification and FFprobeContainerProber with
subprocess.run patched, so ffprobe does not need to be installed.
"""

import json
import subprocess

from pathlib import Path
from unittest.mock import patch

import pytest

from app.core.exceptions import NoStreamsFoundError, ProbeParseError, ProbeUnavailableError
from app.models.video import Orientation
from app.services.media_probe import (
    FFprobeContainerProber,
    classify_aspect_ratio,
    orientation_for_dimensions,
)


STAGED = Path("/tmp/tubely_upload_video_x/video.mp4")


def completed(stdout: str = "", returncode: int = 0, stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


def probe_output(*streams: dict) -> str:
    return json.dumps({"streams": list(streams)})


# =============================================================================
# CLASSIFICATION
# =============================================================================


class TestClassifyAspectRatio:
    """Test ratio classification with the 0.01 tolerance."""

    @pytest.mark.parametrize(
        ("width", "height", "expected"),
        [
            (1920, 1080, "16:9"),
            (1280, 720, "16:9"),
            (1920, 1075, "16:9"),
            (1786, 1000, "16:9"),
            (1080, 1920, "9:16"),
            (720, 1280, "9:16"),
            (1000, 1000, "other"),
            (1920, 1061, "other"),
            (640, 480, "other"),
        ],
    )
    def test_classification(self, width: int, height: int, expected: str) -> None:
        assert classify_aspect_ratio(width, height) == expected

    def test_zero_height_is_rejected(self) -> None:
        with pytest.raises(ProbeParseError):
            classify_aspect_ratio(1920, 0)

    def test_orientation_for_dimensions(self) -> None:
        assert orientation_for_dimensions(1920, 1080) is Orientation.LANDSCAPE
        assert orientation_for_dimensions(1080, 1920) is Orientation.PORTRAIT
        assert orientation_for_dimensions(500, 500) is Orientation.OTHER


# =============================================================================
# FFPROBE
# =============================================================================


class TestFFprobeContainerProber:
    """Test ffprobe invocation and output handling."""

    def test_runs_ffprobe_with_json_streams(self) -> None:
        output = probe_output({"codec_type": "video", "width": 1920, "height": 1080})

        with patch("app.services.media_probe.subprocess.run", return_value=completed(output)) as run:
            dimensions = FFprobeContainerProber("ffprobe", timeout=30).probe_dimensions(STAGED)

        assert dimensions == (1920, 1080)
        cmd = run.call_args.args[0]
        assert cmd == ["ffprobe", "-v", "error", "-print_format", "json", "-show_streams", str(STAGED)]
        assert run.call_args.kwargs["timeout"] == 30

    def test_prefers_first_video_stream(self) -> None:
        output = probe_output(
            {"codec_type": "audio", "sample_rate": "48000"},
            {"codec_type": "video", "width": 1080, "height": 1920},
        )

        with patch("app.services.media_probe.subprocess.run", return_value=completed(output)):
            assert FFprobeContainerProber().probe_dimensions(STAGED) == (1080, 1920)

    def test_falls_back_to_first_stream(self) -> None:
        output = probe_output({"width": 640, "height": 480}, {"width": 1920, "height": 1080})

        with patch("app.services.media_probe.subprocess.run", return_value=completed(output)):
            assert FFprobeContainerProber().probe_dimensions(STAGED) == (640, 480)

    def test_missing_binary_is_unavailable(self) -> None:
        with patch(
            "app.services.media_probe.subprocess.run", side_effect=FileNotFoundError("ffprobe")
        ):
            with pytest.raises(ProbeUnavailableError):
                FFprobeContainerProber().probe_dimensions(STAGED)

    def test_timeout_is_unavailable(self) -> None:
        with patch(
            "app.services.media_probe.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="ffprobe", timeout=1),
        ):
            with pytest.raises(ProbeUnavailableError):
                FFprobeContainerProber(timeout=1).probe_dimensions(STAGED)

    def test_nonzero_exit_is_parse_error(self) -> None:
        failed = completed(returncode=1, stderr="moov atom not found")

        with patch("app.services.media_probe.subprocess.run", return_value=failed):
            with pytest.raises(ProbeParseError, match="moov atom not found"):
                FFprobeContainerProber().probe_dimensions(STAGED)

    def test_invalid_json_is_parse_error(self) -> None:
        with patch("app.services.media_probe.subprocess.run", return_value=completed("{not json")):
            with pytest.raises(ProbeParseError):
                FFprobeContainerProber().probe_dimensions(STAGED)

    def test_missing_streams_key_is_parse_error(self) -> None:
        with patch("app.services.media_probe.subprocess.run", return_value=completed("{}")):
            with pytest.raises(ProbeParseError):
                FFprobeContainerProber().probe_dimensions(STAGED)

    def test_empty_streams_is_no_streams(self) -> None:
        with patch("app.services.media_probe.subprocess.run", return_value=completed(probe_output())):
            with pytest.raises(NoStreamsFoundError):
                FFprobeContainerProber().probe_dimensions(STAGED)

    def test_non_integer_dimensions_is_parse_error(self) -> None:
        output = probe_output({"codec_type": "video", "width": "1920", "height": 1080})

        with patch("app.services.media_probe.subprocess.run", return_value=completed(output)):
            with pytest.raises(ProbeParseError):
                FFprobeContainerProber().probe_dimensions(STAGED)
