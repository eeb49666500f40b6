"""File Validation Utilities Test Suite"""

from unittest.mock import patch

import pytest

from app.core.exceptions import BadRequestError, UnsupportedMediaTypeError
from app.utils.file_validator import (
    format_file_size,
    has_mp4_signature,
    parse_media_type,
    validate_image_signature,
)


class TestParseMediaType:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("video/mp4", "video/mp4"),
            ("Video/MP4", "video/mp4"),
            ("video/mp4; codecs=avc1", "video/mp4"),
            ("  image/png  ", "image/png"),
        ],
    )
    def test_parses(self, raw: str, expected: str) -> None:
        assert parse_media_type(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "video", "/mp4", "video/", ";"])
    def test_malformed_is_bad_request(self, raw: str | None) -> None:
        with pytest.raises(BadRequestError):
            parse_media_type(raw)


class TestMp4Signature:
    def test_ftyp_at_offset_four(self) -> None:
        assert has_mp4_signature(b"\x00\x00\x00\x18ftypmp42")

    def test_ftyp_beyond_header_is_ignored(self) -> None:
        assert not has_mp4_signature(b"\x00" * 12 + b"ftyp")

    def test_short_or_empty_header(self) -> None:
        assert not has_mp4_signature(b"")
        assert not has_mp4_signature(b"ftp")


class TestImageSignature:
    def test_matching_type_passes(self) -> None:
        with patch("app.utils.file_validator.magic.from_buffer", return_value="image/png") as sniff:
            assert validate_image_signature(b"\x89PNG\r\n\x1a\n", "image/png") == "image/png"

        assert sniff.call_args.kwargs == {"mime": True}

    def test_mismatch_is_unsupported(self) -> None:
        with patch("app.utils.file_validator.magic.from_buffer", return_value="image/jpeg"):
            with pytest.raises(UnsupportedMediaTypeError):
                validate_image_signature(b"\xff\xd8\xff", "image/png")

    def test_empty_content_is_unsupported(self) -> None:
        with pytest.raises(UnsupportedMediaTypeError):
            validate_image_signature(b"", "image/png")


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        (512, "512 B"),
        (1536, "1.50 KB"),
        (1024 * 1024, "1.00 MB"),
        (1024 * 1024 * 1024, "1.00 GB"),
        (-1, "Invalid size"),
    ],
)
def test_format_file_size(size: int, expected: str) -> None:
    assert format_file_size(size) == expected
