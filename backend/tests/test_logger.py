"""Structured Logging Test Suite"""

import json
import logging
import sys

import pytest

from app.utils.logger import JSONFormatter, add_log_context


def make_record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="app.services.video_upload_service",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Stored %s",
        args=("video",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_core_fields(self) -> None:
        output = json.loads(JSONFormatter().format(make_record()))

        assert output["level"] == "INFO"
        assert output["logger"] == "app.services.video_upload_service"
        assert output["message"] == "Stored video"
        assert "timestamp" in output

    def test_extra_fields_are_nested(self) -> None:
        output = json.loads(JSONFormatter().format(make_record(video_id="v1", key="landscape/a")))

        assert output["extra"] == {"video_id": "v1", "key": "landscape/a"}

    def test_exception_is_included(self) -> None:
        try:
            raise RuntimeError("ffmpeg died")
        except RuntimeError:
            record = make_record()
            record.exc_info = sys.exc_info()

        output = json.loads(JSONFormatter().format(record))
        assert "ffmpeg died" in json.dumps(output["exception"])


class TestLogContext:
    def test_context_is_merged_into_extra(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = logging.getLogger("tests.context")
        ctx_logger = add_log_context(logger, video_id="v1", user_id="u1")

        with caplog.at_level(logging.INFO, logger="tests.context"):
            ctx_logger.info("Probed video", extra={"width": 1920})

        record = caplog.records[-1]
        assert record.video_id == "v1"
        assert record.user_id == "u1"
        assert record.width == 1920

    def test_call_site_extra_wins(self, caplog: pytest.LogCaptureFixture) -> None:
        ctx_logger = add_log_context(logging.getLogger("tests.context"), stage="probe")

        with caplog.at_level(logging.INFO, logger="tests.context"):
            ctx_logger.info("Remuxed", extra={"stage": "normalize"})

        assert caplog.records[-1].stage == "normalize"
