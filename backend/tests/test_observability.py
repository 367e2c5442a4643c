"""
Tests for the logging/Sentry workflow observer.
"""

import logging
from unittest.mock import patch

import pytest

from mathtutor.services.observability import LoggingObserver


class TestLoggingObserver:

    @pytest.mark.unit
    def test_lifecycle_is_logged(self, caplog):
        observer = LoggingObserver(logging.getLogger("tests.observer"))

        with caplog.at_level(logging.INFO, logger="tests.observer"):
            observer.started("submit_question", user_id="u1")
            observer.succeeded("submit_question", user_id="u1", cache_hit=True)

        assert caplog.messages == [
            "submit_question started user_id=u1",
            "submit_question succeeded user_id=u1 cache_hit=True",
        ]

    @pytest.mark.unit
    def test_failure_forwarded_to_sentry(self, caplog):
        observer = LoggingObserver(logging.getLogger("tests.observer"))
        error = RuntimeError("solver exploded")

        with patch("mathtutor.services.observability.sentry_sdk.capture_exception") as capture:
            with caplog.at_level(logging.ERROR, logger="tests.observer"):
                observer.failed("bulk_ingest_item", error, question_id="q1")

        capture.assert_called_once_with(
            error,
            tags={"workflow.operation": "bulk_ingest_item"},
            extras={"question_id": "q1"},
        )
        assert caplog.messages == ["bulk_ingest_item failed: solver exploded question_id=q1"]
