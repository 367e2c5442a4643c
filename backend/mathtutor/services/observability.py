"""
Workflow observability.

Workflows report to an injected observer at three points only: when an
operation starts, when it succeeds and when it fails. The default observer
writes log lines and forwards failures to Sentry; tests use a recording
observer instead.
"""

import logging
from typing import Any

import sentry_sdk

logger = logging.getLogger(__name__)


class WorkflowObserver:
    """No-op observer; subclasses override the hooks they care about."""

    def started(self, operation: str, **context: Any) -> None:
        pass

    def succeeded(self, operation: str, **context: Any) -> None:
        pass

    def failed(self, operation: str, error: BaseException, **context: Any) -> None:
        pass


def _format_context(context: dict) -> str:
    return " ".join(f"{key}={value}" for key, value in context.items())


class LoggingObserver(WorkflowObserver):

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def started(self, operation: str, **context: Any) -> None:
        self.log.info(f"{operation} started {_format_context(context)}".rstrip())

    def succeeded(self, operation: str, **context: Any) -> None:
        self.log.info(f"{operation} succeeded {_format_context(context)}".rstrip())

    def failed(self, operation: str, error: BaseException, **context: Any) -> None:
        self.log.error(f"{operation} failed: {error} {_format_context(context)}".rstrip())
        sentry_sdk.capture_exception(
            error,
            tags={"workflow.operation": operation},
            extras=context,
        )
