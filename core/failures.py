"""
Failure sinks for errors that must not replace a test's own outcome.

Teardown failures (uninstall or config pop) are reported here, one report
per failing step, tagged with the test they belong to.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, TextIO

from utils import console
from utils.error_messages import log_error


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TestIdentity:
    """Logical identity of one test: its class and, for a test, its method."""
    __test__ = False

    class_name: str
    method_name: Optional[str] = None

    def __str__(self) -> str:
        if self.method_name:
            return f"{self.class_name}.{self.method_name}"
        return self.class_name


@dataclass
class AdditionalFailure:
    """A non-primary failure recorded against a test."""
    identity: TestIdentity
    error: BaseException
    timestamp: datetime = field(default_factory=datetime.now)


class FailureSink(ABC):
    """Side channel for failures that happen after a test body has run."""

    @abstractmethod
    def report(self, identity: TestIdentity, error: BaseException) -> None:
        pass


class CollectingFailureSink(FailureSink):
    """Keeps reported failures in memory."""

    def __init__(self):
        self.failures: List[AdditionalFailure] = []

    def report(self, identity: TestIdentity, error: BaseException) -> None:
        logger.debug(f"Recorded additional failure for {identity}: {type(error).__name__}")
        self.failures.append(AdditionalFailure(identity, error))

    def errors_for(self, identity: TestIdentity) -> List[BaseException]:
        return [f.error for f in self.failures if f.identity == identity]

    def clear(self) -> None:
        self.failures.clear()

    def __len__(self) -> int:
        return len(self.failures)


class LoggingFailureSink(FailureSink):
    """Logs each failure as an actionable error message."""

    def report(self, identity: TestIdentity, error: BaseException) -> None:
        original = getattr(error, 'original', None)
        primary = getattr(error, 'primary', None)
        details = str(original or error)
        if primary is not None:
            details += f" (test already failing with {type(primary).__name__}: {primary})"
        log_error(
            what_failed=f"Additional failure in {identity}",
            reason=f"{type(error).__name__}",
            action="The test outcome is unchanged; fix the teardown problem",
            location=str(identity),
            details=details
        )


class ConsoleFailureSink(FailureSink):
    """Prints each failure to the console in color."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def report(self, identity: TestIdentity, error: BaseException) -> None:
        console.print_failure(identity, error, stream=self.stream)
