"""Progress reporting for long-running import steps."""
import logging
from abc import ABC, abstractmethod


logger = logging.getLogger(__name__)


class ProgressReporter(ABC):
    """Receives start/update/succeed/fail events for named operations."""

    @abstractmethod
    def start(self, operation: str, message: str) -> None:
        ...

    @abstractmethod
    def update(self, operation: str, message: str) -> None:
        ...

    @abstractmethod
    def succeed(self, operation: str, message: str) -> None:
        ...

    @abstractmethod
    def fail(self, operation: str, message: str) -> None:
        ...


class LoggingProgressReporter(ProgressReporter):
    """Renders progress events as log records."""

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def start(self, operation: str, message: str) -> None:
        self.log.info(f"[{operation}] {message}")

    def update(self, operation: str, message: str) -> None:
        self.log.info(f"[{operation}] {message}")

    def succeed(self, operation: str, message: str) -> None:
        self.log.info(f"[{operation}] done: {message}")

    def fail(self, operation: str, message: str) -> None:
        self.log.error(f"[{operation}] failed: {message}")


class NullProgressReporter(ProgressReporter):
    """Discards all progress events."""

    def start(self, operation: str, message: str) -> None:
        pass

    def update(self, operation: str, message: str) -> None:
        pass

    def succeed(self, operation: str, message: str) -> None:
        pass

    def fail(self, operation: str, message: str) -> None:
        pass
