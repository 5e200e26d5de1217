"""
Collector error types.

Every failure a sampling pass can run into derives from CollectorError.
None of them are fatal to the host: the pass catches them, logs a warning
event and reports the outcome through its CommandResult.
"""

from typing import Optional


class CollectorError(Exception):
    """Base class for sampling pass errors."""


class StreamOpenError(CollectorError):
    """The originator table command could not be started."""

    def __init__(self, message: str, command: Optional[str] = None):
        super().__init__(message)
        self.command = command


class StreamReadError(CollectorError):
    """The originator table stream broke off while being read."""


class StreamCloseError(CollectorError):
    """The originator table stream could not be closed cleanly."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.returncode = returncode


class ParseError(CollectorError):
    """A data line did not match the originator table layout."""

    def __init__(self, message: str, line: str = "", line_number: Optional[int] = None):
        super().__init__(message)
        self.line = line
        self.line_number = line_number

    def __str__(self) -> str:
        base = super().__str__()
        if self.line_number is not None:
            return f"line {self.line_number}: {base}"
        return base


class AllocationError(CollectorError):
    """The node table could not grow to hold another originator."""

    def __init__(self, message: str, capacity: int = 0):
        super().__init__(message)
        self.capacity = capacity
