# v6intake/core/errors.py
from typing import Optional


class IntakeError(Exception):
    """Base class for every failure raised by the intake toolkit."""


class FormatError(IntakeError, ValueError):
    """Input (or a persisted state value) could not be decoded."""

    def __init__(self, message: str, path: Optional[str] = None, line: Optional[int] = None):
        super().__init__(message)
        self.path = path
        self.line = line


class WorkspaceError(IntakeError, OSError):
    """
    A filesystem read, write or delete failed.

    Keeps errno/filename of the wrapped OSError so callers can still inspect them.
    """

    def __init__(self, message: str, cause: Optional[OSError] = None, filename: Optional[str] = None):
        errno = cause.errno if cause is not None else None
        if filename is None and cause is not None:
            filename = cause.filename
        OSError.__init__(self, errno, message, filename)
        self.message = message

    def __str__(self) -> str:
        if self.filename:
            return f"{self.message} ({self.filename})"
        return self.message


class ConfirmationDeclined(IntakeError):
    """The operator refused a destructive step. Deliberate abort, not a bug."""


class InsufficientAddresses(ConfirmationDeclined):
    """Too few addresses survived filtering and the operator chose not to continue."""

    def __init__(self, message: str, count: int, minimum: int):
        super().__init__(message)
        self.count = count
        self.minimum = minimum


class IllegalTransition(IntakeError):
    """A move between phases (or pipeline states) that the transition table forbids."""
