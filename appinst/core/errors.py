"""
Error taxonomy — every failure the engine can report.

Errors are resolved at the boundary of one application's processing:
the invocation loop catches ``InstallError`` per application and moves
on to the next one.  ``UserQuit`` is deliberately NOT an ``InstallError``
so that a "quit" answer terminates the whole invocation.
"""

from __future__ import annotations

# FTP 550 is the ftplib equivalent of HTTP 404
NOT_FOUND_STATUSES = frozenset({404, 550})


class InstallError(Exception):
    """Base class for failures scoped to one application or component."""


class ConfigurationError(InstallError):
    """Descriptor missing, unreadable, malformed, or missing required fields."""


class TransferError(InstallError):
    """A remote resource could not be retrieved."""

    def __init__(self, message: str, *, url: str = "", status: int | None = None):
        super().__init__(message)
        self.url = url
        self.status = status

    @property
    def not_found(self) -> bool:
        """Whether the failure reported a not-found class status."""
        return self.status in NOT_FOUND_STATUSES


class VerificationError(InstallError):
    """Checksum/signature mismatch, or no verification artifact in batch mode."""


class ExecutionError(InstallError):
    """A hook, extraction command, or build step exited non-zero."""

    def __init__(self, message: str, *, command: str = "", exit_code: int | None = None):
        super().__init__(message)
        self.command = command
        self.exit_code = exit_code


class PersistenceError(InstallError):
    """The install history could not be written.  Never fatal."""


class UserQuit(Exception):
    """The user asked to stop the whole invocation."""

    def __init__(self, reason: str = "Quit requested"):
        super().__init__(reason)
        self.reason = reason
