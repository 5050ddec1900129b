"""
Adapter base — the contracts between the engine and the outside world.

The engine never spawns processes or reads the terminal directly; it
talks to a ``CommandRunner`` and a ``Terminal``.  Runners NEVER raise
for a failed command; the outcome is captured in a ``CommandResult``
and the engine decides what a non-zero exit means.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class CommandResult(BaseModel):
    """Outcome of one shell command."""

    command: str
    cwd: str = ""
    return_code: int = 0

    duration_ms: int = 0

    output: list[str] = Field(default_factory=list)  # only when captured
    error: str | None = None

    @property
    def ok(self) -> bool:
        """Whether the command exited zero."""
        return self.return_code == 0

    @classmethod
    def success(cls, command: str, **kwargs: Any) -> CommandResult:
        return cls(command=command, return_code=0, **kwargs)

    @classmethod
    def failure(cls, command: str, return_code: int, error: str = "", **kwargs: Any) -> CommandResult:
        return cls(command=command, return_code=return_code, error=error or None, **kwargs)


class CommandRunner(ABC):
    """Run shell commands in a given directory.

    To create a new runner:
        1. Subclass CommandRunner
        2. Implement name, run, run_capturing
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The runner identifier (e.g., 'shell', 'mock')."""

    @abstractmethod
    def run(self, command: str, cwd: Path) -> CommandResult:
        """Run ``command`` with output going straight to the user.

        MUST never raise for command failures.
        """

    @abstractmethod
    def run_capturing(self, command: str, cwd: Path) -> CommandResult:
        """Run ``command`` and capture its standard output as lines."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class Terminal(ABC):
    """Prompt-and-read-line plus informational output."""

    @abstractmethod
    def prompt(self, text: str) -> str:
        """Show ``text`` and return the line the user typed (may be empty)."""

    @abstractmethod
    def confirm(self, text: str, default: bool = True) -> bool:
        """Ask a yes/no question."""

    @abstractmethod
    def echo(self, text: str = "") -> None:
        """Print a line for the user."""
