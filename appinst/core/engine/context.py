"""
Invocation context — the mutable state threaded through the engine.

Nothing in the engine changes the process-wide working directory or
reads a global transfer flag.  Instead:

    WorkingContext  the directory commands run in (basedir → workdir → basedir)
    TransferMode    FTP passive-mode flag handed to the Retriever per call
    Session         one per invocation: execution mode and transfer mode

A ``Session`` outlives a single application: switching to batch mode
mid-run applies to every later component and application.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class ExecutionMode(str, Enum):
    """How gated actions are confirmed."""

    INTERACTIVE = "interactive"
    BATCH = "batch"


@dataclass
class TransferMode:
    """FTP transfer mode for one Retriever call."""

    passive: bool = False


@dataclass
class WorkingContext:
    """The current directory for command execution."""

    cwd: Path

    def enter(self, path: Path) -> None:
        """Make ``path`` the current directory (relative to the current one)."""
        self.cwd = self.cwd / path
        logger.debug("Working directory → %s", self.cwd)

    @contextmanager
    def inside(self, path: Path) -> Iterator[Path]:
        """Temporarily enter ``path``; the previous directory is restored on exit."""
        previous = self.cwd
        self.enter(path)
        try:
            yield self.cwd
        finally:
            self.cwd = previous
            logger.debug("Working directory ← %s", self.cwd)


@dataclass
class Session:
    """State shared by every application processed in one invocation."""

    mode: ExecutionMode = ExecutionMode.INTERACTIVE
    transfer: TransferMode = field(default_factory=TransferMode)

    @property
    def batch(self) -> bool:
        return self.mode is ExecutionMode.BATCH

    def switch_to_batch(self) -> None:
        if not self.batch:
            logger.info("Switching to batch mode for the rest of this run")
        self.mode = ExecutionMode.BATCH
