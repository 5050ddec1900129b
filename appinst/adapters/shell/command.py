"""
Shell command runner — execute descriptor commands through ``/bin/sh``.

Commands are descriptor text (``./configure --prefix=/usr/local``,
``gzip -dc x.tgz | tar xf -``), so they always run through the shell.
There is no timeout: builds take as long as they take.
"""

from __future__ import annotations

import logging
import subprocess
import time
from pathlib import Path

from appinst.adapters.base import CommandResult, CommandRunner

logger = logging.getLogger(__name__)


class ShellCommandRunner(CommandRunner):
    """Run commands with ``subprocess.run(..., shell=True)``."""

    @property
    def name(self) -> str:
        return "shell"

    def run(self, command: str, cwd: Path) -> CommandResult:
        return self._execute(command, cwd, capture=False)

    def run_capturing(self, command: str, cwd: Path) -> CommandResult:
        return self._execute(command, cwd, capture=True)

    def _execute(self, command: str, cwd: Path, *, capture: bool) -> CommandResult:
        logger.debug("Executing: %s (cwd=%s)", command, cwd)
        start = time.monotonic()

        try:
            result = subprocess.run(
                command,
                shell=True,
                cwd=str(cwd),
                capture_output=capture,
                text=True,
            )
        except OSError as e:
            return CommandResult.failure(
                command=command,
                return_code=-1,
                error=f"Command execution error: {e}",
                cwd=str(cwd),
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        output = result.stdout.splitlines() if capture and result.stdout else []

        if result.returncode == 0:
            return CommandResult.success(
                command=command,
                cwd=str(cwd),
                duration_ms=elapsed_ms,
                output=output,
            )

        stderr = result.stderr.strip() if capture and result.stderr else ""
        return CommandResult.failure(
            command=command,
            return_code=result.returncode,
            error=stderr,
            cwd=str(cwd),
            duration_ms=elapsed_ms,
            output=output,
        )
