"""
Step executor — extraction and the build/install step list.

Flow for one unit (application or component), starting in basedir:

    workdir exists? ── yes ──→ skip extraction (advisory)
         │ no
    pre-extract hook (gated) → list archive → confirm → extract
         → post-extract hook (gated) → chown -R workdir
    enter workdir → steps in order (each gated) → back to basedir

Every command's non-zero exit is fatal for the unit and raises
``ExecutionError`` naming the command and its exit status.
"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path

from appinst.adapters.base import CommandResult, CommandRunner, Terminal
from appinst.core.config.settings import Settings
from appinst.core.engine.context import Session, WorkingContext
from appinst.core.engine.gating import Gate
from appinst.core.errors import ExecutionError, UserQuit
from appinst.core.models.descriptor import ResolvedDescriptor

logger = logging.getLogger(__name__)

_GZIP_SUFFIXES = (".tar.gz", ".tgz", ".Z")


def decompressor_for(distfile: str) -> str:
    """Pick the decompression command from the archive name.

    Raises:
        ExecutionError: For archive types we cannot extract.
    """
    if distfile.endswith(_GZIP_SUFFIXES):
        return "gzip -dc"
    if distfile.endswith("bz2"):
        return "bzip2 -dc"
    raise ExecutionError(f"Don't know how to extract {distfile}")


class StepExecutor:
    """Runs the extraction phase and the step list for a resolved unit."""

    def __init__(
        self,
        runner: CommandRunner,
        terminal: Terminal,
        session: Session,
        settings: Settings | None = None,
    ):
        self._runner = runner
        self._terminal = terminal
        self._session = session
        self._settings = settings or Settings()
        self._gate = Gate(terminal, session)

    # ── Extraction ──────────────────────────────────────────────

    def extract(self, unit: ResolvedDescriptor, ctx: WorkingContext) -> bool:
        """Unpack the distribution file unless the work directory exists.

        ``ctx`` must be at ``unit.basedir``.

        Returns:
            True if extraction ran, False if it was skipped.

        Raises:
            ExecutionError: A hook, listing, extraction or chown failed,
                or the archive type is unknown.
            UserQuit: The user quit at a prompt or declined extraction.
        """
        if unit.work_path.exists():
            logger.warning("%s already exists, skipping extraction", unit.work_path)
            return False

        if unit.preextract:
            self._run_gated(f"Pre-extract: {unit.preextract}", unit.preextract, ctx)

        decompress = f"{decompressor_for(unit.distfile)} {shlex.quote(unit.distfile)}"

        listing = self._runner.run_capturing(f"{decompress} | tar tf -", ctx.cwd)
        if not listing.ok:
            raise ExecutionError(
                f"Cannot list {unit.distfile} (exit {listing.return_code})",
                command=listing.command,
                exit_code=listing.return_code,
            )
        for line in listing.output:
            self._terminal.echo(line)

        if not self._session.batch and not self._terminal.confirm(
            f"Extract {unit.distfile} into {ctx.cwd}?"
        ):
            raise UserQuit(f"Extraction of {unit.distfile} declined")

        self._check(self._runner.run(f"{decompress} | tar xf -", ctx.cwd), "Extraction")

        if unit.postextract:
            self._run_gated(f"Post-extract: {unit.postextract}", unit.postextract, ctx)

        if not unit.work_path.exists():
            raise ExecutionError(
                f"Extracting {unit.distfile} did not create {unit.workdir}"
            )

        self._set_ownership(unit, ctx)
        return True

    def _set_ownership(self, unit: ResolvedDescriptor, ctx: WorkingContext) -> None:
        owner = self._settings.work_owner
        group = self._settings.work_group
        target = shlex.quote(unit.workdir)

        if owner:
            spec = f"{owner}:{group}" if group else owner
            command = f"chown -R {shlex.quote(spec)} {target}"
        elif group:
            command = f"chgrp -R {shlex.quote(group)} {target}"
        else:
            logger.debug("No work owner configured; leaving ownership of %s", unit.workdir)
            return

        self._check(self._runner.run(command, ctx.cwd), "Setting ownership")

    # ── Steps ───────────────────────────────────────────────────

    def run_steps(self, unit: ResolvedDescriptor, ctx: WorkingContext) -> int:
        """Run the unit's steps in order inside its work directory.

        Returns:
            Number of steps actually run (skipped ones excluded).
        """
        ran = 0
        with ctx.inside(Path(unit.workdir)):
            for step in unit.steps:
                if self._run_gated(step.label or step.action, step.action, ctx):
                    ran += 1
        return ran

    # ── Shared ──────────────────────────────────────────────────

    def _run_gated(self, label: str, command: str, ctx: WorkingContext) -> bool:
        if not self._gate.allow(label):
            return False
        logger.info("Running: %s (in %s)", command, ctx.cwd)
        result = self._runner.run(command, ctx.cwd)
        logger.debug("%s finished in %d ms (exit %d)", command, result.duration_ms, result.return_code)
        self._check(result, label)
        return True

    @staticmethod
    def _check(result: CommandResult, what: str) -> None:
        if not result.ok:
            detail = f": {result.error}" if result.error else ""
            raise ExecutionError(
                f"{what} failed: '{result.command}' exited with status {result.return_code}{detail}",
                command=result.command,
                exit_code=result.return_code,
            )
