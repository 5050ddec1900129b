"""
Install use case — process ``(name, version)`` pairs one at a time.

This is the error boundary: a failure in one application is logged and
recorded in the report, and the next application is still attempted.
Only ``UserQuit`` escapes, ending the invocation without writing any
further history.

Flow per application:
    installer.install → on success, append a history record (a failed
    history write is a warning, the install still counts as successful)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from appinst.adapters.base import CommandRunner, Terminal
from appinst.core.config.settings import Settings
from appinst.core.engine.context import ExecutionMode, Session, TransferMode
from appinst.core.engine.installer import ApplicationResult, Installer
from appinst.core.errors import InstallError, PersistenceError
from appinst.core.persistence import history
from appinst.core.persistence.descriptor_store import DescriptorStore
from appinst.core.services.retrieval import Retriever

logger = logging.getLogger(__name__)


@dataclass
class InvocationReport:
    """Results of every application named in one invocation."""

    results: list[ApplicationResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    @property
    def all_ok(self) -> bool:
        return self.failed == 0

    def to_dict(self) -> dict:
        return {
            "succeeded": self.succeeded,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
        }


def parse_requests(args: Sequence[str]) -> list[tuple[str, str]]:
    """Pair up ``NAME VERSION NAME VERSION ...`` arguments.

    Raises:
        ValueError: If the arguments are empty or do not pair up.
    """
    if not args or len(args) % 2:
        raise ValueError("Expected one or more NAME VERSION pairs")
    return [(args[i], args[i + 1]) for i in range(0, len(args), 2)]


def new_session(settings: Settings, batch: bool = False) -> Session:
    return Session(
        mode=ExecutionMode.BATCH if batch else ExecutionMode.INTERACTIVE,
        transfer=TransferMode(passive=settings.passive_ftp),
    )


def install_applications(
    requests: Sequence[tuple[str, str]],
    settings: Settings,
    runner: CommandRunner,
    terminal: Terminal,
    *,
    batch: bool = False,
    retriever: Retriever | None = None,
    session: Session | None = None,
) -> InvocationReport:
    """Install each requested application in order.

    Args:
        requests: ``(name, version)`` pairs.
        settings: Loaded settings.
        runner: Command runner for hooks, extraction and steps.
        terminal: Prompts and output.
        batch: Start in batch mode (no prompts).
        retriever: Optional pre-configured retriever.
        session: Optional pre-built session (overrides ``batch``).

    Returns:
        InvocationReport with one result per request.

    Raises:
        UserQuit: The user quit; earlier results are discarded with it.
    """
    session = session or new_session(settings, batch=batch)
    installer = Installer(
        DescriptorStore(settings.descriptor_dir),
        runner,
        terminal,
        settings=settings,
        retriever=retriever,
    )
    report = InvocationReport()

    for name, version in requests:
        try:
            result = installer.install(name, version, session)
        except InstallError as e:
            logger.error("%s %s failed: %s", name, version, e)
            report.results.append(
                ApplicationResult(name=name, version=version, status="failed", error=str(e))
            )
            continue

        try:
            history.record(result.document, version, user=settings.user)
        except PersistenceError as e:
            logger.warning("%s %s installed, but history was not saved: %s", name, version, e)
            result.history_error = str(e)

        report.results.append(result)

    return report
