"""
Installer — the engine for one application.

Takes an application name and version, and carries every unit of work
(the application itself, or each of its components) through:

    resolve templates → ensure basedir → retrieve distfile if absent
        → verify → extract if workdir absent → run steps

All units are resolved before anything runs, so a broken component
definition fails the application before any side effect.  The first
failing unit aborts the application; later components are not tried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from appinst.adapters.base import CommandRunner, Terminal
from appinst.core.config.settings import Settings
from appinst.core.engine.context import Session, WorkingContext
from appinst.core.engine.executor import StepExecutor
from appinst.core.engine.templates import resolve_descriptor
from appinst.core.errors import ConfigurationError, ExecutionError, TransferError
from appinst.core.models.descriptor import ResolvedDescriptor
from appinst.core.persistence.descriptor_store import DescriptorDocument, DescriptorStore
from appinst.core.services.retrieval import Retriever
from appinst.core.services.verification import Verifier

logger = logging.getLogger(__name__)


@dataclass
class UnitResult:
    """What happened to one application/component."""

    name: str
    distfile: str
    retrieved: bool = False
    extracted: bool = False
    steps_run: int = 0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "distfile": self.distfile,
            "retrieved": self.retrieved,
            "extracted": self.extracted,
            "steps_run": self.steps_run,
        }


@dataclass
class ApplicationResult:
    """Outcome of one ``(name, version)`` request."""

    name: str
    version: str
    status: str = "ok"                  # ok, failed
    error: str | None = None
    units: list[UnitResult] = field(default_factory=list)
    document: DescriptorDocument | None = None
    history_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def to_dict(self) -> dict:
        result: dict = {
            "name": self.name,
            "version": self.version,
            "status": self.status,
            "units": [u.to_dict() for u in self.units],
        }
        if self.error:
            result["error"] = self.error
        if self.history_error:
            result["history_error"] = self.history_error
        return result


def resolve_units(
    document: DescriptorDocument,
    app_name: str,
    version: str,
) -> list[ResolvedDescriptor]:
    """Resolve the units of work for an application.

    An application with components is installed component by component,
    each inheriting unset fields from the application; otherwise the
    application itself is the only unit.
    """
    descriptor = document.descriptor
    if descriptor.has_components:
        return [
            resolve_descriptor(component, app_name, version, parent=descriptor)
            for component in descriptor.components
        ]
    return [resolve_descriptor(descriptor, app_name, version)]


class Installer:
    """Retrieve, verify, extract and build applications from descriptors."""

    def __init__(
        self,
        store: DescriptorStore,
        runner: CommandRunner,
        terminal: Terminal,
        settings: Settings | None = None,
        retriever: Retriever | None = None,
    ):
        self._store = store
        self._runner = runner
        self._terminal = terminal
        self._settings = settings or Settings()
        self._retriever = retriever or Retriever(self._settings)
        self._verifier = Verifier(runner, terminal, self._retriever)

    def install(self, app_name: str, version: str, session: Session) -> ApplicationResult:
        """Install one application.

        Raises:
            InstallError: Any failure; the application is abandoned.
            UserQuit: The user quit; the whole invocation stops.
        """
        document = self._store.load(app_name)
        units = resolve_units(document, app_name, version)
        executor = StepExecutor(self._runner, self._terminal, session, self._settings)

        result = ApplicationResult(name=app_name, version=version, document=document)
        for unit in units:
            logger.info("Installing %s %s (%s)", unit.name, version, unit.distfile)
            result.units.append(self._install_unit(unit, executor, session))
        return result

    def _install_unit(
        self,
        unit: ResolvedDescriptor,
        executor: StepExecutor,
        session: Session,
    ) -> UnitResult:
        outcome = UnitResult(name=unit.name, distfile=unit.distfile)

        try:
            unit.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExecutionError(f"Cannot create base directory {unit.basedir}: {e}") from e
        ctx = WorkingContext(unit.base_path)

        outcome.retrieved = self._retrieve(unit, session)
        self._verifier.verify(unit.distfile_path, unit.verify, unit.vurl, session)
        outcome.extracted = executor.extract(unit, ctx)
        outcome.steps_run = executor.run_steps(unit, ctx)
        return outcome

    def _retrieve(self, unit: ResolvedDescriptor, session: Session) -> bool:
        target = unit.distfile_path
        if target.exists():
            logger.debug("%s present, not downloading", target)
            return False
        if not unit.durl:
            raise ConfigurationError(
                f"{target} does not exist and no download URL (durl) is configured"
            )
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise TransferError(f"Cannot create {target.parent}: {e}", url=unit.durl) from e
        self._retriever.fetch(unit.durl, target, session.transfer)
        return True
