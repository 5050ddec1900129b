"""
Shared test fixtures and configuration.
"""

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from appinst.adapters.mock import MockRunner, ScriptedTerminal
from appinst.core.config.settings import Settings
from appinst.core.engine.context import ExecutionMode, Session


@pytest.fixture
def descriptor_dir(tmp_path: Path) -> Path:
    """Return an empty directory for descriptor files."""
    d = tmp_path / "apps"
    d.mkdir()
    return d


@pytest.fixture
def write_descriptor(descriptor_dir: Path) -> Callable[[str, str], Path]:
    """Write ``<name>.yml`` into the descriptor directory."""

    def _write(name: str, content: str) -> Path:
        path = descriptor_dir / f"{name}.yml"
        path.write_text(textwrap.dedent(content))
        return path

    return _write


@pytest.fixture
def settings(descriptor_dir: Path) -> Settings:
    return Settings(descriptor_dir=descriptor_dir, proxy=None, user="tester")


@pytest.fixture
def runner() -> MockRunner:
    return MockRunner()


@pytest.fixture
def batch_session() -> Session:
    return Session(mode=ExecutionMode.BATCH)


@pytest.fixture
def interactive_session() -> Session:
    return Session(mode=ExecutionMode.INTERACTIVE)


@pytest.fixture
def silent_terminal() -> ScriptedTerminal:
    """A terminal that fails the test if anything prompts."""
    return ScriptedTerminal()
