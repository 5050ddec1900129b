"""
Mock adapters — test doubles for the runner and the terminal.

``MockRunner`` records every command and returns success unless told
otherwise.  Responses are keyed by substring so tests can say "anything
running ``make`` fails with exit 2".  Callbacks simulate side effects,
e.g. an extraction command creating the work directory.

``ScriptedTerminal`` answers prompts from a queue and records everything
it was asked or shown.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from appinst.adapters.base import CommandResult, CommandRunner, Terminal


@dataclass
class CommandCall:
    """One command the mock was asked to run."""

    command: str
    cwd: Path
    captured: bool


class MockRunner(CommandRunner):
    """Universal mock runner for testing."""

    def __init__(self, runner_name: str = "mock"):
        self._name = runner_name
        self._failures: list[tuple[str, int]] = []
        self._outputs: list[tuple[str, list[str]]] = []
        self._effects: list[tuple[str, Callable[[Path], None]]] = []
        self._call_log: list[CommandCall] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[CommandCall]:
        """All calls this mock has received, in order."""
        return self._call_log

    @property
    def commands(self) -> list[str]:
        return [call.command for call in self._call_log]

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def set_failure(self, pattern: str, return_code: int = 1) -> None:
        """Commands containing ``pattern`` exit with ``return_code``."""
        self._failures.append((pattern, return_code))

    def set_output(self, pattern: str, lines: Iterable[str]) -> None:
        """Captured commands containing ``pattern`` print ``lines``."""
        self._outputs.append((pattern, list(lines)))

    def on(self, pattern: str, effect: Callable[[Path], None]) -> None:
        """Call ``effect(cwd)`` whenever a command containing ``pattern`` runs."""
        self._effects.append((pattern, effect))

    def run(self, command: str, cwd: Path) -> CommandResult:
        return self._execute(command, cwd, captured=False)

    def run_capturing(self, command: str, cwd: Path) -> CommandResult:
        return self._execute(command, cwd, captured=True)

    def _execute(self, command: str, cwd: Path, *, captured: bool) -> CommandResult:
        self._call_log.append(CommandCall(command=command, cwd=Path(cwd), captured=captured))

        for pattern, effect in self._effects:
            if pattern in command:
                effect(Path(cwd))

        for pattern, return_code in self._failures:
            if pattern in command:
                return CommandResult.failure(command=command, return_code=return_code, cwd=str(cwd))

        output: list[str] = []
        if captured:
            for pattern, lines in self._outputs:
                if pattern in command:
                    output = lines
                    break
        return CommandResult.success(command=command, cwd=str(cwd), output=output)

    def reset(self) -> None:
        """Clear call log and configured responses."""
        self._call_log.clear()
        self._failures.clear()
        self._outputs.clear()
        self._effects.clear()


class ScriptedTerminal(Terminal):
    """Terminal that replays canned answers.

    Running out of answers is a test bug and raises ``AssertionError``.
    """

    def __init__(self, answers: Iterable[str] = (), confirms: Iterable[bool] = ()):
        self._answers = list(answers)
        self._confirms = list(confirms)
        self.prompts: list[str] = []
        self.confirmations: list[str] = []
        self.lines: list[str] = []

    def prompt(self, text: str) -> str:
        self.prompts.append(text)
        if not self._answers:
            raise AssertionError(f"Unexpected prompt: {text!r}")
        return self._answers.pop(0)

    def confirm(self, text: str, default: bool = True) -> bool:
        self.confirmations.append(text)
        if not self._confirms:
            raise AssertionError(f"Unexpected confirmation: {text!r}")
        return self._confirms.pop(0)

    def echo(self, text: str = "") -> None:
        self.lines.append(text)

    @property
    def asked(self) -> int:
        """Number of prompts and confirmations shown."""
        return len(self.prompts) + len(self.confirmations)
