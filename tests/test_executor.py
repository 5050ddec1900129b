"""
Tests for the StepExecutor — extraction phase and step list.
"""

from pathlib import Path

import pytest

from appinst.adapters.mock import MockRunner, ScriptedTerminal
from appinst.adapters.shell.command import ShellCommandRunner
from appinst.core.config.settings import Settings
from appinst.core.engine.context import ExecutionMode, Session, WorkingContext
from appinst.core.engine.executor import StepExecutor, decompressor_for
from appinst.core.errors import ExecutionError, UserQuit
from appinst.core.models import ResolvedDescriptor, ResolvedStep


def _unit(basedir: Path, **kwargs) -> ResolvedDescriptor:
    fields = {
        "name": "foo",
        "basedir": str(basedir),
        "workdir": "foo-1.0",
        "distfile": "foo-1.0.tar.gz",
    }
    fields.update(kwargs)
    return ResolvedDescriptor(**fields)


def _extracts(runner: MockRunner, workdir: str = "foo-1.0") -> None:
    runner.on("tar xf", lambda cwd: (cwd / workdir).mkdir())


class TestDecompressor:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("a-1.tar.gz", "gzip -dc"),
            ("a-1.tgz", "gzip -dc"),
            ("a-1.tar.Z", "gzip -dc"),
            ("a-1.tar.bz2", "bzip2 -dc"),
            ("a-1.tbz2", "bzip2 -dc"),
        ],
    )
    def test_known(self, name, expected):
        assert decompressor_for(name) == expected

    @pytest.mark.parametrize("name", ["a-1.zip", "a-1.tar.xz", "a-1.tar"])
    def test_unknown(self, name):
        with pytest.raises(ExecutionError, match="Don't know how to extract"):
            decompressor_for(name)


class TestExtract:
    def test_batch_extraction(self, tmp_path, runner, batch_session, silent_terminal):
        runner.set_output("tar tf", ["foo-1.0/", "foo-1.0/configure"])
        _extracts(runner)
        unit = _unit(tmp_path)

        executor = StepExecutor(runner, silent_terminal, batch_session)
        assert executor.extract(unit, WorkingContext(tmp_path)) is True

        assert runner.commands == [
            "gzip -dc foo-1.0.tar.gz | tar tf -",
            "gzip -dc foo-1.0.tar.gz | tar xf -",
        ]
        assert all(call.cwd == tmp_path for call in runner.call_log)
        assert silent_terminal.lines == ["foo-1.0/", "foo-1.0/configure"]

    def test_existing_workdir_skips(self, tmp_path, runner, batch_session, silent_terminal, caplog):
        caplog.set_level("WARNING")
        (tmp_path / "foo-1.0").mkdir()
        unit = _unit(tmp_path, preextract="touch pre", postextract="touch post")

        executor = StepExecutor(runner, silent_terminal, batch_session)
        assert executor.extract(unit, WorkingContext(tmp_path)) is False
        assert runner.call_count == 0
        assert "skipping extraction" in caplog.text

    def test_hooks_run_around_extraction(self, tmp_path, runner, batch_session, silent_terminal):
        _extracts(runner)
        unit = _unit(tmp_path, preextract="./prepare", postextract="patch -p0 < fix.diff")

        StepExecutor(runner, silent_terminal, batch_session).extract(unit, WorkingContext(tmp_path))

        assert runner.commands[0] == "./prepare"
        assert runner.commands[-1] == "patch -p0 < fix.diff"

    def test_interactive_confirmation(self, tmp_path, runner, interactive_session):
        _extracts(runner)
        terminal = ScriptedTerminal(answers=["n"], confirms=[True])
        unit = _unit(tmp_path, preextract="./prepare")

        StepExecutor(runner, terminal, interactive_session).extract(unit, WorkingContext(tmp_path))

        assert "./prepare" not in runner.commands
        assert terminal.prompts == ["Pre-extract: ./prepare [Y/n/b/q]? "]
        assert terminal.confirmations == [f"Extract foo-1.0.tar.gz into {tmp_path}?"]

    def test_batch_answer_at_preextract_suppresses_rest(self, tmp_path, runner, interactive_session):
        _extracts(runner)
        terminal = ScriptedTerminal(answers=["b"], confirms=[])
        unit = _unit(
            tmp_path,
            preextract="./prepare",
            postextract="./fixup",
            steps=[ResolvedStep(label="Build", action="make"), ResolvedStep(label="Install", action="make install")],
        )
        executor = StepExecutor(runner, terminal, interactive_session)
        ctx = WorkingContext(tmp_path)

        assert executor.extract(unit, ctx) is True
        assert executor.run_steps(unit, ctx) == 2

        assert terminal.prompts == ["Pre-extract: ./prepare [Y/n/b/q]? "]
        assert terminal.confirmations == []
        assert interactive_session.batch
        assert runner.commands == [
            "./prepare",
            "gzip -dc foo-1.0.tar.gz | tar tf -",
            "gzip -dc foo-1.0.tar.gz | tar xf -",
            "./fixup",
            "make",
            "make install",
        ]

    def test_declined_extraction_quits(self, tmp_path, runner, interactive_session):
        terminal = ScriptedTerminal(confirms=[False])
        with pytest.raises(UserQuit):
            StepExecutor(runner, terminal, interactive_session).extract(
                _unit(tmp_path), WorkingContext(tmp_path)
            )
        assert not any("tar xf" in c for c in runner.commands)

    def test_listing_failure(self, tmp_path, runner, batch_session, silent_terminal):
        runner.set_failure("tar tf", 2)
        with pytest.raises(ExecutionError) as exc:
            StepExecutor(runner, silent_terminal, batch_session).extract(
                _unit(tmp_path), WorkingContext(tmp_path)
            )
        assert exc.value.exit_code == 2

    def test_failing_hook_is_fatal(self, tmp_path, runner, batch_session, silent_terminal):
        runner.set_failure("./prepare", 3)
        with pytest.raises(ExecutionError, match="Pre-extract"):
            StepExecutor(runner, silent_terminal, batch_session).extract(
                _unit(tmp_path, preextract="./prepare"), WorkingContext(tmp_path)
            )
        assert runner.commands == ["./prepare"]

    def test_unknown_archive(self, tmp_path, runner, batch_session, silent_terminal):
        with pytest.raises(ExecutionError):
            StepExecutor(runner, silent_terminal, batch_session).extract(
                _unit(tmp_path, distfile="foo-1.0.zip"), WorkingContext(tmp_path)
            )
        assert runner.call_count == 0

    def test_workdir_missing_after_extraction(self, tmp_path, runner, batch_session, silent_terminal):
        with pytest.raises(ExecutionError, match="did not create"):
            StepExecutor(runner, silent_terminal, batch_session).extract(
                _unit(tmp_path), WorkingContext(tmp_path)
            )

    def test_ownership_applied(self, tmp_path, runner, batch_session, silent_terminal):
        _extracts(runner)
        settings = Settings(proxy=None, work_owner="build", work_group="src")
        StepExecutor(runner, silent_terminal, batch_session, settings).extract(
            _unit(tmp_path), WorkingContext(tmp_path)
        )
        assert runner.commands[-1] == "chown -R build:src foo-1.0"

    def test_group_only(self, tmp_path, runner, batch_session, silent_terminal):
        _extracts(runner)
        settings = Settings(proxy=None, work_group="src")
        StepExecutor(runner, silent_terminal, batch_session, settings).extract(
            _unit(tmp_path), WorkingContext(tmp_path)
        )
        assert runner.commands[-1] == "chgrp -R src foo-1.0"

    def test_bzip2(self, tmp_path, runner, batch_session, silent_terminal):
        _extracts(runner)
        StepExecutor(runner, silent_terminal, batch_session).extract(
            _unit(tmp_path, distfile="foo-1.0.tar.bz2"), WorkingContext(tmp_path)
        )
        assert runner.commands[0] == "bzip2 -dc foo-1.0.tar.bz2 | tar tf -"


class TestRunSteps:
    def _steps(self, *actions: str) -> list[ResolvedStep]:
        return [ResolvedStep(label=f"step {i}", action=a) for i, a in enumerate(actions, 1)]

    def test_steps_run_in_workdir_and_return(self, tmp_path, runner, batch_session, silent_terminal):
        unit = _unit(tmp_path, steps=self._steps("./configure", "make", "make install"))
        ctx = WorkingContext(tmp_path)

        ran = StepExecutor(runner, silent_terminal, batch_session).run_steps(unit, ctx)

        assert ran == 3
        assert runner.commands == ["./configure", "make", "make install"]
        assert {c.cwd for c in runner.call_log} == {tmp_path / "foo-1.0"}
        assert ctx.cwd == tmp_path

    def test_failure_stops_remaining_steps(self, tmp_path, runner, batch_session, silent_terminal):
        runner.set_failure("make", 2)
        unit = _unit(tmp_path, steps=self._steps("./configure", "make", "echo never"))
        ctx = WorkingContext(tmp_path)

        with pytest.raises(ExecutionError) as exc:
            StepExecutor(runner, silent_terminal, batch_session).run_steps(unit, ctx)

        assert exc.value.command == "make"
        assert exc.value.exit_code == 2
        assert "echo never" not in runner.commands
        assert ctx.cwd == tmp_path

    def test_skipped_steps(self, tmp_path, runner):
        session = Session(mode=ExecutionMode.INTERACTIVE)
        terminal = ScriptedTerminal(answers=["y", "n", ""])
        unit = _unit(tmp_path, steps=self._steps("a", "b", "c"))

        ran = StepExecutor(runner, terminal, session).run_steps(unit, WorkingContext(tmp_path))

        assert ran == 2
        assert runner.commands == ["a", "c"]

    def test_unlabelled_step_prompts_with_action(self, tmp_path, runner, interactive_session):
        terminal = ScriptedTerminal(answers=["y"])
        unit = _unit(tmp_path, steps=[ResolvedStep(label="", action="make check")])
        StepExecutor(runner, terminal, interactive_session).run_steps(unit, WorkingContext(tmp_path))
        assert terminal.prompts == ["make check [Y/n/b/q]? "]

    def test_no_steps(self, tmp_path, runner, batch_session, silent_terminal):
        assert StepExecutor(runner, silent_terminal, batch_session).run_steps(
            _unit(tmp_path), WorkingContext(tmp_path)
        ) == 0

    def test_runner_error_detail_in_message(self, tmp_path, batch_session, silent_terminal):
        # workdir was never created, so the shell cannot start there
        unit = _unit(tmp_path, steps=self._steps("true"))

        with pytest.raises(ExecutionError) as exc:
            StepExecutor(ShellCommandRunner(), silent_terminal, batch_session).run_steps(
                unit, WorkingContext(tmp_path)
            )

        assert exc.value.exit_code == -1
        assert "Command execution error" in str(exc.value)
