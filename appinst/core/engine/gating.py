"""
Interactive gating — should this action run?

``decide`` is a pure function from (answer, mode) to a ``Decision``;
``Gate`` is the thin effectful wrapper that reads answers from the
terminal and applies the decision to the session.

Answers at the ``[Y/n/b/q]`` prompt:

    Y / yes / <enter>   run this action
    n / no              skip this action only
    b / batch           switch the rest of the run to batch mode, then run
    q / quit            stop the whole invocation now
"""

from __future__ import annotations

import logging
from enum import Enum

from appinst.adapters.base import Terminal
from appinst.core.engine.context import ExecutionMode, Session
from appinst.core.errors import UserQuit

logger = logging.getLogger(__name__)

PROMPT_SUFFIX = " [Y/n/b/q]? "


class Decision(Enum):
    RUN = "run"
    SKIP = "skip"
    SWITCH_TO_BATCH = "batch"
    QUIT = "quit"


_ANSWERS: dict[str, Decision] = {
    "": Decision.RUN,
    "y": Decision.RUN,
    "yes": Decision.RUN,
    "n": Decision.SKIP,
    "no": Decision.SKIP,
    "b": Decision.SWITCH_TO_BATCH,
    "batch": Decision.SWITCH_TO_BATCH,
    "q": Decision.QUIT,
    "quit": Decision.QUIT,
}


def decide(response: str | None, mode: ExecutionMode) -> Decision | None:
    """Map a prompt answer to a decision.

    In batch mode the answer is ignored and the action runs.

    Returns:
        The decision, or None if the answer is not recognised.
    """
    if mode is ExecutionMode.BATCH:
        return Decision.RUN
    return _ANSWERS.get((response or "").strip().lower())


class Gate:
    """Ask before each action unless the session is in batch mode."""

    def __init__(self, terminal: Terminal, session: Session):
        self._terminal = terminal
        self._session = session

    def allow(self, label: str) -> bool:
        """Return True if the action labelled ``label`` should run.

        Raises:
            UserQuit: If the user answers "quit".
        """
        if self._session.batch:
            return True

        while True:
            answer = self._terminal.prompt(f"{label}{PROMPT_SUFFIX}")
            decision = decide(answer, self._session.mode)
            if decision is not None:
                break
            self._terminal.echo("Please answer Y, n, b or q.")

        if decision is Decision.QUIT:
            raise UserQuit(f"Quit at '{label}'")
        if decision is Decision.SWITCH_TO_BATCH:
            self._session.switch_to_batch()
        if decision is Decision.SKIP:
            logger.info("Skipped: %s", label)
            return False
        return True
