"""Adapters — bindings for process execution and terminal I/O.

Public re-exports for convenient access.
"""

from appinst.adapters.base import CommandResult, CommandRunner, Terminal
from appinst.adapters.mock import MockRunner, ScriptedTerminal

__all__ = [
    "CommandResult",
    "CommandRunner",
    "MockRunner",
    "ScriptedTerminal",
    "Terminal",
]
