"""
Click terminal — interactive prompts on the controlling TTY.
"""

from __future__ import annotations

import click

from appinst.adapters.base import Terminal


class ClickTerminal(Terminal):
    """Terminal backed by ``click.prompt`` / ``click.echo``.

    End-of-input while prompting raises ``click.Abort``, which the CLI
    reports like any other abort.
    """

    def prompt(self, text: str) -> str:
        return click.prompt(text, default="", show_default=False, prompt_suffix="")

    def confirm(self, text: str, default: bool = True) -> bool:
        return click.confirm(text, default=default)

    def echo(self, text: str = "") -> None:
        click.echo(text)
