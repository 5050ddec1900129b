"""
appinst — CLI entrypoint.

Usage:
    appinst --help
    appinst list
    appinst steps bash 5.2
    appinst --batch install bash 5.2 readline 8.2
    appinst history bash

Exit codes: 0 success, 1 failure or quit, 9 usage error.
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any

import click

from appinst import __version__
from appinst.core.config.settings import Settings, load_settings
from appinst.core.errors import ConfigurationError, UserQuit
from appinst.core.observability.logging_config import level_from_flags, setup_logging

USAGE_EXIT_CODE = 9


class InstallerGroup(click.Group):
    """Command group that reports usage errors with exit status 9."""

    def main(self, *args: Any, **kwargs: Any) -> Any:
        kwargs["standalone_mode"] = False
        try:
            return super().main(*args, **kwargs)
        except click.UsageError as e:
            e.show()
            sys.exit(USAGE_EXIT_CODE)
        except click.ClickException as e:
            e.show()
            sys.exit(e.exit_code)
        except click.Abort:
            click.echo("Aborted!", err=True)
            sys.exit(1)


def _settings(ctx: click.Context) -> Settings:
    """Load settings once per process; a bad config file is fatal."""
    if "settings" not in ctx.obj:
        try:
            ctx.obj["settings"] = load_settings(ctx.obj.get("config_path"))
        except ConfigurationError as e:
            click.secho(f"❌ {e}", fg="red", err=True)
            sys.exit(1)
    return ctx.obj["settings"]


def _requests(args: tuple[str, ...]) -> list[tuple[str, str]]:
    from appinst.core.use_cases.install import parse_requests

    try:
        return parse_requests(args)
    except ValueError as e:
        raise click.UsageError(str(e)) from e


@click.group(cls=InstallerGroup)
@click.version_option(version=__version__, prog_name="appinst")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to appinst.yml (default: auto-detect).",
)
@click.option("--batch", "-b", is_flag=True, help="Never prompt; run every step.")
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    batch: bool,
) -> None:
    """appinst — fetch, verify, build and install applications from descriptors."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config_path) if config_path else None
    ctx.obj["batch"] = batch
    ctx.obj["quiet"] = quiet

    setup_logging(
        level=level_from_flags(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get("APPINST_LOG_FILE"),
        log_file_level=os.environ.get("APPINST_LOG_FILE_LEVEL"),
    )


@cli.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, as_json: bool) -> None:
    """List known applications."""
    from appinst.core.use_cases.catalog import list_applications

    settings = _settings(ctx)
    summaries = list_applications(settings)

    if as_json:
        click.echo(json.dumps([s.to_dict() for s in summaries], indent=2))
        return

    if not summaries:
        click.secho(f"⚠️  No descriptors in {settings.descriptor_dir}", fg="yellow")
        return

    for summary in summaries:
        if summary.error:
            click.echo(f"   {summary.name:<24} ", nl=False)
            click.secho("invalid descriptor", fg="red")
        elif summary.latest:
            click.echo(f"   {summary.name:<24} {summary.latest.version} ({summary.latest.date})")
        else:
            click.echo(f"   {summary.name:<24} (never installed)")


@cli.command()
@click.argument("pairs", nargs=-1, required=True, metavar="NAME VERSION [NAME VERSION]...")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def steps(ctx: click.Context, pairs: tuple[str, ...], as_json: bool) -> None:
    """List the resolved steps without executing anything."""
    from appinst.core.use_cases.catalog import describe_steps

    requests = _requests(pairs)
    listings = describe_steps(requests, _settings(ctx))

    if as_json:
        click.echo(json.dumps([item.to_dict() for item in listings], indent=2))
    else:
        for listing in listings:
            click.secho(f"\n📋 {listing.name} {listing.version}", fg="cyan", bold=True)
            if listing.error:
                click.secho(f"   ❌ {listing.error}", fg="red")
                continue
            for unit in listing.units:
                click.echo(f"   {unit.name}: {unit.distfile} → {unit.work_path}")
                click.echo(f"     verify: {unit.verify.value}")
                if unit.preextract:
                    click.echo(f"     pre-extract:  {unit.preextract}")
                if unit.postextract:
                    click.echo(f"     post-extract: {unit.postextract}")
                for i, step in enumerate(unit.steps, 1):
                    click.echo(f"     {i}. {step.label}")
                    click.echo(f"        $ {step.action}")
        click.echo()

    if any(listing.error for listing in listings):
        sys.exit(1)


@cli.command()
@click.argument("pairs", nargs=-1, required=True, metavar="NAME VERSION [NAME VERSION]...")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output summary as JSON.")
@click.pass_context
def install(ctx: click.Context, pairs: tuple[str, ...], as_json: bool) -> None:
    """Fetch, verify, extract and build each NAME VERSION pair."""
    from appinst.adapters.shell.command import ShellCommandRunner
    from appinst.adapters.terminal import ClickTerminal
    from appinst.core.use_cases.install import install_applications

    requests = _requests(pairs)
    settings = _settings(ctx)

    try:
        report = install_applications(
            requests,
            settings,
            ShellCommandRunner(),
            ClickTerminal(),
            batch=ctx.obj["batch"],
        )
    except UserQuit as e:
        click.secho(f"⏹  {e.reason}", fg="yellow", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    elif not ctx.obj.get("quiet"):
        click.echo()
        for result in report.results:
            if result.ok:
                click.secho(f"✅ {result.name} {result.version} installed", fg="green")
                if result.history_error:
                    click.secho(f"   ⚠️  history not saved: {result.history_error}", fg="yellow")
            else:
                click.secho(f"❌ {result.name} {result.version}: {result.error}", fg="red")

    if not report.all_ok:
        sys.exit(1)


@cli.command()
@click.argument("name")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def history(ctx: click.Context, name: str, as_json: bool) -> None:
    """Show recorded installs of NAME."""
    from appinst.core.use_cases.catalog import read_history

    try:
        records = read_history(name, _settings(ctx))
    except ConfigurationError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps([r.model_dump() for r in records], indent=2))
        return

    if not records:
        click.echo(f"{name}: never installed")
        return

    click.secho(f"📋 {name}", fg="cyan", bold=True)
    for record in records:
        click.echo(f"   {record.version:<16} {record.date:<34} {record.user}")


if __name__ == "__main__":
    cli()
