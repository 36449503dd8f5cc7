"""
DrumBrain — CLI entrypoint.

Usage:
    drumbrain --help
    drumbrain setup
    drumbrain plan
    drumbrain render ./preview
    drumbrain devices
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path

import click

from drumbrain.core.observability.logging_config import setup_logging

from drumbrain import __version__

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="drumbrain")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to drumbrain.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """DrumBrain — turn a Raspberry Pi into a drum module (JACK + DrumGizmo)."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("DRUMBRAIN_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("DRUMBRAIN_LOG_FILE"),
        log_file_level=os.environ.get("DRUMBRAIN_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )


def _load_config(ctx: click.Context):
    """Load drumbrain.yml or exit 1 with the loader's message."""
    from drumbrain.core.config.loader import ConfigError, load_config

    try:
        return load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


# ── setup ───────────────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output the run report as JSON.")
@click.pass_context
def setup(ctx: click.Context, as_json: bool) -> None:
    """Provision this Pi: packages, limits, kit, helper scripts, services."""
    from drumbrain.adapters.shell.command import SubprocessRunner
    from drumbrain.adapters.shell.filesystem import ArtifactWriter
    from drumbrain.core.engine import orchestrator
    from drumbrain.core.errors import IdentityMismatch, StepFailure
    from drumbrain.core.services.steps import build_steps

    config = _load_config(ctx)
    runner = SubprocessRunner(use_sudo=config.use_sudo)
    writer = ArtifactWriter(runner, use_sudo=config.use_sudo)
    steps = build_steps(config, runner, writer)

    # In JSON mode stdout carries only the report
    echo = (lambda _line: None) if as_json else click.echo
    engine = orchestrator.Orchestrator(
        steps, config, echo=echo, whoami=orchestrator.current_user
    )

    try:
        report = engine.run()
    except IdentityMismatch as e:
        if as_json:
            click.echo(json.dumps({"status": "failed", "error": e.to_dict()}, indent=2))
        else:
            click.secho(f"❌ {e.message}", fg="red", err=True)
            click.echo(f"   Example:  ssh {e.expected}@<pi-address>  then:  drumbrain setup", err=True)
        sys.exit(1)
    except StepFailure as failure:
        if as_json:
            click.echo(json.dumps({"status": "failed", **failure.to_dict()}, indent=2))
        else:
            click.echo(err=True)
            click.secho(f"❌ Step {failure.index} failed: {failure.description}", fg="red", err=True)
            click.echo(f"   {failure.cause.message}", err=True)
            if failure.cause.detail:
                click.echo(f"   {failure.cause.detail}", err=True)
            click.echo(
                "   Earlier steps were kept. Fix the cause and run `drumbrain setup` again.",
                err=True,
            )
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))


# ── plan ────────────────────────────────────────────────────────


@cli.command()
@click.pass_context
def plan(ctx: click.Context) -> None:
    """List the setup steps without running anything."""
    from drumbrain.adapters.shell.command import SubprocessRunner
    from drumbrain.adapters.shell.filesystem import ArtifactWriter
    from drumbrain.core.services.steps import build_steps

    config = _load_config(ctx)
    # Steps are only built, never called, so the runner stays idle
    runner = SubprocessRunner(use_sudo=False)
    steps = build_steps(config, runner, ArtifactWriter(runner, use_sudo=False))

    if not ctx.obj.get("quiet"):
        click.secho(f"\n🥁 Setup plan for user '{config.user}' ({len(steps)} steps)\n", fg="cyan", bold=True)
    for step in steps:
        click.echo(f"  {step.index:>2}. {step.description}")


# ── render ──────────────────────────────────────────────────────


@cli.command()
@click.argument("directory", type=click.Path(file_okay=False, path_type=Path))
@click.pass_context
def render(ctx: click.Context, directory: Path) -> None:
    """Write every generated file under DIRECTORY for review."""
    from drumbrain.adapters.shell.command import SubprocessRunner
    from drumbrain.adapters.shell.filesystem import ArtifactWriter
    from drumbrain.core.errors import ArtifactWriteFailure
    from drumbrain.core.services.artifacts import all_artifacts

    config = _load_config(ctx)
    writer = ArtifactWriter(SubprocessRunner(use_sudo=False), use_sudo=False, root=directory)

    for artifact in all_artifacts(config):
        try:
            target = writer.write(artifact)
        except ArtifactWriteFailure as e:
            click.secho(f"❌ {e.message}: {e.detail}", fg="red", err=True)
            sys.exit(1)
        click.echo(f"  {artifact.mode}  {target}")
        if ctx.obj.get("verbose"):
            click.echo(f"        {artifact.reason}")

    if not ctx.obj.get("quiet"):
        click.secho(f"\n✅ Rendered into {directory}", fg="green")


# ── devices ─────────────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def devices(ctx: click.Context, as_json: bool) -> None:
    """Show ALSA playback cards and the one JACK would use."""
    from drumbrain.adapters.shell.command import SubprocessRunner
    from drumbrain.core.services.devices import detect_devices

    config = _load_config(ctx)
    report = detect_devices(config, SubprocessRunner(use_sudo=False))

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        if report.error:
            sys.exit(1)
        return

    if report.error:
        click.secho(f"❌ {report.error}", fg="red", err=True)
        sys.exit(1)

    if not report.cards:
        click.secho("No ALSA playback cards found.", fg="yellow")
    for card in report.cards:
        marker = " ←" if card.hw == report.selected else ""
        click.echo(f"  {card.hw:<6} {card.line}{marker}")

    click.echo()
    if report.selected:
        click.secho(f"JACK device: {report.selected}", fg="green")
    else:
        click.secho("JACK device: none (jackd_start.sh would exit)", fg="yellow")


if __name__ == "__main__":
    cli()
