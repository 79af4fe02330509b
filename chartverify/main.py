"""
chartverify — CLI entrypoint.

Usage:
    python -m chartverify.main --help
    python -m chartverify.main tools
    python -m chartverify.main cluster create
    python -m chartverify.main check --chart metricbeat "a pod will be deployed on each node of the cluster by a DaemonSet"
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from chartverify import __version__
from chartverify.core.observability.logging_config import resolve_level, setup_from_environment


def _load(ctx: click.Context):
    """Settings + verifier for the current invocation; config errors exit 2."""
    from chartverify.core.config.loader import load_settings
    from chartverify.core.engine.verifier import ChartVerifier
    from chartverify.core.errors import ConfigError

    try:
        settings = load_settings(ctx.obj.get("config_path"))
        verifier = ChartVerifier.from_settings(settings, executor=ctx.obj.get("executor"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(2)
    return settings, verifier


@click.group()
@click.version_option(version=__version__, prog_name="chartverify")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to chartverify.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """chartverify — verify Helm charts on an ephemeral kind cluster."""
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_from_environment(resolve_level(debug=debug, verbose=verbose, quiet=quiet))


@cli.command()
@click.pass_context
def tools(ctx: click.Context) -> None:
    """Check that kind, kubectl and helm are installed."""
    from chartverify.adapters.shell.command import missing_binaries

    settings, verifier = _load(ctx)
    missing = missing_binaries(settings.required_binaries, verifier.executor)

    for binary in settings.required_binaries:
        if binary in missing:
            click.secho(f"   ✗ {binary}: not found", fg="red")
        else:
            click.secho(f"   ✓ {binary}", fg="green")

    if missing:
        sys.exit(1)


@cli.group()
def cluster() -> None:
    """Ephemeral kind cluster lifecycle."""


@cluster.command("create")
@click.option("--dependencies/--no-dependencies", default=True, help="Install runtime dependencies.")
@click.pass_context
def cluster_create(ctx: click.Context, dependencies: bool) -> None:
    """Create the cluster, initialise Helm and install dependencies."""
    from chartverify.core.errors import InfrastructureError

    settings, verifier = _load(ctx)
    test_ctx = verifier.new_context()

    try:
        verifier.check_tools()
        handle = verifier.cluster.create(test_ctx.cluster_name, test_ctx.kubernetes_version)
        verifier.add_repository()
        if dependencies:
            verifier.install_runtime_dependencies(test_ctx, settings.runtime_dependencies)
    except InfrastructureError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    click.secho(f"✅ Cluster {handle.name} running ({handle.node_image})", fg="green")


@cluster.command("destroy")
@click.pass_context
def cluster_destroy(ctx: click.Context) -> None:
    """Delete the cluster."""
    from chartverify.core.errors import InfrastructureError

    _settings, verifier = _load(ctx)
    test_ctx = verifier.new_context()
    try:
        verifier.after_suite(test_ctx)
    except InfrastructureError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)
    click.secho(f"🗑️  Cluster {test_ctx.cluster_name} destroyed", fg="green")


@cluster.command("status")
@click.pass_context
def cluster_status(ctx: click.Context) -> None:
    """Report whether the cluster is running."""
    from chartverify.core.errors import InfrastructureError

    _settings, verifier = _load(ctx)
    name = verifier.settings.cluster_name
    try:
        running = verifier.cluster.is_running(name)
    except InfrastructureError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if running:
        click.secho(f"☸️  {name}: running", fg="green")
    else:
        click.secho(f"☸️  {name}: absent", fg="yellow")
        sys.exit(1)


@cli.command()
@click.pass_context
def steps(ctx: click.Context) -> None:
    """List the step sentences scenarios can use."""
    from chartverify.core.engine.steps import build_registry

    _settings, verifier = _load(ctx)
    for pattern in build_registry(verifier).patterns:
        click.echo(f"   • {pattern}")


@cli.command()
@click.option("--chart", required=True, help="Chart under test (already installed).")
@click.option("--chart-version", "chart_version", default=None, help="Override the chart version.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.argument("sentences", nargs=-1, required=True)
@click.pass_context
def check(
    ctx: click.Context,
    chart: str,
    chart_version: str | None,
    as_json: bool,
    sentences: tuple[str, ...],
) -> None:
    """Run step SENTENCES against an installed chart."""
    from chartverify.core.engine.steps import build_registry
    from chartverify.core.errors import InfrastructureError, UndefinedStep

    _settings, verifier = _load(ctx)
    registry = build_registry(verifier)
    test_ctx = verifier.new_context()
    test_ctx.name = chart
    if chart_version:
        test_ctx.version = chart_version

    outcomes = []
    try:
        for sentence in sentences:
            outcomes.append(registry.run(test_ctx, sentence))
    except UndefinedStep as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(2)
    except InfrastructureError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    failed = [o for o in outcomes if o.failed]

    if as_json:
        click.echo(json.dumps([o.model_dump(mode="json") for o in outcomes], indent=2))
    else:
        for o in outcomes:
            if o.ok:
                click.secho(f"   ✓ {o.step}", fg="green")
            else:
                click.secho(f"   ✗ {o.step}", fg="red")
                click.echo(f"     {o.message}")
        if not ctx.obj.get("quiet"):
            click.echo()
            click.echo(f"   {len(outcomes) - len(failed)} passed, {len(failed)} failed")

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    cli()
