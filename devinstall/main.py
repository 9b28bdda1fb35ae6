"""
devinstall — CLI entrypoint.

Usage:
    dev install jq
    dev install --list
    dev install gitego --dry-run
    dev platform --json
    dev managers
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from devinstall import __version__
from devinstall.core.errors import DevInstallError
from devinstall.core.observability.logging_config import resolve_level, setup_logging

_RULE = "─" * 50


@click.group()
@click.version_option(version=__version__, prog_name="dev")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to config.yml (default: ~/.config/devinstall/config.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """dev — install developer tools the right way for this platform."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(level=resolve_level(verbose, quiet, debug), quiet_third_party=not debug)


def _install_context(ctx: click.Context):
    """The InstallContext for this invocation, built on first use.

    Tests pass a ready-made one in ``obj["install_context"]``.
    """
    from devinstall.core.config.loader import load_settings
    from devinstall.core.services.installers import InstallContext

    if ctx.obj.get("install_context") is None:
        try:
            settings = load_settings(ctx.obj.get("config_path"))
        except DevInstallError as e:
            click.secho(f"❌ {e}", fg="red", err=True)
            sys.exit(1)
        install_ctx = InstallContext(settings=settings)
        install_ctx.shell.default_timeout = settings.default_timeout
        ctx.obj["install_context"] = install_ctx
    return ctx.obj["install_context"]


# ── install ─────────────────────────────────────────────────────


def _list_installers(install_ctx) -> None:
    from devinstall.core.services.installers import available_installers, get_installer

    click.echo("\nAvailable install scripts:")
    click.echo("─" * 40)
    for name in available_installers():
        installer = get_installer(name)
        mark = "" if installer.is_eligible(install_ctx) else " (not available on this platform)"
        click.echo(f"  {name}{mark}")
    click.echo("\nUsage: dev install <name>\n")


@cli.command()
@click.argument("name", required=False)
@click.option("--list", "list_tools", is_flag=True, help="List available installers.")
@click.option("--dry-run", is_flag=True, help="Show what would be installed without installing.")
@click.option("--force", "-y", is_flag=True, help="Skip confirmation prompts.")
@click.pass_context
def install(
    ctx: click.Context,
    name: str | None,
    list_tools: bool,
    dry_run: bool,
    force: bool,
) -> None:
    """Install a tool and its dependencies.

    Examples::

        dev install jq
        dev install --list
        dev install gitego --dry-run
        dev install yq -y
    """
    from devinstall.core.services.installers import get_installer, resolve_dependencies

    install_ctx = _install_context(ctx)
    verbose = ctx.obj.get("verbose", False)
    force = force or install_ctx.settings.assume_yes

    # ── List mode ──────────────────────────────────────────
    if list_tools:
        _list_installers(install_ctx)
        return

    if not name:
        click.secho("\nError: No package specified.", fg="red", err=True)
        click.echo("Usage: dev install <name>")
        click.echo("Run `dev install --list` to see available options.\n")
        sys.exit(1)

    target = get_installer(name)
    if target is None:
        click.secho(f'\nError: Unknown package "{name}".', fg="red", err=True)
        click.echo("Run `dev install --list` to see available options.\n")
        sys.exit(1)

    try:
        click.echo(f"\nChecking {target.display_name}...")
        if target.is_installed(install_ctx):
            click.secho(f"{target.display_name} is already installed.", fg="green")
            return
        if not target.is_eligible(install_ctx):
            click.echo(f"{target.display_name} is not available for this platform.")
            return

        if verbose:
            click.echo(f"Resolving dependencies for {target.display_name}...")
        plan = [*resolve_dependencies(target.name, install_ctx), target]

        # ── Plan ───────────────────────────────────────────
        if len(plan) > 1:
            click.echo("\nThe following will be installed:")
            for item in plan:
                click.echo(f"  - {item.display_name}")
            click.echo()
        else:
            click.echo(f"\nPreparing to install: {target.display_name}")

        if dry_run:
            click.secho("[Dry run mode - no changes will be made]\n", fg="yellow")
            return

        if not force and not click.confirm("Proceed with installation?"):
            click.echo("Installation cancelled.")
            return

        # ── Execute ────────────────────────────────────────
        succeeded = failed = 0
        for index, item in enumerate(plan):
            click.echo(f"\n{_RULE}")
            click.echo(f"Installing {item.display_name}...")
            click.echo(_RULE)

            outcome = item.install(install_ctx)
            if outcome.ok:
                succeeded += 1
                continue

            failed += 1
            click.secho(f"Failed to install {item.display_name}.", fg="red", err=True)
            remaining = index < len(plan) - 1
            if remaining and not force and not click.confirm("Continue with remaining installations?"):
                click.echo("Installation cancelled.")
                break
    except DevInstallError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    # ── Summary ────────────────────────────────────────────
    if len(plan) > 1 or failed:
        click.echo(f"\n{_RULE}")
        click.echo("Installation summary:")
        click.secho(f"  Successful: {succeeded}", fg="green")
        if failed:
            click.secho(f"  Failed: {failed}", fg="red")
        click.echo()


# ── platform ────────────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def platform(ctx: click.Context, as_json: bool) -> None:
    """Show the detected platform."""
    install_ctx = _install_context(ctx)
    descriptor = install_ctx.get_platform()
    desktop = install_ctx.desktop_available()

    if as_json:
        click.echo(json.dumps({**descriptor.model_dump(mode="json"), "desktop": desktop}, indent=2))
        return

    click.secho(f"\n🖥  {descriptor.name}", fg="cyan", bold=True)
    click.echo(f"   Architecture:    {descriptor.architecture or 'unknown'}")
    click.echo(f"   Package manager: {descriptor.package_manager or 'none'}")
    if descriptor.distro:
        click.echo(f"   Distribution:    {descriptor.distro}")
    click.echo(f"   Desktop session: {'yes' if desktop else 'no'}")
    click.echo()


# ── managers ────────────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def managers(ctx: click.Context, as_json: bool) -> None:
    """Show which package managers are available."""
    install_ctx = _install_context(ctx)
    status = install_ctx.adapters().adapter_status()

    if as_json:
        click.echo(json.dumps(status, indent=2))
        return

    click.secho("\n📦 Package managers:\n", fg="cyan", bold=True)
    for info in status.values():
        if info["available"]:
            version = f" {info['version']}" if info.get("version") else ""
            click.secho(f"   ✓ {info['display_name']}{version}", fg="green")
        else:
            click.secho(f"   ✗ {info['display_name']}", fg="bright_black")
    click.echo()


if __name__ == "__main__":
    cli()
