"""Strix CLI - bootstrap inspection.

Commands:
    inspect  - Refresh a context and report what the extension phases did
    check    - Refresh a context; exit non-zero if bootstrap fails

TARGET is ``module:attr`` naming an ApplicationContext, a Container, or a
zero-argument callable returning either.
"""

import importlib
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .config import ConfigError, ConfigLoader
from .context import ApplicationContext
from .di.core import ObjectFactory
from .di.diagnostics import DIEventType
from .di.errors import DIError
from .testing import RecordingDiagnostics


def load_target(target: str, config_path: Optional[str] = None) -> ApplicationContext:
    """
    Import ``module:attr`` and wrap it in an unrefreshed ApplicationContext.

    Raises:
        click.BadParameter: Malformed or unresolvable target
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise click.BadParameter(
            f"expected 'module:attr', got {target!r}", param_hint="TARGET"
        )

    # Allow targets next to the working directory
    cwd = str(Path.cwd())
    if cwd not in sys.path:
        sys.path.insert(0, cwd)

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(
            f"cannot import {module_name!r}: {e}", param_hint="TARGET"
        )

    obj = module
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise click.BadParameter(
                f"{module_name!r} has no attribute {attr!r}", param_hint="TARGET"
            )

    if callable(obj) and not isinstance(obj, (ApplicationContext, ObjectFactory)):
        obj = obj()

    config = None
    if config_path:
        try:
            config = ConfigLoader.load(paths=[config_path]).bootstrap_config()
        except ConfigError as e:
            raise click.BadParameter(str(e), param_hint="--config")

    if isinstance(obj, ApplicationContext):
        # A built context has already applied its own configuration
        if config is not None:
            raise click.BadParameter(
                f"{target!r} is an ApplicationContext; pass a Container target "
                f"to apply a config file",
                param_hint="--config",
            )
        return obj

    if isinstance(obj, ObjectFactory):
        return ApplicationContext(obj, config=config)

    raise click.BadParameter(
        f"{target!r} is a {type(obj).__name__}, not an ApplicationContext or Container",
        param_hint="TARGET",
    )


def _print_section(title: str) -> None:
    click.echo()
    click.echo(click.style(title, fg="cyan", bold=True))


def _print_invocations(recorder: RecordingDiagnostics, prefix: str) -> None:
    events = [
        e for e in recorder.of_type(DIEventType.EXTENSION_INVOKED)
        if (e.phase or "").startswith(prefix)
    ]
    if not events:
        click.echo(click.style("  (none)", dim=True))
        return

    width = max(len(e.phase) for e in events) + 2
    for i, event in enumerate(events, 1):
        click.echo(
            f"  {i:>3}. {event.phase.ljust(width)}{event.extension} "
            + click.style(f"({event.duration * 1000:.2f}ms)", dim=True)
        )


@click.group()
@click.version_option(version=__version__, prog_name="strix")
def cli():
    """Inspect container bootstrap and extension ordering."""
    pass


@cli.command()
@click.argument("target")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="YAML or JSON bootstrap config")
@click.option("--verbose", "-v", is_flag=True, help="Log every diagnostic event")
def inspect(target: str, config_path: Optional[str], verbose: bool):
    """
    Refresh TARGET and report extension phases.

    Examples:
      strix inspect myapp.wiring:context
      strix inspect myapp.wiring:build_container --config strix.yaml
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    context = load_target(target, config_path)
    recorder = RecordingDiagnostics(context.diagnostics)

    try:
        context.refresh()
    except Exception as e:
        click.echo(click.style(f"✗ Refresh failed: {e}", fg="red"), err=True)
        _report(context, recorder)
        sys.exit(1)

    try:
        _report(context, recorder)
    finally:
        context.close()


def _report(context: ApplicationContext, recorder: RecordingDiagnostics) -> None:
    _print_section("Registry extensions")
    _print_invocations(recorder, "registry.")

    _print_section("Factory extensions")
    _print_invocations(recorder, "factory.")

    rounds = recorder.of_type(DIEventType.REITERATION_ROUND)
    _print_section("Reiteration")
    click.echo(f"  rounds: {len(rounds)}")
    for event in rounds:
        discovered = ", ".join(event.metadata.get("discovered", []))
        click.echo(f"  round {event.metadata.get('round')}: {discovered}")

    _print_section("Instance extension chain")
    chain = context.container.instance_extensions
    if not chain:
        click.echo(click.style("  (empty)", dim=True))
    for i, extension in enumerate(chain, 1):
        click.echo(f"  {i:>3}. {extension!r}")

    ineligible = recorder.of_type(DIEventType.INELIGIBLE_BEAN)
    _print_section("Ineligible objects")
    if not ineligible:
        click.echo(click.style("  (none)", dim=True))
    for event in ineligible:
        click.echo(click.style(f"  ! {event.name}", fg="yellow"))


@cli.command()
@click.argument("target")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="YAML or JSON bootstrap config")
def check(target: str, config_path: Optional[str]):
    """
    Refresh TARGET; exit 1 on a container error, 2 on any other failure.
    """
    context = load_target(target, config_path)

    try:
        context.refresh()
    except DIError as e:
        click.echo(click.style(f"✗ {type(e).__name__}: {e}", fg="red"), err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(click.style(f"✗ Extension failed: {type(e).__name__}: {e}", fg="red"), err=True)
        sys.exit(2)

    names = context.container.definition_count
    context.close()
    click.echo(click.style(f"✓ Bootstrap OK ({names} definitions)", fg="green"))


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
