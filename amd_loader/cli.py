"""
CLI for running and inspecting modules.

Provides `amd-loader run` to require modules from a directory or URL and
`amd-loader describe` to show the resulting registry state.
"""

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .config import create_fetcher
from .config import load_config
from .errors import LoaderError
from .loader import Loader
from .models import ModuleState

STATE_COLORS = {
    ModuleState.REGISTERED: "white",
    ModuleState.LOADING: "blue",
    ModuleState.EXECUTING: "yellow",
    ModuleState.EVALUATED: "green",
    ModuleState.FAILED: "red",
}


def _parse_paths(values: tuple[str, ...]) -> dict[str, str] | None:
    if not values:
        return None
    paths = {}
    for value in values:
        prefix, sep, location = value.partition("=")
        if not sep or not prefix or not location:
            raise click.BadParameter(f"expected ID=LOCATION, got '{value}'", param_hint="--path")
        paths[prefix] = location
    return paths


def _build_loader(
    config_file: str | None,
    base_path: str | None,
    base_url: str | None,
    path_overrides: tuple[str, ...],
) -> Loader:
    config = load_config(
        Path(config_file) if config_file else None,
        base_path=Path(base_path) if base_path else None,
        base_url=base_url,
        paths=_parse_paths(path_overrides),
    )
    return Loader(config=config, fetcher=create_fetcher(config))


def loader_options(fn):
    """Options shared by commands that build a loader."""
    fn = click.option(
        "--path",
        "-p",
        "path_overrides",
        multiple=True,
        metavar="ID=LOCATION",
        help="Map a module id prefix to a location (repeatable)",
    )(fn)
    fn = click.option("--base-url", help="Fetch module sources over HTTP from this URL")(fn)
    fn = click.option(
        "--base-path",
        "-b",
        type=click.Path(exists=True, file_okay=False),
        help="Directory module ids are resolved against",
    )(fn)
    fn = click.option(
        "--config",
        "-c",
        "config_file",
        type=click.Path(exists=True, dir_okay=False),
        help="YAML loader configuration",
    )(fn)
    return fn


def print_status(loader: Loader) -> None:
    """Print one line per known module with its state."""
    for status in loader.describe():
        state = click.style(
            f"[{status.state.value}]", fg=STATE_COLORS.get(status.state, "white")
        )
        line = f"  {click.style(status.id, fg='cyan', bold=True)} {state}"
        if status.dependencies:
            line += f" -> {', '.join(status.dependencies)}"
        click.echo(line)
        if status.error:
            click.echo(f"      {click.style(status.error, fg='red')}")


@click.group()
@click.version_option(version=__version__, prog_name="amd-loader")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """AMD Loader - define/require module loading."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument("module_ids", nargs=-1, required=True)
@loader_options
def run(
    module_ids: tuple[str, ...],
    config_file: str | None,
    base_path: str | None,
    base_url: str | None,
    path_overrides: tuple[str, ...],
) -> None:
    """Require MODULE_IDS and print their exported values.

    Examples:

        amd-loader run app --base-path ./modules

        amd-loader run a -b ./custom/module -p test=../../util/test
    """
    loader = _build_loader(config_file, base_path, base_url, path_overrides)

    def report(*values):
        for module_id, value in zip(module_ids, values):
            click.echo(f"{click.style(module_id, fg='cyan', bold=True)}: {value!r}")

    try:
        loader.require(list(module_ids), report)
    except LoaderError as e:
        click.secho(f"Error: {e}", fg="red", bold=True, err=True)
        sys.exit(1)


@cli.command()
@click.argument("module_ids", nargs=-1, required=True)
@loader_options
def describe(
    module_ids: tuple[str, ...],
    config_file: str | None,
    base_path: str | None,
    base_url: str | None,
    path_overrides: tuple[str, ...],
) -> None:
    """Require MODULE_IDS and list every module the registry knows."""
    loader = _build_loader(config_file, base_path, base_url, path_overrides)

    failed = False
    try:
        loader.require(list(module_ids))
    except LoaderError as e:
        failed = True
        click.secho(f"Error: {e}", fg="red", bold=True, err=True)

    click.echo("Modules:")
    click.echo()
    print_status(loader)

    sys.exit(1 if failed else 0)


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
