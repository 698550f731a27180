"""
Main CLI entry point for the updater.

This module defines the Click command group and registers all subcommands.
"""

from pathlib import Path
from typing import Optional

import click

from updater.cli.engine import check_engine, install_engine, list_engines, resolve_engine
from updater.cli.update import update
from updater.controllers.engine_controller import EngineInstaller
from updater.controllers.update_controller import PackageUpdater
from updater.models.settings import load_config
from updater.utils.app_info import AppInfo


@click.group()
@click.version_option(version=AppInfo().app_version, prog_name=AppInfo().app_name)
def cli() -> None:
    """autohost-updater - package and engine updater for autohosts

    Keeps the autohost packages of a local install directory in sync with a
    package repository, and installs engine versions on demand.

    Settings are read from the JSON file named by AUTOHOST_UPDATER_SETTINGS, or
    from settings.json in the application data folder.
    """
    pass


@click.command("status")
@click.option(
    "--settings",
    "settings_file",
    type=click.Path(path_type=Path),
    help="JSON settings file (defaults to the application settings file).",
)
@click.option("--engine", "engine_version", help="Also check an engine installation.")
def status(settings_file: Optional[Path], engine_version: Optional[str]) -> None:
    """Report whether an update or engine installation is in progress."""
    config = load_config(settings_file)
    in_progress = PackageUpdater(config).is_update_in_progress()
    click.echo(f"Package update in progress: {'yes' if in_progress else 'no'}")
    if engine_version:
        setup = EngineInstaller(config).is_engine_setup_in_progress(engine_version)
        click.echo(
            f"Spring {engine_version} installation in progress: {'yes' if setup else 'no'}"
        )


# Register subcommands
cli.add_command(update)
cli.add_command(install_engine)
cli.add_command(check_engine)
cli.add_command(list_engines)
cli.add_command(resolve_engine)
cli.add_command(status)


if __name__ == "__main__":
    cli()
