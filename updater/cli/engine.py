"""
Engine subcommands: install, check and list engine versions from the buildbot.
"""

import sys
from pathlib import Path
from typing import Optional

import click

from updater.controllers.engine_controller import EngineInstaller
from updater.models.results import EngineError
from updater.models.settings import UpdaterConfig, load_config

settings_option = click.option(
    "--settings",
    "settings_file",
    type=click.Path(path_type=Path),
    help="JSON settings file (defaults to the application settings file).",
)
spring_dir_option = click.option(
    "--spring-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Base directory of engine installations.",
)
branch_option = click.option(
    "--branch",
    help="Buildbot branch (derived from the version when omitted).",
)


def _config(settings_file: Optional[Path], spring_dir: Optional[Path]) -> UpdaterConfig:
    return load_config(
        settings_file,
        spring_dir=str(spring_dir) if spring_dir is not None else None,
    )


@click.command("install-engine")
@settings_option
@spring_dir_option
@branch_option
@click.argument("version")
def install_engine(
    settings_file: Optional[Path],
    spring_dir: Optional[Path],
    branch: Optional[str],
    version: str,
) -> None:
    """Install an engine VERSION for the current architecture.

    Installing a version which is already complete does nothing.
    """
    result = EngineInstaller(_config(settings_file, spring_dir)).install(version, branch)
    if result.ok:
        if result.already_installed:
            click.echo(f"Spring {version} is already installed")
        else:
            click.echo(f"Spring {version} installed")
    else:
        assert result.error is not None
        click.secho(
            f"Installation failed ({result.error.name}): {result.detail}",
            fg="red",
            err=True,
        )
    sys.exit(result.exit_code)


@click.command("check-engine")
@settings_option
@spring_dir_option
@branch_option
@click.argument("version")
def check_engine(
    settings_file: Optional[Path],
    spring_dir: Optional[Path],
    branch: Optional[str],
    version: str,
) -> None:
    """Report whether engine VERSION is installed, or available for download.

    The exit status is 0 when the version is installed or available.
    """
    installer = EngineInstaller(_config(settings_file, spring_dir))
    check = installer.check_engine_dir(version)
    if check.complete:
        click.echo(f"Spring {version} is installed in {check.path}")
        return
    if check.missing:
        click.echo(f"Spring {version} is not installed, missing: {', '.join(check.missing)}")

    availability = installer.availability.check_availability(version, branch)
    if availability.available:
        click.echo(f"Spring {version} is available for download")
        return
    click.echo(f"Spring {version} is unavailable: {availability.detail}")
    sys.exit(EngineError.VERSION_UNAVAILABLE.value)


@click.command("list-engines")
@settings_option
@click.argument("branch", default="release")
def list_engines(settings_file: Optional[Path], branch: str) -> None:
    """List engine versions published on BRANCH (or the release/dev alias)."""
    installer = EngineInstaller(load_config(settings_file))
    for version in installer.availability.list_available(branch):
        click.echo(version)


@click.command("resolve-engine")
@settings_option
@click.argument("release")
def resolve_engine(settings_file: Optional[Path], release: str) -> None:
    """Print the engine version of RELEASE (stable, testing, unstable or a branch)."""
    config = load_config(settings_file)
    version = EngineInstaller(config).availability.resolve_release_version(release)
    if version is None:
        click.secho(f"Unable to resolve {release} engine version", fg="red", err=True)
        sys.exit(1)
    click.echo(version)
