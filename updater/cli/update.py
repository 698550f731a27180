"""
update subcommand: synchronize the local packages with the package repository.
"""

import sys
from pathlib import Path
from typing import Optional

import click
import msgspec
from loguru import logger

from updater.controllers.update_controller import PackageUpdater
from updater.models.results import SyncError
from updater.models.settings import load_config


@click.command("update")
@click.option(
    "--settings",
    "settings_file",
    type=click.Path(path_type=Path),
    help="JSON settings file (defaults to the application settings file).",
)
@click.option("--release", help="Release channel to follow, e.g. stable or testing.")
@click.option("--repository", help="Package repository URL.")
@click.option(
    "--local-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Local install directory.",
)
@click.option(
    "-f",
    "--force",
    is_flag=True,
    help="Skip the major version check for the selected packages.",
)
@click.option(
    "-a",
    "--all",
    "all_packages",
    is_flag=True,
    help="Select every configured package (default when no package is named).",
)
@click.argument("packages", nargs=-1)
def update(
    settings_file: Optional[Path],
    release: Optional[str],
    repository: Optional[str],
    local_dir: Optional[Path],
    force: bool,
    all_packages: bool,
    packages: tuple[str, ...],
) -> None:
    """Update packages from the package repository.

    Packages whose major version changed are not updated unless forced, as
    they require manual operations described in the repository UPDATE help.

    Examples:

    \b
      # Update every configured package of the stable release
      autohost-updater update --release stable

    \b
      # Force the update of a single package after a major version change
      autohost-updater update --release stable -f spads.pl

    The exit status is the number of updated packages, or a negative error code.
    """
    try:
        config = load_config(
            settings_file,
            release=release,
            repository=repository,
            local_dir=str(local_dir) if local_dir is not None else None,
        )
    except (msgspec.DecodeError, OSError) as e:
        click.secho(f"Error: unable to load settings ({e})", fg="red", err=True)
        sys.exit(SyncError.INVALID_CONFIGURATION.value)
    if not config.repository:
        click.secho("Error: no package repository configured.", fg="red", err=True)
        sys.exit(SyncError.INVALID_CONFIGURATION.value)

    forced: bool | set[str] = False
    if force:
        forced = True if all_packages or not packages else set(packages)
    if packages and not all_packages:
        unknown = [name for name in packages if name not in config.packages]
        for name in unknown:
            logger.warning(f'Ignoring unknown package "{name}"')
        config = msgspec.structs.replace(
            config, packages=[name for name in config.packages if name in packages]
        )

    result = PackageUpdater(config).update(force=forced)
    if result.ok:
        click.echo(f"{result.updated_count} package(s) updated")
        if result.skipped_swaps:
            click.secho(
                "Packages in use left at their previous version until the next "
                f"update: {', '.join(result.skipped_swaps)}",
                fg="yellow",
                err=True,
            )
    else:
        assert result.error is not None
        click.secho(
            f"Update failed ({result.error.name}): {result.detail}",
            fg="red",
            err=True,
        )
    sys.exit(result.exit_code)
