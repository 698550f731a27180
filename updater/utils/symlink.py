"""
Pointing the unversioned "current" name of a package at its versioned artifact.

Two strategies exist: a symbolic link where the platform supports them, and a
copy of the artifact elsewhere (Windows). The orchestrator picks one through
``swap_current_artifact`` and never branches on the platform itself.
"""

import os
import shutil
from pathlib import Path

from loguru import logger

from updater.utils.constants import (
    LOCKED_WHILE_RUNNING_EXTENSIONS,
    MAX_TO_BE_DELETED_INDEX,
    TO_BE_DELETED_EXTENSION,
)
from updater.utils.exception import SwapError


def is_junction_or_link(path: str | Path) -> bool:
    """
    This checks if a path is a symlink.
    Additionally on Windows it checks if the path is a junction.
    If the path does not exist or is not a symlink/junction,
    it will catch an OSError, and return false.
    :param path: The path to check
    """
    try:
        return bool(os.readlink(path))
    except OSError:
        return False


def remove_current(path: Path) -> None:
    """Remove a link or file, ignoring failures (the caller checks what remains)."""
    try:
        if is_junction_or_link(path) or path.is_file():
            os.unlink(path)
    except OSError as e:
        logger.debug(f"Unable to remove {path}: {e}")


def rename_to_be_deleted(path: Path) -> bool:
    """
    Move path aside to ``<path>.<i>.toBeDeleted`` using the first free index.

    Files which are in use on Windows cannot be deleted but can usually be renamed.

    :return: True if the file was moved
    """
    index = 1
    while (
        path.with_name(f"{path.name}.{index}{TO_BE_DELETED_EXTENSION}").is_file()
        and index < MAX_TO_BE_DELETED_INDEX
    ):
        index += 1
    target = path.with_name(f"{path.name}.{index}{TO_BE_DELETED_EXTENSION}")
    try:
        shutil.move(str(path), str(target))
    except OSError as e:
        logger.warning(f'Unable to rename "{path}" to "{target}": {e}')
        return False
    logger.debug(f'Renamed "{path}" to "{target}"')
    return True


def copy_artifact(current: Path, versioned: Path) -> bool:
    """
    Copy strategy: replace current with a copy of versioned.

    :return: False if the copy was skipped because the current file is an
             executable or library in use which cannot be moved aside
    :raises SwapError: if the copy fails
    """
    remove_current(current)
    if current.is_file() and not rename_to_be_deleted(current):
        if current.name.lower().endswith(LOCKED_WHILE_RUNNING_EXTENSIONS):
            logger.critical(
                f'Unable to replace "{current}" which is in use, package left at its '
                "previous version until the next update run after a restart"
            )
            return False
    try:
        if versioned.is_dir():
            if current.is_dir() and not is_junction_or_link(current):
                shutil.rmtree(current)
            shutil.copytree(versioned, current)
        else:
            shutil.copyfile(versioned, current)
            shutil.copymode(versioned, current)
    except OSError as e:
        raise SwapError(
            f'Unable to copy "{versioned}" to "{current}", system consistency must be '
            f"checked manually ! ({e})"
        ) from e
    return True


def link_artifact(current: Path, versioned: Path) -> bool:
    """
    Symlink strategy: make current a relative symbolic link to versioned.

    :raises SwapError: if the link cannot be created
    """
    remove_current(current)
    try:
        if current.is_dir() and not is_junction_or_link(current):
            shutil.rmtree(current)
        os.symlink(
            versioned.name, current, target_is_directory=versioned.is_dir()
        )
    except OSError as e:
        raise SwapError(
            f'Unable to create symbolic link from "{current}" to "{versioned}", '
            f"system consistency must be checked manually ! ({e})"
        ) from e
    return True


def swap_current_artifact(
    current: Path, versioned: Path, supports_symlink: bool
) -> bool:
    """
    Point current at versioned with the strategy matching the platform.

    :return: True if current now refers to versioned, False if the swap was
             skipped and the package is left inconsistent until a later run
    :raises SwapError: on failures requiring a manual consistency check
    """
    if supports_symlink:
        return link_artifact(current, versioned)
    return copy_artifact(current, versioned)
