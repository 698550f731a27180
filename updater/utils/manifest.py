"""
Reading and writing of the installed state file, and parsing of the remote
package list.
"""

import os
import re
import tempfile
import time
from pathlib import Path
from typing import Iterable

from loguru import logger

from updater.models.installed_state import InstalledState, PackageManifest
from updater.utils.exception import StateReadError, StateWriteError

ENTRY_PATTERN = re.compile(r"^([^:]+):(.+)$")
SECTION_PATTERN = re.compile(r"^\s*\[([^\]]+)\]")
TIMESTAMP_PATTERN = re.compile(r"^\d+$")


def _parse_entries(lines: Iterable[str]) -> dict[str, str]:
    entries: dict[str, str] = {}
    for line in lines:
        match = ENTRY_PATTERN.match(line.rstrip("\r\n"))
        if match:
            entries[match.group(1)] = match.group(2)
    return entries


def read_installed(path: str | Path) -> InstalledState:
    """
    Read the installed state file.

    Lines which are not ``name:version`` entries are ignored. A missing file
    yields an empty state.

    :param path: Path to updateInfo.txt
    :raises StateReadError: if the file exists but cannot be read
    """
    path = Path(path)
    if not path.is_file():
        return InstalledState()
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f'Unable to read "{path}" file: {e}')
        raise StateReadError(f'Unable to read "{path}" file: {e}') from e

    timestamp = None
    if lines and TIMESTAMP_PATTERN.match(lines[0].strip()):
        timestamp = int(lines[0].strip())
    return InstalledState(packages=_parse_entries(lines), timestamp=timestamp)


def write_installed(path: str | Path, state: InstalledState) -> None:
    """
    Persist the installed state with a fresh timestamp.

    The file is written next to its destination and renamed into place, so
    readers never observe a half-written state.

    :raises StateWriteError: if the file cannot be written
    """
    path = Path(path)
    state.timestamp = int(time.time())
    content = f"{state.timestamp}\n" + "".join(
        f"{name}:{version}\n" for name, version in state.packages.items()
    )
    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
        )
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as tmp_handle:
            tmp_handle.write(content)
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise StateWriteError(
            f'Unable to write update information to "{path}" file: {e}'
        ) from e


def parse_manifest(text: str) -> PackageManifest:
    """
    Parse the remote package list.

    ``[section]`` lines start a release section and ``name:version`` lines add a
    package to the current section. Entries before the first section are dropped.

    >>> parse_manifest("[stable]\\nspads.pl:spads_0.12.pl\\n")
    {'stable': {'spads.pl': 'spads_0.12.pl'}}
    """
    manifest: PackageManifest = {}
    current_section = None
    for raw_line in text.splitlines():
        section_match = SECTION_PATTERN.match(raw_line)
        if section_match:
            current_section = section_match.group(1)
            manifest.setdefault(current_section, {})
            continue
        entry_match = ENTRY_PATTERN.match(raw_line)
        if entry_match and current_section is not None:
            manifest[current_section][entry_match.group(1)] = entry_match.group(2)
    return manifest
