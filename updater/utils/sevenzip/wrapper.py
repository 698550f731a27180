import os
import subprocess
import sys
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger


def run_archiver(
    executable: str | Path, args: Sequence[str]
) -> tuple[Optional[int], Optional[str]]:
    """
    Run the archive tool synchronously with its output discarded.

    :param executable: Path to the 7za executable
    :param args: Arguments passed to the executable
    :return: (exit code, None) when the process ran to completion, or
             (None, error detail) when it could not be spawned or was killed
    """
    env = os.environ.copy()
    if sys.platform != "win32":
        # Keep 7za from choking on file names in exotic locales
        env["LC_ALL"] = "C"
    try:
        completed = subprocess.run(
            [str(executable), *args],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            env=env,
            check=False,
        )
    except OSError as e:
        return None, str(e)
    if completed.returncode < 0:
        return None, f"child process interrupted by signal {-completed.returncode}"
    return completed.returncode, None


class SevenZipInterface:
    """
    Create SevenZipInterface object to provide an interface for 7za extraction
    """

    def __init__(self, executable: str | Path) -> None:
        self.executable = Path(executable)

    def extract(
        self,
        archive: str | Path,
        dest_dir: str | Path,
        files_to_extract: Sequence[str] = (),
    ) -> bool:
        """
        Extract archive into dest_dir, limited to files_to_extract when given.

        :param archive: Path to the .7z archive
        :param dest_dir: Destination directory
        :param files_to_extract: Allow-list of archive entries (files or directories)
        :return: True if 7za exited successfully
        """
        logger.debug(f'Extracting sevenzip file "{archive}" into "{dest_dir}"...')
        exit_code, error = run_archiver(
            self.executable,
            ["x", "-y", f"-o{dest_dir}", str(archive), *files_to_extract],
        )
        if error is not None:
            fail_reason = f", error while running 7zip ({error})"
        elif exit_code != 0:
            fail_reason = f" (7zip exit code: {exit_code})"
        else:
            logger.debug(
                f'Extraction of sevenzip file "{archive}" into "{dest_dir}" complete.'
            )
            return True
        logger.error(f'Failed to extract "{archive}"{fail_reason}')
        return False
