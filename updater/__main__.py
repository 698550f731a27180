#!/usr/bin/env python3
import sys

import loguru
from loguru import logger

from updater.cli.main import cli
from updater.utils.app_info import AppInfo


def formatter(record: "loguru.Record") -> str:
    """Custom formatter for loguru logger"""
    return (
        "[{level}]"
        "[{time:YYYY-MM-DD HH:mm:ss}]"
        "[{process.id}]"
        "[{module}]"
        "[{function}][{line}]"
        " : {message}\n{exception}"
    )


def setup_logging() -> None:
    """
    Log to a file in the user log folder, and warnings and above to stderr.

    The file logger is set to DEBUG when a "DEBUG" file exists in the
    application storage folder.
    """
    debug_file_path = AppInfo().app_storage_folder / "DEBUG"
    debug_mode = debug_file_path.exists() and debug_file_path.is_file()

    # Remove the default stderr logger
    logger.remove()

    log_folder = AppInfo().user_log_folder
    try:
        log_folder.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        print(f"Unable to create log folder {log_folder}: {e}", file=sys.stderr)
    else:
        logger.add(
            log_folder / (AppInfo().app_name + ".log"),
            level="DEBUG" if debug_mode else "INFO",
            format=formatter,
            rotation="5 MB",
            retention=2,
        )

    # Add a "WARNING" or higher stderr logger
    logger.add(
        sys.stderr,
        level="WARNING",
        format=formatter,
        colorize=False,
    )


def main() -> None:
    setup_logging()
    logger.debug(f"Starting {AppInfo().app_name} {AppInfo().app_version}")
    cli()


if __name__ == "__main__":
    main()
