"""ZIP extraction of versioned package archives."""

import os
import shutil
import time
import zlib
from pathlib import Path
from zipfile import BadZipFile, ZipFile

from loguru import logger

from updater.utils.exception import ExtractionError

__all__ = ["extract_zip"]


def extract_zip(zip_path: str | Path, target_path: str | Path) -> int:
    """Extract a ZIP archive into target_path, overwriting existing files.

    Entries resolving outside target_path are refused.

    Args:
        zip_path: Path to ZIP file to extract
        target_path: Destination directory, created if missing

    Returns:
        Number of extracted files

    Raises:
        ExtractionError: If the archive is invalid, corrupt or encrypted, or a
            file cannot be written
    """
    start = time.perf_counter()
    target = Path(target_path)
    target_root = target.resolve()
    extracted = 0
    try:
        target.mkdir(parents=True, exist_ok=True)
        with ZipFile(zip_path) as zipobj:
            for zip_info in zipobj.infolist():
                dst = (target / zip_info.filename).resolve()
                if dst != target_root and target_root not in dst.parents:
                    raise ExtractionError(
                        f"Refusing to extract {zip_info.filename} outside of {target}"
                    )
                if zip_info.is_dir():
                    os.makedirs(dst, exist_ok=True)
                    continue
                os.makedirs(dst.parent, exist_ok=True)
                with zipobj.open(zip_info) as src, open(dst, "wb") as out_file:
                    shutil.copyfileobj(src, out_file)
                extracted += 1
    except (
        BadZipFile,
        OSError,
        zlib.error,
        EOFError,
        RuntimeError,
        NotImplementedError,
    ) as e:
        logger.error(f"ZIP extraction failed: {e}")
        raise ExtractionError(str(e)) from e

    elapsed = time.perf_counter() - start
    logger.debug(
        f"{zip_path} → {target_path} ({extracted} files, {elapsed:.2f} seconds)"
    )
    return extracted
