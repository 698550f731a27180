import os
import re
import shutil
from collections.abc import Collection
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from updater.models.installed_state import InstalledState
from updater.models.results import SyncError, SyncResult
from updater.models.settings import UpdaterConfig
from updater.utils.constants import (
    EXECUTABLE_EXTENSIONS,
    PACKAGE_LIST_FILENAME,
    TEMP_DOWNLOAD_EXTENSION,
    UNKNOWN_VERSION,
    UPDATE_HELP_FILENAME,
    UPDATE_INFO_FILENAME,
    UPDATER_LOCK_FILENAME,
    ZIP_EXTENSION,
)
from updater.utils.downloader import Downloader
from updater.utils.exception import (
    ExtractionError,
    StateReadError,
    StateWriteError,
    SwapError,
    SyncAborted,
)
from updater.utils.lock import LockStatus, MutualExclusionLock
from updater.utils.manifest import parse_manifest, read_installed, write_installed
from updater.utils.symlink import swap_current_artifact
from updater.utils.zip_extractor import extract_zip

# "<name>_<major>.<minor>.<tag>" style identifiers, capturing the major version
MAJOR_VERSION_PATTERN = re.compile(r"_([\d.]+)\.\w+\.[^.]+$")

Force = Union[bool, Collection[str]]


def major_version(version: str) -> Optional[str]:
    match = MAJOR_VERSION_PATTERN.search(version)
    return match.group(1) if match else None


def is_major_version_change(current_version: str, available_version: str) -> bool:
    """
    Whether moving from current_version to available_version crosses a major
    version, which requires manual operations before updating.

    Identifiers without a recognizable major version never count as a change.
    """
    current_major = major_version(current_version)
    available_major = major_version(available_version)
    if current_major is None or available_major is None:
        return False
    return current_major != available_major


def strip_archive_suffix(version: str) -> str:
    if version.endswith(ZIP_EXTENSION) and len(version) > len(ZIP_EXTENSION):
        return version[: -len(ZIP_EXTENSION)]
    return version


class PackageUpdater:
    """
    Synchronizes the configured packages of a local install directory with the
    remote package repository.

    A run holds the install directory lock, downloads the package list, fetches
    every package whose version changed, points each package's current name at
    its new versioned artifact, and records the new versions in updateInfo.txt.
    Packages updated before a failure are not rolled back.
    """

    def __init__(
        self, config: UpdaterConfig, downloader: Optional[Downloader] = None
    ) -> None:
        self.config = config
        self.local_dir = config.local_path
        self.repository = config.repository.rstrip("/")
        self.downloader = downloader or Downloader(timeout=config.http_timeout)
        self.update_info_file = self.local_dir / UPDATE_INFO_FILENAME

    def lock(self) -> MutualExclusionLock:
        return MutualExclusionLock(self.local_dir, UPDATER_LOCK_FILENAME)

    def is_update_in_progress(self) -> bool:
        return self.lock().is_locked()

    def update(self, force: Force = False) -> SyncResult:
        """
        Run a package sync.

        :param force: True to skip the major version guard for every package, or
                      the names of the packages for which it is skipped
        :return: SyncResult listing the updated packages, or the reason of failure
        """
        lock = self.lock()
        status = lock.acquire()
        if status is LockStatus.IO_ERROR:
            return SyncResult(
                error=SyncError.LOCK_FILE_UNWRITABLE, detail=str(lock.path)
            )
        if status is LockStatus.BUSY:
            logger.warning(
                "Another instance of the updater is already running in same directory"
            )
            return SyncResult(error=SyncError.ALREADY_RUNNING)

        try:
            return self.update_unlocked(force)
        finally:
            lock.release()

    def update_unlocked(self, force: Force = False) -> SyncResult:
        """Run a package sync. The caller must hold the install directory lock."""
        updated: list[str] = []
        skipped_swaps: list[str] = []
        try:
            self._sync(force, updated, skipped_swaps)
        except SyncAborted as e:
            if e.kind in (SyncError.SWAP_FAILED, SyncError.STATE_WRITE_FAILED):
                logger.critical(e.detail)
            elif e.kind is not SyncError.MAJOR_VERSION_CHANGE:
                logger.error(e.detail)
            return SyncResult(
                updated=updated,
                error=e.kind,
                detail=e.detail,
                skipped_swaps=skipped_swaps,
            )

        if updated:
            logger.success(f"{len(updated)} package(s) updated")
        return SyncResult(updated=updated, skipped_swaps=skipped_swaps)

    def _sync(
        self, force: Force, updated: list[str], skipped_swaps: list[str]
    ) -> None:
        try:
            state = read_installed(self.update_info_file)
        except StateReadError as e:
            raise SyncAborted(SyncError.STATE_UNREADABLE, str(e)) from e

        available_packages = self._fetch_release_packages()

        versioned: dict[str, str] = {}
        for package in self.config.packages:
            if package not in available_packages:
                logger.warning(
                    f'No "{package}" package available for {self.config.release} release'
                )
                continue
            current_version = state.get(package) or UNKNOWN_VERSION
            raw_version = available_packages[package]
            available_version = strip_archive_suffix(raw_version)
            if current_version == available_version:
                continue

            if not self._is_forced(force, package) and is_major_version_change(
                current_version, available_version
            ):
                self._abort_major_version_change(
                    package, current_version, available_version
                )

            update_msg = f'Updating package "{package}"'
            if current_version != UNKNOWN_VERSION:
                update_msg += f' from "{current_version}"'
            logger.info(f'{update_msg} to "{available_version}"')

            if raw_version != available_version:
                self._install_archive(available_version)
            else:
                self._install_file(available_version)

            if available_version.endswith(EXECUTABLE_EXTENSIONS) or "." not in package:
                self._make_executable(self.local_dir / available_version)
            versioned[package] = available_version
            updated.append(package)

        skipped_swaps.extend(self._swap(versioned, updated))

        if updated:
            self._persist(state, versioned)

    @staticmethod
    def _is_forced(force: Force, package: str) -> bool:
        if isinstance(force, bool):
            return force
        return package in force

    def _abort_major_version_change(
        self, package: str, current_version: str, available_version: str
    ) -> None:
        logger.warning(
            f"Major version number of package {package} has changed ({current_version} -> "
            f"{available_version}), which means that it requires manual operations before update."
        )
        logger.warning(
            "Please check the section concerning this update in the manual update help: "
            f"{self.repository}/{UPDATE_HELP_FILENAME}"
        )
        logger.warning(
            f"Then force package update with \"update --release {self.config.release} -f {package}\" "
            f"(or \"update --release {self.config.release} -f -a\" to force update of all packages)."
        )
        raise SyncAborted(
            SyncError.MAJOR_VERSION_CHANGE,
            f"{package}: {current_version} -> {available_version}",
        )

    def _fetch_release_packages(self) -> dict[str, str]:
        package_list = self.local_dir / PACKAGE_LIST_FILENAME
        result = self.downloader.download(
            f"{self.repository}/{PACKAGE_LIST_FILENAME}", package_list
        )
        if not result:
            raise SyncAborted(
                SyncError.MANIFEST_DOWNLOAD_FAILED,
                f"Unable to download package list (HTTP status: {result.status})",
            )
        try:
            manifest = parse_manifest(package_list.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise SyncAborted(
                SyncError.MANIFEST_UNREADABLE,
                f"Unable to read downloaded package list ({e})",
            ) from e
        finally:
            package_list.unlink(missing_ok=True)

        if self.config.release not in manifest:
            raise SyncAborted(
                SyncError.RELEASE_NOT_FOUND,
                f'Unable to find any package for release "{self.config.release}"',
            )
        return manifest[self.config.release]

    def _download_package(self, file_name: str, dest: Path) -> None:
        result = self.downloader.download(f"{self.repository}/{file_name}", dest)
        if not result:
            raise SyncAborted(
                SyncError.PACKAGE_DOWNLOAD_FAILED,
                f'Unable to download package "{file_name}" (HTTP status: {result.status})',
            )

    def _install_archive(self, version: str) -> None:
        archive = self.local_dir / f"{version}{ZIP_EXTENSION}"
        self._download_package(archive.name, archive)
        target = self.local_dir / version
        try:
            extract_zip(archive, target)
        except ExtractionError as e:
            shutil.rmtree(target, ignore_errors=True)
            raise SyncAborted(
                SyncError.PACKAGE_EXTRACTION_FAILED,
                f'Unable to unzip package "{archive.name}" ({e})',
            ) from e
        finally:
            archive.unlink(missing_ok=True)

    def _install_file(self, version: str) -> None:
        tmp_file = self.local_dir / f"{version}{TEMP_DOWNLOAD_EXTENSION}"
        self._download_package(version, tmp_file)
        try:
            os.replace(tmp_file, self.local_dir / version)
        except OSError as e:
            tmp_file.unlink(missing_ok=True)
            raise SyncAborted(
                SyncError.PACKAGE_EXTRACTION_FAILED,
                f'Unable to rename package "{version}" ({e})',
            ) from e

    def _swap(self, versioned: dict[str, str], updated: list[str]) -> list[str]:
        """
        Point the current name of every updated package at its new version.

        :return: Packages whose current name was left at the previous version
                 because it is in use
        """
        skipped: list[str] = []
        for package in updated:
            try:
                swapped = swap_current_artifact(
                    self.local_dir / package,
                    self.local_dir / versioned[package],
                    self.config.use_symlinks,
                )
            except SwapError as e:
                raise SyncAborted(SyncError.SWAP_FAILED, str(e)) from e
            if not swapped:
                skipped.append(package)
        return skipped

    @staticmethod
    def _make_executable(path: Path) -> None:
        try:
            os.chmod(path, 0o755)
        except OSError as e:
            logger.warning(f'Unable to set execute permission on "{path}" ({e})')

    def _persist(self, state: InstalledState, versioned: dict[str, str]) -> None:
        state.merge(versioned)
        try:
            write_installed(self.update_info_file, state)
        except StateWriteError as e:
            raise SyncAborted(SyncError.STATE_WRITE_FAILED, str(e)) from e
