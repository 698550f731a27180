from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from loguru import logger

from updater.models.results import EngineError, InstallResult
from updater.models.settings import UpdaterConfig
from updater.utils.constants import (
    ENGINE_BASE_DIRECTORY,
    ENGINE_LOCK_FILENAME,
    ENGINE_OPTIONAL_FILE,
    SPRING_DEV_BRANCH,
    SPRING_FALLBACK_BRANCH,
)
from updater.utils.downloader import Downloader
from updater.utils.engine_availability import EngineAvailability, resolve_branch
from updater.utils.engine_files import required_files
from updater.utils.exception import EngineInstallAborted, IncompleteInstallation
from updater.utils.lock import LockStatus, MutualExclusionLock
from updater.utils.sevenzip.wrapper import SevenZipInterface


@dataclass(frozen=True)
class EngineDirCheck:
    """Completeness of an engine installation directory."""

    path: Optional[Path]
    missing: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return self.path is not None and not self.missing


class EngineInstaller:
    """
    Installs engine versions under ``<spring_dir>/<version>-<arch>``.

    An installation is complete when its base directory and every required file
    for the version and platform exist. Installing an already complete version is
    a no-op which does not touch the network.
    """

    def __init__(
        self,
        config: UpdaterConfig,
        downloader: Optional[Downloader] = None,
        archiver: Optional[SevenZipInterface] = None,
    ) -> None:
        self.config = config
        self.downloader = downloader or Downloader(timeout=config.http_timeout)
        self.archiver = archiver or SevenZipInterface(config.sevenzip_executable)
        self.availability = EngineAvailability(config, self.downloader)

    @property
    def windows(self) -> bool:
        return self.config.arch.startswith("win")

    def engine_dir(self, version: str) -> Optional[Path]:
        if not self.config.spring_dir:
            logger.error(
                f"Unable to get Spring directory for version {version}, no base Spring directory specified!"
            )
            return None
        return Path(self.config.spring_dir) / f"{version}-{self.config.arch}"

    def required_files(self, version: str) -> list[str]:
        return required_files(version, self.windows)

    def check_engine_dir(self, version: str) -> EngineDirCheck:
        """
        Check the installation of version for completeness.

        :return: EngineDirCheck whose missing list names the base directory if
                 absent, else every required file not present
        """
        engine_dir = self.engine_dir(version)
        if engine_dir is None:
            return EngineDirCheck(None)
        if not (engine_dir / ENGINE_BASE_DIRECTORY).is_dir():
            return EngineDirCheck(None, [ENGINE_BASE_DIRECTORY])
        missing = [
            file_name
            for file_name in self.required_files(version)
            if file_name != ENGINE_OPTIONAL_FILE and not (engine_dir / file_name).is_file()
        ]
        if missing:
            return EngineDirCheck(None, missing)
        return EngineDirCheck(engine_dir)

    def lock(self, version: str) -> Optional[MutualExclusionLock]:
        engine_dir = self.engine_dir(version)
        if engine_dir is None:
            return None
        return MutualExclusionLock(engine_dir, ENGINE_LOCK_FILENAME)

    def is_engine_setup_in_progress(self, version: str) -> bool:
        lock = self.lock(version)
        if lock is None or not lock.path.parent.exists():
            return False
        return lock.is_locked()

    def install(self, version: str, branch: Optional[str] = None) -> InstallResult:
        """
        Install an engine version if it is not already installed.

        :param version: Engine version, must start with a digit
        :param branch: Buildbot branch, derived from the version when None
        :return: InstallResult, ok when the installation is complete
        """
        try:
            return self._install(version, branch or resolve_branch(version))
        except EngineInstallAborted as e:
            return self._aborted(version, e)

    @staticmethod
    def _aborted(version: str, e: EngineInstallAborted) -> InstallResult:
        if e.kind in (EngineError.NO_PACKAGE_FOR_ARCH, EngineError.ALREADY_RUNNING):
            logger.warning(e.detail)
        else:
            logger.error(e.detail)
        missing = e.missing if isinstance(e, IncompleteInstallation) else []
        return InstallResult(version, error=e.kind, detail=e.detail, missing_files=missing)

    def _install(self, version: str, branch: str) -> InstallResult:
        if not version[:1].isdigit():
            raise EngineInstallAborted(
                EngineError.INVALID_VERSION, f'Invalid Spring version "{version}"'
            )
        engine_dir = self.engine_dir(version)
        if engine_dir is None:
            raise EngineInstallAborted(
                EngineError.INVALID_VERSION, "No base Spring directory specified"
            )
        if self.check_engine_dir(version).complete:
            return InstallResult(version, already_installed=True)

        branch = self._resolve_available_branch(version, branch)

        if not engine_dir.exists():
            try:
                engine_dir.mkdir(parents=True)
            except OSError as e:
                raise EngineInstallAborted(
                    EngineError.DIRECTORY_ERROR,
                    f'Unable to create directory "{engine_dir}" ({e})',
                ) from e
            logger.info(f'Created new directory "{engine_dir}" for Spring installation')

        lock = MutualExclusionLock(engine_dir, ENGINE_LOCK_FILENAME)
        status = lock.acquire()
        if status is LockStatus.IO_ERROR:
            raise EngineInstallAborted(
                EngineError.DIRECTORY_ERROR,
                f'Unable to write SpringSetup lock file "{lock.path}"',
            )
        if status is LockStatus.BUSY:
            raise EngineInstallAborted(
                EngineError.ALREADY_RUNNING,
                "Another instance is already performing a Spring installation in same directory",
            )
        try:
            return self._install_unlocked(version, branch)
        finally:
            lock.release()

    def _resolve_available_branch(self, version: str, branch: str) -> str:
        availability = self.availability.check_availability(version, branch)
        if availability.available:
            return branch
        if branch == SPRING_DEV_BRANCH:
            fallback = self.availability.check_availability(
                version, SPRING_FALLBACK_BRANCH
            )
            if fallback.available:
                logger.info(
                    f"Spring {version} not found on {branch} branch, using {SPRING_FALLBACK_BRANCH} branch"
                )
                return SPRING_FALLBACK_BRANCH
        raise EngineInstallAborted(
            EngineError.VERSION_UNAVAILABLE,
            f"Spring {version} installation cancelled ({availability.detail})",
        )

    def install_unlocked(self, version: str, branch: str) -> InstallResult:
        """Install version from branch. The caller must hold the installation lock."""
        try:
            return self._install_unlocked(version, branch)
        except EngineInstallAborted as e:
            return self._aborted(version, e)

    def _install_unlocked(self, version: str, branch: str) -> InstallResult:
        engine_dir = self.engine_dir(version)
        if engine_dir is None:
            raise EngineInstallAborted(
                EngineError.INVALID_VERSION, "No base Spring directory specified"
            )
        if self.check_engine_dir(version).complete:
            return InstallResult(version, already_installed=True)

        logger.info(f'Installing Spring {version} into "{engine_dir}"...')

        info = self.availability.download_info(version, branch)
        files = self.required_files(version)

        archive = engine_dir / info.required_archive
        result = self.downloader.download(info.required_base_url + info.required_archive, archive)
        if not result:
            if result.not_found:
                raise EngineInstallAborted(
                    EngineError.NO_PACKAGE_FOR_ARCH,
                    f"No Spring {version} package available for architecture {self.config.arch}",
                )
            kind = (
                EngineError.ARCHIVE_WRITE_FAILED
                if result.local_failure
                else EngineError.ARCHIVE_DOWNLOAD_FAILED
            )
            raise EngineInstallAborted(
                kind,
                f'Unable to download Spring archive file "{info.required_archive}" from '
                f'"{info.required_base_url}" to "{engine_dir}" (HTTP status: {result.status})',
            )
        self._extract(archive, engine_dir, [ENGINE_BASE_DIRECTORY, *files])

        for optional_archive in info.optional_archives:
            archive = engine_dir / optional_archive
            result = self.downloader.download(
                info.optional_base_url + optional_archive, archive
            )
            if not result:
                if not result.not_found:
                    logger.error(
                        f'Unable to download Spring archive file "{optional_archive}" from '
                        f'"{info.optional_base_url}" to "{engine_dir}" (HTTP status: {result.status})'
                    )
                continue
            self._extract(archive, engine_dir, files)

        check = self.check_engine_dir(version)
        if check.complete:
            logger.success(f"Spring {version} installation complete.")
            return InstallResult(version)
        raise IncompleteInstallation(version, check.missing)

    def _extract(self, archive: Path, engine_dir: Path, files: list[str]) -> None:
        try:
            extracted = self.archiver.extract(archive, engine_dir, files)
        finally:
            archive.unlink(missing_ok=True)
        if not extracted:
            raise EngineInstallAborted(
                EngineError.EXTRACTION_FAILED,
                f'Unable to extract Spring archive "{archive}"',
            )
