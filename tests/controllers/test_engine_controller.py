from pathlib import Path
from typing import Callable, Optional, Sequence
from unittest.mock import patch

import pytest

from conftest import BUILDBOT, FakeDownloader
from updater.controllers.engine_controller import EngineInstaller
from updater.models.results import EngineError
from updater.models.settings import UpdaterConfig
from updater.utils.lock import MutualExclusionLock
from updater.utils.sevenzip.wrapper import SevenZipInterface

VERSION = "104.0"
REQUIRED_ARCHIVE = "spring_104.0_minimal-portable-linux64-static.7z"
REQUIRED_URL = f"{BUILDBOT}/master/104.0/linux64/{REQUIRED_ARCHIVE}"
LINUX_FILES = ["libunitsync.so", "spring-dedicated", "spring-headless"]


class FakeArchiver(SevenZipInterface):
    """Creates the requested entries an archive is declared to contain."""

    def __init__(self, contents: Optional[dict[str, list[str]]] = None) -> None:
        super().__init__("7za")
        self.contents = contents or {}
        self.calls: list[tuple[str, list[str]]] = []

    def extract(
        self,
        archive: str | Path,
        dest_dir: str | Path,
        files_to_extract: Sequence[str] = (),
    ) -> bool:
        archive = Path(archive)
        assert archive.is_file()
        self.calls.append((archive.name, list(files_to_extract)))
        if archive.name not in self.contents:
            return False
        for entry in self.contents[archive.name]:
            if entry not in files_to_extract:
                continue
            if entry == "base":
                (Path(dest_dir) / entry).mkdir(exist_ok=True)
            else:
                (Path(dest_dir) / entry).write_text(entry)
        return True


def available_pages(branch: str = "master", version: str = VERSION) -> dict[str, str | int]:
    prefix = "" if branch == "master" else f"{{{branch}}}"
    archive = f"spring_{prefix}{version}_minimal-portable-linux64-static.7z"
    return {
        f"{BUILDBOT}/{branch}/": f'<a href="{version}/">{version}/</a>',
        f"{BUILDBOT}/{branch}/{version}/linux64/": f'<a href="x">{archive}</a>',
    }


def make_install(engine_dir: Path, files: list[str]) -> None:
    (engine_dir / "base").mkdir(parents=True)
    for file_name in files:
        (engine_dir / file_name).write_text(file_name)


@pytest.fixture
def config(make_config: Callable[..., UpdaterConfig]) -> UpdaterConfig:
    return make_config()


def test_engine_dir(config: UpdaterConfig) -> None:
    installer = EngineInstaller(config, FakeDownloader(), FakeArchiver())

    assert installer.engine_dir(VERSION) == Path(config.spring_dir) / "104.0-linux64"


def test_engine_dir_without_spring_dir(make_config: Callable[..., UpdaterConfig]) -> None:
    installer = EngineInstaller(make_config(spring_dir=None), FakeDownloader(), FakeArchiver())

    assert installer.engine_dir(VERSION) is None
    assert not installer.check_engine_dir(VERSION).complete
    assert installer.install(VERSION).error is EngineError.INVALID_VERSION


def test_install_unlocked_without_spring_dir(
    make_config: Callable[..., UpdaterConfig],
) -> None:
    downloader = FakeDownloader()
    installer = EngineInstaller(make_config(spring_dir=None), downloader, FakeArchiver())

    result = installer.install_unlocked(VERSION, "master")

    assert not result.ok
    assert result.error is EngineError.INVALID_VERSION
    assert downloader.requests == []


def test_check_engine_dir_reports_missing_file(config: UpdaterConfig) -> None:
    installer = EngineInstaller(config, FakeDownloader(), FakeArchiver())
    make_install(installer.engine_dir(VERSION), ["libunitsync.so", "spring-headless"])

    check = installer.check_engine_dir(VERSION)

    assert not check.complete
    assert check.missing == ["spring-dedicated"]


def test_check_engine_dir_missing_base(config: UpdaterConfig) -> None:
    installer = EngineInstaller(config, FakeDownloader(), FakeArchiver())

    assert installer.check_engine_dir(VERSION).missing == ["base"]


def test_check_engine_dir_complete(config: UpdaterConfig) -> None:
    installer = EngineInstaller(config, FakeDownloader(), FakeArchiver())
    make_install(installer.engine_dir(VERSION), LINUX_FILES)

    check = installer.check_engine_dir(VERSION)

    assert check.complete
    assert check.path == installer.engine_dir(VERSION)


def test_check_engine_dir_libcurl_exempt(make_config: Callable[..., UpdaterConfig]) -> None:
    version = "105.0"
    installer = EngineInstaller(
        make_config(arch_name="win64"), FakeDownloader(), FakeArchiver()
    )
    files = installer.required_files(version)
    assert "libcurl.dll" in files
    make_install(
        installer.engine_dir(version), [f for f in files if f != "libcurl.dll"]
    )

    assert installer.check_engine_dir(version).complete


def test_install_complete_is_noop(config: UpdaterConfig) -> None:
    downloader = FakeDownloader()
    archiver = FakeArchiver()
    installer = EngineInstaller(config, downloader, archiver)
    make_install(installer.engine_dir(VERSION), LINUX_FILES)

    result = installer.install(VERSION)

    assert result.ok
    assert result.already_installed
    assert result.exit_code == 0
    assert downloader.requests == []
    assert archiver.calls == []


@pytest.mark.parametrize("version", ["", "v104.0", "latest"])
def test_install_invalid_version(config: UpdaterConfig, version: str) -> None:
    downloader = FakeDownloader()

    result = EngineInstaller(config, downloader, FakeArchiver()).install(version)

    assert result.error is EngineError.INVALID_VERSION
    assert result.exit_code == -1
    assert downloader.requests == []


def test_install(config: UpdaterConfig) -> None:
    downloader = FakeDownloader(
        files={REQUIRED_URL: b"7z"},
        pages=available_pages(),
    )
    archiver = FakeArchiver({REQUIRED_ARCHIVE: ["base", *LINUX_FILES]})
    installer = EngineInstaller(config, downloader, archiver)

    result = installer.install(VERSION)

    assert result.ok
    assert not result.already_installed
    assert archiver.calls == [(REQUIRED_ARCHIVE, ["base", *LINUX_FILES])]
    engine_dir = installer.engine_dir(VERSION)
    assert installer.check_engine_dir(VERSION).complete
    assert not (engine_dir / REQUIRED_ARCHIVE).exists()
    assert (engine_dir / "SpringSetup.lock").is_file()
    assert not installer.is_engine_setup_in_progress(VERSION)


def test_install_with_optional_archives(config: UpdaterConfig) -> None:
    dedicated = "104.0_spring-dedicated-linux64-static.7z"
    headless = "104.0_spring-headless-linux64-static.7z"
    base_url = f"{BUILDBOT}/master/104.0/linux64/"
    downloader = FakeDownloader(
        files={
            REQUIRED_URL: b"7z",
            base_url + dedicated: b"7z",
            base_url + headless: 503,
        },
        pages=available_pages(),
    )
    archiver = FakeArchiver(
        {
            REQUIRED_ARCHIVE: ["base", "libunitsync.so", "spring-headless"],
            dedicated: ["spring-dedicated"],
        }
    )
    installer = EngineInstaller(config, downloader, archiver)

    result = installer.install(VERSION)

    assert result.ok
    assert [call[0] for call in archiver.calls] == [REQUIRED_ARCHIVE, dedicated]
    assert archiver.calls[1][1] == LINUX_FILES
    assert not (installer.engine_dir(VERSION) / dedicated).exists()


def test_install_incomplete(config: UpdaterConfig) -> None:
    downloader = FakeDownloader(files={REQUIRED_URL: b"7z"}, pages=available_pages())
    archiver = FakeArchiver({REQUIRED_ARCHIVE: ["base", "libunitsync.so"]})

    result = EngineInstaller(config, downloader, archiver).install(VERSION)

    assert result.error is EngineError.INCOMPLETE_INSTALLATION
    assert result.exit_code == -14
    assert result.missing_files == ["spring-dedicated", "spring-headless"]


def test_install_version_unavailable(config: UpdaterConfig) -> None:
    downloader = FakeDownloader(pages={f"{BUILDBOT}/master/": '<a href="103.0/">103.0/</a>'})

    result = EngineInstaller(config, downloader, FakeArchiver()).install(VERSION)

    assert result.error is EngineError.VERSION_UNAVAILABLE
    assert "version unavailable for download" in result.detail
    assert not Path(config.spring_dir, "104.0-linux64").exists()


def test_install_dev_version_falls_back_to_maintenance(config: UpdaterConfig) -> None:
    version = "105.1.1-2511-g747f18b"
    archive = f"spring_{{maintenance}}{version}_minimal-portable-linux64-static.7z"
    downloader = FakeDownloader(
        files={f"{BUILDBOT}/maintenance/{version}/linux64/{archive}": b"7z"},
        pages={
            f"{BUILDBOT}/develop/": '<a href="105.1.1-1/">105.1.1-1/</a>',
            **available_pages("maintenance", version),
        },
    )
    archiver = FakeArchiver({archive: ["base", *LINUX_FILES]})

    result = EngineInstaller(config, downloader, archiver).install(version)

    assert result.ok
    assert archiver.calls[0][0] == archive


def test_install_no_package_for_arch(config: UpdaterConfig) -> None:
    downloader = FakeDownloader(pages=available_pages())

    result = EngineInstaller(config, downloader, FakeArchiver()).install(VERSION)

    assert result.error is EngineError.NO_PACKAGE_FOR_ARCH
    assert result.exit_code == -11


def test_install_archive_download_failure(config: UpdaterConfig) -> None:
    downloader = FakeDownloader(files={REQUIRED_URL: 500}, pages=available_pages())

    result = EngineInstaller(config, downloader, FakeArchiver()).install(VERSION)

    assert result.error is EngineError.ARCHIVE_DOWNLOAD_FAILED


def test_install_archive_write_failure(config: UpdaterConfig) -> None:
    downloader = FakeDownloader(files={REQUIRED_URL: -1}, pages=available_pages())

    result = EngineInstaller(config, downloader, FakeArchiver()).install(VERSION)

    assert result.error is EngineError.ARCHIVE_WRITE_FAILED


def test_install_extraction_failure_removes_archive(config: UpdaterConfig) -> None:
    downloader = FakeDownloader(files={REQUIRED_URL: b"7z"}, pages=available_pages())
    installer = EngineInstaller(config, downloader, FakeArchiver())

    result = installer.install(VERSION)

    assert result.error is EngineError.EXTRACTION_FAILED
    assert not (installer.engine_dir(VERSION) / REQUIRED_ARCHIVE).exists()
    assert not installer.is_engine_setup_in_progress(VERSION)


def test_install_already_running(config: UpdaterConfig) -> None:
    downloader = FakeDownloader(files={REQUIRED_URL: b"7z"}, pages=available_pages())
    installer = EngineInstaller(config, downloader, FakeArchiver())
    engine_dir = installer.engine_dir(VERSION)
    engine_dir.mkdir(parents=True)
    holder = MutualExclusionLock(engine_dir, "SpringSetup.lock")
    holder.acquire()

    try:
        assert installer.is_engine_setup_in_progress(VERSION)
        with patch("updater.utils.lock.time.sleep"):
            result = installer.install(VERSION)
    finally:
        holder.release()

    assert result.error is EngineError.ALREADY_RUNNING
    assert REQUIRED_URL not in downloader.requests


def test_install_directory_error(make_config: Callable[..., UpdaterConfig], tmp_path: Path) -> None:
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("")
    config = make_config(spring_dir=str(blocker))
    downloader = FakeDownloader(pages=available_pages())

    result = EngineInstaller(config, downloader, FakeArchiver()).install(VERSION)

    assert result.error is EngineError.DIRECTORY_ERROR
