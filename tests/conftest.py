from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from updater.models.settings import UpdaterConfig
from updater.utils.downloader import DownloadResult, Downloader, FetchResult

REPOSITORY = "http://repo.example.com/packages"
BUILDBOT = "http://buildbot.example.com/default"


class FakeDownloader(Downloader):
    """
    Downloader serving canned responses.

    ``files`` maps URLs to bytes written by download(), or to an int HTTP status
    for failures. ``pages`` maps URLs to text returned by fetch_text(), or to an
    int status. Unknown URLs answer 404. Every requested URL is recorded.
    """

    def __init__(
        self,
        files: Optional[dict[str, bytes | int]] = None,
        pages: Optional[dict[str, str | int]] = None,
    ) -> None:
        super().__init__(session=None, timeout=1)
        self.files = files or {}
        self.pages = pages or {}
        self.requests: list[str] = []

    def download(self, url: str, dest: str | Path) -> DownloadResult:
        self.requests.append(url)
        content = self.files.get(url, 404)
        if isinstance(content, int):
            return DownloadResult(False, content)
        Path(dest).write_bytes(content)
        return DownloadResult(True, 200)

    def fetch_text(self, url: str) -> FetchResult:
        self.requests.append(url)
        content = self.pages.get(url, 404)
        if isinstance(content, int):
            return FetchResult(False, content)
        return FetchResult(True, 200, content)


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., UpdaterConfig]:
    """Build an UpdaterConfig rooted in tmp_path, for a linux64 system with symlinks."""

    def _make(**overrides: Any) -> UpdaterConfig:
        local_dir = tmp_path / "install"
        local_dir.mkdir(exist_ok=True)
        values: dict[str, Any] = {
            "repository": REPOSITORY,
            "release": "stable",
            "packages": [],
            "local_dir": str(local_dir),
            "spring_dir": str(tmp_path / "spring"),
            "buildbot_url": BUILDBOT,
            "arch_name": "linux64",
            "supports_symlink": True,
        }
        values.update(overrides)
        return UpdaterConfig(**values)

    return _make
