"""
HTTP downloads that never leave partial files behind.

Bodies are streamed straight to the destination file. Any failure deletes the
destination and reports the best known status: a real HTTP status, or one of the
negative sentinels below for local and transport failures.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests
from loguru import logger

from updater.utils.constants import DOWNLOAD_CHUNK_SIZE, HTTP_TIMEOUT

try:
    import ssl  # noqa: F401

    HAS_TLS = True
except ImportError:
    HAS_TLS = False

STATUS_OPEN_FAILED = -1
STATUS_CLOSE_FAILED = -2
STATUS_TRANSPORT_ERROR = -3
STATUS_BAD_URL = -4
STATUS_NO_TLS = -5
STATUS_WRITE_FAILED = -6


@dataclass(frozen=True)
class DownloadResult:
    ok: bool
    status: int

    @property
    def not_found(self) -> bool:
        return self.status == 404

    @property
    def local_failure(self) -> bool:
        return self.status in (
            STATUS_OPEN_FAILED,
            STATUS_WRITE_FAILED,
            STATUS_CLOSE_FAILED,
        )

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class FetchResult:
    ok: bool
    status: int
    text: str = ""

    def __bool__(self) -> bool:
        return self.ok


def _remove_file(path: Path) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f'Unable to remove partial download "{path}": {e}')


class Downloader:
    """
    Fetches URLs with a fixed per-request timeout.

    :param session: requests session to use, a new one is created if None
    :param timeout: per-request timeout in seconds
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = HTTP_TIMEOUT,
        chunk_size: int = DOWNLOAD_CHUNK_SIZE,
    ) -> None:
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.chunk_size = chunk_size

    @staticmethod
    def check_url(url: str) -> int:
        """
        Validate the URL scheme.

        :return: 0 if the URL can be fetched, STATUS_BAD_URL or STATUS_NO_TLS otherwise
        """
        lowered = url.lower()
        if lowered.startswith("http://"):
            return 0
        if lowered.startswith("https://"):
            if not HAS_TLS:
                logger.error(
                    f'Unable to fetch "{url}", the ssl module is required for HTTPS support'
                )
                return STATUS_NO_TLS
            return 0
        logger.error(f'Unable to fetch "{url}", unknown URL type')
        return STATUS_BAD_URL

    def download(self, url: str, dest: str | Path) -> DownloadResult:
        """
        Download url into dest, streaming the body as it arrives.

        :param url: http(s) URL to download
        :param dest: Destination file, created or truncated
        :return: DownloadResult; on failure dest does not exist afterwards. An
                 empty body counts as a failure.
        """
        dest = Path(dest)
        url_status = self.check_url(url)
        if url_status:
            return DownloadResult(False, url_status)

        logger.debug(f'Downloading file from "{url}" to "{dest}"...')
        try:
            fh = open(dest, "wb")
        except OSError as e:
            logger.error(f'Unable to write file "{dest}" for download: {e}')
            return DownloadResult(False, STATUS_OPEN_FAILED)

        status = STATUS_TRANSPORT_ERROR
        transport_ok = False
        try:
            response = self.session.get(url, stream=True, timeout=self.timeout)
            try:
                status = response.status_code
                if response.ok:
                    for chunk in response.iter_content(chunk_size=self.chunk_size):
                        if chunk:
                            fh.write(chunk)
                    transport_ok = True
            finally:
                response.close()
        except requests.RequestException as e:
            logger.debug(f'Transport error while downloading "{url}": {e}')
        except OSError as e:
            logger.error(f'Error while writing file "{dest}": {e}')
            status = STATUS_WRITE_FAILED

        try:
            fh.close()
        except OSError as e:
            logger.error(f'Error while closing file "{dest}" after download: {e}')
            _remove_file(dest)
            return DownloadResult(False, STATUS_CLOSE_FAILED)

        if not transport_ok or not dest.is_file() or dest.stat().st_size == 0:
            logger.debug(
                f'Failed to download file from "{url}" to "{dest}" (HTTP status: {status})'
            )
            _remove_file(dest)
            return DownloadResult(False, status)

        logger.debug(
            f'File downloaded from "{url}" to "{dest}" (HTTP status: {status})'
        )
        return DownloadResult(True, status)

    def fetch_text(self, url: str) -> FetchResult:
        """
        GET a small text resource (index page, version pointer) into memory.

        :return: FetchResult with the body when the request succeeded
        """
        url_status = self.check_url(url)
        if url_status:
            return FetchResult(False, url_status)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.debug(f'Transport error while fetching "{url}": {e}')
            return FetchResult(False, STATUS_TRANSPORT_ERROR)
        if not response.ok:
            return FetchResult(False, response.status_code)
        return FetchResult(True, response.status_code, response.text)
