"""
Engine version lookups against the buildbot.
"""

import re
from typing import Optional

from loguru import logger

from updater.models.results import Availability, AvailabilityResult
from updater.models.settings import UpdaterConfig
from updater.utils.constants import (
    SPRING_BRANCHES,
    SPRING_DEV_BRANCH,
    SPRING_RELEASE_BRANCH,
    EngineBranchType,
)
from updater.utils.downloader import Downloader
from updater.utils.engine_files import EngineDownloadInfo, download_info
from updater.utils.version import compare_versions

RELEASE_VERSION_PATTERN = re.compile(r"^\d+\.\d+$")
DIRECTORY_LINK_PATTERN = re.compile(r'href="([^"]+)/">\1/')
WIKI_VERSION_PATTERN = re.compile(r'id="mw-content-text".*>([^<>]+)\n')


def version_type(version: str) -> EngineBranchType:
    if RELEASE_VERSION_PATTERN.match(version):
        return EngineBranchType.RELEASE
    return EngineBranchType.DEV


def resolve_branch(version: str) -> str:
    """
    Map a version to the buildbot branch it is published on.

    Plain ``major.minor`` versions are releases, anything else is a development build.
    """
    return SPRING_BRANCHES[version_type(version).value]


class EngineAvailability:
    """
    Answers whether an engine version can be installed for the configured
    architecture, and which versions the buildbot offers.
    """

    def __init__(self, config: UpdaterConfig, downloader: Downloader) -> None:
        self.config = config
        self.downloader = downloader
        self.buildbot_url = config.buildbot_url.rstrip("/")

    @property
    def windows(self) -> bool:
        return self.config.arch.startswith("win")

    def download_info(self, version: str, branch: str) -> EngineDownloadInfo:
        return download_info(
            self.buildbot_url, version, branch, self.config.arch, self.windows
        )

    def list_available(self, branch_or_alias: str) -> list[str]:
        """
        List the versions published on a branch.

        :param branch_or_alias: Branch name, or "release"/"dev" alias
        :return: Version directory names, empty if the listing is unavailable
        """
        branch = SPRING_BRANCHES.get(branch_or_alias, branch_or_alias)
        result = self.downloader.fetch_text(f"{self.buildbot_url}/{branch}/")
        versions = DIRECTORY_LINK_PATTERN.findall(result.text) if result else []
        if not versions:
            logger.warning(f'Unable to get available Spring versions for branch "{branch}"')
        return versions

    def check_availability(
        self, version: str, branch: Optional[str] = None
    ) -> AvailabilityResult:
        """
        Check that version is published on branch and ships the required archive
        for the configured architecture.
        """
        branch = branch or resolve_branch(version)
        if version not in self.list_available(branch):
            return AvailabilityResult(
                Availability.VERSION_UNAVAILABLE, "version unavailable for download"
            )

        info = self.download_info(version, branch)
        result = self.downloader.fetch_text(info.required_base_url)
        if result:
            if f">{info.required_archive}<" in result.text:
                return AvailabilityResult(Availability.AVAILABLE)
            return AvailabilityResult(Availability.ARCHIVE_MISSING, "archive not found")
        if result.status == 404:
            return AvailabilityResult(
                Availability.NOT_FOUND_FOR_ARCH,
                "version unavailable for this architecture",
            )
        return AvailabilityResult(
            Availability.CHECK_FAILED,
            f"unable to check version availability, HTTP status:{result.status}",
        )

    def _latest_on_branch(self, branch: str) -> Optional[str]:
        """Read the LATEST_<arch> pointer of branch, stripping the {branch} prefix."""
        result = self.downloader.fetch_text(
            f"{self.buildbot_url}/{branch}/LATEST_{self.config.arch}"
        )
        if not result:
            return None
        content = result.text.strip()
        if branch == SPRING_RELEASE_BRANCH:
            return content or None
        prefix = f"{{{branch}}}"
        if content.startswith(prefix) and len(content) > len(prefix):
            return content[len(prefix) :]
        return None

    def _wiki_version(self, suffix: str) -> Optional[str]:
        result = self.downloader.fetch_text(f"{self.config.version_url}.{suffix}")
        match = WIKI_VERSION_PATTERN.search(result.text) if result else None
        return match.group(1) if match else None

    def resolve_release_version(self, release: str) -> Optional[str]:
        """
        Resolve a release name to an engine version.

        :param release: "stable", "testing", "unstable", or a branch name
        :return: The version, or None if it could not be determined
        """
        if release == "stable":
            stable = self._wiki_version("Stable")
            if stable is None:
                logger.warning(f"Unable to retrieve Spring version number for {release} release!")
            return stable

        if release == "testing":
            testing = self._wiki_version("Testing")
            if testing is None:
                logger.warning(f"Unable to retrieve Spring version number for {release} release!")
                return None
            latest = self._latest_on_branch(SPRING_RELEASE_BRANCH)
            if latest is None:
                logger.warning(
                    f"Unable to retrieve latest Spring version number on {SPRING_RELEASE_BRANCH} branch!"
                )
                return None
            comparison = compare_versions(testing, latest)
            if comparison is None:
                return testing if testing > latest else latest
            return testing if comparison > 0 else latest

        branch = SPRING_DEV_BRANCH if release == "unstable" else release
        latest = self._latest_on_branch(branch)
        if latest is None:
            logger.warning(f"Unable to retrieve latest Spring version number on {branch} branch!")
        return latest
