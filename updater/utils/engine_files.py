"""
Files and archives making up an engine installation, by platform and version.
"""

from dataclasses import dataclass

from updater.utils.constants import SPRING_RELEASE_BRANCH
from updater.utils.version import version_greater_than, version_lower_than


@dataclass(frozen=True)
class EngineDownloadInfo:
    required_base_url: str
    optional_base_url: str
    required_archive: str
    optional_archives: tuple[str, ...]


def required_files(version: str, windows: bool) -> list[str]:
    """
    List the files an installation of version needs besides the base directory.

    :param version: Engine version
    :param windows: Whether the Windows build is installed
    """
    if not windows:
        return ["libunitsync.so", "spring-dedicated", "spring-headless"]

    files = ["spring-dedicated.exe", "spring-headless.exe", "unitsync.dll", "zlib1.dll"]
    if version_lower_than(version, 92):
        files.append("mingwm10.dll")
    elif version_lower_than(version, 95):
        files.append("pthreadGC2.dll")
    if version_lower_than(version, "104.0.1-1398-"):
        files.append("DevIL.dll")
    else:
        files.append("libIL.dll")
    if version_greater_than(version, "104.0.1-1058-"):
        files.append("libcurl.dll")
    return files


def download_info(
    buildbot_url: str, version: str, branch: str, arch_name: str, windows: bool
) -> EngineDownloadInfo:
    """
    Compute archive names and buildbot URLs for version on branch.

    Archives of non-release branches embed the branch as ``{branch}version``.
    Builds older than 91 (required) and 92 (optional) were not split by architecture.
    """
    version_in_archives = (
        version if branch == SPRING_RELEASE_BRANCH else f"{{{branch}}}{version}"
    )
    if windows:
        arch_part = "" if version_lower_than(version, 102) else f"{arch_name}-"
        required_archive = (
            f"spring_{version_in_archives}_{arch_part}minimal-portable.7z"
        )
        optional_archives = (
            f"{version_in_archives}_spring-dedicated.7z",
            f"{version_in_archives}_spring-headless.7z",
        )
    else:
        required_archive = (
            f"spring_{version_in_archives}_minimal-portable-{arch_name}-static.7z"
        )
        optional_archives = (
            f"{version_in_archives}_spring-dedicated-{arch_name}-static.7z",
            f"{version_in_archives}_spring-headless-{arch_name}-static.7z",
        )

    base_url = f"{buildbot_url}/{branch}/{version}/"
    return EngineDownloadInfo(
        required_base_url=base_url
        + ("" if version_lower_than(version, 91) else f"{arch_name}/"),
        optional_base_url=base_url
        + ("" if version_lower_than(version, 92) else f"{arch_name}/"),
        required_archive=required_archive,
        optional_archives=optional_archives,
    )
