import pytest

from updater.utils.engine_files import download_info, required_files

BUILDBOT = "http://buildbot.example.com/default"


def test_required_files_linux() -> None:
    assert required_files("104.0", windows=False) == [
        "libunitsync.so",
        "spring-dedicated",
        "spring-headless",
    ]


@pytest.mark.parametrize(
    "version, extra",
    [
        ("91.0", ["mingwm10.dll", "DevIL.dll"]),
        ("94.1", ["pthreadGC2.dll", "DevIL.dll"]),
        ("98.0", ["DevIL.dll"]),
        ("104.0.1-1058-gabc", ["DevIL.dll"]),
        ("104.0.1-1100-gabc", ["DevIL.dll", "libcurl.dll"]),
        ("104.0.1-1398-gabc", ["libIL.dll", "libcurl.dll"]),
        ("105.0", ["libIL.dll", "libcurl.dll"]),
    ],
)
def test_required_files_windows(version: str, extra: list[str]) -> None:
    base = ["spring-dedicated.exe", "spring-headless.exe", "unitsync.dll", "zlib1.dll"]

    assert required_files(version, windows=True) == base + extra


def test_download_info_linux_release() -> None:
    info = download_info(BUILDBOT, "104.0", "master", "linux64", windows=False)

    assert info.required_base_url == f"{BUILDBOT}/master/104.0/linux64/"
    assert info.optional_base_url == f"{BUILDBOT}/master/104.0/linux64/"
    assert info.required_archive == "spring_104.0_minimal-portable-linux64-static.7z"
    assert info.optional_archives == (
        "104.0_spring-dedicated-linux64-static.7z",
        "104.0_spring-headless-linux64-static.7z",
    )


def test_download_info_dev_branch_prefix() -> None:
    version = "105.1.1-2511-g747f18b"
    info = download_info(BUILDBOT, version, "develop", "linux64", windows=False)

    assert info.required_base_url == f"{BUILDBOT}/develop/{version}/linux64/"
    assert info.required_archive == (
        f"spring_{{develop}}{version}_minimal-portable-linux64-static.7z"
    )
    assert info.optional_archives[0] == (
        f"{{develop}}{version}_spring-dedicated-linux64-static.7z"
    )


def test_download_info_windows() -> None:
    info = download_info(BUILDBOT, "104.0", "master", "win64", windows=True)

    assert info.required_archive == "spring_104.0_win64-minimal-portable.7z"
    assert info.optional_archives == (
        "104.0_spring-dedicated.7z",
        "104.0_spring-headless.7z",
    )


def test_download_info_old_windows_builds() -> None:
    info = download_info(BUILDBOT, "98.0", "master", "win32", windows=True)

    assert info.required_archive == "spring_98.0_minimal-portable.7z"
    assert info.required_base_url == f"{BUILDBOT}/master/98.0/win32/"


def test_download_info_unsplit_architectures() -> None:
    info = download_info(BUILDBOT, "91.0", "master", "linux64", windows=False)

    assert info.required_base_url == f"{BUILDBOT}/master/91.0/linux64/"
    assert info.optional_base_url == f"{BUILDBOT}/master/91.0/"

    info = download_info(BUILDBOT, "90.0", "master", "linux64", windows=False)

    assert info.required_base_url == f"{BUILDBOT}/master/90.0/"
