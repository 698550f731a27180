import os
from pathlib import Path
from typing import Any, Optional

import msgspec
from loguru import logger

from updater.utils.app_info import AppInfo
from updater.utils.constants import (
    HTTP_TIMEOUT,
    SPRING_BUILDBOT_URL,
    SPRING_VERSION_URL,
)
from updater.utils.system_info import SystemInfo

SETTINGS_ENV_VAR = "AUTOHOST_UPDATER_SETTINGS"


class UpdaterConfig(msgspec.Struct, frozen=True, kw_only=True):
    """
    Process-wide configuration, resolved once at startup and passed explicitly
    to the updater components.
    """

    repository: str = ""
    release: str = "stable"
    packages: list[str] = msgspec.field(default_factory=list)
    local_dir: str = "."
    spring_dir: Optional[str] = None
    buildbot_url: str = SPRING_BUILDBOT_URL
    version_url: str = SPRING_VERSION_URL
    http_timeout: float = HTTP_TIMEOUT
    arch_name: Optional[str] = None
    supports_symlink: Optional[bool] = None
    sevenzip_path: Optional[str] = None

    @property
    def local_path(self) -> Path:
        return Path(self.local_dir)

    @property
    def arch(self) -> str:
        return self.arch_name or SystemInfo().arch_name

    @property
    def use_symlinks(self) -> bool:
        if self.supports_symlink is None:
            return SystemInfo().supports_symlink
        return self.supports_symlink

    @property
    def sevenzip_executable(self) -> Path:
        if self.sevenzip_path:
            return Path(self.sevenzip_path)
        return self.local_path / ("7za.exe" if SystemInfo().is_windows else "7za")


def default_settings_file() -> Path:
    env_path = os.getenv(SETTINGS_ENV_VAR)
    if env_path:
        return Path(env_path)
    return AppInfo().app_settings_file


def load_config(path: Optional[str | Path] = None, **overrides: Any) -> UpdaterConfig:
    """
    Build the configuration from a JSON settings file and explicit overrides.

    Overrides whose value is None are ignored. A missing settings file is not an
    error; defaults and overrides are used. Architecture and symlink support
    default to the values detected for the running system.

    :param path: JSON settings file, defaults to the application settings file
    :param overrides: Field values taking precedence over the file
    :raises msgspec.ValidationError: if the file contains invalid values
    """
    settings_file = Path(path) if path is not None else default_settings_file()
    data: dict[str, Any] = {}
    if settings_file.is_file():
        logger.debug(f"Loading settings from {settings_file}")
        data = msgspec.json.decode(settings_file.read_bytes(), type=dict[str, Any])
    else:
        logger.debug(f"No settings file at {settings_file}, using defaults")

    data.update({key: value for key, value in overrides.items() if value is not None})
    config = msgspec.convert(data, type=UpdaterConfig)

    system_info = SystemInfo()
    return msgspec.structs.replace(
        config,
        repository=config.repository.rstrip("/"),
        arch_name=config.arch_name or system_info.arch_name,
        supports_symlink=(
            system_info.supports_symlink
            if config.supports_symlink is None
            else config.supports_symlink
        ),
    )
