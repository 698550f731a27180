"""
Outcome types of the two entry points: package sync and engine installation.

Every failure kind keeps its own stable integer value so that scripts and alerts
keyed on the process exit code can tell them apart.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class SyncError(Enum):
    """Reasons a package sync stopped early."""

    ALREADY_RUNNING = -1  # Another sync holds the install directory lock
    LOCK_FILE_UNWRITABLE = -2
    STATE_UNREADABLE = -3
    MANIFEST_DOWNLOAD_FAILED = -4
    MANIFEST_UNREADABLE = -5
    RELEASE_NOT_FOUND = -6
    MAJOR_VERSION_CHANGE = -7  # Manual operations required, see UPDATE help
    PACKAGE_DOWNLOAD_FAILED = -8
    PACKAGE_EXTRACTION_FAILED = -9
    SWAP_FAILED = -10  # Filesystem may be inconsistent with recorded state
    STATE_WRITE_FAILED = -11  # Files updated but state not recorded
    INVALID_CONFIGURATION = -12  # No repository, or unreadable settings


class EngineError(Enum):
    """Reasons an engine installation stopped early."""

    INVALID_VERSION = -1
    DIRECTORY_ERROR = -2
    ALREADY_RUNNING = -3
    VERSION_UNAVAILABLE = -10
    NO_PACKAGE_FOR_ARCH = -11
    ARCHIVE_DOWNLOAD_FAILED = -12
    EXTRACTION_FAILED = -13
    INCOMPLETE_INSTALLATION = -14
    ARCHIVE_WRITE_FAILED = -15


class Availability(Enum):
    AVAILABLE = 1
    VERSION_UNAVAILABLE = 0
    NOT_FOUND_FOR_ARCH = -1
    ARCHIVE_MISSING = -2
    CHECK_FAILED = -3


@dataclass(frozen=True)
class SyncResult:
    updated: list[str] = field(default_factory=list)
    error: Optional[SyncError] = None
    detail: str = ""
    # Updated packages whose current name still points at the previous version
    skipped_swaps: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def updated_count(self) -> int:
        return len(self.updated)

    @property
    def exit_code(self) -> int:
        """Number of updated packages on success, the error value otherwise."""
        return self.error.value if self.error is not None else self.updated_count


@dataclass(frozen=True)
class InstallResult:
    version: str
    error: Optional[EngineError] = None
    detail: str = ""
    already_installed: bool = False
    missing_files: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def exit_code(self) -> int:
        return self.error.value if self.error is not None else 0


@dataclass(frozen=True)
class AvailabilityResult:
    status: Availability
    detail: str = ""

    @property
    def available(self) -> bool:
        return self.status is Availability.AVAILABLE
