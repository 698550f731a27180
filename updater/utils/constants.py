from enum import Enum


class EngineBranchType(str, Enum):
    RELEASE = "release"
    DEV = "dev"


# Buildbot and version pointer endpoints
SPRING_BUILDBOT_URL = "http://springrts.com/dl/buildbot/default"
SPRING_VERSION_URL = "http://planetspads.free.fr/spring/SpringVersion"
SPRING_BRANCHES = {
    EngineBranchType.RELEASE.value: "master",
    EngineBranchType.DEV.value: "develop",
}
SPRING_RELEASE_BRANCH = SPRING_BRANCHES[EngineBranchType.RELEASE.value]
SPRING_DEV_BRANCH = SPRING_BRANCHES[EngineBranchType.DEV.value]
# Development archives are sometimes relocated to this branch
SPRING_FALLBACK_BRANCH = "maintenance"

# Network
HTTP_TIMEOUT = 10
DOWNLOAD_CHUNK_SIZE = 131072  # 128KB

# Local install directory layout
PACKAGE_LIST_FILENAME = "packages.txt"
UPDATE_INFO_FILENAME = "updateInfo.txt"
UPDATE_HELP_FILENAME = "UPDATE"
UPDATER_LOCK_FILENAME = "SpadsUpdater.lock"
ENGINE_LOCK_FILENAME = "SpringSetup.lock"
ZIP_EXTENSION = ".zip"
TEMP_DOWNLOAD_EXTENSION = ".tmp"
TO_BE_DELETED_EXTENSION = ".toBeDeleted"
MAX_TO_BE_DELETED_INDEX = 100

# Lock polling
LOCK_MAX_RETRIES = 20
LOCK_RETRY_DELAY = 0.1

# Engine installation layout
ENGINE_BASE_DIRECTORY = "base"
# Only required by recent Windows builds, and not shipped by every archive
ENGINE_OPTIONAL_FILE = "libcurl.dll"

# Packages whose current name must never be overwritten while in use (Windows)
LOCKED_WHILE_RUNNING_EXTENSIONS = (".exe", ".dll")
EXECUTABLE_EXTENSIONS = (".pl", ".py")

UNKNOWN_VERSION = "_UNKNOWN_"
