from updater.models.results import EngineError, SyncError


class UpdaterError(Exception):
    """Base exception for package sync and engine installation failures."""

    pass


class SyncAborted(UpdaterError):
    """Raised inside a package sync; carries the reason reported to the caller."""

    def __init__(self, kind: SyncError, detail: str = "") -> None:
        super().__init__(detail or kind.name)
        self.kind = kind
        self.detail = detail


class EngineInstallAborted(UpdaterError):
    """Raised inside an engine installation; carries the reason reported to the caller."""

    def __init__(self, kind: EngineError, detail: str = "") -> None:
        super().__init__(detail or kind.name)
        self.kind = kind
        self.detail = detail


class StateReadError(UpdaterError):
    """Raised when an existing installed state file cannot be read."""

    pass


class StateWriteError(UpdaterError):
    """Raised when the installed state file cannot be written."""

    pass


class ExtractionError(UpdaterError):
    """Raised when a package or engine archive cannot be extracted."""

    pass


class SwapError(UpdaterError):
    """
    Raised when the current name of a package cannot be pointed at its new
    versioned artifact.
    """

    pass


class IncompleteInstallation(EngineInstallAborted):
    """Raised when required engine files are still missing after extraction."""

    def __init__(self, version: str, missing: list[str]) -> None:
        super().__init__(
            EngineError.INCOMPLETE_INSTALLATION,
            f"Unable to install Spring version {version} (incomplete archives, "
            f"missing files: {','.join(missing)})",
        )
        self.missing = missing
