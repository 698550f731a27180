import platform
import sys
from enum import Enum, auto, unique


class SystemInfo:
    """
    A singleton class that provides information about the system's operating system and architecture.

    The architecture tag (``win32``, ``win64``, ``linux32``, ``linux64``) selects engine
    archives and names engine installation directories. Whether native symbolic links
    are used for package swaps is resolved here once as well.

    Examples:
        >>> info = SystemInfo()
        >>> print(info.arch_name)
        >>> print(info.supports_symlink)
    """

    _instance = None  # type: SystemInfo | None
    _operating_system = None  # type: SystemInfo.OperatingSystem | None

    @unique
    class OperatingSystem(Enum):
        """
        An enumeration representing the possible operating systems.

        Attributes:
            WINDOWS: Represents the Windows OS.
            LINUX: Represents the Linux OS.
            MACOS: Represents the macOS.
        """

        WINDOWS = auto()
        LINUX = auto()
        MACOS = auto()

    def __new__(cls) -> "SystemInfo":
        """
        Create a new instance or return the existing singleton instance of the `SystemInfo` class.
        """
        if not cls._instance:
            cls._instance = super(SystemInfo, cls).__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """
        Initialize the `SystemInfo` instance by detecting the operating system and pointer width.
        """
        if hasattr(self, "_is_initialized") and self._is_initialized:
            return

        if platform.system() in ["Windows"]:
            self._operating_system = SystemInfo.OperatingSystem.WINDOWS
        elif platform.system() in ["Linux"]:
            self._operating_system = SystemInfo.OperatingSystem.LINUX
        elif platform.system() in ["Darwin"]:
            self._operating_system = SystemInfo.OperatingSystem.MACOS
        else:
            raise UnsupportedOperatingSystemError(
                f"Unsupported operating system detected: {platform.system()}."
            )

        self._pointer_width = 64 if sys.maxsize > 2**32 else 32

        self._is_initialized: bool = True

    @property
    def operating_system(self) -> OperatingSystem:
        """
        Get the detected operating system.

        Returns:
            OperatingSystem: The detected operating system.
        """
        assert self._operating_system is not None
        return self._operating_system

    @property
    def is_windows(self) -> bool:
        return self._operating_system == SystemInfo.OperatingSystem.WINDOWS

    @property
    def arch_name(self) -> str:
        """
        Get the architecture tag used by the engine buildbot.

        Returns:
            str: ``win`` or ``linux`` followed by the pointer width.
        """
        return ("win" if self.is_windows else "linux") + str(self._pointer_width)

    @property
    def supports_symlink(self) -> bool:
        """
        Whether package swaps use native symbolic links.

        Windows installs copy the versioned artifact instead.
        """
        return not self.is_windows


class UnsupportedOperatingSystemError(Exception):
    """
    Exception raised when an unsupported operating system is detected.
    """

    pass
