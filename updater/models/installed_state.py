"""
Installed package state of a local install directory.

Persisted as ``updateInfo.txt``: a Unix timestamp line followed by one
``name:version`` line per installed package.
"""

from dataclasses import dataclass, field
from typing import Optional

PackageManifest = dict[str, dict[str, str]]


@dataclass
class InstalledState:
    packages: dict[str, str] = field(default_factory=dict)
    timestamp: Optional[int] = None

    def get(self, package: str) -> Optional[str]:
        return self.packages.get(package)

    def merge(self, updated: dict[str, str]) -> None:
        self.packages.update(updated)

    def __len__(self) -> int:
        return len(self.packages)
