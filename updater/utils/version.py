"""
Engine version ordering.

Engine versions look like ``95``, ``95.1``, ``104.0`` or ``104.0.1-1058-g1b2c3d4``:
a dotted numeric prefix, optionally followed by ``-<commit count>-`` and a hash.
Parsing yields a structured value or ``None`` when the string has no numeric prefix.
"""

import re
from dataclasses import dataclass
from itertools import zip_longest
from typing import Optional

VERSION_PATTERN = re.compile(r"^(\d+(?:\.\d+)*)(.*)$", re.DOTALL)
COMMIT_COUNT_PATTERN = re.compile(r"^-(\d+)-")


@dataclass(frozen=True)
class StructuredVersion:
    numeric_parts: tuple[int, ...]
    commit_count: Optional[int] = None


def parse_version(version: str) -> Optional[StructuredVersion]:
    """
    Split a version string into its numeric components and optional commit count.

    :param version: Version string, e.g. "104.0.1-1058-g1b2c3d4"
    :return: StructuredVersion, or None if the string does not start with a number
    """
    match = VERSION_PATTERN.match(str(version))
    if match is None:
        return None
    numbers, remaining = match.groups()
    commit_match = COMMIT_COUNT_PATTERN.match(remaining)
    return StructuredVersion(
        numeric_parts=tuple(int(part) for part in numbers.split(".")),
        commit_count=int(commit_match.group(1)) if commit_match else None,
    )


def _cmp(a: int, b: int) -> int:
    return (a > b) - (a < b)


def compare_parsed_versions(v1: StructuredVersion, v2: StructuredVersion) -> int:
    for part1, part2 in zip_longest(v1.numeric_parts, v2.numeric_parts, fillvalue=0):
        result = _cmp(part1, part2)
        if result:
            return result
    return _cmp(v1.commit_count or 0, v2.commit_count or 0)


def compare_versions(v1: str, v2: str | int) -> Optional[int]:
    """
    Compare two engine versions.

    Missing trailing components count as zero, so "95" sorts before "95.1".
    When the numeric parts are equal, the commit counts decide (absent = 0).

    :param v1: First version
    :param v2: Second version (integers are accepted for plain thresholds)
    :return: -1, 0 or 1, or None if either version is incomparable
    """
    parsed1 = parse_version(str(v1))
    parsed2 = parse_version(str(v2))
    if parsed1 is None or parsed2 is None:
        return None
    return compare_parsed_versions(parsed1, parsed2)


def version_lower_than(version: str, threshold: str | int) -> bool:
    result = compare_versions(version, threshold)
    return result is not None and result < 0


def version_greater_than(version: str, threshold: str | int) -> bool:
    result = compare_versions(version, threshold)
    return result is not None and result > 0
