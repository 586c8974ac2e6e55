"""Semantic version parsing and comparison utilities."""

import re
from typing import NamedTuple

SEMVER_PATTERN = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


class SemVer(NamedTuple):
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()


def is_valid_version(version: str | None) -> bool:
    """Return True for ``MAJOR.MINOR.PATCH`` with an optional prerelease."""
    return isinstance(version, str) and SEMVER_PATTERN.match(version) is not None


def parse_version(version: str) -> SemVer:
    """Parse a semantic version string.

    Raises:
        ValueError: If the string is not ``MAJOR.MINOR.PATCH[-PRERELEASE]``.

    Examples:
        >>> parse_version("1.2.3-beta.1")
        SemVer(major=1, minor=2, patch=3, prerelease=('beta', '1'))
    """
    match = SEMVER_PATTERN.match(version or "")
    if not match:
        raise ValueError(f"Invalid semantic version: {version!r}")
    major, minor, patch, pre = match.groups()
    prerelease = tuple(pre.split(".")) if pre else ()
    return SemVer(int(major), int(minor), int(patch), prerelease)


def _compare_identifiers(left: tuple[str, ...], right: tuple[str, ...]) -> int:
    # Numeric identifiers sort before alphanumeric ones; a shorter set of
    # identifiers sorts first when all shared ones are equal.
    for a, b in zip(left, right):
        if a == b:
            continue
        a_num, b_num = a.isdigit(), b.isdigit()
        if a_num and b_num:
            return -1 if int(a) < int(b) else 1
        if a_num != b_num:
            return -1 if a_num else 1
        return -1 if a < b else 1
    if len(left) == len(right):
        return 0
    return -1 if len(left) < len(right) else 1


def compare_versions(version1: str, version2: str) -> int:
    """Compare two semantic versions. Returns -1, 0, or 1.

    With equal ``MAJOR.MINOR.PATCH`` a prerelease orders before the release,
    and two prereleases compare by identifier precedence.

    Raises:
        ValueError: If either version is not a valid semantic version.
    """
    v1 = parse_version(version1)
    v2 = parse_version(version2)

    core1, core2 = v1[:3], v2[:3]
    if core1 != core2:
        return -1 if core1 < core2 else 1

    if v1.prerelease == v2.prerelease:
        return 0
    if not v1.prerelease:
        return 1
    if not v2.prerelease:
        return -1
    return _compare_identifiers(v1.prerelease, v2.prerelease)


def is_newer_version(installed: str | None, bundle: str) -> bool:
    """Return True when ``bundle`` is newer than ``installed``.

    A missing or empty installed version is always older. An installed
    version that does not parse is treated as older too, so it gets replaced.
    A bundle version that does not parse is never newer.
    """
    if not is_valid_version(bundle):
        return False
    if not installed:
        return True
    if not is_valid_version(installed):
        return True
    return compare_versions(installed, bundle) < 0


__all__ = [
    "SEMVER_PATTERN",
    "SemVer",
    "is_valid_version",
    "parse_version",
    "compare_versions",
    "is_newer_version",
]
