"""Tests for semantic version helpers."""

import pytest

from sddkit.versions import (
    compare_versions,
    is_newer_version,
    is_valid_version,
    parse_version,
)


class TestParseVersion:
    def test_release(self):
        v = parse_version("1.2.3")
        assert (v.major, v.minor, v.patch, v.prerelease) == (1, 2, 3, ())

    def test_prerelease(self):
        assert parse_version("2.0.0-rc.1").prerelease == ("rc", "1")

    @pytest.mark.parametrize("value", ["", "1.2", "1.2.3.4", "v1.2.3", "01.2.3", "1.2.3-", None])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_version(value)
        assert not is_valid_version(value)


class TestCompareVersions:
    def test_numeric_not_lexical(self):
        """1.10.0 is newer than 1.9.0."""
        assert compare_versions("1.9.0", "1.10.0") == -1
        assert compare_versions("1.10.0", "1.9.0") == 1

    def test_equal(self):
        assert compare_versions("3.1.4", "3.1.4") == 0

    def test_prerelease_before_release(self):
        assert compare_versions("1.0.0-beta", "1.0.0") == -1
        assert compare_versions("1.0.0", "1.0.0-beta") == 1

    def test_prerelease_precedence(self):
        ordered = [
            "1.0.0-alpha",
            "1.0.0-alpha.1",
            "1.0.0-alpha.beta",
            "1.0.0-beta",
            "1.0.0-beta.2",
            "1.0.0-beta.11",
            "1.0.0-rc.1",
            "1.0.0",
        ]
        for older, newer in zip(ordered, ordered[1:]):
            assert compare_versions(older, newer) == -1, (older, newer)
            assert compare_versions(newer, older) == 1, (older, newer)


class TestIsNewerVersion:
    def test_missing_installed_is_older(self):
        assert is_newer_version(None, "1.0.0") is True
        assert is_newer_version("", "1.0.0") is True

    def test_strict(self):
        assert is_newer_version("1.0.0", "1.0.1") is True
        assert is_newer_version("1.0.1", "1.0.0") is False
        assert is_newer_version("1.0.0", "1.0.0") is False

    def test_release_newer_than_prerelease(self):
        assert is_newer_version("1.0.0-rc.1", "1.0.0") is True
        assert is_newer_version("1.0.0", "1.0.0-rc.1") is False

    def test_total_order(self):
        """Exactly one direction holds for any two distinct versions."""
        versions = ["0.9.9", "1.0.0-alpha", "1.0.0", "1.0.1", "1.1.0", "2.0.0-rc.1", "2.0.0"]
        for a in versions:
            for b in versions:
                if a == b:
                    assert not is_newer_version(a, b)
                else:
                    assert is_newer_version(a, b) != is_newer_version(b, a)

    def test_invalid_installed_is_older(self):
        assert is_newer_version("garbage", "1.0.0") is True

    def test_invalid_bundle_is_never_newer(self):
        assert is_newer_version("1.0.0", "next") is False
        assert is_newer_version(None, "next") is False
        assert is_newer_version("garbage", "") is False
