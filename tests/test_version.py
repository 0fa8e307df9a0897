"""Tests for immich_updater.version: natural version ordering."""

from __future__ import annotations

import pytest

from immich_updater.version import compare, is_newer, normalize, version_key


class TestNormalize:
    def test_strips_leading_v(self) -> None:
        assert normalize("v1.2.3") == "1.2.3"

    def test_strips_only_one_v(self) -> None:
        assert normalize(" V1.2.3 ") == "1.2.3"

    def test_plain_version_unchanged(self) -> None:
        assert normalize("1.2.3") == "1.2.3"


class TestIsNewer:
    """Segment-wise numeric comparison, not lexical."""

    @pytest.mark.parametrize(
        ("candidate", "current"),
        [
            ("1.10.0", "1.9.0"),
            ("1.2.10", "1.2.9"),
            ("2.0.0", "1.99.99"),
            ("v1.119.0", "1.118.2"),
            ("1.2.3.1", "1.2.3"),
            ("1.2.0-rc2", "1.2.0-rc1"),
        ],
    )
    def test_newer(self, candidate: str, current: str) -> None:
        assert is_newer(candidate, current) is True
        assert is_newer(current, candidate) is False

    def test_lexical_order_would_be_wrong(self) -> None:
        assert "1.10.0" < "1.9.0"
        assert is_newer("1.10.0", "1.9.0")

    def test_equal_is_not_newer(self) -> None:
        assert is_newer("1.2.3", "1.2.3") is False
        assert is_newer("v1.2.3", "1.2.3") is False


class TestCompare:
    def test_sorting_matches_sort_v(self) -> None:
        versions = ["1.10.0", "1.9.0", "1.2.0-rc1", "1.2.0", "1.100.0", "1.2.1"]
        assert sorted(versions, key=version_key) == [
            "1.2.0",
            "1.2.0-rc1",
            "1.2.1",
            "1.9.0",
            "1.10.0",
            "1.100.0",
        ]

    def test_compare_values(self) -> None:
        assert compare("1.0.0", "1.0.1") == -1
        assert compare("1.0.1", "1.0.1") == 0
        assert compare("1.0.10", "1.0.1") == 1
