"""Tests for models module."""

import pytest

from patchrebase.models import (
    ApplicationResult,
    MigrationReport,
    PatchSet,
    PatchStatus,
    UpdateMode,
    VersionTag,
)


BASE = "a" * 40
RESULT = "b" * 40


class TestVersionTag:
    """Tests for VersionTag class."""

    def test_parse_with_prefix(self):
        """Test parsing 'vX.Y'."""
        tag = VersionTag.parse("v6.13")
        assert tag.major == 6
        assert tag.minor == 13

    def test_parse_without_prefix(self):
        """Test parsing 'X.Y'."""
        assert VersionTag.parse("6.13") == VersionTag(major=6, minor=13)

    def test_parse_invalid(self):
        """Test invalid strings are rejected."""
        for text in ["6", "v6.13.1", "v6.14-rc1", "latest", ""]:
            with pytest.raises(ValueError):
                VersionTag.parse(text)

    def test_str_representation(self):
        """Test string representation."""
        assert str(VersionTag(major=6, minor=9)) == "v6.9"
        assert VersionTag(major=6, minor=9).series == "6.9"

    def test_numeric_ordering(self):
        """Test 6.9 < 6.10, not lexical."""
        tags = [VersionTag.parse(t) for t in ["6.9", "6.10", "6.2"]]
        assert [str(t) for t in sorted(tags)] == ["v6.2", "v6.9", "v6.10"]

    def test_comparison_operators(self):
        """Test comparison operators."""
        v1 = VersionTag.parse("v5.19")
        v2 = VersionTag.parse("v6.0")
        v3 = VersionTag.parse("v6.0")

        assert v1 < v2
        assert v2 > v1
        assert v2 <= v3
        assert v2 >= v3
        assert v2 == v3
        assert v1 != v2

    def test_hash(self):
        """Test hash for use in sets/dicts."""
        assert len({VersionTag.parse("v6.13"), VersionTag.parse("6.13")}) == 1

    def test_immutable(self):
        """Test tags cannot be changed after creation."""
        tag = VersionTag.parse("v6.13")
        with pytest.raises(Exception):
            tag.minor = 14

    def test_is_release_tag(self):
        """Test release tag detection."""
        assert VersionTag.is_release_tag("v6.13") is True
        assert VersionTag.is_release_tag("v6.14-rc1") is False
        assert VersionTag.is_release_tag("v2.6.39") is False
        assert VersionTag.is_release_tag("6.13") is False


class TestApplicationResult:
    """Tests for ApplicationResult validation."""

    def test_clean_result(self):
        """Test clean result with markers."""
        result = ApplicationResult(name="a.patch", status="clean", base_marker=BASE, result_marker=RESULT)
        assert result.is_clean
        assert not result.is_failed

    def test_failed_result(self):
        """Test failed result has no result marker."""
        result = ApplicationResult(name="a.patch", status=PatchStatus.FAILED, base_marker=BASE)
        assert result.is_failed
        assert result.result_marker is None

    def test_failed_with_result_marker_rejected(self):
        """Test failed result cannot carry a result marker."""
        with pytest.raises(ValueError):
            ApplicationResult(name="a.patch", status=PatchStatus.FAILED, base_marker=BASE, result_marker=RESULT)

    def test_fuzzy_without_result_marker_rejected(self):
        """Test fuzzy result needs a result marker."""
        with pytest.raises(ValueError):
            ApplicationResult(name="a.patch", status=PatchStatus.FUZZY, base_marker=BASE)

    def test_not_attempted_rejected(self):
        """Test results only hold terminal states."""
        with pytest.raises(ValueError):
            ApplicationResult(name="a.patch", status=PatchStatus.NOT_ATTEMPTED, base_marker=BASE)


class TestPatchSet:
    """Tests for loading patch sets."""

    def test_load_sorted(self, tmp_path):
        """Test patches load in name order and only *.patch."""
        for name in ["0002-b.patch", "0001-a.patch", "notes.txt"]:
            (tmp_path / name).write_text("x\n")

        patch_set = PatchSet.load(tmp_path, VersionTag.parse("v6.13"))

        assert patch_set.names == ["0001-a.patch", "0002-b.patch"]
        assert len(patch_set) == 2
        assert patch_set.patches[0].content == b"x\n"

    def test_content_is_raw_bytes(self, tmp_path):
        """Test non-UTF-8 patch bytes are returned unchanged."""
        (tmp_path / "0001-a.patch").write_bytes(b"+caf\xe9\n")
        patch_set = PatchSet.load(tmp_path, VersionTag.parse("v6.13"))
        assert patch_set.patches[0].content == b"+caf\xe9\n"

    def test_load_resolves_symlinks(self, tmp_path):
        """Test symlinked patches point at their target file."""
        real = tmp_path / "v6.13"
        real.mkdir()
        (real / "0001-a.patch").write_text("x\n")
        linked = tmp_path / "v6.14"
        linked.mkdir()
        (linked / "0001-a.patch").symlink_to("../v6.13/0001-a.patch")

        patch_set = PatchSet.load(linked, VersionTag.parse("v6.14"))

        assert patch_set.patches[0].path == (real / "0001-a.patch").resolve()


class TestMigrationReport:
    """Tests for MigrationReport outputs."""

    def make_results(self):
        return [
            ApplicationResult(name="0001.patch", status="clean", base_marker=BASE, result_marker=RESULT),
            ApplicationResult(name="0002.patch", status="fuzzy", base_marker=RESULT, result_marker="c" * 40),
            ApplicationResult(name="0003.patch", status="failed", base_marker="c" * 40),
        ]

    def test_none_outputs(self):
        """Test no-update mode emits only current fields."""
        report = MigrationReport(mode=UpdateMode.NONE, current_dir="v6.14", current_tag="v6.14")
        assert report.to_outputs() == {
            "update_mode": "none",
            "current_dir": "v6.14",
            "current_tag": "v6.14",
        }

    def test_branch_exists_outputs(self):
        """Test branch_exists mode adds branch and next fields."""
        report = MigrationReport(
            mode=UpdateMode.BRANCH_EXISTS,
            current_dir="v6.13",
            current_tag="v6.13",
            next_dir="v6.14",
            next_tag="v6.14",
            branch_name="update/v6.14",
        )
        assert list(report.to_outputs().items()) == [
            ("update_mode", "branch_exists"),
            ("branch_name", "update/v6.14"),
            ("next_dir", "v6.14"),
            ("next_tag", "v6.14"),
            ("current_dir", "v6.13"),
            ("current_tag", "v6.13"),
        ]

    def test_updated_outputs(self):
        """Test updated mode reports errors and failed patches."""
        report = MigrationReport(
            mode=UpdateMode.UPDATED,
            current_dir="v6.13",
            current_tag="v6.13",
            next_dir="v6.14",
            next_tag="v6.14",
            branch_name="update/v6.14",
            results=self.make_results(),
        )
        outputs = report.to_outputs()

        assert outputs["has_errors"] == "true"
        assert outputs["failed_patches"] == "0003.patch"
        assert report.clean_count == 1
        assert report.fuzzy_count == 1
        assert report.failed_count == 1

    def test_updated_without_failures(self):
        """Test has_errors is false without failed results."""
        report = MigrationReport(
            mode=UpdateMode.UPDATED,
            current_dir="v6.13",
            current_tag="v6.13",
            results=self.make_results()[:2],
        )
        assert report.has_errors is False
        assert report.to_outputs()["has_errors"] == "false"
        assert report.to_outputs()["failed_patches"] == ""
