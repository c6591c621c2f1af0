"""Tests for recursive file discovery."""

from pathlib import Path

import pytest

from sugarpack.catalog import list_files, resolve_existing
from tests.conftest import write_file


class TestResolveExisting:
    """Tests for resolve_existing."""

    def test_resolves_existing_path(self, tmp_path: Path) -> None:
        """Verify an existing path resolves to its absolute form."""
        # Given
        (tmp_path / "a").mkdir()
        target = tmp_path / "a" / ".." / "b.txt"
        write_file(tmp_path / "b.txt", "x")

        # When/Then
        assert resolve_existing(target) == (tmp_path / "b.txt").resolve()

    def test_missing_path_returns_none(self, tmp_path: Path) -> None:
        """Verify a missing path resolves to None."""
        # Given/When/Then
        assert resolve_existing(tmp_path / "missing") is None


class TestListFiles:
    """Tests for list_files."""

    def test_lists_nested_files_by_relative_path(self, tmp_path: Path) -> None:
        """Verify nested files are keyed by POSIX relative paths."""
        # Given
        write_file(tmp_path / "custom" / "modules" / "Accounts" / "logic.php", "<?php")
        write_file(tmp_path / "LICENSE", "MIT")

        # When
        result = list_files(tmp_path)

        # Then
        assert list(result) == ["LICENSE", "custom/modules/Accounts/logic.php"]
        assert result["LICENSE"] == (tmp_path / "LICENSE").resolve()

    def test_directories_are_not_listed(self, tmp_path: Path) -> None:
        """Verify empty directories produce no entries."""
        # Given
        (tmp_path / "empty" / "deeper").mkdir(parents=True)

        # When/Then
        assert list_files(tmp_path) == {}

    def test_excluded_names_are_skipped_at_any_depth(self, tmp_path: Path) -> None:
        """Verify exclusions match bare file names, not paths."""
        # Given
        write_file(tmp_path / ".DS_Store", "")
        write_file(tmp_path / "dir" / ".gitkeep", "")
        write_file(tmp_path / "dir" / "kept.php", "")

        # When
        result = list_files(tmp_path, {".DS_Store", ".gitkeep"})

        # Then
        assert list(result) == ["dir/kept.php"]

    def test_missing_root_returns_empty(self, tmp_path: Path) -> None:
        """Verify a missing root is treated as empty by default."""
        # Given/When/Then
        assert list_files(tmp_path / "missing") == {}

    def test_missing_root_raises_when_strict(self, tmp_path: Path) -> None:
        """Verify strict mode reports a missing root."""
        # Given/When/Then
        with pytest.raises(FileNotFoundError, match="does not exist"):
            list_files(tmp_path / "missing", strict=True)

    def test_uses_supplied_resolver(self, tmp_path: Path) -> None:
        """Verify the root is resolved through the injected resolver."""
        # Given
        real = tmp_path / "real"
        write_file(real / "file.php", "")
        calls: list[Path] = []

        def resolver(path: Path) -> Path | None:
            calls.append(path)
            return real

        # When
        result = list_files(tmp_path / "virtual", resolve=resolver)

        # Then
        assert calls == [tmp_path / "virtual"]
        assert list(result) == ["file.php"]
