"""Filesystem access for the packaging pipeline.

The pipeline talks to the filesystem only through a ``Storage``
implementation, so tests can substitute path mappings or in-memory fakes.
"""

import shutil
from collections.abc import Collection
from pathlib import Path
from typing import Protocol

from sugarpack.catalog import list_files, resolve_existing


class Storage(Protocol):
    """Filesystem capabilities needed by the packager."""

    def read_file(self, path: Path) -> bytes | None: ...

    def write_file(self, path: Path, content: str | bytes) -> None: ...

    def copy_file(self, src: Path, dst: Path) -> None: ...

    def create_directory(self, path: Path) -> None: ...

    def exists(self, path: Path) -> bool: ...

    def resolve_path(self, path: Path) -> Path | None: ...

    def list_files(
        self, root: Path, exclude_names: Collection[str] = (), *, strict: bool = False
    ) -> dict[str, Path]: ...

    def copy_directory(
        self, src: Path, dst: Path, exclude_names: Collection[str] = ()
    ) -> None: ...

    def wipe_directory(self, path: Path) -> None: ...


class LocalStorage:
    """Storage backed by the local filesystem."""

    def read_file(self, path: Path) -> bytes | None:
        """Return file contents, or None if the file does not exist."""
        if not path.is_file():
            return None
        return path.read_bytes()

    def write_file(self, path: Path, content: str | bytes) -> None:
        """Write content to path, replacing any existing file.

        The parent directory must already exist.

        Raises:
            FileNotFoundError: If the parent directory does not exist.
        """
        if not path.parent.is_dir():
            msg = f"Cannot write '{path}': directory '{path.parent}' does not exist"
            raise FileNotFoundError(msg)
        if isinstance(content, str):
            content = content.encode()
        path.write_bytes(content)

    def copy_file(self, src: Path, dst: Path) -> None:
        shutil.copyfile(src, dst)

    def create_directory(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def exists(self, path: Path) -> bool:
        return path.exists()

    def resolve_path(self, path: Path) -> Path | None:
        return resolve_existing(path)

    def list_files(
        self, root: Path, exclude_names: Collection[str] = (), *, strict: bool = False
    ) -> dict[str, Path]:
        return list_files(root, exclude_names, strict=strict, resolve=self.resolve_path)

    def copy_directory(self, src: Path, dst: Path, exclude_names: Collection[str] = ()) -> None:
        """Copy every file under src into dst, keeping relative paths.

        Files named in ``exclude_names`` are not copied.
        """
        for relative, absolute in self.list_files(src, exclude_names).items():
            destination = dst / relative
            self.create_directory(destination.parent)
            self.copy_file(absolute, destination)

    def wipe_directory(self, path: Path) -> None:
        """Delete every file under path, leaving the directory structure in place."""
        for absolute in self.list_files(path).values():
            absolute.unlink()
