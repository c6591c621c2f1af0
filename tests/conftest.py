"""Shared test fixtures for sugarpack tests."""

from collections.abc import Callable, Collection
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from sugarpack.config import PackageConfiguration
from sugarpack.phpsyntax import export_assignments
from sugarpack.storage import LocalStorage

VALID_MANIFEST: dict[str, Any] = {
    "id": "my_module_001",
    "built_in_version": "9.3",
    "name": "My Module",
    "description": "A module for tests",
    "author": "Sugar Partner",
    "acceptable_sugar_versions": {"regex_matches": [r"^9.[\d]+.[\d]+$"]},
}


def write_file(path: Path, content: str) -> Path:
    """Write content to path, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def php_assignments(name: str, value: dict[str, Any]) -> str:
    """Render a PHP configuration file defining ``$name``."""
    return "<?php\n" + export_assignments(name, value) + "\n"


def write_manifest(config: PackageConfiguration, **overrides: Any) -> Path:
    """Write configuration/manifest.php with VALID_MANIFEST plus overrides."""
    manifest = {**VALID_MANIFEST, **overrides}
    return write_file(config.manifest_path, php_assignments("manifest", manifest))


class MessageCollector:
    """Message sink that records every line it receives."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def __call__(self, text: str) -> None:
        self.messages.append(text)

    @property
    def last(self) -> str:
        return self.messages[-1] if self.messages else ""


class MappedPathStorage:
    """Storage decorator that resolves paths only through explicit mappings.

    Everything except ``resolve_path`` is delegated to the wrapped storage.
    """

    def __init__(self, inner: LocalStorage) -> None:
        self._inner = inner
        self._mappings: dict[Path, Path] = {}
        self.resolved: list[Path] = []
        self.reads: list[Path] = []

    def add_path_mapping(self, path: Path, target: Path) -> None:
        self._mappings[path] = target

    def resolve_path(self, path: Path) -> Path | None:
        self.resolved.append(path)
        return self._mappings.get(path)

    def read_file(self, path: Path) -> bytes | None:
        self.reads.append(path)
        return self._inner.read_file(path)

    def write_file(self, path: Path, content: str | bytes) -> None:
        self._inner.write_file(path, content)

    def copy_file(self, src: Path, dst: Path) -> None:
        self._inner.copy_file(src, dst)

    def create_directory(self, path: Path) -> None:
        self._inner.create_directory(path)

    def exists(self, path: Path) -> bool:
        return self._inner.exists(path)

    def list_files(
        self, root: Path, exclude_names: Collection[str] = (), *, strict: bool = False
    ) -> dict[str, Path]:
        return self._inner.list_files(root, exclude_names, strict=strict)

    def copy_directory(self, src: Path, dst: Path, exclude_names: Collection[str] = ()) -> None:
        self._inner.copy_directory(src, dst, exclude_names)

    def wipe_directory(self, path: Path) -> None:
        self._inner.wipe_directory(path)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def messages() -> MessageCollector:
    """Provide a message sink that records emitted lines."""
    return MessageCollector()


@pytest.fixture
def storage() -> LocalStorage:
    """Provide storage backed by the local filesystem."""
    return LocalStorage()


# Type alias for the configuration factory function
ConfigFactory = Callable[..., PackageConfiguration]


@pytest.fixture
def make_config(tmp_path: Path) -> ConfigFactory:
    """Factory fixture returning a PackageConfiguration rooted in a temp directory.

    Usage:
        config = make_config()                    # version 0.0.1
        config = make_config(version="1.2.0")
        config = make_config(create_dirs=True)    # also creates the package directories
    """

    def _create(
        version: str = "0.0.1", *, create_dirs: bool = False, **kwargs: Any
    ) -> PackageConfiguration:
        root = tmp_path / "package"
        root.mkdir(exist_ok=True)
        config = PackageConfiguration(root=root, version=version, **kwargs)
        if create_dirs:
            for directory in config.package_directories:
                directory.mkdir(parents=True, exist_ok=True)
        return config

    return _create
