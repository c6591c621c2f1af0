"""Manifest loading, scaffolding and serialization.

The manifest identifies a module package to the SugarCRM installer. Authors
maintain it in ``configuration/manifest.php``; the packager fills in the
version, publish date and other defaults, validates the result, and emits
the final ``manifest.php`` that ships inside the release archive.
"""

from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sugarpack.config import PackageConfiguration
from sugarpack.config_files import dump_variable, load_variable
from sugarpack.errors import format_validation_errors
from sugarpack.merge import deep_merge
from sugarpack.phpsyntax import export
from sugarpack.storage import LocalStorage, Storage

PUBLISHED_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ManifestAbsentError(FileNotFoundError):
    """Raised when there is no manifest file at the expected path."""

    def __init__(self, path: Path) -> None:
        """Initialize with the path that was checked."""
        self.path = path
        super().__init__(f"Manifest at path: {path} does not exist")


class ManifestIncompleteError(ValueError):
    """Raised when a manifest is missing required details."""

    def __init__(self, path: Path, details: str) -> None:
        """Initialize with the manifest path and the validation problems."""
        self.path = path
        self.details = details
        super().__init__(
            f"Please fill in the required details on your {path} file: {details}"
        )


class AcceptableSugarVersions(BaseModel):
    """Platform versions the package installs on."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    regex_matches: list[str] = Field(
        min_length=1,
        description="Regular expressions matched against the platform version",
    )


class ManifestSchema(BaseModel):
    """Required shape of a package manifest.

    Only used for validation; unknown keys are allowed because the platform
    accepts many optional manifest entries (``description``, ``icon``,
    ``acceptable_sugar_flavors``, ...).
    """

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str = Field(min_length=1, description="Unique package id")
    built_in_version: str = Field(min_length=1, description="Platform version the package was built on")
    name: str = Field(min_length=1, description="Display name")
    version: str = Field(min_length=1, description="Package version")
    author: str = Field(min_length=1, description="Package author")
    acceptable_sugar_versions: AcceptableSugarVersions
    is_uninstallable: Any = True
    type: Any = "module"


def manifest_defaults(version: str, now: datetime | None = None) -> dict[str, Any]:
    """Values every manifest starts from before the author's file is merged in."""
    now = now or datetime.now()
    return {
        "version": version,
        "is_uninstallable": True,
        "published_date": now.strftime(PUBLISHED_DATE_FORMAT),
        "type": "module",
    }


def validate_manifest(manifest: Any, path: Path) -> None:
    """Check that a manifest has every required field filled in.

    Raises:
        ManifestIncompleteError: If any required field is missing or empty.
    """
    if not isinstance(manifest, dict):
        raise ManifestIncompleteError(path, "'manifest' must be a mapping of keys to values")
    try:
        ManifestSchema.model_validate(manifest)
    except ValidationError as e:
        raise ManifestIncompleteError(path, format_validation_errors(e)) from e


def load_manifest(
    path: Path, version: str, *, now: datetime | None = None, storage: Storage | None = None
) -> dict[str, Any]:
    """Load the author's manifest and merge it over the computed defaults.

    Values from the file win over defaults; nested mappings merge key by key
    and lists are taken from the file as a whole.

    Args:
        path: Path to ``manifest.php`` (or ``manifest.yaml``).
        version: Version being packaged.
        now: Timestamp for ``published_date`` (defaults to the current time).
        storage: Filesystem access used to read the file.

    Returns:
        The effective manifest.

    Raises:
        ManifestAbsentError: If the manifest file does not exist.
        ManifestIncompleteError: If required fields are missing after merging.
    """
    storage = storage or LocalStorage()
    if not storage.exists(path):
        raise ManifestAbsentError(path)

    loaded = load_variable(path, "manifest", storage=storage)
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ManifestIncompleteError(path, "'manifest' must be a mapping of keys to values")

    manifest = deep_merge(manifest_defaults(version, now), loaded)
    validate_manifest(manifest, path)
    return manifest


def _skeleton(config: PackageConfiguration) -> dict[str, Any]:
    return {
        "id": "",
        "built_in_version": "",
        "name": "",
        "description": "",
        "author": config.default_author,
        "acceptable_sugar_versions": {
            "regex_matches": list(config.default_version_regexes),
        },
    }


def scaffold_manifest(
    path: Path, config: PackageConfiguration, *, storage: Storage | None = None
) -> dict[str, Any]:
    """Write a skeleton manifest for the author to fill in, then load it.

    The skeleton leaves ``id``, ``built_in_version`` and ``name`` blank, so
    loading it raises ManifestIncompleteError; the file stays on disk for the
    next run.

    Raises:
        ManifestIncompleteError: Always, unless the skeleton is somehow complete.
    """
    storage = storage or LocalStorage()
    storage.write_file(path, dump_variable(path, "manifest", _skeleton(config)))
    return load_manifest(path, config.version, storage=storage)


def serialize_manifest(manifest: dict[str, Any], installdefs: dict[str, Any]) -> str:
    """Render the final ``manifest.php`` shipped in the release archive.

    The copy directives are assigned separately from the rest of the install
    definitions, and without numeric indices, so installer tooling can find
    the copy list on its own.
    """
    directives = dict(installdefs)
    copy = directives.pop("copy", None) or []

    return (
        "<?php\n\n"
        f"$manifest = {export(manifest)};\n\n"
        f"$installdefs = {export(directives)};\n\n"
        f"$installdefs['copy'] = {export(copy, implicit_indices=True)};\n"
    )
