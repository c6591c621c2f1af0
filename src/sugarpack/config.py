"""Package configuration and package root resolution.

The package root is the directory holding ``configuration/``, ``src/``,
``templates/``, ``pkg/`` and ``releases/``.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from sugarpack import SOFTWARE_NAME, __version__

# Environment variable for a custom package root location
ROOT_ENV_VAR = "SUGARPACK_ROOT"

# Environment variable for the author written into a scaffolded manifest
AUTHOR_ENV_VAR = "SUGARPACK_AUTHOR"

# Files never copied into pkg/ nor added to the archive
FILES_TO_REMOVE_FROM_ZIP = frozenset({".DS_Store", ".gitkeep"})

# Files packaged in the archive but never given a copy directive
FILES_TO_REMOVE_FROM_MANIFEST_COPY = frozenset({"LICENSE", "LICENSE.txt", "README.txt"})

# Installdefs keys whose scripts are run by the installer, not copied
LIFECYCLE_HOOK_KEYS = ("pre_execute", "post_execute", "pre_uninstall", "post_uninstall")

DEFAULT_VERSION_REGEXES = (r"^8.[\d]+.[\d]+$",)


class ConfigFormat(str, Enum):
    """File format of the files in configuration/."""

    PHP = "php"
    YAML = "yaml"


def configuration_file_names(config_format: ConfigFormat) -> dict[str, str]:
    """File names of manifest, templates and installdefs for a format."""
    suffix = config_format.value
    return {
        "manifest_file": f"manifest.{suffix}",
        "config_template_file": f"templates.{suffix}",
        "config_installdefs_file": f"installdefs.{suffix}",
    }


def get_package_root(root: Path | None = None) -> Path:
    """Get the package root directory.

    Resolution order:
    1. Explicit ``root`` argument (the ``--root`` CLI option)
    2. SUGARPACK_ROOT environment variable (if set)
    3. Current working directory

    Returns:
        Path to the package root.
    """
    if root is not None:
        return root.expanduser()
    env_value = os.environ.get(ROOT_ENV_VAR)
    if env_value:
        return Path(env_value).expanduser()
    return Path.cwd()


@dataclass(frozen=True)
class PackageConfiguration:
    """Settings for a single build.

    Created once per build; the version being packaged is fixed at
    construction. All directory and file names are relative to ``root``.
    """

    root: Path
    version: str = ""

    release_directory: str = "releases"
    config_directory: str = "configuration"
    src_directory: str = "src"
    pkg_directory: str = "pkg"
    templates_directory: str = "templates"

    manifest_file: str = "manifest.php"
    config_template_file: str = "templates.php"
    config_installdefs_file: str = "installdefs.php"
    package_manifest_file: str = "manifest.php"

    prefix_release_package: str = "module_"

    files_to_remove_from_zip: frozenset[str] = FILES_TO_REMOVE_FROM_ZIP
    files_to_remove_from_manifest_copy: frozenset[str] = FILES_TO_REMOVE_FROM_MANIFEST_COPY
    lifecycle_hook_keys: tuple[str, ...] = LIFECYCLE_HOOK_KEYS

    default_author: str = ""
    default_version_regexes: tuple[str, ...] = DEFAULT_VERSION_REGEXES

    software_name: str = SOFTWARE_NAME
    software_version: str = __version__

    @property
    def releases_dir(self) -> Path:
        return self.root / self.release_directory

    @property
    def config_dir(self) -> Path:
        return self.root / self.config_directory

    @property
    def src_dir(self) -> Path:
        return self.root / self.src_directory

    @property
    def pkg_dir(self) -> Path:
        return self.root / self.pkg_directory

    @property
    def templates_dir(self) -> Path:
        return self.root / self.templates_directory

    @property
    def manifest_path(self) -> Path:
        return self.config_dir / self.manifest_file

    @property
    def templates_config_path(self) -> Path:
        return self.config_dir / self.config_template_file

    @property
    def installdefs_config_path(self) -> Path:
        return self.config_dir / self.config_installdefs_file

    @property
    def package_directories(self) -> tuple[Path, ...]:
        """Directories created (idempotently) at the start of every build."""
        return (
            self.releases_dir,
            self.config_dir,
            self.src_dir,
            self.pkg_dir,
            self.templates_dir,
        )

    @property
    def software_info(self) -> str:
        """Name and version of the packager, e.g. ``SugarModulePackager v0.3.0``."""
        return f"{self.software_name} v{self.software_version}"

    def zip_path(self, package_id: str) -> Path:
        """Path of the release archive for a package id at this version."""
        return self.releases_dir / f"{self.prefix_release_package}{package_id}_{self.version}.zip"
