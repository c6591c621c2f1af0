"""sugarpack CLI entry point."""

import sys
import zipfile
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from sugarpack import cli_logger, exit_codes
from sugarpack.build import BuildAlreadyExists, BuildMissingVersion, BuildSuccess, build_package
from sugarpack.config import (
    AUTHOR_ENV_VAR,
    ConfigFormat,
    PackageConfiguration,
    configuration_file_names,
    get_package_root,
)
from sugarpack.errors import IllegalStateError, handle_cli_error
from sugarpack.installdefs import load_custom_directives, should_copy
from sugarpack.manifest import ManifestIncompleteError
from sugarpack.storage import LocalStorage
from sugarpack.templates import TemplateGenerationError

app = typer.Typer(
    name="sugarpack",
    help="SugarCRM module packager - build installable module archives from a source tree.",
    no_args_is_help=True,
)

console = Console()

RootOption = Annotated[
    Path | None,
    typer.Option(
        "--root",
        "-r",
        help="Package root directory. Defaults to SUGARPACK_ROOT or the current directory.",
    ),
]

FormatOption = Annotated[
    ConfigFormat,
    typer.Option(
        "--format",
        "-f",
        help="Format of the files in configuration/ (php or yaml).",
    ),
]


def require_package_root(root: Path | None) -> Path:
    """Resolve the package root, exiting with INVALID_ARGS if it is not a directory."""
    package_root = get_package_root(root)
    if package_root.exists() and not package_root.is_dir():
        cli_logger.error(f"Package root {package_root} is not a directory")
        raise typer.Exit(exit_codes.INVALID_ARGS)
    return package_root


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        cli_logger.info(PackageConfiguration(root=Path.cwd()).software_info)
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show sugarpack version and exit.",
    ),
) -> None:
    """SugarCRM module packager - build installable module archives from a source tree."""


@app.command()
def build(
    version: Annotated[
        str,
        typer.Argument(
            help="Version to package, e.g. 1.0.0. Used in the manifest and the archive name.",
        ),
    ] = "",
    root: RootOption = None,
    author: Annotated[
        str,
        typer.Option(
            "--author",
            envvar=AUTHOR_ENV_VAR,
            help="Author written into a newly scaffolded manifest.",
        ),
    ] = "",
    config_format: FormatOption = ConfigFormat.PHP,
) -> None:
    """Build a release archive from src/, templates/ and configuration/.

    On the first run a skeleton configuration/manifest.php is written;
    fill in its required fields and run the build again.
    """
    config = PackageConfiguration(
        root=require_package_root(root),
        version=version.strip(),
        default_author=author,
        **configuration_file_names(config_format),
    )

    try:
        result = build_package(config)
    except ManifestIncompleteError as e:
        cli_logger.error(str(e))
        raise typer.Exit(exit_codes.MANIFEST_INCOMPLETE) from e
    except TemplateGenerationError as e:
        cli_logger.error(str(e))
        raise typer.Exit(exit_codes.TEMPLATE_ERROR) from e
    except IllegalStateError as e:
        cli_logger.error(str(e))
        raise typer.Exit(exit_codes.ILLEGAL_STATE) from e
    except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
        cli_logger.error(f"Failed to write archive: {e}")
        raise typer.Exit(exit_codes.ARCHIVE_ERROR) from e

    match result:
        case BuildSuccess(zip_path=zip_path, files=files):
            cli_logger.success(f"Packaged {len(files)} files into {zip_path}")
            raise typer.Exit(exit_codes.SUCCESS)

        case BuildAlreadyExists(zip_path=zip_path):
            cli_logger.dim("  • Bump the version or delete the existing archive to rebuild.")
            raise typer.Exit(exit_codes.SUCCESS)

        case BuildMissingVersion():
            cli_logger.dim("  • Usage: sugarpack build <version>")
            raise typer.Exit(exit_codes.SUCCESS)


@app.command()
def files(root: RootOption = None, config_format: FormatOption = ConfigFormat.PHP) -> None:
    """List the files src/ contributes to the package.

    Shows whether each file will get a copy directive, taking
    configuration/installdefs.php lifecycle scripts into account.
    """
    config = PackageConfiguration(
        root=require_package_root(root), **configuration_file_names(config_format)
    )
    storage = LocalStorage()
    listing = storage.list_files(config.src_dir, config.files_to_remove_from_zip)

    if not listing:
        cli_logger.warning(f"No files found in {config.src_dir}")
        raise typer.Exit(exit_codes.SUCCESS)

    custom = load_custom_directives(config.installdefs_config_path, storage=storage)

    table = Table(show_header=True, header_style="bold")
    table.add_column("FILE")
    table.add_column("COPY")
    for relative in listing:
        copied = should_copy(
            relative,
            custom,
            removal_names=config.files_to_remove_from_manifest_copy,
            hook_keys=config.lifecycle_hook_keys,
        )
        table.add_row(relative, "[green]✓[/green]" if copied else "[dim]skipped[/dim]")

    console.print(table)
    raise typer.Exit(exit_codes.SUCCESS)


def main_cli() -> None:
    """CLI entry point with top-level exception handling.

    Wraps the Typer app to catch any unhandled exceptions and format them
    as clean error messages instead of raw tracebacks.
    """
    try:
        app()
    except Exception as e:
        sys.exit(handle_cli_error(e))


if __name__ == "__main__":
    main_cli()
