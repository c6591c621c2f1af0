"""Loading and writing package configuration files.

Configuration files define a single named variable (``manifest``,
``templates`` or ``installdefs``). Two formats are accepted, chosen by
file suffix:

- ``.php``: the PHP assignment subset understood by ``sugarpack.phpsyntax``.
- ``.yaml`` / ``.yml``: a top-level mapping keyed by the variable name.
"""

from pathlib import Path
from typing import Any

import yaml

from sugarpack.phpsyntax import export_assignments, parse_php
from sugarpack.storage import LocalStorage, Storage

PHP_SUFFIXES = (".php",)
YAML_SUFFIXES = (".yaml", ".yml")


def _check_suffix(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix not in PHP_SUFFIXES + YAML_SUFFIXES:
        msg = f"Unsupported configuration format '{path.suffix}' for '{path}' (use .php or .yaml)"
        raise ValueError(msg)
    return suffix


def load_variable(path: Path, name: str, *, storage: Storage | None = None) -> Any:
    """Load the value a configuration file assigns to ``name``.

    Args:
        path: Path to the configuration file.
        name: Variable name, e.g. ``manifest``.
        storage: Filesystem access used to read the file.

    Returns:
        The variable's value, or None if the file does not define it.

    Raises:
        FileNotFoundError: If the file does not exist.
        PhpSyntaxError: If a PHP file uses unsupported syntax.
        ValueError: If the suffix is unsupported or a YAML file is invalid.
    """
    suffix = _check_suffix(path)
    raw = (storage or LocalStorage()).read_file(path)
    if raw is None:
        msg = f"Configuration file '{path}' does not exist"
        raise FileNotFoundError(msg)
    content = raw.decode()

    if suffix in PHP_SUFFIXES:
        return parse_php(content).get(name)

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in '{path}': {e}"
        raise ValueError(msg) from e

    if data is None:
        return None
    if not isinstance(data, dict):
        msg = f"Invalid configuration '{path}': expected a mapping with a '{name}' key"
        raise ValueError(msg)
    return data.get(name)


def dump_variable(path: Path, name: str, value: dict[str, Any]) -> str:
    """Render a configuration file body that defines ``name`` as ``value``.

    The format follows the suffix of ``path``; nothing is written.
    """
    suffix = _check_suffix(path)
    if suffix in PHP_SUFFIXES:
        return "<?php\n" + export_assignments(name, value) + "\n"
    return yaml.dump({name: value}, default_flow_style=False, sort_keys=False)
