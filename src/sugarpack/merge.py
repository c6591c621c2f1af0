"""Recursive merging of configuration mappings."""

from collections.abc import Mapping
from typing import Any


def deep_merge(base: Mapping[str, Any], *overlays: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge each overlay into base, left to right.

    Objects (dicts) are deep-merged with override values winning.
    Arrays (lists) are replaced entirely, not concatenated.
    Scalar values are replaced by overrides.
    Neither input is modified.
    """
    result = dict(base)
    for overrides in overlays:
        for key, override_value in overrides.items():
            base_value = result.get(key)
            if isinstance(base_value, Mapping) and isinstance(override_value, Mapping):
                result[key] = deep_merge(base_value, override_value)
            else:
                result[key] = override_value
    return result
