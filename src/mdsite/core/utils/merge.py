"""Recursive dictionary merging for scopes and render contexts"""

from typing import Any, Mapping


def recursively_merged(base: Mapping[str, Any], other: Mapping[str, Any]) -> dict[str, Any]:
    """Return a new dict: `other` merged over `base`, nested mappings merged key by key.

    Neither argument is modified; on any non-mapping collision `other` wins.
    """
    result = dict(base)
    for key, value in other.items():
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = recursively_merged(current, value)
        else:
            result[key] = value
    return result
