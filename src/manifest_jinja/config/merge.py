"""Deep merging of template value trees."""

import copy
from typing import Any, Dict, Mapping, Optional


def merge_values(
    base: Optional[Mapping[str, Any]], override: Optional[Mapping[str, Any]]
) -> Dict[str, Any]:
    """Merge two value trees with deep merging.

    Nested mappings are merged key by key. Any other value in ``override``
    (scalar, list, or a mapping colliding with a non-mapping) replaces the
    base value wholesale; lists are never merged element-wise.

    Neither input is modified and the result shares no containers with
    them, so a source's declared values can be reused across calls.

    Args:
        base: Values declared by the source
        override: Values supplied at render time

    Returns:
        Freshly built merged value tree
    """
    result: Dict[str, Any] = copy.deepcopy(dict(base)) if base else {}

    if not override:
        return result

    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = merge_values(current, value)
        else:
            result[key] = copy.deepcopy(value)

    return result
