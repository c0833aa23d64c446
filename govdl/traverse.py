"""Search nested JSON-like data for a path of keys."""

from __future__ import annotations

import logging
from typing import Any, Sequence

logger = logging.getLogger(__name__)


def traverse_json(data: Any, keys: str | Sequence[str]) -> Any:
    """Find the value at ``keys`` anywhere in ``data``, or return None.

    The first key may be found at any depth; each following key must
    then be reachable below the previous one, again at any depth.
    """
    if isinstance(keys, str):
        key_list = [keys]
    elif isinstance(keys, (list, tuple)) and all(isinstance(k, str) for k in keys):
        key_list = list(keys)
    else:
        logger.warning("unsupported keys type: %s", type(keys).__name__)
        return None
    return _traverse(data, key_list)


def _traverse(data: Any, keys: list[str]) -> Any:
    if not keys:
        return data
    key, rest = keys[0], keys[1:]
    if isinstance(data, dict):
        if key in data:
            return _traverse(data[key], rest)
        children = data.values()
    elif isinstance(data, list):
        children = data
    else:
        return None
    for child in children:
        result = _traverse(child, keys)
        if result is not None:
            return result
    return None