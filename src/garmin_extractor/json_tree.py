"""Bounded-depth helpers for walking decoded Garmin JSON payloads.

Garmin moves fields around between endpoint versions, so callers pass an
ordered list of candidate keys and these helpers search for the first
match.  Nodes are plain ``json.loads`` values: dict, list, str, int,
float, bool or None.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Iterable, Iterator, Optional, Sequence

MAX_DEPTH = 12


def is_number(value: Any) -> bool:
    """True for finite JSON numbers.

    ``bool`` is an ``int`` subclass and is excluded, as are the ``NaN`` and
    ``Infinity`` literals ``json.loads`` accepts.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)


def read_first_number(node: Any, keys: Iterable[str]) -> Optional[float]:
    """Return the first numeric value found under *keys* in a dict node."""
    if not isinstance(node, dict):
        return None
    for key in keys:
        value = node.get(key)
        if is_number(value):
            return float(value)
    return None


def read_first_int(node: Any, keys: Iterable[str]) -> Optional[int]:
    """Like :func:`read_first_number`, truncated to ``int``."""
    if not isinstance(node, dict):
        return None
    for key in keys:
        value = node.get(key)
        if is_number(value):
            return int(value)
    return None


def read_first_text(node: Any, keys: Iterable[str]) -> Optional[str]:
    if not isinstance(node, dict):
        return None
    for key in keys:
        value = node.get(key)
        if isinstance(value, str):
            return value
    return None


def iter_nodes(root: Any, max_depth: int = MAX_DEPTH) -> Iterator[Any]:
    """Yield *root* and its descendants depth-first, in document order."""
    yield root
    if max_depth <= 0:
        return
    if isinstance(root, dict):
        children: Iterable[Any] = root.values()
    elif isinstance(root, list):
        children = root
    else:
        return
    for child in children:
        yield from iter_nodes(child, max_depth - 1)


def find_array(
    root: Any, keys: Sequence[str], max_depth: int = MAX_DEPTH
) -> Optional[list]:
    """Find an array stored under one of *keys* anywhere in the tree.

    Keys are tried in priority order; for each key the whole tree is
    searched before moving to the next one.
    """
    for key in keys:
        if not key:
            continue
        for node in iter_nodes(root, max_depth):
            if isinstance(node, dict) and isinstance(node.get(key), list):
                return node[key]
    return None


def find_first_array(
    root: Any,
    predicate: Callable[[list], bool],
    max_depth: int = MAX_DEPTH,
) -> Optional[list]:
    """Return the first array in document order accepted by *predicate*."""
    for node in iter_nodes(root, max_depth):
        if isinstance(node, list) and predicate(node):
            return node
    return None
