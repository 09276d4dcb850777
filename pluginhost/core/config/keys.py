from __future__ import annotations

"""
Dotted-key helpers for nested settings dicts.

Keys may be given as "a.b.c" or as a list/tuple of parts.
"""

from typing import Any, Dict, List, Sequence, Union

Key = Union[str, Sequence[str]]

_MISSING = object()


def split_key(key: Key) -> List[str]:
    if isinstance(key, str):
        parts = key.split(".")
    else:
        parts = [str(p) for p in key]
    if not parts or any(not p for p in parts):
        raise ValueError(f"Invalid config key: {key!r}")
    return parts


def join_key(key: Key) -> str:
    return ".".join(split_key(key))


def get_in(obj: Any, key: Key, default: Any = None) -> Any:
    cur = obj
    for part in split_key(key):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


def has_in(obj: Any, key: Key) -> bool:
    return get_in(obj, key, _MISSING) is not _MISSING


def set_in(obj: Dict[str, Any], key: Key, value: Any) -> None:
    parts = split_key(key)
    cur = obj
    for part in parts[:-1]:
        nxt = cur.get(part)
        if not isinstance(nxt, dict):
            nxt = {}
            cur[part] = nxt
        cur = nxt
    cur[parts[-1]] = value


def unset_in(obj: Dict[str, Any], key: Key) -> bool:
    """Remove key; prunes parents left empty. Returns True when something was removed."""
    parts = split_key(key)
    trail = []
    cur: Any = obj
    for part in parts[:-1]:
        if not isinstance(cur, dict) or not isinstance(cur.get(part), dict):
            return False
        trail.append((cur, part))
        cur = cur[part]
    if not isinstance(cur, dict) or parts[-1] not in cur:
        return False
    del cur[parts[-1]]
    for parent, part in reversed(trail):
        if parent[part]:
            break
        del parent[part]
    return True
