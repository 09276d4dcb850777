from __future__ import annotations

"""
Settings deprecations.

A deprecation is a callable `(settings, log) -> None` that rewrites a settings
dict in place and reports what it did through `log`. Transforms built with
`create_transform` always work on a deep copy, so caller settings are never
mutated.
"""

import copy
from typing import Any, Callable, Dict, Iterable, List, Optional

from pluginhost.core.config.keys import get_in, has_in, set_in, unset_in

LogFn = Callable[[str], None]
Deprecation = Callable[[Dict[str, Any], LogFn], None]
Transform = Callable[..., Dict[str, Any]]


def _noop(_message: str) -> None:
    return None


def rename(old_key: str, new_key: str) -> Deprecation:
    def _rename(settings: Dict[str, Any], log: LogFn = _noop) -> None:
        if not has_in(settings, old_key):
            return
        value = get_in(settings, old_key)
        unset_in(settings, old_key)
        set_in(settings, new_key, value)
        log(f'Config key "{old_key}" is deprecated. It has been replaced with "{new_key}"')

    return _rename


def unused(old_key: str) -> Deprecation:
    def _unused(settings: Dict[str, Any], log: LogFn = _noop) -> None:
        if not has_in(settings, old_key):
            return
        unset_in(settings, old_key)
        log(f"{old_key} is deprecated and is no longer used")

    return _unused


def create_transform(deprecations: Iterable[Deprecation]) -> Transform:
    rules: List[Deprecation] = list(deprecations or [])

    def _transform(settings: Optional[Dict[str, Any]], log: Optional[LogFn] = None) -> Dict[str, Any]:
        result = copy.deepcopy(settings) if isinstance(settings, dict) else {}
        for rule in rules:
            rule(result, log or _noop)
        return result

    return _transform


CORE_DEPRECATIONS: List[Deprecation] = [
    rename("plugins.scanDirs", "plugins.scan_dirs"),
    unused("plugins.initialize"),
]


def transform_deprecations(settings: Optional[Dict[str, Any]], log: Optional[LogFn] = None) -> Dict[str, Any]:
    return create_transform(CORE_DEPRECATIONS)(settings, log)
