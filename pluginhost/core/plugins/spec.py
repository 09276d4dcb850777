from __future__ import annotations

"""
PluginSpec: one plugin's identity, host-version constraint and configuration hooks.

A pack's provider builds specs through `PluginApi.plugin(**options)`. Specs are
immutable after construction; everything discovery needs is answered from the
options captured here.
"""

import re
from typing import Any, Callable, List, Optional, Tuple

from pluginhost.core.config.keys import split_key
from pluginhost.core.errors import InvalidPluginError
from pluginhost.core.plugins.plugin_config import (
    LogDeprecation,
    disable_config_extension,
    extend_config_service,
)

ANY_HOST_VERSION = {"host", "*"}
_CORE_VERSION_RE = re.compile(r"\d+\.\d+\.\d+")
_COMPARATORS = (">=", "<=", ">", "<", "==")


def _clean_version(version: str) -> str:
    m = _CORE_VERSION_RE.search(version)
    return m.group(0) if m else version


def _version_tuple(version: str) -> Tuple[int, ...]:
    parts: List[int] = []
    for part in _clean_version(version).strip().lstrip("v").split("."):
        digits = ""
        for ch in part:
            if not ch.isdigit():
                break
            digits += ch
        if not digits:
            break
        parts.append(int(digits))
    return tuple(parts)


def is_version_compatible(expected: str, actual: str) -> bool:
    """
    expected is what the plugin declares, actual is the host's pkg.version.
    - "host" / "*": always compatible
    - ">=1.2.0" style comparator: numeric comparison
    - anything else: X.Y.Z cores must match (suffixes like -SNAPSHOT ignored)
    """
    expected = str(expected or "").strip()
    actual = str(actual or "").strip()
    if expected in ANY_HOST_VERSION:
        return True
    for op in _COMPARATORS:
        if expected.startswith(op):
            want = _version_tuple(expected[len(op) :].strip())
            have = _version_tuple(actual)
            if op == ">=":
                return have >= want
            if op == "<=":
                return have <= want
            if op == ">":
                return have > want
            if op == "<":
                return have < want
            return have == want
    return _clean_version(expected) == _clean_version(actual)


class PluginSpec:
    def __init__(
        self,
        pack: Any,
        *,
        id: Optional[str] = None,  # noqa: A002
        version: Optional[str] = None,
        host_version: Optional[str] = None,
        config_prefix: Optional[str] = None,
        config: Optional[Callable[..., Any]] = None,
        deprecations: Optional[Callable[..., Any]] = None,
        is_enabled: Optional[Callable[..., Any]] = None,
        path: Optional[str] = None,
    ):
        pkg = dict(getattr(pack, "pkg", None) or {})
        self._pack = pack
        self._path = str(path or getattr(pack, "path", "") or "")
        self._id = str(id or pkg.get("name") or "").strip()
        if not self._id:
            raise InvalidPluginError(None, self._path, "must have an id or a package.json name")
        self._version = str(version or pkg.get("version") or "").strip()
        host = pkg.get("host") if isinstance(pkg.get("host"), dict) else {}
        self._host_version = str(host_version or host.get("version") or self._version or "").strip()
        if not self._host_version:
            raise InvalidPluginError(self._id, self._path, "must declare a version or a host version")

        self._config_prefix = str(config_prefix or self._id)
        try:
            split_key(self._config_prefix)
        except ValueError as e:
            raise InvalidPluginError(self._id, self._path, f"has an invalid config prefix: {e}") from e

        for name, fn in (("config", config), ("deprecations", deprecations), ("is_enabled", is_enabled)):
            if fn is not None and not callable(fn):
                raise InvalidPluginError(self._id, self._path, f"option {name} must be callable")
        self._config_schema_provider = config
        self._deprecations_provider = deprecations
        self._is_enabled = is_enabled

    def __repr__(self) -> str:
        return f"PluginSpec(id={self._id!r}, path={self._path!r})"

    # ---- identity ----
    def get_pack(self) -> Any:
        return self._pack

    def get_id(self) -> str:
        return self._id

    def get_path(self) -> str:
        return self._path

    def get_version(self) -> str:
        return self._version

    def get_expected_host_version(self) -> str:
        return self._host_version

    def get_config_prefix(self) -> str:
        return self._config_prefix

    def get_config_schema_provider(self) -> Optional[Callable[..., Any]]:
        return self._config_schema_provider

    def get_deprecations_provider(self) -> Optional[Callable[..., Any]]:
        return self._deprecations_provider

    # ---- evaluation ----
    def is_version_compatible(self, actual_host_version: str) -> bool:
        return is_version_compatible(self._host_version, actual_host_version)

    def read_config_value(self, config: Any, key: str) -> Any:
        return config.get(split_key(self._config_prefix) + split_key(key))

    def is_enabled(self, config: Any) -> Any:
        if config is None or not callable(getattr(config, "get", None)) or not callable(getattr(config, "has", None)):
            raise TypeError("PluginSpec.is_enabled() must be called with a config service")
        if self._is_enabled is not None:
            return self._is_enabled(config)
        return bool(self.read_config_value(config, "enabled"))

    async def extend_config(self, config: Any, settings: Any, log_deprecation: LogDeprecation) -> None:
        await extend_config_service(self, config, settings, log_deprecation)

    def disable_config(self, config: Any) -> None:
        disable_config_extension(self, config)
