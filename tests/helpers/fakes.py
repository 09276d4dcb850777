from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from pluginhost.core.errors import InvalidPackError
from pluginhost.core.plugins.models import FoundPackageJson, PackageJson
from pluginhost.core.plugins.pack import PluginPack
from pluginhost.core.plugins.spec import PluginSpec


def found(path: str, name: Optional[str] = None, **contents: Any) -> FoundPackageJson:
    pkg = {"name": name or path.rstrip("/").split("/")[-1], "version": "1.0.0"}
    pkg.update(contents)
    return FoundPackageJson(PackageJson(directory_path=path, contents=pkg))


class FakeLocator:
    """
    Scripted locator: results per configured path / scan dir, yielded with a
    scheduling point between items so merged sources interleave.
    """

    def __init__(self, *, paths: Optional[Dict[str, List[Any]]] = None, dirs: Optional[Dict[str, List[Any]]] = None):
        self.paths = paths or {}
        self.dirs = dirs or {}
        self.calls: List[tuple] = []

    async def _emit(self, results: List[Any]):
        for r in results:
            await asyncio.sleep(0)
            yield r

    def package_json_at_path(self, path: str):
        self.calls.append(("path", path))
        return self._emit(list(self.paths.get(path, [])))

    def package_jsons_in_directory(self, path: str):
        self.calls.append(("dir", path))
        return self._emit(list(self.dirs.get(path, [])))


def make_pack(path: str, *spec_options: Dict[str, Any], pkg: Optional[Dict[str, Any]] = None) -> PluginPack:
    pkg = pkg or {"name": path.rstrip("/").split("/")[-1], "version": "1.0.0"}
    return PluginPack(path=path, pkg=pkg, provider=lambda api: [api.plugin(**opts) for opts in spec_options])


class FakePackFactory:
    def __init__(self, packs: Dict[str, PluginPack]):
        self.packs = packs
        self.created: List[str] = []

    def __call__(self, package_json: PackageJson) -> PluginPack:
        self.created.append(package_json.directory_path)
        pack = self.packs.get(package_json.directory_path)
        if pack is None:
            raise InvalidPackError(package_json.directory_path, "is not a known test pack")
        return pack


class RecordingSpec(PluginSpec):
    """PluginSpec that records the order of config hooks into a shared list."""

    def __init__(self, pack: Any, *, events: List[tuple], **options: Any):
        super().__init__(pack, **options)
        self.events = events

    async def extend_config(self, config, settings, log_deprecation):  # noqa: ANN001
        await super().extend_config(config, settings, log_deprecation)
        self.events.append(("extend", self.get_id()))

    def is_enabled(self, config):  # noqa: ANN001
        self.events.append(("is_enabled", self.get_id()))
        return super().is_enabled(config)

    def disable_config(self, config):  # noqa: ANN001
        self.events.append(("disable", self.get_id()))
        super().disable_config(config)


def make_recording_pack(path: str, events: List[tuple], *spec_options: Dict[str, Any]) -> PluginPack:
    pkg = {"name": path.rstrip("/").split("/")[-1], "version": "1.0.0"}
    pack = PluginPack(path=path, pkg=pkg, provider=lambda api: [])
    specs = [RecordingSpec(pack, events=events, **opts) for opts in spec_options]
    pack._specs = specs
    return pack
