from __future__ import annotations

import importlib.util
import os
import sys
from types import ModuleType
from typing import Any, AsyncIterable, AsyncIterator, Callable, Dict, List, Optional

from pluginhost.core.errors import InvalidPackError
from pluginhost.core.plugins.models import FoundError, FoundPack, FoundPackageJson, PackageJson, PackResult
from pluginhost.core.plugins.spec import PluginSpec
from pluginhost.core.plugins.streams import maybe_await

DEFAULT_ENTRY = "index.py"


class PluginApi:
    """What a pack's provider receives: a factory for specs bound to that pack."""

    def __init__(self, pack: "PluginPack"):
        self._pack = pack

    def plugin(self, **options: Any) -> PluginSpec:
        return PluginSpec(self._pack, **options)


class PluginPack:
    def __init__(self, *, path: str, pkg: Dict[str, Any], provider: Callable[[PluginApi], Any]):
        self.path = str(path)
        self.pkg = dict(pkg or {})
        self._provider = provider
        self._specs: Optional[List[PluginSpec]] = None

    def __repr__(self) -> str:
        return f"PluginPack(path={self.path!r})"

    def get_path(self) -> str:
        return self.path

    def get_pkg(self) -> Dict[str, Any]:
        return dict(self.pkg)

    def get_plugin_specs(self) -> List[PluginSpec]:
        if self._specs is None:
            result = self._provider(PluginApi(self))
            if result is None:
                specs: List[Any] = []
            elif isinstance(result, (list, tuple)):
                specs = list(result)
            else:
                specs = [result]
            for spec in specs:
                if not isinstance(spec, PluginSpec):
                    raise InvalidPackError(self.path, "provider must only return PluginSpec objects created with api.plugin()")
            self._specs = specs
        return list(self._specs)


def _load_entry_module(entry_file: str, *, module_name: str) -> ModuleType:
    spec = importlib.util.spec_from_file_location(module_name, entry_file)
    if spec is None or spec.loader is None:
        raise ImportError(f"Could not load plugin module from {entry_file}")
    mod = importlib.util.module_from_spec(spec)
    # dataclasses and pydantic look the module up in sys.modules while executing it
    sys.modules[module_name] = mod
    try:
        spec.loader.exec_module(mod)
    except Exception:
        sys.modules.pop(module_name, None)
        raise
    return mod


def create_pack(package_json: PackageJson) -> PluginPack:
    path = package_json.directory_path
    contents = package_json.contents or {}
    entry_file = os.path.join(path, str(contents.get("main") or DEFAULT_ENTRY))
    if not os.path.isfile(entry_file):
        raise InvalidPackError(path, f"must have an entry file {os.path.basename(entry_file)}")

    name = str(contents.get("name") or os.path.basename(path)).replace("-", "_").replace(".", "_")
    module_name = f"pluginhost_plugin_{name}_{abs(hash(os.path.abspath(entry_file)))}"
    mod = _load_entry_module(entry_file, module_name=module_name)

    provider = getattr(mod, "provider", None)
    if not callable(provider):
        raise InvalidPackError(path, "must export a provider function")

    pack = PluginPack(path=path, pkg=contents, provider=provider)
    # build specs now so spec errors are reported against this pack
    pack.get_plugin_specs()
    return pack


async def synthesize_packs(
    results: AsyncIterable[Any],
    factory: Callable[[PackageJson], Any] = create_pack,
) -> AsyncIterator[PackResult]:
    async for result in results:
        if isinstance(result, FoundError):
            yield result
            continue
        if not isinstance(result, FoundPackageJson):
            yield FoundError(TypeError(f"a package.json result is required to create a pack, got {result!r}"))
            continue
        try:
            pack = await maybe_await(factory(result.package_json))
        except Exception as e:  # noqa: BLE001
            yield FoundError(e)
            continue
        yield FoundPack(pack)
