from __future__ import annotations

"""
Plugin spec discovery pipeline.

WHY THIS FILE EXISTS:
This is the single public entry point for discovering plugins. It ensures:
- the config object is built (or adopted) exactly once per run
- duplicate discovery results are dropped before packs are created
- no two specs share an id before any config is touched
- every spec extends the config before any enablement is decided, and every
  enablement is decided before disabled specs are rolled back

Stages:
  config source -> locate -> distinct -> synthesize packs -> (error channels)
                                                          -> collect specs -> conflict check
  -> extend all (barrier) -> classify all (barrier) -> roll back disabled -> channels
"""

import asyncio
import copy
import os
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, AsyncIterable, AsyncIterator, Callable, Dict, Hashable, List, Optional

from pluginhost.core.config.deprecations import transform_deprecations
from pluginhost.core.config.service import Config
from pluginhost.core.errors import (
    DiscoveryCancelledError,
    DuplicatePluginIdError,
    is_invalid_directory_error,
    is_invalid_pack_error,
    is_unhandled_error,
)
from pluginhost.core.plugins.locator import FilesystemPackageLocator
from pluginhost.core.plugins.models import (
    ClassifiedSpec,
    Deprecation,
    ExtendedSpec,
    FindResult,
    FoundError,
    FoundPack,
    FoundPackageJson,
    PackageJson,
)
from pluginhost.core.plugins.pack import create_pack, synthesize_packs
from pluginhost.core.plugins.streams import Channel, distinct, maybe_await, merge


def distinct_key_for_find_result(result: Any) -> Hashable:
    # errors are distinct by their message
    if isinstance(result, FoundError):
        return str(result.error)
    # package.json results are distinct by their real absolute directory
    if isinstance(result, FoundPackageJson):
        return os.path.realpath(result.package_json.directory_path)
    # nothing else is expected here; if it shows up it is never deduplicated
    return object()


class ConfigSource:
    """Adopts the caller's config or builds one from settings, at most once."""

    def __init__(self, settings: Dict[str, Any], config: Optional[Config] = None, *, logger: Any = None):
        self.settings = settings
        self.logger = logger
        self._config = config
        self._future: Optional[asyncio.Future] = None

    async def get(self) -> Config:
        if self._future is None:
            self._future = asyncio.ensure_future(self._build())
        return await asyncio.shield(self._future)

    async def _build(self) -> Config:
        if self._config is not None:
            return self._config
        notices: List[str] = []
        settings = transform_deprecations(self.settings, notices.append)
        if self.logger:
            for message in notices:
                self.logger.warning(message)
        return Config.with_default_schema(settings, logger=self.logger)


def locate_package_jsons(config: Config, locator: Any) -> AsyncIterator[FindResult]:
    return merge(
        *[locator.package_json_at_path(p) for p in config.get("plugins.paths")],
        *[locator.package_jsons_in_directory(d) for d in config.get("plugins.scan_dirs")],
    )


def collect_specs(packs: List[Any]) -> List[Any]:
    specs: List[Any] = []
    for pack in packs:
        specs.extend(pack.get_plugin_specs())
    return specs


def group_specs_by_id(specs: List[Any]) -> "OrderedDict[str, List[Any]]":
    by_id: "OrderedDict[str, List[Any]]" = OrderedDict()
    for spec in specs:
        by_id.setdefault(spec.get_id(), []).append(spec)
    return by_id


def assert_no_conflicts(specs: List[Any]) -> List[Any]:
    conflicts = [
        (plugin_id, [s.get_path() for s in group])
        for plugin_id, group in group_specs_by_id(specs).items()
        if len(group) > 1
    ]
    if conflicts:
        raise DuplicatePluginIdError(conflicts)
    return specs


def rollback_extensions(specs: List[Any], config: Any) -> None:
    """Remove whatever `specs` registered (schema or disabled stub) so `config` is back to its pre-run keys."""
    for spec in reversed(specs):
        prefix = spec.get_config_prefix()
        if config.get_schema(prefix) is not None:
            config.remove_schema(prefix)


async def extend_config_with_specs(specs: List[Any], config: Any, settings: Dict[str, Any]) -> List[ExtendedSpec]:
    """
    Extend `config` with every spec concurrently. Returns only after every extension
    has settled; if any failed (or the stage is cancelled) the successful ones are
    rolled back before the first error is raised.
    """
    extended: List[Any] = []

    async def _extend(spec: Any) -> ExtendedSpec:
        deprecations: List[Deprecation] = []

        def log_deprecation(message: str) -> None:
            deprecations.append(Deprecation(spec=spec, message=str(message)))

        await maybe_await(spec.extend_config(config, settings, log_deprecation))
        extended.append(spec)
        return ExtendedSpec(spec=spec, deprecations=deprecations)

    try:
        results = await asyncio.gather(*(_extend(spec) for spec in specs), return_exceptions=True)
    except BaseException:
        rollback_extensions(extended, config)
        raise
    errors = [r for r in results if isinstance(r, BaseException)]
    if errors:
        rollback_extensions(extended, config)
        raise errors[0]
    return list(results)


async def classify_specs(extended: List[ExtendedSpec], config: Any) -> List[ClassifiedSpec]:
    host_version = config.get("pkg.version")
    out: List[ClassifiedSpec] = []
    for item in extended:
        spec = item.spec
        is_right_version = bool(spec.is_version_compatible(host_version))
        enabled = is_right_version and bool(await maybe_await(spec.is_enabled(config)))
        out.append(
            ClassifiedSpec(
                config=config,
                spec=spec,
                deprecations=list(item.deprecations),
                enabled_specs=[spec] if enabled else [],
                disabled_specs=[] if enabled else [spec],
                invalid_version_specs=[] if is_right_version else [spec],
            )
        )
    return out


async def disable_rejected_specs(classified: List[ClassifiedSpec], config: Any) -> List[ClassifiedSpec]:
    for result in classified:
        for spec in result.disabled_specs:
            await maybe_await(spec.disable_config(config))
    return classified


@dataclass
class FindPluginSpecsResult:
    package_jsons: List[PackageJson] = field(default_factory=list)
    packs: List[Any] = field(default_factory=list)
    invalid_directory_errors: List[BaseException] = field(default_factory=list)
    invalid_pack_errors: List[BaseException] = field(default_factory=list)
    other_errors: List[BaseException] = field(default_factory=list)
    deprecations: List[Deprecation] = field(default_factory=list)
    extended_config: Optional[Config] = None
    specs: List[Any] = field(default_factory=list)
    disabled_specs: List[Any] = field(default_factory=list)
    invalid_version_specs: List[Any] = field(default_factory=list)


class PluginSpecFinder:
    """
    Output channels of one discovery run.

    Iterating any channel starts the run (once). Channels replay, so consumers may
    subscribe to any subset in any order.
    """

    def __init__(
        self,
        settings: Optional[Dict[str, Any]] = None,
        config: Optional[Config] = None,
        *,
        locator: Any = None,
        pack_factory: Optional[Callable[[PackageJson], Any]] = None,
        logger: Any = None,
    ):
        self.settings = copy.deepcopy(settings or {})
        self.logger = logger
        self.locator = locator or FilesystemPackageLocator()
        self.pack_factory = pack_factory or create_pack
        self.config_source = ConfigSource(self.settings, config, logger=logger)
        self._task: Optional[asyncio.Future] = None
        self._stage = "config"

        # discovery channels
        self.package_jsons: Channel[PackageJson] = self._channel("package_jsons")
        self.packs: Channel[Any] = self._channel("packs")
        self.invalid_directory_errors: Channel[BaseException] = self._channel("invalid_directory_errors")
        self.invalid_pack_errors: Channel[BaseException] = self._channel("invalid_pack_errors")
        self.other_errors: Channel[BaseException] = self._channel("other_errors")
        # config-derived channels
        self.deprecations: Channel[Deprecation] = self._channel("deprecations")
        self.extended_config: Channel[Config] = self._channel("extended_config")
        self.specs: Channel[Any] = self._channel("specs")
        self.disabled_specs: Channel[Any] = self._channel("disabled_specs")
        self.invalid_version_specs: Channel[Any] = self._channel("invalid_version_specs")

    def _channel(self, name: str) -> Channel:
        return Channel(name, on_subscribe=self.start)

    @property
    def discovery_channels(self) -> List[Channel]:
        return [self.package_jsons, self.packs, self.invalid_directory_errors, self.invalid_pack_errors, self.other_errors]

    @property
    def config_channels(self) -> List[Channel]:
        return [self.deprecations, self.extended_config, self.specs, self.disabled_specs, self.invalid_version_specs]

    # ---------- public API ----------
    def start(self) -> asyncio.Future:
        if self._task is None:
            self._task = asyncio.ensure_future(self._run())
        elif self._task.cancelled():
            # cancelled before its first step, so _run never got to fail the channels
            self._fail(self._open_channels(), DiscoveryCancelledError(self._stage), stage=self._stage)
        return self._task

    async def wait(self) -> None:
        task = self.start()
        if task.done():
            if task.cancelled():
                raise DiscoveryCancelledError(self._stage)
            task.result()
            return
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled():
                raise DiscoveryCancelledError(self._stage) from None
            raise

    async def collect(self) -> FindPluginSpecsResult:
        """Snapshot every channel. Raises if the run failed fatally."""
        await self.wait()
        return FindPluginSpecsResult(
            package_jsons=await self.package_jsons.collect(),
            packs=await self.packs.collect(),
            invalid_directory_errors=await self.invalid_directory_errors.collect(),
            invalid_pack_errors=await self.invalid_pack_errors.collect(),
            other_errors=await self.other_errors.collect(),
            deprecations=await self.deprecations.collect(),
            extended_config=await self.extended_config.last(),
            specs=await self.specs.collect(),
            disabled_specs=await self.disabled_specs.collect(),
            invalid_version_specs=await self.invalid_version_specs.collect(),
        )

    # ---------- pipeline ----------
    async def _run(self) -> None:
        try:
            await self._run_stages()
        except BaseException as e:
            # cancellation or interpreter interrupt: nobody may wait on an open channel forever
            cause = None if isinstance(e, asyncio.CancelledError) else e
            self._fail(self._open_channels(), DiscoveryCancelledError(self._stage, cause), stage=self._stage)
            raise

    async def _run_stages(self) -> None:
        self._stage = "config"
        try:
            config = await self.config_source.get()
        except Exception as e:  # noqa: BLE001
            self._fail(self.discovery_channels + self.config_channels, e, stage="config")
            return

        self._stage = "discover"
        try:
            packs = await self._discover(config)
        except Exception as e:  # noqa: BLE001
            self._fail(self.discovery_channels + self.config_channels, e, stage="discover")
            return
        for ch in self.discovery_channels:
            ch.close()

        self._stage = "extend"
        try:
            classified = await self._extend_and_resolve(config, packs)
        except Exception as e:  # noqa: BLE001
            self._fail(self.config_channels, e, stage="extend")
            return
        self._publish(config, classified)

    async def _discover(self, config: Config) -> List[Any]:
        packs: List[Any] = []
        found = distinct(locate_package_jsons(config, self.locator), distinct_key_for_find_result)
        async for result in synthesize_packs(self._tap_package_jsons(found), self.pack_factory):
            if isinstance(result, FoundPack):
                packs.append(result.pack)
                self.packs.send(result.pack)
            elif isinstance(result, FoundError):
                self._route_error(result.error)
        if self.logger:
            self.logger.info(f"Plugin discovery: {len(packs)} pack(s) found")
        return packs

    async def _tap_package_jsons(self, results: AsyncIterable[Any]) -> AsyncIterator[Any]:
        async for result in results:
            if isinstance(result, FoundPackageJson):
                self.package_jsons.send(result.package_json)
            yield result

    def _route_error(self, error: BaseException) -> None:
        if is_invalid_directory_error(error):
            self.invalid_directory_errors.send(error)
        elif is_invalid_pack_error(error):
            self.invalid_pack_errors.send(error)
        elif is_unhandled_error(error):
            self.other_errors.send(error)
        if self.logger:
            self.logger.warning(f"Plugin discovery error: {error}")

    async def _extend_and_resolve(self, config: Config, packs: List[Any]) -> List[ClassifiedSpec]:
        specs = assert_no_conflicts(collect_specs(packs))
        extended = await extend_config_with_specs(specs, config, self.settings)
        try:
            classified = await classify_specs(extended, config)
            return await disable_rejected_specs(classified, config)
        except BaseException:
            rollback_extensions([item.spec for item in extended], config)
            raise

    def _publish(self, config: Config, classified: List[ClassifiedSpec]) -> None:
        for result in classified:
            for deprecation in result.deprecations:
                if self.logger:
                    self.logger.warning(f"[{deprecation.spec.get_id()}] {deprecation.message}")
                self.deprecations.send(deprecation)
            for spec in result.enabled_specs:
                self.specs.send(spec)
            for spec in result.disabled_specs:
                self.disabled_specs.send(spec)
            for spec in result.invalid_version_specs:
                self.invalid_version_specs.send(spec)
        self.extended_config.send(config)
        for ch in self.config_channels:
            ch.close()
        if self.logger:
            enabled = sum(len(r.enabled_specs) for r in classified)
            incompatible = sum(len(r.invalid_version_specs) for r in classified)
            self.logger.info(
                f"Plugin discovery: {enabled} enabled, {len(classified) - enabled} disabled, {incompatible} incompatible"
            )

    def _open_channels(self) -> List[Channel]:
        return [ch for ch in self.discovery_channels + self.config_channels if not ch.closed]

    def _fail(self, channels: List[Channel], error: BaseException, *, stage: str) -> None:
        if not channels:
            return
        if self.logger:
            self.logger.error(f"Plugin discovery failed ({stage}): {error}")
        for ch in channels:
            ch.fail(error)


def find_plugin_specs(
    settings: Optional[Dict[str, Any]] = None,
    config: Optional[Config] = None,
    *,
    locator: Any = None,
    pack_factory: Optional[Callable[[PackageJson], Any]] = None,
    logger: Any = None,
) -> PluginSpecFinder:
    """
    Create the discovery channels for `settings`.

    When `config` is given it is mutated in place: every discovered spec extends it,
    then disabled specs are rolled back. The same object is emitted on
    `extended_config`.
    """
    return PluginSpecFinder(settings, config, locator=locator, pack_factory=pack_factory, logger=logger)
