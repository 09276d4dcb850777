from __future__ import annotations

"""
Per-spec config extension and rollback.

extend: settings subtree at the spec's prefix -> spec deprecations -> spec schema
        -> config.extend_schema(...)
disable: drop the spec's schema and leave a stub that pins `enabled` to False, so
         `<prefix>.enabled` stays readable for disabled plugins.
"""

import copy
from typing import Any, Callable, Dict, Type

from pydantic import BaseModel

from pluginhost.core.config.deprecations import Transform, create_transform, rename, unused
from pluginhost.core.config.keys import get_in, split_key
from pluginhost.core.config.models import PluginDefaultConfig, PluginDisabledStubConfig
from pluginhost.core.errors import InvalidPluginError
from pluginhost.core.plugins.streams import maybe_await

LogDeprecation = Callable[[str], None]

DEPRECATION_HELPERS: Dict[str, Callable[..., Any]] = {"rename": rename, "unused": unused}


async def get_transform(spec: Any) -> Transform:
    provider = spec.get_deprecations_provider()
    if provider is None:
        return create_transform([])
    rules = await maybe_await(provider(dict(DEPRECATION_HELPERS)))
    return create_transform(rules or [])


async def get_settings(spec: Any, settings: Any, log_deprecation: LogDeprecation) -> Any:
    raw = get_in(settings or {}, split_key(spec.get_config_prefix()))
    if raw is not None and not isinstance(raw, dict):
        # not an object: let schema validation report it
        return copy.deepcopy(raw)
    transform = await get_transform(spec)
    return transform(raw, log_deprecation)


async def get_schema(spec: Any) -> Type[BaseModel]:
    provider = spec.get_config_schema_provider()
    if provider is None:
        return PluginDefaultConfig
    schema = await maybe_await(provider())
    if schema is None:
        return PluginDefaultConfig
    if not (isinstance(schema, type) and issubclass(schema, BaseModel)):
        raise InvalidPluginError(spec.get_id(), spec.get_path(), "config provider must return a pydantic model class")
    if "enabled" not in schema.model_fields:
        raise InvalidPluginError(spec.get_id(), spec.get_path(), "config schema must define an `enabled` field")
    return schema


def get_stub_schema() -> Type[BaseModel]:
    return PluginDisabledStubConfig


async def extend_config_service(spec: Any, config: Any, settings: Any, log_deprecation: LogDeprecation) -> None:
    prefix = spec.get_config_prefix()
    raw_config = await get_settings(spec, settings, log_deprecation)
    schema = await get_schema(spec)
    config.extend_schema(schema, raw_config, prefix)


def disable_config_extension(spec: Any, config: Any) -> None:
    prefix = spec.get_config_prefix()
    config.remove_schema(prefix)
    config.extend_schema(get_stub_schema(), {"enabled": False}, prefix)
