from __future__ import annotations

"""
Config service: the one mutable, shared configuration object of a discovery run.

WHY THIS FILE EXISTS:
Plugins contribute configuration by registering a pydantic schema at a dotted
prefix ("my_plugin", "xpack.monitoring", ...). The service validates the matching
settings subtree against that schema and stores the validated values. Disabled
plugins are rolled back by removing their schema again.
"""

import copy
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from pluginhost.core.config.keys import Key, get_in, has_in, join_key, set_in, unset_in
from pluginhost.core.config.models import DEFAULT_SCHEMA
from pluginhost.core.errors import ConfigError


class Config:
    def __init__(self, *, logger: Any = None):
        self.logger = logger
        self._schemas: Dict[str, Type[BaseModel]] = {}
        self._values: Dict[str, Any] = {}

    @classmethod
    def with_default_schema(cls, settings: Optional[Dict[str, Any]] = None, *, logger: Any = None) -> "Config":
        config = cls(logger=logger)
        settings = settings or {}
        for key, schema in DEFAULT_SCHEMA.items():
            config.extend_schema(schema, get_in(settings, key), key)
        return config

    # ---------- schema ----------
    def extend_schema(self, schema: Type[BaseModel], settings: Any = None, key: Optional[Key] = None) -> None:
        if key is None:
            raise ConfigError("A config key is required to extend the schema.")
        k = join_key(key)
        if not (isinstance(schema, type) and issubclass(schema, BaseModel)):
            raise ConfigError(f'Config schema for "{k}" must be a pydantic model class.', key=k)
        existing = self._overlapping_key(k)
        if existing is not None:
            raise ConfigError(f'Config schema already has key "{existing}"', key=k)

        value = self._validate(schema, k, settings)
        self._schemas[k] = schema
        set_in(self._values, k, value)
        if self.logger:
            self.logger.debug(f"Config schema extended at {k}")

    def remove_schema(self, key: Key) -> None:
        k = join_key(key)
        if k not in self._schemas:
            raise ConfigError(f'Unknown schema key: "{k}"', key=k)
        del self._schemas[k]
        unset_in(self._values, k)
        if self.logger:
            self.logger.debug(f"Config schema removed at {k}")

    def get_schema_keys(self) -> List[str]:
        return sorted(self._schemas)

    def get_schema(self, key: Key) -> Optional[Type[BaseModel]]:
        return self._schemas.get(join_key(key))

    # ---------- values ----------
    def has(self, key: Key) -> bool:
        k = join_key(key)
        if self._owner_key(k) is not None:
            return has_in(self._values, k)
        return any(existing.startswith(k + ".") for existing in self._schemas)

    def get(self, key: Key) -> Any:
        k = join_key(key)
        if not self.has(k):
            raise ConfigError(f'Unknown config key: "{k}"', key=k)
        return copy.deepcopy(get_in(self._values, k))

    def set(self, key: Key, value: Any) -> None:
        k = join_key(key)
        owner = self._owner_key(k)
        if owner is None:
            raise ConfigError(f'Unknown config key: "{k}"', key=k)
        if k == owner:
            candidate = value
        else:
            candidate = copy.deepcopy(get_in(self._values, owner)) or {}
            set_in(candidate, k[len(owner) + 1 :], value)
        set_in(self._values, owner, self._validate(self._schemas[owner], owner, candidate))

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._values)

    # ---------- helpers ----------
    def _owner_key(self, k: str) -> Optional[str]:
        for existing in self._schemas:
            if k == existing or k.startswith(existing + "."):
                return existing
        return None

    def _overlapping_key(self, k: str) -> Optional[str]:
        for existing in self._schemas:
            if existing == k or existing.startswith(k + ".") or k.startswith(existing + "."):
                return existing
        return None

    @staticmethod
    def _validate(schema: Type[BaseModel], key: str, settings: Any) -> Dict[str, Any]:
        try:
            model = schema.model_validate(settings if settings is not None else {})
        except ValidationError as e:
            raise ConfigError(f'Invalid config for "{key}": {e}', key=key) from e
        return model.model_dump()
