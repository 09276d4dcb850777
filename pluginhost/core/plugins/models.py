from __future__ import annotations

"""
Plugin discovery data shapes.

WHY THIS FILE EXISTS:
Every stage of discovery hands results to the next one as tagged variants
(`FoundPackageJson` / `FoundPack` / `FoundError`) so consumers can match on the
variant type instead of probing attributes.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class HostRequirement(BaseModel):
    model_config = ConfigDict(extra="allow")

    version: Optional[str] = None


class PackageManifest(BaseModel):
    """
    package.json schema. Only the fields discovery relies on are validated;
    everything else is kept for the plugin's own use.
    """

    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    main: str = Field(default="index.py", min_length=1)
    host: HostRequirement = Field(default_factory=HostRequirement)

    @field_validator("main")
    @classmethod
    def _main_is_relative(cls, v: str) -> str:
        v = str(v or "").strip()
        if v.startswith("/") or v.startswith("\\") or ".." in v.replace("\\", "/").split("/"):
            raise ValueError("main must be a path inside the plugin directory")
        return v


@dataclass(frozen=True)
class PackageJson:
    directory_path: str
    contents: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FoundPackageJson:
    package_json: PackageJson


@dataclass(frozen=True)
class FoundPack:
    pack: Any  # PluginPack


@dataclass(frozen=True)
class FoundError:
    error: BaseException


FindResult = Union[FoundPackageJson, FoundError]
PackResult = Union[FoundPack, FoundError]


@dataclass(frozen=True)
class Deprecation:
    spec: Any  # PluginSpec
    message: str


@dataclass(frozen=True)
class ExtendedSpec:
    spec: Any
    deprecations: List[Deprecation] = field(default_factory=list)


@dataclass(frozen=True)
class ClassifiedSpec:
    config: Any
    spec: Any
    deprecations: List[Deprecation]
    enabled_specs: List[Any]
    disabled_specs: List[Any]
    invalid_version_specs: List[Any]

    @property
    def enabled(self) -> bool:
        return bool(self.enabled_specs)

    @property
    def is_right_version(self) -> bool:
        return not self.invalid_version_specs
