from __future__ import annotations

from typing import Dict, List, Literal, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pluginhost import __version__


class PkgConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    version: str = Field(default=__version__, min_length=1)


class PluginsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    paths: List[str] = Field(default_factory=list)
    scan_dirs: List[str] = Field(default_factory=list)

    @field_validator("paths", "scan_dirs", mode="before")
    @classmethod
    def _norm_paths(cls, v):  # noqa: ANN001
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    verbose: bool = False
    dest: str = "stdout"


DEFAULT_SCHEMA: Dict[str, Type[BaseModel]] = {
    "pkg": PkgConfig,
    "plugins": PluginsConfig,
    "logging": LoggingConfig,
}


class PluginDefaultConfig(BaseModel):
    """Schema used for a plugin that does not provide one."""

    model_config = ConfigDict(extra="forbid")
    enabled: bool = True


class PluginDisabledStubConfig(BaseModel):
    """Schema left behind at a disabled plugin's prefix."""

    model_config = ConfigDict(extra="allow")
    enabled: Literal[False] = False
