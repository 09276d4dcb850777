from __future__ import annotations

import pytest
from pydantic import BaseModel, ConfigDict

from pluginhost import __version__
from pluginhost.core.config.models import PluginDefaultConfig
from pluginhost.core.config.service import Config
from pluginhost.core.errors import ConfigError


class ColorConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    enabled: bool = True
    color: str = "blue"


def test_default_schema_applies_defaults():
    cfg = Config.with_default_schema()
    assert cfg.get("pkg.version") == __version__
    assert cfg.get("plugins.paths") == []
    assert cfg.get("plugins.scan_dirs") == []
    assert cfg.get_schema_keys() == ["logging", "pkg", "plugins"]


def test_default_schema_reads_settings_and_ignores_plugin_sections():
    cfg = Config.with_default_schema({"plugins": {"scan_dirs": "/opt/plugins"}, "my_plugin": {"enabled": False}})
    assert cfg.get("plugins.scan_dirs") == ["/opt/plugins"]
    assert not cfg.has("my_plugin")


def test_default_schema_rejects_unknown_keys_in_core_sections():
    with pytest.raises(ConfigError):
        Config.with_default_schema({"plugins": {"scan_directories": []}})


def test_extend_schema_validates_and_stores(config):
    config.extend_schema(ColorConfig, {"color": "red"}, "paint")
    assert config.get("paint.color") == "red"
    assert config.get(["paint", "enabled"]) is True
    assert config.get("paint") == {"enabled": True, "color": "red"}


def test_extend_schema_rejects_invalid_settings(config):
    with pytest.raises(ConfigError) as ei:
        config.extend_schema(ColorConfig, {"colour": "red"}, "paint")
    assert "paint" in ei.value.user_message
    assert not config.has("paint")


def test_extend_schema_rejects_existing_and_overlapping_keys(config):
    config.extend_schema(ColorConfig, {}, "xpack.paint")
    with pytest.raises(ConfigError):
        config.extend_schema(ColorConfig, {}, "xpack.paint")
    with pytest.raises(ConfigError):
        config.extend_schema(ColorConfig, {}, "xpack")
    with pytest.raises(ConfigError):
        config.extend_schema(ColorConfig, {}, "xpack.paint.inner")
    config.extend_schema(ColorConfig, {}, "xpack.other")
    assert sorted(config.get("xpack")) == ["other", "paint"]


def test_extend_schema_requires_a_model_class(config):
    with pytest.raises(ConfigError):
        config.extend_schema({"enabled": True}, {}, "bad")  # type: ignore[arg-type]
    with pytest.raises(ConfigError):
        config.extend_schema(ColorConfig, {})


def test_remove_schema_drops_values(config):
    config.extend_schema(ColorConfig, {}, "xpack.paint")
    config.remove_schema("xpack.paint")
    assert not config.has("xpack.paint")
    assert not config.has("xpack")
    with pytest.raises(ConfigError):
        config.remove_schema("xpack.paint")


def test_get_unknown_key_raises(config):
    with pytest.raises(ConfigError) as ei:
        config.get("nope.enabled")
    assert "Unknown config key" in str(ei.value)
    assert config.has("pkg.version")
    assert not config.has("pkg.nope")


def test_get_returns_copies(config):
    paths = config.get("plugins.paths")
    paths.append("/tmp/x")
    assert config.get("plugins.paths") == []


def test_set_revalidates_through_owning_schema(config):
    config.extend_schema(PluginDefaultConfig, {}, "foo")
    config.set("foo.enabled", False)
    assert config.get("foo.enabled") is False
    with pytest.raises(ConfigError):
        config.set("foo.extra", 1)
    with pytest.raises(ConfigError):
        config.set("bar.enabled", True)
    assert config.get("foo.enabled") is False


def test_logger_receives_schema_changes(logger):
    cfg = Config.with_default_schema(logger=logger)
    cfg.extend_schema(ColorConfig, {}, "paint")
    cfg.remove_schema("paint")
    messages = [m for _lvl, m in logger.records]
    assert "Config schema extended at paint" in messages
    assert "Config schema removed at paint" in messages
