from __future__ import annotations

import json
import logging

import pytest

from pluginhost.core.plugins.cli import deprecation_lines, error_lines, plugin_list_lines, plugin_show_payload
from pluginhost.core.plugins.finder import FindPluginSpecsResult
from pluginhost.core.plugins.models import Deprecation

from .helpers.fakes import make_pack
from .helpers.plugin_tree import write_plugin


@pytest.fixture(autouse=True)
def _reset_pluginhost_logger():
    yield
    logging.getLogger("pluginhost").handlers.clear()


def _result(config):  # noqa: ANN001
    pack = make_pack(
        "/plugins/maps",
        {"id": "maps"},
        {"id": "legacy", "host_version": "6.0.0"},
        {"id": "off"},
        pkg={"name": "maps", "version": "1.0.0", "host": {"version": "7.2.0"}},
    )
    maps, legacy, off = pack.get_plugin_specs()
    return FindPluginSpecsResult(
        packs=[pack],
        extended_config=config,
        specs=[maps],
        disabled_specs=[legacy, off],
        invalid_version_specs=[legacy],
        invalid_pack_errors=[ValueError("PluginPack at \"/plugins/x\" must be a directory")],
        deprecations=[Deprecation(spec=maps, message="url is deprecated and is no longer used")],
    )


def test_plugin_list_lines(config):
    lines = plugin_list_lines(_result(config))
    assert lines[0] == "plugin_id | state | version | path"
    assert lines[1:] == [
        "legacy | incompatible | 1.0.0 | /plugins/maps",
        "maps | enabled | 1.0.0 | /plugins/maps",
        "off | disabled | 1.0.0 | /plugins/maps",
    ]


def test_error_and_deprecation_lines(config):
    result = _result(config)
    assert error_lines(result) == ['invalid_pack | PluginPack at "/plugins/x" must be a directory']
    assert deprecation_lines(result) == ["maps | url is deprecated and is no longer used"]


def test_plugin_show_payload(config):
    from pydantic import BaseModel

    class MapsConfig(BaseModel):
        enabled: bool = True
        token: str = "abc"

    config.extend_schema(MapsConfig, {}, "maps")
    payload = plugin_show_payload(_result(config), "maps")
    assert payload["ok"] is True
    assert payload["state"] == "enabled"
    assert payload["config"] == {"enabled": True, "token": "***REDACTED***"}
    assert payload["deprecations"] == ["url is deprecated and is no longer used"]

    missing = plugin_show_payload(_result(config), "nope")
    assert missing["ok"] is False


def test_main_lists_plugins(plugins_root, capsys):
    from app import main

    write_plugin(plugins_root, "alpha")
    write_plugin(
        plugins_root,
        "beta",
        pkg={"name": "beta", "version": "1.0.0", "host": {"version": "99.0.0"}},
    )
    (plugins_root / "broken").mkdir()

    rc = main(["--plugin-dir", str(plugins_root), "--show-config"])
    out = capsys.readouterr().out
    assert rc == 0
    assert "alpha | enabled | 1.0.0 |" in out
    assert "beta | incompatible | 1.0.0 |" in out
    assert "invalid_pack | " in out
    config_json = json.loads(out[out.index("{") :])
    assert config_json["alpha"] == {"enabled": True}
    assert config_json["beta"] == {"enabled": False}


def test_main_reports_fatal_errors(plugins_root, capsys):
    from app import main

    index = "def provider(api):\n    return api.plugin(id='same')\n"
    write_plugin(plugins_root, "one", index=index)
    write_plugin(plugins_root, "two", index=index)

    rc = main(["--plugin-dir", str(plugins_root)])
    err = capsys.readouterr().err
    assert rc == 1
    assert 'Multiple plugins found with the id "same"' in err


def test_main_reads_settings_file(plugins_root, tmp_path, capsys):
    from app import main

    write_plugin(plugins_root, "alpha")
    settings = tmp_path / "settings.json"
    settings.write_text(json.dumps({"plugins": {"scanDirs": [str(plugins_root)]}, "alpha": {"enabled": False}}), encoding="utf-8")

    rc = main(["--settings", str(settings)])
    out = capsys.readouterr().out
    assert rc == 0
    assert "alpha | disabled | 1.0.0 |" in out


def test_main_shows_one_plugin(plugins_root, capsys):
    from app import main

    index = """
    from pydantic import BaseModel


    class AlphaConfig(BaseModel):
        enabled: bool = True
        api_token: str = "s3cret"


    def provider(api):
        return api.plugin(config=lambda: AlphaConfig)
    """
    write_plugin(plugins_root, "alpha", index=index)

    rc = main(["--plugin-dir", str(plugins_root), "--show", "alpha"])
    payload = json.loads(capsys.readouterr().out)
    assert rc == 0
    assert payload["state"] == "enabled"
    assert payload["config"] == {"enabled": True, "api_token": "***REDACTED***"}

    rc = main(["--plugin-dir", str(plugins_root), "--show", "nope"])
    assert rc == 1
    assert json.loads(capsys.readouterr().out)["ok"] is False
