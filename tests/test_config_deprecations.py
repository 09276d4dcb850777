from __future__ import annotations

from pluginhost.core.config.deprecations import create_transform, rename, transform_deprecations, unused


def test_rename_moves_value_and_logs():
    logged = []
    out = create_transform([rename("old.key", "new.key")])({"old": {"key": 1}, "keep": True}, logged.append)
    assert out == {"new": {"key": 1}, "keep": True}
    assert logged == ['Config key "old.key" is deprecated. It has been replaced with "new.key"']


def test_unused_drops_value_and_logs():
    logged = []
    out = create_transform([unused("legacy")])({"legacy": "x", "a": 1}, logged.append)
    assert out == {"a": 1}
    assert logged == ["legacy is deprecated and is no longer used"]


def test_missing_keys_are_left_alone():
    logged = []
    out = create_transform([rename("a", "b"), unused("c")])({"z": 1}, logged.append)
    assert out == {"z": 1}
    assert logged == []


def test_transform_never_mutates_input():
    settings = {"plugins": {"scanDirs": ["/opt/p"]}}
    out = transform_deprecations(settings)
    assert settings == {"plugins": {"scanDirs": ["/opt/p"]}}
    assert out == {"plugins": {"scan_dirs": ["/opt/p"]}}


def test_core_deprecations():
    logged = []
    out = transform_deprecations({"plugins": {"initialize": False, "paths": ["/p"]}}, logged.append)
    assert out == {"plugins": {"paths": ["/p"]}}
    assert logged == ["plugins.initialize is deprecated and is no longer used"]


def test_none_settings_become_empty_dict():
    assert transform_deprecations(None) == {}
