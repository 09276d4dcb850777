from __future__ import annotations

"""
CLI rendering helpers for plugin discovery results.

WHY THIS FILE EXISTS:
app.py stays a thin argparse wrapper; these helpers provide a stable, testable
rendering surface for a finished discovery run.
"""

from typing import Any, Dict, List, Optional

from pluginhost.core.plugins.finder import FindPluginSpecsResult
from pluginhost.core.redaction import redact


def _state_of(spec: Any, result: FindPluginSpecsResult) -> str:
    if any(s is spec for s in result.invalid_version_specs):
        return "incompatible"
    if any(s is spec for s in result.specs):
        return "enabled"
    return "disabled"


def plugin_list_lines(result: FindPluginSpecsResult) -> List[str]:
    """
    Columns: plugin_id | state | version | path
    """
    lines = ["plugin_id | state | version | path"]
    all_specs = list(result.specs) + [s for s in result.disabled_specs]
    for spec in sorted(all_specs, key=lambda s: s.get_id()):
        lines.append(f"{spec.get_id()} | {_state_of(spec, result)} | {spec.get_version()} | {spec.get_path()}")
    return lines


def error_lines(result: FindPluginSpecsResult) -> List[str]:
    lines: List[str] = []
    for kind, errors in (
        ("invalid_directory", result.invalid_directory_errors),
        ("invalid_pack", result.invalid_pack_errors),
        ("other", result.other_errors),
    ):
        for err in errors:
            lines.append(f"{kind} | {err}")
    return lines


def deprecation_lines(result: FindPluginSpecsResult) -> List[str]:
    return [f"{d.spec.get_id()} | {d.message}" for d in result.deprecations]


def plugin_show_payload(result: FindPluginSpecsResult, plugin_id: str) -> Dict[str, Any]:
    spec: Optional[Any] = None
    for s in list(result.specs) + list(result.disabled_specs):
        if s.get_id() == str(plugin_id):
            spec = s
            break
    if spec is None:
        return {"ok": False, "error": f"plugin {plugin_id} not found"}

    config_value: Any = None
    if result.extended_config is not None and result.extended_config.has(spec.get_config_prefix()):
        config_value = result.extended_config.get(spec.get_config_prefix())
    return {
        "ok": True,
        "plugin_id": spec.get_id(),
        "state": _state_of(spec, result),
        "version": spec.get_version(),
        "expected_host_version": spec.get_expected_host_version(),
        "path": spec.get_path(),
        "config_prefix": spec.get_config_prefix(),
        "config": redact(config_value),
        "deprecations": [d.message for d in result.deprecations if d.spec is spec],
    }
