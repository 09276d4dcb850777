from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Any, Dict, List, Optional

from pluginhost.core.config.io import load_settings_file
from pluginhost.core.config.keys import get_in, set_in
from pluginhost.core.errors import PluginHostError
from pluginhost.core.logger import setup_logging
from pluginhost.core.plugins import find_plugin_specs
from pluginhost.core.plugins.cli import deprecation_lines, error_lines, plugin_list_lines, plugin_show_payload
from pluginhost.core.redaction import redact


def build_settings(
    *,
    settings_file: Optional[str] = None,
    plugin_dirs: Optional[List[str]] = None,
    plugin_paths: Optional[List[str]] = None,
) -> Dict[str, Any]:
    settings: Dict[str, Any] = load_settings_file(settings_file) if settings_file else {}
    if plugin_dirs:
        current = list(get_in(settings, "plugins.scan_dirs") or [])
        set_in(settings, "plugins.scan_dirs", current + [os.path.abspath(d) for d in plugin_dirs])
    if plugin_paths:
        current = list(get_in(settings, "plugins.paths") or [])
        set_in(settings, "plugins.paths", current + [os.path.abspath(p) for p in plugin_paths])
    return settings


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Discover plugins and show which ones end up enabled.")
    ap.add_argument("--settings", help="JSON settings file.")
    ap.add_argument("--plugin-dir", action="append", default=[], help="Directory to scan for plugin packs (repeatable).")
    ap.add_argument("--plugin-path", action="append", default=[], help="Path of a single plugin pack (repeatable).")
    ap.add_argument("--show-config", action="store_true", help="Print the extended config as JSON.")
    ap.add_argument("--show", metavar="PLUGIN_ID", default=None, help="Print one plugin's state and redacted config as JSON.")
    ap.add_argument("--log-dir", default=None, help="Also write logs to this directory.")
    ap.add_argument("--verbose", action="store_true", help="Debug logging.")
    args = ap.parse_args(argv)

    try:
        settings = build_settings(settings_file=args.settings, plugin_dirs=args.plugin_dir, plugin_paths=args.plugin_path)
    except PluginHostError as e:
        print(e.user_message, file=sys.stderr)
        return 1

    logger = setup_logging(args.log_dir, verbose=args.verbose or bool(get_in(settings, "logging.verbose")))
    try:
        result = asyncio.run(find_plugin_specs(settings, logger=logger).collect())
    except PluginHostError as e:
        print(e.user_message, file=sys.stderr)
        return 1

    if args.show:
        payload = plugin_show_payload(result, args.show)
        print(json.dumps(payload, indent=2, sort_keys=True))
        return 0 if payload.get("ok") else 1

    for line in plugin_list_lines(result):
        print(line)
    errors = error_lines(result)
    if errors:
        print("")
        print("errors:")
        for line in errors:
            print(line)
    deprecations = deprecation_lines(result)
    if deprecations:
        print("")
        print("deprecations:")
        for line in deprecations:
            print(line)
    if args.show_config and result.extended_config is not None:
        print("")
        print(json.dumps(redact(result.extended_config.to_dict()), indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
