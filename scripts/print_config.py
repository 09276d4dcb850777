from __future__ import annotations

import argparse
import asyncio
import json

from pluginhost.core.config.io import load_settings_file
from pluginhost.core.plugins import find_plugin_specs
from pluginhost.core.redaction import redact


async def _extended_config(settings):  # noqa: ANN001
    finder = find_plugin_specs(settings)
    return await finder.extended_config.last()


def main() -> None:
    ap = argparse.ArgumentParser(description="Print the config after every discovered plugin extended it.")
    ap.add_argument("settings", nargs="?", default=None, help="JSON settings file.")
    args = ap.parse_args()

    settings = load_settings_file(args.settings) if args.settings else {}
    config = asyncio.run(_extended_config(settings))
    print(json.dumps(redact(config.to_dict()), indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
