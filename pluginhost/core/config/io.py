from __future__ import annotations

import json
import os
from typing import Any, Dict

from pluginhost.core.errors import ConfigError


def load_settings_file(path: str) -> Dict[str, Any]:
    """
    Read raw settings from a JSON file. Unlike plugin manifests, a broken settings
    file is fatal: discovery must not run against half-read settings.
    """
    if not os.path.isfile(path):
        raise ConfigError(f"Settings file {path} does not exist.", path=path, reason="missing")
    try:
        with open(path, "r", encoding="utf-8") as f:
            obj = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(
            f"Settings file {path} is not valid JSON (line {e.lineno}, column {e.colno}): {e.msg}",
            path=path,
            reason="corrupt_json",
        ) from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Unable to read settings file {path}: {e}", path=path, reason="unreadable") from e
    if not isinstance(obj, dict):
        raise ConfigError(
            f"Settings file {path} must contain a JSON object, got {type(obj).__name__}.",
            path=path,
            reason="not_object",
        )
    return obj
