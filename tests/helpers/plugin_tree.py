from __future__ import annotations

import json
import os
import textwrap
from typing import Any, Dict, Optional


def write_plugin(
    root: Any,
    dirname: str,
    *,
    pkg: Optional[Dict[str, Any]] = None,
    index: Optional[str] = None,
    entry: str = "index.py",
) -> str:
    """
    Create <root>/<dirname>/ with a package.json and an entry module.
    pkg=None writes a default manifest; index=None writes a single default spec.
    """
    plugin_dir = os.path.join(str(root), dirname)
    os.makedirs(plugin_dir, exist_ok=True)
    manifest = pkg if pkg is not None else {"name": dirname, "version": "1.0.0", "host": {"version": "*"}}
    with open(os.path.join(plugin_dir, "package.json"), "w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2)
        f.write("\n")
    source = index if index is not None else "def provider(api):\n    return api.plugin()\n"
    with open(os.path.join(plugin_dir, entry), "w", encoding="utf-8") as f:
        f.write(textwrap.dedent(source))
    return plugin_dir
