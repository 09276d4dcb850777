from __future__ import annotations

"""
Masking for values printed from plugin config and error context.

Plugin schemas name their secrets freely ("token", "github_token", "db.password"),
so a key is masked when it, or its last "_"/"-" separated word, is a secret word.
"""

import re
from typing import Any, Dict

REDACTED = "***REDACTED***"

SECRET_WORDS = {
    "passphrase",
    "password",
    "secret",
    "token",
    "api_key",
    "apikey",
    "key",
    "authorization",
    "credentials",
}

_WORD_SPLIT = re.compile(r"[_\-]")


def is_secret_key(key: Any) -> bool:
    k = str(key).lower()
    if k in SECRET_WORDS:
        return True
    return _WORD_SPLIT.split(k)[-1] in SECRET_WORDS


def redact(obj: Any) -> Any:
    """Deep copy of `obj` with secret-looking dict values masked."""
    if isinstance(obj, dict):
        out: Dict[str, Any] = {}
        for k, v in obj.items():
            out[k] = REDACTED if is_secret_key(k) else redact(v)
        return out
    if isinstance(obj, (list, tuple)):
        return [redact(x) for x in obj]
    return obj
