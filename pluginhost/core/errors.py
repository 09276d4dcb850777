from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pluginhost.core.redaction import redact


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class PluginHostError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.user_message)

    def __str__(self) -> str:
        return self.user_message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": redact(self.context or {}),
        }


# ---- Core types ----
class ConfigError(PluginHostError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


class InvalidDirectoryError(PluginHostError):
    """A configured scan directory could not be read."""

    def __init__(self, source_error: BaseException, path: str):
        super().__init__(
            "invalid_directory",
            str(source_error) or f"Unable to read plugin directory {path}",
            severity=Severity.WARN,
            recoverable=True,
            context={"path": str(path)},
        )
        self.path = str(path)
        self.source_error = source_error


class InvalidPackError(PluginHostError):
    """A directory that was expected to hold a plugin pack is not a valid pack."""

    def __init__(self, path: Optional[str], reason: str):
        where = f' at "{path}"' if path else ""
        super().__init__(
            "invalid_pack",
            f"PluginPack{where} {reason}",
            severity=Severity.WARN,
            recoverable=True,
            context={"path": str(path or "")},
        )
        self.path = str(path or "")
        self.reason = reason


class InvalidPluginError(PluginHostError):
    def __init__(self, plugin_id: Optional[str], path: Optional[str], reason: str):
        super().__init__(
            "invalid_plugin",
            f'Plugin from "{plugin_id or "unknown"}" at {path or "unknown path"} {reason}',
            severity=Severity.WARN,
            recoverable=True,
            context={"plugin_id": str(plugin_id or ""), "path": str(path or "")},
        )
        self.plugin_id = plugin_id
        self.path = path


class DuplicatePluginIdError(PluginHostError):
    """Two or more plugin specs declared the same id. Fatal for a discovery run."""

    def __init__(self, conflicts: Sequence[Tuple[str, Sequence[str]]]):
        blocks: List[str] = []
        for plugin_id, paths in conflicts:
            lines = [f'Multiple plugins found with the id "{plugin_id}":']
            lines.extend(f"  - {plugin_id} at {p}" for p in paths)
            blocks.append("\n".join(lines))
        super().__init__(
            "duplicate_plugin_id",
            "\n".join(blocks),
            severity=Severity.CRITICAL,
            recoverable=False,
            context={"plugin_ids": [c[0] for c in conflicts]},
        )
        self.conflicts = [(str(i), list(paths)) for i, paths in conflicts]


class DiscoveryCancelledError(PluginHostError):
    """The discovery run stopped before it finished (task cancelled, interpreter interrupt)."""

    def __init__(self, stage: str, cause: Optional[BaseException] = None):
        detail = f": {cause!r}" if cause is not None and str(cause) else ""
        super().__init__(
            "discovery_cancelled",
            f"Plugin discovery was cancelled during {stage}{detail}",
            severity=Severity.ERROR,
            recoverable=True,
            context={"stage": stage},
        )
        self.stage = stage


def is_invalid_directory_error(error: Any) -> bool:
    return isinstance(error, InvalidDirectoryError)


def is_invalid_pack_error(error: Any) -> bool:
    return isinstance(error, InvalidPackError)


def is_invalid_plugin_error(error: Any) -> bool:
    return isinstance(error, InvalidPluginError)


def is_unhandled_error(error: Any) -> bool:
    return error is not None and not is_invalid_directory_error(error) and not is_invalid_pack_error(error)
