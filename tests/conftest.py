from __future__ import annotations

import pytest

from pluginhost.core.config.service import Config


class DummyLogger:
    def __init__(self):
        self.records = []

    def debug(self, msg, *_a, **_k):  # noqa: ANN001
        self.records.append(("debug", str(msg)))

    def info(self, msg, *_a, **_k):  # noqa: ANN001
        self.records.append(("info", str(msg)))

    def warning(self, msg, *_a, **_k):  # noqa: ANN001
        self.records.append(("warning", str(msg)))

    def error(self, msg, *_a, **_k):  # noqa: ANN001
        self.records.append(("error", str(msg)))


@pytest.fixture
def logger():
    return DummyLogger()


@pytest.fixture
def config():
    """
    Default-schema config with a fixed host version.
    """
    return Config.with_default_schema({"pkg": {"version": "7.2.0"}})


@pytest.fixture
def plugins_root(tmp_path):
    root = tmp_path / "plugins"
    root.mkdir()
    return root
