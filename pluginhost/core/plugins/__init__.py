"""
Plugin discovery.

WHY THIS PACKAGE EXISTS:
The host must find plugin packs on disk, let every plugin spec contribute to the
shared config, and decide which specs end up enabled, while reporting every
problem found along the way instead of stopping at the first one.
"""

from pluginhost.core.plugins.finder import FindPluginSpecsResult, PluginSpecFinder, find_plugin_specs
from pluginhost.core.plugins.pack import PluginApi, PluginPack
from pluginhost.core.plugins.spec import PluginSpec

__all__ = [
    "FindPluginSpecsResult",
    "PluginApi",
    "PluginPack",
    "PluginSpec",
    "PluginSpecFinder",
    "find_plugin_specs",
]
