"""
pluginhost: plugin discovery and configuration merging.
"""

__version__ = "0.1.0"
