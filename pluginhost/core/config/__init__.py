from pluginhost.core.config.service import Config
from pluginhost.core.config.deprecations import transform_deprecations

__all__ = ["Config", "transform_deprecations"]
