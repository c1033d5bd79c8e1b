"""SecOps Warden configuration system."""

from secops_warden.config.manager import ConfigManager
from secops_warden.config.schema import WardenConfig

__all__ = ["ConfigManager", "WardenConfig"]
