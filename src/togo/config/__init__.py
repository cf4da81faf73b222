"""Configuration package for togo"""

from togo.config.settings import TogoSettings, get_settings

__all__ = ["TogoSettings", "get_settings"]
