"""Configuration module for the process task board."""

from taskboard.config.logging import configure_logging, get_logger
from taskboard.config.settings import FlatSettings, get_settings

__all__ = ["FlatSettings", "get_settings", "configure_logging", "get_logger"]
