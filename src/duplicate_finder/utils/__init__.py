"""Utility functions for configuration and logging."""

from duplicate_finder.utils.config import Config
from duplicate_finder.utils.logger import setup_logger

__all__ = ["Config", "setup_logger"]
