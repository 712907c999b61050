"""Configuration management for duplicate-finder."""

import copy
import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class Config:
    """Holds the settings for one duplicate-finder run."""

    DEFAULT_SETTINGS: Dict[str, Any] = {
        "quarantine_dir": "duplicate",
        # Directory names never descended into during discovery
        "excluded_dirs": ["duplicate", "duplicates"],
        "image_extensions": [
            ".jpg",
            ".jpeg",
            ".png",
            ".gif",
            ".bmp",
            ".webp",
            ".tiff",
            ".tif",
        ],
        "skip_hidden": True,
        "fingerprint": {
            "method": "auto",  # auto, pixels, bytes
            "grid_size": 8,
            "workers": 1,
        },
        "verify": {"chunk_size": 64 * 1024},
    }

    def __init__(self, overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            overrides: Nested settings merged over the defaults
        """
        self.settings: Dict[str, Any] = copy.deepcopy(self.DEFAULT_SETTINGS)
        if overrides:
            self._merge(self.settings, overrides)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: Configuration key (supports dot notation, e.g., 'fingerprint.method')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split(".")
        value = self.settings
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value.

        Args:
            key: Configuration key (supports dot notation)
            value: Value to set
        """
        keys = key.split(".")
        target = self.settings
        for k in keys[:-1]:
            if k not in target or not isinstance(target[k], dict):
                target[k] = {}
            target = target[k]
        target[keys[-1]] = value
        logger.debug(f"Config {key} = {value!r}")

    def get_quarantine_dir(self) -> str:
        """Get the quarantine folder name."""
        return self.get("quarantine_dir", "duplicate")

    def excluded_dir_names(self) -> List[str]:
        """
        Directory names excluded from discovery, lower-cased.

        Always includes the quarantine folder so a re-run never picks up
        files that were already moved aside.
        """
        names = [name.lower() for name in self.get("excluded_dirs", [])]
        quarantine = self.get_quarantine_dir().lower()
        if quarantine not in names:
            names.append(quarantine)
        return names

    @classmethod
    def _merge(cls, target: Dict[str, Any], overrides: Dict[str, Any]) -> None:
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(target.get(key), dict):
                cls._merge(target[key], value)
            else:
                target[key] = value
