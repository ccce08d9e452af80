"""
Configuration Module for the ERP Order Ingestion library.

Settings live in ``config/settings.yaml`` and are read through a single
``ConfigurationManager``. Every consumer passes its own default to
``get_config`` so the extractors keep working when a key is absent.

The file location can be overridden with the ``ORDER_INGEST_CONFIG``
environment variable or by passing an explicit path the first time the
manager is constructed.
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional


CONFIG_ENV_VAR = "ORDER_INGEST_CONFIG"

DEFAULT_SETTINGS_FILE = Path(__file__).parent / "settings.yaml"


class ConfigurationManager:
    """
    Process-wide access to the order ingestion settings.

    The first construction decides which file is read; later constructions
    return the same instance and ignore their argument until ``reset``.

    Attributes:
        config_path (Path): Settings file in use.

    Example:
        >>> config = ConfigurationManager()
        >>> config.get("postprocessing.delivery.business_days")
        10
        >>> config.get("extraction.material_types.MP")
        'production'
    """

    _instance: Optional['ConfigurationManager'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None) -> None:
        if self._initialized:
            return

        self.config_path = self._locate(config_path)
        self._load_config()
        self._initialized = True

    @staticmethod
    def _locate(config_path: Optional[str]) -> Path:
        """Explicit path, then $ORDER_INGEST_CONFIG, then the bundled file."""
        config_path = config_path or os.environ.get(CONFIG_ENV_VAR)
        return Path(config_path) if config_path else DEFAULT_SETTINGS_FILE

    def _load_config(self) -> None:
        """
        Read the settings file.

        Raises:
            FileNotFoundError: If the settings file doesn't exist.
            yaml.YAMLError: If the settings file is not valid YAML.
        """
        if not self.config_path.is_file():
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}"
            )

        with open(self.config_path, 'r', encoding='utf-8') as f:
            loaded = yaml.safe_load(f)

        # An empty file is a valid, empty configuration
        self._config = loaded if isinstance(loaded, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a dot-separated key ("input.pdf.backend").

        Returns ``default`` when any segment is missing or when an
        intermediate value is not a mapping.

        Example:
            >>> config.get("input.pdf.backend")
            'auto'
            >>> config.get("input.pdf.backend.name", "fallback")
            'fallback'
        """
        node: Any = self._config
        for segment in key.split('.'):
            if not isinstance(node, dict) or segment not in node:
                return default
            node = node[segment]
        return node

    def get_all(self) -> Dict[str, Any]:
        """Return a shallow copy of the complete configuration dictionary."""
        return dict(self._config)

    def reload(self) -> None:
        """Re-read the current settings file."""
        self._load_config()

    @classmethod
    def reset(cls) -> None:
        """
        Drop the singleton instance.

        The next ``ConfigurationManager()`` call re-reads the settings file,
        which is how tests switch between configuration files.
        """
        cls._instance = None


def get_config(key: str, default: Any = None) -> Any:
    """Shorthand for ``ConfigurationManager().get(key, default)``."""
    return ConfigurationManager().get(key, default)


__all__ = ['ConfigurationManager', 'get_config', 'CONFIG_ENV_VAR']
