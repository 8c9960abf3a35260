"""
Settings loader for topicseg.yaml

SegmentationConfig.from_settings() and EvaluationConfig.from_settings()
read their sections from the loaded file.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class EnvSettings(BaseSettings):
    """Environment overrides (TOPICSEG_CONFIG=/path/to/topicseg.yaml)"""
    model_config = SettingsConfigDict(env_prefix="TOPICSEG_")

    config: Optional[str] = None


class Settings:
    """Loads and serves the configuration from topicseg.yaml"""

    _instance: Optional['Settings'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def load(self, config_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Load the configuration from a YAML file.

        Args:
            config_path: Path to the file. If None, TOPICSEG_CONFIG is used,
                then topicseg.yaml in the current working directory.

        Returns:
            Dictionary with the loaded configuration
        """
        if self._config:
            return self._config

        if config_path is None:
            config_path = EnvSettings().config or Path.cwd() / "topicseg.yaml"

        config_path = Path(config_path)

        if not config_path.exists():
            logger.warning(f"Configuration file not found: {config_path}")
            return {}

        with open(config_path, 'r', encoding='utf-8') as f:
            self._config = yaml.safe_load(f) or {}
        logger.info(f"Configuration loaded from: {config_path}")
        return self._config

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a value using dotted notation

        Args:
            key: Configuration key (e.g. 'segmentation.pca_dims')
            default: Value returned when the key is missing

        Returns:
            Configuration value or default
        """
        if not self._config:
            self.load()

        value = self._config
        for k in key.split('.'):
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def reload(self, config_path: Optional[str] = None) -> Dict[str, Any]:
        """Reload the configuration from disk"""
        self._config = {}
        return self.load(config_path)


# Global settings instance
settings = Settings()
