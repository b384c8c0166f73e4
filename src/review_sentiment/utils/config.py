"""
Configuration Module

Report settings from configs/config.yaml. Any dotted key can be overridden
by an environment variable named after it (``tuning.boosted.n_jobs`` ->
``TUNING_BOOSTED_N_JOBS``).
"""

import os
import logging
from pathlib import Path
from typing import Dict, Any, Optional, Union

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = 'configs/config.yaml'


class Config:
    """
    Nested settings with dot-notation access.

    Environment overrides take precedence over the file and are cast to
    the type of the value they replace, so ``TUNING_CV_FOLDS=3`` yields
    an int and ``EVALUATION_THRESHOLDS='[0.5, 0.3]'`` a list.

    Example:
        config = Config.from_yaml('configs/config.yaml')
        n_jobs = config.get('tuning.boosted.n_jobs', 12)
    """

    def __init__(self, config_dict: Dict[str, Any] = None):
        self._config = config_dict or {}

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> 'Config':
        """Read a YAML file; a missing file yields an empty config (defaults apply)."""
        path = Path(path)

        if not path.exists():
            logger.warning(f"Config file not found: {path}, running with built-in defaults")
            return cls({})

        with open(path, 'r', encoding='utf-8') as f:
            settings = yaml.safe_load(f) or {}

        logger.info(f"Loaded configuration from {path} (sections: {', '.join(settings) or 'none'})")
        return cls(settings)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Resolve a dotted key.

        Args:
            key: Dot-separated path (e.g., 'tuning.cv_folds')
            default: Returned when the key is absent from the file

        Returns:
            Environment override, file value, or default (in that order)
        """
        value = self._lookup(key, default)

        override = os.environ.get(key.upper().replace('.', '_'))
        if override is not None:
            return _cast_like(override, value)
        return value

    def _lookup(self, key: str, default: Any) -> Any:
        node = self._config
        for part in key.split('.'):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def get_section(self, section: str) -> Dict:
        """Raw section dict (no environment overrides); empty when absent."""
        value = self._lookup(section, {})
        return value if isinstance(value, dict) else {}

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._config)

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


def _cast_like(raw: str, reference: Any) -> Any:
    """Cast an environment string to the type of the value it overrides."""
    if isinstance(reference, bool):
        return raw.strip().lower() in ('1', 'true', 'yes', 'on')
    if isinstance(reference, int):
        return int(raw)
    if isinstance(reference, float):
        return float(raw)
    if isinstance(reference, (list, dict)) or reference is None:
        return yaml.safe_load(raw)
    return raw


_global_config: Optional[Config] = None


def get_config(config_path: str = DEFAULT_CONFIG_PATH) -> Config:
    """Process-wide configuration, loaded on first use."""
    global _global_config
    if _global_config is None:
        _global_config = Config.from_yaml(config_path)
    return _global_config


def reset_config():
    """Drop the cached process-wide configuration."""
    global _global_config
    _global_config = None
