# =============================================================================
# DIP REGISTRY - CONFIGURATION
# =============================================================================
#
# Central configuration loading.
# Reads config/registry.yaml; environment variables (optionally from a
# project .env file) override individual values.
#
# USAGE:
#   from shared.config import get_registry_config
#
#   config = get_registry_config()
#   storage = RegistryStorage(config.data_dir)
#
# ENVIRONMENT OVERRIDES:
#   DIP_REGISTRY_DATA_DIR   -> storage.data_dir
#   DIP_REGISTRY_LOG_LEVEL  -> global.log_level
#   DIP_REGISTRY_BASE_URL   -> fetch.base_url
#
# =============================================================================

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def _resolve_base_dir() -> Path:
    """
    Directory that config/, data/ and logs/ live under.

    In a source checkout this is the checkout root. An installed package
    has no config/ next to it, so the current working directory is used.
    """
    checkout = Path(__file__).parent.parent
    if (checkout / "config" / "registry.yaml").exists():
        return checkout
    return Path.cwd()


BASE_DIR = _resolve_base_dir()
CONFIG_PATH = BASE_DIR / "config" / "registry.yaml"
ENV_PATH = BASE_DIR / ".env"

DEFAULTS: Dict[str, Dict[str, Any]] = {
    "global": {
        "log_level": "INFO",
        "log_to_file": True,
    },
    "storage": {
        "data_dir": "data/registry",
    },
    "registry": {
        "strict": True,
    },
    "loader": {
        "pattern": "DIP*.md",
    },
    "fetch": {
        "base_url": "https://raw.githubusercontent.com/dlang/DIPs/master/DIPs",
        "timeout_seconds": 15,
    },
}


class RegistryConfig:
    """
    Registry configuration.

    READ-ONLY access. Changes require editing the YAML file or the
    environment.
    """

    def __init__(self, config_path: Optional[Path] = None, load_env: bool = True):
        """
        Args:
            config_path: Path to registry.yaml. Defaults to config/registry.yaml
            load_env: Load a project .env file before reading overrides
        """
        self.config_path = Path(config_path) if config_path else CONFIG_PATH
        self._config: Dict[str, Dict[str, Any]] = {}
        self.load_errors: List[str] = []
        if load_env and ENV_PATH.exists():
            load_dotenv(ENV_PATH, override=False)
        self._load_config()

    def _load_config(self):
        """
        Load configuration from YAML, merged over the defaults.

        A missing or unreadable file leaves the defaults in place. The
        problem is kept in load_errors so the caller can report it once
        logging is configured.
        """
        self._config = {section: dict(values) for section, values in DEFAULTS.items()}
        self.load_errors = []

        if not self.config_path.exists():
            self._load_failed(f"Config file not found: {self.config_path}, using defaults")
            return

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            self._load_failed(f"Failed to load config {self.config_path}: {e}, using defaults")
            return

        if not isinstance(loaded, dict):
            self._load_failed(f"Config root must be a mapping: {self.config_path}, using defaults")
            return

        for section, values in loaded.items():
            if isinstance(values, dict):
                self._config.setdefault(section, {}).update(values)

        logger.debug(f"Loaded config from {self.config_path}")

    def _load_failed(self, message: str):
        self.load_errors.append(message)
        logger.debug(message)

    def reload(self):
        """Reload configuration from file."""
        self._load_config()

    def _get(self, section: str, key: str) -> Any:
        return self._config.get(section, {}).get(key, DEFAULTS[section][key])

    @property
    def log_level(self) -> str:
        return str(os.getenv("DIP_REGISTRY_LOG_LEVEL") or self._get("global", "log_level")).upper()

    @property
    def log_to_file(self) -> bool:
        return bool(self._get("global", "log_to_file"))

    @property
    def data_dir(self) -> Path:
        """Storage directory; relative paths resolve against BASE_DIR."""
        raw = os.getenv("DIP_REGISTRY_DATA_DIR") or self._get("storage", "data_dir")
        path = Path(raw)
        if not path.is_absolute():
            path = BASE_DIR / path
        return path

    @property
    def strict(self) -> bool:
        return bool(self._get("registry", "strict"))

    @property
    def document_pattern(self) -> str:
        return str(self._get("loader", "pattern"))

    @property
    def base_url(self) -> str:
        return str(os.getenv("DIP_REGISTRY_BASE_URL") or self._get("fetch", "base_url")).rstrip("/")

    @property
    def fetch_timeout(self) -> int:
        return int(self._get("fetch", "timeout_seconds"))

    def to_dict(self) -> Dict[str, Any]:
        """Export effective configuration as dictionary."""
        return {
            "log_level": self.log_level,
            "log_to_file": self.log_to_file,
            "data_dir": str(self.data_dir),
            "strict": self.strict,
            "document_pattern": self.document_pattern,
            "base_url": self.base_url,
            "fetch_timeout": self.fetch_timeout,
        }


# =============================================================================
# MODULE-LEVEL FUNCTIONS
# =============================================================================

# Singleton instance
_instance: Optional[RegistryConfig] = None


def get_registry_config() -> RegistryConfig:
    """
    Get the global RegistryConfig instance.

    Returns:
        RegistryConfig singleton
    """
    global _instance
    if _instance is None:
        _instance = RegistryConfig()
    return _instance
