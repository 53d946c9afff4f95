"""
Configuration loader with YAML + environment variable support.

Loads and validates configuration files from the config/ directory.
Supports:
- Loading the intel policy from intel_thresholds.yaml
- Process settings from system.yaml
- ${ENV_VAR} / ${ENV_VAR:default} placeholders
- Environment variable overrides
- Pydantic validation
- Hot reload capability
- Caching for performance
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from ..exceptions import ConfigurationError
from .policy import PolicyConfiguration, merge_policy
from .settings import AppConfig, PolicyThresholds

logger = logging.getLogger(__name__)

# Get the project root directory (src/intel_engine/config/loader.py -> root)
PROJECT_ROOT = Path(__file__).resolve().parents[3]

# Load environment variables from .env file
load_dotenv(PROJECT_ROOT / ".env")

POLICY_FILE = "intel_thresholds"
SYSTEM_FILE = "system"


# ============================================================================
# ConfigLoader - Main Configuration Loader
# ============================================================================

class ConfigLoader:
    """
    Configuration loader with YAML + environment variable support.

    Features:
    - Loads configuration from YAML files
    - Overrides with environment variables
    - Validates using Pydantic models
    - Supports hot reload
    - Caches loaded configurations
    """

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize configuration loader.

        Args:
            config_dir: Configuration directory (defaults to $INTEL_CONFIG_DIR or PROJECT_ROOT/config)
        """
        env_dir = os.getenv("INTEL_CONFIG_DIR")
        self.config_dir = Path(config_dir or env_dir or (PROJECT_ROOT / "config"))
        self._cache: Dict[str, Any] = {}
        logger.info(f"ConfigLoader initialized with config_dir: {self.config_dir}")

    def load_yaml(self, config_name: str) -> Dict[str, Any]:
        """
        Load a YAML configuration file.

        Args:
            config_name: Name of the config file (without .yaml extension)

        Returns:
            Dictionary containing configuration data

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If the file is not a YAML mapping
        """
        config_path = self.config_dir / f"{config_name}.yaml"

        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        logger.debug(f"Loading YAML config from: {config_path}")

        try:
            with open(config_path, 'r') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")

        # Replace environment variable placeholders
        return self._replace_env_vars(config)

    def _replace_env_vars(self, config: Any) -> Any:
        """
        Recursively replace environment variable placeholders in config.

        Placeholders format: ${ENV_VAR_NAME} or ${ENV_VAR_NAME:default_value}
        """
        if isinstance(config, dict):
            return {k: self._replace_env_vars(v) for k, v in config.items()}
        elif isinstance(config, list):
            return [self._replace_env_vars(item) for item in config]
        elif isinstance(config, str):
            if config.startswith("${") and config.endswith("}"):
                env_expr = config[2:-1]

                if ":" in env_expr:
                    var_name, default_value = env_expr.split(":", 1)
                    return os.getenv(var_name.strip(), default_value.strip())
                else:
                    var_name = env_expr.strip()
                    value = os.getenv(var_name)
                    if value is None:
                        logger.warning(f"Environment variable {var_name} not set, using empty string")
                        return ""
                    return value

        return config

    def load_policy(self, use_cache: bool = True) -> PolicyThresholds:
        """
        Load the intel policy from intel_thresholds.yaml.

        Unknown or invalid keys in the file are skipped with a warning;
        a missing file yields the compiled-in defaults.
        """
        cache_key = "policy"
        if use_cache and cache_key in self._cache:
            logger.debug("Returning cached policy")
            return self._cache[cache_key]

        try:
            data = self.load_yaml(POLICY_FILE)
        except FileNotFoundError:
            logger.warning(f"{POLICY_FILE}.yaml not found, using defaults")
            data = {}

        if env_val := os.getenv("INTEL_POLICY_VERSION"):
            data["policy_version"] = env_val

        policy = merge_policy(PolicyThresholds(), data)
        logger.info(f"Intel policy loaded: version={policy.policy_version}")

        if use_cache:
            self._cache[cache_key] = policy
        return policy

    def load_app_config(self, use_cache: bool = True) -> AppConfig:
        """
        Load complete application configuration.

        Args:
            use_cache: Use cached config if available

        Returns:
            Validated AppConfig instance
        """
        cache_key = "app_config"

        if use_cache and cache_key in self._cache:
            logger.debug("Returning cached app config")
            return self._cache[cache_key]

        logger.info("Loading complete application configuration")

        config_data: Dict[str, Any] = {}

        try:
            config_data["system"] = self.load_yaml(SYSTEM_FILE)
        except FileNotFoundError:
            logger.warning(f"{SYSTEM_FILE}.yaml not found, using defaults")

        config_data = self._apply_env_overrides(config_data)

        try:
            app_config = AppConfig(
                system=config_data.get("system", {}),
                intel=self.load_policy(use_cache=use_cache),
            )
            logger.info("Application configuration loaded and validated successfully")
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise ConfigurationError(f"Invalid application configuration: {e}") from e

        if use_cache:
            self._cache[cache_key] = app_config

        return app_config

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply environment variable overrides to configuration.

        Example: LOG_LEVEL=DEBUG, API_PORT=9000, LOG_JSON=false
        """
        if "system" not in config:
            config["system"] = {}

        if env_val := os.getenv("LOG_LEVEL"):
            config["system"]["log_level"] = env_val.upper()

        if env_val := os.getenv("LOG_JSON"):
            config["system"]["json_logs"] = env_val.strip().lower() in {"1", "true", "yes", "on"}

        if env_val := os.getenv("API_HOST"):
            config["system"]["api_host"] = env_val

        if env_val := os.getenv("API_PORT"):
            config["system"]["api_port"] = env_val

        return config

    def create_policy_configuration(self) -> PolicyConfiguration:
        """Build a PolicyConfiguration whose baseline is the loaded policy."""
        return PolicyConfiguration(defaults=self.load_policy())

    def reload(self) -> AppConfig:
        """
        Reload configuration from disk (hot reload).

        Returns:
            Fresh AppConfig instance
        """
        logger.info("Reloading configuration from disk")
        self._cache.clear()
        return self.load_app_config(use_cache=False)

    def clear_cache(self):
        """Clear the configuration cache."""
        logger.info("Clearing configuration cache")
        self._cache.clear()


# ============================================================================
# Global ConfigLoader Instance
# ============================================================================

_global_loader: Optional[ConfigLoader] = None


def get_config_loader() -> ConfigLoader:
    """
    Get or create global ConfigLoader instance.

    Returns:
        Global ConfigLoader instance
    """
    global _global_loader
    if _global_loader is None:
        _global_loader = ConfigLoader()
    return _global_loader


def get_app_config(use_cache: bool = True) -> AppConfig:
    """
    Get complete application configuration.

    Args:
        use_cache: Use cached config if available

    Returns:
        Validated AppConfig instance
    """
    loader = get_config_loader()
    return loader.load_app_config(use_cache=use_cache)


def reload_config() -> AppConfig:
    """
    Reload configuration from disk (hot reload).

    Returns:
        Fresh AppConfig instance
    """
    loader = get_config_loader()
    return loader.reload()
