"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
configuration file (~/.apiwarden/config.yaml). Provider base URLs, tokens,
quota budgets, page size and cache lifetime are all configuration.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from apiwarden.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".apiwarden"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"

DEFAULT_PAGE_SIZE = 75
DEFAULT_CACHE_TTL_SECONDS = 3 * 60 * 60
DEFAULT_MAX_RETRIES = 2
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0

# Requests per minute, from each provider's published limits
DEFAULT_OKTA_RATE_LIMIT = 600
DEFAULT_GOOGLE_RATE_LIMIT = 12000
DEFAULT_BACKUPIFY_RATE_LIMIT = 60

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values passed to get_config

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    if config_file.exists():
        try:
            with open(config_file, "r") as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(yaml_config)
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        # override=False: real environment variables take precedence
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("No .env file found at or above the current directory.")

    _loaded = True
    logger.info("Configuration loading process completed.")


def reset_configuration() -> None:
    """Forgets loaded configuration so the next load_configuration() reloads."""
    global _config, _loaded
    _config = {}
    _loaded = False


def _coerce(value: str) -> Any:
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    try:
        if "." in value:
            return float(value)
        return int(value)
    except (ValueError, TypeError):
        return value


def get_config(key: str, default: Any = None, coerce: bool = True) -> Any:
    """Get a configuration value by key.

    Environment values are coerced to bool/int/float unless ``coerce`` is
    False; secrets are read with ``coerce=False`` so a token like "00123"
    keeps its leading zeros.

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable (key upper-cased, dots become underscores)
    3. YAML config
    4. Default value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = key.upper().replace(".", "_")
    if env_key in os.environ:
        raw = os.environ[env_key]
        return _coerce(raw) if coerce else raw

    if key in _config:
        return _config[key]

    logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
    return default


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


def set_config(key: str, value: Any) -> None:
    """Sets a configuration value for the lifetime of the process."""
    logger.debug(f"Setting config: {key} = {value}")
    _config[key] = value


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """Set configuration values that override every other source."""
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")


# --- Typed accessors ---

def _get_positive(key: str, default: Any, cast: type) -> Any:
    value = get_config(key, default)
    try:
        value = cast(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{key} must be a number, got {value!r}") from None
    if value <= 0:
        raise ConfigurationError(f"{key} must be positive, got {value}")
    return value


def _get_secret(key: str) -> Optional[str]:
    value = get_config(key, coerce=False)
    return None if value is None else str(value)


def get_page_size() -> int:
    return _get_positive("page_size", DEFAULT_PAGE_SIZE, int)


def get_cache_ttl() -> float:
    return _get_positive("cache_ttl_seconds", DEFAULT_CACHE_TTL_SECONDS, float)


def get_http_timeout() -> float:
    return _get_positive("http_timeout_seconds", DEFAULT_HTTP_TIMEOUT_SECONDS, float)


def get_max_retries() -> int:
    value = get_config("max_retries", DEFAULT_MAX_RETRIES)
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"max_retries must be an integer, got {value!r}") from None
    if value < 0:
        raise ConfigurationError(f"max_retries must be non-negative, got {value}")
    return value


def get_okta_settings() -> Dict[str, Any]:
    """Okta org, domain, API token and per-minute request budget."""
    return {
        "org_name": str(get_config("okta_org_name", "yourOktaDomain")),
        "base_url": str(get_config("okta_base_url", "okta.com")),
        "api_token": _get_secret("okta_api_token"),
        "rate_limit": _get_positive("okta_rate_limit", DEFAULT_OKTA_RATE_LIMIT, int),
    }


def get_google_settings() -> Dict[str, Any]:
    """Google Workspace API key and per-minute request budget."""
    return {
        "api_key": _get_secret("google_api_key"),
        "rate_limit": _get_positive("google_rate_limit", DEFAULT_GOOGLE_RATE_LIMIT, int),
    }


def get_backupify_settings() -> Dict[str, Any]:
    """Backupify base URL, API token and per-minute request budget."""
    return {
        "base_url": str(get_config("backupify_base_url", "https://app.backupify.com")),
        "api_token": _get_secret("backupify_api_token"),
        "rate_limit": _get_positive("backupify_rate_limit", DEFAULT_BACKUPIFY_RATE_LIMIT, int),
    }
