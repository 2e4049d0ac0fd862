"""
Configuration management with .env file support.

Loads configuration from:
1. .env file next to the package or in the working directory (if exists)
2. Environment variables (override .env)

Usage:
    from archscan.utils.config import get_config
    dumpbin = get_config("ARCHSCAN_DUMPBIN_PATH")
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# Configuration cache
_config_cache: dict[str, str] = {}
_env_loaded = False


def _find_env_file() -> Path | None:
    """Find .env file by searching up from the package directory."""
    current = Path(__file__).resolve().parent

    # Search up to 5 levels
    for _ in range(5):
        env_file = current / ".env"
        if env_file.exists():
            return env_file

        parent = current.parent
        if parent == current:
            break
        current = parent

    cwd_env = Path.cwd() / ".env"
    if cwd_env.exists():
        return cwd_env

    return None


def _parse_env_file(env_path: Path) -> dict[str, str]:
    """
    Parse a .env file into a dictionary.

    Supports:
    - KEY=value
    - KEY="value with spaces"
    - KEY='value with spaces'
    - # comments
    - Empty lines
    """
    config = {}

    try:
        with open(env_path, "r") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()

                if not line or line.startswith("#"):
                    continue

                if "=" not in line:
                    logger.warning(f".env line {line_num}: Invalid format (no '=')")
                    continue

                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()

                if (value.startswith('"') and value.endswith('"')) or \
                   (value.startswith("'") and value.endswith("'")):
                    value = value[1:-1]

                if key:
                    config[key] = value

    except OSError as e:
        logger.warning(f"Failed to parse .env file: {e}")

    return config


def load_env():
    """Load configuration from .env file."""
    global _env_loaded, _config_cache

    if _env_loaded:
        return

    env_file = _find_env_file()
    if env_file:
        logger.info(f"Loading configuration from: {env_file}")
        _config_cache = _parse_env_file(env_file)
        logger.debug(f"Loaded {len(_config_cache)} config values from .env")
    else:
        logger.debug("No .env file found")

    _env_loaded = True


def reset_config():
    """Forget the cached .env contents so the next lookup reloads them."""
    global _env_loaded, _config_cache
    _config_cache = {}
    _env_loaded = False


def get_config(key: str, default: str | None = None) -> str | None:
    """
    Get a configuration value.

    Checks environment variables first, then .env file.

    Args:
        key: Configuration key name
        default: Default value if not found

    Returns:
        Configuration value or default
    """
    env_value = os.environ.get(key)
    if env_value is not None:
        return env_value

    load_env()

    return _config_cache.get(key, default)


def get_config_int(key: str, default: int = 0) -> int:
    """Get an integer configuration value."""
    value = get_config(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer value for {key}: {value!r}")
        return default


# Available configuration keys
CONFIG_KEYS = {
    # Tooling
    "ARCHSCAN_DUMPBIN_PATH": "Full path to dumpbin.exe (default: auto-detect)",

    # Analysis
    "ARCHSCAN_HOST_ARCH": "Override the host architecture (ARM64, X64, X86)",
    "ARCHSCAN_MAX_DEPTH": "Default dependency depth for recursive scans (default: 3)",

    # Logging
    "ARCHSCAN_LOG_LEVEL": "Logging level (DEBUG, INFO, WARNING, ERROR)",
}


def list_config_keys() -> dict[str, str]:
    """Return available configuration keys and descriptions."""
    return CONFIG_KEYS.copy()


def get_config_status() -> dict[str, dict]:
    """
    Get status of all configuration keys.

    Returns:
        Dict with key -> {set: bool, source: str, value: str}
    """
    load_env()
    status = {}

    for key in CONFIG_KEYS:
        env_value = os.environ.get(key)
        file_value = _config_cache.get(key)

        if env_value is not None:
            status[key] = {"set": True, "source": "environment", "value": env_value}
        elif file_value is not None:
            status[key] = {"set": True, "source": ".env file", "value": file_value}
        else:
            status[key] = {"set": False, "source": None, "value": None}

    return status
