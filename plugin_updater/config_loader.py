"""
Dynamic Configuration Loader for the plugin updater.

This module provides runtime configuration loading from JSON files with:
- Default values if files don't exist
- Caching with ability to reload
- Merging of partial settings over the current configuration
"""

import os
import json
import logging
from typing import Dict, Any, List, Optional
from pathlib import Path

logger = logging.getLogger(__name__)

# --- Configuration Directory Paths ---
CONFIG_BASE_DIR = os.environ.get(
    'PLUGIN_UPDATER_CONFIG_DIR',
    os.path.join(os.getcwd(), 'config')
)

# --- Configuration File Paths ---
UPDATER_CONFIG_PATH = os.path.join(CONFIG_BASE_DIR, 'updater.json')
COMPONENTS_CONFIG_PATH = os.path.join(CONFIG_BASE_DIR, 'components.json')

# --- Remote Endpoints ---
GITHUB_API_URL = 'https://api.github.com'
GITHUB_RAW_URL = 'https://raw.githubusercontent.com'

BACKUP_DIR_NAME = 'BACKUP-Plugins'

# --- Default Configuration ---
# Durations are in seconds.
DEFAULT_UPDATER_CONFIG = {
    'enabled': True,
    'check_interval': 30 * 60,
    'initial_delay': 15,
    'stagger_delay': 5 * 60,
    'request_timeout': 30,
    'download_timeout': 60,
    'github_api_url': GITHUB_API_URL,
    'raw_content_url': GITHUB_RAW_URL,
    'github_token': None,
    'project_root': None,
    'backup_dir_name': BACKUP_DIR_NAME,
    'host': '127.0.0.1',
    'port': 5050,
}

# --- Configuration Cache ---
_config_cache: Dict[str, Any] = {}


def _load_json(path: str, default: Any) -> Any:
    """
    Load a JSON document, returning ``default`` if it is missing or unreadable.

    Args:
        path: Path of the JSON file
        default: Value returned when the file cannot be used

    Returns:
        The parsed document or ``default``
    """
    if not os.path.exists(path):
        return default
    try:
        with open(path, 'r') as f:
            return json.load(f)
    except Exception as e:
        logger.warning(f"Error loading config from {path}: {e}")
        return default


def _save_config(path: str, config: Any, permissions: int = 0o644) -> bool:
    """
    Save configuration to a JSON file.

    Args:
        path: Path to save the configuration
        config: Configuration to save
        permissions: File permissions (default 0o644)

    Returns:
        bool: True if saved successfully
    """
    try:
        Path(path).parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            json.dump(config, f, indent=2)

        os.chmod(path, permissions)
        return True
    except Exception as e:
        logger.error(f"Failed to save config to {path}: {e}")
        return False


POSITIVE_DURATIONS = ('check_interval', 'request_timeout', 'download_timeout')
NON_NEGATIVE_DURATIONS = ('initial_delay', 'stagger_delay')
REQUIRED_STRINGS = ('github_api_url', 'raw_content_url', 'backup_dir_name', 'host')
OPTIONAL_STRINGS = ('github_token', 'project_root')


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_setting(key: str, value: Any) -> Optional[str]:
    """
    Check one updater setting.

    Args:
        key: Setting name
        value: Proposed value

    Returns:
        str: Why the value is rejected, or None if it is valid
    """
    if key == 'enabled':
        if not isinstance(value, bool):
            return f"{key} must be true or false"
    elif key in POSITIVE_DURATIONS:
        if not _is_number(value) or value <= 0:
            return f"{key} must be a positive number of seconds"
    elif key in NON_NEGATIVE_DURATIONS:
        if not _is_number(value) or value < 0:
            return f"{key} must be a non-negative number of seconds"
    elif key in REQUIRED_STRINGS:
        if not isinstance(value, str) or not value:
            return f"{key} must be a non-empty string"
    elif key in OPTIONAL_STRINGS:
        if value is not None and not isinstance(value, str):
            return f"{key} must be a string or null"
    elif key == 'port':
        if not isinstance(value, int) or isinstance(value, bool) or not 0 < value < 65536:
            return f"{key} must be a port number between 1 and 65535"
    return None


def merge_config(
    base: Dict[str, Any],
    overrides: Optional[Dict[str, Any]],
    strict: bool = False,
) -> Dict[str, Any]:
    """
    Merge ``overrides`` over ``base`` and return the result as a new dict.

    Keys that are not part of the updater configuration are logged and dropped.
    Invalid values keep the value from ``base`` unless ``strict`` is set.

    Args:
        base: Current configuration
        overrides: Partial settings to apply
        strict: Raise instead of skipping invalid values

    Returns:
        dict: The merged configuration

    Raises:
        ValueError: If ``strict`` and a value is invalid; nothing is merged
    """
    merged = dict(base)
    for key, value in (overrides or {}).items():
        if key not in DEFAULT_UPDATER_CONFIG:
            logger.warning(f"Ignoring unknown updater setting: {key}")
            continue
        error = validate_setting(key, value)
        if error:
            if strict:
                raise ValueError(error)
            logger.warning(f"Ignoring invalid updater setting: {error}")
            continue
        merged[key] = value
    return merged


def get_updater_config(force_reload: bool = False, path: Optional[str] = None) -> Dict[str, Any]:
    """
    Get the updater configuration.

    Args:
        force_reload: If True, bypass cache and reload from disk
        path: Alternate configuration file (bypasses the cache)

    Returns:
        dict: Updater configuration merged over DEFAULT_UPDATER_CONFIG
    """
    cache_key = 'updater'

    if path is None and not force_reload and cache_key in _config_cache:
        return dict(_config_cache[cache_key])

    loaded = _load_json(path or UPDATER_CONFIG_PATH, {})
    if not isinstance(loaded, dict):
        logger.warning("Updater config must be a JSON object, using defaults")
        loaded = {}

    config = merge_config(DEFAULT_UPDATER_CONFIG, loaded)
    if not config.get('github_token'):
        config['github_token'] = os.environ.get('GITHUB_TOKEN')

    if path is None:
        _config_cache[cache_key] = config
    return dict(config)


def save_updater_config(config: Dict[str, Any], path: Optional[str] = None) -> bool:
    """
    Save the updater configuration.

    Args:
        config: Updater configuration dictionary
        path: Alternate configuration file

    Returns:
        bool: True if saved successfully
    """
    target = path or UPDATER_CONFIG_PATH
    full_config = merge_config(DEFAULT_UPDATER_CONFIG, config)

    # An in-memory token is never written; one already in the file is kept
    on_disk = _load_json(target, {})
    full_config['github_token'] = on_disk.get('github_token') if isinstance(on_disk, dict) else None

    if _save_config(target, full_config, permissions=0o600):
        if path is None:
            _config_cache['updater'] = merge_config(DEFAULT_UPDATER_CONFIG, config)
        return True
    return False


def get_components_config(force_reload: bool = False, path: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Get the list of components to register at startup.

    Each entry has the keys ``name``, ``version``, ``owner``, ``repository``
    and ``artifact_path``. Entries missing one of them are skipped.

    Args:
        force_reload: If True, bypass cache and reload from disk
        path: Alternate components file (bypasses the cache)

    Returns:
        list: Component definitions
    """
    cache_key = 'components'

    if path is None and not force_reload and cache_key in _config_cache:
        return list(_config_cache[cache_key])

    loaded = _load_json(path or COMPONENTS_CONFIG_PATH, [])
    if isinstance(loaded, dict):
        loaded = loaded.get('components', [])

    required = ('name', 'version', 'owner', 'repository', 'artifact_path')
    components = []
    for entry in loaded if isinstance(loaded, list) else []:
        if not isinstance(entry, dict) or any(not entry.get(k) for k in required):
            logger.warning(f"Skipping invalid component entry: {entry}")
            continue
        components.append(entry)

    if path is None:
        _config_cache[cache_key] = components
    return list(components)


def get_project_root(config: Dict[str, Any]) -> str:
    """Project root used to build artifact URLs; defaults to the working directory."""
    return os.path.abspath(config.get('project_root') or os.getcwd())


def get_backup_root(config: Dict[str, Any]) -> str:
    """Directory holding one backup folder per component."""
    return os.path.join(
        get_project_root(config),
        config.get('backup_dir_name') or BACKUP_DIR_NAME
    )


def clear_config_cache():
    """Drop cached configuration so the next read goes to disk."""
    _config_cache.clear()
