"""
Discord AutoReply - Runtime Configuration
Persisted, user-editable settings with change subscriptions.
"""

import json
import os
import threading
import time
from typing import Callable, Dict, List, Tuple

from config import RUNTIME_CONFIG_FILE, DATA_DIR, PROVIDER_ENDPOINTS
from constants import (
    DEFAULT_COOLDOWN_SECONDS, DEFAULT_CUSTOM_INSTRUCTIONS, DEFAULT_HISTORY_LENGTH, MAX_HISTORY_LENGTH
)
import logger as log

# Default values
DEFAULTS = {
    "enabled": True,  # Master switch; arming still happens per channel
    "ai_provider": "gemini",  # gemini | deepseek | openai
    "model": "gemini-2.5-pro",  # Empty = provider default
    "api_key": "",  # Empty = fall back to the provider's env var
    "cooldown": DEFAULT_COOLDOWN_SECONDS,  # Seconds of silence after each reply
    "custom_instructions": DEFAULT_CUSTOM_INSTRUCTIONS,
    "history_length": DEFAULT_HISTORY_LENGTH,  # Previous messages included for context
    "show_typing": True,  # Typing indicator before each sent part
}

# Config cache to avoid repeated file reads
_config_cache: dict = None
_config_cache_time: float = 0.0
_CONFIG_CACHE_TTL = 30.0

# key -> callbacks(new_value); called after the new value is saved
_subscribers: Dict[str, List[Callable]] = {}
_subscribers_lock = threading.Lock()


def ensure_data_dir():
    """Create data directory if it doesn't exist."""
    directory = os.path.dirname(RUNTIME_CONFIG_FILE) or DATA_DIR
    if not os.path.exists(directory):
        os.makedirs(directory)


def _load_config_from_disk() -> dict:
    """Load config from disk (internal, no caching)."""
    if os.path.exists(RUNTIME_CONFIG_FILE):
        try:
            with open(RUNTIME_CONFIG_FILE, 'r', encoding='utf-8') as f:
                config = json.load(f)
                # Merge with defaults for any missing keys
                for key, value in DEFAULTS.items():
                    if key not in config:
                        config[key] = value
                return config
        except (json.JSONDecodeError, IOError) as e:
            log.warn(f"Invalid runtime config, using defaults: {e}")
    return DEFAULTS.copy()


def load_config() -> dict:
    """Load runtime config with caching to avoid repeated disk reads."""
    global _config_cache, _config_cache_time

    now = time.time()
    if _config_cache is not None and (now - _config_cache_time) < _CONFIG_CACHE_TTL:
        return _config_cache.copy()

    _config_cache = _load_config_from_disk()
    _config_cache_time = now
    return _config_cache.copy()


def invalidate_cache():
    """Invalidate the config cache (call after writes)."""
    global _config_cache, _config_cache_time
    _config_cache = None
    _config_cache_time = 0.0


def save_config(config: dict):
    """Save runtime config to file and invalidate cache."""
    ensure_data_dir()
    with open(RUNTIME_CONFIG_FILE, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)
    invalidate_cache()


def get(key: str, default=None):
    """Get a config value."""
    config = load_config()
    return config.get(key, default if default is not None else DEFAULTS.get(key))


def set(key: str, value):
    """Set a config value and notify subscribers if it changed."""
    update({key: value})


def update(values: dict) -> List[str]:
    """Set several values in one write. Returns the keys whose value changed."""
    config = load_config()
    changed = [key for key, value in values.items() if config.get(key) != value]
    config.update(values)
    save_config(config)

    for key in changed:
        _notify(key, config[key])
    return changed


def get_all() -> dict:
    """Get all config values."""
    return load_config()


# --- Validation ---

_BOOL_KEYS = ("enabled", "show_typing")
_STRING_KEYS = ("model", "api_key", "custom_instructions")


def validate_settings(values: dict) -> Tuple[dict, List[str]]:
    """Check user-supplied settings. Returns (clean values, error messages)."""
    clean = {}
    errors = []

    for key, value in values.items():
        if key not in DEFAULTS:
            errors.append(f"unknown setting '{key}'")
        elif key in _BOOL_KEYS:
            if not isinstance(value, bool):
                errors.append(f"'{key}' must be true or false")
            else:
                clean[key] = value
        elif key in _STRING_KEYS:
            if not isinstance(value, str):
                errors.append(f"'{key}' must be a string")
            else:
                clean[key] = value.strip() if key != "custom_instructions" else value
        elif key == "ai_provider":
            if value not in PROVIDER_ENDPOINTS:
                errors.append(f"unknown provider '{value}' (choices: {', '.join(PROVIDER_ENDPOINTS)})")
            else:
                clean[key] = value
        elif key == "cooldown":
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                errors.append("'cooldown' must be a number of seconds >= 0")
            else:
                clean[key] = value
        elif key == "history_length":
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_HISTORY_LENGTH:
                errors.append(f"'history_length' must be an integer between 0 and {MAX_HISTORY_LENGTH}")
            else:
                clean[key] = value

    return clean, errors


# --- Subscriptions ---

def subscribe(key: str, callback: Callable):
    """Call `callback(new_value)` whenever `key` changes through set/update."""
    with _subscribers_lock:
        _subscribers.setdefault(key, []).append(callback)


def unsubscribe(key: str, callback: Callable):
    """Remove a callback registered with subscribe(). Unknown callbacks are ignored."""
    with _subscribers_lock:
        callbacks = _subscribers.get(key, [])
        if callback in callbacks:
            callbacks.remove(callback)


def _notify(key: str, value):
    with _subscribers_lock:
        callbacks = list(_subscribers.get(key, []))
    for callback in callbacks:
        try:
            callback(value)
        except Exception as e:
            log.error(f"Settings subscriber for '{key}' failed: {e}")
