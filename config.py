"""
Discord AutoReply - Configuration
API keys, provider endpoints, and bot settings.
"""

import os
from dotenv import load_dotenv

from constants import DASHBOARD_DEFAULT_HOST, DASHBOARD_DEFAULT_PORT, METRICS_DEFAULT_PORT

load_dotenv()

# Discord Bot Token
DISCORD_TOKEN = os.getenv('DISCORD_TOKEN')


# --- Provider Configuration ---

# provider id -> static endpoint details
PROVIDER_ENDPOINTS = {
    "gemini": {
        "name": "Gemini",
        "domain": "https://generativelanguage.googleapis.com",
        "url": None,  # Reached through the google-generativeai SDK
        "key_env": "GEMINI_API_KEY",
        "default_model": "gemini-2.5-pro",
    },
    "deepseek": {
        "name": "DeepSeek",
        "domain": "https://api.deepseek.com",
        "url": "https://api.deepseek.com/v1",
        "key_env": "DEEPSEEK_API_KEY",
        "default_model": "deepseek-chat",
    },
    "openai": {
        "name": "OpenAI",
        "domain": "https://api.openai.com",
        "url": "https://api.openai.com/v1",
        "key_env": "OPENAI_API_KEY",
        "default_model": "gpt-3.5-turbo",
    },
}


def provider_domain(provider: str) -> str:
    """Domain a provider is reached at, or 'Unknown'."""
    return PROVIDER_ENDPOINTS.get(provider, {}).get("domain", "Unknown")


def env_api_key(provider: str) -> str:
    """API key for a provider from the environment (empty if unset)."""
    key_env = PROVIDER_ENDPOINTS.get(provider, {}).get("key_env")
    return os.getenv(key_env, "") if key_env else ""


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        print(f"⚠️ Invalid {name}={raw!r}, using {default}")
        return default


# Single attempt per reply; no retry
API_TIMEOUT = _int_env('API_TIMEOUT', 60)

# AI Settings (sampling parameters are fixed per reply)
DEFAULT_TEMPERATURE = 0.9
DEFAULT_TOP_K = 40
DEFAULT_TOP_P = 0.95
DEFAULT_MAX_TOKENS = 1000

# Data Storage
DATA_DIR = os.getenv('AUTOREPLY_DATA_DIR', "bot_data")

# Runtime config (user-editable settings via dashboard / slash commands)
RUNTIME_CONFIG_FILE = os.path.join(DATA_DIR, "runtime_config.json")

# Dashboard & metrics
DASHBOARD_HOST = os.getenv('DASHBOARD_HOST', DASHBOARD_DEFAULT_HOST)
DASHBOARD_PORT = _int_env('DASHBOARD_PORT', DASHBOARD_DEFAULT_PORT)
METRICS_PORT = _int_env('METRICS_PORT', METRICS_DEFAULT_PORT)
