"""
Discord AutoReply - Model Catalog
Models offered per provider, refreshed when the provider setting changes.
"""

from typing import Dict, List

import logger as log

KNOWN_MODELS = {
    "gemini": [
        {"label": "Gemini 2.5 Pro", "value": "gemini-2.5-pro"},
        {"label": "Gemini 2.5 Flash", "value": "gemini-2.5-flash"},
        {"label": "Gemini 1.5 Pro", "value": "gemini-1.5-pro"},
        {"label": "Gemini 1.5 Flash", "value": "gemini-1.5-flash"},
    ],
    "deepseek": [
        {"label": "DeepSeek Chat", "value": "deepseek-chat"},
        {"label": "DeepSeek Coder", "value": "deepseek-coder"},
    ],
    "openai": [
        {"label": "GPT-3.5 Turbo", "value": "gpt-3.5-turbo"},
        {"label": "GPT-4", "value": "gpt-4"},
        {"label": "GPT-4 Turbo", "value": "gpt-4-turbo"},
        {"label": "GPT-4o", "value": "gpt-4o"},
        {"label": "GPT-4o Mini", "value": "gpt-4o-mini"},
    ],
}


def get_available_models(provider: str) -> List[dict]:
    """Model options for a provider ([] for unknown providers)."""
    return [dict(model) for model in KNOWN_MODELS.get(provider, [])]


class ModelCatalog:
    """Per-provider model cache plus the options for the selected provider."""

    def __init__(self):
        self._cache: Dict[str, List[dict]] = {}
        self.provider = None
        self.options: List[dict] = []

    def refresh(self, provider: str) -> List[dict]:
        """Select ``provider``, filling its cache entry on first use."""
        if provider not in self._cache or not self._cache[provider]:
            self._cache[provider] = get_available_models(provider)
        self.provider = provider
        self.options = [dict(option) for option in self._cache[provider]]
        return [dict(option) for option in self.options]

    def offers(self, model: str) -> bool:
        return any(option["value"] == model for option in self.options)

    def check_model(self, model: str) -> bool:
        """Warn when the configured model is not offered by the selected provider."""
        if not model or self.offers(model):
            return True
        choices = ", ".join(option["value"] for option in self.options) or "none"
        log.warn(f"Model '{model}' is not offered by {self.provider} (choices: {choices})")
        return False
