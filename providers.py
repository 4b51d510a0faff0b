"""
Discord AutoReply - AI Providers
Gemini through its SDK, DeepSeek and OpenAI through the OpenAI-compatible API.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
import openai
from openai import AsyncOpenAI

from config import (
    PROVIDER_ENDPOINTS, API_TIMEOUT, DEFAULT_TEMPERATURE, DEFAULT_TOP_K,
    DEFAULT_TOP_P, DEFAULT_MAX_TOKENS, env_api_key
)
from errors import (
    AutoReplyError, MissingCredentialError, UnknownProviderError,
    ProviderHTTPError, NetworkOrPolicyBlockedError, looks_network_blocked
)
from history import Turn, USER, ASSISTANT
from prometheus_metrics import metrics_manager
import logger as log


@dataclass
class ProviderConfig:
    """Static per-call provider settings. Only the credential is validated."""
    provider_id: str
    credential: str
    model_name: str = ""
    temperature: float = DEFAULT_TEMPERATURE
    top_k: int = DEFAULT_TOP_K
    top_p: float = DEFAULT_TOP_P
    max_tokens: int = DEFAULT_MAX_TOKENS
    timeout: float = API_TIMEOUT

    @classmethod
    def from_settings(cls, settings: dict) -> "ProviderConfig":
        """Build from runtime settings; an empty api_key falls back to the env var."""
        provider_id = settings.get("ai_provider") or ""
        return cls(
            provider_id=provider_id,
            credential=settings.get("api_key") or env_api_key(provider_id),
            model_name=settings.get("model") or "",
        )


class Provider:
    """One external text-generation service."""

    # stored role -> provider role. Both OpenAI-style APIs take "assistant";
    # OpenAI rejects Gemini's "model" role, so it is not passed through.
    role_map: Dict[str, str] = {USER: "user", ASSISTANT: "assistant"}

    def __init__(self, provider_id: str):
        endpoint = PROVIDER_ENDPOINTS[provider_id]
        self.provider_id = provider_id
        self.name = endpoint["name"]
        self.domain = endpoint["domain"]
        self.base_url = endpoint["url"]
        self.default_model = endpoint["default_model"]

    def resolve_model(self, config: ProviderConfig) -> str:
        return config.model_name or self.default_model

    def map_role(self, role: str) -> str:
        return self.role_map.get(role, role)

    async def generate(self, history: List[Turn], message: str, config: ProviderConfig) -> str:
        """Generate a reply to ``message`` given ``history``. Single attempt."""
        if not config.credential:
            raise MissingCredentialError(self.provider_id)
        return await self._generate(history, message, config)

    async def _generate(self, history: List[Turn], message: str, config: ProviderConfig) -> str:
        raise NotImplementedError


def _default_gemini_model(model_name: str, config: ProviderConfig):
    genai.configure(api_key=config.credential)
    return genai.GenerativeModel(
        model_name,
        generation_config=genai.GenerationConfig(
            temperature=config.temperature,
            top_k=config.top_k,
            top_p=config.top_p,
        ),
    )


class GeminiProvider(Provider):
    """Stateful chat session through the google-generativeai SDK."""

    role_map = {USER: "user", ASSISTANT: "model"}

    def __init__(self, model_factory: Callable = _default_gemini_model):
        super().__init__("gemini")
        self._model_factory = model_factory

    async def _generate(self, history: List[Turn], message: str, config: ProviderConfig) -> str:
        model = self._model_factory(self.resolve_model(config), config)
        chat = model.start_chat(history=[
            {"role": self.map_role(turn.role), "parts": [turn.text]}
            for turn in history
        ])
        try:
            response = await chat.send_message_async(message)
        except (google_exceptions.ServiceUnavailable, google_exceptions.RetryError) as e:
            raise NetworkOrPolicyBlockedError(self.provider_id, self.domain, str(e)) from e
        except google_exceptions.GoogleAPICallError as e:
            if looks_network_blocked(e.message or ""):
                raise NetworkOrPolicyBlockedError(self.provider_id, self.domain, str(e)) from e
            raise ProviderHTTPError(e.code, e.message) from e
        return response.text


class OpenAICompatibleProvider(Provider):
    """One chat-completions request against a fixed OpenAI-style endpoint."""

    def __init__(self, provider_id: str, client_factory: Callable = AsyncOpenAI):
        super().__init__(provider_id)
        self._client_factory = client_factory

    def build_messages(self, history: List[Turn], message: str) -> List[dict]:
        messages = [
            {"role": self.map_role(turn.role), "content": turn.text}
            for turn in history
        ]
        messages.append({"role": "user", "content": message})
        return messages

    async def _generate(self, history: List[Turn], message: str, config: ProviderConfig) -> str:
        client = self._client_factory(
            base_url=self.base_url,
            api_key=config.credential,
            timeout=config.timeout,
            max_retries=0,
        )
        try:
            response = await client.chat.completions.create(
                model=self.resolve_model(config),
                messages=self.build_messages(history, message),
                temperature=config.temperature,
                max_tokens=config.max_tokens,
            )
        except openai.APIStatusError as e:
            raise ProviderHTTPError(e.status_code, _status_text(e)) from e
        except openai.APITimeoutError as e:
            raise asyncio.TimeoutError(f"{self.name} did not answer in {config.timeout}s") from e
        except openai.APIConnectionError as e:
            raise NetworkOrPolicyBlockedError(self.provider_id, self.domain, str(e)) from e
        finally:
            await client.close()

        if not response.choices:
            raise ProviderHTTPError(None, "response missing choices")
        return response.choices[0].message.content or ""


def _status_text(error: "openai.APIStatusError") -> str:
    response = getattr(error, "response", None)
    reason = getattr(response, "reason_phrase", "") if response is not None else ""
    return reason or error.message


def build_default_providers() -> Dict[str, Provider]:
    return {
        "gemini": GeminiProvider(),
        "deepseek": OpenAICompatibleProvider("deepseek"),
        "openai": OpenAICompatibleProvider("openai"),
    }


class AIProviderManager:
    """Dispatches to the selected provider. One attempt, no fallback."""

    def __init__(self, providers: Optional[Dict[str, Provider]] = None, timeout: float = API_TIMEOUT):
        self.providers = providers if providers is not None else build_default_providers()
        self.timeout = timeout
        self.status = {provider_id: "unknown" for provider_id in self.providers}

    def get(self, provider_id: str) -> Provider:
        provider = self.providers.get(provider_id)
        if provider is None:
            raise UnknownProviderError(provider_id)
        return provider

    async def generate(self, history: List[Turn], message: str, config: ProviderConfig) -> str:
        """Generate a reply, raising an AutoReplyError subclass on failure."""
        provider = self.get(config.provider_id)
        provider_id = provider.provider_id

        log.info(f"[{provider_id}] model={provider.resolve_model(config)} | {len(history)} history turns")
        start = time.time()
        try:
            text = await asyncio.wait_for(
                provider.generate(history, message, config),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            self.status[provider_id] = "timeout"
            metrics_manager.record_api_request(provider_id, "timeout", time.time() - start)
            log.error(f"[{provider_id}] ✗ TIMEOUT after {self.timeout}s")
            raise
        except MissingCredentialError:
            self.status[provider_id] = "no key"
            raise
        except AutoReplyError as e:
            self.status[provider_id] = f"error: {str(e)[:50]}"
            metrics_manager.record_api_request(provider_id, "error", time.time() - start)
            log.error(f"[{provider_id}] ✗ {e}")
            raise
        except Exception as e:
            self.status[provider_id] = f"error: {str(e)[:50]}"
            metrics_manager.record_api_request(provider_id, "error", time.time() - start)
            if looks_network_blocked(str(e)):
                raise NetworkOrPolicyBlockedError(provider_id, provider.domain, str(e)) from e
            raise

        self.status[provider_id] = "ok"
        metrics_manager.record_api_request(provider_id, "success", time.time() - start)
        log.info(f"[{provider_id}] ✓ Response length: {len(text) if text else 0} chars")
        return text

    def get_status(self) -> str:
        """Get formatted status of all providers."""
        lines = ["**Provider Status:**"]
        for provider_id, provider in self.providers.items():
            status = self.status.get(provider_id, "unknown")
            emoji = "✅" if status == "ok" else "❓" if status == "unknown" else "❌"
            lines.append(f"• {provider.name}: {emoji} {status}")
        return "\n".join(lines)


# Global instance
provider_manager = AIProviderManager()
