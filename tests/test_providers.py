from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Optional

import httpx
import openai
import pytest
from google.api_core import exceptions as google_exceptions

from errors import (
    MissingCredentialError,
    NetworkOrPolicyBlockedError,
    ProviderHTTPError,
    UnknownProviderError,
)
from history import ASSISTANT, USER, Turn
from providers import (
    AIProviderManager,
    GeminiProvider,
    OpenAICompatibleProvider,
    Provider,
    ProviderConfig,
)

HISTORY = [Turn(USER, "hi"), Turn(ASSISTANT, "hello!"), Turn(USER, "be nice")]


def _completion(content: str) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeCompletions:
    def __init__(self, response=None, error: Optional[Exception] = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


class FakeOpenAIFactory:
    def __init__(self, completions: FakeCompletions) -> None:
        self.completions = completions
        self.calls: list[dict] = []
        self.closed = 0

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        factory = self

        class _Client:
            chat = SimpleNamespace(completions=factory.completions)

            async def close(self) -> None:
                factory.closed += 1

        return _Client()


class FakeChat:
    def __init__(self, history, reply: str, error: Optional[Exception]) -> None:
        self.history = history
        self.reply = reply
        self.error = error
        self.sent: list[str] = []

    async def send_message_async(self, message: str):
        self.sent.append(message)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.reply)


class FakeGeminiFactory:
    def __init__(self, reply: str = "gemini says hi", error: Optional[Exception] = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[tuple] = []
        self.chats: list[FakeChat] = []

    def __call__(self, model_name: str, config: ProviderConfig):
        self.calls.append((model_name, config))
        factory = self

        class _Model:
            def start_chat(self, history):
                chat = FakeChat(history, factory.reply, factory.error)
                factory.chats.append(chat)
                return chat

        return _Model()


def _request() -> httpx.Request:
    return httpx.Request("POST", "https://api.deepseek.com/v1/chat/completions")


# --- OpenAI-compatible ---

@pytest.mark.asyncio
async def test_deepseek_request_shape() -> None:
    completions = FakeCompletions(response=_completion("sure"))
    factory = FakeOpenAIFactory(completions)
    provider = OpenAICompatibleProvider("deepseek", client_factory=factory)

    text = await provider.generate(HISTORY, "what's up?", ProviderConfig("deepseek", "sk-test"))

    assert text == "sure"
    client_kwargs = factory.calls[0]
    assert client_kwargs["base_url"] == "https://api.deepseek.com/v1"
    assert client_kwargs["api_key"] == "sk-test"
    assert client_kwargs["max_retries"] == 0
    request = completions.calls[0]
    assert request["model"] == "deepseek-chat"
    assert request["temperature"] == 0.9
    assert request["max_tokens"] == 1000
    assert request["messages"] == [
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello!"},
        {"role": "user", "content": "be nice"},
        {"role": "user", "content": "what's up?"},
    ]
    assert factory.closed == 1


@pytest.mark.asyncio
async def test_openai_uses_configured_model() -> None:
    completions = FakeCompletions(response=_completion("ok"))
    provider = OpenAICompatibleProvider("openai", client_factory=FakeOpenAIFactory(completions))

    await provider.generate([], "hey", ProviderConfig("openai", "sk-test", model_name="gpt-4o"))

    assert completions.calls[0]["model"] == "gpt-4o"


def test_openai_and_gemini_name_the_assistant_differently() -> None:
    openai_messages = OpenAICompatibleProvider("openai").build_messages(HISTORY, "next")

    assert openai_messages[1] == {"role": "assistant", "content": "hello!"}
    assert GeminiProvider().map_role(ASSISTANT) == "model"


@pytest.mark.asyncio
async def test_non_success_status_carries_status_text() -> None:
    response = httpx.Response(429, request=_request())
    error = openai.RateLimitError("rate limited", response=response, body=None)
    factory = FakeOpenAIFactory(FakeCompletions(error=error))
    provider = OpenAICompatibleProvider("deepseek", client_factory=factory)

    with pytest.raises(ProviderHTTPError) as excinfo:
        await provider.generate(HISTORY, "hey", ProviderConfig("deepseek", "sk-test"))

    assert excinfo.value.status == 429
    assert excinfo.value.status_text == "Too Many Requests"
    assert str(excinfo.value) == "API request failed: Too Many Requests"
    assert factory.closed == 1


@pytest.mark.asyncio
async def test_connection_error_is_network_blocked() -> None:
    error = openai.APIConnectionError(request=_request())
    provider = OpenAICompatibleProvider("deepseek", client_factory=FakeOpenAIFactory(FakeCompletions(error=error)))

    with pytest.raises(NetworkOrPolicyBlockedError) as excinfo:
        await provider.generate(HISTORY, "hey", ProviderConfig("deepseek", "sk-test"))

    assert excinfo.value.domain == "https://api.deepseek.com"


@pytest.mark.asyncio
async def test_missing_credential_creates_no_client() -> None:
    factory = FakeOpenAIFactory(FakeCompletions(response=_completion("never")))
    provider = OpenAICompatibleProvider("openai", client_factory=factory)

    with pytest.raises(MissingCredentialError):
        await provider.generate(HISTORY, "hey", ProviderConfig("openai", ""))

    assert factory.calls == []
    assert factory.completions.calls == []


# --- Gemini ---

@pytest.mark.asyncio
async def test_gemini_chat_seeded_with_history() -> None:
    factory = FakeGeminiFactory()
    provider = GeminiProvider(model_factory=factory)
    config = ProviderConfig("gemini", "g-key")

    text = await provider.generate(HISTORY, "what's up?", config)

    assert text == "gemini says hi"
    model_name, used_config = factory.calls[0]
    assert model_name == "gemini-2.5-pro"
    assert (used_config.temperature, used_config.top_k, used_config.top_p) == (0.9, 40, 0.95)
    chat = factory.chats[0]
    assert chat.history == [
        {"role": "user", "parts": ["hi"]},
        {"role": "model", "parts": ["hello!"]},
        {"role": "user", "parts": ["be nice"]},
    ]
    assert chat.sent == ["what's up?"]


@pytest.mark.asyncio
async def test_gemini_api_error_maps_to_http_error() -> None:
    factory = FakeGeminiFactory(error=google_exceptions.TooManyRequests("quota exceeded"))
    provider = GeminiProvider(model_factory=factory)

    with pytest.raises(ProviderHTTPError) as excinfo:
        await provider.generate([], "hey", ProviderConfig("gemini", "g-key"))

    assert excinfo.value.status == 429
    assert excinfo.value.status_text == "quota exceeded"


@pytest.mark.asyncio
async def test_gemini_missing_credential_never_builds_model() -> None:
    factory = FakeGeminiFactory()

    with pytest.raises(MissingCredentialError):
        await GeminiProvider(model_factory=factory).generate([], "hey", ProviderConfig("gemini", ""))

    assert factory.calls == []


# --- Manager ---

class SlowProvider(Provider):
    async def _generate(self, history, message, config) -> str:
        await asyncio.sleep(1)
        return "too late"


class BrokenProvider(Provider):
    def __init__(self, provider_id: str, error: Exception) -> None:
        super().__init__(provider_id)
        self.error = error

    async def _generate(self, history, message, config) -> str:
        raise self.error


@pytest.mark.asyncio
async def test_unknown_provider_fails_without_network() -> None:
    factory = FakeOpenAIFactory(FakeCompletions(response=_completion("never")))
    manager = AIProviderManager({"openai": OpenAICompatibleProvider("openai", client_factory=factory)})

    with pytest.raises(UnknownProviderError):
        await manager.generate(HISTORY, "hey", ProviderConfig("claude", "sk-test"))

    assert factory.calls == []


@pytest.mark.asyncio
async def test_manager_tracks_success_status() -> None:
    factory = FakeOpenAIFactory(FakeCompletions(response=_completion("fine")))
    manager = AIProviderManager({"openai": OpenAICompatibleProvider("openai", client_factory=factory)})

    assert await manager.generate([], "hey", ProviderConfig("openai", "sk-test")) == "fine"
    assert manager.status["openai"] == "ok"
    assert "✅" in manager.get_status()


@pytest.mark.asyncio
async def test_manager_missing_credential_marks_no_key() -> None:
    factory = FakeOpenAIFactory(FakeCompletions(response=_completion("never")))
    manager = AIProviderManager({"openai": OpenAICompatibleProvider("openai", client_factory=factory)})

    with pytest.raises(MissingCredentialError):
        await manager.generate([], "hey", ProviderConfig("openai", ""))

    assert manager.status["openai"] == "no key"
    assert factory.calls == []


@pytest.mark.asyncio
async def test_manager_timeout() -> None:
    manager = AIProviderManager({"openai": SlowProvider("openai")}, timeout=0.01)

    with pytest.raises(asyncio.TimeoutError):
        await manager.generate([], "hey", ProviderConfig("openai", "sk-test"))

    assert manager.status["openai"] == "timeout"


@pytest.mark.asyncio
async def test_manager_classifies_blocked_requests() -> None:
    error = RuntimeError("request blocked by proxy")
    manager = AIProviderManager({"deepseek": BrokenProvider("deepseek", error)})

    with pytest.raises(NetworkOrPolicyBlockedError) as excinfo:
        await manager.generate([], "hey", ProviderConfig("deepseek", "sk-test"))

    assert excinfo.value.provider == "deepseek"
    assert excinfo.value.__cause__ is error


@pytest.mark.asyncio
async def test_manager_reraises_other_failures_unchanged() -> None:
    error = ValueError("bad payload")
    manager = AIProviderManager({"deepseek": BrokenProvider("deepseek", error)})

    with pytest.raises(ValueError):
        await manager.generate([], "hey", ProviderConfig("deepseek", "sk-test"))

    assert manager.status["deepseek"].startswith("error")


def test_config_from_settings_falls_back_to_env_key(monkeypatch) -> None:
    monkeypatch.setenv("DEEPSEEK_API_KEY", "env-key")

    config = ProviderConfig.from_settings({"ai_provider": "deepseek", "api_key": "", "model": ""})

    assert config.credential == "env-key"
    assert config.model_name == ""


def test_config_from_settings_prefers_saved_key(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "env-key")

    config = ProviderConfig.from_settings({"ai_provider": "openai", "api_key": "saved", "model": "gpt-4"})

    assert (config.credential, config.model_name) == ("saved", "gpt-4")


@pytest.mark.asyncio
async def test_gemini_unreachable_host_is_network_blocked() -> None:
    error = google_exceptions.ServiceUnavailable(
        "failed to connect to all addresses; last error: Connection refused"
    )
    manager = AIProviderManager({"gemini": GeminiProvider(model_factory=FakeGeminiFactory(error=error))})

    with pytest.raises(NetworkOrPolicyBlockedError) as excinfo:
        await manager.generate([], "hey", ProviderConfig("gemini", "g-key"))

    assert excinfo.value.provider == "gemini"
    assert excinfo.value.domain == "https://generativelanguage.googleapis.com"
    assert "Connection refused" in excinfo.value.detail


@pytest.mark.asyncio
async def test_gemini_retry_exhaustion_is_network_blocked() -> None:
    error = google_exceptions.RetryError("Deadline exceeded while retrying", cause=OSError("dns"))
    provider = GeminiProvider(model_factory=FakeGeminiFactory(error=error))

    with pytest.raises(NetworkOrPolicyBlockedError):
        await provider.generate([], "hey", ProviderConfig("gemini", "g-key"))


@pytest.mark.asyncio
async def test_gemini_blocked_by_proxy_is_network_blocked() -> None:
    error = google_exceptions.Forbidden("request blocked by corporate proxy")
    provider = GeminiProvider(model_factory=FakeGeminiFactory(error=error))

    with pytest.raises(NetworkOrPolicyBlockedError):
        await provider.generate([], "hey", ProviderConfig("gemini", "g-key"))


@pytest.mark.asyncio
async def test_gemini_bad_request_stays_http_error() -> None:
    error = google_exceptions.BadRequest("API key not valid")
    provider = GeminiProvider(model_factory=FakeGeminiFactory(error=error))

    with pytest.raises(ProviderHTTPError) as excinfo:
        await provider.generate([], "hey", ProviderConfig("gemini", "g-key"))

    assert excinfo.value.status == 400
