"""
Discord AutoReply - Controller
Owns the reply loop: gate check, history, provider call, pacing, cooldown.
"""

import asyncio
import random
import time
from typing import Callable, Optional

from constants import (
    ALERT_TITLE, ALERT_MISSING_KEY, ALERT_REPLY_FAILED, ALERT_NETWORK_BLOCKED,
    DEFAULT_COOLDOWN_SECONDS, DEFAULT_HISTORY_LENGTH, MAX_HISTORY_LENGTH
)
from errors import EmptyInputError, NetworkOrPolicyBlockedError
from gate import ReplyGate, AlertThrottle
from history import ChatMessage, Turn, USER, assemble_history
from model_catalog import ModelCatalog
from pacer import ReplyPacer
from providers import ProviderConfig, provider_manager
from prometheus_metrics import metrics_manager
import runtime_config
import logger as log


class AutoReplyController:
    """One auto-reply session bound to a host.

    Lifecycle: construct, ``await start()``, feed events through
    ``handle_message`` / ``handle_channel_select`` / ``toggle``, then
    ``stop()``. All state lives on the instance, so several controllers can
    run side by side (one per host).
    """

    def __init__(
        self,
        host,
        providers=None,
        settings=runtime_config,
        sleep: Callable = asyncio.sleep,
        rng: Optional[random.Random] = None,
        name: str = "AutoReply"
    ):
        self.host = host
        self.providers = providers if providers is not None else provider_manager
        self.settings = settings
        self.name = name

        self.gate = ReplyGate()
        self.pacer = ReplyPacer(host, sleep=sleep, rng=rng)
        self.catalog = ModelCatalog()
        self.error_alerts = AlertThrottle()
        self.network_alerts = AlertThrottle()

        self._sleep = sleep
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self.started = False

    # --- Lifecycle ---

    async def start(self) -> bool:
        """Start listening. Refuses (and alerts) when no API key is configured."""
        settings = self.settings.get_all()
        config = ProviderConfig.from_settings(settings)
        if not config.credential:
            log.warn("No API key configured, auto-reply not started", self.name)
            await self._alert(ALERT_MISSING_KEY)
            return False

        self.catalog.refresh(config.provider_id)
        self.catalog.check_model(config.model_name)
        self._loop = asyncio.get_running_loop()
        self.settings.subscribe("ai_provider", self._on_provider_changed)

        self.started = True
        log.ok(f"Auto-reply ready (provider: {config.provider_id})", self.name)
        return True

    def stop(self):
        """Tear down: unsubscribe, disarm and forget the active channel."""
        self.settings.unsubscribe("ai_provider", self._on_provider_changed)
        self.gate.reset()
        metrics_manager.set_busy(False)
        self._loop = None
        self.started = False
        log.info("Auto-reply stopped", self.name)

    def _on_provider_changed(self, provider: str):
        # Settings can change on the dashboard thread; the catalog belongs to the loop
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if self._loop is not None and running is not self._loop:
            self._loop.call_soon_threadsafe(self._refresh_catalog, provider)
        else:
            self._refresh_catalog(provider)

    def _refresh_catalog(self, provider: str):
        self.catalog.refresh(provider)
        self.catalog.check_model(self.settings.get("model"))
        log.info(f"Provider switched to {provider}", self.name)

    # --- Host events ---

    def toggle(self, channel_id) -> bool:
        """Arm/disarm auto-reply and focus ``channel_id``. Returns the new armed state."""
        self.gate.focus(channel_id)
        armed = self.gate.toggle()
        log.info(f"Auto-reply {'armed' if armed else 'disarmed'} for channel {channel_id}", self.name)
        return armed

    def handle_channel_select(self, channel_id):
        """The user focused another conversation."""
        self.gate.focus(channel_id)
        log.debug(f"Active channel: {channel_id}", self.name)

    async def handle_message(self, message: ChatMessage) -> bool:
        """Run one reply cycle for ``message`` if the gate lets it through.

        Returns True if a cycle ran (successfully or not), False if the message
        was dropped.
        """
        if not self.started:
            return False

        settings = self.settings.get_all()
        reason = self.gate.try_acquire(
            message, self.host.self_id, enabled=bool(settings.get("enabled", True))
        )
        metrics_manager.record_message(reason or "handled")
        if reason is not None:
            if reason == "busy":
                log.debug(f"Dropped message {message.id}: reply already in progress", self.name)
            return False

        metrics_manager.set_busy(True)
        show_typing = bool(settings.get("show_typing", True))
        started_at = time.time()
        sent = 0
        success = False
        try:
            if show_typing:
                await self.host.trigger_typing(message.channel_id)
            reply = await self.generate_reply(
                message.channel_id, message.content,
                exclude_id=message.id, settings=settings
            )
            sent = await self.pacer.deliver(message.channel_id, reply, show_typing)
            success = True
        except NetworkOrPolicyBlockedError as e:
            metrics_manager.record_error(e.kind)
            log.error(f"Provider unreachable: {e}", self.name)
            await self._show_network_remediation(e)
            await self._alert_failure()
        except Exception as e:
            metrics_manager.record_error(getattr(e, "kind", "unexpected"))
            log.exception("Failed to generate or send reply", e, self.name)
            await self._alert_failure()
        finally:
            metrics_manager.record_reply(success, sent, time.time() - started_at)
            try:
                await self._sleep(self._cooldown(settings))
            finally:
                self.gate.release()
                metrics_manager.set_busy(False)
        return True

    # --- Reply generation ---

    async def generate_reply(self, channel_id, message: str, exclude_id=None, settings: dict = None) -> str:
        """History + custom instructions + provider call for ``message``."""
        if not message or not message.strip():
            raise EmptyInputError()

        settings = settings if settings is not None else self.settings.get_all()
        history = await assemble_history(
            self.host, channel_id, self._history_length(settings), exclude_id=exclude_id
        )

        instructions = (settings.get("custom_instructions") or "").strip()
        if instructions:
            history.append(Turn(role=USER, text=instructions))

        config = ProviderConfig.from_settings(settings)
        return await self.providers.generate(history, message, config)

    @staticmethod
    def _cooldown(settings: dict) -> float:
        try:
            return max(0.0, float(settings.get("cooldown", DEFAULT_COOLDOWN_SECONDS)))
        except (TypeError, ValueError):
            return float(DEFAULT_COOLDOWN_SECONDS)

    @staticmethod
    def _history_length(settings: dict) -> int:
        try:
            length = int(settings.get("history_length", DEFAULT_HISTORY_LENGTH))
        except (TypeError, ValueError):
            length = DEFAULT_HISTORY_LENGTH
        return max(0, min(MAX_HISTORY_LENGTH, length))

    # --- Alerts ---

    async def _alert(self, body: str, title: str = ALERT_TITLE):
        try:
            await self.host.show_alert(title, body)
        except Exception as e:
            log.error(f"Failed to show alert: {e}", self.name)

    async def _alert_failure(self):
        if self.error_alerts.allow():
            await self._alert(ALERT_REPLY_FAILED, title=f"{ALERT_TITLE} Error")

    async def _show_network_remediation(self, error: NetworkOrPolicyBlockedError):
        if not self.network_alerts.allow():
            return
        body = ALERT_NETWORK_BLOCKED.format(
            provider=error.provider, domain=error.domain, detail=error.detail or str(error)
        )
        await self._alert(body, title=f"{ALERT_TITLE} Network Error")

    # --- Status ---

    def status(self) -> dict:
        settings = self.settings.get_all()
        return {
            "name": self.name,
            "started": self.started,
            "armed": self.gate.armed,
            "busy": self.gate.busy,
            "active_channel_id": self.gate.active_channel_id,
            "provider": settings.get("ai_provider"),
            "model": settings.get("model"),
            "provider_status": dict(getattr(self.providers, "status", {})),
        }
