from __future__ import annotations

import asyncio
from typing import Optional

from history import ChatMessage

SELF_ID = 1
OTHER_ID = 2
CHANNEL_ID = 100


class FakeHost:
    """In-memory stand-in for the Discord client."""

    def __init__(self, self_id: int = SELF_ID) -> None:
        self.self_id = self_id
        self.channels: dict[int, list[ChatMessage]] = {}
        self.sent: list[tuple[int, str]] = []
        self.typing: list[int] = []
        self.alerts: list[tuple[str, str]] = []
        self.fetches: list[tuple[int, int]] = []

    def post(self, channel_id: int, author_id: int, content: str) -> ChatMessage:
        messages = self.channels.setdefault(channel_id, [])
        message = ChatMessage(
            id=len(messages) + 1000 * channel_id,
            channel_id=channel_id,
            author_id=author_id,
            content=content,
        )
        messages.append(message)
        return message

    async def fetch_recent_messages(self, channel_id: int, limit: int) -> list[ChatMessage]:
        self.fetches.append((channel_id, limit))
        return list(self.channels.get(channel_id, []))[-limit:]

    async def send_message(self, channel_id: int, content: str) -> None:
        self.sent.append((channel_id, content))

    async def trigger_typing(self, channel_id: int) -> None:
        self.typing.append(channel_id)

    async def show_alert(self, title: str, body: str) -> None:
        self.alerts.append((title, body))


class FakeProviders:
    """Records generate() calls; returns ``reply`` or raises ``error``."""

    def __init__(self, reply: str = "ok", error: Optional[Exception] = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[tuple] = []
        self.status: dict[str, str] = {}
        self.release: Optional[asyncio.Event] = None

    async def generate(self, history, message, config) -> str:
        self.calls.append((history, message, config))
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.reply


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
