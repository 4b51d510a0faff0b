"""
Discord AutoReply - Reply Pacer
Splits a generated reply into paragraphs and sends them with human-like delays.
"""

import asyncio
import random
import re
from typing import Callable, Iterator, List, Tuple

from constants import PARAGRAPH_SEPARATOR, TYPING_RANDOM_MAX_SECONDS, TYPING_SECONDS_PER_CHAR
import logger as log

_SEPARATOR_RE = re.compile(PARAGRAPH_SEPARATOR)


def split_reply(text: str) -> List[str]:
    """Split on blank lines into non-empty paragraphs.

    Without a blank-line separator the whole reply is a single part.
    """
    if not text or not text.strip():
        return []
    if not _SEPARATOR_RE.search(text):
        return [text]
    return [part.strip() for part in _SEPARATOR_RE.split(text) if part.strip()]


def typing_delay(text: str, rng: random.Random = None) -> float:
    """Seconds to wait before sending: random(0-2s) + 40ms per character."""
    rng = rng or random
    return rng.uniform(0, TYPING_RANDOM_MAX_SECONDS) + len(text) * TYPING_SECONDS_PER_CHAR


def iter_paced_parts(text: str, rng: random.Random = None) -> Iterator[Tuple[str, float]]:
    """Yield (part, delay) pairs. One-shot: consumed once per generated reply."""
    for part in split_reply(text):
        yield part, typing_delay(part, rng)


class ReplyPacer:
    """Sends reply parts through the host, one message per paragraph."""

    def __init__(self, host, sleep: Callable = asyncio.sleep, rng: random.Random = None):
        self.host = host
        self._sleep = sleep
        self._rng = rng

    async def deliver(self, channel_id, reply: str, show_typing: bool = True) -> int:
        """Send every part of ``reply`` to ``channel_id``. Returns messages sent."""
        sent = 0
        for part, delay in iter_paced_parts(reply, self._rng):
            if show_typing:
                await self.host.trigger_typing(channel_id)
            await self._sleep(delay)
            await self.host.send_message(channel_id, part)
            sent += 1

        if sent == 0:
            log.warn("Reply was empty, nothing sent")
        else:
            log.debug(f"Sent reply in {sent} part(s) to {channel_id}")
        return sent
