"""
Discord AutoReply - History Assembler
Turns the last N channel messages into role-tagged conversation turns.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

USER = "user"
ASSISTANT = "assistant"


@dataclass
class Turn:
    """One role-tagged unit of chat history exchanged with an AI provider."""
    role: str
    text: str


@dataclass(frozen=True)
class ChatMessage:
    """Host-neutral view of a single message."""
    id: Optional[int]
    channel_id: Optional[int]
    author_id: Optional[int]
    content: str


def normalize_history(messages: Iterable[ChatMessage], self_id) -> List[Turn]:
    """Map messages (oldest first) to turns.

    Messages written by ``self_id`` become ``assistant`` turns, everything else
    ``user``. Turns that are empty after trimming are dropped. Providers reject
    histories that open with the assistant, so a leading ``assistant`` turn is
    relabelled ``user``. An empty window stays empty.
    """
    turns = [
        Turn(role=ASSISTANT if msg.author_id == self_id else USER, text=msg.content or "")
        for msg in messages
    ]
    turns = [turn for turn in turns if turn.text.strip() != ""]

    if turns and turns[0].role == ASSISTANT:
        turns[0].role = USER
    return turns


async def assemble_history(host, channel_id, limit: int, exclude_id=None) -> List[Turn]:
    """Fetch the last ``limit`` messages of a channel and normalize them.

    ``exclude_id`` drops the message that triggered the reply; it is sent to
    the provider separately.
    """
    if limit <= 0:
        return []

    messages = await host.fetch_recent_messages(channel_id, limit)
    if exclude_id is not None:
        messages = [msg for msg in messages if msg.id != exclude_id]
    return normalize_history(messages, host.self_id)
