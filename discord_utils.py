"""
Discord AutoReply - Discord Utilities
Helpers converting between discord.py objects and the reply loop.
"""

import re
from typing import List

import discord

from constants import MAX_MESSAGE_LENGTH
from history import ChatMessage


def to_chat_message(message: discord.Message) -> ChatMessage:
    """Host-neutral view of a discord.py message."""
    author = getattr(message, "author", None)
    channel = getattr(message, "channel", None)
    return ChatMessage(
        id=message.id,
        channel_id=channel.id if channel is not None else None,
        author_id=author.id if author is not None else None,
        content=message.content or "",
    )


# --- Message Splitting ---

def split_message(content: str, max_length: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """Split one outbound part into Discord-sized chunks.

    Prefers line breaks, then sentence ends; a single overlong sentence is cut
    hard at ``max_length``.
    """
    if len(content) <= max_length:
        return [content]

    chunks = []
    current_chunk = ""
    pieces = re.split(r'(?<=[.!?\n])\s+', content)

    for piece in pieces:
        while len(piece) > max_length:
            if current_chunk:
                chunks.append(current_chunk)
                current_chunk = ""
            chunks.append(piece[:max_length])
            piece = piece[max_length:]

        if len(current_chunk) + len(piece) + 1 <= max_length:
            current_chunk += (' ' if current_chunk else '') + piece
        else:
            chunks.append(current_chunk)
            current_chunk = piece

    if current_chunk:
        chunks.append(current_chunk)

    return [chunk for chunk in chunks if chunk.strip()]
