"""
Discord AutoReply - Bot Instance
Discord client that feeds the reply loop and carries out its sends.
"""

import discord
from discord import app_commands
from typing import List, Optional

from commands import setup_all_commands
from controller import AutoReplyController
from discord_utils import to_chat_message, split_message
from history import ChatMessage
import logger as log


class BotInstance:
    """Discord host for one AutoReplyController.

    Implements the host interface the controller needs: ``self_id``,
    ``fetch_recent_messages``, ``send_message``, ``trigger_typing`` and
    ``show_alert``.
    """

    def __init__(self, name: str, token: str, controller: Optional[AutoReplyController] = None):
        self.name = name
        self.token = token

        # Create intents
        intents = discord.Intents.default()
        intents.message_content = True

        # Create client and tree
        self.client = discord.Client(intents=intents)
        self.tree = app_commands.CommandTree(self.client)

        self.controller = controller or AutoReplyController(self, name=name)

        # Set up events and commands
        self._setup_events()
        setup_all_commands(self)

    def _setup_events(self):
        """Register event handlers."""

        @self.client.event
        async def on_ready():
            try:
                synced = await self.tree.sync()
                log.ok(f"Synced {len(synced)} commands", self.name)
            except Exception as e:
                log.error(f"Command sync failed: {e}", self.name)

            # on_ready fires again after reconnects
            if not self.controller.started:
                await self.controller.start()

            log.online(f"{self.client.user} is online!", self.name)

        @self.client.event
        async def on_message(message: discord.Message):
            await self.controller.handle_message(to_chat_message(message))

    # --- Host interface ---

    @property
    def self_id(self) -> Optional[int]:
        return self.client.user.id if self.client.user else None

    async def _resolve_channel(self, channel_id: int):
        channel = self.client.get_channel(channel_id)
        if channel is None:
            channel = await self.client.fetch_channel(channel_id)
        return channel

    async def fetch_recent_messages(self, channel_id: int, limit: int) -> List[ChatMessage]:
        """Last ``limit`` messages of a channel, oldest first."""
        channel = await self._resolve_channel(channel_id)
        messages = [msg async for msg in channel.history(limit=limit)]
        messages.reverse()
        return [to_chat_message(msg) for msg in messages]

    async def send_message(self, channel_id: int, content: str):
        channel = await self._resolve_channel(channel_id)
        for chunk in split_message(content):
            await channel.send(chunk, tts=False)

    async def trigger_typing(self, channel_id: int):
        """Show the typing indicator once. Failures are logged, never raised."""
        try:
            channel = await self._resolve_channel(channel_id)
            await channel.typing()
        except discord.HTTPException as e:
            log.debug(f"Error setting typing status: {e}", self.name)

    async def show_alert(self, title: str, body: str):
        """Log the alert and DM it to the application owner."""
        log.warn(f"{title}: {body.splitlines()[0] if body else ''}", self.name)
        try:
            app_info = await self.client.application_info()
            owner = app_info.team.owner if app_info.team else app_info.owner
            if owner is None:
                return
            await owner.send(f"**{title}**\n{body}"[:2000])
        except discord.HTTPException as e:
            log.error(f"Failed to deliver alert: {e}", self.name)

    # --- Lifecycle ---

    async def start(self):
        """Start the bot."""
        await self.client.start(self.token)

    async def close(self):
        """Stop the reply loop and close the bot connection."""
        self.controller.stop()
        await self.client.close()
