"""
Discord AutoReply - Core Commands
Arm/disarm, focus, provider selection and status.
"""

import discord
from discord import app_commands

from providers import provider_manager
import runtime_config
import logger as log


async def is_owner(interaction: discord.Interaction) -> bool:
    """Check if the user is the application owner."""
    app_info = await interaction.client.application_info()
    if app_info.team:
        # If the bot is owned by a team, check if user is a team member
        return interaction.user.id in [m.id for m in app_info.team.members]
    return interaction.user.id == app_info.owner.id


def setup_core_commands(bot_instance) -> None:
    """Register the auto-reply commands."""
    tree = bot_instance.tree
    controller = bot_instance.controller

    @tree.command(name="autoreply", description="Toggle auto-reply for this channel (owner only)")
    async def cmd_autoreply(interaction: discord.Interaction) -> None:
        if not await is_owner(interaction):
            await interaction.response.send_message(
                "❌ Only the bot owner can use this command", ephemeral=True
            )
            return

        if not controller.started and not await controller.start():
            await interaction.response.send_message(
                "❌ No API key configured. Set one in the dashboard first.", ephemeral=True
            )
            return

        armed = controller.toggle(interaction.channel_id)
        if armed:
            await interaction.response.send_message("✅ Auto-reply **ON** for this channel", ephemeral=True)
        else:
            await interaction.response.send_message("🛑 Auto-reply **OFF**", ephemeral=True)

    @tree.command(name="focus", description="Make this the channel auto-reply watches (owner only)")
    async def cmd_focus(interaction: discord.Interaction) -> None:
        if not await is_owner(interaction):
            await interaction.response.send_message(
                "❌ Only the bot owner can use this command", ephemeral=True
            )
            return

        controller.handle_channel_select(interaction.channel_id)
        state = "armed" if controller.gate.armed else "disarmed"
        await interaction.response.send_message(f"👀 Watching this channel ({state})", ephemeral=True)

    @tree.command(name="provider", description="Switch the AI provider (owner only)")
    @app_commands.describe(provider="AI provider to use")
    @app_commands.choices(provider=[
        app_commands.Choice(name=p.name, value=provider_id)
        for provider_id, p in provider_manager.providers.items()
    ])
    async def cmd_provider(interaction: discord.Interaction, provider: app_commands.Choice[str]) -> None:
        if not await is_owner(interaction):
            await interaction.response.send_message(
                "❌ Only the bot owner can use this command", ephemeral=True
            )
            return

        runtime_config.set("ai_provider", provider.value)
        log.info(f"Provider set to {provider.value} via command", bot_instance.name)
        await interaction.response.send_message(f"✅ Provider set to **{provider.name}**", ephemeral=True)

    @tree.command(name="autoreply_status", description="Check auto-reply status")
    async def cmd_status(interaction: discord.Interaction) -> None:
        status = controller.status()
        channel_id = status["active_channel_id"]
        watching = f"<#{channel_id}>" if channel_id else "none"
        lines = [
            f"**Bot:** {bot_instance.name}",
            f"**Armed:** {'yes' if status['armed'] else 'no'}",
            f"**Busy:** {'yes' if status['busy'] else 'no'}",
            f"**Watching:** {watching}",
            f"**Provider:** {status['provider']} ({status['model'] or 'default model'})",
            "",
            provider_manager.get_status(),
        ]
        await interaction.response.send_message("\n".join(lines), ephemeral=True)
