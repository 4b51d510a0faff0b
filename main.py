"""
Discord AutoReply - Main
Runs the Discord client, the settings dashboard and the metrics server.
"""

import asyncio
import logging
import sys

# Suppress verbose logging from all libraries
logging.getLogger('discord').setLevel(logging.WARNING)
logging.getLogger('discord.http').setLevel(logging.WARNING)
logging.getLogger('discord.gateway').setLevel(logging.WARNING)
logging.getLogger('httpx').setLevel(logging.WARNING)
logging.getLogger('httpcore').setLevel(logging.WARNING)
logging.getLogger('openai').setLevel(logging.WARNING)
logging.getLogger('openai._base_client').setLevel(logging.WARNING)

from config import DISCORD_TOKEN, DASHBOARD_HOST, DASHBOARD_PORT, METRICS_PORT
from bot_instance import BotInstance
from prometheus_metrics import metrics_manager
import logger as log


async def run_bot():
    """Run the bot until it disconnects or is interrupted."""
    if not DISCORD_TOKEN:
        log.error("DISCORD_TOKEN not set!")
        return

    log.startup("Starting AutoReply...")
    log.divider()

    bot = BotInstance(name="AutoReply", token=DISCORD_TOKEN)

    # Start web dashboard
    try:
        from dashboard import start_dashboard
        start_dashboard(controllers_list=[bot.controller], host=DASHBOARD_HOST, port=DASHBOARD_PORT)
        log.online(f"Dashboard running at http://{DASHBOARD_HOST}:{DASHBOARD_PORT}")
    except Exception as e:
        log.warn(f"Dashboard failed to start: {e}")

    metrics_manager.start_metrics_server(METRICS_PORT)

    try:
        await bot.start()
    finally:
        log.info("Shutting down...")
        await bot.close()


# --- Entry Point ---

def cli():
    # Run startup validation first
    from startup import validate_startup

    if not validate_startup(interactive=sys.stdin.isatty()):
        log.error("Startup validation failed. Please fix the issues above.")
        sys.exit(1)

    log.divider()
    try:
        asyncio.run(run_bot())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    cli()
