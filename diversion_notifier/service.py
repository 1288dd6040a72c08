"""
Process runtime: Discord gateway, poll schedule and health server on one event loop
"""

import asyncio

import uvicorn
from loguru import logger

from diversion_notifier.api.app import create_app
from diversion_notifier.client import DiversionBot
from diversion_notifier.config.settings import Settings


def log_configuration(settings: Settings) -> None:
    """Startup summary of the effective configuration, secrets masked"""
    masked = settings.mask_secrets()
    logger.info("Bot Configuration:")
    logger.info(f"Client ID: {masked['CLIENT_ID']}")
    logger.info(f"Guild ID: {masked['GUILD_ID']}")
    logger.info(f"Channel ID: {masked['CHANNEL_ID']}")
    logger.info(f"Base URL: {masked['DIVERSION_BASE_URL']}")
    logger.info(f"Repository: {masked['DIVERSION_REPO_NAME']}")
    logger.info(f"Workspace: {masked['DIVERSION_WORKSPACE']}")
    logger.info(f"Full API URL: {masked['DIVERSION_API_URL']}")
    logger.info(f"Poll interval: {settings.POLL_INTERVAL_MINUTES} minutes")


async def run_service(settings: Settings) -> int:
    """
    Run until the health server stops or the Discord client dies

    Returns:
        int: process exit code
    """
    bot = DiversionBot(settings)
    app = create_app(settings, poller=bot.poller, scheduler=bot.scheduler)
    server = uvicorn.Server(uvicorn.Config(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    ))
    exit_code = 0

    def on_bot_done(task: asyncio.Task) -> None:
        nonlocal exit_code
        if not task.cancelled() and task.exception() is not None:
            logger.opt(exception=task.exception()).error("Discord client stopped")
            exit_code = 1
        server.should_exit = True

    async with bot:
        bot_task = asyncio.create_task(bot.start(settings.DISCORD_TOKEN), name='discord-gateway')
        bot_task.add_done_callback(on_bot_done)
        logger.info(f"HTTP server running on port {settings.PORT}")

        try:
            await server.serve()
        finally:
            if not bot.is_closed():
                await bot.close()
            await asyncio.gather(bot_task, return_exceptions=True)

    return exit_code
