"""
Discord gateway client: slash commands, deferred replies and the poll schedule
"""

from typing import Optional

import discord
from discord import app_commands
from loguru import logger

from diversion_notifier.config.settings import Settings
from diversion_notifier.connectors.diversion import DiversionConnector
from diversion_notifier.connectors.discord import DiscordChannelDispatcher
from diversion_notifier.core.commands import COMMANDS, COMMAND_ERROR_REPLY, CommandHandler
from diversion_notifier.core.formatter import truncate_message
from diversion_notifier.core.poller import CommitPoller, LastSeenState
from diversion_notifier.core.scheduler import JobScheduler


POLL_JOB_ID = 'commit_poll'

# Discord API error codes
MISSING_ACCESS = 50001
UNKNOWN_INTERACTION = 10062

PERMISSION_HELP = (
    "Bot lacks permissions to create slash commands. To fix:\n"
    "1. Go to Discord Developer Portal -> Your Application -> OAuth2 -> URL Generator\n"
    "2. For GUILD INSTALL, select the scopes 'bot' and 'applications.commands'\n"
    "3. Under BOT PERMISSIONS select Send Messages, View Channels and Read Message History\n"
    "4. Open the generated URL to add the bot to your server\n"
    "Bot URL Generator: https://discord.com/developers/applications"
)


async def respond_to_interaction(interaction: discord.Interaction,
                                 handler: CommandHandler, command_name: str) -> None:
    """
    Acknowledge the interaction right away, then edit in the real answer

    Never raises: an expired interaction or a rejected edit is only logged.
    """
    try:
        await interaction.response.defer(thinking=True)
    except discord.NotFound:
        logger.info("Interaction expired, ignoring.")
        return
    except discord.HTTPException as e:
        logger.error(f"Failed to acknowledge /{command_name}: {e}")
        return

    try:
        reply = await handler.handle(command_name)
    except Exception:
        logger.exception(f"Error handling /{command_name}")
        reply = COMMAND_ERROR_REPLY

    try:
        await interaction.edit_original_response(content=truncate_message(reply))
    except discord.NotFound:
        logger.info("Interaction expired, ignoring.")
    except discord.HTTPException as e:
        logger.error(f"Error sending /{command_name} response: {e}")


class DiversionBot(discord.Client):
    """Discord client that watches a Diversion repository"""

    def __init__(self, settings: Settings, connector: Optional[DiversionConnector] = None,
                 state: Optional[LastSeenState] = None):
        super().__init__(
            intents=discord.Intents.default(),
            application_id=settings.CLIENT_ID,
            allowed_mentions=discord.AllowedMentions.none(),
        )
        self.settings = settings
        self.state = state if state is not None else LastSeenState()
        self.diversion = connector or DiversionConnector(settings.get_service_config('diversion'))
        self.dispatcher = DiscordChannelDispatcher(settings.get_service_config('discord'), self)
        self.poller = CommitPoller(self.diversion, self.dispatcher, self.state)
        self.command_handler = CommandHandler(self.diversion, self.state)
        self.scheduler = JobScheduler(settings)
        self.tree = app_commands.CommandTree(self)
        self._add_commands()

    def _add_commands(self):
        for spec in COMMANDS:
            self.tree.add_command(app_commands.Command(
                name=spec.name,
                description=spec.description,
                callback=self._command_callback(spec.name),
            ))

    def _command_callback(self, command_name: str):
        async def callback(interaction: discord.Interaction) -> None:
            await respond_to_interaction(interaction, self.command_handler, command_name)

        callback.__name__ = f"{command_name}_command"
        return callback

    async def setup_hook(self) -> None:
        await self.sync_commands()

        self.scheduler.add_job(
            self.poller.poll_once,
            interval_minutes=self.settings.POLL_INTERVAL_MINUTES,
            job_id=POLL_JOB_ID,
            run_immediately=self.settings.POLL_ON_STARTUP,
        )
        self.scheduler.start()

    async def sync_commands(self) -> None:
        """Register slash commands on the guild, falling back to global registration"""
        guild = discord.Object(id=self.settings.GUILD_ID)
        self.tree.copy_global_to(guild=guild)

        logger.info("Registering slash commands...")
        try:
            await self.tree.sync(guild=guild)
            logger.info("Slash commands registered")
            return
        except discord.HTTPException as e:
            logger.warning(f"Guild command registration failed ({e}), trying global registration...")

        try:
            await self.tree.sync()
            logger.info("Slash commands registered globally")
        except discord.HTTPException as e:
            if e.code == MISSING_ACCESS:
                logger.error(PERMISSION_HELP)
            else:
                logger.error(f"Failed to register slash commands: {e}")

    async def on_ready(self) -> None:
        logger.info(f"Logged in as {self.user}")
        logger.info(f"Watching {self.settings.DIVERSION_REPO_NAME} for changes...")

    async def on_disconnect(self) -> None:
        logger.warning("Disconnected from Discord gateway, waiting for reconnect")

    async def on_resumed(self) -> None:
        logger.info("Discord gateway session resumed")

    async def close(self) -> None:
        self.scheduler.stop()
        await super().close()
