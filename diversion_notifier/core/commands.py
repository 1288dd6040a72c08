"""
Slash command definitions and their platform independent handlers
"""

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from diversion_notifier.core.formatter import format_commit_status
from diversion_notifier.core.poller import CommitSource, LastSeenState


PONG_REPLY = "🏓 Pong!"
NO_COMMITS_REPLY = "❌ No commits found in the repository."
STATUS_FAILED_REPLY = "❌ Failed to fetch repository status. Check the logs for details."
UNKNOWN_COMMAND_REPLY = "❓ Unknown command."
COMMAND_ERROR_REPLY = "There was an error processing your command!"


@dataclass(frozen=True)
class CommandSpec:
    name: str
    description: str


COMMANDS = (
    CommandSpec('ping', 'Replies with Pong!'),
    CommandSpec('status', 'Shows the latest commit from Diversion repository'),
)


class CommandHandler:
    """Answers on-demand commands; every call returns a reply"""

    def __init__(self, source: CommitSource, state: Optional[LastSeenState] = None):
        self.source = source
        self.state = state if state is not None else LastSeenState()

    async def handle(self, command_name: str) -> str:
        if command_name == 'ping':
            return await self.ping()
        if command_name == 'status':
            return await self.status()

        logger.warning(f"Received unknown command: {command_name}")
        return UNKNOWN_COMMAND_REPLY

    async def ping(self) -> str:
        return PONG_REPLY

    async def status(self) -> str:
        """Fetch the newest commit directly, bypassing the poll schedule"""
        try:
            latest = await self.source.get_latest_commit()
        except Exception:
            logger.exception("Error fetching status")
            return STATUS_FAILED_REPLY

        if latest is None:
            return NO_COMMITS_REPLY

        return format_commit_status(latest, last_seen=self.state.commit_id)
