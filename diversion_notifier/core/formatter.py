"""
Text rendering for commit notifications and status replies
"""

from datetime import datetime
from typing import Optional

from diversion_notifier.core.models import Commit


DEFAULT_BRANCH = 'main'
MISSING_WORKSPACE = 'N/A'
UNKNOWN_AUTHOR = 'Unknown'
EMPTY_MESSAGE = '(no message)'
MISSING_TIME = 'N/A'

# Discord rejects message content above this length
DISCORD_MESSAGE_LIMIT = 2000


def _commit_lines(commit: Commit):
    return [
        f"Commit: `{commit.id}`",
        f"Author: **{commit.author or UNKNOWN_AUTHOR}**",
        f"Message: {commit.message or EMPTY_MESSAGE}",
        f"Branch: {commit.branch or DEFAULT_BRANCH}",
        f"Workspace: {commit.workspace or MISSING_WORKSPACE}",
    ]


def format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return MISSING_TIME
    return value.strftime('%Y-%m-%d %H:%M:%S %Z').strip()


def format_commit_notification(commit: Commit) -> str:
    """Message posted to the channel when a new commit shows up"""
    return "\n".join(["🆕 New commit in Diversion:"] + _commit_lines(commit))


def format_commit_status(commit: Commit, last_seen: Optional[str] = None) -> str:
    """Reply to the /status command"""
    lines = ["📊 Latest Commit Status:"] + _commit_lines(commit)
    lines.append(f"Time: {format_timestamp(commit.timestamp)}")
    if last_seen:
        lines.append(f"Last notified: `{last_seen}`")
    return "\n".join(lines)


def truncate_message(text: str, limit: int = DISCORD_MESSAGE_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit - 1] + "…"
