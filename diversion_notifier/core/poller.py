"""
Commit change detection.

``CommitPoller.poll_once`` is the unit of work the scheduler runs on every
tick: fetch the commit listing, take the newest commit, and notify the
dispatcher only when its id differs from the last one announced. A tick never
raises; every failure is logged and reported through ``PollOutcome``.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Protocol

from loguru import logger

from diversion_notifier.core.errors import CommitPayloadError, DeliveryError, UpstreamError
from diversion_notifier.core.formatter import format_commit_notification
from diversion_notifier.core.models import Commit


class CommitSource(Protocol):
    async def get_latest_commit(self) -> Optional[Commit]:
        ...


class Dispatcher(Protocol):
    async def send(self, text: str) -> None:
        ...


class PollOutcome(str, Enum):
    NOTIFIED = "notified"
    UNCHANGED = "unchanged"
    EMPTY = "empty"
    FETCH_FAILED = "fetch_failed"
    PARSE_FAILED = "parse_failed"
    DELIVERY_FAILED = "delivery_failed"
    ERROR = "error"
    SKIPPED = "skipped"


@dataclass
class LastSeenState:
    """Id of the most recently announced commit. Lives only in memory."""

    commit_id: Optional[str] = None


class CommitPoller:
    """Detects new commits and hands them to a dispatcher"""

    def __init__(self, source: CommitSource, dispatcher: Dispatcher,
                 state: Optional[LastSeenState] = None,
                 formatter: Callable[[Commit], str] = format_commit_notification):
        self.source = source
        self.dispatcher = dispatcher
        self.state = state if state is not None else LastSeenState()
        self.formatter = formatter
        self.last_outcome: Optional[PollOutcome] = None
        self.last_polled_at: Optional[datetime] = None
        self._lock = asyncio.Lock()

    async def poll_once(self) -> PollOutcome:
        """Run one poll tick"""
        if self._lock.locked():
            logger.warning("Previous poll is still running, skipping this tick")
            return PollOutcome.SKIPPED

        async with self._lock:
            outcome = await self._poll()

        self.last_outcome = outcome
        self.last_polled_at = datetime.now(timezone.utc)
        return outcome

    async def _poll(self) -> PollOutcome:
        try:
            latest = await self.source.get_latest_commit()
        except UpstreamError as e:
            logger.error(f"{e} - {e.body}" if e.body else str(e))
            return PollOutcome.FETCH_FAILED
        except CommitPayloadError as e:
            logger.error(f"Could not read commit listing: {e}")
            return PollOutcome.PARSE_FAILED
        except Exception:
            logger.exception("Error checking for commits")
            return PollOutcome.ERROR

        if latest is None:
            logger.debug("No commits returned")
            return PollOutcome.EMPTY

        if latest.id == self.state.commit_id:
            logger.debug(f"Latest commit {latest.id} already announced")
            return PollOutcome.UNCHANGED

        previous = self.state.commit_id
        self.state.commit_id = latest.id
        logger.info(f"New commit detected: {latest.id} (previous: {previous})")

        try:
            await self.dispatcher.send(self.formatter(latest))
        except DeliveryError as e:
            logger.error(f"Failed to deliver notification for {latest.id}: {e}")
            return PollOutcome.DELIVERY_FAILED
        except Exception:
            logger.exception(f"Error sending notification for {latest.id}")
            return PollOutcome.ERROR

        return PollOutcome.NOTIFIED
