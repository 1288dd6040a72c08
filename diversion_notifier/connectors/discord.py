"""
Discord connector for delivering notifications to a text channel
"""

from typing import Dict, Any

import discord
from discord.abc import Messageable
from loguru import logger

from diversion_notifier.connectors.base import BaseConnector
from diversion_notifier.core.errors import DeliveryError
from diversion_notifier.core.formatter import truncate_message


class DiscordChannelDispatcher(BaseConnector):
    """Sends plain text messages to the configured Discord channel"""

    def __init__(self, config: Dict[str, Any], client: discord.Client):
        super().__init__(config)
        self.channel_id = int(config['channel_id'])
        self.client = client
        self.service_name = 'discord'

    async def _resolve_channel(self):
        channel = self.client.get_channel(self.channel_id)
        if channel is None:
            channel = await self.client.fetch_channel(self.channel_id)
        return channel

    async def send(self, text: str) -> None:
        """
        Post a message to the channel

        Raises:
            DeliveryError: if the channel cannot be resolved or rejects the message
        """
        try:
            channel = await self._resolve_channel()
        except discord.HTTPException as e:
            raise DeliveryError(f"Cannot access channel {self.channel_id}: {e}") from e

        if not isinstance(channel, Messageable):
            raise DeliveryError(f"Channel {self.channel_id} cannot receive messages")

        try:
            # Commit text must not ping anyone
            await channel.send(truncate_message(text), allowed_mentions=discord.AllowedMentions.none())
        except discord.Forbidden as e:
            raise DeliveryError(
                f"Missing permission to post in channel {self.channel_id}: {e}"
            ) from e
        except discord.HTTPException as e:
            raise DeliveryError(f"Discord rejected the message: {e}") from e

        logger.info(f"Message delivered to channel {self.channel_id}")

    async def health_check(self) -> Dict[str, Any]:
        """Report gateway readiness"""
        if not self.client.is_ready():
            return {
                'healthy': False,
                'message': "Discord client is not connected"
            }

        return {
            'healthy': True,
            'message': f"Connected as {self.client.user}",
            'details': {
                'latency_ms': round(self.client.latency * 1000, 1),
                'guilds': len(self.client.guilds),
                'channel_id': self.channel_id
            }
        }
