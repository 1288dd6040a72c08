"""
Connector module for service integrations
"""

from .base import BaseConnector
from .diversion import DiversionConnector
from .discord import DiscordChannelDispatcher


__all__ = [
    'BaseConnector',
    'DiversionConnector',
    'DiscordChannelDispatcher',
]
