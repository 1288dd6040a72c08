"""
Base connector class for all service integrations
"""

from abc import ABC, abstractmethod
from typing import Dict, Any
import time
from datetime import datetime, timezone

from loguru import logger


class BaseConnector(ABC):
    """Abstract base class for service connectors"""

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize connector with configuration

        Args:
            config: Service-specific configuration dictionary
        """
        self.config = config
        self._last_check_time = None
        self.service_name = self.__class__.__name__.replace('Connector', '').lower()

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """
        Perform health check on the service

        Returns:
            dict: Health check results with keys:
                - healthy: bool
                - message: str
                - details: dict (optional)
        """

    async def check_health(self) -> Dict[str, Any]:
        """
        Wrapper for health check with timing and error handling
        """
        start_time = time.time()

        try:
            result = await self.health_check()
            result['response_time'] = (time.time() - start_time) * 1000  # Convert to ms
            result['checked_at'] = datetime.now(timezone.utc).isoformat()
            self._last_check_time = time.time()
            return result

        except Exception as e:
            response_time = (time.time() - start_time) * 1000
            logger.error(f"Health check failed for {self.service_name}: {e}")

            return {
                'healthy': False,
                'response_time': response_time,
                'message': f"Health check failed: {str(e)}",
                'error': str(e),
                'checked_at': datetime.now(timezone.utc).isoformat()
            }

    def __repr__(self):
        return f"<{self.__class__.__name__} service={self.service_name}>"
