"""
Diversion connector for reading repository commits
"""

from typing import Dict, Any, Optional

import httpx
from loguru import logger

from diversion_notifier.connectors.base import BaseConnector
from diversion_notifier.core.errors import CommitPayloadError, UpstreamError
from diversion_notifier.core.models import Commit, extract_commits, latest_commit


DEFAULT_TIMEOUT_SECONDS = 10.0


class DiversionConnector(BaseConnector):
    """Diversion REST API connector"""

    def __init__(self, config: Dict[str, Any],
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(config)
        self.url = config['url']
        self.bearer_token = config['bearer_token']
        self.workspace = config.get('workspace')
        self.timeout = config.get('timeout') or DEFAULT_TIMEOUT_SECONDS
        self._transport = transport

    @property
    def headers(self) -> Dict[str, str]:
        headers = {
            'Authorization': f"Bearer {self.bearer_token}",
            'Accept': 'application/json',
            'Content-Type': 'application/json',
        }
        if self.workspace:
            headers['X-Diversion-Workspace'] = self.workspace
        return headers

    async def fetch_commits_payload(self) -> Any:
        """
        GET the commit listing and decode its JSON body

        Raises:
            UpstreamError: non-success status or transport failure
            CommitPayloadError: body is not JSON
        """
        logger.debug(f"Fetching commits from: {self.url}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.url, headers=self.headers)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Diversion API request failed: {e}") from e

        if not response.is_success:
            raise UpstreamError(
                f"Diversion API Error: {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise CommitPayloadError(f"Diversion API returned invalid JSON: {e}") from e

        logger.debug(f"Diversion API Response: {payload}")
        return payload

    async def get_latest_commit(self) -> Optional[Commit]:
        """Newest commit in the repository, or None if it has none"""
        payload = await self.fetch_commits_payload()
        return latest_commit(payload)

    async def health_check(self) -> Dict[str, Any]:
        """Check that the commit endpoint answers with a usable payload"""
        try:
            payload = await self.fetch_commits_payload()
            commits = extract_commits(payload)
        except UpstreamError as e:
            return {
                'healthy': False,
                'message': str(e),
                'details': {'status_code': e.status_code, 'body': e.body[:500]}
            }
        except CommitPayloadError as e:
            return {
                'healthy': False,
                'message': str(e)
            }

        details = {'url': self.url, 'commit_count': len(commits)}
        if commits and isinstance(commits[0], dict):
            details['latest_commit'] = commits[0].get('id')

        return {
            'healthy': True,
            'message': f"API healthy, {len(commits)} commits returned",
            'details': details
        }
