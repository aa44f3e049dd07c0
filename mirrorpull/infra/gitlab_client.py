"""
GitLab API client infrastructure for mirrorpull.

Only the call mirror runs need: creating a pipeline for a project ref.
Authentication uses a private token sent in the PRIVATE-TOKEN header.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any
from urllib.parse import quote

import requests

from ..exit_codes import TriggerError

logger = logging.getLogger(__name__)


@dataclass
class PipelineInfo:
    """A pipeline created through the API."""
    id: Optional[int]
    status: str
    ref: str
    web_url: Optional[str] = None

    @classmethod
    def from_api_response(cls, data: Dict[str, Any], ref: str) -> 'PipelineInfo':
        """Create from GitLab API response."""
        return cls(
            id=data.get('id'),
            status=data.get('status', 'created'),
            ref=data.get('ref', ref),
            web_url=data.get('web_url'),
        )


class GitLabClient:
    """
    GitLab API v4 client.

    Example:
        client = GitLabClient("https://gitlab.example.com", token="...")
        info = client.create_pipeline("group%2Fproject", "master")
        print(info.web_url)
    """

    def __init__(
        self,
        url: str,
        token: str = "",
        timeout: int = 30,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize GitLabClient.

        Args:
            url: Instance URL, without the /api/v4 suffix
            token: Private or project access token
            timeout: Request timeout in seconds
            session: requests session to reuse (creates one if None)
        """
        self.url = url.rstrip('/')
        self.endpoint = f"{self.url}/api/v4"
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {'Accept': 'application/json', 'User-Agent': 'mirrorpull'}
        if self.token:
            headers['PRIVATE-TOKEN'] = self.token
        return headers

    def create_pipeline(self, project_id: str, ref: str) -> PipelineInfo:
        """
        Create a pipeline for a project ref.

        Args:
            project_id: Numeric id or URL-encoded namespace (group%2Fproject)
            ref: Branch or tag to run the pipeline for

        Returns:
            PipelineInfo for the created pipeline

        Raises:
            TriggerError: On transport errors or a non-2xx response
        """
        # Already-encoded ids pass through untouched
        url = f"{self.endpoint}/projects/{quote(project_id, safe='%')}/pipeline"
        logger.info(f"Triggering pipeline for {project_id} on {ref}")

        try:
            response = self.session.post(
                url,
                params={'ref': ref},
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TriggerError(f"Pipeline request for {project_id} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            try:
                body = response.json()
            except ValueError:
                body = None
            detail = body.get('message', response.text) if isinstance(body, dict) else response.text
            raise TriggerError(
                f"GitLab API error {response.status_code} creating pipeline for "
                f"{project_id} on {ref}: {detail}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            data = {}
        return PipelineInfo.from_api_response(data if isinstance(data, dict) else {}, ref)
