"""
GitHub API service: fork creation and repository URL lookup.
"""

import asyncio
from typing import Any, Dict, Optional

import httpx
from github import Auth, Github

from ..infrastructure.error_handler import (
    MalformedKey,
    MissingKey,
    StageError,
    error_from_payload,
    handle_api_error,
)
from ..infrastructure.logger import logger
from ..models import Authentication, GitProtocol, RepositorySpec


GITHUB_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 30.0

URL_KEYS = {
    GitProtocol.SSH: "ssh_url",
    GitProtocol.HTTPS: "clone_url",
}


def git_url_from_json(data: Dict[str, Any], protocol: GitProtocol) -> str:
    """
    Pick the clone URL for ``protocol`` out of a repository JSON object.

    Raises:
        MissingKey: If the URL key is absent
        MalformedKey: If the URL value is not a string
    """
    key = URL_KEYS[protocol]
    if key not in data:
        raise MissingKey(key)
    value = data[key]
    if not isinstance(value, str):
        raise MalformedKey(key)
    return value


def _select_url(data: Dict[str, Any], protocol: GitProtocol) -> str:
    try:
        return git_url_from_json(data, protocol)
    except (MissingKey, MalformedKey) as e:
        raise StageError("failed to get git URL from JSON", e) from e


class GitHubAPIService:
    """
    Talks to the GitHub REST API on behalf of one repository.

    Forking is authenticated and goes through PyGithub. The upstream lookup
    is an anonymous GET done with httpx.
    """

    def __init__(
        self,
        repository: RepositorySpec,
        base_url: str = GITHUB_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.repository = repository
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @handle_api_error
    async def fork(
        self,
        authentication: Authentication,
        organization: Optional[str],
        protocol: GitProtocol,
    ) -> str:
        """
        Ask GitHub to fork the repository and return the fork's clone URL.

        GitHub answers before the fork is fully materialized, so the URL may
        not be cloneable for a while.
        """
        logger.debug(
            f"Requesting fork of {self.repository.display_name}"
            + (f" into {organization}" if organization else "")
        )
        data = await asyncio.to_thread(self._create_fork, authentication, organization)
        return _select_url(data, protocol)

    def _create_fork(self, authentication: Authentication, organization: Optional[str]) -> Dict[str, Any]:
        client = Github(
            auth=Auth.Login(authentication.username, authentication.password),
            base_url=self.base_url,
            timeout=int(self.timeout),
        )
        try:
            upstream = client.get_repo(self.repository.display_name, lazy=True)
            if organization:
                fork = upstream.create_fork(organization=organization)
            else:
                fork = upstream.create_fork()
            return fork.raw_data
        finally:
            client.close()

    @handle_api_error
    async def get_git_url(self, protocol: GitProtocol) -> str:
        """Return the upstream repository's clone URL for ``protocol``."""

        path = f"/repos/{self.repository.user}/{self.repository.name}"
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={"Accept": "application/vnd.github+json"},
        ) as client:
            response = await client.get(path)

        if not response.is_success:
            raise error_from_payload(self._decode(response))

        return _select_url(response.json(), protocol)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text
