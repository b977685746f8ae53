"""
Unit tests for GitHubAPIService in ghcl.services.github_api.
"""

from unittest.mock import MagicMock, patch

import httpx
import pytest
from github import GithubException

from ghcl.infrastructure.error_handler import (
    APIError,
    ForkRequestError,
    MalformedKey,
    MissingKey,
    RawAPIError,
    StageError,
)
from ghcl.models import Authentication, GitProtocol, RepositorySpec, Service
from ghcl.services.github_api import GitHubAPIService, git_url_from_json


REPO_JSON = {
    "full_name": "foo/bar",
    "ssh_url": "git@github.com:foo/bar.git",
    "clone_url": "https://github.com/foo/bar.git",
}

FORK_JSON = {
    "full_name": "me/bar",
    "ssh_url": "git@github.com:me/bar.git",
    "clone_url": "https://github.com/me/bar.git",
}


@pytest.fixture
def spec():
    return RepositorySpec(Service.GITHUB, "foo", "bar")


def service_with(spec, handler):
    return GitHubAPIService(spec, transport=httpx.MockTransport(handler))


# ---- git_url_from_json -----------------------------------------------------

def test_git_url_from_json():
    assert git_url_from_json(REPO_JSON, GitProtocol.SSH) == "git@github.com:foo/bar.git"
    assert git_url_from_json(REPO_JSON, GitProtocol.HTTPS) == "https://github.com/foo/bar.git"


def test_git_url_missing_key():
    with pytest.raises(MissingKey) as exc_info:
        git_url_from_json({"clone_url": "x"}, GitProtocol.SSH)

    assert exc_info.value.key == "ssh_url"


def test_git_url_malformed_key():
    with pytest.raises(MalformedKey) as exc_info:
        git_url_from_json({"clone_url": 42}, GitProtocol.HTTPS)

    assert exc_info.value.key == "clone_url"


# ---- get_git_url -----------------------------------------------------------

@pytest.mark.asyncio
async def test_get_git_url(spec):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=REPO_JSON)

    url = await service_with(spec, handler).get_git_url(GitProtocol.HTTPS)

    assert url == "https://github.com/foo/bar.git"
    assert requests[0].method == "GET"
    assert requests[0].url.path == "/repos/foo/bar"
    assert "authorization" not in requests[0].headers


@pytest.mark.asyncio
async def test_get_git_url_api_error(spec):
    service = service_with(spec, lambda request: httpx.Response(404, json={"message": "Not Found"}))

    with pytest.raises(APIError, match="API error: Not Found"):
        await service.get_git_url(GitProtocol.HTTPS)


@pytest.mark.asyncio
async def test_get_git_url_unparsable_error(spec):
    service = service_with(spec, lambda request: httpx.Response(502, text="Bad gateway"))

    with pytest.raises(RawAPIError) as exc_info:
        await service.get_git_url(GitProtocol.HTTPS)

    assert exc_info.value.payload == "Bad gateway"


@pytest.mark.asyncio
async def test_get_git_url_missing_key(spec):
    service = service_with(spec, lambda request: httpx.Response(200, json={"full_name": "foo/bar"}))

    with pytest.raises(StageError, match="failed to get git URL from JSON") as exc_info:
        await service.get_git_url(GitProtocol.SSH)

    assert isinstance(exc_info.value.__cause__, MissingKey)


@pytest.mark.asyncio
async def test_get_git_url_connection_failure(spec):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ForkRequestError):
        await service_with(spec, handler).get_git_url(GitProtocol.HTTPS)


# ---- fork ------------------------------------------------------------------

@pytest.fixture
def github_client():
    with patch("ghcl.services.github_api.Github") as github_cls:
        client = github_cls.return_value
        client.get_repo.return_value.create_fork.return_value = MagicMock(raw_data=FORK_JSON)
        yield github_cls


@pytest.mark.asyncio
async def test_fork(spec, github_client):
    service = GitHubAPIService(spec)

    url = await service.fork(Authentication("me", "pw"), None, GitProtocol.SSH)

    assert url == "git@github.com:me/bar.git"
    client = github_client.return_value
    client.get_repo.assert_called_once_with("foo/bar", lazy=True)
    client.get_repo.return_value.create_fork.assert_called_once_with()
    client.close.assert_called_once()
    assert github_client.call_args.kwargs["base_url"] == "https://api.github.com"


@pytest.mark.asyncio
async def test_fork_into_organization(spec, github_client):
    url = await GitHubAPIService(spec).fork(Authentication("me", "pw"), "acme", GitProtocol.HTTPS)

    assert url == "https://github.com/me/bar.git"
    create_fork = github_client.return_value.get_repo.return_value.create_fork
    create_fork.assert_called_once_with(organization="acme")


@pytest.mark.asyncio
async def test_fork_api_error(spec, github_client):
    create_fork = github_client.return_value.get_repo.return_value.create_fork
    create_fork.side_effect = GithubException(401, {"message": "Bad credentials"}, None)

    with pytest.raises(APIError, match="Bad credentials"):
        await GitHubAPIService(spec).fork(Authentication("me", "pw"), None, GitProtocol.SSH)

    github_client.return_value.close.assert_called_once()


@pytest.mark.asyncio
async def test_fork_response_without_url(spec, github_client):
    create_fork = github_client.return_value.get_repo.return_value.create_fork
    create_fork.return_value = MagicMock(raw_data={"full_name": "me/bar", "ssh_url": None})

    with pytest.raises(StageError) as exc_info:
        await GitHubAPIService(spec).fork(Authentication("me", "pw"), None, GitProtocol.SSH)

    assert isinstance(exc_info.value.__cause__, MalformedKey)
