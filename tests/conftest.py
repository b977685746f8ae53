"""Shared fixtures: throwaway git repositories and a no-op backoff sleep."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock

import pygit2
import pytest

from ghcl.models import Authentication


SIGNATURE = pygit2.Signature("Test User", "test@example.com")


def commit_file(repo: pygit2.Repository, name: str, content: str, message: str) -> pygit2.Oid:
    """Write a file into the work tree and commit it on HEAD."""
    (Path(repo.workdir) / name).write_text(content)
    repo.index.add(name)
    repo.index.write()
    tree = repo.index.write_tree()
    parents = [] if repo.head_is_unborn else [repo.head.target]
    return repo.create_commit("HEAD", SIGNATURE, SIGNATURE, message, tree, parents)


@pytest.fixture
def auth():
    return Authentication(username="octocat", password="hunter2")


@pytest.fixture
def upstream_repo(tmp_path):
    """Non-bare repository with one commit on master."""
    repo = pygit2.init_repository(str(tmp_path / "upstream"), initial_head="master")
    commit_file(repo, "README.md", "hello\n", "Initial commit")
    return repo


@pytest.fixture
def fork_repo(tmp_path, upstream_repo):
    """Bare copy of the upstream repository, standing in for a server-side fork."""
    return pygit2.clone_repository(upstream_repo.path, str(tmp_path / "fork.git"), bare=True)


@pytest.fixture
def fake_sleep(monkeypatch):
    """Replace the backoff sleep so retry tests run instantly."""
    sleep = AsyncMock()
    monkeypatch.setattr(asyncio, "sleep", sleep)
    return sleep


@pytest.fixture
def commit():
    return commit_file
