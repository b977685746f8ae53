"""
Git synchronization engine.

Thin, blocking operations on top of pygit2. Callers that live on an event
loop run them through ``asyncio.to_thread``; transport callbacks then fire on
that worker thread.
"""

from pathlib import Path
from typing import Optional, Union

import pygit2
from pygit2.enums import ResetMode

from ..infrastructure.error_handler import BranchNotNamed, RemoteNotNamed
from ..infrastructure.logger import logger
from ..models import Authentication, ProgressFlag
from .credentials import CredentialBroker
from .progress import TransferProgressMonitor


FETCH_HEAD = "FETCH_HEAD"


def _valid_text(name: Optional[str]) -> Optional[str]:
    if not name:
        return None
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return None
    return name


def branch_name(branch: pygit2.Branch) -> str:
    """Return the short branch name, or raise ``BranchNotNamed``."""

    name = _valid_text(getattr(branch, "branch_name", None))
    if name is None:
        raise BranchNotNamed()
    return name


class GitSyncEngine:
    """Clone, remote and branch operations for a single provisioning run."""

    def __init__(self, stream=None):
        self.stream = stream

    def make_callbacks(
        self,
        auth: Authentication,
        quiet: bool,
        progress: Optional[ProgressFlag] = None,
    ) -> TransferProgressMonitor:
        """Build transport callbacks sharing one progress flag."""

        progress = progress if progress is not None else ProgressFlag()
        broker = CredentialBroker(auth, progress)
        return TransferProgressMonitor(progress, broker, quiet=quiet, stream=self.stream)

    def clone(
        self,
        url: str,
        destination: Union[str, Path],
        auth: Authentication,
        quiet: bool = False,
        progress: Optional[ProgressFlag] = None,
    ) -> pygit2.Repository:
        """
        Clone ``url`` into ``destination``.

        ``progress`` is marked by the transport callbacks as soon as the
        remote answers; the retry logic reads it after a failure.

        Raises:
            pygit2.GitError: On transport failures
            ValueError: If the destination exists and is not empty
        """
        callbacks = self.make_callbacks(auth, quiet, progress)
        logger.debug(f"Cloning {url} into {destination}")
        try:
            return pygit2.clone_repository(url, str(destination), callbacks=callbacks)
        finally:
            callbacks.finish()

    def setup_upstream(self, repository: pygit2.Repository, name: str, url: str) -> pygit2.Remote:
        """
        Create the remote ``name`` pointing at ``url``.

        Raises:
            ValueError: If a remote with that name already exists
        """
        logger.debug(f"Adding remote {name} -> {url}")
        return repository.remotes.create(name, url)

    def get_head_branch(self, repository: pygit2.Repository) -> pygit2.Branch:
        """
        Resolve HEAD to a local branch.

        Raises:
            BranchNotNamed: If HEAD is detached or does not name a valid branch
        """
        if repository.head_is_detached:
            raise BranchNotNamed()

        head = repository.head
        if not head.name.startswith("refs/heads/"):
            raise BranchNotNamed()

        name = _valid_text(head.shorthand)
        branch = repository.branches.local.get(name) if name else None
        if branch is None:
            raise BranchNotNamed()
        return branch

    def fetch_remote(
        self,
        remote: pygit2.Remote,
        branch: pygit2.Branch,
        auth: Authentication,
        quiet: bool = True,
    ) -> None:
        """Fetch exactly ``branch``'s ref from ``remote`` into FETCH_HEAD."""

        name = branch_name(branch)
        callbacks = self.make_callbacks(auth, quiet)
        logger.debug(f"Fetching {name} from {remote.name}")
        try:
            remote.fetch([name], callbacks=callbacks)
        finally:
            callbacks.finish()

    def track_upstream(
        self,
        repository: pygit2.Repository,
        branch: pygit2.Branch,
        remote: pygit2.Remote,
    ) -> str:
        """
        Make ``branch`` track ``<remote>/<branch>``.

        Writes ``branch.<name>.remote`` and ``branch.<name>.merge``, which is
        what git's ``--set-upstream-to`` records.

        Returns:
            The upstream shorthand, e.g. ``upstream/master``

        Raises:
            RemoteNotNamed: If the remote has no usable name
            BranchNotNamed: If the branch has no usable name
        """
        remote_name = _valid_text(remote.name)
        if remote_name is None:
            raise RemoteNotNamed()
        name = branch_name(branch)

        config = repository.config
        config[f"branch.{name}.remote"] = remote_name
        config[f"branch.{name}.merge"] = f"refs/heads/{name}"

        upstream = f"{remote_name}/{name}"
        logger.debug(f"Branch {name} now tracks {upstream}")
        return upstream

    def hard_reset_to_fetch_head(self, repository: pygit2.Repository) -> pygit2.Oid:
        """Reset index and working tree to the commit of the last fetch."""

        target = repository.revparse_single(FETCH_HEAD)
        commit = target.peel(pygit2.Commit)
        repository.reset(commit.id, ResetMode.HARD)
        logger.debug(f"Hard reset to {commit.id}")
        return commit.id
