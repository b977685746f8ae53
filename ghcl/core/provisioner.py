"""
Provisioner driving the complete fork, clone and upstream setup sequence.
"""

import asyncio
from typing import Awaitable, Callable, TypeVar

import pygit2

from ..infrastructure.error_handler import StageError
from ..infrastructure.logger import logger
from ..infrastructure.retry_manager import RetryCoordinator
from ..models import CloneOptions, ProgressFlag, ProvisionResult
from ..services import GitHubAPIService, GitSyncEngine


T = TypeVar("T")


####
##      FORK PROVISIONER
#####
class ForkProvisioner:
    """
    Runs one provisioning sequence in strict order:

    fork -> clone (retried) -> set up upstream -> resolve HEAD branch ->
    fetch upstream -> track upstream -> hard reset to FETCH_HEAD.

    Upstream steps run only when requested. Any failure aborts the rest and
    is raised as a ``StageError`` naming the stage, chained to the cause.
    """

    def __init__(
        self,
        github_service: GitHubAPIService,
        git_engine: GitSyncEngine,
        retry_coordinator: RetryCoordinator,
    ):
        self.github_service = github_service
        self.git_engine = git_engine
        self.retry_coordinator = retry_coordinator

    async def provision(self, options: CloneOptions) -> ProvisionResult:
        """
        Fork the repository and provision the local working copy.

        Args:
            options: Resolved run configuration

        Returns:
            ProvisionResult describing the clone and its upstream wiring

        Raises:
            StageError: If any stage fails
        """
        logger.info("Forking repository...")
        fork_url = await self._stage(
            "Failed to fork repository",
            self.github_service.fork(
                options.authentication,
                options.organization,
                options.origin_protocol,
            ),
        )
        logger.debug(f"Fork available at {fork_url}")

        logger.info("Cloning repository...")
        repository = await self._stage(
            "Failed to clone repository",
            self.retry_coordinator.execute(self._clone_attempt(fork_url, options)),
        )

        result = ProvisionResult(
            fork_url=fork_url,
            clone_path=options.clone_path,
            repository=repository,
        )

        if options.setup_upstream:
            await self._wire_upstream(repository, options, result)

        result.mark_completed()
        logger.info("Done!")
        return result

    def _clone_attempt(
        self, url: str, options: CloneOptions
    ) -> Callable[[ProgressFlag], Awaitable[pygit2.Repository]]:
        async def attempt(progress: ProgressFlag) -> pygit2.Repository:
            return await asyncio.to_thread(
                self.git_engine.clone,
                url,
                options.clone_path,
                options.authentication,
                options.quiet,
                progress,
            )

        return attempt

    async def _wire_upstream(
        self,
        repository: pygit2.Repository,
        options: CloneOptions,
        result: ProvisionResult,
    ) -> None:
        upstream_url = await self._stage(
            "Failed to get upstream git URL",
            self.github_service.get_git_url(options.upstream_protocol),
        )
        remote = self._call_stage(
            "Failed to set up upstream",
            self.git_engine.setup_upstream,
            repository,
            options.remote_name,
            upstream_url,
        )
        result.upstream_url = upstream_url
        result.remote_name = options.remote_name

        if not options.track_upstream:
            return

        logger.info("Fetching and tracking upstream...")
        branch = self._call_stage(
            "Failed to resolve the default branch",
            self.git_engine.get_head_branch,
            repository,
        )
        # The upstream fetch is never rendered, whatever the global setting.
        await self._stage(
            "Failed to fetch upstream",
            asyncio.to_thread(
                self.git_engine.fetch_remote,
                remote,
                branch,
                options.authentication,
                True,
            ),
        )
        result.tracking = self._call_stage(
            "Failed to set the default branch to track upstream",
            self.git_engine.track_upstream,
            repository,
            branch,
            remote,
        )
        self._call_stage(
            "Failed to hard reset to upstream",
            self.git_engine.hard_reset_to_fetch_head,
            repository,
        )

    @staticmethod
    async def _stage(message: str, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except Exception as e:
            logger.debug(f"{message}: {e!r}")
            raise StageError(message, e) from e

    @staticmethod
    def _call_stage(message: str, func: Callable[..., T], *args) -> T:
        try:
            return func(*args)
        except Exception as e:
            logger.debug(f"{message}: {e!r}")
            raise StageError(message, e) from e
