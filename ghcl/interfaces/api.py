"""
Python API for ghcl.

    from ghcl.interfaces.api import ForkCloner

    cloner = ForkCloner(verbose=True)
    result = cloner.run(options)
"""

import asyncio
import logging
from dataclasses import replace
from typing import Optional

from ..core import ForkProvisioner
from ..infrastructure.logger import logger
from ..infrastructure.retry_manager import RetryConfig, RetryCoordinator
from ..models import CloneOptions, ProvisionResult
from ..services import GitHubAPIService, GitSyncEngine


class ForkCloner:
    """
    High-level entry point: fork a repository and provision a local clone.

    Args:
        verbose: Log debug details of every stage
        retry_config: Backoff settings; ``fork_timeout`` is taken from the
            run options
    """

    def __init__(self, verbose: bool = False, retry_config: Optional[RetryConfig] = None):
        self.retry_config = retry_config or RetryConfig()
        self.set_verbose(verbose)

    def set_verbose(self, verbose: bool) -> None:
        self.verbose = verbose
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    def build_provisioner(self, options: CloneOptions) -> ForkProvisioner:
        retry = RetryCoordinator.from_config(
            replace(self.retry_config, fork_timeout=options.fork_timeout)
        )
        return ForkProvisioner(
            github_service=GitHubAPIService(options.repository),
            git_engine=GitSyncEngine(),
            retry_coordinator=retry,
        )

    async def fork_and_clone(self, options: CloneOptions) -> ProvisionResult:
        """Run the full fork, clone and upstream sequence for ``options``."""

        if options.quiet and not self.verbose:
            logger.setLevel(logging.WARNING)

        logger.debug(
            f"Provisioning {options.repository.display_name} into {options.clone_path}"
        )
        provisioner = self.build_provisioner(options)
        return await provisioner.provision(options)

    def run(self, options: CloneOptions) -> ProvisionResult:
        """Blocking wrapper around :meth:`fork_and_clone`."""

        return asyncio.run(self.fork_and_clone(options))
