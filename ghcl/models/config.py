"""
Configuration models for ghcl runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .auth import Authentication, GitProtocol
from .github import RepositorySpec


DEFAULT_REMOTE_NAME = "upstream"
DEFAULT_FORK_TIMEOUT = 30


@dataclass
class CloneOptions:
    """
    Fully resolved configuration for one fork-and-clone run.

    Produced by merging command line flags, the YAML config file and
    interactive prompts. ``track_upstream`` implies ``setup_upstream``.
    """

    repository: RepositorySpec
    authentication: Authentication
    clone_path: Path

    organization: Optional[str] = None
    track_upstream: bool = True
    setup_upstream: bool = True
    remote_name: str = DEFAULT_REMOTE_NAME

    origin_protocol: GitProtocol = GitProtocol.SSH
    upstream_protocol: GitProtocol = GitProtocol.HTTPS

    quiet: bool = False
    fork_timeout: int = DEFAULT_FORK_TIMEOUT  # seconds

    def __post_init__(self) -> None:
        if self.fork_timeout < 0:
            raise ValueError("fork_timeout cannot be negative")
        if not self.remote_name:
            raise ValueError("remote_name is required")
        if self.track_upstream and not self.setup_upstream:
            raise ValueError("track_upstream requires setup_upstream")
        self.clone_path = Path(self.clone_path)


__all__ = [
    "CloneOptions",
    "DEFAULT_REMOTE_NAME",
    "DEFAULT_FORK_TIMEOUT",
]
