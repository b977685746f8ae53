"""
Core data models API surface for ghcl.

This file re-exports model classes from domain-specific modules so callers
can write `from ghcl.models import X`.
"""

from .auth import (
    GitProtocol,
    Authentication,
)
from .github import (
    Service,
    RepositorySpec,
)
from .progress import (
    ProgressFlag,
    RetryState,
)
from .config import CloneOptions
from .result import ProvisionResult

__all__ = [
    # Auth models
    "GitProtocol",
    "Authentication",
    # GitHub models
    "Service",
    "RepositorySpec",
    # Progress models
    "ProgressFlag",
    "RetryState",
    # Config models
    "CloneOptions",
    # Result models
    "ProvisionResult",
]
