"""
Service layer for ghcl: GitHub API access and git transport operations.
"""

from .credentials import CredentialBroker, credential_helper_username
from .progress import TransferProgressMonitor
from .git_sync import GitSyncEngine
from .github_api import GitHubAPIService, git_url_from_json

__all__ = [
    "CredentialBroker",
    "credential_helper_username",
    "TransferProgressMonitor",
    "GitSyncEngine",
    "GitHubAPIService",
    "git_url_from_json",
]
