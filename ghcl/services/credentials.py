"""
Credential resolution for git transports.

libgit2 asks for credentials through a callback, passing the URL, the
username embedded in the URL (if any) and the set of credential types the
server will accept. The broker walks an ordered list of strategies and
returns the first credential the server can take.
"""

import os
from typing import Callable, Iterable, Iterator, List, Optional, Tuple
from urllib.parse import urlsplit

import pygit2
from pygit2.enums import CredentialType

from ..infrastructure.error_handler import NoAuthenticationAvailable, NoSshIdentity
from ..infrastructure.logger import logger
from ..models import Authentication, ProgressFlag


DEFAULT_SSH_USERNAME = "git"


class DefaultCredential:
    """Request the transport's platform default credential (NTLM/Negotiate)."""

    credential_type = CredentialType.DEFAULT
    credential_tuple = ()


def _load_git_configs() -> Iterator[pygit2.Config]:
    for loader in (
        pygit2.Config.get_global_config,
        pygit2.Config.get_xdg_config,
        pygit2.Config.get_system_config,
    ):
        try:
            yield loader()
        except (OSError, pygit2.GitError):
            continue


def _credential_keys(url: str) -> List[str]:
    keys = []
    parts = urlsplit(url)
    if parts.scheme and parts.hostname:
        keys.append(f"credential.{parts.scheme}://{parts.hostname}.username")
    keys.append("credential.username")
    return keys


def credential_helper_username(url: str, configs: Optional[Iterable] = None) -> Optional[str]:
    """
    Look up the username git's credential configuration holds for ``url``.

    URL-specific ``credential.<scheme>://<host>.username`` entries win over
    the generic ``credential.username``.
    """

    configs = list(_load_git_configs()) if configs is None else list(configs)
    for key in _credential_keys(url):
        for config in configs:
            if key in config and config[key]:
                return config[key]
    return None


class CredentialBroker:
    """
    Produces credentials for one transport operation.

    Selection order, first applicable wins:
    SSH key from the agent, plaintext username/password, the transport's
    platform default. Every request counts as progress for the attempt,
    since it proves the remote is up and answering.
    """

    def __init__(
        self,
        authentication: Authentication,
        progress: ProgressFlag,
        helper_username: Callable[[str], Optional[str]] = credential_helper_username,
    ):
        self.authentication = authentication
        self.progress = progress
        self.helper_username = helper_username
        self._strategies: List[Tuple[CredentialType, Callable]] = [
            (CredentialType.SSH_KEY, self._ssh_agent),
            (CredentialType.USERPASS_PLAINTEXT, self._userpass),
            (CredentialType.DEFAULT, self._platform_default),
        ]

    def __call__(self, url: str, username_from_url: Optional[str], allowed_types):
        self.progress.mark()
        allowed = CredentialType(allowed_types)
        for credential_type, build in self._strategies:
            if allowed & credential_type:
                logger.debug(f"Using {credential_type.name} credentials for {url}")
                return build(url, username_from_url)
        raise NoAuthenticationAvailable()

    def ssh_username(self, url: str, username_from_url: Optional[str]) -> str:
        return (
            username_from_url
            or self.helper_username(url)
            or DEFAULT_SSH_USERNAME
        )

    def _ssh_agent(self, url: str, username_from_url: Optional[str]):
        username = self.ssh_username(url, username_from_url)
        if not os.environ.get("SSH_AUTH_SOCK"):
            raise NoSshIdentity(username)
        return pygit2.KeypairFromAgent(username)

    def _userpass(self, url: str, username_from_url: Optional[str]):
        return pygit2.UserPass(self.authentication.username, self.authentication.password)

    def _platform_default(self, url: str, username_from_url: Optional[str]):
        return DefaultCredential()
