"""
Unit tests for CredentialBroker in ghcl.services.credentials.
"""

import pygit2
import pytest
from pygit2.enums import CredentialType

from ghcl.infrastructure.error_handler import NoAuthenticationAvailable, NoSshIdentity
from ghcl.models import Authentication, ProgressFlag
from ghcl.services.credentials import (
    CredentialBroker,
    DefaultCredential,
    credential_helper_username,
)


URL = "https://github.com/me/bar.git"


@pytest.fixture
def progress():
    return ProgressFlag()


@pytest.fixture
def broker(progress):
    return CredentialBroker(
        Authentication("octocat", "hunter2"),
        progress,
        helper_username=lambda url: None,
    )


@pytest.fixture
def ssh_agent(monkeypatch):
    monkeypatch.setenv("SSH_AUTH_SOCK", "/tmp/agent.sock")


@pytest.fixture
def no_ssh_agent(monkeypatch):
    monkeypatch.delenv("SSH_AUTH_SOCK", raising=False)


# ---- Strategy selection ----------------------------------------------------

def test_ssh_key_from_agent(broker, progress, ssh_agent):
    credential = broker("git@github.com:me/bar.git", "git", CredentialType.SSH_KEY)

    assert isinstance(credential, pygit2.KeypairFromAgent)
    assert credential.credential_tuple[0] == "git"
    assert progress.progressed


def test_ssh_preferred_over_userpass(broker, ssh_agent):
    allowed = CredentialType.SSH_KEY | CredentialType.USERPASS_PLAINTEXT

    assert isinstance(broker(URL, None, allowed), pygit2.KeypairFromAgent)


def test_ssh_without_agent_fails(broker, progress, no_ssh_agent):
    with pytest.raises(NoSshIdentity) as exc_info:
        broker("git@github.com:me/bar.git", "git", CredentialType.SSH_KEY)

    assert exc_info.value.username == "git"
    assert progress.progressed


def test_userpass(broker):
    credential = broker(URL, None, CredentialType.USERPASS_PLAINTEXT)

    assert isinstance(credential, pygit2.UserPass)
    assert credential.credential_tuple == ("octocat", "hunter2")


def test_allowed_types_as_int(broker):
    credential = broker(URL, None, int(CredentialType.USERPASS_PLAINTEXT))

    assert isinstance(credential, pygit2.UserPass)


def test_platform_default(broker):
    credential = broker(URL, None, CredentialType.DEFAULT)

    assert isinstance(credential, DefaultCredential)
    assert credential.credential_type is CredentialType.DEFAULT


def test_nothing_applicable(broker, progress):
    with pytest.raises(NoAuthenticationAvailable, match="no authentication available"):
        broker(URL, None, CredentialType.SSH_CUSTOM)

    assert progress.progressed


# ---- SSH username resolution -----------------------------------------------

def test_ssh_username_prefers_url_hint(progress):
    broker = CredentialBroker(Authentication("a", "b"), progress, helper_username=lambda url: "helper")

    assert broker.ssh_username(URL, "hint") == "hint"
    assert broker.ssh_username(URL, None) == "helper"


def test_ssh_username_falls_back_to_git(broker):
    assert broker.ssh_username(URL, None) == "git"


# ---- credential_helper_username --------------------------------------------

def test_helper_username_host_specific_wins():
    configs = [
        {"credential.username": "generic"},
        {"credential.https://github.com.username": "specific"},
    ]

    assert credential_helper_username(URL, configs) == "specific"


def test_helper_username_generic():
    assert credential_helper_username(URL, [{"credential.username": "generic"}]) == "generic"


def test_helper_username_absent():
    assert credential_helper_username("git@github.com:me/bar.git", [{}]) is None
