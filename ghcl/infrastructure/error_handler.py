"""
Error taxonomy and API error translation for ghcl.

Every failure the tool reports is a ``GhclError``. Stage context is added by
raising a ``StageError`` from the underlying error, so the full causal chain
is available through ``__cause__`` for rendering.
"""

import functools
import inspect
import re
import socket
from enum import Enum
from typing import Any, Callable, Iterator, Optional

import httpx
import pygit2
import requests
from github import GithubException

from .logger import logger


####
##      ERROR HIERARCHY
#####
class GhclError(Exception):
    """Base exception for all ghcl failures."""

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(message)


class StageError(GhclError):
    """A provisioning stage failed; the cause carries the details."""


class ConfigurationError(GhclError):
    """Invalid combination of requested options."""


class ConfigTrackNoSetup(ConfigurationError):
    def __init__(self):
        super().__init__(
            "config specifies track_upstream: true but setup_upstream: false, "
            "which is not possible"
        )


class FailedToParseRepository(GhclError):
    def __init__(self, value: str):
        self.value = value
        super().__init__(f"failed to parse the repository name: {value!r}")


class BranchNotNamed(GhclError):
    def __init__(self):
        super().__init__("default branch does not have a name (or was not valid UTF-8)")


class RemoteNotNamed(GhclError):
    def __init__(self):
        super().__init__("upstream remote does not have a name (or was not valid UTF-8)")


class ForkTimedOut(GhclError):
    """The fork never became cloneable within the configured timeout."""

    def __init__(self, wait: float, original_error: Optional[BaseException] = None):
        self.wait = wait
        super().__init__(
            f"fork timed out (new forked repository not cloneable in {wait:g} seconds)",
            original_error,
        )


class APIError(GhclError):
    def __init__(self, message: str):
        self.api_message = message
        super().__init__(f"API error: {message}")


class RawAPIError(GhclError):
    def __init__(self, payload: Any):
        self.payload = payload
        super().__init__(f"unparsable API error: {payload!r}")


class MissingKey(GhclError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"received JSON missing key: {key}")


class MalformedKey(GhclError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"received JSON malformed key (expected string): {key}")


class ForkRequestError(GhclError):
    """The request to the hosting provider did not complete."""


class CredentialError(GhclError):
    """No credential could be produced for a transport request."""


class NoSshIdentity(CredentialError):
    def __init__(self, username: str):
        self.username = username
        super().__init__(f"no SSH agent identity available for user {username!r}")


class NoAuthenticationAvailable(CredentialError):
    def __init__(self):
        super().__init__("no authentication available")


####
##      API ERROR TRANSLATION
#####
def error_from_payload(payload: Any) -> GhclError:
    """Build an API error from a decoded GitHub error body."""

    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str):
            return APIError(message)
    return RawAPIError(payload)


def _translate_api_error(exc: Exception) -> GhclError:
    if isinstance(exc, GithubException):
        return error_from_payload(exc.data)

    if isinstance(exc, httpx.HTTPStatusError):
        try:
            return error_from_payload(exc.response.json())
        except ValueError:
            return RawAPIError(exc.response.text)

    if isinstance(exc, (httpx.RequestError, requests.exceptions.RequestException)):
        return ForkRequestError(f"request to GitHub failed: {exc}", exc)

    return GhclError(f"Unexpected API failure: {exc}", exc)


def handle_api_error(func: Callable) -> Callable:
    """
    Decorator translating GitHub client failures into ``GhclError``.

    Works for both plain functions and coroutine functions. Errors that are
    already ``GhclError`` pass through untouched.
    """

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except GhclError:
                raise
            except Exception as e:
                logger.debug(f"GitHub API call {func.__name__} failed: {e!r}")
                raise _translate_api_error(e) from e

        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except GhclError:
            raise
        except Exception as e:
            logger.debug(f"GitHub API call {func.__name__} failed: {e!r}")
            raise _translate_api_error(e) from e

    return wrapper


####
##      TRANSPORT ERROR CLASSIFICATION
#####
class TransportErrorClass(Enum):
    """Coarse classification of a failed clone or fetch."""

    NETWORK = "network"
    OTHER = "other"


# pygit2 raises a bare GitError carrying only libgit2's message, so the
# network class is recovered from the messages of libgit2's net layer.
NETWORK_ERROR_PATTERNS = re.compile(
    r"|".join([
        r"failed to resolve address",
        r"failed to connect",
        r"could not connect",
        r"connection (?:refused|reset|timed out|closed)",
        r"timed out",
        r"unexpected http status code",
        r"failed to send request",
        r"error (?:sending|receiving) data",
        r"(?:could not|failed to) read from (?:socket|remote)",
        r"early eof",
        r"unexpected eof",
        r"ssh could not read data",
        r"failed to start ssh session",
        r"network is unreachable",
        r"remote hung up",
    ]),
    re.IGNORECASE,
)


def iter_causes(exc: BaseException) -> Iterator[BaseException]:
    """Yield ``exc`` followed by its explicit causes, outermost first."""

    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__


def classify_transport_error(exc: BaseException) -> TransportErrorClass:
    """
    Classify a clone/fetch failure as network-class or anything else.

    Only socket-level ``OSError`` subclasses and ``GitError`` messages from
    libgit2's network layer count as network-class. Generic I/O, parsing,
    credential and lookup failures do not.
    """

    if isinstance(exc, GhclError):
        return TransportErrorClass.OTHER

    if isinstance(exc, (ConnectionError, TimeoutError, socket.gaierror)):
        return TransportErrorClass.NETWORK

    if isinstance(exc, pygit2.GitError) and NETWORK_ERROR_PATTERNS.search(str(exc)):
        return TransportErrorClass.NETWORK

    return TransportErrorClass.OTHER


def is_network_error(exc: BaseException) -> bool:
    return classify_transport_error(exc) is TransportErrorClass.NETWORK
