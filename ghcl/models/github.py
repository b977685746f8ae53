"""
GitHub domain models for ghcl.

This module contains the repository reference parsed from the command
line and the hosting services it can refer to.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from ..infrastructure.error_handler import FailedToParseRepository


class Service(Enum):
    """Enumeration of supported hosting services."""

    GITHUB = "github"

    @classmethod
    def parse(cls, value: str) -> "Service":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unsupported service: {value!r}") from None


GITHUB_URL_PATTERN = re.compile(
    r"(?:(?:https?:)?//)?(?:www\.)?github\.com/"
    r"([a-zA-Z0-9\-_]+)/([a-zA-Z0-9\-_]+)"
    r"(?:/tree/[a-zA-Z0-9\-_]+)?(?:[?#].*)?"
)


@dataclass(frozen=True)
class RepositorySpec:
    """Immutable reference to a repository on a hosting service."""

    service: Service
    user: str
    name: str

    @property
    def display_name(self):
        return f'{self.user}/{self.name}'

    @classmethod
    def from_arg_string(cls, string: str, default_service: Service = Service.GITHUB) -> "RepositorySpec":
        """
        Parse a repository argument.

        Accepts a full GitHub URL (``https://github.com/user/repo``, optionally
        with ``/tree/<branch>``, a query or a fragment) or the short
        ``user/repo`` form, which is resolved against ``default_service``.

        Raises:
            FailedToParseRepository: If the string matches neither form
        """
        match = GITHUB_URL_PATTERN.search(string)
        if match:
            return cls(service=Service.GITHUB, user=match.group(1), name=match.group(2))

        user, slash, name = string.partition("/")
        if not slash or "/" in name:
            raise FailedToParseRepository(string)

        for part in (user, name):
            if not part or not all(c.isalnum() or c in "-_" for c in part):
                raise FailedToParseRepository(string)

        return cls(service=default_service, user=user, name=name)


__all__ = [
    "Service",
    "RepositorySpec",
]
