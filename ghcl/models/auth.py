"""
Authentication and protocol models for ghcl.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class GitProtocol(Enum):
    """Which URL variant of a repository to use."""

    SSH = "ssh"
    HTTPS = "https"

    @classmethod
    def parse(cls, value: str) -> "GitProtocol":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Invalid git protocol: {value!r} (expected ssh or https)") from None


@dataclass(frozen=True)
class Authentication:
    """Immutable username/password pair used for API and transport auth."""

    username: str
    password: str = field(repr=False)


__all__ = [
    "GitProtocol",
    "Authentication",
]
