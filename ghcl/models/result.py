"""
Result model for a fork-and-clone run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional


@dataclass
class ProvisionResult:
    """What a provisioning run produced."""

    fork_url: str
    clone_path: Path
    repository: Any = field(default=None, repr=False)  # pygit2.Repository

    upstream_url: Optional[str] = None
    remote_name: Optional[str] = None
    tracking: Optional[str] = None  # e.g. "upstream/master"

    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        if self.completed_at is None:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds()

    def mark_completed(self) -> None:
        self.completed_at = datetime.now()


__all__ = [
    "ProvisionResult",
]
