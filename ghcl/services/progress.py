"""
Transport observation for clone and fetch operations.
"""

import sys
from typing import Optional, TextIO

import pygit2

from ..models import ProgressFlag
from .credentials import CredentialBroker


def percentage(done: int, total: int) -> int:
    if total == 0:
        return 0
    return 100 * done // total


class TransferProgressMonitor(pygit2.RemoteCallbacks):
    """
    Remote callbacks that record and optionally display transport progress.

    Every callback marks the attempt's ``ProgressFlag`` before doing anything
    else. Unless quiet, a single progress line is kept up to date on the
    diagnostic stream: objects first, then deltas once all objects arrived.
    """

    def __init__(
        self,
        progress: ProgressFlag,
        broker: CredentialBroker,
        quiet: bool = False,
        stream: Optional[TextIO] = None,
    ):
        super().__init__()
        self.progress = progress
        self.broker = broker
        self.quiet = quiet
        self._stream = stream
        # 0: nothing shown, 1: receiving objects, 2: receiving deltas
        self._stage = 0

    @property
    def stream(self) -> TextIO:
        return self._stream or sys.stderr

    def credentials(self, url, username_from_url, allowed_types):
        self.progress.mark()
        return self.broker(url, username_from_url, allowed_types)

    def transfer_progress(self, stats):
        self.progress.mark()
        if self.quiet:
            return

        received, total = stats.received_objects, stats.total_objects
        if received < total:
            prefix = "" if self._stage == 0 else "\r"
            self._stage = 1
            self._write(
                f"{prefix}Receiving objects: {percentage(received, total)}% ({received}/{total})"
            )
            return

        if self._stage == 1:
            self._write(f"\rReceiving objects: {percentage(received, total)}% ({received}/{total})\n")
            prefix = ""
        else:
            prefix = "\r" if self._stage == 2 else ""
        self._stage = 2

        done, total_deltas = stats.indexed_deltas, stats.total_deltas
        self._write(
            f"{prefix}Receiving deltas: {percentage(done, total_deltas)}% ({done}/{total_deltas})"
        )

    def sideband_progress(self, string):
        self.progress.mark()
        if self.quiet:
            return
        self._write(f"\rremote: {string}")

    def finish(self) -> None:
        """Terminate the progress line once the transfer is over."""

        if not self.quiet and self._stage:
            self._write("\n")
        self._stage = 0

    def _write(self, text: str) -> None:
        self.stream.write(text)
        self.stream.flush()
