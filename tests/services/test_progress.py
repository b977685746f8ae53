"""
Unit tests for TransferProgressMonitor in ghcl.services.progress.
"""

import io
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from ghcl.models import ProgressFlag
from ghcl.services.progress import TransferProgressMonitor, percentage


def stats(received, total, indexed=0, deltas=0):
    return SimpleNamespace(
        received_objects=received,
        total_objects=total,
        indexed_deltas=indexed,
        total_deltas=deltas,
    )


@pytest.fixture
def stream():
    return io.StringIO()


@pytest.fixture
def progress():
    return ProgressFlag()


def make_monitor(progress, stream, quiet=False, broker=None):
    return TransferProgressMonitor(progress, broker or MagicMock(), quiet=quiet, stream=stream)


@pytest.mark.parametrize("done,total,expected", [
    (0, 0, 0),
    (0, 10, 0),
    (1, 3, 33),
    (50, 100, 50),
    (100, 100, 100),
])
def test_percentage(done, total, expected):
    assert percentage(done, total) == expected


def test_objects_then_deltas(progress, stream):
    monitor = make_monitor(progress, stream)

    monitor.transfer_progress(stats(50, 100))
    monitor.transfer_progress(stats(100, 100, 0, 10))
    monitor.transfer_progress(stats(100, 100, 10, 10))
    monitor.finish()

    assert stream.getvalue() == (
        "Receiving objects: 50% (50/100)"
        "\rReceiving objects: 100% (100/100)\n"
        "Receiving deltas: 0% (0/10)"
        "\rReceiving deltas: 100% (10/10)"
        "\n"
    )
    assert progress.progressed


def test_deltas_without_objects_stage(progress, stream):
    monitor = make_monitor(progress, stream)

    monitor.transfer_progress(stats(0, 0))

    assert stream.getvalue() == "Receiving deltas: 0% (0/0)"


def test_quiet_marks_progress_without_output(progress, stream):
    monitor = make_monitor(progress, stream, quiet=True)

    monitor.transfer_progress(stats(50, 100))
    monitor.sideband_progress("Counting objects: 3")
    monitor.finish()

    assert stream.getvalue() == ""
    assert progress.progressed


def test_sideband(progress, stream):
    monitor = make_monitor(progress, stream)

    monitor.sideband_progress("Counting objects: 3")

    assert stream.getvalue() == "\rremote: Counting objects: 3"
    assert progress.progressed


def test_finish_without_output_writes_nothing(progress, stream):
    make_monitor(progress, stream).finish()

    assert stream.getvalue() == ""
    assert not progress.progressed


def test_credentials_delegate_to_broker(progress, stream):
    broker = MagicMock(return_value="credential")
    monitor = make_monitor(progress, stream, broker=broker)

    assert monitor.credentials("url", "git", 2) == "credential"
    broker.assert_called_once_with("url", "git", 2)
    assert progress.progressed


def test_credential_failure_still_marks_progress(progress, stream):
    broker = MagicMock(side_effect=RuntimeError("no agent"))
    monitor = make_monitor(progress, stream, broker=broker)

    with pytest.raises(RuntimeError):
        monitor.credentials("url", None, 2)

    assert progress.progressed
