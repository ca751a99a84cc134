"""Tests for the owner-loop job queue."""

import asyncio
from unittest.mock import Mock

import pytest
from lsprotocol.types import MessageType

from editcomplete.ui.job import Jobs


@pytest.fixture
def editor():
    editor = Mock()
    editor.window_log_message = Mock()
    return editor


@pytest.mark.asyncio
async def test_jobs_run_in_order(editor):
    jobs = Jobs()
    compositor = object()
    seen = []
    jobs.dispatch_blocking(lambda e, c: seen.append(1))
    jobs.dispatch_blocking(lambda e, c: seen.append((e, c)))

    assert jobs.pending() == 2
    assert jobs.run_pending(editor, compositor) == 2
    assert seen == [1, (editor, compositor)]


@pytest.mark.asyncio
async def test_dispatch_waits_for_job(editor):
    jobs = Jobs()
    runner = asyncio.create_task(jobs.run(editor, None))
    seen = []

    await jobs.dispatch(lambda e, c: seen.append("ran"))

    assert seen == ["ran"]
    runner.cancel()


@pytest.mark.asyncio
async def test_dispatch_reraises_job_failure(editor):
    jobs = Jobs()
    runner = asyncio.create_task(jobs.run(editor, None))

    def job(e, c):
        raise LookupError("gone")

    with pytest.raises(LookupError):
        await jobs.dispatch(job)

    # The owner loop survives a failing job.
    assert not runner.done()
    runner.cancel()


@pytest.mark.asyncio
async def test_blocking_job_failure_is_logged(editor):
    jobs = Jobs()

    def job(e, c):
        raise LookupError("gone")

    jobs.dispatch_blocking(job)
    jobs.run_pending(editor, None)

    params = editor.window_log_message.call_args.args[0]
    assert params.type == MessageType.Error
    assert "LookupError: gone" in params.message
