import asyncio

import pytest

from contest_tracker.core.scheduler import JobScheduler


@pytest.mark.asyncio
async def test_run_once():
    calls = []

    async def job():
        calls.append("ran")

    scheduler = JobScheduler()
    scheduler.add_job("refresh", job, 600)
    await scheduler.run_once("refresh")

    assert calls == ["ran"]


@pytest.mark.asyncio
async def test_run_once_unknown_job():
    with pytest.raises(KeyError):
        await JobScheduler().run_once("missing")


@pytest.mark.asyncio
async def test_run_once_propagates_errors():
    async def job():
        raise RuntimeError("boom")

    scheduler = JobScheduler()
    scheduler.add_job("broken", job, 600)
    with pytest.raises(RuntimeError):
        await scheduler.run_once("broken")


@pytest.mark.asyncio
async def test_jobs_run_at_start_and_stop_cleanly():
    started = asyncio.Event()

    async def job():
        started.set()

    scheduler = JobScheduler()
    scheduler.add_job("refresh", job, 600)
    await scheduler.start()
    await asyncio.wait_for(started.wait(), timeout=1)

    assert scheduler.running
    await scheduler.stop()
    assert not scheduler.running
    assert scheduler.tasks == []


@pytest.mark.asyncio
async def test_failing_job_keeps_running():
    calls = 0

    async def job():
        nonlocal calls
        calls += 1
        raise RuntimeError("upstream down")

    scheduler = JobScheduler()
    scheduler.add_job("flaky", job, 0.01)
    await scheduler.start()
    for _ in range(100):
        if calls >= 3:
            break
        await asyncio.sleep(0.01)
    await scheduler.stop()

    assert calls >= 3


@pytest.mark.asyncio
async def test_cannot_add_jobs_while_running():
    async def job():
        pass

    scheduler = JobScheduler()
    await scheduler.start()
    with pytest.raises(RuntimeError):
        scheduler.add_job("late", job, 1)
    await scheduler.stop()
