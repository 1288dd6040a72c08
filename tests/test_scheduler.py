"""
Tests for the asyncio job scheduler.
"""
import asyncio

import pytest

from diversion_notifier.core.scheduler import JobScheduler


async def tick():
    return None


@pytest.mark.asyncio
async def test_add_and_list_interval_job(settings):
    scheduler = JobScheduler(settings)
    scheduler.start()
    try:
        job_id = scheduler.add_job(tick, interval_minutes=5, job_id='commit_poll')

        jobs = scheduler.get_jobs()
        assert job_id == 'commit_poll'
        assert [job['id'] for job in jobs] == ['commit_poll']
        assert 'interval' in jobs[0]['trigger']
        assert jobs[0]['next_run'] is not None
    finally:
        scheduler.stop()

    # Shutdown may be deferred to the next loop iteration
    await asyncio.sleep(0)
    assert scheduler.running is False


@pytest.mark.asyncio
async def test_run_immediately_fires_job(settings):
    fired = asyncio.Event()

    async def job():
        fired.set()

    scheduler = JobScheduler(settings)
    scheduler.start()
    try:
        scheduler.add_job(job, interval_minutes=5, job_id='now', run_immediately=True)
        await asyncio.wait_for(fired.wait(), timeout=5)
    finally:
        scheduler.stop()


@pytest.mark.asyncio
async def test_remove_job(settings):
    scheduler = JobScheduler(settings)
    scheduler.start()
    try:
        scheduler.add_job(tick, interval_minutes=1, job_id='temp')

        assert scheduler.remove_job('temp') is True
        assert scheduler.remove_job('temp') is False
        assert scheduler.get_jobs() == []
    finally:
        scheduler.stop()


def test_interval_must_be_positive(settings):
    scheduler = JobScheduler(settings)

    with pytest.raises(ValueError):
        scheduler.add_job(tick, interval_minutes=0)


@pytest.mark.asyncio
async def test_stop_twice_requests_shutdown_once(settings):
    scheduler = JobScheduler(settings)
    scheduler.start()

    scheduler.stop()
    scheduler.stop()
    await asyncio.sleep(0)

    assert scheduler.running is False

    # Stopping an already stopped scheduler is a no-op
    scheduler.stop()
    assert scheduler.running is False
