import asyncio
from uuid import uuid4

import pytest

from influencore.core.errors import ExternalServiceError, InvalidJobStateError, JobNotFoundError
from influencore.models import JobKind, JobStatus
from influencore.services.job_runner import PIPELINES, JobRunner
from influencore.services.notifier import ProgressNotifier
from conftest import FakeChannel, HangingChannel, no_sleep

OWNER = "user-1"


def failing_sleep(fail_on: int, error: Exception):
    """sleep that raises on the given (1-based) phase"""
    calls = {"count": 0}

    async def sleep(delay):
        calls["count"] += 1
        if calls["count"] == fail_on:
            raise error

    return sleep


@pytest.fixture(name="channel")
def channel_fixture(notifier):
    channel = FakeChannel()
    notifier.subscribe(OWNER, channel)
    return channel


@pytest.fixture(name="runner")
def runner_fixture(store, notifier):
    return JobRunner(store, notifier, phase_delay=0, sleep=no_sleep)


def create_video(store):
    return store.create(OWNER, JobKind.VIDEO, "Product Launch", "a launch video for our new app")


def test_run_completes_all_phases(store, runner, channel):
    """pending job runs to completed with result and full progress"""
    job = create_video(store)
    assert job.status == JobStatus.PENDING
    assert job.progress == 0

    finished = asyncio.run(runner.run(job.id))

    assert finished.status == JobStatus.COMPLETED
    assert finished.progress == 100
    assert finished.result["video_url"]
    assert finished.result["resolution"] == "1920x1080"
    assert finished.failure_reason is None
    assert finished.finished_at is not None

    progress = [event["progress"] for event in channel.events]
    assert progress == [0, 10, 30, 60, 85, 100, 100]
    assert [event["message"] for event in channel.events[1:6]] == [
        phase.message for phase in PIPELINES[JobKind.VIDEO].phases
    ]
    assert channel.events[-1]["status"] == "completed"
    assert channel.events[-1]["result"] == finished.result


def test_script_job_result(store, runner, channel):
    """script jobs finish with a written script"""
    job = store.create(OWNER, JobKind.SCRIPT, "Coffee Script", "fresh roasted coffee", {"tone": "casual"})

    finished = asyncio.run(runner.run(job.id))

    assert finished.status == JobStatus.COMPLETED
    assert "fresh roasted coffee" in finished.result["content"]
    assert finished.result["tone"] == "casual"
    assert finished.result["word_count"] > 0


def test_progress_is_non_decreasing(store, runner, channel):
    """notifications arrive in phase order with increasing progress"""
    job = store.create(OWNER, JobKind.SCRIPT, "Title", "explain photosynthesis simply")
    asyncio.run(runner.run(job.id))

    progress = [event["progress"] for event in channel.events]
    assert progress == sorted(progress)
    assert all(event["job_id"] == str(job.id) for event in channel.events)


def test_failure_partway_keeps_last_progress(store, notifier, channel):
    """a phase error fails the job without resetting progress"""
    error = ExternalServiceError("render farm unavailable")
    runner = JobRunner(store, notifier, phase_delay=0, sleep=failing_sleep(3, error))
    job = create_video(store)

    finished = asyncio.run(runner.run(job.id))

    assert finished.status == JobStatus.FAILED
    assert finished.progress == 30
    assert finished.failure_reason == "render farm unavailable"
    assert finished.failure_kind == "downstream"
    assert finished.result is None

    last = channel.events[-1]
    assert [event["progress"] for event in channel.events] == [0, 10, 30, 30]
    assert last["status"] == "failed"
    assert last["failure_reason"] == "render farm unavailable"


def test_unexpected_error_is_absorbed(store, notifier, channel):
    """programming errors are tagged internal and never reach the caller"""
    runner = JobRunner(store, notifier, phase_delay=0, sleep=failing_sleep(1, RuntimeError("boom")))
    job = create_video(store)

    finished = asyncio.run(runner.run(job.id))

    assert finished.status == JobStatus.FAILED
    assert finished.progress == 0
    assert finished.failure_reason == "boom"
    assert finished.failure_kind == "internal"


def test_start_twice_is_rejected(store, runner, channel):
    """a second start while processing raises and the job finishes once"""
    job = create_video(store)

    async def scenario():
        task = await runner.start(job.id)
        with pytest.raises(InvalidJobStateError):
            await runner.start(job.id)
        await task

    asyncio.run(scenario())

    terminal = [event for event in channel.events if event["status"] in ("completed", "failed")]
    assert len(terminal) == 1
    assert store.get(job.id).status == JobStatus.COMPLETED


def test_start_completed_job_leaves_it_unchanged(store, runner):
    """completed jobs cannot be started again"""
    job = create_video(store)
    asyncio.run(runner.run(job.id))
    before = store.get(job.id).to_dict()

    async def scenario():
        with pytest.raises(InvalidJobStateError):
            await runner.start(job.id)

    asyncio.run(scenario())
    assert store.get(job.id).to_dict() == before


def test_start_unknown_job(runner):
    async def scenario():
        with pytest.raises(JobNotFoundError):
            await runner.start(uuid4())
        with pytest.raises(JobNotFoundError):
            await runner.start("not-a-job-id")

    asyncio.run(scenario())


def test_cancel_running_job(store, notifier, channel):
    """cancellation wakes the run and records a cancelled failure"""
    runner = JobRunner(store, notifier, phase_delay=30)
    job = create_video(store)

    async def scenario():
        task = await runner.start(job.id)
        await asyncio.sleep(0)
        assert runner.cancel(job.id) is True
        await asyncio.wait_for(task, timeout=5)

    asyncio.run(scenario())

    finished = store.get(job.id)
    assert finished.status == JobStatus.FAILED
    assert finished.failure_kind == "cancelled"
    assert finished.progress == 0
    assert channel.events[-1]["status"] == "failed"
    assert not runner.is_active(job.id)


def test_cancel_inactive_job(store, runner):
    job = create_video(store)
    assert runner.cancel(job.id) is False


def test_shutdown_stops_active_runs(store, notifier):
    runner = JobRunner(store, notifier, phase_delay=30)
    jobs = [create_video(store) for _ in range(2)]

    async def scenario():
        for job in jobs:
            await runner.start(job.id)
        await asyncio.sleep(0)
        await asyncio.wait_for(runner.shutdown(), timeout=5)

    asyncio.run(scenario())

    assert runner.active_jobs() == []
    for job in jobs:
        assert store.get(job.id).status == JobStatus.FAILED
        assert store.get(job.id).failure_kind == "cancelled"


def test_start_announces_before_phases(store, runner, channel):
    """every kind gets a started event at 0% ahead of its first phase"""
    job = store.create(OWNER, JobKind.SCRIPT, "Title", "explain photosynthesis simply")

    asyncio.run(runner.run(job.id))

    started = channel.events[0]
    assert started["progress"] == 0
    assert started["status"] == "processing"
    assert started["message"] == "Script generation started"
    assert channel.events[1]["message"] == PIPELINES[JobKind.SCRIPT].phases[0].message


def test_cancel_wins_over_phase_error(store, notifier, channel):
    """work that errors after cancellation was requested still ends cancelled"""
    job = create_video(store)
    runner = JobRunner(store, notifier, phase_delay=0)

    calls = {"count": 0}

    async def sleep(delay):
        calls["count"] += 1
        if calls["count"] == 2:
            runner.cancel(job.id)
            raise RuntimeError("render worker crashed")

    runner.sleep = sleep
    finished = asyncio.run(runner.run(job.id))

    assert finished.status == JobStatus.FAILED
    assert finished.failure_kind == "cancelled"
    assert finished.progress == 10
    assert channel.events[-1]["failure_kind"] == "cancelled"


def test_run_stops_when_job_finished_elsewhere(store, notifier, channel):
    """a job failed outside the run is left alone and no more events follow"""
    job = create_video(store)
    calls = {"count": 0}

    async def sleep(delay):
        calls["count"] += 1
        if calls["count"] == 2:
            store.fail(job.id, "stopped by admin")

    runner = JobRunner(store, notifier, phase_delay=0, sleep=sleep)
    finished = asyncio.run(runner.run(job.id))

    assert calls["count"] == 2
    assert finished.status == JobStatus.FAILED
    assert finished.failure_reason == "stopped by admin"
    assert finished.progress == 10
    assert [event["progress"] for event in channel.events] == [0, 10]
    assert all(event["status"] == "processing" for event in channel.events)


def test_stalled_subscriber_does_not_stall_run(store, channel):
    """a subscriber that never reads is dropped and the job still completes"""
    notifier = ProgressNotifier(send_timeout=0.05)
    notifier.subscribe(OWNER, channel)
    stalled = HangingChannel()
    notifier.subscribe(OWNER, stalled)
    runner = JobRunner(store, notifier, phase_delay=0, sleep=no_sleep)
    job = create_video(store)

    async def scenario():
        return await asyncio.wait_for(runner.run(job.id), timeout=5)

    finished = asyncio.run(scenario())

    assert finished.status == JobStatus.COMPLETED
    assert [event["progress"] for event in channel.events] == [0, 10, 30, 60, 85, 100, 100]
    assert stalled.attempts == 1
    assert notifier.subscriber_count(OWNER) == 1
