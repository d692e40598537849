"""
Simulated generation runs.

A run claims a pending job, announces it, walks a fixed list of phases (each one a timed
delay followed by a progress update and a notification), and finishes the
job as completed with a result payload or as failed with a reason. Errors
raised during a run are recorded on the job and never reach the caller of
start().
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, Tuple

from influencore.core.errors import (
    JobCancelledError,
    classify_failure,
    handle_job_error,
)
from influencore.models import Job, JobKind, JobStatus
from influencore.services.job_store import JobStore
from influencore.services.notifier import ProgressNotifier
from influencore.services.script_generator import build_script_result
from influencore.services.video_generator import build_video_result

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class Phase:
    message: str
    progress: int


@dataclass(frozen=True)
class Pipeline:
    phases: Tuple[Phase, ...]
    build_result: Callable[[Job], dict]


VIDEO_PIPELINE = Pipeline(
    phases=(
        Phase("Analyzing prompt", 10),
        Phase("Generating scenes", 30),
        Phase("Rendering frames", 60),
        Phase("Adding audio and effects", 85),
        Phase("Finalizing video", 100),
    ),
    build_result=build_video_result,
)

SCRIPT_PIPELINE = Pipeline(
    phases=(
        Phase("Analyzing prompt", 20),
        Phase("Outlining structure", 40),
        Phase("Drafting script", 70),
        Phase("Polishing tone", 90),
        Phase("Finalizing script", 100),
    ),
    build_result=build_script_result,
)

PIPELINES: Dict[JobKind, Pipeline] = {
    JobKind.VIDEO: VIDEO_PIPELINE,
    JobKind.SCRIPT: SCRIPT_PIPELINE,
}


class CancellationToken:
    """cooperative cancellation for one run, checked at every phase delay"""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def sleep(self, delay: float, sleep: Sleep = asyncio.sleep):
        """sleep for delay, waking early if the token is cancelled"""
        if not self.cancelled:
            waiter = asyncio.ensure_future(self._event.wait())
            sleeper = asyncio.ensure_future(sleep(delay))
            try:
                await asyncio.wait({waiter, sleeper}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                waiter.cancel()
                sleeper.cancel()
            if sleeper.done() and not sleeper.cancelled():
                error = sleeper.exception()
                # a cancelled run reports as cancelled whatever the work raised
                if error is not None and not self.cancelled:
                    raise error


class JobRunner:
    """drives generation jobs from pending to completed or failed"""

    def __init__(
        self,
        store: JobStore,
        notifier: ProgressNotifier,
        phase_delay: float = 2.0,
        sleep: Sleep = asyncio.sleep,
        pipelines: Optional[Dict[JobKind, Pipeline]] = None
    ):
        self.store = store
        self.notifier = notifier
        self.phase_delay = phase_delay
        self.sleep = sleep
        self.pipelines = pipelines or PIPELINES
        self._tasks: Dict[str, asyncio.Task] = {}
        self._tokens: Dict[str, CancellationToken] = {}

    async def start(self, job_id) -> asyncio.Task:
        """
        claim a pending job and run it in the background

        raises JobNotFoundError or InvalidJobStateError to the caller; once
        this returns, the outcome is only visible on the job record
        """
        loop = asyncio.get_running_loop()
        job = await asyncio.to_thread(self.store.claim, job_id)
        key = str(job.id)
        token = CancellationToken()
        self._tokens[key] = token

        await self.notifier.notify(
            job.owner_id,
            job.id,
            0,
            f"{job.kind.value.capitalize()} generation started",
            JobStatus.PROCESSING,
        )
        task = loop.create_task(self._execute(job, token), name=f"job-{key}")
        self._tasks[key] = task
        task.add_done_callback(lambda _: self._forget(key))
        logger.info(f"started {job.kind.value} job {key} for owner {job.owner_id}")
        return task

    async def run(self, job_id) -> Optional[Job]:
        """start a job and wait for its terminal record"""
        task = await self.start(job_id)
        await task
        return await asyncio.to_thread(self.store.get, job_id)

    def cancel(self, job_id) -> bool:
        """request cancellation of an active run, the job ends failed"""
        token = self._tokens.get(str(job_id))
        if token is None:
            return False
        token.cancel()
        logger.info(f"cancellation requested for job {job_id}")
        return True

    def is_active(self, job_id) -> bool:
        return str(job_id) in self._tasks

    def active_jobs(self):
        return list(self._tasks)

    async def shutdown(self):
        """cancel every active run and wait for them to record their outcome"""
        tasks = list(self._tasks.values())
        for token in list(self._tokens.values()):
            token.cancel()
        if tasks:
            logger.info(f"waiting for {len(tasks)} job(s) to stop")
            await asyncio.gather(*tasks, return_exceptions=True)

    def _forget(self, key: str):
        self._tasks.pop(key, None)
        self._tokens.pop(key, None)

    async def _execute(self, job: Job, token: CancellationToken):
        pipeline = self.pipelines[job.kind]
        progress = 0
        try:
            for phase in pipeline.phases:
                await token.sleep(self.phase_delay, self.sleep)
                if token.cancelled:
                    raise JobCancelledError(job.id)
                recorded = await asyncio.to_thread(self.store.update_progress, job.id, phase.progress)
                if not recorded:
                    # finished or removed outside this run, nothing left to drive
                    logger.warning(f"job {job.id} no longer processing, stopping at {progress}%")
                    return
                progress = phase.progress
                await self.notifier.notify(
                    job.owner_id, job.id, progress, phase.message, JobStatus.PROCESSING
                )

            result = pipeline.build_result(job)
            finished = await asyncio.to_thread(self.store.complete, job.id, result)
        except asyncio.CancelledError as e:
            # the task itself was cancelled, record it and let cancellation propagate
            await self._record_failure(job, e, progress)
            raise
        except Exception as e:
            await self._record_failure(job, e, progress)
            return

        if finished is None:
            return
        logger.info(f"{job.kind.value} job {job.id} completed")
        await self.notifier.notify(
            job.owner_id,
            job.id,
            100,
            f"{job.kind.value.capitalize()} generation completed",
            JobStatus.COMPLETED,
            result=result,
        )

    async def _record_failure(self, job: Job, error: BaseException, progress: int):
        failure = classify_failure(error)
        handle_job_error(job.id, error, failure)
        try:
            recorded = await asyncio.to_thread(self.store.fail, job.id, failure.message, failure.kind.value)
        except Exception:
            logger.exception(f"could not record failure of job {job.id}")
            return
        if recorded is None:
            return
        await self.notifier.notify(
            job.owner_id,
            job.id,
            progress,
            f"{job.kind.value.capitalize()} generation failed",
            JobStatus.FAILED,
            failure_reason=failure.message,
            failure_kind=failure.kind.value,
        )
