"""
Centralized video job tracking and state management for simulation mode.

JobRegistry keeps an in-memory store of simulated jobs and walks each one
through its lifecycle with scheduled steps: queued -> processing -> succeeded
(or failed, when a failure rate is configured). Clock and scheduler are
injected so the lifecycle can be driven deterministically in tests.
"""
import asyncio
import logging
import random
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from video.base import (
    CANCELED,
    FAILED,
    PROCESSING,
    QUEUED,
    SUCCEEDED,
    JobOptions,
    VideoJob,
)

logger = logging.getLogger(__name__)

MOCK_VIDEO_URL = "https://cdn.openai.com/sora/videos/mock-{job_id}.mp4"
SIMULATED_FAILURE = "Simulated video generation failure"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LoopScheduler:
    """
    Schedules callbacks on the running asyncio event loop.

    The loop is looked up on every call, so the registry can be built at
    import time, before uvicorn starts its loop.
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class JobRegistry:
    """
    In-memory store of simulated video jobs.

    Each job carries at most one pending scheduled step. The processing step
    schedules the completion step when it fires, so completion can never
    overtake processing regardless of the configured delays.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        scheduler: Optional[Any] = None,
        processing_delay: float = 1.0,
        completion_delay: float = 5.0,
        failure_rate: float = 0.0,
        retention_seconds: Optional[float] = None,
        rng: Optional[random.Random] = None
    ):
        """
        Args:
            clock: Returns the current time (timezone-aware UTC)
            scheduler: Object with call_later(delay, callback) returning a
                cancellable handle; defaults to the running asyncio loop
            processing_delay: Seconds from creation until "processing"
            completion_delay: Seconds from creation until the terminal state
            failure_rate: Probability (0..1) that a job ends "failed"
            retention_seconds: Evict jobs this long after they turn terminal;
                None keeps them for the life of the process
            rng: Random source for the failure draw
        """
        if processing_delay < 0:
            raise ValueError("processing_delay must not be negative")
        if completion_delay <= processing_delay:
            raise ValueError("completion_delay must exceed processing_delay")
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError("failure_rate must be between 0 and 1")

        self._clock = clock
        self._scheduler = scheduler or LoopScheduler()
        self.processing_delay = processing_delay
        self.completion_delay = completion_delay
        self.failure_rate = failure_rate
        self.retention_seconds = retention_seconds
        self._rng = rng or random.Random()
        self._jobs: Dict[str, VideoJob] = {}

    def __len__(self) -> int:
        return len(self._jobs)

    def create(self, options: JobOptions) -> VideoJob:
        """
        Register a new queued job and schedule its lifecycle.

        Raises:
            JobValidationError: If the prompt is missing or blank; nothing is registered
        """
        options.validate()

        now = self._clock()
        job = VideoJob(
            id=str(uuid.uuid4()),
            status=QUEUED,
            created_at=now,
            updated_at=now,
            options=options,
        )
        job.pending = self._scheduler.call_later(
            self.processing_delay, lambda: self._start_processing(job.id)
        )
        self._jobs[job.id] = job
        logger.info(f"[MOCK] Created job {job.id} for prompt: {options.prompt[:50]}...")
        return job

    def get(self, job_id: str) -> Optional[VideoJob]:
        """
        Retrieve a job by ID.

        Returns:
            VideoJob if found, None otherwise
        """
        return self._jobs.get(job_id)

    def cancel(self, job_id: str) -> Optional[VideoJob]:
        """
        Cancel a queued or processing job.

        Terminal jobs are returned untouched. For live jobs the pending step
        is cancelled before the status changes, so no step can fire afterwards.

        Returns:
            The job, or None if the ID is unknown
        """
        job = self._jobs.get(job_id)
        if job is None:
            return None
        if job.is_terminal:
            return job

        self._clear_pending(job)
        job.transition(CANCELED, self._clock())
        self._schedule_eviction(job)
        logger.info(f"[MOCK] Canceled job {job_id}")
        return job

    def _clear_pending(self, job: VideoJob) -> None:
        if job.pending is not None:
            job.pending.cancel()
            job.pending = None

    def _start_processing(self, job_id: str) -> None:
        job = self._jobs.get(job_id)
        if job is None or job.status != QUEUED:
            return

        job.transition(PROCESSING, self._clock())
        job.pending = self._scheduler.call_later(
            self.completion_delay - self.processing_delay,
            lambda: self._complete(job_id)
        )
        logger.info(f"[MOCK] Job {job_id} is processing")

    def _complete(self, job_id: str) -> None:
        job = self._jobs.get(job_id)
        if job is None or job.status != PROCESSING:
            return

        job.pending = None
        if self.failure_rate and self._rng.random() < self.failure_rate:
            job.transition(FAILED, self._clock(), error=SIMULATED_FAILURE)
            logger.info(f"[MOCK] Job {job_id} failed (simulated)")
        else:
            video_url = MOCK_VIDEO_URL.format(job_id=job_id)
            job.transition(SUCCEEDED, self._clock(), result={"video_url": video_url})
            logger.info(f"[MOCK] Job {job_id} succeeded")
        self._schedule_eviction(job)

    def _schedule_eviction(self, job: VideoJob) -> None:
        if self.retention_seconds is None:
            return
        job.pending = self._scheduler.call_later(
            self.retention_seconds, lambda: self._evict(job.id)
        )

    def _evict(self, job_id: str) -> None:
        job = self._jobs.get(job_id)
        if job is None or not job.is_terminal:
            return
        del self._jobs[job_id]
        logger.info(f"[MOCK] Evicted job {job_id}")
