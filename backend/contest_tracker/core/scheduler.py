import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[None]]


@dataclass
class ScheduledJob:
    name: str
    func: Job
    interval_seconds: float


class JobScheduler:
    """
    Periodic background job runner owned by the app lifespan.
    Each job runs once at start, then every interval. A job never overlaps
    itself; a failing run is logged and the next one still happens.
    """

    def __init__(self):
        self.jobs: Dict[str, ScheduledJob] = {}
        self.running = False
        self.tasks: List[asyncio.Task] = []

    def add_job(self, name: str, func: Job, interval_seconds: float):
        """Register a job. Must be called before start()."""
        if self.running:
            raise RuntimeError("Cannot add jobs to a running scheduler")
        self.jobs[name] = ScheduledJob(name, func, interval_seconds)
        logger.info(f"📅 Scheduled {name} every {interval_seconds}s")

    async def start(self):
        """Launch one task per job."""
        self.running = True
        logger.info("🚀 Starting background jobs...")

        self.tasks = [
            asyncio.create_task(self._job_loop(job), name=f"job:{job.name}")
            for job in self.jobs.values()
        ]

        logger.info("✅ All background jobs started")

    async def stop(self):
        """Gracefully shutdown all jobs."""
        logger.info("🛑 Stopping background jobs...")
        self.running = False

        for task in self.tasks:
            task.cancel()
        await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks = []

        logger.info("✅ All background jobs stopped")

    async def run_once(self, name: str):
        """Run a registered job immediately (tests, manual triggers). Errors propagate."""
        job = self.jobs.get(name)
        if job is None:
            raise KeyError(f"Unknown job: {name}")
        await job.func()

    async def _job_loop(self, job: ScheduledJob):
        """Run a job forever with a fixed delay between runs."""
        while self.running:
            try:
                await job.func()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"{job.name} failed: {e}", exc_info=True)

            await asyncio.sleep(job.interval_seconds)
