"""Single-slot polling scheduler for face2face jobs.

One asyncio task runs a cycle every ``poll_interval_seconds``. A cycle either
promotes the oldest waiting job into synthesis (when nothing is pending) or
polls the remote status of the one pending job. Cycles never overlap and
never issue remote calls in parallel; a failing cycle is logged and the next
one runs on schedule.
"""

import asyncio
import logging
import os
from typing import Optional

from app.clients.face2face import Face2FaceClient
from app.config import Settings
from app.db.record_store import RecordStore
from app.jobs.dispatcher import JobDispatcher
from app.jobs.models import JobRecord, JobStatus
from app.jobs.remote_status import (
    Completed,
    InProgress,
    RemoteFailure,
    TerminalFailure,
    Unrecognized,
    parse_status,
)
from app.jobs.synthesis import SynthesisController
from app.media.ffmpeg import get_video_duration
from app.storage.file_sync import FACE2FACE_FILE_SERVER, FileSyncClient
from app.storage.paths import basename, normalize_separators, parse_stored_path

logger = logging.getLogger(__name__)

# Reported instead of probing in development mode, where results are fake
DEV_DURATION = 88.0


class PollingScheduler(JobDispatcher):
    """Advances at most one in-flight job per cycle."""

    def __init__(
        self,
        jobs: RecordStore,
        controller: SynthesisController,
        face2face: Face2FaceClient,
        file_sync: FileSyncClient,
        settings: Settings,
        interval: Optional[float] = None,
    ):
        self._jobs = jobs
        self._controller = controller
        self._face2face = face2face
        self._file_sync = file_sync
        self._settings = settings
        self._interval = settings.poll_interval_seconds if interval is None else interval
        # The pending slot. Held for a whole cycle, so a second worker would queue here.
        self._slot = asyncio.Semaphore(1)
        self._task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def submit(self, job_id: int) -> int:
        return self._controller.submit(job_id)

    async def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._running = True
        self._task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                await self.run_cycle()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Polling cycle failed")
            await asyncio.sleep(self._interval)

    async def run_cycle(self) -> Optional[int]:
        """One polling cycle. Returns the id of the job it touched, if any."""
        async with self._slot:
            pending = self._jobs.select_by_status(JobStatus.PENDING)
            if not pending:
                return await self._promote_next()

            if len(pending) > 1:
                ids = [row["id"] for row in pending]
                logger.warning(f"More than one pending job {ids}; polling only {ids[0]}")
            job = JobRecord.from_row(pending[0])
            await self._check_status(job)
            return job.id

    async def _promote_next(self) -> Optional[int]:
        row = self._jobs.find_first_by_status(JobStatus.WAITING)
        if row is None:
            return None
        logger.info(f"Promoting waiting job {row['id']} into synthesis")
        return await self._controller.synthesize(row["id"])

    async def _check_status(self, job: JobRecord) -> None:
        if not job.code:
            # Left behind by an interrupted submission; nothing to poll
            self._jobs.update_status(job.id, JobStatus.FAILED, "No remote job code recorded")
            return

        outcome = parse_status(await self._face2face.query(job.code))

        if isinstance(outcome, TerminalFailure):
            self._jobs.update_status(job.id, JobStatus.FAILED, outcome.message)
        elif isinstance(outcome, InProgress):
            self._jobs.update_status(job.id, JobStatus.PENDING, outcome.message, outcome.progress)
        elif isinstance(outcome, Completed):
            duration = await self._measure_duration(outcome.result)
            self._jobs.update({
                "id": job.id,
                "status": JobStatus.SUCCESS,
                "message": outcome.message,
                "progress": outcome.progress,
                "file_path": parse_stored_path(outcome.result),
                "duration": duration,
            })
            logger.info(f"Job {job.id} finished: {outcome.result} ({duration}s)")
        elif isinstance(outcome, RemoteFailure):
            self._jobs.update_status(job.id, JobStatus.FAILED, outcome.message)
        elif isinstance(outcome, Unrecognized):
            logger.warning(f"Unrecognized status for job {job.id}: {outcome.payload}")

    async def _measure_duration(self, result: str) -> float:
        if self._settings.is_development:
            return DEV_DURATION

        asset_dir = self._settings.asset_path["model"]
        shared_copy = os.path.join(asset_dir, *normalize_separators(result).split("/"))
        duration = await get_video_duration(shared_copy)
        if duration is None:
            local_copy = os.path.join(asset_dir, basename(result))
            download = await self._file_sync.download(result, local_copy, FACE2FACE_FILE_SERVER)
            if download.success:
                duration = await get_video_duration(local_copy)
        if duration is None:
            logger.warning(f"Could not measure duration of {result}")
            return 0.0
        return duration
