"""Drives a single job from "waiting" to a remote face2face task."""

import logging
import uuid
from typing import Any, Dict

from app.clients.face2face import Face2FaceClient
from app.config import Settings
from app.db.record_store import RecordStore
from app.errors import JobAlreadyPending, RecordNotFound, RemoteJobFailure
from app.jobs.models import JobRecord, JobStatus, ModelRecord
from app.jobs.remote_status import SUCCESS_CODE
from app.services.voice import VoiceService
from app.storage.paths import StoredPath

logger = logging.getLogger(__name__)

# Fixed assets the face2face container ships with, used in development mode
DEV_AUDIO = "test.wav"
DEV_VIDEO = "test.mp4"


def build_submit_param(audio_path: str, video_path: str) -> Dict[str, Any]:
    """Submission payload; ``code`` is a fresh idempotency token."""
    return {
        "audio_url": audio_path,
        "video_url": video_path,
        "code": str(uuid.uuid4()),
        "chaofen": 0,
        "watermark_switch": 0,
        "pn": 1,
    }


class SynthesisController:
    """Resolves audio for a job and hands it to the video-synthesis service."""

    def __init__(
        self,
        jobs: RecordStore,
        models: RecordStore,
        voice_service: VoiceService,
        face2face: Face2FaceClient,
        settings: Settings,
    ):
        self.jobs = jobs
        self.models = models
        self.voice_service = voice_service
        self.face2face = face2face
        self.settings = settings

    def submit(self, job_id: int) -> int:
        """Queue a job for the scheduler. A pending job is refused."""
        job = JobRecord.from_row(self.jobs.get(job_id))
        if job.status == JobStatus.PENDING:
            raise JobAlreadyPending(job_id)
        self.jobs.update({"id": job_id, "status": JobStatus.WAITING})
        return job_id

    async def synthesize(self, job_id: int) -> int:
        """Submit ``job_id`` to face2face.

        Always leaves the job ``pending`` (accepted remotely) or ``failed``;
        errors are recorded on the job rather than raised.
        """
        try:
            self.jobs.update({
                "id": job_id,
                "file_path": None,
                "code": None,
                "param": None,
                "status": JobStatus.PENDING,
                "message": "submitting",
            })

            job = JobRecord.from_row(self.jobs.get(job_id))
            model = ModelRecord.from_row(self.models.get(job.model_id))
            logger.debug(f"synthesize job={job.id} model={model.id}")

            audio_path = await self._resolve_audio(job, model)

            if self.settings.is_development:
                param = build_submit_param(DEV_AUDIO, DEV_VIDEO)
            else:
                param = build_submit_param(str(audio_path), str(model.video_path))

            result = await self.face2face.submit(param)
            logger.info(f"face2face submit for job {job_id}: code={result.get('code')} msg={result.get('msg')}")

            update = {
                "id": job_id,
                "file_path": None,
                "audio_path": audio_path,
                "param": param,
                "code": param["code"],
            }
            if result.get("code") == SUCCESS_CODE:
                update.update(status=JobStatus.PENDING, message=result.get("msg") or "submitted")
            else:
                failure = RemoteJobFailure(result.get("msg") or "submission rejected", result.get("code"))
                update.update(status=JobStatus.FAILED, message=str(failure))
            self.jobs.update(update)
        except Exception as e:
            logger.error(f"synthesize failed for job {job_id}: {e}")
            try:
                self.jobs.update_status(job_id, JobStatus.FAILED, str(e))
            except Exception:
                logger.exception(f"could not record failure for job {job_id}")

        return job_id

    async def _resolve_audio(self, job: JobRecord, model: ModelRecord) -> StoredPath:
        if job.audio_path:
            return job.audio_path

        voice_id = job.voice_id or model.voice_id
        if voice_id is None:
            raise RecordNotFound("voice", voice_id)
        audio_path = await self.voice_service.make_audio_for_video(voice_id, job.text_content)
        logger.debug(f"synthesized audio for job {job.id}: {audio_path}")
        return audio_path
