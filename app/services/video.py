"""Video job operations: listing, editing, queueing, export and removal."""

import logging
import os
import shutil
from typing import Any, Dict, Optional

from app.config import Settings
from app.db.record_store import RecordStore
from app.jobs.models import JobRecord, JobStatus
from app.jobs.dispatcher import JobDispatcher
from app.services.voice import VoiceService
from app.storage.file_sync import FACE2FACE_FILE_SERVER, FileSyncClient
from app.storage.paths import RemotePath, StoredPath

logger = logging.getLogger(__name__)


class VideoService:
    def __init__(
        self,
        jobs: RecordStore,
        dispatcher: JobDispatcher,
        voice_service: VoiceService,
        file_sync: FileSyncClient,
        settings: Settings,
    ):
        self.jobs = jobs
        self.dispatcher = dispatcher
        self.voice_service = voice_service
        self.file_sync = file_sync
        self.settings = settings

    @property
    def _asset_dir(self) -> str:
        return self.settings.asset_path["model"]

    def _local_copy_path(self, path: Optional[StoredPath]) -> Optional[str]:
        if path is None:
            return None
        return os.path.join(self._asset_dir, path.name)

    async def _ensure_local(self, path: Optional[StoredPath]) -> Optional[str]:
        """Local file for a stored result path, downloading it if needed.

        Download failures are logged; the (possibly missing) local path is
        still returned so listings keep working while a server is down.
        """
        local_path = self._local_copy_path(path)
        if isinstance(path, RemotePath) and not os.path.exists(local_path):
            result = await self.file_sync.download(path, local_path, FACE2FACE_FILE_SERVER)
            if not result.success:
                logger.error(f"Failed to download video {path}: {result.error}")
        return local_path

    async def _present(self, job: JobRecord) -> Dict[str, Any]:
        row = job.to_row()
        row["local_file_path"] = await self._ensure_local(job.file_path)
        return row

    async def page(self, page: int = 1, page_size: int = 10, name: str = "") -> Dict[str, Any]:
        filters = {"name": name}
        waiting = [row["id"] for row in self.jobs.select_by_status(JobStatus.WAITING)]
        total = self.jobs.count(filters)

        items = []
        for row in self.jobs.select_page(filters, page, page_size):
            job = JobRecord.from_row(row)
            item = await self._present(job)
            if job.status == JobStatus.WAITING and job.id in waiting:
                item["progress"] = f"{waiting.index(job.id) + 1} / {len(waiting)}"
            items.append(item)

        return {"total": total, "list": items}

    async def find(self, job_id: int) -> Dict[str, Any]:
        job = JobRecord.from_row(self.jobs.get(job_id))
        return await self._present(job)

    def count(self, name: str = "") -> int:
        return self.jobs.count({"name": name})

    async def save(
        self,
        model_id: int,
        name: str = "",
        text_content: str = "",
        voice_id: Optional[int] = None,
        audio_path: Optional[str] = None,
        video_id: Optional[int] = None,
    ) -> int:
        """Create a draft, or update an existing job's inputs."""
        uploaded_audio = None
        if audio_path:
            uploaded_audio = await self.voice_service.copy_audio_for_video(audio_path)

        fields = {
            "model_id": model_id,
            "name": name,
            "text_content": text_content,
            "voice_id": voice_id,
            "audio_path": uploaded_audio,
        }
        if video_id is not None and self.jobs.select_by_id(video_id) is not None:
            if uploaded_audio is None:
                fields.pop("audio_path")
            self.jobs.update({"id": video_id, **fields})
            return video_id
        return self.jobs.insert(JobRecord(**fields).to_row())

    async def make(self, job_id: int) -> int:
        return await self.dispatcher.submit(job_id)

    def modify(self, partial: Dict[str, Any]) -> int:
        return self.jobs.update(partial)

    async def export(self, job_id: int, output_path: str) -> str:
        """Copy the finished video to ``output_path``. Download failures raise."""
        job = JobRecord.from_row(self.jobs.get(job_id))
        if job.file_path is None:
            raise ValueError(f"Video {job_id} has no result file yet")

        local_path = self._local_copy_path(job.file_path)
        if isinstance(job.file_path, RemotePath) and not os.path.exists(local_path):
            result = await self.file_sync.download(job.file_path, local_path, FACE2FACE_FILE_SERVER)
            result.raise_for_error()

        shutil.copyfile(local_path, output_path)
        return output_path

    def remove(self, job_id: int) -> None:
        job = JobRecord.from_row(self.jobs.get(job_id))
        logger.debug(f"removing video {job_id}")

        for path in (job.file_path, job.audio_path):
            local_path = self._local_copy_path(path)
            if local_path and os.path.exists(local_path):
                os.remove(local_path)

        # TODO: delete the remote copies once the file servers expose a delete endpoint
        self.jobs.remove(job_id)
