"""Avatar model operations.

Adding a model copies the reference video into the local asset directory,
extracts its soundtrack, pushes the video to the face2face file server and the
audio to the TTS file server, then trains a voice from the uploaded audio.
"""

import logging
import os
import shutil
from typing import Any, Dict, Optional

from app.config import Settings
from app.db.record_store import RecordStore
from app.errors import LocalFileMissing
from app.jobs.models import ModelRecord
from app.media.ffmpeg import extract_audio
from app.services.voice import VoiceService, timestamped_name
from app.storage.file_sync import FACE2FACE_FILE_SERVER, TTS_FILE_SERVER, FileSyncClient
from app.storage.paths import RemotePath, StoredPath

logger = logging.getLogger(__name__)

# Reference sample the TTS container ships with, used in development mode
DEV_TRAIN_AUDIO = "origin_audio/test.wav"


class ModelService:
    def __init__(
        self,
        models: RecordStore,
        voice_service: VoiceService,
        file_sync: FileSyncClient,
        settings: Settings,
    ):
        self.models = models
        self.voice_service = voice_service
        self.file_sync = file_sync
        self.settings = settings

    async def add_model(self, name: str, video_path: str) -> int:
        if not os.path.isfile(video_path):
            raise LocalFileMissing(video_path)
        assets = self.settings.asset_path
        os.makedirs(assets["model"], exist_ok=True)

        model_file = timestamped_name(video_path)
        local_video = os.path.join(assets["model"], model_file)
        shutil.copyfile(video_path, local_video)

        local_audio = os.path.join(assets["tts_train"], os.path.splitext(model_file)[0] + ".wav")
        await extract_audio(local_video, local_audio)

        logger.info("Uploading video file to face2face server...")
        video_upload = await self.file_sync.upload(local_video, FACE2FACE_FILE_SERVER, "model")
        remote_video = video_upload.raise_for_error()
        logger.info(f"Video upload successful. Remote path: {remote_video}")

        logger.info("Uploading audio file to TTS server...")
        audio_upload = await self.file_sync.upload(local_audio, TTS_FILE_SERVER, "origin_audio")
        remote_audio = audio_upload.raise_for_error()
        logger.info(f"Audio upload successful. Remote path: {remote_audio}")

        train_source = DEV_TRAIN_AUDIO if self.settings.is_development else remote_audio
        voice_id = await self.voice_service.train(train_source, "zh")
        if voice_id is None:
            logger.warning(f"Voice training failed for model '{name}', saving without a voice")

        model = ModelRecord(
            name=name,
            video_path=remote_video,
            audio_path=remote_audio,
            voice_id=voice_id,
        )
        return self.models.insert(model.to_row())

    def _local_paths(self, model: ModelRecord) -> Dict[str, Optional[str]]:
        assets = self.settings.asset_path
        return {
            "video": os.path.join(assets["model"], model.video_path.name) if model.video_path else None,
            "audio": os.path.join(assets["tts_root"], model.audio_path.name) if model.audio_path else None,
        }

    async def _refresh_local(self, path: Optional[StoredPath], local_path: Optional[str], service: str) -> None:
        if not isinstance(path, RemotePath) or os.path.exists(local_path):
            return
        result = await self.file_sync.download(path, local_path, service)
        if not result.success:
            logger.error(f"Failed to download {path}: {result.error}")

    async def _present(self, model: ModelRecord) -> Dict[str, Any]:
        local = self._local_paths(model)
        await self._refresh_local(model.video_path, local["video"], FACE2FACE_FILE_SERVER)
        await self._refresh_local(model.audio_path, local["audio"], TTS_FILE_SERVER)
        row = model.to_row()
        row["local_video_path"] = local["video"] or ""
        row["local_audio_path"] = local["audio"] or ""
        return row

    async def page(self, page: int = 1, page_size: int = 10, name: str = "") -> Dict[str, Any]:
        filters = {"name": name}
        total = self.models.count(filters)
        items = [
            await self._present(ModelRecord.from_row(row))
            for row in self.models.select_page(filters, page, page_size)
        ]
        return {"total": total, "list": items}

    async def find(self, model_id: int) -> Dict[str, Any]:
        model = ModelRecord.from_row(self.models.get(model_id))
        if not model.video_path:
            logger.warning(f"Model {model_id} has no video path")
        if not model.audio_path:
            logger.warning(f"Model {model_id} has no audio path")
        return await self._present(model)

    def count(self, name: str = "") -> int:
        return self.models.count({"name": name})

    def remove(self, model_id: int) -> None:
        model = ModelRecord.from_row(self.models.get(model_id))
        for local_path in self._local_paths(model).values():
            if local_path and os.path.exists(local_path):
                os.remove(local_path)
        self.models.remove(model_id)
