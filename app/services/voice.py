"""Voice cloning and speech synthesis on top of the TTS service."""

import logging
import os
import shutil
import tempfile
import uuid
from datetime import datetime
from typing import List, Optional, Union

from app.clients.tts import TTSClient
from app.config import Settings
from app.db.record_store import RecordStore
from app.errors import LocalFileMissing
from app.jobs.models import VoiceRecord
from app.storage.file_sync import TTS_FILE_SERVER, FileSyncClient
from app.storage.paths import LocalPath, RemotePath, StoredPath, parse_stored_path

logger = logging.getLogger(__name__)


def timestamped_name(source_path: str) -> str:
    """``YYYYMMDDHHmmssSSS`` plus the source extension."""
    stamp = datetime.now().strftime("%Y%m%d%H%M%S%f")[:17]
    return stamp + os.path.splitext(source_path)[1]


def _looks_local(path: str) -> bool:
    return os.path.isabs(path) or "\\" in path


class VoiceService:
    def __init__(
        self,
        voices: RecordStore,
        tts: TTSClient,
        file_sync: FileSyncClient,
        settings: Settings,
    ):
        self.voices = voices
        self.tts = tts
        self.file_sync = file_sync
        self.settings = settings

    def list_voices(self) -> List[VoiceRecord]:
        return [VoiceRecord.from_row(row) for row in self.voices.select_all()]

    def get_voice(self, voice_id: int) -> VoiceRecord:
        return VoiceRecord.from_row(self.voices.get(voice_id))

    async def train(self, audio_path: Union[str, StoredPath], lang: str = "zh") -> Optional[int]:
        """Clone a voice from reference audio. Returns the new voice id, or None
        when the TTS service rejects the sample."""
        if isinstance(audio_path, str) and _looks_local(audio_path):
            upload = await self.file_sync.upload(audio_path, TTS_FILE_SERVER, "origin_audio")
            remote_path = upload.raise_for_error()
        else:
            remote_path = parse_stored_path(audio_path)

        fmt = os.path.splitext(remote_path.name)[1].lstrip(".")
        res = await self.tts.preprocess_and_train(str(remote_path), fmt, lang)
        logger.debug(f"train response: {res}")

        if res.get("code") != 0:
            logger.error(f"Voice training rejected for {remote_path}: {res.get('msg')}")
            return None

        voice = VoiceRecord(
            origin_audio_path=remote_path,
            lang=lang,
            asr_format_audio_url=res.get("asr_format_audio_url"),
            reference_audio_text=res.get("reference_audio_text"),
        )
        return self.voices.insert(voice.to_row())

    async def make_audio(self, voice_id: int, text: str, target_dir: str) -> StoredPath:
        """Synthesize ``text`` and push it to the TTS file server.

        Returns the remote path, or the local bare filename inside
        ``target_dir`` when uploading is skipped or fails.
        """
        voice = self.get_voice(voice_id)
        speaker = str(uuid.uuid4())
        logger.info(f"Making audio with voice {voice_id} as speaker {speaker}")

        os.makedirs(target_dir, exist_ok=True)
        file_name = f"{speaker}.wav"
        local_file = os.path.join(target_dir, file_name)

        audio = await self.tts.invoke(
            speaker=speaker,
            text=text,
            reference_audio=voice.asr_format_audio_url,
            reference_text=voice.reference_audio_text,
        )
        with open(local_file, "wb") as fh:
            fh.write(audio)
        logger.info(f"Audio saved to {local_file} ({len(audio)} bytes)")

        if self.settings.skip_upload:
            logger.info("Skipping upload to TTS file server (SKIP_UPLOAD=true)")
            return LocalPath(file_name)

        upload = await self.file_sync.upload(local_file, TTS_FILE_SERVER, "audio")
        if not upload.success:
            logger.warning(f"Audio upload failed, using local file instead: {upload.error}")
            return LocalPath(file_name)
        return upload.remote_path

    async def make_audio_for_video(self, voice_id: int, text: str) -> StoredPath:
        return await self.make_audio(voice_id, text, self.settings.asset_path["tts_product"])

    async def copy_audio_for_video(self, file_path: str) -> RemotePath:
        """Stage a user-supplied audio file and upload it to the ``temp`` bucket."""
        if not os.path.isfile(file_path):
            raise LocalFileMissing(file_path)
        target_dir = self.settings.asset_path["tts_product"]
        os.makedirs(target_dir, exist_ok=True)
        local_target = os.path.join(target_dir, timestamped_name(file_path))
        shutil.copyfile(file_path, local_target)

        upload = await self.file_sync.upload(local_target, TTS_FILE_SERVER, "temp")
        return upload.raise_for_error()

    async def audition(self, voice_id: int, text: str) -> str:
        """Generate a preview clip and return a playable local file path."""
        voice = self.get_voice(voice_id)
        tmp_dir = tempfile.gettempdir()

        generated = await self.make_audio(voice_id, text, tmp_dir)
        if isinstance(generated, LocalPath):
            return os.path.join(tmp_dir, generated.name)

        local_file = os.path.join(tmp_dir, f"audition_{uuid.uuid4()}.wav")
        result = await self.file_sync.download(generated, local_file, TTS_FILE_SERVER)
        if result.success:
            return local_file

        logger.warning(f"Audition download failed ({result.error}), regenerating locally")
        audio = await self.tts.invoke(
            speaker=str(uuid.uuid4()),
            text=text,
            reference_audio=voice.asr_format_audio_url,
            reference_text=voice.reference_audio_text,
        )
        with open(local_file, "wb") as fh:
            fh.write(audio)
        return local_file
