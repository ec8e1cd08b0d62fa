"""Record data models for synthesis jobs, avatar models and voices."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from app.storage.paths import LocalPath, RemotePath, parse_stored_path

StoredPathField = Optional[Union[LocalPath, RemotePath]]


class JobStatus(str, Enum):
    DRAFT = "draft"
    WAITING = "waiting"
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


TERMINAL_STATUSES = (JobStatus.SUCCESS, JobStatus.FAILED)


class _PathRecord(BaseModel):
    """Base for records whose path columns are stored as plain strings."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @classmethod
    def from_row(cls, row: Optional[Dict[str, Any]]):
        if row is None:
            return None
        return cls.model_validate(row)

    def to_row(self) -> Dict[str, Any]:
        row = self.model_dump(mode="json")
        if row.get("id") is None:
            row.pop("id", None)
        return row


class JobRecord(_PathRecord):
    """Tracks the lifecycle of one requested video synthesis."""
    id: Optional[int] = None
    model_id: int
    name: str = ""
    voice_id: Optional[int] = None
    text_content: str = ""
    audio_path: StoredPathField = None
    file_path: StoredPathField = None
    status: JobStatus = JobStatus.DRAFT
    message: Optional[Any] = None
    progress: Optional[Union[str, float, int]] = None
    code: Optional[str] = None
    param: Optional[Dict[str, Any]] = None
    duration: Optional[float] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("audio_path", "file_path", mode="before")
    @classmethod
    def _parse_path(cls, value):
        return parse_stored_path(value)

    @field_serializer("audio_path", "file_path")
    def _serialize_path(self, value):
        return str(value) if value is not None else None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class ModelRecord(_PathRecord):
    """An avatar model: reference video plus the voice trained from it."""
    id: Optional[int] = None
    name: str
    video_path: StoredPathField = None
    audio_path: StoredPathField = None
    voice_id: Optional[int] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("video_path", "audio_path", mode="before")
    @classmethod
    def _parse_path(cls, value):
        return parse_stored_path(value)

    @field_serializer("video_path", "audio_path")
    def _serialize_path(self, value):
        return str(value) if value is not None else None


class VoiceRecord(_PathRecord):
    """A cloned voice produced by the TTS training step."""
    id: Optional[int] = None
    origin_audio_path: StoredPathField = None
    lang: str = "zh"
    asr_format_audio_url: Optional[str] = None
    reference_audio_text: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("origin_audio_path", mode="before")
    @classmethod
    def _parse_path(cls, value):
        return parse_stored_path(value)

    @field_serializer("origin_audio_path")
    def _serialize_path(self, value):
        return str(value) if value is not None else None
