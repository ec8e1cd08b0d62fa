"""Voices API: list cloned voices, train new ones, audition."""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

router = APIRouter()

# Set by main.py during lifespan
_voice_service = None


def set_voice_service(service):
    global _voice_service
    _voice_service = service


def _service():
    if _voice_service is None:
        raise HTTPException(status_code=503, detail="Voice service not initialized")
    return _voice_service


class TrainRequest(BaseModel):
    audio_path: str
    lang: str = "zh"


class AuditionRequest(BaseModel):
    voice_id: int
    text: str


@router.get("/voices")
async def list_voices():
    voices = _service().list_voices()
    return {"voices": [v.to_row() for v in voices], "count": len(voices)}


@router.post("/voices/train")
async def train_voice(request: TrainRequest):
    voice_id = await _service().train(request.audio_path, request.lang)
    if voice_id is None:
        raise HTTPException(status_code=422, detail="Voice training was rejected by the TTS service")
    return {"id": voice_id}


@router.post("/voices/audition")
async def audition(request: AuditionRequest):
    """Synthesize a preview clip. Returns a local file path."""
    return {"path": await _service().audition(request.voice_id, request.text)}
