"""Video job API: drafts, queueing, listing, export and removal."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

router = APIRouter()

# Set by main.py during lifespan
_video_service = None


def set_video_service(service):
    global _video_service
    _video_service = service


def _service():
    if _video_service is None:
        raise HTTPException(status_code=503, detail="Video service not initialized")
    return _video_service


class VideoSaveRequest(BaseModel):
    id: Optional[int] = None
    model_id: int
    name: str = ""
    text_content: str = ""
    voice_id: Optional[int] = None
    audio_path: Optional[str] = None


class VideoExportRequest(BaseModel):
    output_path: str


@router.get("/videos")
async def page_videos(page: int = 1, page_size: int = 10, name: str = ""):
    """List video jobs, newest first. Waiting jobs report their queue position."""
    return await _service().page(page=page, page_size=page_size, name=name)


@router.get("/videos/count")
async def count_videos(name: str = ""):
    return {"count": _service().count(name)}


@router.get("/videos/{video_id}")
async def find_video(video_id: int):
    return await _service().find(video_id)


@router.post("/videos")
async def save_video(request: VideoSaveRequest):
    """Create a draft, or update the inputs of an existing job."""
    video_id = await _service().save(
        model_id=request.model_id,
        name=request.name,
        text_content=request.text_content,
        voice_id=request.voice_id,
        audio_path=request.audio_path,
        video_id=request.id,
    )
    return {"id": video_id}


@router.post("/videos/{video_id}/make")
async def make_video(video_id: int):
    """Queue a job for synthesis. The scheduler picks it up on a later cycle."""
    return {"id": await _service().make(video_id), "status": "waiting"}


@router.patch("/videos/{video_id}")
async def modify_video(video_id: int, fields: Dict[str, Any]):
    fields.pop("id", None)
    return {"updated": _service().modify({"id": video_id, **fields})}


@router.post("/videos/{video_id}/export")
async def export_video(video_id: int, request: VideoExportRequest):
    return {"output_path": await _service().export(video_id, request.output_path)}


@router.delete("/videos/{video_id}")
async def remove_video(video_id: int):
    _service().remove(video_id)
    return {"id": video_id, "removed": True}
