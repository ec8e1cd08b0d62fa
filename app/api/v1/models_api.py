"""Models API: avatar models and their reference media."""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

router = APIRouter()

# Set by main.py during lifespan
_model_service = None


def set_model_service(service):
    global _model_service
    _model_service = service


def _service():
    if _model_service is None:
        raise HTTPException(status_code=503, detail="Model service not initialized")
    return _model_service


class AddModelRequest(BaseModel):
    name: str
    video_path: str


@router.post("/models")
async def add_model(request: AddModelRequest):
    """Register a model from a local video file and train its voice."""
    model_id = await _service().add_model(request.name, request.video_path)
    return {"id": model_id}


@router.get("/models")
async def page_models(page: int = 1, page_size: int = 10, name: str = ""):
    return await _service().page(page=page, page_size=page_size, name=name)


@router.get("/models/count")
async def count_models(name: str = ""):
    return {"count": _service().count(name)}


@router.get("/models/{model_id}")
async def find_model(model_id: int):
    return await _service().find(model_id)


@router.delete("/models/{model_id}")
async def remove_model(model_id: int):
    _service().remove(model_id)
    return {"id": model_id, "removed": True}
