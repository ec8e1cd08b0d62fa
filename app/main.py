"""Avatar Studio backend - FastAPI application."""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import Settings, settings
from app.api.v1.router import v1_router
from app.api.v1.health import router as health_root_router
from app.api.v1 import health as health_api
from app.api.v1 import models_api
from app.api.v1 import videos as videos_api
from app.api.v1 import voices as voices_api
from app.clients.face2face import Face2FaceClient
from app.clients.tts import TTSClient
from app.db.record_store import RecordStores, create_record_stores
from app.errors import JobAlreadyPending, LocalFileMissing, RecordNotFound, RemoteFileNotFound, TransportError
from app.jobs.polling_scheduler import PollingScheduler
from app.jobs.synthesis import SynthesisController
from app.services.model import ModelService
from app.services.video import VideoService
from app.services.voice import VoiceService
from app.storage.file_sync import FileSyncClient

logger = logging.getLogger(__name__)


@dataclass
class Studio:
    """Everything the API and the scheduler share."""
    stores: RecordStores
    voice_service: VoiceService
    model_service: ModelService
    video_service: VideoService
    controller: SynthesisController
    scheduler: PollingScheduler


def build_studio(config: Settings, stores: RecordStores = None, transport=None) -> Studio:
    """Wire stores, remote clients, services and the scheduler together."""
    stores = stores or create_record_stores(config.record_store)
    urls = config.service_url
    timeout = config.http_timeout_seconds

    file_sync = FileSyncClient(urls, timeout=timeout, transport=transport)
    face2face = Face2FaceClient(urls["face2face"], timeout=timeout, transport=transport)
    tts = TTSClient(urls["tts"], timeout=timeout, transport=transport)

    voice_service = VoiceService(stores.voices, tts, file_sync, config)
    controller = SynthesisController(stores.jobs, stores.models, voice_service, face2face, config)
    scheduler = PollingScheduler(stores.jobs, controller, face2face, file_sync, config)
    return Studio(
        stores=stores,
        voice_service=voice_service,
        model_service=ModelService(stores.models, voice_service, file_sync, config),
        video_service=VideoService(stores.jobs, scheduler, voice_service, file_sync, config),
        controller=controller,
        scheduler=scheduler,
    )


def wire_studio(studio: Studio) -> None:
    health_api.set_scheduler(studio.scheduler)
    models_api.set_model_service(studio.model_service)
    videos_api.set_video_service(studio.video_service)
    voices_api.set_voice_service(studio.voice_service)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(f"Starting Avatar Studio backend on port {settings.api_port}")
    logger.info(f"Mode: {settings.app_env}, record store: {settings.record_store}")
    for name, url in settings.service_url.items():
        logger.info(f"  {name}: {url}")

    studio = build_studio(settings)
    wire_studio(studio)
    app.state.studio = studio

    await studio.scheduler.start()
    logger.info("Polling scheduler started")

    yield

    logger.info("Shutting down Avatar Studio backend")
    await studio.scheduler.stop()


app = FastAPI(
    title="Avatar Studio Service",
    description="Video synthesis job orchestration over face2face and TTS services",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000", "*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RecordNotFound)
async def record_not_found_handler(request: Request, exc: RecordNotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(JobAlreadyPending)
async def job_already_pending_handler(request: Request, exc: JobAlreadyPending):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(LocalFileMissing)
async def local_file_missing_handler(request: Request, exc: LocalFileMissing):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(RemoteFileNotFound)
@app.exception_handler(TransportError)
async def remote_error_handler(request: Request, exc: Exception):
    logger.error(f"{request.method} {request.url.path} failed upstream: {exc}")
    return JSONResponse(status_code=502, content={"detail": str(exc)})


# Mount routers
app.include_router(health_root_router, tags=["health"])  # GET /health at root
app.include_router(v1_router)  # All /api/v1/* endpoints
