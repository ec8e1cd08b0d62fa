"""Category-bucketed file server.

  POST /file/upload    multipart ``file`` + ``category``, stored as {category}/{uuid}{ext}
  GET  /file/download  ``?path=`` resolved through the fallback lookups in resolver.py

Both synthesis hosts run one of these next to their service so the desktop
side can push inputs and pull results.
"""

import logging
import mimetypes
import os
import uuid
from typing import Optional

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from app.file_server.resolver import normalize_category, resolve_download

logger = logging.getLogger(__name__)

_CHUNK_BYTES = 1024 * 1024


def create_file_server(root: str) -> FastAPI:
    """Build a file server app storing everything under ``root``."""
    root = os.path.abspath(root)
    if not os.path.exists(root):
        os.makedirs(root, exist_ok=True)
        logger.info(f"Created file server root: {root}")
    else:
        logger.info(f"Using existing file server root: {root}")

    app = FastAPI(title="File Server", version="0.1.0")
    app.state.root = root

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"{request.method} {request.url}")
        return await call_next(request)

    # -----------------------------------------------------------------------
    # POST /file/upload
    # -----------------------------------------------------------------------

    @app.post("/file/upload")
    async def upload_file(
        file: Optional[UploadFile] = File(None),
        category: Optional[str] = Form(None),
    ):
        if file is None:
            logger.error("No file in upload request")
            return JSONResponse(
                status_code=400,
                content={"success": False, "error": "No file uploaded"},
            )

        category = normalize_category(category)
        category_dir = os.path.join(root, *category.split("/"))
        ext = os.path.splitext(file.filename or "")[1]
        filename = f"{uuid.uuid4()}{ext}"
        target = os.path.join(category_dir, filename)

        total = 0
        try:
            os.makedirs(category_dir, exist_ok=True)
            with open(target, "wb") as dst:
                while True:
                    chunk = await file.read(_CHUNK_BYTES)
                    if not chunk:
                        break
                    total += len(chunk)
                    dst.write(chunk)
        except OSError as exc:
            logger.error(f"File upload error: {exc}")
            return JSONResponse(
                status_code=500,
                content={"success": False, "error": str(exc) or "Unknown error"},
            )

        relative_path = f"{category}/{filename}"
        logger.info(f"Stored {file.filename} ({total} bytes) as {relative_path}")
        return {
            "success": True,
            "filePath": relative_path,
            "originalName": file.filename,
        }

    # -----------------------------------------------------------------------
    # GET /file/download
    # -----------------------------------------------------------------------

    @app.get("/file/download")
    async def download_file(path: Optional[str] = None):
        if not path:
            logger.error("No file path provided in download request")
            return JSONResponse(
                status_code=400,
                content={"success": False, "error": "No file path provided"},
            )

        full_path = resolve_download(root, path)
        if full_path is None:
            logger.error(f"File not found: {path}")
            return JSONResponse(
                status_code=404,
                content={"success": False, "error": "File not found"},
            )

        media_type = mimetypes.guess_type(full_path)[0] or "application/octet-stream"
        logger.info(f"Sending file: {full_path}")
        return FileResponse(full_path, media_type=media_type, filename=os.path.basename(full_path))

    return app
