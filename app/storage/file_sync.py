"""Upload/download client for the remote file servers.

Both operations return typed result values instead of raising, so callers
can decide whether a failed transfer is fatal (export) or can be logged and
skipped (refreshing a cached copy).
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

import httpx

from app.errors import LocalFileMissing, RemoteFileNotFound, StudioError, TransportError
from app.storage.paths import RemotePath, StoredPath, basename, normalize_separators, remote_path_from_server

logger = logging.getLogger(__name__)

FACE2FACE_FILE_SERVER = "face2faceFileServer"
TTS_FILE_SERVER = "ttsFileServer"


@dataclass
class UploadResult:
    success: bool
    remote_path: Optional[RemotePath] = None
    file_name: Optional[str] = None
    error: Optional[StudioError] = None

    def raise_for_error(self) -> RemotePath:
        if not self.success:
            raise self.error
        return self.remote_path


@dataclass
class DownloadResult:
    success: bool
    local_path: Optional[str] = None
    error: Optional[StudioError] = None

    def raise_for_error(self) -> str:
        if not self.success:
            raise self.error
        return self.local_path


def download_variants(remote_path: Union[str, StoredPath]) -> List[str]:
    """Path spellings to try, in order: as given, forward slashes, bare name."""
    raw = str(remote_path)
    candidates = [raw, normalize_separators(raw), basename(raw)]
    variants: List[str] = []
    for candidate in candidates:
        if candidate and candidate not in variants:
            variants.append(candidate)
    return variants


class FileSyncClient:
    """Moves files between local disk and the category-bucketed file servers."""

    def __init__(
        self,
        service_urls: Dict[str, str],
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._service_urls = service_urls
        self._timeout = timeout
        self._transport = transport

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self._timeout, trust_env=False)

    def _base_url(self, service_key: str) -> str:
        url = self._service_urls.get(service_key)
        if url is None:
            raise ValueError(
                f"Unknown service '{service_key}'. Available: {list(self._service_urls)}"
            )
        return url.rstrip("/")

    async def upload(self, local_path: str, service_key: str, category: str) -> UploadResult:
        """Upload a local file into ``category`` on the given file server."""
        if not os.path.isfile(local_path):
            logger.error(f"Upload aborted, local file missing: {local_path}")
            return UploadResult(success=False, error=LocalFileMissing(local_path))

        url = f"{self._base_url(service_key)}/file/upload"
        file_name = os.path.basename(local_path)
        try:
            async with self._build_client() as client:
                with open(local_path, "rb") as fh:
                    response = await client.post(
                        url,
                        files={"file": (file_name, fh)},
                        data={"category": category},
                    )
            payload = _json_or_empty(response)
        except httpx.HTTPError as exc:
            logger.error(f"Upload of {local_path} to {url} failed: {exc}")
            return UploadResult(success=False, error=TransportError(str(exc)))

        logger.debug(f"Upload response from {url}: {payload}")
        if response.status_code == 200 and payload.get("success"):
            return UploadResult(
                success=True,
                remote_path=remote_path_from_server(payload["filePath"]),
                file_name=file_name,
            )
        error = payload.get("error") or f"HTTP {response.status_code}"
        logger.error(f"Upload of {local_path} rejected: {error}")
        return UploadResult(success=False, error=TransportError(error, response.status_code))

    async def download(
        self,
        remote_path: Union[str, StoredPath],
        local_path: str,
        service_key: str,
    ) -> DownloadResult:
        """Download a remote file, falling back through path spellings."""
        parent = os.path.dirname(os.path.abspath(local_path))
        os.makedirs(parent, exist_ok=True)

        url = f"{self._base_url(service_key)}/file/download"
        last_error: Optional[Exception] = None
        async with self._build_client() as client:
            for variant in download_variants(remote_path):
                try:
                    response = await client.get(url, params={"path": variant})
                except httpx.HTTPError as exc:
                    last_error = TransportError(str(exc))
                    logger.warning(f"Download of {variant} failed: {exc}")
                    continue
                if response.status_code == 200:
                    _write_atomically(local_path, response.content)
                    logger.info(f"Downloaded {variant} to {local_path}")
                    return DownloadResult(success=True, local_path=local_path)
                error = _json_or_empty(response).get("error") or response.reason_phrase
                last_error = TransportError(
                    f"HTTP {response.status_code}: {error}", response.status_code
                )
                logger.debug(f"Download variant {variant} rejected: {last_error}")

        logger.error(f"All download variants failed for {remote_path}: {last_error}")
        return DownloadResult(
            success=False,
            error=RemoteFileNotFound(str(remote_path), last_error),
        )


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _write_atomically(local_path: str, content: bytes) -> None:
    directory = os.path.dirname(os.path.abspath(local_path))
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".part-")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(content)
        os.replace(tmp_path, local_path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
