"""Shared fixtures: in-memory stores, fake remote services, real file servers."""

import json
from typing import Any, Dict, List, Tuple

import httpx
import pytest

from app.config import Settings
from app.db.record_store import create_record_stores
from app.file_server.server import create_file_server
from app.main import build_studio


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeRemote:
    """Stands in for the face2face and TTS HTTP APIs and records every call."""

    def __init__(self):
        self.calls: List[Tuple[str, Any]] = []
        self.submit_response: Dict[str, Any] = {"code": 10000, "msg": "ok"}
        self.submit_http_status = 200
        self.status_responses: List[Dict[str, Any]] = [
            {"code": 10000, "msg": "ok", "data": {"status": 1, "progress": 10, "msg": "running"}}
        ]
        self.query_failures = 0
        self.tts_audio = b"RIFF\x00\x00\x00\x00WAVEfmt "
        self.train_response: Dict[str, Any] = {
            "code": 0,
            "asr_format_audio_url": "ref.wav",
            "reference_audio_text": "reference text",
        }

    def calls_named(self, name: str) -> List[Any]:
        return [payload for call, payload in self.calls if call == name]

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/easy/submit":
            self.calls.append(("face2face.submit", json.loads(request.content)))
            if self.submit_http_status != 200:
                return httpx.Response(self.submit_http_status, text="bad gateway")
            return httpx.Response(200, json=self.submit_response)
        if path == "/easy/query":
            self.calls.append(("face2face.query", request.url.params["code"]))
            if self.query_failures:
                self.query_failures -= 1
                return httpx.Response(500, text="boom")
            if len(self.status_responses) > 1:
                return httpx.Response(200, json=self.status_responses.pop(0))
            return httpx.Response(200, json=self.status_responses[0])
        if path == "/v1/invoke":
            self.calls.append(("tts.invoke", json.loads(request.content)))
            return httpx.Response(200, content=self.tts_audio)
        if path == "/v1/preprocess_and_tran":
            self.calls.append(("tts.train", json.loads(request.content)))
            return httpx.Response(200, json=self.train_response)
        return httpx.Response(404, json={"error": "unknown route"})


class PortRoutingTransport(httpx.AsyncBaseTransport):
    """Sends each request to the transport registered for its port."""

    def __init__(self, routes: Dict[int, httpx.AsyncBaseTransport]):
        self.routes = routes

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self.routes[request.url.port].handle_async_request(request)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        app_env="production",
        data_dir=str(tmp_path / "data"),
        default_host="127.0.0.1",
        poll_interval_seconds=0.01,
    )


@pytest.fixture
def fake_remote():
    return FakeRemote()


@pytest.fixture
def face2face_root(tmp_path):
    root = tmp_path / "face2face_files"
    root.mkdir()
    return root


@pytest.fixture
def tts_root(tmp_path):
    root = tmp_path / "tts_files"
    root.mkdir()
    return root


@pytest.fixture
def transport(settings, fake_remote, face2face_root, tts_root):
    mock = httpx.MockTransport(fake_remote.handler)
    return PortRoutingTransport({
        settings.face2face_port: mock,
        settings.tts_port: mock,
        settings.face2face_file_server_port: httpx.ASGITransport(app=create_file_server(str(face2face_root))),
        settings.tts_file_server_port: httpx.ASGITransport(app=create_file_server(str(tts_root))),
    })


@pytest.fixture
def stores():
    return create_record_stores("memory")


@pytest.fixture
def studio(settings, stores, transport):
    return build_studio(settings, stores=stores, transport=transport)


@pytest.fixture
def voice_id(stores):
    return stores.voices.insert({
        "origin_audio_path": "origin_audio/sample.wav",
        "lang": "zh",
        "asr_format_audio_url": "ref.wav",
        "reference_audio_text": "reference text",
    })


@pytest.fixture
def model_id(stores, voice_id):
    return stores.models.insert({
        "name": "presenter",
        "video_path": "model/presenter.mp4",
        "audio_path": "origin_audio/presenter.wav",
        "voice_id": voice_id,
    })
