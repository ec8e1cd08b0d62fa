import httpx
import pytest

from app.errors import LocalFileMissing, RemoteFileNotFound, TransportError
from app.storage.file_sync import FileSyncClient, download_variants
from app.storage.paths import RemotePath

URLS = {"face2faceFileServer": "http://files:8384", "ttsFileServer": "http://tts-files:18181"}


def _client(handler):
    return FileSyncClient(URLS, transport=httpx.MockTransport(handler))


@pytest.mark.anyio
async def test_upload_missing_file_does_not_touch_network(tmp_path):
    def handler(request):
        raise AssertionError("network must not be contacted")

    result = await _client(handler).upload(str(tmp_path / "nope.wav"), "ttsFileServer", "audio")

    assert result.success is False
    assert isinstance(result.error, LocalFileMissing)
    with pytest.raises(LocalFileMissing):
        result.raise_for_error()


@pytest.mark.anyio
async def test_upload_and_download_through_file_server(studio, tmp_path):
    source = tmp_path / "clip.wav"
    source.write_bytes(b"RIFF-clip")
    sync = studio.voice_service.file_sync

    uploaded = await sync.upload(str(source), "ttsFileServer", "audio")
    assert uploaded.success
    assert uploaded.remote_path.category == "audio"
    assert uploaded.file_name == "clip.wav"

    target = tmp_path / "nested" / "dir" / "copy.wav"
    downloaded = await sync.download(uploaded.remote_path, str(target), "ttsFileServer")
    assert downloaded.success
    assert target.read_bytes() == b"RIFF-clip"


@pytest.mark.anyio
async def test_upload_rejection_is_a_transport_error(tmp_path):
    source = tmp_path / "clip.wav"
    source.write_bytes(b"x")

    def handler(request):
        return httpx.Response(400, json={"success": False, "error": "No file uploaded"})

    result = await _client(handler).upload(str(source), "ttsFileServer", "audio")
    assert isinstance(result.error, TransportError)
    assert "No file uploaded" in str(result.error)


@pytest.mark.anyio
async def test_upload_network_failure(tmp_path):
    source = tmp_path / "clip.wav"
    source.write_bytes(b"x")

    def handler(request):
        raise httpx.ConnectError("connection refused")

    result = await _client(handler).upload(str(source), "ttsFileServer", "audio")
    assert not result.success
    assert isinstance(result.error, TransportError)


def test_download_variants_order_and_dedup():
    assert download_variants("audio\\a.wav") == ["audio\\a.wav", "audio/a.wav", "a.wav"]
    assert download_variants("audio/a.wav") == ["audio/a.wav", "a.wav"]
    assert download_variants("a.wav") == ["a.wav"]
    assert download_variants(RemotePath("out", "b.mp4")) == ["out/b.mp4", "b.mp4"]


@pytest.mark.anyio
async def test_download_falls_back_to_basename(tmp_path):
    requested = []

    def handler(request):
        path = request.url.params["path"]
        requested.append(path)
        if path == "a.wav":
            return httpx.Response(200, content=b"found")
        return httpx.Response(404, json={"success": False, "error": "File not found"})

    target = tmp_path / "a.wav"
    result = await _client(handler).download("audio\\a.wav", str(target), "ttsFileServer")

    assert result.success
    assert requested == ["audio\\a.wav", "audio/a.wav", "a.wav"]
    assert target.read_bytes() == b"found"


@pytest.mark.anyio
async def test_download_exhausted_reports_last_error_and_writes_nothing(tmp_path):
    def handler(request):
        return httpx.Response(404, json={"success": False, "error": "File not found"})

    target = tmp_path / "out" / "missing.mp4"
    result = await _client(handler).download("out/missing.mp4", str(target), "face2faceFileServer")

    assert not result.success
    assert isinstance(result.error, RemoteFileNotFound)
    assert isinstance(result.error.last_error, TransportError)
    assert result.error.last_error.status_code == 404
    assert target.parent.is_dir()
    assert list(target.parent.iterdir()) == []


@pytest.mark.anyio
async def test_download_keeps_trying_after_network_error(tmp_path):
    attempts = []

    def handler(request):
        attempts.append(request.url.params["path"])
        if len(attempts) == 1:
            raise httpx.ReadTimeout("slow")
        return httpx.Response(200, content=b"ok")

    result = await _client(handler).download("out/x.mp4", str(tmp_path / "x.mp4"), "face2faceFileServer")
    assert result.success
    assert attempts == ["out/x.mp4", "x.mp4"]


@pytest.mark.anyio
async def test_unknown_service_key_is_a_programming_error(tmp_path):
    with pytest.raises(ValueError):
        await _client(lambda r: httpx.Response(200)).download("a", str(tmp_path / "a"), "nope")
