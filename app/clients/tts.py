"""HTTP client for the text-to-speech service."""

import logging
from typing import Any, Dict, Optional

import httpx

from app.errors import TransportError

logger = logging.getLogger(__name__)

# Sampling parameters used for every synthesis request
INVOKE_DEFAULTS: Dict[str, Any] = {
    "format": "wav",
    "topP": 0.7,
    "max_new_tokens": 1024,
    "chunk_length": 100,
    "repetition_penalty": 1.2,
    "temperature": 0.7,
    "need_asr": False,
    "streaming": False,
    "is_fixed_seed": 0,
    "is_norm": 0,
}


class TTSClient:
    """Voice cloning (preprocess + train) and speech synthesis."""

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self._timeout, trust_env=False)

    async def invoke(
        self,
        speaker: str,
        text: str,
        reference_audio: str,
        reference_text: str,
    ) -> bytes:
        """Synthesize ``text`` in the reference voice. Returns WAV bytes."""
        payload = {
            **INVOKE_DEFAULTS,
            "speaker": speaker,
            "text": text,
            "reference_audio": reference_audio,
            "reference_text": reference_text,
        }
        response = await self._post("/v1/invoke", payload)
        return response.content

    async def preprocess_and_train(self, reference_audio: str, fmt: str, lang: str) -> Dict[str, Any]:
        """Returns ``{code, asr_format_audio_url, reference_audio_text, ...}``."""
        payload = {"format": fmt, "reference_audio": reference_audio, "lang": lang}
        response = await self._post("/v1/preprocess_and_tran", payload)
        try:
            return response.json()
        except ValueError as e:
            raise TransportError("tts preprocess_and_tran returned a non-JSON body") from e

    async def _post(self, path: str, payload: Dict[str, Any]) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            async with self._build_client() as client:
                response = await client.post(url, json=payload)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"tts {path} returned {e.response.status_code}: {e.response.text}")
            raise TransportError(
                f"tts {path} returned {e.response.status_code}",
                e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"tts {path} request failed: {e}")
            raise TransportError(f"tts {path} request failed: {e}") from e
        return response
