"""ffmpeg/ffprobe wrappers for duration probing and audio extraction."""

import asyncio
import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)


def _ffmpeg_bin() -> str:
    return os.environ.get("FFMPEG_PATH") or os.environ.get("FFMPEG_BIN") or "ffmpeg"


def _ffprobe_bin() -> str:
    return _ffmpeg_bin().replace("ffmpeg", "ffprobe")


async def _run(*args: str) -> tuple:
    proc = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await proc.communicate()
    return proc.returncode, stdout, stderr


async def get_video_duration(path: str) -> Optional[float]:
    """Container duration in seconds, or None when the file cannot be probed."""
    if not os.path.isfile(path):
        return None
    try:
        code, stdout, stderr = await _run(
            _ffprobe_bin(),
            "-v",
            "error",
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            path,
        )
    except OSError as exc:
        logger.error(f"ffprobe could not be started: {exc}")
        return None
    if code != 0:
        logger.error(f"ffprobe failed for {path}: {stderr.decode(errors='replace').strip()}")
        return None
    try:
        return float(stdout.decode().strip())
    except ValueError:
        return None


async def extract_audio(video_path: str, audio_path: str) -> None:
    """Write the soundtrack of ``video_path`` to ``audio_path`` as WAV."""
    os.makedirs(os.path.dirname(os.path.abspath(audio_path)), exist_ok=True)
    code, _stdout, stderr = await _run(
        _ffmpeg_bin(),
        "-y",
        "-i",
        video_path,
        "-vn",
        "-acodec",
        "pcm_s16le",
        audio_path,
    )
    if code != 0:
        raise RuntimeError(
            f"ffmpeg audio extraction failed for {video_path}: "
            f"{stderr.decode(errors='replace').strip()}"
        )
