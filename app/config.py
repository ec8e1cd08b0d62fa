"""Application configuration via environment variables."""

import os
from typing import Dict, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Runtime mode: "development" swaps live media for the fixed test assets
    app_env: str = "production"
    log_level: str = "INFO"

    # Remote service hosts
    default_host: str = "127.0.0.1"
    face2face_host: Optional[str] = None
    tts_host: Optional[str] = None

    # Remote service ports
    face2face_port: int = 8383
    face2face_file_server_port: int = 8384
    tts_port: int = 18180
    tts_file_server_port: int = 18181

    # Local asset storage
    data_dir: str = os.path.join(os.path.expanduser("~"), ".avatar_studio")

    # File server roots (used when this process hosts the file servers)
    face2face_file_root: str = os.path.join(os.path.expanduser("~"), "heygem_data", "face2face")
    tts_file_root: str = os.path.join(os.path.expanduser("~"), "heygem_data", "voice", "data")

    # Job processing
    poll_interval_seconds: float = 2.0
    http_timeout_seconds: Optional[float] = None
    skip_upload: bool = False

    # Record store backend: "memory" or "supabase"
    record_store: str = "memory"
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # HTTP API
    api_port: int = 8000

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def service_url(self) -> Dict[str, str]:
        """Base URLs keyed by the service names callers pass around."""
        face2face = self.face2face_host or self.default_host
        tts = self.tts_host or self.default_host
        return {
            "face2face": f"http://{face2face}:{self.face2face_port}/easy",
            "tts": f"http://{tts}:{self.tts_port}",
            "face2faceFileServer": f"http://{face2face}:{self.face2face_file_server_port}",
            "ttsFileServer": f"http://{tts}:{self.tts_file_server_port}",
        }

    @property
    def asset_path(self) -> Dict[str, str]:
        """Local directories for downloaded and generated media."""
        temp = os.path.join(self.data_dir, "temp")
        return {
            "model": os.path.join(temp, "face2face"),
            "tts_product": os.path.join(temp, "tts"),
            "tts_root": os.path.join(temp, "voice"),
            "tts_train": os.path.join(temp, "voice", "origin_audio"),
        }


settings = Settings()
