"""Runtime settings for the wardrobe catalog."""

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Dict, Optional

DEFAULT_CHAT_MODEL = "models/gemini-1.5-pro-002"
DEFAULT_ANALYSIS_MODEL = "models/gemini-1.5-flash-002"
DEFAULT_VIDEO_MODEL = "veo-2.0-generate-001"
DEFAULT_VIDEO_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_POLL_INTERVAL_SECONDS = 10.0
DEFAULT_CONFIG_DIR = "config/environments"


def _env_file_path() -> Optional[Path]:
    """``APP_CONFIG_PATH`` wins; otherwise ``<WARDROBE_CONFIG_DIR>/<APP_ENV>.yaml``."""

    explicit = os.getenv("APP_CONFIG_PATH")
    if explicit:
        return Path(explicit)
    env_name = os.getenv("APP_ENV")
    if env_name:
        return Path(os.getenv("WARDROBE_CONFIG_DIR", DEFAULT_CONFIG_DIR)) / f"{env_name}.yaml"
    return None


def read_env_file(path: Path) -> Dict[str, str]:
    """Read flat ``key: value`` lines, ignoring blanks, comments and quotes."""

    values: Dict[str, str] = {}
    for raw_line in path.read_text().splitlines():
        line = raw_line.strip()
        if line.startswith("#"):
            continue
        key, sep, value = line.partition(":")
        if not sep:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        values[key.strip()] = value
    return values


@dataclass
class WardrobeConfig:
    """Settings for models, the video service, the store and the local server.

    Secrets are expected in the environment. Other values may also sit in an
    environment file; environment variables override the file.
    """

    api_key: Optional[str] = None
    chat_model: str = DEFAULT_CHAT_MODEL
    analysis_model: str = DEFAULT_ANALYSIS_MODEL
    video_model: str = DEFAULT_VIDEO_MODEL
    video_api_key: Optional[str] = None
    video_api_base: str = DEFAULT_VIDEO_API_BASE
    video_poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS
    store_backend: str = "json"
    store_path: Optional[str] = None
    host: str = "127.0.0.1"
    port: int = 8080
    environment: str | None = None

    @classmethod
    def from_env(cls) -> "WardrobeConfig":
        path = _env_file_path()
        file_values = read_env_file(path) if path is not None and path.exists() else {}

        def lookup(name: str) -> Optional[str]:
            return os.getenv(name.upper()) or file_values.get(name) or None

        poll_interval = lookup("video_poll_interval")
        port = lookup("port")
        return cls(
            api_key=lookup("google_api_key"),
            chat_model=lookup("chat_model") or DEFAULT_CHAT_MODEL,
            analysis_model=lookup("analysis_model") or DEFAULT_ANALYSIS_MODEL,
            video_model=lookup("video_model") or DEFAULT_VIDEO_MODEL,
            video_api_key=lookup("video_api_key"),
            video_api_base=lookup("video_api_base") or DEFAULT_VIDEO_API_BASE,
            video_poll_interval=float(poll_interval) if poll_interval else DEFAULT_POLL_INTERVAL_SECONDS,
            store_backend=lookup("store_backend") or "json",
            store_path=lookup("store_path"),
            host=lookup("host") or "127.0.0.1",
            port=int(port) if port else 8080,
            environment=os.getenv("APP_ENV"),
        )

    @property
    def video_credential(self) -> Optional[str]:
        """Key used for video jobs; falls back to the general API key."""

        return self.video_api_key or self.api_key


__all__ = ["DEFAULT_POLL_INTERVAL_SECONDS", "WardrobeConfig", "read_env_file"]
