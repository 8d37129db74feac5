"""
Application settings.

Values come from the environment, with a .env file in the project root
loaded first. Settings are read once; changing the environment afterwards
has no effect on a running process.
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).parent.parent

env_path = PROJECT_ROOT / ".env"
load_dotenv(env_path)


def _default_static_dir() -> Path:
    candidates = [PROJECT_ROOT / "web", PROJECT_ROOT.parent / "web"]
    return next((path for path in candidates if path.exists()), candidates[0])


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {value!r}") from None


@dataclass(frozen=True)
class Settings:
    mock_mode: bool = False
    sora_api_base_url: str = "https://api.openai.com/v1/videos"
    sora_api_key: str = ""
    request_timeout: float = 60.0
    host: str = "0.0.0.0"
    port: int = 3000
    mock_processing_delay: float = 1.0
    mock_completion_delay: float = 5.0
    mock_failure_rate: float = 0.0
    # None keeps finished mock jobs forever
    mock_retention_seconds: Optional[float] = 3600.0
    static_dir: Path = PROJECT_ROOT / "web"
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    retention = _get_float("MOCK_JOB_RETENTION_SECONDS", 3600.0)
    static_dir = os.getenv("STATIC_DIR")

    return Settings(
        mock_mode=os.getenv("MOCK_MODE", "false").lower() == "true",
        sora_api_base_url=os.getenv("SORA_API_BASE_URL") or "https://api.openai.com/v1/videos",
        sora_api_key=os.getenv("SORA_API_KEY", ""),
        request_timeout=_get_float("SORA_REQUEST_TIMEOUT", 60.0),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(_get_float("PORT", 3000)),
        mock_processing_delay=_get_float("MOCK_PROCESSING_DELAY", 1.0),
        mock_completion_delay=_get_float("MOCK_COMPLETION_DELAY", 5.0),
        mock_failure_rate=_get_float("MOCK_FAILURE_RATE", 0.0),
        mock_retention_seconds=retention if retention > 0 else None,
        static_dir=Path(static_dir) if static_dir else _default_static_dir(),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return load_settings()
