"""
NetWorth Pro - Configuration
============================
Settings read from environment variables.

    NETWORTH_STORAGE_PATH    local snapshot file (default ~/.networth_pro/storage.json)
    NETWORTH_AUTOSAVE_DELAY  seconds of inactivity before auto-save (default 1.0)
    NETWORTH_CORS_ORIGINS    comma separated origins allowed by the API
    NETWORTH_LOG_LEVEL       logging level name (default INFO)
    NETWORTH_HOST / NETWORTH_PORT   uvicorn bind address
    DEBUG                    include exception text in 500 responses
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List, Mapping, Optional

DEFAULT_STORAGE_PATH = Path.home() / ".networth_pro" / "storage.json"
DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://localhost:5173", "http://localhost:8501"]


@dataclass
class Settings:
    storage_path: Path = DEFAULT_STORAGE_PATH
    autosave_delay: float = 1.0
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False


def _parse_bool(value: Optional[str]) -> bool:
    return bool(value) and value.strip().lower() in ("1", "true", "yes", "on")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from a mapping of environment variables."""
    env = os.environ if environ is None else environ
    settings = Settings()

    if env.get("NETWORTH_STORAGE_PATH"):
        settings.storage_path = Path(env["NETWORTH_STORAGE_PATH"]).expanduser()

    if env.get("NETWORTH_AUTOSAVE_DELAY"):
        try:
            settings.autosave_delay = max(0.0, float(env["NETWORTH_AUTOSAVE_DELAY"]))
        except ValueError:
            pass

    if env.get("NETWORTH_CORS_ORIGINS"):
        settings.cors_origins = [
            origin.strip() for origin in env["NETWORTH_CORS_ORIGINS"].split(",") if origin.strip()
        ]

    if env.get("NETWORTH_LOG_LEVEL"):
        settings.log_level = env["NETWORTH_LOG_LEVEL"].upper()

    settings.host = env.get("NETWORTH_HOST", settings.host)
    if env.get("NETWORTH_PORT"):
        try:
            settings.port = int(env["NETWORTH_PORT"])
        except ValueError:
            pass

    settings.debug = _parse_bool(env.get("DEBUG"))
    return settings


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings, read once from os.environ."""
    return load_settings()
