"""Runtime settings read from the environment (optionally via a .env file)."""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv


logger = logging.getLogger(__name__)


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


@dataclass(frozen=True)
class Settings:
    concurrency: int = 2
    request_timeout: float = 15.0  # seconds
    max_html_bytes: int = 1_500_000
    max_redirects: int = 5
    host: str = "0.0.0.0"
    port: int = 4000
    upload_dir: str = tempfile.gettempdir()
    max_upload_bytes: int = 10 * 1024 * 1024
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, *, dotenv: bool = True) -> "Settings":
        if env is None:
            if dotenv:
                load_dotenv()
            env = os.environ
        timeout_ms = _env_int(env, "REQ_TIMEOUT", 15000)
        return cls(
            concurrency=max(1, _env_int(env, "CONCURRENCY", 2)),
            request_timeout=max(1, timeout_ms) / 1000.0,
            max_html_bytes=max(1, _env_int(env, "MAX_HTML_BYTES", 1_500_000)),
            max_redirects=max(0, _env_int(env, "MAX_REDIRECTS", 5)),
            host=(env.get("HOST") or "0.0.0.0").strip(),
            port=_env_int(env, "PORT", 4000),
            upload_dir=(env.get("UPLOAD_DIR") or "").strip() or tempfile.gettempdir(),
            max_upload_bytes=max(1, _env_int(env, "MAX_UPLOAD_BYTES", 10 * 1024 * 1024)),
            log_level=(env.get("LOG_LEVEL") or "INFO").strip().upper(),
        )
