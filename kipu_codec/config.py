"""
Runtime configuration, read from the environment (and a project ``.env``).

    KIPU_BASE_URL           KIPU API root (default https://api.kipuworks.com)
    KIPU_TIMEOUT            request timeout in seconds (default 10)
    KIPU_RECIPIENT_ID       ``recipient_id`` placed in create-evaluation documents
    KIPU_SENDING_APP_NAME   ``sending_app_name`` (default ChartChek)
    KIPU_EXT_USERNAME       ``ext_username`` (default chartchek_user)
    KIPU_ENVELOPE_KEY       namespaced key the evaluation may be wrapped in (default data)
    CODEC_LOG_LEVEL         console log level (default INFO)
    CODEC_LOG_FILE          JSON log file; empty disables file logging (default kipu_codec.log)
    CODEC_PARSER_WORKERS    thread pool size for parsing evaluations; 0/1 parses inline
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from project root (parent of kipu_codec/)
env_path = Path(__file__).parent.parent / ".env"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class CodecSettings:
    kipu_base_url: str = "https://api.kipuworks.com"
    kipu_timeout: float = 10.0
    recipient_id: Optional[str] = None
    sending_app_name: str = "ChartChek"
    ext_username: str = "chartchek_user"
    envelope_key: str = "data"
    log_level: str = "INFO"
    log_file: Optional[str] = "kipu_codec.log"
    parser_workers: int = 0

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "CodecSettings":
        """Build settings from environment variables, loading ``.env`` first."""
        if load_env_file:
            load_dotenv(env_path)

        return cls(
            kipu_base_url=os.getenv("KIPU_BASE_URL", cls.kipu_base_url).rstrip("/"),
            kipu_timeout=_float_env("KIPU_TIMEOUT", cls.kipu_timeout),
            recipient_id=os.getenv("KIPU_RECIPIENT_ID") or None,
            sending_app_name=os.getenv("KIPU_SENDING_APP_NAME", cls.sending_app_name),
            ext_username=os.getenv("KIPU_EXT_USERNAME", cls.ext_username),
            envelope_key=os.getenv("KIPU_ENVELOPE_KEY", cls.envelope_key),
            log_level=os.getenv("CODEC_LOG_LEVEL", cls.log_level).upper(),
            log_file=os.getenv("CODEC_LOG_FILE", cls.log_file) or None,
            parser_workers=_int_env("CODEC_PARSER_WORKERS", cls.parser_workers),
        )


_settings: Optional[CodecSettings] = None


def get_settings() -> CodecSettings:
    """Get or create the process-wide settings."""
    global _settings
    if _settings is None:
        _settings = CodecSettings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next ``get_settings()`` re-reads the environment."""
    global _settings
    _settings = None
