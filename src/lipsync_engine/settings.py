from __future__ import annotations

"""Runtime configuration helpers for lipsync-engine."""

import os
import sys
from dataclasses import dataclass
from pathlib import Path

_BOOL_TRUTHY = {"1", "true", "yes", "on"}

# Output ceiling for captured stdout/stderr of external tools.
MIN_PROCESS_OUTPUT_LIMIT_BYTES = 20 * 1024 * 1024


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _BOOL_TRUTHY


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.getenv(name)
    if value is None:
        return default
    items = tuple(item.strip() for item in value.split(",") if item.strip())
    return items or default


def default_rhubarb_path(base_dir: Path, platform: str | None = None) -> str:
    """Return the bundled analyzer path for the host platform."""

    executable = "rhubarb.exe" if (platform or sys.platform) == "win32" else "rhubarb"
    return str(base_dir / "bin" / executable)


@dataclass(frozen=True)
class ServerSettings:
    host: str
    port: int
    log_level: str
    cors_origins: tuple[str, ...]
    expose_error_detail: bool


@dataclass(frozen=True)
class UploadSettings:
    directory: Path
    max_bytes: int
    retain: bool
    echo_audio: str


@dataclass(frozen=True)
class TranscoderSettings:
    executable: str
    sample_rate: int
    channels: int


@dataclass(frozen=True)
class AnalyzerSettings:
    executable: str
    recognizer: str


@dataclass(frozen=True)
class ProcessSettings:
    max_output_bytes: int
    timeout_seconds: float | None


@dataclass(frozen=True)
class Settings:
    server: ServerSettings
    uploads: UploadSettings
    transcoder: TranscoderSettings
    analyzer: AnalyzerSettings
    process: ProcessSettings


def load_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""

    base_dir = Path.cwd()

    server_settings = ServerSettings(
        host=os.getenv("HOST", "0.0.0.0"),
        port=_env_int("PORT", 3000),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        cors_origins=_env_list("LIPSYNC_CORS_ORIGINS", ("*",)),
        expose_error_detail=_env_bool("LIPSYNC_EXPOSE_ERROR_DETAIL", False),
    )

    echo_audio = os.getenv("LIPSYNC_ECHO_AUDIO", "original").strip().lower()
    if echo_audio not in {"original", "transcoded"}:
        echo_audio = "original"

    upload_settings = UploadSettings(
        directory=Path(os.getenv("LIPSYNC_UPLOAD_DIR", str(base_dir / "uploads"))).resolve(),
        max_bytes=_env_int("LIPSYNC_MAX_UPLOAD_BYTES", 25 * 1024 * 1024),
        retain=_env_bool("LIPSYNC_RETAIN_UPLOADS", True),
        echo_audio=echo_audio,
    )

    transcoder_settings = TranscoderSettings(
        executable=os.getenv("FFMPEG_BIN", "ffmpeg"),
        sample_rate=_env_int("LIPSYNC_SAMPLE_RATE", 16000),
        channels=_env_int("LIPSYNC_CHANNELS", 1),
    )

    analyzer_settings = AnalyzerSettings(
        executable=os.getenv("RHUBARB_BIN") or default_rhubarb_path(base_dir),
        recognizer=os.getenv("RHUBARB_RECOGNIZER", "phonetic"),
    )

    timeout = _env_float("LIPSYNC_PROCESS_TIMEOUT_SECONDS", 120.0)
    process_settings = ProcessSettings(
        max_output_bytes=max(
            MIN_PROCESS_OUTPUT_LIMIT_BYTES,
            _env_int("LIPSYNC_PROCESS_OUTPUT_LIMIT_BYTES", MIN_PROCESS_OUTPUT_LIMIT_BYTES),
        ),
        timeout_seconds=timeout if timeout > 0 else None,
    )

    return Settings(
        server=server_settings,
        uploads=upload_settings,
        transcoder=transcoder_settings,
        analyzer=analyzer_settings,
        process=process_settings,
    )


settings = load_settings()

__all__ = [
    "Settings",
    "ServerSettings",
    "UploadSettings",
    "TranscoderSettings",
    "AnalyzerSettings",
    "ProcessSettings",
    "MIN_PROCESS_OUTPUT_LIMIT_BYTES",
    "default_rhubarb_path",
    "settings",
    "load_settings",
]
