from pathlib import Path

from lipsync_engine.settings import MIN_PROCESS_OUTPUT_LIMIT_BYTES, default_rhubarb_path, load_settings

_ENV_KEYS = [
    "PORT",
    "LIPSYNC_UPLOAD_DIR",
    "LIPSYNC_ECHO_AUDIO",
    "LIPSYNC_RETAIN_UPLOADS",
    "LIPSYNC_PROCESS_OUTPUT_LIMIT_BYTES",
    "LIPSYNC_PROCESS_TIMEOUT_SECONDS",
    "RHUBARB_BIN",
    "RHUBARB_RECOGNIZER",
    "FFMPEG_BIN",
    "LIPSYNC_CORS_ORIGINS",
    "LIPSYNC_EXPOSE_ERROR_DETAIL",
    "LIPSYNC_MAX_UPLOAD_BYTES",
]


def _clear(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults(monkeypatch, tmp_path):
    _clear(monkeypatch)
    monkeypatch.chdir(tmp_path)

    cfg = load_settings()

    assert cfg.server.port == 3000
    assert cfg.server.cors_origins == ("*",)
    assert cfg.server.expose_error_detail is False
    assert cfg.uploads.directory == (tmp_path / "uploads").resolve()
    assert cfg.uploads.echo_audio == "original"
    assert cfg.uploads.retain is True
    assert cfg.transcoder.sample_rate == 16000
    assert cfg.transcoder.channels == 1
    assert cfg.analyzer.recognizer == "phonetic"
    assert Path(cfg.analyzer.executable).parent == tmp_path.resolve() / "bin"
    assert cfg.process.max_output_bytes == MIN_PROCESS_OUTPUT_LIMIT_BYTES
    assert cfg.process.timeout_seconds == 120.0


def test_env_overrides(monkeypatch, tmp_path):
    _clear(monkeypatch)
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("LIPSYNC_UPLOAD_DIR", str(tmp_path / "work"))
    monkeypatch.setenv("LIPSYNC_ECHO_AUDIO", "transcoded")
    monkeypatch.setenv("RHUBARB_BIN", "/opt/rhubarb/rhubarb")
    monkeypatch.setenv("LIPSYNC_CORS_ORIGINS", "http://localhost:5173, https://studio.example")
    monkeypatch.setenv("LIPSYNC_PROCESS_TIMEOUT_SECONDS", "0")

    cfg = load_settings()

    assert cfg.server.port == 8080
    assert cfg.uploads.directory == (tmp_path / "work").resolve()
    assert cfg.uploads.echo_audio == "transcoded"
    assert cfg.analyzer.executable == "/opt/rhubarb/rhubarb"
    assert cfg.server.cors_origins == ("http://localhost:5173", "https://studio.example")
    assert cfg.process.timeout_seconds is None


def test_invalid_values_fall_back(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("PORT", "not-a-port")
    monkeypatch.setenv("LIPSYNC_ECHO_AUDIO", "both")
    monkeypatch.setenv("LIPSYNC_PROCESS_OUTPUT_LIMIT_BYTES", "1024")

    cfg = load_settings()

    assert cfg.server.port == 3000
    assert cfg.uploads.echo_audio == "original"
    assert cfg.process.max_output_bytes == MIN_PROCESS_OUTPUT_LIMIT_BYTES


def test_rhubarb_executable_depends_on_platform(tmp_path):
    assert default_rhubarb_path(tmp_path, "win32") == str(tmp_path / "bin" / "rhubarb.exe")
    assert default_rhubarb_path(tmp_path, "linux") == str(tmp_path / "bin" / "rhubarb")
