from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List

import soundfile as sf

from ..audio.types import AudioMetadata
from ..errors import TranscodeFailed
from ..process import ProcessRunner
from .base import Transcoder

logger = logging.getLogger(__name__)


class FfmpegTranscoder(Transcoder):
    """Resamples to a fixed rate and channel count with ffmpeg."""

    name = "ffmpeg"

    def __init__(
        self,
        *,
        runner: ProcessRunner,
        executable: str = "ffmpeg",
        sample_rate: int = 16000,
        channels: int = 1,
    ) -> None:
        self._runner = runner
        self._executable = executable
        self._sample_rate = sample_rate
        self._channels = channels

    @property
    def executable(self) -> str:
        return self._executable

    def build_command(self, source: Path, destination: Path) -> List[str]:
        return [
            self._executable,
            "-y",
            "-i",
            str(source),
            "-ar",
            str(self._sample_rate),
            "-ac",
            str(self._channels),
            str(destination),
        ]

    async def transcode(self, *, source: Path, destination: Path) -> AudioMetadata:
        await self._runner.run(self.build_command(source, destination))
        if not destination.is_file():
            raise TranscodeFailed(f"{self.name} produced no output file")
        return await asyncio.to_thread(self._inspect, destination)

    def _inspect(self, path: Path) -> AudioMetadata:
        try:
            info = sf.info(str(path))
        except RuntimeError as exc:
            raise TranscodeFailed(f"{self.name} output is not readable audio", cause=exc) from exc
        if info.samplerate != self._sample_rate or info.channels != self._channels:
            raise TranscodeFailed(
                f"{self.name} output is {info.samplerate} Hz/{info.channels} ch, "
                f"expected {self._sample_rate} Hz/{self._channels} ch"
            )
        logger.debug(
            "transcode.inspected",
            extra={"path": str(path), "duration": info.duration, "subtype": info.subtype},
        )
        return AudioMetadata(
            sample_rate=info.samplerate,
            channels=info.channels,
            duration_seconds=float(info.duration),
            format=info.format,
        )
