"""Transcode -> analyze -> parse orchestration.

Each request gets its own :class:`PipelineRun`. A run derives its two
artifact paths up front from a unique run id, executes its stages
strictly in sequence exactly once, and moves to ``FAILED`` on the first
error. :meth:`LipSyncPipeline.run` wraps a run in an async context
manager so both artifacts are removed on every exit path, after the
caller had a chance to read them.
"""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional, Union

from .artifacts import RunArtifacts, dispose_artifacts
from .audio.types import AudioMetadata
from .cues import parse_cue_document
from .errors import (
    AnalysisFailed,
    ArtifactCleanupFailed,
    PipelineError,
    ProcessFailure,
    ResultParseFailed,
    TranscodeFailed,
)
from .process import ProcessRunner, SubprocessRunner
from .settings import Settings
from .tools import FfmpegTranscoder, RhubarbAnalyzer, Transcoder, VisemeAnalyzer

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    START = "start"
    TRANSCODING = "transcoding"
    ANALYZING = "analyzing"
    PARSING_RESULT = "parsing_result"
    DONE = "done"
    FAILED = "failed"


@dataclass(slots=True)
class PipelineResult:
    run_id: str
    lipsync: Dict[str, Any]
    audio_path: Path
    result_path: Path
    audio: AudioMetadata


class PipelineRun:
    """A single, non-restartable execution for one input file."""

    def __init__(
        self,
        input_path: Union[str, "os.PathLike[str]"],
        *,
        transcoder: Transcoder,
        analyzer: VisemeAnalyzer,
        run_id: Optional[str] = None,
    ) -> None:
        self.input_path = Path(input_path)
        self.artifacts = RunArtifacts.derive(self.input_path, run_id)
        self.stage = PipelineStage.START
        self._transcoder = transcoder
        self._analyzer = analyzer
        self._executed = False

    @property
    def run_id(self) -> str:
        return self.artifacts.run_id

    async def execute(self) -> PipelineResult:
        if self._executed:
            raise RuntimeError(f"pipeline run {self.run_id} has already been executed")
        self._executed = True
        try:
            audio = await self._transcode()
            await self._analyze()
            lipsync = await self._parse_result()
        except BaseException:
            self.stage = PipelineStage.FAILED
            raise
        self.stage = PipelineStage.DONE
        return PipelineResult(
            run_id=self.run_id,
            lipsync=lipsync,
            audio_path=self.artifacts.audio_path,
            result_path=self.artifacts.result_path,
            audio=audio,
        )

    async def _transcode(self) -> AudioMetadata:
        self.stage = PipelineStage.TRANSCODING
        try:
            return await self._transcoder.transcode(
                source=self.input_path,
                destination=self.artifacts.audio_path,
            )
        except TranscodeFailed:
            raise
        except ProcessFailure as exc:
            raise TranscodeFailed(f"Transcoding failed: {exc.message}", cause=exc) from exc

    async def _analyze(self) -> None:
        self.stage = PipelineStage.ANALYZING
        try:
            await self._analyzer.analyze(
                source=self.artifacts.audio_path,
                destination=self.artifacts.result_path,
            )
        except AnalysisFailed:
            raise
        except ProcessFailure as exc:
            raise AnalysisFailed(f"Lip sync analysis failed: {exc.message}", cause=exc) from exc

    async def _parse_result(self) -> Dict[str, Any]:
        self.stage = PipelineStage.PARSING_RESULT
        try:
            text = await asyncio.to_thread(self.artifacts.result_path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ResultParseFailed("Analysis result could not be read", cause=exc, detail=repr(exc)) from exc
        return parse_cue_document(text)

    def dispose(self) -> List[ArtifactCleanupFailed]:
        return dispose_artifacts(self.artifacts.paths())


class LipSyncPipeline:
    """Builds and runs pipeline runs with a shared pair of tools."""

    def __init__(self, *, transcoder: Transcoder, analyzer: VisemeAnalyzer) -> None:
        self._transcoder = transcoder
        self._analyzer = analyzer

    @classmethod
    def from_settings(cls, cfg: Settings, runner: Optional[ProcessRunner] = None) -> "LipSyncPipeline":
        runner = runner or SubprocessRunner(
            max_output_bytes=cfg.process.max_output_bytes,
            timeout=cfg.process.timeout_seconds,
        )
        transcoder = FfmpegTranscoder(
            runner=runner,
            executable=cfg.transcoder.executable,
            sample_rate=cfg.transcoder.sample_rate,
            channels=cfg.transcoder.channels,
        )
        analyzer = RhubarbAnalyzer(
            runner=runner,
            executable=cfg.analyzer.executable,
            recognizer=cfg.analyzer.recognizer,
        )
        return cls(transcoder=transcoder, analyzer=analyzer)

    @property
    def transcoder(self) -> Transcoder:
        return self._transcoder

    @property
    def analyzer(self) -> VisemeAnalyzer:
        return self._analyzer

    def create_run(self, input_path: Union[str, "os.PathLike[str]"]) -> PipelineRun:
        return PipelineRun(input_path, transcoder=self._transcoder, analyzer=self._analyzer)

    @asynccontextmanager
    async def run(self, input_path: Union[str, "os.PathLike[str]"]) -> AsyncIterator[PipelineResult]:
        pipeline_run = self.create_run(input_path)
        log_extra = {"runId": pipeline_run.run_id, "input": str(pipeline_run.input_path)}
        logger.info("pipeline.run.start", extra=log_extra)
        try:
            try:
                result = await pipeline_run.execute()
            except PipelineError as exc:
                logger.error(
                    "pipeline.%s.failed: %s\n%s",
                    exc.stage,
                    exc.message,
                    exc.detail or "",
                    extra=log_extra,
                )
                raise
            logger.info(
                "pipeline.run.done",
                extra={**log_extra, "cues": len(result.lipsync.get("mouthCues") or [])},
            )
            yield result
        finally:
            pipeline_run.dispose()


__all__ = ["LipSyncPipeline", "PipelineResult", "PipelineRun", "PipelineStage"]
