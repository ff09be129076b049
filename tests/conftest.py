"""
pytest configuration: shared fixtures and fake external tools.
"""

import asyncio
import json
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
import pytest
import soundfile as sf

from lipsync_engine.errors import ProcessFailure
from lipsync_engine.pipeline import LipSyncPipeline
from lipsync_engine.process import ProcessResult, ProcessRunner
from lipsync_engine.tools import FfmpegTranscoder, RhubarbAnalyzer


def sample_cue_document(duration: float = 2.0, sound_file: str = "") -> dict:
    return {
        "metadata": {"soundFile": sound_file, "duration": duration},
        "mouthCues": [
            {"start": 0.0, "end": 0.35, "value": "X"},
            {"start": 0.35, "end": 0.6, "value": "B"},
            {"start": 0.6, "end": 1.1, "value": "C"},
            {"start": 1.1, "end": 1.45, "value": "F"},
            {"start": 1.45, "end": duration, "value": "X"},
        ],
    }


class FakeToolRunner(ProcessRunner):
    """Stands in for ffmpeg and rhubarb by writing their output files."""

    def __init__(
        self,
        *,
        duration: float = 2.0,
        transcode_error: Optional[str] = None,
        analyze_error: Optional[str] = None,
        analysis_text: Optional[str] = None,
        before_analyze: Optional[Callable[[Path], None]] = None,
    ) -> None:
        self.duration = duration
        self.transcode_error = transcode_error
        self.analyze_error = analyze_error
        self.analysis_text = analysis_text
        self.before_analyze = before_analyze
        self.calls: List[Tuple[str, ...]] = []

    def invocations(self, program: str) -> List[Tuple[str, ...]]:
        return [call for call in self.calls if Path(call[0]).name.startswith(program)]

    async def run(self, command: Sequence[str]) -> ProcessResult:
        argv = tuple(str(part) for part in command)
        self.calls.append(argv)
        # let concurrent runs interleave
        await asyncio.sleep(0)
        program = Path(argv[0]).name
        if program.startswith("ffmpeg"):
            self._transcode(argv)
        elif program.startswith("rhubarb"):
            self._analyze(argv)
        else:
            raise ProcessFailure(argv, exit_code=None, stderr=f"{program}: not found")
        return ProcessResult(command=argv, stdout=b"", stderr=b"")

    def _transcode(self, argv: Tuple[str, ...]) -> None:
        if self.transcode_error is not None:
            raise ProcessFailure(argv, exit_code=1, stderr=self.transcode_error)
        rate = int(argv[argv.index("-ar") + 1])
        channels = int(argv[argv.index("-ac") + 1])
        frames = int(rate * self.duration)
        data = np.zeros((frames, channels), dtype="float32")
        sf.write(argv[-1], data, rate, subtype="PCM_16")

    def _analyze(self, argv: Tuple[str, ...]) -> None:
        output = Path(argv[argv.index("-o") + 1])
        source = Path(argv[argv.index("-o") + 2])
        if self.before_analyze is not None:
            self.before_analyze(source)
        if self.analyze_error is not None:
            raise ProcessFailure(argv, exit_code=1, stderr=self.analyze_error)
        try:
            sf.info(str(source))
        except RuntimeError as exc:
            raise ProcessFailure(argv, exit_code=1, stderr=f"Error processing file {source}: {exc}")
        if self.analysis_text is not None:
            output.write_text(self.analysis_text, encoding="utf-8")
        else:
            document = sample_cue_document(self.duration, str(source))
            output.write_text(json.dumps(document), encoding="utf-8")


@pytest.fixture
def make_runner() -> Callable[..., FakeToolRunner]:
    return FakeToolRunner


@pytest.fixture
def fake_runner() -> FakeToolRunner:
    return FakeToolRunner()


@pytest.fixture
def make_pipeline() -> Callable[[ProcessRunner], LipSyncPipeline]:
    def _build(runner: ProcessRunner) -> LipSyncPipeline:
        return LipSyncPipeline(
            transcoder=FfmpegTranscoder(runner=runner, executable="ffmpeg"),
            analyzer=RhubarbAnalyzer(runner=runner, executable="rhubarb"),
        )

    return _build


@pytest.fixture
def pipeline(fake_runner, make_pipeline) -> LipSyncPipeline:
    return make_pipeline(fake_runner)


@pytest.fixture
def input_audio(tmp_path) -> Path:
    path = tmp_path / "1700000000000-take one.mp3"
    path.write_bytes(b"ID3\x03\x00fake-mp3-bytes")
    return path


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: unit tests")
    config.addinivalue_line("markers", "integration: tests that spawn ffmpeg and rhubarb")
