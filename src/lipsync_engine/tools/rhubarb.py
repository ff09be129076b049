from __future__ import annotations

from pathlib import Path
from typing import List

from ..errors import AnalysisFailed
from ..process import ProcessRunner
from .base import VisemeAnalyzer


class RhubarbAnalyzer(VisemeAnalyzer):
    """Runs Rhubarb Lip Sync and exports its cues as JSON."""

    name = "rhubarb"

    def __init__(
        self,
        *,
        runner: ProcessRunner,
        executable: str = "rhubarb",
        recognizer: str = "phonetic",
    ) -> None:
        self._runner = runner
        self._executable = executable
        self._recognizer = recognizer

    @property
    def executable(self) -> str:
        return self._executable

    def build_command(self, source: Path, destination: Path) -> List[str]:
        return [
            self._executable,
            "-f",
            "json",
            "-o",
            str(destination),
            str(source),
            "-r",
            self._recognizer,
        ]

    async def analyze(self, *, source: Path, destination: Path) -> None:
        await self._runner.run(self.build_command(source, destination))
        if not destination.is_file():
            raise AnalysisFailed(f"{self.name} produced no output file")
