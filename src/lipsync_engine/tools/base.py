from __future__ import annotations

import abc
from pathlib import Path

from ..audio.types import AudioMetadata


class Transcoder(abc.ABC):
    """Converts arbitrary input audio into the analyzer's input format."""

    name: str

    @abc.abstractmethod
    async def transcode(self, *, source: Path, destination: Path) -> AudioMetadata:
        """Write the converted audio to ``destination``."""
        raise NotImplementedError


class VisemeAnalyzer(abc.ABC):
    """Produces a mouth-cue document for a transcoded audio file."""

    name: str

    @abc.abstractmethod
    async def analyze(self, *, source: Path, destination: Path) -> None:
        """Write the cue document for ``source`` to ``destination``."""
        raise NotImplementedError
