from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True)
class StoredUpload:
    """An uploaded file persisted by the upload layer.

    ``original_filename`` comes from the client and is display-only.
    """

    path: Path
    original_filename: str
    size: int
    content_type: str | None = None


@dataclass(slots=True)
class AudioMetadata:
    """Format of the transcoded audio artifact."""

    sample_rate: int
    channels: int
    duration_seconds: float
    format: str
