from __future__ import annotations

"""Per-run temporary artifact naming and disposal."""

import logging
import os
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .errors import ArtifactCleanupFailed

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

AUDIO_EXTENSION = ".wav"
RESULT_EXTENSION = ".json"


def new_run_id() -> str:
    """Return ``<epoch ms>-<48 random bits as hex>``."""

    return f"{time.time_ns() // 1_000_000}-{uuid.uuid4().hex[:12]}"


def derive_artifact_path(input_path: PathLike, extension: str, run_id: Optional[str] = None) -> Path:
    """Place an artifact next to ``input_path`` with a unique suffix.

    ``foo/take.mp3`` becomes ``foo/take_<run id><extension>``. A fresh
    run id is generated when none is supplied.
    """

    source = Path(input_path)
    if extension and not extension.startswith("."):
        extension = f".{extension}"
    token = run_id or new_run_id()
    return source.with_name(f"{source.stem}_{token}{extension}")


@dataclass(frozen=True, slots=True)
class RunArtifacts:
    """The two files a pipeline run writes."""

    run_id: str
    audio_path: Path
    result_path: Path

    @classmethod
    def derive(cls, input_path: PathLike, run_id: Optional[str] = None) -> "RunArtifacts":
        token = run_id or new_run_id()
        return cls(
            run_id=token,
            audio_path=derive_artifact_path(input_path, AUDIO_EXTENSION, token),
            result_path=derive_artifact_path(input_path, RESULT_EXTENSION, token),
        )

    def paths(self) -> List[Path]:
        return [self.audio_path, self.result_path]


def dispose_artifacts(paths: Iterable[PathLike]) -> List[ArtifactCleanupFailed]:
    """Best-effort removal; failures are logged and returned, never raised."""

    failures: List[ArtifactCleanupFailed] = []
    for path in paths:
        try:
            os.unlink(path)
        except FileNotFoundError:
            continue
        except OSError as exc:
            failure = ArtifactCleanupFailed(os.fspath(path), exc)
            logger.warning("artifact.cleanup_failed", extra={"path": failure.path, "error": failure.detail})
            failures.append(failure)
        else:
            logger.debug("artifact.removed", extra={"path": os.fspath(path)})
    return failures


__all__ = [
    "AUDIO_EXTENSION",
    "RESULT_EXTENSION",
    "RunArtifacts",
    "derive_artifact_path",
    "dispose_artifacts",
    "new_run_id",
]
