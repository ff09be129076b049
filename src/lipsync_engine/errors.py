from __future__ import annotations

"""Error taxonomy for the lip sync pipeline."""

from typing import Optional, Sequence


class LipSyncError(Exception):
    """Base error; ``detail`` carries operator diagnostics (e.g. stderr)."""

    status_code: int = 500

    def __init__(self, message: str, *, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class UploadMissing(LipSyncError):
    status_code = 400

    def __init__(self, field: str = "audio") -> None:
        super().__init__(f"Please upload an audio file in field '{field}'.")
        self.field = field


class UploadTooLarge(LipSyncError):
    status_code = 413

    def __init__(self, limit: int) -> None:
        super().__init__(f"Uploaded file exceeds the {limit} byte limit.")
        self.limit = limit


class ProcessFailure(LipSyncError):
    """An external command exited non-zero or could not be spawned."""

    def __init__(
        self,
        command: Sequence[str],
        *,
        exit_code: Optional[int],
        stderr: str = "",
        message: Optional[str] = None,
    ) -> None:
        self.command = tuple(command)
        self.exit_code = exit_code
        self.stderr = stderr
        program = self.command[0] if self.command else "<empty>"
        if message is None:
            if exit_code is None:
                message = f"{program} could not be started"
            else:
                message = f"{program} exited with status {exit_code}"
        super().__init__(message, detail=stderr or None)


class ProcessOutputLimitExceeded(ProcessFailure):
    def __init__(self, command: Sequence[str], *, limit: int, stream: str, stderr: str = "") -> None:
        program = command[0] if command else "<empty>"
        super().__init__(
            command,
            exit_code=None,
            stderr=stderr,
            message=f"{program} wrote more than {limit} bytes to {stream}",
        )
        self.limit = limit
        self.stream = stream


class ProcessTimeout(ProcessFailure):
    def __init__(self, command: Sequence[str], *, timeout: float, stderr: str = "") -> None:
        program = command[0] if command else "<empty>"
        super().__init__(
            command,
            exit_code=None,
            stderr=stderr,
            message=f"{program} did not finish within {timeout:g}s",
        )
        self.timeout = timeout


class PipelineError(LipSyncError):
    """A pipeline stage failed; the run produced no result."""

    stage: str = "pipeline"

    def __init__(self, message: str, *, cause: Optional[BaseException] = None, detail: Optional[str] = None) -> None:
        if detail is None and isinstance(cause, LipSyncError):
            detail = cause.detail
        super().__init__(message, detail=detail)
        self.cause = cause


class TranscodeFailed(PipelineError):
    stage = "transcode"


class AnalysisFailed(PipelineError):
    stage = "analyze"


class ResultParseFailed(PipelineError):
    stage = "parse"


class ArtifactCleanupFailed(LipSyncError):
    """Disposal of a temporary artifact failed. Logged, never raised by a run."""

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(f"failed to remove artifact {path}", detail=repr(cause))
        self.path = path
        self.cause = cause


__all__ = [
    "LipSyncError",
    "UploadMissing",
    "UploadTooLarge",
    "ProcessFailure",
    "ProcessOutputLimitExceeded",
    "ProcessTimeout",
    "PipelineError",
    "TranscodeFailed",
    "AnalysisFailed",
    "ResultParseFailed",
    "ArtifactCleanupFailed",
]
