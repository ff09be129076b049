from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(slots=True)
class ProcessResult:
    """Captured output of an external command that exited with status 0."""

    command: Tuple[str, ...]
    stdout: bytes
    stderr: bytes
    exit_code: int = 0

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")
