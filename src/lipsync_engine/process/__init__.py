"""External process invocation."""

from .runner import ProcessRunner, SubprocessRunner, format_command
from .types import ProcessResult

__all__ = ["ProcessRunner", "SubprocessRunner", "ProcessResult", "format_command"]
