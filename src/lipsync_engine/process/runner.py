from __future__ import annotations

import abc
import asyncio
import logging
import os
import shlex
from typing import Optional, Sequence

from ..errors import ProcessFailure, ProcessOutputLimitExceeded, ProcessTimeout
from ..settings import MIN_PROCESS_OUTPUT_LIMIT_BYTES
from .types import ProcessResult

logger = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024


def format_command(command: Sequence[str]) -> str:
    """Render an argv list as a shell-quoted string for logs."""

    return shlex.join(os.fspath(part) for part in command)


class ProcessRunner(abc.ABC):
    """Interface for invoking external tools."""

    @abc.abstractmethod
    async def run(self, command: Sequence[str]) -> ProcessResult:
        """Run ``command`` to completion or raise :class:`ProcessFailure`."""
        raise NotImplementedError


class _OutputOverflow(Exception):
    def __init__(self, stream: str) -> None:
        super().__init__(stream)
        self.stream = stream


async def _drain(reader: Optional[asyncio.StreamReader], sink: bytearray, limit: int, stream: str) -> None:
    if reader is None:
        return
    while True:
        chunk = await reader.read(_READ_CHUNK)
        if not chunk:
            return
        if len(sink) + len(chunk) > limit:
            raise _OutputOverflow(stream)
        sink.extend(chunk)


async def _drain_all(proc: asyncio.subprocess.Process, stdout: bytearray, stderr: bytearray, limit: int) -> None:
    """Read both pipes concurrently; the first overflow cancels the other reader."""

    try:
        async with asyncio.TaskGroup() as group:
            group.create_task(_drain(proc.stdout, stdout, limit, "stdout"))
            group.create_task(_drain(proc.stderr, stderr, limit, "stderr"))
    except BaseExceptionGroup as errors:
        overflow = next((e for e in errors.exceptions if isinstance(e, _OutputOverflow)), None)
        if overflow is None:
            raise
        raise overflow from None


class SubprocessRunner(ProcessRunner):
    """Spawns commands with asyncio, without a shell.

    Arguments are passed as an argv vector, so paths containing spaces or
    path separators reach the tool verbatim. stdout and stderr are each
    captured up to ``max_output_bytes``; a command exceeding the ceiling or
    the optional ``timeout`` is killed.
    """

    def __init__(
        self,
        *,
        max_output_bytes: int = MIN_PROCESS_OUTPUT_LIMIT_BYTES,
        timeout: Optional[float] = None,
    ) -> None:
        if max_output_bytes <= 0:
            raise ValueError("max_output_bytes must be positive")
        self._max_output_bytes = max_output_bytes
        self._timeout = timeout if timeout and timeout > 0 else None

    @property
    def max_output_bytes(self) -> int:
        return self._max_output_bytes

    @property
    def timeout(self) -> Optional[float]:
        return self._timeout

    async def run(self, command: Sequence[str]) -> ProcessResult:
        argv = tuple(os.fspath(part) for part in command)
        if not argv:
            raise ValueError("command must not be empty")
        rendered = format_command(argv)
        logger.info("process.run %s", rendered)

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            logger.error("process.spawn_failed", extra={"command": rendered, "error": repr(exc)})
            raise ProcessFailure(argv, exit_code=None, stderr=str(exc)) from exc

        stdout = bytearray()
        stderr = bytearray()
        try:
            async with asyncio.timeout(self._timeout):
                await _drain_all(proc, stdout, stderr, self._max_output_bytes)
                exit_code = await proc.wait()
        except TimeoutError as exc:
            await _kill(proc)
            stderr_text = _decode(stderr)
            logger.error("process.timeout", extra={"command": rendered, "timeout": self._timeout})
            raise ProcessTimeout(argv, timeout=self._timeout or 0.0, stderr=stderr_text) from exc
        except _OutputOverflow as exc:
            await _kill(proc)
            logger.error(
                "process.output_limit_exceeded",
                extra={"command": rendered, "stream": exc.stream, "limit": self._max_output_bytes},
            )
            raise ProcessOutputLimitExceeded(
                argv, limit=self._max_output_bytes, stream=exc.stream, stderr=_decode(stderr)
            ) from exc
        except asyncio.CancelledError:
            await _kill(proc)
            raise

        if exit_code != 0:
            stderr_text = _decode(stderr)
            logger.error("process.failed %s (exit %s)\nstderr: %s", rendered, exit_code, stderr_text)
            raise ProcessFailure(argv, exit_code=exit_code, stderr=stderr_text)

        return ProcessResult(command=argv, stdout=bytes(stdout), stderr=bytes(stderr), exit_code=exit_code)


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()


def _decode(data: bytes | bytearray) -> str:
    return bytes(data).decode("utf-8", errors="replace")


__all__ = ["ProcessRunner", "SubprocessRunner", "format_command"]
