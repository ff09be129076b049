from __future__ import annotations

"""Response payload assembly."""

import asyncio
import base64
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel


class LipSyncResponse(BaseModel):
    success: bool = True
    lipsync: Dict[str, Any]
    audioBase64: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    detail: Optional[str] = None


def _read_base64(path: Path) -> str:
    return base64.b64encode(path.read_bytes()).decode("ascii")


async def encode_audio_file(path: Union[str, "os.PathLike[str]"]) -> str:
    """Read the whole file off the event loop and return it as base64 text."""

    return await asyncio.to_thread(_read_base64, Path(path))


async def assemble_response(
    lipsync: Dict[str, Any],
    audio_path: Union[str, "os.PathLike[str]"],
) -> LipSyncResponse:
    audio_b64 = await encode_audio_file(audio_path)
    return LipSyncResponse(lipsync=lipsync, audioBase64=audio_b64)


__all__ = ["LipSyncResponse", "ErrorResponse", "assemble_response", "encode_audio_file"]
