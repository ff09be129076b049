"""Validation of the analyzer's mouth-cue document.

Rhubarb writes ``{"metadata": {...}, "mouthCues": [{"start", "end",
"value"}, ...]}``. The document is validated here but handed back to
callers exactly as parsed.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import ResultParseFailed

MouthShape = Literal["A", "B", "C", "D", "E", "F", "G", "H", "X"]


class MouthCue(BaseModel):
    model_config = ConfigDict(extra="allow")

    start: float = Field(ge=0)
    end: float = Field(ge=0)
    value: MouthShape

    @model_validator(mode="after")
    def check_span(self) -> "MouthCue":
        if self.end < self.start:
            raise ValueError("cue end precedes its start")
        return self


class CueMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    soundFile: Optional[str] = None
    duration: Optional[float] = Field(default=None, ge=0)


class CueDocument(BaseModel):
    model_config = ConfigDict(extra="allow")

    metadata: Optional[CueMetadata] = None
    mouthCues: List[MouthCue]

    @model_validator(mode="after")
    def check_order(self) -> "CueDocument":
        previous = 0.0
        for index, cue in enumerate(self.mouthCues):
            if cue.start < previous:
                raise ValueError(f"mouthCues[{index}] starts before the preceding cue")
            previous = cue.start
        return self


def parse_cue_document(text: str) -> Dict[str, Any]:
    """Parse and validate analyzer output, returning the raw mapping."""

    try:
        raw = json.loads(text)
    except ValueError as exc:
        raise ResultParseFailed("Analysis result is not valid JSON", cause=exc, detail=str(exc)) from exc
    if not isinstance(raw, dict):
        raise ResultParseFailed("Analysis result is not a JSON object")
    try:
        CueDocument.model_validate(raw)
    except ValidationError as exc:
        raise ResultParseFailed("Analysis result does not match the cue format", cause=exc, detail=str(exc)) from exc
    return raw


def cue_span(document: Dict[str, Any]) -> Optional[Tuple[float, float]]:
    """Return (first start, last end) of a parsed document, or None when empty."""

    cues = document.get("mouthCues") or []
    if not cues:
        return None
    return float(cues[0]["start"]), float(max(cue["end"] for cue in cues))


__all__ = [
    "MouthCue",
    "CueMetadata",
    "CueDocument",
    "MouthShape",
    "parse_cue_document",
    "cue_span",
]
