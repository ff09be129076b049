"""Wrappers around the external transcoder and analyzer."""

from .base import Transcoder, VisemeAnalyzer
from .ffmpeg import FfmpegTranscoder
from .rhubarb import RhubarbAnalyzer

__all__ = [
    "Transcoder",
    "VisemeAnalyzer",
    "FfmpegTranscoder",
    "RhubarbAnalyzer",
]
