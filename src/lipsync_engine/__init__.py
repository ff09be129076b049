"""Audio to viseme-track service built on ffmpeg and Rhubarb Lip Sync."""

from .pipeline import LipSyncPipeline, PipelineResult, PipelineRun, PipelineStage

__all__ = ["LipSyncPipeline", "PipelineResult", "PipelineRun", "PipelineStage"]
