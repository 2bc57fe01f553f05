"""Transcoding engine module for the HLS transcoding pipeline.

This module wraps the external encoder:
- Engine capability protocol
- ffmpeg operation builders
- ffmpeg subprocess adapter
"""

from .commands import AUDIO_CODECS, build_audio_operation, build_rendition_operation
from .ffmpeg import FFmpegEngine, clear_engine_cache, get_engine
from .interface import EngineRunResult, TranscodeEngine

__all__ = [
    "AUDIO_CODECS",
    "build_audio_operation",
    "build_rendition_operation",
    "FFmpegEngine",
    "clear_engine_cache",
    "get_engine",
    "EngineRunResult",
    "TranscodeEngine",
]
