"""Audio extraction module for the HLS transcoding pipeline.

This module produces standalone audio files for transcription:
- mp3/wav extraction
- Lambda-style handler
"""

from .extractor import AudioExtractor, extract_audio

__all__ = [
    "AudioExtractor",
    "extract_audio",
]
