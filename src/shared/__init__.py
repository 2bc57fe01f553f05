"""Shared utilities for the HLS transcoding pipeline."""

from .config import Settings, get_settings
from .exceptions import (
    TranscodingPipelineError,
    ExitInfo,
    LadderConfigurationError,
    EngineUnavailableError,
    EncodeFailedError,
    OutputIOError,
    UnsupportedAudioFormatError,
    PlaylistValidationError,
    ConversionFailedError,
)
from .models import (
    JobStatus,
    AudioFormat,
    RenditionSpec,
    EngineOperation,
    RenditionResult,
    TranscodeJob,
    MasterManifestEntry,
    AudioExtractionJob,
    parse_bitrate,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Exceptions
    "TranscodingPipelineError",
    "ExitInfo",
    "LadderConfigurationError",
    "EngineUnavailableError",
    "EncodeFailedError",
    "OutputIOError",
    "UnsupportedAudioFormatError",
    "PlaylistValidationError",
    "ConversionFailedError",
    # Models
    "JobStatus",
    "AudioFormat",
    "RenditionSpec",
    "EngineOperation",
    "RenditionResult",
    "TranscodeJob",
    "MasterManifestEntry",
    "AudioExtractionJob",
    "parse_bitrate",
]
