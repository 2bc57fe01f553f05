"""Pydantic models for data validation and serialization.

This module defines the core data structures used throughout the pipeline:
- Rendition ladder entries and bitrate parsing
- Engine operations handed to the transcoding engine
- Per-rendition results and the owning transcode job
- Master manifest entries
- Audio extraction jobs

All models use Pydantic v2 for validation and serialization.
"""

import re
from enum import Enum
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

_BITRATE_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)([kKmM]?)$")
_BITRATE_MULTIPLIERS = {"": 1, "k": 1_000, "m": 1_000_000}


def parse_bitrate(value: str) -> int:
    """Convert an ffmpeg-style bitrate string to bits per second.

    Args:
        value: Bitrate such as '600k', '1.5M' or '128000'

    Returns:
        Bitrate in bits per second

    Raises:
        ValueError: If the value is malformed or not positive

    Example:
        >>> parse_bitrate("1200k")
        1200000
    """
    match = _BITRATE_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"Invalid bitrate {value!r}; expected a number with optional k/M suffix")

    number, unit = match.groups()
    bps = int(float(number) * _BITRATE_MULTIPLIERS[unit.lower()])
    if bps <= 0:
        raise ValueError(f"Bitrate must be positive, got {value!r}")
    return bps


class JobStatus(str, Enum):
    """Lifecycle of a transcode job."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class AudioFormat(str, Enum):
    """Supported standalone audio outputs."""

    MP3 = "mp3"
    WAV = "wav"


class RenditionSpec(BaseModel):
    """A single entry in the rendition ladder.

    Each rendition is one resolution/bitrate variant packaged as its own
    segmented HLS stream named after its label.
    """

    model_config = ConfigDict(frozen=True)

    label: str = Field(
        min_length=1,
        max_length=50,
        pattern=r"^[A-Za-z0-9_-]+$",
        description="Unique, filename-safe rendition name (e.g., '720p')",
    )
    width: Annotated[int, Field(gt=0, le=7680)] = Field(
        description="Output width in pixels",
    )
    height: Annotated[int, Field(gt=0, le=4320)] = Field(
        description="Output height in pixels",
    )
    video_bitrate: str = Field(
        description="Target video bitrate with unit (e.g., '1200k')",
    )
    audio_bitrate: str = Field(
        description="Target audio bitrate with unit (e.g., '128k')",
    )
    segment_seconds: Annotated[int, Field(ge=1, le=60)] = Field(
        default=6,
        description="Target segment duration in seconds",
    )

    @field_validator("video_bitrate", "audio_bitrate")
    @classmethod
    def validate_bitrate(cls, v: str) -> str:
        """Ensure bitrate parses to a positive number."""
        parse_bitrate(v)
        return v

    @property
    def resolution(self) -> str:
        """Return resolution string (e.g., '1280x720')."""
        return f"{self.width}x{self.height}"

    @property
    def video_bitrate_bps(self) -> int:
        return parse_bitrate(self.video_bitrate)

    @property
    def audio_bitrate_bps(self) -> int:
        return parse_bitrate(self.audio_bitrate)

    @property
    def bandwidth(self) -> int:
        """Peak bandwidth advertised in the master manifest (video + audio)."""
        return self.video_bitrate_bps + self.audio_bitrate_bps

    @property
    def playlist_name(self) -> str:
        return f"{self.label}.m3u8"

    @property
    def segment_pattern(self) -> str:
        """ffmpeg segment filename template (e.g., '720p_%03d.ts')."""
        return f"{self.label}_%03d.ts"

    def owns_segment(self, filename: str) -> bool:
        """Whether ``filename`` is one of this rendition's segment files."""
        return re.fullmatch(rf"{re.escape(self.label)}_\d{{3,}}\.ts", filename) is not None


class EngineOperation(BaseModel):
    """One fully described ffmpeg invocation.

    The engine prepends the binary and input; ``output_args`` holds every
    codec, scaling and muxer option, and ``output_path`` is the final
    positional output target.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        min_length=1,
        description="Short name used in logs and errors (rendition label or 'audio')",
    )
    input_path: str = Field(
        min_length=1,
        description="Source media file",
    )
    output_path: str = Field(
        min_length=1,
        description="Primary output file written by ffmpeg",
    )
    output_args: tuple[str, ...] = Field(
        default=(),
        description="Options placed between the input and the output path",
    )


class RenditionResult(BaseModel):
    """Outcome of encoding one rendition."""

    model_config = ConfigDict(frozen=True)

    rendition: RenditionSpec = Field(
        description="Ladder entry this result belongs to",
    )
    playlist_path: str = Field(
        description="Path to the rendition playlist",
    )
    segment_pattern: str = Field(
        description="Path template of the rendition's segment files",
    )
    succeeded: bool = Field(
        description="Whether the rendition was encoded (and verified)",
    )
    error: str | None = Field(
        default=None,
        description="Error message if the rendition failed",
    )
    error_code: str | None = Field(
        default=None,
        description="Error code if the rendition failed",
    )

    @property
    def label(self) -> str:
        return self.rendition.label


class TranscodeJob(BaseModel):
    """A single conversion request, owned by the orchestrator for one call."""

    input_path: str = Field(
        min_length=1,
        description="Source media file",
    )
    output_dir: str = Field(
        min_length=1,
        description="Directory receiving playlists, segments and master manifest",
    )
    renditions: list[RenditionSpec] = Field(
        min_length=1,
        description="Ordered ladder to produce",
    )
    status: JobStatus = Field(
        default=JobStatus.PENDING,
        description="Current job status",
    )
    results: dict[str, RenditionResult] = Field(
        default_factory=dict,
        description="Per-rendition results keyed by label",
    )

    @property
    def ordered_results(self) -> list[RenditionResult]:
        """Results in ladder order, skipping renditions that have not reported."""
        return [self.results[r.label] for r in self.renditions if r.label in self.results]

    @property
    def failed_labels(self) -> list[str]:
        return [r.label for r in self.ordered_results if not r.succeeded]

    @property
    def all_succeeded(self) -> bool:
        return len(self.results) == len(self.renditions) and not self.failed_labels


class MasterManifestEntry(BaseModel):
    """One variant stream listed in the master manifest."""

    model_config = ConfigDict(frozen=True)

    bandwidth: Annotated[int, Field(gt=0)] = Field(
        description="Peak bandwidth in bits per second",
    )
    resolution: str = Field(
        pattern=r"^\d+x\d+$",
        description="Resolution string (e.g., '1920x1080')",
    )
    uri: str = Field(
        min_length=1,
        description="Rendition playlist path relative to the master manifest",
    )


class AudioExtractionJob(BaseModel):
    """Request to strip a standalone audio track from a source file."""

    model_config = ConfigDict(frozen=True)

    input_path: str = Field(
        min_length=1,
        description="Source media file",
    )
    output_dir: str = Field(
        min_length=1,
        description="Directory receiving the audio file",
    )
    format: AudioFormat = Field(
        default=AudioFormat.MP3,
        description="Output container/codec",
    )

    @property
    def output_path(self) -> str:
        """Deterministic output location (``<output_dir>/audio.<format>``)."""
        return str(Path(self.output_dir) / f"audio.{self.format.value}")
