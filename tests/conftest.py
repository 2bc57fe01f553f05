"""Pytest configuration and shared fixtures.

This module provides:
- Environment variable setup
- A fake transcoding engine that writes realistic HLS output
- Sample test data (ladders, playlists, source files)
- A Lambda context stub for handler tests
"""

import math
import os
import stat
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

import pytest

# Set application environment variables BEFORE importing any application code
os.environ["ENVIRONMENT"] = "dev"
os.environ["FFMPEG_PATH"] = "ffmpeg"
os.environ["SEGMENT_SECONDS"] = "6"
os.environ["MAX_PARALLEL_RENDITIONS"] = "1"
os.environ["VERIFY_RENDITIONS"] = "true"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["POWERTOOLS_METRICS_NAMESPACE"] = "HlsTranscoding"

from src.engine.interface import EngineRunResult  # noqa: E402
from src.shared.config import Settings, clear_settings_cache  # noqa: E402
from src.shared.exceptions import EncodeFailedError, EngineUnavailableError, ExitInfo  # noqa: E402
from src.shared.models import EngineOperation, RenditionSpec  # noqa: E402


# =============================================================================
# Fake Engine
# =============================================================================


class FakeEngine:
    """In-process TranscodeEngine that writes HLS output without ffmpeg.

    Rendition operations produce a VOD playlist plus one segment file per
    ``segment_seconds`` of ``source_duration``; audio operations produce a
    small file at the output path.

    Attributes:
        operations: Every operation passed to run(), in call order
        fail_labels: Operation names that exit non-zero
        unavailable: Make ensure_available() raise
        on_run: Optional hook called before each operation is executed
    """

    def __init__(
        self,
        source_duration: float = 10.0,
        fail_labels: set[str] | None = None,
        unavailable: bool = False,
        on_run: Callable[[EngineOperation], None] | None = None,
    ) -> None:
        self.source_duration = source_duration
        self.fail_labels = set(fail_labels or ())
        self.unavailable = unavailable
        self.on_run = on_run
        self.operations: list[EngineOperation] = []
        self.timeouts: list[float | None] = []
        self._lock = threading.Lock()

    def ensure_available(self) -> str:
        if self.unavailable:
            raise EngineUnavailableError("/nonexistent/ffmpeg", "not found or not executable")
        return "/usr/bin/ffmpeg"

    def run(self, operation: EngineOperation, timeout: float | None = None) -> EngineRunResult:
        self.ensure_available()
        with self._lock:
            self.operations.append(operation)
            self.timeouts.append(timeout)

        if self.on_run:
            self.on_run(operation)

        if operation.name in self.fail_labels:
            # Leave partial output behind like a crashed ffmpeg would
            Path(operation.output_path).parent.mkdir(parents=True, exist_ok=True)
            Path(operation.output_path).write_text("#EXTM3U\n")
            raise EncodeFailedError(
                ExitInfo(
                    command=["ffmpeg", "-i", operation.input_path, operation.output_path],
                    return_code=1,
                    stderr_tail="Conversion failed!",
                ),
                label=operation.name,
            )

        if "-hls_segment_filename" in operation.output_args:
            self._write_hls(operation)
        else:
            Path(operation.output_path).write_bytes(b"ID3fake-audio")

        return EngineRunResult(
            operation=operation.name,
            command=["ffmpeg", operation.output_path],
            elapsed_seconds=0.01,
        )

    @property
    def labels_run(self) -> list[str]:
        return [op.name for op in self.operations]

    def _write_hls(self, operation: EngineOperation) -> None:
        args = list(operation.output_args)
        segment_seconds = int(args[args.index("-hls_time") + 1])
        pattern = args[args.index("-hls_segment_filename") + 1]

        count = max(1, math.ceil(self.source_duration / segment_seconds))
        lines = [
            "#EXTM3U",
            "#EXT-X-VERSION:3",
            f"#EXT-X-TARGETDURATION:{segment_seconds}",
            "#EXT-X-MEDIA-SEQUENCE:0",
            "#EXT-X-PLAYLIST-TYPE:VOD",
        ]
        remaining = self.source_duration
        for index in range(count):
            duration = min(segment_seconds, remaining)
            remaining -= duration
            segment = Path(pattern % index)
            segment.write_bytes(b"\x47" * 188)
            lines.append(f"#EXTINF:{duration:.6f},")
            lines.append(segment.name)
        lines.append("#EXT-X-ENDLIST")

        Path(operation.output_path).write_text("\n".join(lines) + "\n")


@pytest.fixture
def fake_engine() -> FakeEngine:
    """Fake engine producing a 10-second source's worth of output."""
    return FakeEngine()


@pytest.fixture
def make_engine() -> Callable[..., FakeEngine]:
    """Factory for fake engines with failure modes."""
    return FakeEngine


# =============================================================================
# Fake ffmpeg Binaries
# =============================================================================


@pytest.fixture
def make_binary(tmp_path: Path) -> Callable[[str, str], Path]:
    """Create an executable shell script standing in for ffmpeg."""

    def _make(name: str, body: str) -> Path:
        path = tmp_path / "bin" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("#!/bin/sh\n" + body + "\n")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _make


# =============================================================================
# Sample Data Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Settings with sequential encodes and verification on."""
    return Settings(
        ffmpeg_path="ffmpeg",
        segment_seconds=6,
        max_parallel_renditions=1,
        verify_renditions=True,
    )


@pytest.fixture
def ladder_entries() -> list[dict[str, Any]]:
    """The 360p/720p/1080p ladder as raw configuration."""
    return [
        {"label": "360p", "width": 640, "height": 360, "video_bitrate": "600k", "audio_bitrate": "128k"},
        {"label": "720p", "width": 1280, "height": 720, "video_bitrate": "1200k", "audio_bitrate": "128k"},
        {"label": "1080p", "width": 1920, "height": 1080, "video_bitrate": "3000k", "audio_bitrate": "192k"},
    ]


@pytest.fixture
def rendition_720p() -> RenditionSpec:
    return RenditionSpec(
        label="720p",
        width=1280,
        height=720,
        video_bitrate="1200k",
        audio_bitrate="128k",
        segment_seconds=6,
    )


@pytest.fixture
def source_video(tmp_path: Path) -> Path:
    """Placeholder source file (content is never decoded by the fake engine)."""
    path = tmp_path / "uploads" / "lesson.mp4"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42")
    return path


@pytest.fixture
def sample_hls_master() -> str:
    """Master playlist as written for the default ladder."""
    return """#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=728000,RESOLUTION=640x360
360p.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=1328000,RESOLUTION=1280x720
720p.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=3192000,RESOLUTION=1920x1080
1080p.m3u8
"""


@pytest.fixture
def sample_hls_media() -> str:
    """Sample HLS media playlist (video segments)."""
    return """#EXTM3U
#EXT-X-VERSION:3
#EXT-X-TARGETDURATION:6
#EXT-X-MEDIA-SEQUENCE:0
#EXT-X-PLAYLIST-TYPE:VOD
#EXTINF:6.000000,
720p_000.ts
#EXTINF:6.000000,
720p_001.ts
#EXTINF:5.500000,
720p_002.ts
#EXT-X-ENDLIST
"""


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture
def mock_environment(monkeypatch: pytest.MonkeyPatch) -> Callable[..., None]:
    """Set environment variables and reset cached settings/engine."""
    from src.engine.ffmpeg import clear_engine_cache

    def _apply(**env_vars: str) -> None:
        for key, value in env_vars.items():
            monkeypatch.setenv(key, value)
        clear_settings_cache()
        clear_engine_cache()

    yield _apply

    clear_settings_cache()
    clear_engine_cache()


@pytest.fixture
def lambda_context() -> Any:
    """Minimal Lambda context accepted by powertools decorators."""

    @dataclass
    class LambdaContext:
        function_name: str = "hls-converter"
        function_version: str = "$LATEST"
        memory_limit_in_mb: int = 1024
        invoked_function_arn: str = "arn:aws:lambda:us-east-1:123456789012:function:hls-converter"
        aws_request_id: str = "52fdfc07-2182-154f-163f-5f0f9a621d72"

    return LambdaContext()
