"""ffmpeg operation builders.

Translates ladder entries and audio jobs into EngineOperation objects.
Building is kept separate from execution so the exact ffmpeg options can be
asserted without starting a process.

Rendition output:
- H.264 video scaled to the rendition resolution
- AAC audio at the rendition bitrate
- MPEG-TS segments with key frames forced on segment boundaries
- VOD media playlist listing every segment
"""

from pathlib import Path

from ..shared.config import Settings, get_settings
from ..shared.models import AudioExtractionJob, AudioFormat, EngineOperation, RenditionSpec

# Encoder per audio container
AUDIO_CODECS: dict[AudioFormat, str] = {
    AudioFormat.MP3: "libmp3lame",
    AudioFormat.WAV: "pcm_s16le",
}

DEFAULT_MP3_BITRATE = "192k"


def build_rendition_operation(
    input_path: str,
    rendition: RenditionSpec,
    output_dir: Path,
    settings: Settings | None = None,
) -> EngineOperation:
    """Build the single ffmpeg invocation that produces one HLS rendition.

    Args:
        input_path: Source media file
        rendition: Ladder entry to encode
        output_dir: Directory receiving the playlist and segments
        settings: Codec settings (defaults to process settings)

    Returns:
        EngineOperation writing ``<label>.m3u8`` and ``<label>_NNN.ts``

    Example:
        >>> op = build_rendition_operation("in.mp4", spec_720p, Path("/out"))
        >>> op.output_path
        '/out/720p.m3u8'
    """
    settings = settings or get_settings()
    segment_seconds = rendition.segment_seconds

    args = [
        # First video stream, first audio stream if the source has one
        "-map", "0:v:0",
        "-map", "0:a:0?",
        # Video
        "-c:v", settings.video_codec,
        "-profile:v", settings.video_profile,
        "-vf", f"scale={rendition.width}:{rendition.height}",
        "-b:v", rendition.video_bitrate,
        "-force_key_frames", f"expr:gte(t,n_forced*{segment_seconds})",
        # Audio
        "-c:a", settings.audio_codec,
        "-b:a", rendition.audio_bitrate,
        # HLS packaging
        "-f", "hls",
        "-hls_time", str(segment_seconds),
        "-hls_list_size", "0",
        "-hls_playlist_type", "vod",
        "-hls_segment_filename", str(output_dir / rendition.segment_pattern),
    ]

    return EngineOperation(
        name=rendition.label,
        input_path=input_path,
        output_path=str(output_dir / rendition.playlist_name),
        output_args=tuple(args),
    )


def build_audio_operation(
    job: AudioExtractionJob,
    bitrate: str = DEFAULT_MP3_BITRATE,
) -> EngineOperation:
    """Build the ffmpeg invocation that strips video and keeps one audio track.

    Args:
        job: Audio extraction request
        bitrate: Target bitrate for lossy formats (ignored for wav)

    Returns:
        EngineOperation writing ``<output_dir>/audio.<format>``
    """
    args = [
        "-vn",
        "-map", "0:a:0",
        "-c:a", AUDIO_CODECS[job.format],
    ]

    # PCM has a fixed bitrate
    if job.format == AudioFormat.MP3:
        args.extend(["-b:a", bitrate])

    args.extend(["-f", job.format.value])

    return EngineOperation(
        name=f"audio-{job.format.value}",
        input_path=job.input_path,
        output_path=job.output_path,
        output_args=tuple(args),
    )
