"""Standalone audio track extraction.

Strips the video stream from a source file and writes one audio file for
downstream speech/transcription. Independent of HLS conversion: no shared
state, no staging, no partial-result handling. On failure the output file
may or may not exist.
"""

from pathlib import Path

from aws_lambda_powertools import Logger

from ..engine.commands import DEFAULT_MP3_BITRATE, build_audio_operation
from ..engine.ffmpeg import get_engine
from ..engine.interface import TranscodeEngine
from ..shared.config import Settings, get_settings
from ..shared.exceptions import OutputIOError, UnsupportedAudioFormatError
from ..shared.models import AudioExtractionJob, AudioFormat

logger = Logger(service="audio-extractor")


class AudioExtractor:
    """Extracts ``audio.<format>`` files with a shared engine."""

    def __init__(self, engine: TranscodeEngine, settings: Settings | None = None) -> None:
        self._engine = engine
        self._settings = settings or get_settings()

    def extract(
        self,
        input_path: str | Path,
        output_dir: str | Path,
        format: AudioFormat | str = AudioFormat.MP3,
        bitrate: str = DEFAULT_MP3_BITRATE,
    ) -> Path:
        """Write the source's first audio track to ``<output_dir>/audio.<format>``.

        Args:
            input_path: Source media file
            output_dir: Destination directory (created if absent)
            format: 'mp3' or 'wav'
            bitrate: mp3 bitrate (ignored for wav)

        Returns:
            Path of the audio file

        Raises:
            UnsupportedAudioFormatError: Unknown format (raised before the engine runs)
            EngineUnavailableError: ffmpeg cannot be located or started
            EncodeFailedError: ffmpeg exited non-zero or timed out
            OutputIOError: Output directory cannot be created
        """
        audio_format = _parse_format(format)
        job = AudioExtractionJob(
            input_path=str(input_path),
            output_dir=str(output_dir),
            format=audio_format,
        )

        self._engine.ensure_available()

        target_dir = Path(job.output_dir)
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputIOError(str(target_dir), e) from e

        operation = build_audio_operation(job, bitrate=bitrate)
        run = self._engine.run(operation, timeout=self._settings.encode_timeout_seconds)

        logger.info(
            "Audio extracted",
            extra={
                "input_path": job.input_path,
                "audio_path": job.output_path,
                "format": audio_format.value,
                "elapsed_seconds": round(run.elapsed_seconds, 3),
            },
        )
        return Path(job.output_path)


def _parse_format(value: AudioFormat | str) -> AudioFormat:
    """Accept enum members or case-insensitive names."""
    if isinstance(value, AudioFormat):
        return value
    try:
        return AudioFormat(str(value).strip().lower())
    except ValueError:
        raise UnsupportedAudioFormatError(str(value), [f.value for f in AudioFormat]) from None


def extract_audio(
    input_path: str | Path,
    output_dir: str | Path,
    format: AudioFormat | str = AudioFormat.MP3,
) -> Path:
    """Extract audio with the process-wide engine."""
    return AudioExtractor(get_engine()).extract(input_path, output_dir, format)
