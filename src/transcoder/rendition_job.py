"""Single-rendition encode.

Drives one ladder entry through the transcoding engine and reports a
RenditionResult. A failed encode is reported, never retried; an engine that
cannot be started at all is fatal and propagates.
"""

from pathlib import Path

from aws_lambda_powertools import Logger

from ..engine.commands import build_rendition_operation
from ..engine.interface import TranscodeEngine
from ..output_validator.rendition_checker import check_rendition_output
from ..shared.config import Settings, get_settings
from ..shared.exceptions import EncodeFailedError, OutputIOError, PlaylistValidationError
from ..shared.models import RenditionResult, RenditionSpec

logger = Logger(service="rendition-job")


def run_rendition_job(
    engine: TranscodeEngine,
    input_path: str,
    rendition: RenditionSpec,
    output_dir: Path,
    settings: Settings | None = None,
) -> RenditionResult:
    """Encode one rendition into ``output_dir``.

    Writes ``<label>.m3u8`` and ``<label>_NNN.ts``. Files from an earlier run
    with the same label are overwritten in place, not deleted first.

    Args:
        engine: Engine that executes the ffmpeg operation
        input_path: Source media file
        rendition: Ladder entry to encode
        output_dir: Directory receiving playlist and segments (created if absent)
        settings: Codec/verification settings (defaults to process settings)

    Returns:
        RenditionResult with succeeded=False and the error on failure

    Raises:
        EngineUnavailableError: If the engine binary cannot be used
    """
    settings = settings or get_settings()
    operation = build_rendition_operation(input_path, rendition, output_dir, settings)
    playlist_path = Path(operation.output_path)
    segment_pattern = str(output_dir / rendition.segment_pattern)

    try:
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputIOError(str(output_dir), e) from e

        run = engine.run(operation, timeout=settings.encode_timeout_seconds)

        if settings.verify_renditions:
            check = check_rendition_output(playlist_path)
            logger.debug(
                "Rendition playlist verified",
                extra={"label": rendition.label, "duration_seconds": check["total_duration_seconds"]},
            )

    except (EncodeFailedError, OutputIOError, PlaylistValidationError) as e:
        logger.warning(
            "Rendition failed",
            extra={"label": rendition.label, "error_code": e.error_code, "error": e.message},
        )
        return RenditionResult(
            rendition=rendition,
            playlist_path=str(playlist_path),
            segment_pattern=segment_pattern,
            succeeded=False,
            error=e.message,
            error_code=e.error_code,
        )

    logger.info(
        "Rendition encoded",
        extra={
            "label": rendition.label,
            "resolution": rendition.resolution,
            "video_bitrate": rendition.video_bitrate,
            "elapsed_seconds": round(run.elapsed_seconds, 3),
        },
    )
    return RenditionResult(
        rendition=rendition,
        playlist_path=str(playlist_path),
        segment_pattern=segment_pattern,
        succeeded=True,
    )
