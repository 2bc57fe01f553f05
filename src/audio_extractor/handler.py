"""Handler for audio extraction requests.

Called alongside ingestion when an upload needs a transcript. Produces the
standalone audio file that the transcription service consumes; parsing or
validating transcripts is the caller's concern.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from ..engine.ffmpeg import get_engine
from ..shared.config import get_settings
from ..shared.exceptions import TranscodingPipelineError
from .extractor import AudioExtractor

logger = Logger(service="audio-extractor")
metrics = Metrics(service="audio-extractor", namespace="HlsTranscoding")


@logger.inject_lambda_context(log_event=True)
@metrics.log_metrics(capture_cold_start_metric=True)
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """Extract the audio track of an uploaded video.

    Args:
        event: Extraction request
        context: Lambda context

    Returns:
        Extraction result

    Input event structure:
        {
            "input_path": "/uploads/lesson-42.mp4",
            "output_dir": "/media/audio/lesson-42",
            "format": "mp3"  # Optional: mp3 (default) or wav
        }

    Output structure:
        {
            "status": "COMPLETED" | "FAILED",
            "audio_path": "/media/audio/lesson-42/audio.mp3",
            "error": {...}  # only on failure
        }
    """
    settings = get_settings()
    logger.setLevel(settings.log_level)
    logger.append_keys(environment=settings.environment)

    input_path = event["input_path"]
    output_dir = event["output_dir"]
    audio_format = event.get("format", "mp3")

    try:
        audio_path = AudioExtractor(get_engine(), settings).extract(input_path, output_dir, audio_format)

    except TranscodingPipelineError as e:
        logger.error(
            "Audio extraction failed",
            extra={"input_path": input_path, "output_dir": output_dir, **e.to_dict()},
        )
        metrics.add_metric(name="AudioExtractionFailures", unit=MetricUnit.Count, value=1)
        return {
            "status": "FAILED",
            "audio_path": None,
            "error": e.to_dict(),
        }

    metrics.add_metric(name="AudioExtractions", unit=MetricUnit.Count, value=1)
    return {
        "status": "COMPLETED",
        "audio_path": str(audio_path),
    }
