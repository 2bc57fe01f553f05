"""Handler for HLS conversion requests.

Called by the content-ingestion side after a video upload has been stored.
It converts the upload into an adaptive-bitrate HLS tree and returns the
master manifest path for the caller to persist and hand to players.

Flow:
1. Load the configured rendition ladder
2. Convert input into renditions + master manifest
3. Return the manifest path, or a structured failure
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from ..engine.ffmpeg import get_engine
from ..renditions.ladder import get_ladder
from ..shared.config import get_settings
from ..shared.exceptions import ConversionFailedError, TranscodingPipelineError
from .orchestrator import TranscodeOrchestrator

logger = Logger(service="hls-converter")
metrics = Metrics(service="hls-converter", namespace="HlsTranscoding")


@logger.inject_lambda_context(log_event=True)
@metrics.log_metrics(capture_cold_start_metric=True)
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """Convert an uploaded video to HLS.

    Args:
        event: Conversion request
        context: Lambda context

    Returns:
        Conversion result

    Input event structure:
        {
            "input_path": "/uploads/lesson-42.mp4",
            "output_dir": "/media/hls/lesson-42"
        }

    Output structure:
        {
            "status": "COMPLETED" | "FAILED",
            "master_manifest_path": "/media/hls/lesson-42/master.m3u8",
            "renditions": ["360p", "720p", "1080p"],
            "error": {...}  # only on failure
        }
    """
    settings = get_settings()
    logger.setLevel(settings.log_level)
    logger.append_keys(environment=settings.environment)

    input_path = event["input_path"]
    output_dir = event["output_dir"]

    try:
        ladder = get_ladder(settings)
        orchestrator = TranscodeOrchestrator(get_engine(), ladder, settings)
        manifest_path = orchestrator.convert(input_path, output_dir)

    except TranscodingPipelineError as e:
        logger.error(
            "Conversion request failed",
            extra={"input_path": input_path, "output_dir": output_dir, **e.to_dict()},
        )
        metrics.add_metric(name="ConversionsFailed", unit=MetricUnit.Count, value=1)
        if isinstance(e, ConversionFailedError) and e.failed_labels:
            metrics.add_metadata(key="failed_labels", value=e.failed_labels)

        return {
            "status": "FAILED",
            "master_manifest_path": None,
            "renditions": [],
            "error": e.to_dict(),
        }

    metrics.add_metric(name="ConversionsSucceeded", unit=MetricUnit.Count, value=1)
    metrics.add_metric(name="RenditionsEncoded", unit=MetricUnit.Count, value=len(ladder))

    return {
        "status": "COMPLETED",
        "master_manifest_path": str(manifest_path),
        "renditions": ladder.labels,
    }
