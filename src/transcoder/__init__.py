"""Transcoder module for the HLS transcoding pipeline.

This module turns one source video into an adaptive-bitrate HLS tree:
- Per-rendition encode jobs
- Conversion orchestration
- Master manifest builder
- Ingestion handler
"""

from .manifest_builder import (
    MASTER_MANIFEST_NAME,
    build_manifest_entries,
    render_master_manifest,
    write_master_manifest,
)
from .orchestrator import TranscodeOrchestrator, convert
from .rendition_job import run_rendition_job

__all__ = [
    "MASTER_MANIFEST_NAME",
    "build_manifest_entries",
    "render_master_manifest",
    "write_master_manifest",
    "TranscodeOrchestrator",
    "convert",
    "run_rendition_job",
]
