"""Output validation module for the HLS transcoding pipeline.

This module validates transcoded outputs:
- HLS master playlist structure
- HLS media playlist structure
- Segment file verification
"""

from .hls_validator import (
    parse_master_playlist,
    parse_media_segments,
    validate_hls_master,
    validate_hls_media,
)
from .rendition_checker import check_rendition_output, sum_extinf_durations

__all__ = [
    "parse_master_playlist",
    "parse_media_segments",
    "validate_hls_master",
    "validate_hls_media",
    "check_rendition_output",
    "sum_extinf_durations",
]
