"""Rendition ladder module for the HLS transcoding pipeline.

This module defines which variants every conversion produces:
- Default 360p/720p/1080p ladder
- Ladder validation
- Environment override
"""

from .ladder import DEFAULT_LADDER, RenditionLadder, get_ladder, parse_bitrate

__all__ = [
    "DEFAULT_LADDER",
    "RenditionLadder",
    "get_ladder",
    "parse_bitrate",
]
