"""Rendition output verification.

Validates what ffmpeg left on disk for one rendition before it is promoted:
- Media playlist structure
- Every referenced segment file exists
- Total segment duration
Detects truncated encodes and missing segments.
"""

from pathlib import Path
from typing import Any

from ..shared.exceptions import PlaylistValidationError
from .hls_validator import parse_media_segments, validate_hls_media


def check_rendition_output(playlist_path: Path) -> dict[str, Any]:
    """Verify a rendition playlist and its segments.

    Args:
        playlist_path: Path to ``<label>.m3u8``

    Returns:
        Validation result dictionary (always passed)

    Raises:
        PlaylistValidationError: If the playlist is missing, malformed or
            references segments that do not exist
    """
    if not playlist_path.is_file():
        raise PlaylistValidationError(
            f"Rendition playlist not found: {playlist_path}",
            {"playlist_path": str(playlist_path)},
        )

    content = playlist_path.read_text(encoding="utf-8")
    result = validate_hls_media(content)

    segments = parse_media_segments(content)
    missing = [s["uri"] for s in segments if not (playlist_path.parent / s["uri"]).is_file()]
    result["checks"].append({
        "check": "segment_files",
        "passed": not missing,
        "message": "All segment files present" if not missing else f"Missing {len(missing)} segment file(s)",
        "details": {"missing": missing},
    })
    if missing:
        result["passed"] = False

    if not result["passed"]:
        raise PlaylistValidationError(
            f"Rendition playlist failed validation: {playlist_path.name}",
            {
                "playlist_path": str(playlist_path),
                "failed_checks": [c["check"] for c in result["checks"] if not c["passed"]],
            },
        )

    result["total_duration_seconds"] = sum_extinf_durations(content)
    return result


def sum_extinf_durations(content: str) -> float:
    """Sum all EXTINF durations in an HLS playlist."""
    return sum(s["duration"] for s in parse_media_segments(content))
