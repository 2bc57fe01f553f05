"""HLS playlist validation utilities.

Validates HLS (HTTP Live Streaming) output conformance:
- Master playlist structure and variant ordering
- Media playlist structure
- Segment references
"""

import re
from typing import Any

from ..shared.models import MasterManifestEntry


def validate_hls_master(
    content: str,
    expected_variants: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Validate HLS master playlist structure.

    Checks:
    - Valid #EXTM3U header
    - STREAM-INF entries, each followed by a URI
    - Bandwidth never decreases from one variant to the next
    - Expected variants present, in order

    Args:
        content: Master playlist content (.m3u8)
        expected_variants: List of expected variant configs
            [{"resolution": "1920x1080", "uri": "1080p.m3u8"}, ...]

    Returns:
        Validation result dictionary

    Example:
        >>> with open("master.m3u8") as f:
        ...     result = validate_hls_master(f.read())
        >>> print(result["passed"])
        True
    """
    result: dict[str, Any] = {
        "type": "hls_master",
        "passed": True,
        "checks": [],
    }

    lines = content.strip().split("\n")

    # Check 1: EXTM3U header
    if not lines or not lines[0].startswith("#EXTM3U"):
        result["passed"] = False
        result["checks"].append({
            "check": "extm3u_header",
            "passed": False,
            "message": "Missing #EXTM3U header",
        })
        return result

    result["checks"].append({
        "check": "extm3u_header",
        "passed": True,
        "message": "#EXTM3U header present",
    })

    # Check 2: Parse variant streams
    variants = _parse_stream_inf(content)
    if variants:
        message = f"Found {len(variants)} variant stream(s)"
    elif any(line.startswith("#EXTINF:") for line in lines):
        message = "No variant streams: this is a media playlist, not a master playlist"
    else:
        message = "No variant streams found"

    result["checks"].append({
        "check": "variant_streams",
        "passed": len(variants) > 0,
        "message": message,
        "details": variants,
    })

    if not variants:
        result["passed"] = False
        return result

    # Check 3: Every variant has a URI
    missing_uri = [i for i, v in enumerate(variants) if not v["uri"] or v["uri"].startswith("#")]
    result["checks"].append({
        "check": "variant_uris",
        "passed": not missing_uri,
        "message": "All variants have a URI" if not missing_uri else f"Variants without URI: {missing_uri}",
    })
    if missing_uri:
        result["passed"] = False

    # Check 4: Ascending bandwidth
    bandwidths = [v["bandwidth"] for v in variants]
    ordered = all(a <= b for a, b in zip(bandwidths, bandwidths[1:]))
    result["checks"].append({
        "check": "bandwidth_order",
        "passed": ordered,
        "message": "Bandwidth is non-decreasing" if ordered else f"Bandwidth out of order: {bandwidths}",
    })
    if not ordered:
        result["passed"] = False

    # Check 5: Validate expected variants if provided
    if expected_variants:
        missing = _check_expected_variants(variants, expected_variants)
        if missing:
            result["passed"] = False
            result["checks"].append({
                "check": "expected_variants",
                "passed": False,
                "message": f"Missing expected variants: {missing}",
            })
        else:
            result["checks"].append({
                "check": "expected_variants",
                "passed": True,
                "message": "All expected variants present",
            })

    return result


def validate_hls_media(content: str) -> dict[str, Any]:
    """Validate HLS media playlist (segment list).

    Checks:
    - Valid #EXTM3U header
    - TARGET-DURATION tag
    - EXTINF entries for segments
    - ENDLIST tag (for VOD)

    Args:
        content: Media playlist content

    Returns:
        Validation result dictionary
    """
    result: dict[str, Any] = {
        "type": "hls_media",
        "passed": True,
        "checks": [],
    }

    lines = content.strip().split("\n")

    # Check 1: EXTM3U header
    if not lines or not lines[0].startswith("#EXTM3U"):
        result["passed"] = False
        result["checks"].append({
            "check": "extm3u_header",
            "passed": False,
            "message": "Missing #EXTM3U header",
        })
        return result

    result["checks"].append({
        "check": "extm3u_header",
        "passed": True,
        "message": "#EXTM3U header present",
    })

    # Check 2: Target duration
    target_duration = None
    for line in lines:
        if line.startswith("#EXT-X-TARGETDURATION:"):
            try:
                target_duration = int(line.split(":")[1])
            except ValueError:
                target_duration = None
            break

    result["checks"].append({
        "check": "target_duration",
        "passed": target_duration is not None,
        "message": f"Target duration: {target_duration}s" if target_duration else "Missing target duration",
        "details": {"target_duration": target_duration},
    })

    if target_duration is None:
        result["passed"] = False

    # Check 3: Count segments
    segments = parse_media_segments(content)
    result["checks"].append({
        "check": "segments",
        "passed": len(segments) > 0,
        "message": f"Found {len(segments)} segment(s)",
        "details": {
            "count": len(segments),
            "total_duration": sum(s["duration"] for s in segments),
            "uris": [s["uri"] for s in segments],
        },
    })

    if not segments:
        result["passed"] = False

    # Check 4: ENDLIST for VOD
    has_endlist = any(line.startswith("#EXT-X-ENDLIST") for line in lines)
    result["checks"].append({
        "check": "endlist",
        "passed": has_endlist,
        "message": "VOD playlist complete" if has_endlist else "Missing ENDLIST (incomplete encode?)",
    })

    if not has_endlist:
        result["passed"] = False

    return result


def parse_master_playlist(content: str) -> list[MasterManifestEntry]:
    """Parse variant streams of a master playlist in listing order."""
    return [
        MasterManifestEntry(bandwidth=v["bandwidth"], resolution=v["resolution"], uri=v["uri"])
        for v in _parse_stream_inf(content)
    ]


def parse_media_segments(content: str) -> list[dict[str, Any]]:
    """Parse EXTINF entries from media playlist."""
    segments = []
    lines = [line.strip() for line in content.strip().split("\n")]

    for i, line in enumerate(lines):
        if line.startswith("#EXTINF:"):
            # Format: #EXTINF:6.000,
            duration_str = line.split(":", 1)[1].split(",")[0]
            try:
                duration = float(duration_str)
            except ValueError:
                duration = 0.0

            # Get segment URI from next line
            uri = lines[i + 1] if i + 1 < len(lines) else ""

            segments.append({
                "duration": duration,
                "uri": uri,
            })

    return segments


def _parse_stream_inf(content: str) -> list[dict[str, Any]]:
    """Parse EXT-X-STREAM-INF entries from master playlist."""
    variants = []
    lines = [line.strip() for line in content.strip().split("\n")]

    for i, line in enumerate(lines):
        if line.startswith("#EXT-X-STREAM-INF:"):
            attrs = _parse_attributes(line.split(":", 1)[1])

            # Get the URI from next line
            uri = lines[i + 1] if i + 1 < len(lines) else ""

            variants.append({
                "bandwidth": int(attrs.get("BANDWIDTH", 0)),
                "resolution": attrs.get("RESOLUTION", ""),
                "uri": uri,
            })

    return variants


def _parse_attributes(attr_string: str) -> dict[str, str]:
    """Parse HLS attribute string into dictionary.

    Handles quoted values and comma-separated attributes.
    """
    attrs = {}

    # Regex to match KEY=VALUE or KEY="VALUE"
    pattern = r'([A-Z-]+)=("[^"]*"|[^,]*)'

    for match in re.finditer(pattern, attr_string):
        key = match.group(1)
        value = match.group(2).strip('"')
        attrs[key] = value

    return attrs


def _check_expected_variants(
    actual: list[dict[str, Any]],
    expected: list[dict[str, Any]],
) -> list[str]:
    """Check that expected variants appear, in the given order.

    Returns list of missing variants.
    """
    missing = []
    position = 0

    for exp in expected:
        found = False
        for offset, act in enumerate(actual[position:]):
            if exp.get("resolution") and exp["resolution"] != act.get("resolution"):
                continue
            if exp.get("uri") and exp["uri"] != act.get("uri"):
                continue
            found = True
            position += offset + 1
            break

        if not found:
            missing.append(f"{exp.get('uri', 'unknown')}@{exp.get('resolution', 'unknown')}")

    return missing
