"""Master manifest builder.

Assembles the HLS master playlist that lets a player pick a rendition:

    #EXTM3U
    #EXT-X-STREAM-INF:BANDWIDTH=<int>,RESOLUTION=<W>x<H>
    <label>.m3u8

Entries follow ladder order. The builder trusts that referenced playlists
exist; verification happens per rendition before this step. The rendered
text is checked against the master playlist rules before it is written.
"""

import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from aws_lambda_powertools import Logger

from ..output_validator.hls_validator import validate_hls_master
from ..shared.exceptions import OutputIOError, PlaylistValidationError
from ..shared.models import MasterManifestEntry, RenditionResult

logger = Logger(service="manifest-builder")

MASTER_MANIFEST_NAME = "master.m3u8"


def build_manifest_entries(results: Iterable[RenditionResult]) -> list[MasterManifestEntry]:
    """Turn rendition results into manifest entries.

    Only succeeded renditions are listed; input order is preserved.
    """
    return [
        MasterManifestEntry(
            bandwidth=result.rendition.bandwidth,
            resolution=result.rendition.resolution,
            uri=Path(result.playlist_path).name,
        )
        for result in results
        if result.succeeded
    ]


def render_master_manifest(entries: Iterable[MasterManifestEntry]) -> str:
    """Render manifest text. Same entries always give the same bytes."""
    lines = ["#EXTM3U"]
    for entry in entries:
        lines.append(f"#EXT-X-STREAM-INF:BANDWIDTH={entry.bandwidth},RESOLUTION={entry.resolution}")
        lines.append(entry.uri)
    return "\n".join(lines) + "\n"


def write_master_manifest(results: Iterable[RenditionResult], output_dir: Path) -> Path:
    """Write ``master.m3u8`` into ``output_dir``, replacing any previous one.

    The file is written next to its destination and renamed over it, so a
    reader never sees a half-written manifest.

    Args:
        results: Rendition results in ladder order
        output_dir: Directory that holds the rendition playlists

    Returns:
        Path of the written master manifest

    Raises:
        PlaylistValidationError: If the rendered manifest fails validation
        OutputIOError: If the manifest cannot be written
    """
    entries = build_manifest_entries(results)
    content = render_master_manifest(entries)
    manifest_path = output_dir / MASTER_MANIFEST_NAME

    check = validate_hls_master(
        content,
        expected_variants=[{"resolution": e.resolution, "uri": e.uri} for e in entries],
    )
    if not check["passed"]:
        raise PlaylistValidationError(
            f"Master manifest failed validation: {manifest_path}",
            {
                "manifest_path": str(manifest_path),
                "failed_checks": [c["check"] for c in check["checks"] if not c["passed"]],
            },
        )

    try:
        fd, tmp_name = tempfile.mkstemp(prefix=".master-", suffix=".m3u8", dir=output_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                f.write(content)
            # mkstemp creates 0600 files
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, manifest_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as e:
        raise OutputIOError(str(manifest_path), e) from e

    logger.info(
        "Master manifest written",
        extra={"manifest_path": str(manifest_path), "variants": [e.uri for e in entries]},
    )
    return manifest_path
