"""Unit tests for output validator module."""

from pathlib import Path

import pytest

from src.output_validator.hls_validator import (
    parse_master_playlist,
    parse_media_segments,
    validate_hls_master,
    validate_hls_media,
)
from src.output_validator.rendition_checker import check_rendition_output, sum_extinf_durations
from src.shared.exceptions import PlaylistValidationError
from src.shared.models import MasterManifestEntry


def _check(result: dict, name: str) -> dict:
    return next(c for c in result["checks"] if c["check"] == name)


class TestHLSMasterValidator:
    """Tests for HLS master playlist validation."""

    def test_validate_valid_hls_master(self, sample_hls_master: str):
        """Test validation passes for a valid master playlist."""
        result = validate_hls_master(
            content=sample_hls_master,
            expected_variants=[
                {"resolution": "640x360", "uri": "360p.m3u8"},
                {"resolution": "1280x720", "uri": "720p.m3u8"},
                {"resolution": "1920x1080", "uri": "1080p.m3u8"},
            ],
        )

        assert result["type"] == "hls_master"
        assert result["passed"] is True
        assert all(c["passed"] for c in result["checks"])

    def test_validate_hls_missing_extm3u(self):
        """Test validation fails without #EXTM3U header."""
        invalid_playlist = """
#EXT-X-STREAM-INF:BANDWIDTH=728000,RESOLUTION=640x360
360p.m3u8
        """

        result = validate_hls_master(invalid_playlist)

        assert result["passed"] is False
        assert any("EXTM3U" in c.get("message", "") for c in result["checks"])

    def test_validate_hls_missing_variants(self, sample_hls_master: str):
        """Test validation fails when an expected variant is missing."""
        result = validate_hls_master(
            content=sample_hls_master,
            expected_variants=[{"resolution": "3840x2160", "uri": "2160p.m3u8"}],
        )

        assert result["passed"] is False
        assert "2160p.m3u8@3840x2160" in _check(result, "expected_variants")["message"]

    def test_validate_hls_variants_out_of_order(self, sample_hls_master: str):
        """Test expected variants must appear in the given order."""
        result = validate_hls_master(
            content=sample_hls_master,
            expected_variants=[{"uri": "1080p.m3u8"}, {"uri": "360p.m3u8"}],
        )

        assert result["passed"] is False

    def test_validate_hls_bandwidth_order(self):
        """Test decreasing bandwidth is flagged."""
        playlist = """#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=3192000,RESOLUTION=1920x1080
1080p.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=728000,RESOLUTION=640x360
360p.m3u8
"""

        result = validate_hls_master(playlist)

        assert result["passed"] is False
        assert _check(result, "bandwidth_order")["passed"] is False

    def test_validate_hls_variant_without_uri(self):
        """Test a STREAM-INF line must be followed by a URI."""
        playlist = """#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=728000,RESOLUTION=640x360
#EXT-X-STREAM-INF:BANDWIDTH=1328000,RESOLUTION=1280x720
720p.m3u8
"""

        result = validate_hls_master(playlist)

        assert _check(result, "variant_uris")["passed"] is False

    def test_media_playlist_is_not_master(self, sample_hls_media: str):
        """Test a media playlist is reported as such."""
        result = validate_hls_master(sample_hls_media)

        assert result["passed"] is False
        assert "media playlist" in _check(result, "variant_streams")["message"]

    def test_parse_master_playlist(self, sample_hls_master: str):
        """Test parsing yields typed entries in listing order."""
        entries = parse_master_playlist(sample_hls_master)

        assert entries == [
            MasterManifestEntry(bandwidth=728000, resolution="640x360", uri="360p.m3u8"),
            MasterManifestEntry(bandwidth=1328000, resolution="1280x720", uri="720p.m3u8"),
            MasterManifestEntry(bandwidth=3192000, resolution="1920x1080", uri="1080p.m3u8"),
        ]

    def test_parse_master_with_quoted_attributes(self):
        """Test quoted attribute values containing commas are handled."""
        playlist = """#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=1328000,CODECS="avc1.4d401f,mp4a.40.2",RESOLUTION=1280x720
720p.m3u8
"""

        entries = parse_master_playlist(playlist)

        assert entries[0].resolution == "1280x720"
        assert entries[0].bandwidth == 1328000


class TestHLSMediaValidator:
    """Tests for HLS media playlist validation."""

    def test_validate_valid_media(self, sample_hls_media: str):
        """Test a complete VOD playlist passes."""
        result = validate_hls_media(sample_hls_media)

        assert result["passed"] is True
        segments = _check(result, "segments")["details"]
        assert segments["count"] == 3
        assert segments["total_duration"] == pytest.approx(17.5)
        assert _check(result, "target_duration")["details"]["target_duration"] == 6

    def test_missing_endlist_fails(self, sample_hls_media: str):
        """Test an unfinished playlist fails."""
        result = validate_hls_media(sample_hls_media.replace("#EXT-X-ENDLIST\n", ""))

        assert result["passed"] is False
        assert _check(result, "endlist")["passed"] is False

    def test_missing_target_duration_fails(self, sample_hls_media: str):
        """Test TARGETDURATION is required."""
        result = validate_hls_media(sample_hls_media.replace("#EXT-X-TARGETDURATION:6\n", ""))

        assert result["passed"] is False

    def test_no_segments_fails(self):
        """Test a playlist must list at least one segment."""
        result = validate_hls_media("#EXTM3U\n#EXT-X-TARGETDURATION:6\n#EXT-X-ENDLIST\n")

        assert _check(result, "segments")["passed"] is False

    def test_parse_media_segments(self, sample_hls_media: str):
        """Test EXTINF durations and URIs are paired."""
        segments = parse_media_segments(sample_hls_media)

        assert segments[0] == {"duration": 6.0, "uri": "720p_000.ts"}
        assert segments[-1] == {"duration": 5.5, "uri": "720p_002.ts"}

    def test_sum_extinf_durations(self, sample_hls_media: str):
        """Test total duration of all segments."""
        assert sum_extinf_durations(sample_hls_media) == pytest.approx(17.5)


class TestRenditionChecker:
    """Tests for on-disk rendition verification."""

    def _write(self, directory: Path, content: str, segments: list[str]) -> Path:
        playlist = directory / "720p.m3u8"
        playlist.write_text(content)
        for name in segments:
            (directory / name).write_bytes(b"\x47" * 188)
        return playlist

    def test_complete_rendition_passes(self, tmp_path: Path, sample_hls_media: str):
        """Test playlist plus all segments passes and reports duration."""
        playlist = self._write(tmp_path, sample_hls_media, ["720p_000.ts", "720p_001.ts", "720p_002.ts"])

        result = check_rendition_output(playlist)

        assert result["passed"] is True
        assert result["total_duration_seconds"] == pytest.approx(17.5)
        assert _check(result, "segment_files")["passed"] is True

    def test_missing_segment_raises(self, tmp_path: Path, sample_hls_media: str):
        """Test a referenced segment that is not on disk."""
        playlist = self._write(tmp_path, sample_hls_media, ["720p_000.ts", "720p_002.ts"])

        with pytest.raises(PlaylistValidationError) as exc_info:
            check_rendition_output(playlist)

        assert exc_info.value.details["failed_checks"] == ["segment_files"]

    def test_missing_playlist_raises(self, tmp_path: Path):
        """Test an absent playlist file."""
        with pytest.raises(PlaylistValidationError, match="not found"):
            check_rendition_output(tmp_path / "720p.m3u8")

    def test_malformed_playlist_raises(self, tmp_path: Path):
        """Test a playlist without header."""
        playlist = self._write(tmp_path, "not a playlist\n", [])

        with pytest.raises(PlaylistValidationError) as exc_info:
            check_rendition_output(playlist)

        assert exc_info.value.error_code == "PLAYLIST_VALIDATION_ERROR"
