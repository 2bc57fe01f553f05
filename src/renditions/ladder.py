"""Rendition ladder configuration.

Defines the ordered set of resolution/bitrate variants produced for every
conversion. The ladder is ordered by ascending video bitrate and that order
is the order renditions appear in the master manifest, so players see the
cheapest variant first.

Key rules enforced at construction:
- At least one rendition
- Labels are unique (they name playlists and segments on disk)
- Bitrates parse to positive values and never decrease down the ladder
"""

from collections import Counter
from collections.abc import Iterable, Iterator
from typing import Any, overload

from pydantic import ValidationError

from ..shared.config import Settings, get_settings
from ..shared.exceptions import LadderConfigurationError
from ..shared.models import RenditionSpec, parse_bitrate

__all__ = ["RenditionLadder", "DEFAULT_LADDER", "get_ladder", "parse_bitrate"]


class RenditionLadder:
    """Immutable, validated sequence of RenditionSpec.

    Construction either yields a complete ladder or raises
    LadderConfigurationError; a ladder is never partially loaded.

    Example:
        >>> ladder = RenditionLadder([
        ...     {"label": "360p", "width": 640, "height": 360,
        ...      "video_bitrate": "600k", "audio_bitrate": "128k"},
        ... ])
        >>> ladder.labels
        ['360p']
    """

    def __init__(self, renditions: Iterable[RenditionSpec | dict[str, Any]]) -> None:
        specs = tuple(_coerce_spec(entry, index) for index, entry in enumerate(renditions))
        _validate_ladder(specs)
        self._renditions = specs

    @overload
    def __getitem__(self, index: int) -> RenditionSpec: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[RenditionSpec, ...]: ...

    def __getitem__(self, index: int | slice) -> RenditionSpec | tuple[RenditionSpec, ...]:
        return self._renditions[index]

    def __iter__(self) -> Iterator[RenditionSpec]:
        return iter(self._renditions)

    def __len__(self) -> int:
        return len(self._renditions)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RenditionLadder):
            return NotImplemented
        return self._renditions == other._renditions

    def __repr__(self) -> str:
        return f"RenditionLadder({', '.join(self.labels)})"

    @property
    def labels(self) -> list[str]:
        return [r.label for r in self._renditions]

    @property
    def renditions(self) -> list[RenditionSpec]:
        return list(self._renditions)


def _coerce_spec(entry: RenditionSpec | dict[str, Any], index: int) -> RenditionSpec:
    """Turn a raw ladder entry into a RenditionSpec."""
    if isinstance(entry, RenditionSpec):
        return entry
    try:
        return RenditionSpec.model_validate(entry)
    except ValidationError as e:
        raise LadderConfigurationError(
            f"Invalid rendition at position {index}",
            {
                "index": index,
                "label": entry.get("label") if isinstance(entry, dict) else None,
                "errors": [
                    {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                    for err in e.errors()
                ],
            },
        ) from e


def _validate_ladder(specs: tuple[RenditionSpec, ...]) -> None:
    """Check ladder-wide rules that a single entry cannot."""
    if not specs:
        raise LadderConfigurationError("Rendition ladder must contain at least one rendition")

    counts = Counter(s.label for s in specs)
    duplicates = sorted(label for label, count in counts.items() if count > 1)
    if duplicates:
        raise LadderConfigurationError(
            f"Duplicate rendition labels: {', '.join(duplicates)}",
            {"duplicate_labels": duplicates},
        )

    for previous, current in zip(specs, specs[1:]):
        if current.video_bitrate_bps < previous.video_bitrate_bps:
            raise LadderConfigurationError(
                f"Ladder must be ordered by ascending video bitrate: "
                f"{current.label} ({current.video_bitrate}) follows {previous.label} ({previous.video_bitrate})",
                {"label": current.label, "previous_label": previous.label},
            )
        if current.bandwidth < previous.bandwidth:
            raise LadderConfigurationError(
                f"Total bandwidth of {current.label} ({current.bandwidth}) is lower than "
                f"{previous.label} ({previous.bandwidth})",
                {"label": current.label, "previous_label": previous.label},
            )


# =============================================================================
# Default Ladder - H.264/AAC, 360p to 1080p
# =============================================================================

DEFAULT_LADDER = RenditionLadder([
    # 360p - Mobile/Poor Connection
    RenditionSpec(
        label="360p",
        width=640,
        height=360,
        video_bitrate="600k",
        audio_bitrate="128k",
    ),
    # 720p - Tablet/Laptop
    RenditionSpec(
        label="720p",
        width=1280,
        height=720,
        video_bitrate="1200k",
        audio_bitrate="128k",
    ),
    # 1080p - Desktop/TV
    RenditionSpec(
        label="1080p",
        width=1920,
        height=1080,
        video_bitrate="3000k",
        audio_bitrate="192k",
    ),
])


def get_ladder(settings: Settings | None = None) -> RenditionLadder:
    """Build the ladder for the current configuration.

    Uses RENDITION_LADDER when set, otherwise DEFAULT_LADDER. Entries that
    do not name a segment duration get the configured SEGMENT_SECONDS.

    Args:
        settings: Settings to read (defaults to the cached process settings)

    Returns:
        Validated RenditionLadder

    Raises:
        LadderConfigurationError: If the configured ladder is invalid
    """
    settings = settings or get_settings()

    if settings.rendition_ladder is not None:
        entries = [dict(entry) for entry in settings.rendition_ladder]
    else:
        entries = [spec.model_dump(exclude={"segment_seconds"}) for spec in DEFAULT_LADDER]

    for entry in entries:
        entry.setdefault("segment_seconds", settings.segment_seconds)

    return RenditionLadder(entries)
