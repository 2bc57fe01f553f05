"""Custom exception hierarchy for the transcoding pipeline.

All pipeline-specific exceptions inherit from TranscodingPipelineError,
enabling consistent error handling and structured error responses.

Exception hierarchy:
    TranscodingPipelineError (base)
    ├── LadderConfigurationError
    ├── EngineUnavailableError
    ├── EncodeFailedError
    ├── OutputIOError
    ├── UnsupportedAudioFormatError
    ├── PlaylistValidationError
    └── ConversionFailedError
"""

from dataclasses import asdict, dataclass
from typing import Any


class TranscodingPipelineError(Exception):
    """Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error code for metrics/filtering
        details: Additional context as key-value pairs
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize pipeline error.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (e.g., 'ENCODE_FAILED')
            details: Additional context for debugging
        """
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for JSON serialization.

        Returns:
            Dictionary with error_code, error_message, and details.
            Note: Uses 'error_message' instead of 'message' to avoid conflicts
            with Python's logging module which reserves 'message' internally.
        """
        return {
            "error_code": self.error_code,
            "error_message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.error_code!r}, {self.message!r})"


@dataclass(frozen=True)
class ExitInfo:
    """How an engine invocation ended."""

    command: list[str]
    return_code: int | None
    stderr_tail: str = ""
    timed_out: bool = False


class LadderConfigurationError(TranscodingPipelineError):
    """Raised when a rendition ladder fails validation at load time.

    This covers:
    - Empty ladder
    - Duplicate labels
    - Non-positive dimensions, bitrates or segment durations
    - Bitrates out of ascending order
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "LADDER_CONFIGURATION_ERROR", details)


class EngineUnavailableError(TranscodingPipelineError):
    """Raised when the ffmpeg binary cannot be located or started.

    Fatal: nothing is retried and no output is produced.
    """

    def __init__(self, binary: str, reason: str) -> None:
        details = {"binary": binary, "reason": reason}
        super().__init__(f"Transcoding engine unavailable ({binary}): {reason}", "ENGINE_UNAVAILABLE", details)
        self.binary = binary


class EncodeFailedError(TranscodingPipelineError):
    """Raised when an ffmpeg process exits non-zero or overruns its deadline."""

    def __init__(self, exit_info: ExitInfo, label: str | None = None) -> None:
        """Initialize encode failure.

        Args:
            exit_info: Exit status and stderr tail of the failed process
            label: Rendition label or operation name, when known
        """
        if exit_info.timed_out:
            reason = "timed out"
        else:
            reason = f"exited with code {exit_info.return_code}"
        target = f" for {label}" if label else ""
        details = {"label": label, **asdict(exit_info)}
        super().__init__(f"ffmpeg {reason}{target}", "ENCODE_FAILED", details)
        self.exit_info = exit_info
        self.label = label


class OutputIOError(TranscodingPipelineError):
    """Raised when an output directory or file cannot be created or written."""

    def __init__(self, path: str, original_error: OSError) -> None:
        details = {
            "path": path,
            "original_error": str(original_error),
            "original_error_type": type(original_error).__name__,
        }
        super().__init__(f"Cannot write output at {path}: {original_error}", "OUTPUT_IO_ERROR", details)
        self.path = path
        self.original_error = original_error


class UnsupportedAudioFormatError(TranscodingPipelineError):
    """Raised before any engine call when an audio format is not supported."""

    def __init__(self, requested: str, supported: list[str]) -> None:
        details = {"requested_format": requested, "supported_formats": supported}
        super().__init__(
            f"Unsupported audio format {requested!r}; expected one of {', '.join(supported)}",
            "UNSUPPORTED_AUDIO_FORMAT",
            details,
        )


class PlaylistValidationError(TranscodingPipelineError):
    """Raised when an encoded rendition playlist does not pass validation."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "PLAYLIST_VALIDATION_ERROR", details)


class ConversionFailedError(TranscodingPipelineError):
    """Raised when a conversion as a whole cannot complete.

    Carries the labels of every rendition that failed so callers can report
    them; an empty list means the job failed before any rendition ran.
    """

    def __init__(
        self,
        message: str,
        failed_labels: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        error_details = dict(details or {})
        error_details["failed_labels"] = list(failed_labels or [])
        super().__init__(message, "CONVERSION_FAILED", error_details)
        self.failed_labels = list(failed_labels or [])
