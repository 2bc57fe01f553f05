"""Transcoding engine capability.

The pipeline only talks to the external encoder through this narrow
interface, so orchestration can run against an in-process fake in tests.
"""

from dataclasses import dataclass
from typing import Protocol

from ..shared.models import EngineOperation


@dataclass(frozen=True)
class EngineRunResult:
    """Successful engine invocation."""

    operation: str
    command: list[str]
    elapsed_seconds: float


class TranscodeEngine(Protocol):
    """Runs one encode/extract operation to completion.

    Implementations must reap the underlying process on every exit path and
    leave partially written output in place for the caller.
    """

    def ensure_available(self) -> str:
        """Resolve the engine binary, raising EngineUnavailableError if missing."""
        ...

    def run(self, operation: EngineOperation, timeout: float | None = None) -> EngineRunResult:
        """Execute ``operation``.

        Raises:
            EngineUnavailableError: Binary missing or not executable
            EncodeFailedError: Non-zero exit or deadline exceeded
            OutputIOError: Output directory cannot be created
        """
        ...
