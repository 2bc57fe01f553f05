"""ffmpeg process adapter.

Executes EngineOperation objects as ffmpeg subprocesses:
- Resolves the binary once and reuses the binding for the process lifetime
- Waits for completion without polling progress
- Kills and reaps the process on timeout, error or interruption
- Leaves partial output in place for the caller
"""

import shlex
import shutil
import subprocess
import threading
import time
from functools import lru_cache
from pathlib import Path

from aws_lambda_powertools import Logger

from ..shared.config import Settings, get_settings
from ..shared.exceptions import EncodeFailedError, EngineUnavailableError, ExitInfo, OutputIOError
from ..shared.models import EngineOperation
from .interface import EngineRunResult

logger = Logger(service="transcode-engine")

# Lines of ffmpeg stderr kept on failure
STDERR_TAIL_LINES = 20


class FFmpegEngine:
    """TranscodeEngine backed by the ffmpeg command line tool.

    Safe to share between threads: the only shared state is the resolved
    binary path, written once under a lock.
    """

    def __init__(self, binary: str = "ffmpeg", default_timeout: float | None = None) -> None:
        """Initialize the engine.

        Args:
            binary: Executable name (looked up on PATH) or path
            default_timeout: Deadline in seconds applied when run() gets none
        """
        self._binary = binary
        self._default_timeout = default_timeout
        self._resolved_binary: str | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "FFmpegEngine":
        settings = settings or get_settings()
        return cls(binary=settings.ffmpeg_path, default_timeout=settings.encode_timeout_seconds)

    @property
    def binary(self) -> str:
        return self._binary

    def ensure_available(self) -> str:
        """Resolve the configured binary to an executable path.

        Returns:
            Absolute path of the ffmpeg executable

        Raises:
            EngineUnavailableError: If the binary cannot be found or executed
        """
        with self._lock:
            if self._resolved_binary is None:
                resolved = shutil.which(self._binary)
                if resolved is None:
                    raise EngineUnavailableError(self._binary, "not found or not executable")
                self._resolved_binary = resolved
                logger.info("Resolved ffmpeg binary", extra={"binary": resolved})
            return self._resolved_binary

    def build_command(self, operation: EngineOperation) -> list[str]:
        """Assemble the full argv for an operation."""
        return [
            self.ensure_available(),
            "-hide_banner",
            "-nostdin",
            "-y",
            "-i", operation.input_path,
            *operation.output_args,
            operation.output_path,
        ]

    def run(self, operation: EngineOperation, timeout: float | None = None) -> EngineRunResult:
        """Run one ffmpeg invocation to completion.

        Args:
            operation: Operation to execute
            timeout: Deadline in seconds (defaults to the engine's default)

        Returns:
            EngineRunResult on exit code 0

        Raises:
            EngineUnavailableError: Binary missing or cannot be started
            EncodeFailedError: Non-zero exit or deadline exceeded
            OutputIOError: Output directory cannot be created
        """
        command = self.build_command(operation)
        timeout = timeout if timeout is not None else self._default_timeout

        output_dir = Path(operation.output_path).parent
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputIOError(str(output_dir), e) from e

        logger.info(
            "Starting ffmpeg",
            extra={"operation": operation.name, "input_path": operation.input_path, "output_path": operation.output_path},
        )
        logger.debug("ffmpeg command", extra={"command": shlex.join(command)})

        started = time.monotonic()
        try:
            process = subprocess.Popen(  # nosec B603
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except OSError as e:
            raise EngineUnavailableError(command[0], str(e)) from e

        timed_out = False
        stderr = ""
        try:
            try:
                _, stderr = process.communicate(timeout=timeout)
            except subprocess.TimeoutExpired:
                timed_out = True
                process.kill()
                _, stderr = process.communicate()
        finally:
            # Reached on KeyboardInterrupt/cancellation as well
            if process.poll() is None:
                process.kill()
                process.wait()

        elapsed = time.monotonic() - started

        if timed_out or process.returncode != 0:
            exit_info = ExitInfo(
                command=command,
                return_code=None if timed_out else process.returncode,
                stderr_tail=_tail(stderr or ""),
                timed_out=timed_out,
            )
            logger.error(
                "ffmpeg failed",
                extra={
                    "operation": operation.name,
                    "return_code": exit_info.return_code,
                    "timed_out": timed_out,
                    "timeout_seconds": timeout,
                    "elapsed_seconds": round(elapsed, 3),
                    "stderr_tail": exit_info.stderr_tail,
                },
            )
            raise EncodeFailedError(exit_info, label=operation.name)

        logger.info(
            "ffmpeg finished",
            extra={"operation": operation.name, "elapsed_seconds": round(elapsed, 3)},
        )
        return EngineRunResult(operation=operation.name, command=command, elapsed_seconds=elapsed)


def _tail(stderr: str, lines: int = STDERR_TAIL_LINES) -> str:
    """Keep the last lines of ffmpeg stderr, which hold the actual error."""
    return "\n".join(stderr.strip().splitlines()[-lines:])


@lru_cache(maxsize=1)
def get_engine() -> FFmpegEngine:
    """Get the process-wide engine built from settings.

    The binary is resolved on first use and the binding is kept for the
    lifetime of the process.
    """
    return FFmpegEngine.from_settings()


def clear_engine_cache() -> None:
    """Drop the cached engine (for tests that change FFMPEG_PATH)."""
    get_engine.cache_clear()
