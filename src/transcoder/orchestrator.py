"""Transcode orchestration.

Owns one conversion from source file to master manifest:
1. Check the input exists and the engine is usable (nothing written yet)
2. Create the output directory and a hidden staging directory inside it
3. Encode every ladder entry into staging on a bounded worker pool
4. Fail the whole job if any rendition failed
5. Move playlists and segments into the output directory
6. Write the master manifest

The staging directory is always removed, so a failed job leaves no new
playlists, segments or manifest behind. Files from an earlier successful
run are overwritten on success. Any file a publish step displaces is parked
in staging first and put back if a later step fails, so a failed job leaves
the output directory as it found it.
"""

import os
import shutil
import tempfile
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from aws_lambda_powertools import Logger

from ..engine.ffmpeg import get_engine
from ..engine.interface import TranscodeEngine
from ..renditions.ladder import RenditionLadder, get_ladder
from ..shared.config import Settings, get_settings
from ..shared.exceptions import ConversionFailedError, OutputIOError, PlaylistValidationError
from ..shared.models import JobStatus, RenditionResult, TranscodeJob
from .manifest_builder import write_master_manifest
from .rendition_job import run_rendition_job

logger = Logger(service="transcode-orchestrator")

STAGING_PREFIX = ".staging-"
# Holds files replaced during publishing until the job succeeds
DISPLACED_DIR_NAME = ".displaced"


class TranscodeOrchestrator:
    """Converts one input into a multi-rendition HLS output tree.

    Two concurrent conversions must not share an output directory: the
    master manifest name is fixed per directory.

    Example:
        >>> orchestrator = TranscodeOrchestrator(get_engine(), get_ladder())
        >>> orchestrator.convert("/uploads/lesson.mp4", "/media/lesson")
        PosixPath('/media/lesson/master.m3u8')
    """

    def __init__(
        self,
        engine: TranscodeEngine,
        ladder: RenditionLadder | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._engine = engine
        self._settings = settings or get_settings()
        self._ladder = ladder if ladder is not None else get_ladder(self._settings)

    @property
    def ladder(self) -> RenditionLadder:
        return self._ladder

    def convert(self, input_path: str | Path, output_dir: str | Path) -> Path:
        """Produce every rendition plus the master manifest.

        Args:
            input_path: Source media file
            output_dir: Destination directory (created if absent)

        Returns:
            Path to ``<output_dir>/master.m3u8``

        Raises:
            ConversionFailedError: Input missing, output not writable, or any
                rendition failed (``failed_labels`` names them)
            EngineUnavailableError: ffmpeg cannot be located or started
        """
        input_path = Path(input_path)
        output_dir = Path(output_dir)

        if not input_path.is_file():
            raise ConversionFailedError(
                f"Input file not found: {input_path}",
                details={"input_path": str(input_path)},
            )

        # Fails before anything touches the output directory
        self._engine.ensure_available()

        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            staging_dir = Path(tempfile.mkdtemp(prefix=STAGING_PREFIX, dir=output_dir))
        except OSError as e:
            raise ConversionFailedError(
                f"Cannot create output directory {output_dir}: {e}",
                details={"output_dir": str(output_dir), "original_error": str(e)},
            ) from e

        job = TranscodeJob(
            input_path=str(input_path),
            output_dir=str(output_dir),
            renditions=self._ladder.renditions,
        )

        logger.info(
            "Starting conversion",
            extra={
                "input_path": job.input_path,
                "output_dir": job.output_dir,
                "renditions": self._ladder.labels,
            },
        )
        started = time.monotonic()
        job.status = JobStatus.RUNNING

        try:
            for result in self._run_renditions(job, staging_dir):
                job.results[result.label] = result

            if not job.all_succeeded:
                failed = job.failed_labels
                raise ConversionFailedError(
                    f"Rendition(s) failed: {', '.join(failed)}",
                    failed_labels=failed,
                    details={
                        "input_path": job.input_path,
                        "errors": {r.label: r.error for r in job.ordered_results if not r.succeeded},
                    },
                )

            publication = _Publication(output_dir, staging_dir / DISPLACED_DIR_NAME)
            try:
                try:
                    promoted = _promote_renditions(job.ordered_results, staging_dir, publication)
                    manifest_path = write_master_manifest(promoted, output_dir)
                except BaseException:
                    publication.rollback()
                    raise
            except (OutputIOError, PlaylistValidationError) as e:
                raise ConversionFailedError(
                    f"Cannot publish output: {e.message}",
                    details={"output_dir": job.output_dir, **e.details},
                ) from e

        except BaseException:
            job.status = JobStatus.FAILED
            logger.error(
                "Conversion failed",
                extra={
                    "input_path": job.input_path,
                    "output_dir": job.output_dir,
                    "failed_labels": job.failed_labels,
                    "elapsed_seconds": round(time.monotonic() - started, 3),
                },
            )
            raise
        finally:
            shutil.rmtree(staging_dir, ignore_errors=True)

        job.status = JobStatus.COMPLETED
        logger.info(
            "Conversion complete",
            extra={
                "manifest_path": str(manifest_path),
                "renditions": len(promoted),
                "elapsed_seconds": round(time.monotonic() - started, 3),
            },
        )
        return manifest_path

    def _worker_count(self, rendition_count: int) -> int:
        configured = self._settings.max_parallel_renditions or os.cpu_count() or 1
        return max(1, min(configured, rendition_count))

    def _run_renditions(self, job: TranscodeJob, staging_dir: Path) -> list[RenditionResult]:
        """Encode every rendition; results come back in ladder order."""
        workers = self._worker_count(len(job.renditions))

        if workers == 1:
            return [
                run_rendition_job(self._engine, job.input_path, rendition, staging_dir, self._settings)
                for rendition in job.renditions
            ]

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="rendition") as executor:
            futures = [
                executor.submit(
                    run_rendition_job,
                    self._engine,
                    job.input_path,
                    rendition,
                    staging_dir,
                    self._settings,
                )
                for rendition in job.renditions
            ]
            try:
                return [future.result() for future in futures]
            except BaseException:
                # Queued renditions are dropped; encodes already running are
                # not interrupted and finish or hit ENCODE_TIMEOUT_SECONDS first.
                executor.shutdown(wait=True, cancel_futures=True)
                raise


class _Publication:
    """Files moved into the output directory by one job, for rollback.

    A file already present at a destination is moved aside into
    ``displaced_dir`` before being replaced.
    """

    def __init__(self, output_dir: Path, displaced_dir: Path) -> None:
        self.output_dir = output_dir
        self.displaced_dir = displaced_dir
        self._published: list[tuple[Path, Path | None]] = []

    def publish(self, source: Path) -> Path:
        """Move ``source`` to the same name in the output directory."""
        target = self.output_dir / source.name
        displaced = None
        try:
            if target.exists():
                self.displaced_dir.mkdir(exist_ok=True)
                displaced = self.displaced_dir / source.name
                os.replace(target, displaced)
                self._published.append((target, displaced))
            os.replace(source, target)
        except OSError as e:
            raise OutputIOError(str(target), e) from e

        if displaced is None:
            self._published.append((target, None))
        return target

    def rollback(self) -> None:
        """Undo every publish, newest first."""
        for target, displaced in reversed(self._published):
            try:
                if displaced is not None:
                    os.replace(displaced, target)
                else:
                    target.unlink(missing_ok=True)
            except OSError as e:
                logger.error(
                    "Cannot restore output file",
                    extra={"path": str(target), "displaced": str(displaced), "error": str(e)},
                )
        self._published.clear()


def _promote_renditions(
    results: list[RenditionResult],
    staging_dir: Path,
    publication: _Publication,
) -> list[RenditionResult]:
    """Move staged playlists and segments into the output directory.

    Segments move before their playlist so a published playlist never
    points at a missing segment.
    """
    promoted = []
    staged_files = sorted(p.name for p in staging_dir.iterdir() if p.is_file())

    for result in results:
        rendition = result.rendition
        for name in staged_files:
            if rendition.owns_segment(name):
                publication.publish(staging_dir / name)
        playlist_path = publication.publish(Path(result.playlist_path))

        promoted.append(result.model_copy(update={
            "playlist_path": str(playlist_path),
            "segment_pattern": str(publication.output_dir / rendition.segment_pattern),
        }))

    return promoted


def convert(input_path: str | Path, output_dir: str | Path) -> Path:
    """Convert with the process-wide engine and the configured ladder."""
    return TranscodeOrchestrator(get_engine()).convert(input_path, output_dir)
