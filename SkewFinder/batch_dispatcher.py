"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                        BATCH SKEW DISPATCHER MODULE                           ║
║        Concurrent fetch + skew computation over named genome records          ║
╚══════════════════════════════════════════════════════════════════════════════╝

MODULE: batch_dispatcher.py
AUTHOR: Dr. Venkata Rajesh Yella
VERSION: 2025.1
LICENSE: MIT

DESCRIPTION:
    Fans a batch of GenomeRecords out over a ThreadPoolExecutor, at most
    max_workers records at a time, and fans the results back in by record
    name as the tasks complete. A failing record is reported as a
    PipelineError value in the result mapping; it never aborts sibling
    records or the batch. A record running past task_timeout is reported as
    DeadlineExceeded and abandoned without joining its worker thread.

    Optionally renders each successful record to <render_dir>/<name>.<ext>.
"""

from __future__ import annotations

import logging
import os
import tempfile
import time
from collections import Counter, deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

from SkewFinder.artifact_renderer import ArtifactRenderer
from SkewFinder.config.analysis import SKEW_CONFIG
from SkewFinder.config.visualization import BATCH_PLOT_CONFIG
from SkewFinder.errors import DeadlineExceeded, PipelineError, SkewFinderError, SourceUnavailable
from SkewFinder.records import GenomeRecord
from SkewFinder.sequence_source import SequenceSource, check_deadline, is_url, make_deadline
from SkewFinder.skew_engine import compute

logger = logging.getLogger(__name__)

BatchResult = Dict[str, Union[List[int], PipelineError]]
ProgressCallback = Callable[[int, int, str], None]


def safe_filename(name: str) -> str:
    """File-system safe stem for a record name."""
    return name.replace("/", "_").replace("\\", "_")[:80]


def _validate_names(records: List[GenomeRecord]) -> None:
    duplicates = sorted(name for name, count in Counter(r.name for r in records).items() if count > 1)
    if duplicates:
        raise ValueError(f"Record names must be unique within a batch, duplicated: {', '.join(duplicates)}")


class BatchDispatcher:
    """
    Concurrent skew computation for a batch of genome records.

    Usage:
        dispatcher = BatchDispatcher(SequenceSource(), max_workers=4, task_timeout=60)
        results = dispatcher.submit([
            GenomeRecord("escherichia_coli", "data/escherichia_coli.txt"),
            GenomeRecord("bacillus_anthracis", "https://example.org/ba.fa.gz"),
        ])
        for name, outcome in results.items():
            if isinstance(outcome, PipelineError):
                print(name, "failed:", outcome.kind)
    """

    def __init__(
        self,
        source: Optional[SequenceSource] = None,
        max_workers: int = SKEW_CONFIG['max_workers'],
        task_timeout: Optional[float] = SKEW_CONFIG['task_timeout'],
        renderer: Optional[ArtifactRenderer] = None,
        render_dir: Optional[Union[str, Path]] = None,
        artifact_format: str = SKEW_CONFIG['artifact_format'],
        download_dir: Optional[Union[str, Path]] = None,
    ):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.source = source or SequenceSource()
        self.max_workers = max_workers
        self.task_timeout = task_timeout
        self.renderer = renderer
        self.render_dir = Path(render_dir) if render_dir is not None else None
        self.artifact_format = artifact_format.lstrip('.').lower()
        self.download_dir = Path(download_dir) if download_dir is not None else Path(tempfile.gettempdir())

        if self.render_dir is not None:
            self.render_dir.mkdir(parents=True, exist_ok=True)
            if self.renderer is None:
                self.renderer = ArtifactRenderer(BATCH_PLOT_CONFIG)

    @classmethod
    def from_settings(cls, settings, source: Optional[SequenceSource] = None,
                      renderer: Optional[ArtifactRenderer] = None,
                      render_dir: Optional[Union[str, Path]] = None) -> 'BatchDispatcher':
        return cls(
            source=source or SequenceSource.from_settings(settings),
            max_workers=settings.max_workers,
            task_timeout=settings.task_timeout,
            renderer=renderer,
            render_dir=render_dir,
            artifact_format=settings.artifact_format,
            download_dir=settings.download_dir,
        )

    def render_path(self, record: GenomeRecord) -> Optional[Path]:
        if self.render_dir is None:
            return None
        return self.render_dir / f"{safe_filename(record.name)}.{self.artifact_format}"

    def _validate(self, records: List[GenomeRecord]) -> None:
        """Reject batches whose names, or rendered file names, are not unique."""
        _validate_names(records)
        if self.render_dir is None:
            return
        by_stem: Dict[str, List[str]] = {}
        for record in records:
            by_stem.setdefault(safe_filename(record.name), []).append(record.name)
        clashes = sorted(", ".join(names) for names in by_stem.values() if len(names) > 1)
        if clashes:
            raise ValueError(f"Record names map to the same plot file: {'; '.join(clashes)}")

    # ───────────────────────────────────────────────────────────────────────────
    # PER-RECORD PIPELINE
    # ───────────────────────────────────────────────────────────────────────────
    def process_record(self, record: GenomeRecord) -> GenomeRecord:
        """
        Fetch, parse and compute (and optionally render) one record.

        Returns a new GenomeRecord with ``sequence`` and ``skew`` filled in;
        the input record is left unchanged.

        Raises:
            PipelineError: Any stage failed or the task deadline passed
        """
        deadline = make_deadline(self.task_timeout)
        download: Optional[Path] = None
        try:
            if is_url(record.source):
                self.download_dir.mkdir(parents=True, exist_ok=True)
                fd, name = tempfile.mkstemp(prefix=f"genome_{safe_filename(record.name)}_",
                                            suffix=".fa.gz", dir=self.download_dir)
                os.close(fd)
                download = Path(name)
            sequence = self.source.read(record.source, download, deadline)
            skew = compute(sequence)
            check_deadline(deadline, f"computing skew for {record.name}")

            target = self.render_path(record)
            if target is not None:
                self.renderer.render_atomic(skew, target, name=record.name,
                                            image_format=self.artifact_format)
                logger.info(f"  - generated plot for {record.name}")
        except SkewFinderError as e:
            raise PipelineError(record.name, e) from e
        except OSError as e:
            error = SourceUnavailable(f"Cannot stage download for {record.name}: {e}")
            raise PipelineError(record.name, error) from e
        finally:
            if download is not None and download.exists():
                download.unlink()

        return replace(record, sequence=sequence, skew=skew)

    # ───────────────────────────────────────────────────────────────────────────
    # BATCH ENTRY POINTS
    # ───────────────────────────────────────────────────────────────────────────
    def submit(
        self,
        records: Iterable[GenomeRecord],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BatchResult:
        """
        Process all records concurrently.

        At most ``max_workers`` records run at once. A record still running
        ``task_timeout`` seconds after it was started is reported as
        DeadlineExceeded and abandoned: its slot goes to the next record and
        the batch returns without joining its worker thread.

        Args:
            records: Records with unique names
            progress_callback: Optional callback(completed, total, record_name)

        Returns:
            Dict mapping record name to its skew array or its PipelineError

        Raises:
            ValueError: Two records share a name or an artifact file name
        """
        records = list(records)
        self._validate(records)
        if not records:
            return {}

        max_workers = min(self.max_workers, len(records))
        total = len(records)
        queue = deque(records)
        results: BatchResult = {}
        future_to_name: Dict[Future, str] = {}
        started_at: Dict[Future, float] = {}
        pending = set()
        failures = 0
        abandoned = 0
        started = time.perf_counter()

        logger.info(f"Dispatching {total} record(s) with {max_workers} worker(s)")

        # Sized for the whole batch so abandoned threads never starve queued
        # records; concurrency is bounded by admitting max_workers at a time
        executor = ThreadPoolExecutor(max_workers=total, thread_name_prefix="skew")
        try:
            while queue or pending:
                while queue and len(pending) < max_workers:
                    record = queue.popleft()
                    future = executor.submit(self.process_record, record)
                    future_to_name[future] = record.name
                    started_at[future] = time.monotonic()
                    pending.add(future)

                done, pending = wait(pending, timeout=self._next_expiry(pending, started_at),
                                     return_when=FIRST_COMPLETED)

                # Completion order is arbitrary; results are keyed by record name
                for future in done:
                    name = future_to_name[future]
                    results[name] = self._outcome(future, name)
                    if isinstance(results[name], PipelineError):
                        failures += 1
                    if progress_callback:
                        progress_callback(len(results), total, name)

                for future in self._expired(pending, started_at):
                    pending.discard(future)
                    name = future_to_name[future]
                    error = DeadlineExceeded(f"Record {name} still running after {self.task_timeout}s")
                    logger.warning(f"Record {name} failed: abandoning task past its deadline")
                    results[name] = PipelineError(name, error)
                    failures += 1
                    abandoned += 1
                    if progress_callback:
                        progress_callback(len(results), total, name)
        finally:
            # Workers stuck in a blocking read are not joined
            executor.shutdown(wait=not abandoned, cancel_futures=True)

        logger.info(f"Batch complete: {total - failures}/{total} succeeded "
                    f"in {time.perf_counter() - started:.2f}s")
        return results

    @staticmethod
    def _outcome(future: Future, name: str) -> Union[List[int], PipelineError]:
        try:
            return future.result().skew
        except PipelineError as e:
            logger.warning(f"Record {name} failed: {e}")
            return e
        except Exception as e:
            logger.exception(f"Unexpected error processing record {name}")
            return PipelineError(name, e)

    def _next_expiry(self, pending, started_at: Dict[Future, float]) -> Optional[float]:
        """Seconds until the earliest pending task passes its deadline."""
        if self.task_timeout is None or not pending:
            return None
        now = time.monotonic()
        return max(min(started_at[f] for f in pending) + self.task_timeout - now, 0.0)

    def _expired(self, pending, started_at: Dict[Future, float]) -> List[Future]:
        if self.task_timeout is None:
            return []
        now = time.monotonic()
        return [f for f in pending if not f.done() and now >= started_at[f] + self.task_timeout]

    def run_serial(
        self,
        records: Iterable[GenomeRecord],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BatchResult:
        """Same contract as ``submit`` but processes records one after another."""
        records = list(records)
        self._validate(records)
        total = len(records)
        results: BatchResult = {}
        for record in records:
            try:
                results[record.name] = self.process_record(record).skew
            except PipelineError as e:
                logger.warning(f"Record {record.name} failed: {e}")
                results[record.name] = e
            except Exception as e:
                logger.exception(f"Unexpected error processing record {record.name}")
                results[record.name] = PipelineError(record.name, e)
            if progress_callback:
                progress_callback(len(results), total, record.name)
        return results


def split_results(results: BatchResult):
    """Split a batch result into (successes, failures) dicts."""
    successes = {name: value for name, value in results.items() if not isinstance(value, PipelineError)}
    failures = {name: value for name, value in results.items() if isinstance(value, PipelineError)}
    return successes, failures
