"""
┌──────────────────────────────────────────────────────────────────────────────┐
│ Cache Store - Content-addressed skew plot cache with single-flight fills     │
├──────────────────────────────────────────────────────────────────────────────┤
│ Author: Dr. Venkata Rajesh Yella | License: MIT | Version: 2025.1            │
└──────────────────────────────────────────────────────────────────────────────┘

DESCRIPTION:
    Maps a source identifier (URL or path) to a rendered skew plot on disk.

ARCHITECTURE:
    - Key: 32-bit FNV-1a hash of the identifier (stable across processes)
    - Artifact: <output_dir>/skew_<key>.<ext>; presence of the file is the
      only cache signal, there is no index
    - Download: <download_dir>/genome_<key>.fa.gz, removed once the fill ends
    - Fill: fetch -> parse -> compute -> render into a hidden temp file in the
      output directory, then os.replace() onto the final name

GUARANTEES:
    - At most one fill in flight per key; concurrent callers for the same key
      wait for and share that fill's result (or error)
    - Readers never see a half-written artifact
    - A failed fill leaves nothing under the final name
"""
# ═══════════════════════════════════════════════════════════════════════════════
# IMPORTS
# ═══════════════════════════════════════════════════════════════════════════════
import logging
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from SkewFinder.artifact_renderer import ArtifactRenderer
from SkewFinder.config.analysis import SKEW_CONFIG
from SkewFinder.errors import (
    DeadlineExceeded,
    PipelineError,
    SkewFinderError,
    SourceUnavailable,
)
from SkewFinder.sequence_source import SequenceSource, check_deadline, is_url, make_deadline
from SkewFinder.skew_engine import compute

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# TUNABLE PARAMETERS
# ═══════════════════════════════════════════════════════════════════════════════
_FNV32_OFFSET = 0x811C9DC5
_FNV32_PRIME = 0x01000193
ARTIFACT_PREFIX = 'skew_'
DOWNLOAD_TEMPLATE = 'genome_{key}.fa.gz'
TEMP_PREFIX = '.skew_'
# ═══════════════════════════════════════════════════════════════════════════════


def fnv1a_32(data: bytes) -> int:
    """
    32-bit FNV-1a hash.

    Example:
        >>> fnv1a_32(b"")
        2166136261
        >>> fnv1a_32(b"a")
        3826002220
    """
    h = _FNV32_OFFSET
    for byte in data:
        h ^= byte
        h = (h * _FNV32_PRIME) & 0xFFFFFFFF
    return h


class _Call:
    """One in-flight fill and the outcome its waiters will receive."""

    def __init__(self):
        self.done = threading.Event()
        self.result: Any = None
        self.error: Optional[BaseException] = None


class SingleFlight:
    """
    Runs at most one call per key at a time.

    Callers arriving while a call for the same key is running block until it
    finishes and receive the same result, or have the same error raised.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._calls: Dict[str, _Call] = {}

    def do(self, key: str, fn: Callable[[], Any], timeout: Optional[float] = None) -> Tuple[Any, bool]:
        """
        Run ``fn`` for ``key`` or join the call already in flight.

        Args:
            key: Deduplication key
            fn: Zero-argument callable doing the work
            timeout: Seconds a joining caller waits before giving up

        Returns:
            Tuple of (result, shared) where ``shared`` is True for joiners

        Raises:
            DeadlineExceeded: A joiner waited longer than ``timeout``
        """
        with self._lock:
            call = self._calls.get(key)
            leader = call is None
            if leader:
                call = _Call()
                self._calls[key] = call

        if not leader:
            if not call.done.wait(timeout):
                raise DeadlineExceeded(f"Timed out after {timeout}s waiting for in-flight fill of {key}")
            if call.error is not None:
                raise call.error
            return call.result, True

        try:
            call.result = fn()
        except BaseException as e:
            call.error = e
            raise
        finally:
            with self._lock:
                del self._calls[key]
            call.done.set()
        return call.result, False

    def in_flight(self, key: str) -> bool:
        with self._lock:
            return key in self._calls

    def run_if_idle(self, key: str, fn: Callable[[], Any]) -> bool:
        """
        Run ``fn`` only if no call for ``key`` is in flight.

        The lock is held while ``fn`` runs, so no call for ``key`` can start
        in the meantime. Keep ``fn`` short.

        Returns:
            True if ``fn`` ran
        """
        with self._lock:
            if key in self._calls:
                return False
            fn()
            return True


class CacheStore:
    """
    Flat, content-addressed store of rendered skew plots.

    Usage:
        store = CacheStore("plots")
        path = store.get_or_compute("https://example.org/genome.fa.gz")
        path = store.get_or_compute("https://example.org/genome.fa.gz", overwrite=True)
    """

    def __init__(
        self,
        output_dir: Union[str, Path] = SKEW_CONFIG['output_dir'],
        source: Optional[SequenceSource] = None,
        renderer: Optional[ArtifactRenderer] = None,
        download_dir: Optional[Union[str, Path]] = None,
        artifact_format: str = SKEW_CONFIG['artifact_format'],
        task_timeout: Optional[float] = SKEW_CONFIG['task_timeout'],
    ):
        """
        Args:
            output_dir: Directory holding published artifacts
            source: SequenceSource used on a cache miss
            renderer: ArtifactRenderer used on a cache miss
            download_dir: Directory for transient downloads (default: output_dir)
            artifact_format: Image format / file extension of artifacts
            task_timeout: Seconds allowed per fill (None = no deadline)
        """
        self.output_dir = Path(output_dir)
        self.download_dir = Path(download_dir) if download_dir is not None else self.output_dir
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.download_dir.mkdir(parents=True, exist_ok=True)

        self.source = source or SequenceSource()
        self.renderer = renderer or ArtifactRenderer()
        self.artifact_format = artifact_format.lstrip('.').lower()
        self.task_timeout = task_timeout
        self._flights = SingleFlight()

        logger.info(f"CacheStore initialized at {self.output_dir} (downloads: {self.download_dir})")

    @classmethod
    def from_settings(cls, settings, source: Optional[SequenceSource] = None,
                      renderer: Optional[ArtifactRenderer] = None) -> 'CacheStore':
        return cls(
            output_dir=settings.output_dir,
            source=source or SequenceSource.from_settings(settings),
            renderer=renderer,
            download_dir=settings.download_dir,
            artifact_format=settings.artifact_format,
            task_timeout=settings.task_timeout,
        )

    # ───────────────────────────────────────────────────────────────────────────
    # KEYS AND PATHS
    # ───────────────────────────────────────────────────────────────────────────
    @staticmethod
    def key(identifier: str) -> str:
        """Deterministic cache key of a source identifier."""
        return str(fnv1a_32(identifier.encode('utf-8')))

    def artifact_name(self, key: str) -> str:
        return f"{ARTIFACT_PREFIX}{key}.{self.artifact_format}"

    def artifact_path(self, key: str) -> Path:
        return self.output_dir / self.artifact_name(key)

    def download_path(self, key: str) -> Path:
        return self.download_dir / DOWNLOAD_TEMPLATE.format(key=key)

    def exists(self, key: str) -> bool:
        """True if the artifact for ``key`` has been published."""
        return self.artifact_path(key).is_file()

    # ───────────────────────────────────────────────────────────────────────────
    # LOOKUP / FILL
    # ───────────────────────────────────────────────────────────────────────────
    def get_or_compute(self, identifier: str, overwrite: bool = False) -> Path:
        """
        Return the artifact for ``identifier``, producing it on a miss.

        An ``overwrite`` caller that joins an in-flight fill which merely
        returned an already-published artifact runs a fresh fill of its own.

        Args:
            identifier: URL or local path of the genome
            overwrite: Re-run the pipeline and replace any cached artifact

        Returns:
            Path of the published artifact

        Raises:
            PipelineError: Any stage failed; ``.kind`` names the stage error
        """
        if not identifier:
            raise PipelineError(identifier, SourceUnavailable("Empty source identifier"))

        key = self.key(identifier)
        if not overwrite and self.exists(key):
            logger.info(f"Cache hit for {identifier} -> {self.artifact_name(key)}")
            return self.artifact_path(key)

        while True:
            try:
                (path, rendered), shared = self._flights.do(
                    key,
                    lambda: self._fill(identifier, key, overwrite),
                    timeout=self.task_timeout,
                )
            except PipelineError:
                raise
            except SkewFinderError as e:
                raise PipelineError(identifier, e) from e
            except Exception as e:
                logger.exception(f"Unexpected error generating skew plot for {identifier}")
                raise PipelineError(identifier, e) from e

            if overwrite and shared and not rendered:
                logger.info(f"In-flight fill for {identifier} reused the cached artifact, re-running")
                continue
            break

        if shared:
            logger.info(f"Joined in-flight fill for {identifier} -> {path.name}")
        return path

    def _fill(self, identifier: str, key: str, overwrite: bool) -> Tuple[Path, bool]:
        """Run the pipeline for ``key``; returns (artifact path, whether it was rendered now)."""
        final = self.artifact_path(key)
        # Another fill may have published while this caller queued for the key
        if not overwrite and final.is_file():
            return final, False

        deadline = make_deadline(self.task_timeout)
        download = self.download_path(key) if is_url(identifier) else None
        started = time.perf_counter()
        try:
            sequence = self.source.read(identifier, download, deadline)
            skew = compute(sequence)
            check_deadline(deadline, f"computing skew for {identifier}")
            self.renderer.render_atomic(skew, final, image_format=self.artifact_format)
        except SkewFinderError as e:
            logger.error(f"Skew pipeline failed for {identifier}: {type(e).__name__}: {e}")
            raise PipelineError(identifier, e) from e
        finally:
            if download is not None and download.exists():
                download.unlink()

        logger.info(f"Generated {final.name} for {identifier} ({len(sequence):,} bp) "
                    f"in {time.perf_counter() - started:.2f}s")
        return final, True

    # ───────────────────────────────────────────────────────────────────────────
    # MAINTENANCE
    # ───────────────────────────────────────────────────────────────────────────
    def invalidate(self, identifier: str) -> bool:
        """Delete the cached artifact of ``identifier``. Returns True if one existed."""
        path = self.artifact_path(self.key(identifier))
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.info(f"Invalidated {path.name} for {identifier}")
        return True

    def list_artifacts(self) -> List[Path]:
        """Published artifacts, sorted by name."""
        return sorted(self.output_dir.glob(f"{ARTIFACT_PREFIX}*.{self.artifact_format}"))

    def cleanup_stale(self) -> int:
        """
        Remove temp artifacts and downloads left behind by interrupted runs.

        Files belonging to a key with a fill in flight, and files that carry
        no cache key (such as batch downloads), are left alone. The in-flight
        check and the delete happen under the single-flight lock.

        Returns:
            Number of files removed
        """
        candidates = list(self.output_dir.glob(f"{TEMP_PREFIX}*"))
        candidates += list(self.download_dir.glob(DOWNLOAD_TEMPLATE.format(key='*')))
        candidates += list(self.download_dir.glob(DOWNLOAD_TEMPLATE.format(key='*') + '.part'))

        removed = 0
        for path in candidates:
            key = self._key_from_filename(path.name)
            if key is None:
                continue
            try:
                if not self._flights.run_if_idle(key, path.unlink):
                    continue
                removed += 1
            except FileNotFoundError:
                continue
        if removed:
            logger.info(f"Removed {removed} stale file(s) from {self.output_dir}")
        return removed

    @staticmethod
    def _key_from_filename(name: str) -> Optional[str]:
        """Cache key embedded in a temp artifact or download name, or None for foreign files."""
        for prefix in (TEMP_PREFIX, 'genome_'):
            if name.startswith(prefix):
                key = name[len(prefix):].split('.', 1)[0]
                return key if key.isdigit() else None
        return None
