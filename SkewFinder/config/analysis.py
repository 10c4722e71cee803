"""
Analysis configuration for GCSkewFinder.

This module contains the parameters that drive the skew pipeline:
- Sequence parsing limits
- Cache / artifact locations
- Batch concurrency and per-task deadlines
- Network timeouts

LINE CAP
--------
Genomes downloaded from public mirrors can be hundreds of megabytes.
Only the first ``max_lines`` contributing (non-header, non-empty) lines are
read, which keeps memory bounded. ``None`` disables the cap.

CONCURRENCY
-----------
Batch records are processed on a ThreadPoolExecutor bounded by
``max_workers``. Each task gets its own deadline of ``task_timeout`` seconds.
"""

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

# ==================== SKEW PIPELINE PARAMETERS ====================
SKEW_CONFIG = {
    # Sequence parsing
    'max_lines': 1000,              # Contributing FASTA lines read per source (None = all)
    'read_chunk_size': 64 * 1024,   # Bytes per streamed download chunk

    # Cache layout
    'output_dir': 'plots',          # Rendered artifacts (skew_<key>.<ext>)
    'download_dir': None,           # Transient downloads; None = output_dir
    'artifact_format': 'png',       # Raster format handed to matplotlib

    # Batch dispatch
    'max_workers': 4,               # Upper bound on concurrent record tasks
    'task_timeout': 120.0,          # Seconds per record / cache population (None = no deadline)

    # Network
    'connect_timeout': 10.0,        # Seconds to establish a connection
    'read_timeout': 30.0,           # Seconds between received bytes
}


@dataclass(frozen=True)
class SkewSettings:
    """
    Explicit settings handed to every component constructor.

    Build from the module defaults with ``SkewSettings()`` or override a
    subset with ``SkewSettings.from_mapping({'max_workers': 8})``.
    """
    max_lines: Optional[int] = SKEW_CONFIG['max_lines']
    read_chunk_size: int = SKEW_CONFIG['read_chunk_size']
    output_dir: str = SKEW_CONFIG['output_dir']
    download_dir: Optional[str] = SKEW_CONFIG['download_dir']
    artifact_format: str = SKEW_CONFIG['artifact_format']
    max_workers: int = SKEW_CONFIG['max_workers']
    task_timeout: Optional[float] = SKEW_CONFIG['task_timeout']
    connect_timeout: float = SKEW_CONFIG['connect_timeout']
    read_timeout: float = SKEW_CONFIG['read_timeout']

    def __post_init__(self):
        if self.max_lines is not None and self.max_lines < 1:
            raise ValueError(f"max_lines must be positive or None, got {self.max_lines}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.task_timeout is not None and self.task_timeout <= 0:
            raise ValueError(f"task_timeout must be positive or None, got {self.task_timeout}")

    @classmethod
    def from_mapping(cls, overrides: Optional[Mapping[str, Any]] = None) -> 'SkewSettings':
        """Create settings from ``SKEW_CONFIG`` with ``overrides`` applied; unknown keys raise."""
        overrides = dict(overrides or {})
        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
        values = {name: SKEW_CONFIG[name] for name in known}
        values.update(overrides)
        return cls(**values)
