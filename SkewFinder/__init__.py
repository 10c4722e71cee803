"""
SkewFinder package for GCSkewFinder.

Cumulative G-C skew curves for DNA sequences, cached as rendered plots and
computable for whole batches of genomes concurrently:

- SequenceSource   – URL / local path fetch, gzip sniffing, FASTA parsing
- skew_engine      – compute(sequence) -> skew array, minimum-skew helpers
- ArtifactRenderer – matplotlib (Agg) skew plot writer
- CacheStore       – FNV-1a keyed plot cache with single-flight fills
- BatchDispatcher  – bounded thread-pool fan-out / fan-in over GenomeRecords
- SkewService      – request boundary returning structured responses
- summarize_batch  – pandas summary of a batch result
"""

from SkewFinder.errors import (
    DeadlineExceeded,
    DecodeError,
    PipelineError,
    RenderError,
    SkewFinderError,
    SourceUnavailable,
)
from SkewFinder.records import GenomeRecord
from SkewFinder.skew_engine import compute, minimum_skew_positions, skew_extremes
from SkewFinder.sequence_source import SequenceSource, read_fasta
from SkewFinder.artifact_renderer import ArtifactRenderer
from SkewFinder.cache_store import CacheStore, SingleFlight
from SkewFinder.batch_dispatcher import BatchDispatcher
from SkewFinder.batch_summary import summarize_batch
from SkewFinder.skew_service import SkewResponse, SkewService
from SkewFinder.config.analysis import SKEW_CONFIG, SkewSettings

__version__ = '2025.1'

__all__ = [
    'ArtifactRenderer',
    'BatchDispatcher',
    'CacheStore',
    'DeadlineExceeded',
    'DecodeError',
    'GenomeRecord',
    'PipelineError',
    'RenderError',
    'SKEW_CONFIG',
    'SequenceSource',
    'SingleFlight',
    'SkewFinderError',
    'SkewResponse',
    'SkewService',
    'SkewSettings',
    'SourceUnavailable',
    'compute',
    'minimum_skew_positions',
    'read_fasta',
    'skew_extremes',
    'summarize_batch',
]
