"""
┌──────────────────────────────────────────────────────────────────────────────┐
│ Skew Service - Request boundary for skew plot generation                     │
├──────────────────────────────────────────────────────────────────────────────┤
│ Author: Dr. Venkata Rajesh Yella | License: MIT | Version: 2025.1            │
└──────────────────────────────────────────────────────────────────────────────┘

Wires SequenceSource, CacheStore and BatchDispatcher together from one
SkewSettings object and turns pipeline failures into structured responses,
so a front end can show an error message and keep serving requests.
"""
# ═══════════════════════════════════════════════════════════════════════════════
# IMPORTS
# ═══════════════════════════════════════════════════════════════════════════════
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from SkewFinder.batch_dispatcher import BatchDispatcher, BatchResult
from SkewFinder.cache_store import CacheStore
from SkewFinder.config.analysis import SkewSettings
from SkewFinder.errors import PipelineError
from SkewFinder.records import GenomeRecord
from SkewFinder.sequence_source import SequenceSource

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# USER-FACING MESSAGES
# ═══════════════════════════════════════════════════════════════════════════════
ERROR_MESSAGES = {
    'MissingIdentifier': "You must supply a source URL or path.",
    'SourceUnavailable': "The genome source could not be downloaded or opened.",
    'DecodeError': "The genome file could not be read as (gzipped) FASTA.",
    'RenderError': "The skew plot could not be generated.",
    'DeadlineExceeded': "Generating the skew plot took too long.",
}
DEFAULT_ERROR_MESSAGE = "The skew plot could not be generated."


@dataclass
class SkewResponse:
    """
    Outcome of one request.

    Attributes:
        ok: True when an artifact is available
        artifact: Artifact file name (relative to the output directory)
        error_kind: Stage error class name when ``ok`` is False
        message: Human-readable message for display
        detail: Underlying error text, for logs / debugging
    """
    ok: bool
    artifact: Optional[str] = None
    error_kind: Optional[str] = None
    message: str = ""
    detail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SkewService:
    """
    Entry point used by the (external) web front end.

    Usage:
        service = SkewService(SkewSettings.from_mapping({'output_dir': 'plots'}))
        response = service.process_request(url, overwrite='overwrite' in query)
        if response.ok:
            img_src = f"/plots/{response.artifact}"
    """

    def __init__(self, settings: Optional[SkewSettings] = None,
                 cache: Optional[CacheStore] = None,
                 dispatcher: Optional[BatchDispatcher] = None):
        self.settings = settings or SkewSettings()
        source = SequenceSource.from_settings(self.settings)
        self.cache = cache or CacheStore.from_settings(self.settings, source=source)
        self.dispatcher = dispatcher or BatchDispatcher.from_settings(self.settings, source=source)

    @property
    def output_dir(self) -> Path:
        return self.cache.output_dir

    def process_request(self, identifier: Optional[str], overwrite: bool = False) -> SkewResponse:
        """
        Return the skew plot for ``identifier``, generating it if needed.

        Never raises for pipeline failures; they are reported in the response.
        """
        identifier = (identifier or "").strip()
        if not identifier:
            return SkewResponse(ok=False, error_kind='MissingIdentifier',
                                message=ERROR_MESSAGES['MissingIdentifier'])

        try:
            path = self.cache.get_or_compute(identifier, overwrite=overwrite)
        except PipelineError as e:
            logger.error(f"Request for {identifier} failed: {e}")
            return SkewResponse(
                ok=False,
                error_kind=e.kind,
                message=ERROR_MESSAGES.get(e.kind, DEFAULT_ERROR_MESSAGE),
                detail=str(e.cause),
            )

        return SkewResponse(ok=True, artifact=path.name, message="Resulting Skew Plot")

    def process_batch(self, records: Iterable[GenomeRecord], render: bool = False) -> BatchResult:
        """
        Compute skew arrays for a batch of named records.

        Args:
            records: Records with unique names
            render: Also write <output_dir>/<name>.<ext> for each success
        """
        if render:
            dispatcher = BatchDispatcher.from_settings(
                self.settings, source=self.dispatcher.source, render_dir=self.output_dir
            )
        else:
            dispatcher = self.dispatcher
        return dispatcher.submit(records)
