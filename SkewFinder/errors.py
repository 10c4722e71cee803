"""
Error taxonomy for the skew pipeline.

Stage errors describe which step of fetch -> parse -> compute -> render
failed. ``PipelineError`` wraps whichever stage error aborted a record and
is what callers of the cache and batch layers see.
"""

from typing import Optional


class SkewFinderError(Exception):
    """Base class for all GCSkewFinder errors."""


class SourceUnavailable(SkewFinderError):
    """Source could not be fetched (network error, missing file, non-2xx response)."""


class DecodeError(SkewFinderError):
    """Stream unreadable, decompression failed, or no sequence could be extracted."""


class RenderError(SkewFinderError):
    """Artifact could not be produced or persisted."""


class DeadlineExceeded(SkewFinderError):
    """A record's task ran past its deadline."""


class PipelineError(SkewFinderError):
    """
    Aggregate error for one source identifier.

    Attributes:
        identifier: Source identifier (URL, path or record name) that failed
        cause: Stage error that aborted the pipeline
        kind: Class name of the originating stage error (e.g. 'DecodeError')
    """

    def __init__(self, identifier: str, cause: BaseException, message: Optional[str] = None):
        self.identifier = identifier
        self.cause = cause
        self.kind = type(cause).__name__
        super().__init__(message or f"{self.kind} for '{identifier}': {cause}")

    def __reduce__(self):
        return (type(self), (self.identifier, self.cause, str(self)))


def wrap_stage_error(identifier: str, error: BaseException) -> PipelineError:
    """Return ``error`` as a PipelineError, leaving existing PipelineErrors untouched."""
    if isinstance(error, PipelineError):
        return error
    return PipelineError(identifier, error)
