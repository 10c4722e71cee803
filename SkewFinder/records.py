"""
GenomeRecord - one named unit of batch work.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class GenomeRecord:
    """
    A named genome travelling through the batch pipeline.

    Attributes:
        name: Record name, unique within a batch (also the batch artifact stem)
        source: URL or local path the sequence is read from
        sequence: Parsed sequence, empty until fetched
        skew: Cumulative skew array, empty until computed
    """
    name: str
    source: str
    sequence: str = ""
    skew: List[int] = field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.sequence)
