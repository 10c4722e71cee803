"""
Shared fixtures and test doubles for the GCSkewFinder test suite.
"""

import gzip
import sys
import threading
import time
from pathlib import Path

import pytest
import requests

# Add parent directory to path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from SkewFinder.artifact_renderer import ArtifactRenderer
from SkewFinder.errors import RenderError
from SkewFinder.sequence_source import SequenceSource, check_deadline


ECOLI_FASTA = ">escherichia_coli test fragment\nAGCTTTTCATTCTGACTGCAACGGGCAATATGTC\nTCTGTGTGGATTAAAAAAAGAGTGTCTGATAGCAGC\n"


def write_fasta(path: Path, sequence_lines, header=">test genome", compress=False) -> Path:
    body = "\n".join([header] + list(sequence_lines)) + "\n"
    data = body.encode("utf-8")
    if compress:
        data = gzip.compress(data)
    path.write_bytes(data)
    return path


class FakeResponse:
    """Minimal stand-in for a streamed ``requests.Response``."""

    def __init__(self, body: bytes, status_code: int = 200):
        self.body = body
        self.status_code = status_code

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.body), chunk_size):
            yield self.body[i:i + chunk_size]


class CountingSource(SequenceSource):
    """
    SequenceSource returning canned sequences and counting fetches.

    ``sequences`` maps identifier -> sequence, or -> exception instance to raise.
    Set ``gate`` to block reads until it is released.
    """

    def __init__(self, sequences, gate: threading.Event = None, delay: float = 0.0):
        super().__init__(max_lines=None)
        self.sequences = dict(sequences)
        self.gate = gate
        self.delay = delay
        self.entered = threading.Event()
        self.calls = []
        self._lock = threading.Lock()

    def read(self, identifier, destination=None, deadline=None):
        with self._lock:
            self.calls.append(identifier)
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(5)
        end = time.monotonic() + self.delay
        while time.monotonic() < end:
            check_deadline(deadline, f"reading {identifier}")
            time.sleep(0.01)
        outcome = self.sequences[identifier]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    @property
    def call_count(self):
        with self._lock:
            return len(self.calls)


class StubRenderer(ArtifactRenderer):
    """Writes a small text file instead of drawing with matplotlib."""

    def __init__(self, fail: bool = False):
        super().__init__()
        self.fail = fail
        self.rendered = []

    def render(self, skew, path, name=None, image_format=None):
        if self.fail:
            raise RenderError("renderer exploded")
        self.rendered.append((list(skew), name))
        Path(path).write_text(f"{name or ''}:{','.join(str(v) for v in skew)}\n#{len(self.rendered)}")
        return Path(path)


@pytest.fixture
def stub_renderer():
    return StubRenderer()


@pytest.fixture
def fasta_dir(tmp_path):
    """Three small genomes on disk."""
    data = tmp_path / "data"
    data.mkdir()
    write_fasta(data / "alpha.txt", ["GGCC", "ATAT"], header=">alpha")
    write_fasta(data / "beta.txt", ["gggg", "cc"], header=">beta")
    write_fasta(data / "gamma.txt", ["ACGTNNGG"], header=">gamma", compress=True)
    return data
