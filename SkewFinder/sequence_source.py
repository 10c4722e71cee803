"""
┌──────────────────────────────────────────────────────────────────────────────┐
│ Sequence Source - Fetch and parse FASTA genomes from URLs or local paths     │
├──────────────────────────────────────────────────────────────────────────────┤
│ Author: Dr. Venkata Rajesh Yella | License: MIT | Version: 2025.1            │
└──────────────────────────────────────────────────────────────────────────────┘

DESCRIPTION:
    Obtains raw genome data and extracts the nucleotide sequence.

    - URLs are streamed to disk with ``requests`` (never held in memory)
    - Local paths are opened directly
    - Gzip input is detected from the magic bytes (1f 8b), not the file name
    - FASTA header lines ('>') are skipped, sequence lines are concatenated
    - Only the first ``max_lines`` contributing lines are read

ERRORS:
    SourceUnavailable  - network failure, non-2xx status, missing file
    DecodeError        - unreadable stream, bad gzip data, no sequence found
    DeadlineExceeded   - the caller's deadline passed mid-download or mid-parse
"""
# ═══════════════════════════════════════════════════════════════════════════════
# IMPORTS
# ═══════════════════════════════════════════════════════════════════════════════
import gzip
import io
import logging
import os
import time
import zlib
from pathlib import Path
from typing import BinaryIO, Optional, Tuple, Union

import requests

from SkewFinder.config.analysis import SKEW_CONFIG
from SkewFinder.errors import DeadlineExceeded, DecodeError, SourceUnavailable

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# TUNABLE PARAMETERS
# ═══════════════════════════════════════════════════════════════════════════════
GZIP_MAGIC = b'\x1f\x8b'
URL_SCHEMES = ('http://', 'https://')
FASTA_HEADER_PREFIX = '>'
# ═══════════════════════════════════════════════════════════════════════════════


def make_deadline(timeout: Optional[float]) -> Optional[float]:
    """Absolute ``time.monotonic()`` deadline for a timeout in seconds (None = no deadline)."""
    if timeout is None:
        return None
    return time.monotonic() + timeout


def check_deadline(deadline: Optional[float], what: str) -> None:
    """Raise DeadlineExceeded if ``deadline`` has passed."""
    if deadline is not None and time.monotonic() > deadline:
        raise DeadlineExceeded(f"Deadline exceeded while {what}")


def is_url(identifier: str) -> bool:
    """True for http(s) identifiers, False for local paths."""
    return identifier.lower().startswith(URL_SCHEMES)


def _sniff(stream: BinaryIO, size: int = 2) -> Tuple[bytes, BinaryIO]:
    """Return the first ``size`` bytes of ``stream`` without consuming them."""
    if hasattr(stream, 'peek'):
        return stream.peek(size)[:size], stream
    if stream.seekable():
        position = stream.tell()
        head = stream.read(size)
        stream.seek(position)
        return head, stream
    buffered = io.BufferedReader(stream)
    return buffered.peek(size)[:size], buffered


class SequenceSource:
    """
    Fetches genome sources and extracts their sequence.

    Usage:
        source = SequenceSource(max_lines=1000)
        sequence = source.read("https://example.org/genome.fa.gz", "genome_123.fa.gz")
        sequence = source.read("data/escherichia_coli.txt")
    """

    def __init__(
        self,
        max_lines: Optional[int] = SKEW_CONFIG['max_lines'],
        chunk_size: int = SKEW_CONFIG['read_chunk_size'],
        connect_timeout: float = SKEW_CONFIG['connect_timeout'],
        read_timeout: float = SKEW_CONFIG['read_timeout'],
    ):
        """
        Args:
            max_lines: Maximum contributing sequence lines to read (None = unlimited)
            chunk_size: Bytes per streamed download chunk
            connect_timeout: Seconds allowed to establish an HTTP connection
            read_timeout: Seconds allowed between received bytes
        """
        self.max_lines = max_lines
        self.chunk_size = chunk_size
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout

    @classmethod
    def from_settings(cls, settings) -> 'SequenceSource':
        return cls(
            max_lines=settings.max_lines,
            chunk_size=settings.read_chunk_size,
            connect_timeout=settings.connect_timeout,
            read_timeout=settings.read_timeout,
        )

    # ───────────────────────────────────────────────────────────────────────────
    # FETCH
    # ───────────────────────────────────────────────────────────────────────────
    def fetch(
        self,
        identifier: str,
        destination: Optional[Union[str, Path]] = None,
        deadline: Optional[float] = None,
    ) -> Path:
        """
        Make the raw bytes of ``identifier`` available as a local file.

        Args:
            identifier: URL or local path
            destination: Where a URL is downloaded to (required for URLs,
                ignored for local paths)
            deadline: Absolute monotonic deadline for the download

        Returns:
            Path of a readable file holding the raw (possibly gzipped) data

        Raises:
            SourceUnavailable: Download failed or local file missing
            DeadlineExceeded: Download ran past ``deadline``
        """
        if not identifier:
            raise SourceUnavailable("Empty source identifier")

        if is_url(identifier):
            if destination is None:
                raise ValueError("destination is required when fetching a URL")
            return self._download(identifier, Path(destination), deadline)

        path = Path(identifier)
        try:
            found = path.is_file()
            readable = found and os.access(path, os.R_OK)
        except (OSError, ValueError) as e:
            # Over-long names and embedded NUL bytes are not valid paths
            raise SourceUnavailable(f"Invalid source path {identifier[:80]!r}: {e}") from e
        if not found:
            raise SourceUnavailable(f"No such file: {identifier}")
        if not readable:
            raise SourceUnavailable(f"File is not readable: {identifier}")
        return path

    def request_timeout(self, deadline: Optional[float]) -> Tuple[float, float]:
        """(connect, read) timeouts for ``requests``, each capped by the time left before ``deadline``."""
        if deadline is None:
            return self.connect_timeout, self.read_timeout
        remaining = max(deadline - time.monotonic(), 0.001)
        return min(self.connect_timeout, remaining), min(self.read_timeout, remaining)

    def _download(self, url: str, destination: Path, deadline: Optional[float]) -> Path:
        """Stream ``url`` into ``destination`` via a ``.part`` file."""
        partial = destination.with_name(destination.name + '.part')
        received = 0
        started = time.perf_counter()
        try:
            check_deadline(deadline, f"starting download of {url}")
            destination.parent.mkdir(parents=True, exist_ok=True)
            with requests.get(
                url,
                stream=True,
                timeout=self.request_timeout(deadline),
            ) as response:
                response.raise_for_status()
                with open(partial, 'wb') as out:
                    for chunk in response.iter_content(chunk_size=self.chunk_size):
                        check_deadline(deadline, f"downloading {url}")
                        if chunk:
                            out.write(chunk)
                            received += len(chunk)
            os.replace(partial, destination)
        except requests.Timeout as e:
            check_deadline(deadline, f"downloading {url}")
            raise SourceUnavailable(f"Timed out downloading {url}: {e}") from e
        except requests.RequestException as e:
            raise SourceUnavailable(f"Failed to download {url}: {e}") from e
        except OSError as e:
            raise SourceUnavailable(f"Failed to store download of {url} at {destination}: {e}") from e
        finally:
            if partial.exists():
                partial.unlink()

        logger.info(f"Downloaded {url} ({received:,} bytes) to {destination} "
                    f"in {time.perf_counter() - started:.2f}s")
        return destination

    # ───────────────────────────────────────────────────────────────────────────
    # PARSE
    # ───────────────────────────────────────────────────────────────────────────
    def parse(self, stream: BinaryIO, deadline: Optional[float] = None) -> str:
        """
        Extract the sequence from a binary FASTA (or plain sequence) stream.

        Gzip is detected from the first two bytes. Header lines are skipped,
        remaining lines are stripped and concatenated; blank lines contribute
        nothing and do not count towards ``max_lines``. The caller keeps
        ownership of ``stream``.

        Args:
            stream: Binary file-like object positioned at the start of the data
            deadline: Absolute monotonic deadline, checked per line

        Returns:
            Concatenated sequence (case preserved)

        Raises:
            DecodeError: Read, decompression or text decoding failed, or the
                stream holds no sequence lines
            DeadlineExceeded: Parsing ran past ``deadline``
        """
        decompressor = None
        reader = None
        try:
            magic, stream = _sniff(stream)
            if magic == GZIP_MAGIC:
                decompressor = gzip.GzipFile(fileobj=stream, mode='rb')
            reader = io.TextIOWrapper(decompressor or stream, encoding='utf-8')
            sequence, line_count = self._collect(reader, deadline)
        except (OSError, EOFError, UnicodeDecodeError, zlib.error) as e:
            raise DecodeError(f"Failed to read sequence stream: {e}") from e
        finally:
            # Detach so the caller's stream stays open
            if reader is not None:
                reader.detach()
            if decompressor is not None:
                decompressor.close()

        if not sequence:
            raise DecodeError("Stream contains no sequence data")

        logger.debug(f"Parsed {len(sequence):,} bp from {line_count} line(s)"
                     f"{' (gzip)' if decompressor is not None else ''}")
        return sequence

    def _collect(self, reader: io.TextIOBase, deadline: Optional[float]) -> Tuple[str, int]:
        parts = []
        line_count = 0
        for line in reader:
            check_deadline(deadline, "parsing sequence")
            if line.startswith(FASTA_HEADER_PREFIX):
                continue
            line = line.strip()
            if not line:
                continue
            parts.append(line)
            line_count += 1
            if self.max_lines is not None and line_count >= self.max_lines:
                logger.debug(f"Line cap of {self.max_lines} reached, ignoring remainder")
                break
        return ''.join(parts), line_count

    # ───────────────────────────────────────────────────────────────────────────
    # FETCH + PARSE
    # ───────────────────────────────────────────────────────────────────────────
    def read(
        self,
        identifier: str,
        destination: Optional[Union[str, Path]] = None,
        deadline: Optional[float] = None,
    ) -> str:
        """Fetch ``identifier`` and return its parsed sequence."""
        path = self.fetch(identifier, destination, deadline)
        try:
            handle = open(path, 'rb')
        except OSError as e:
            raise SourceUnavailable(f"Cannot open {path}: {e}") from e
        with handle:
            return self.parse(handle, deadline)


def read_fasta(path: Union[str, Path]) -> str:
    """
    Return the whole sequence of a local FASTA file, without headers or newlines.

    Example:
        >>> genome = read_fasta("data/escherichia_coli.txt")
    """
    return SequenceSource(max_lines=None).read(str(path))
