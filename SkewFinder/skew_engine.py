"""
┌──────────────────────────────────────────────────────────────────────────────┐
│ Skew Engine - Cumulative G-C skew of a DNA sequence                          │
├──────────────────────────────────────────────────────────────────────────────┤
│ Author: Dr. Venkata Rajesh Yella | License: MIT | Version: 2025.1            │
└──────────────────────────────────────────────────────────────────────────────┘

Scientific Basis:
    skew[0] = 0
    skew[i+1] = skew[i] + 1  if sequence[i] in 'Gg'
              = skew[i] - 1  if sequence[i] in 'Cc'
              = skew[i]      otherwise (A, T, N, IUPAC ambiguity codes, ...)

    The global minimum of the curve marks the candidate replication origin
    (Lobry, 1996). ``compute`` only builds the curve; the minimum is exposed
    separately through ``minimum_skew_positions``.
"""
# ═══════════════════════════════════════════════════════════════════════════════
# IMPORTS
# ═══════════════════════════════════════════════════════════════════════════════
from typing import Any, Dict, List, Sequence

import numpy as np

# ═══════════════════════════════════════════════════════════════════════════════
# TUNABLE PARAMETERS
# ═══════════════════════════════════════════════════════════════════════════════
# Byte -> skew delta lookup table (ASCII fast path)
_DELTA_TABLE = np.zeros(256, dtype=np.int8)
for _base, _delta in (('G', 1), ('g', 1), ('C', -1), ('c', -1)):
    _DELTA_TABLE[ord(_base)] = _delta
_G_CODES = (ord('G'), ord('g'))
_C_CODES = (ord('C'), ord('c'))
# ═══════════════════════════════════════════════════════════════════════════════


def _deltas(sequence: str) -> np.ndarray:
    """Per-position skew deltas, one entry per character of ``sequence``."""
    if sequence.isascii():
        codes = np.frombuffer(sequence.encode('ascii'), dtype=np.uint8)
        return _DELTA_TABLE[codes]
    # One UTF-32 code unit per character keeps positions aligned
    codes = np.frombuffer(sequence.encode('utf-32-le'), dtype='<u4')
    return np.isin(codes, _G_CODES).astype(np.int8) - np.isin(codes, _C_CODES).astype(np.int8)


def compute_array(sequence: str) -> np.ndarray:
    """
    Cumulative skew as an int64 numpy array of length ``len(sequence) + 1``.

    Args:
        sequence: DNA sequence (case-insensitive)

    Returns:
        numpy array whose first element is 0
    """
    if not isinstance(sequence, str):
        raise TypeError(f"sequence must be str, got {type(sequence).__name__}")

    skew = np.zeros(len(sequence) + 1, dtype=np.int64)
    if sequence:
        np.cumsum(_deltas(sequence), dtype=np.int64, out=skew[1:])
    return skew


def compute(sequence: str) -> List[int]:
    """
    Compute the cumulative G-C skew array of a sequence.

    Single left-to-right pass, no I/O and no shared state, so it is safe to
    call from any number of threads.

    Args:
        sequence: DNA sequence (case-insensitive)

    Returns:
        List of ints, ``len(sequence) + 1`` long, starting at 0

    Example:
        >>> compute("GGCC")
        [0, 1, 2, 1, 0]
        >>> compute("")
        [0]
    """
    return compute_array(sequence).tolist()


def minimum_skew_positions(skew: Sequence[int]) -> List[int]:
    """
    All indices at which the skew curve reaches its global minimum.

    Example:
        >>> minimum_skew_positions([0, -1, 0, -1, 1])
        [1, 3]
    """
    if len(skew) == 0:
        return []
    values = np.asarray(skew)
    return np.flatnonzero(values == values.min()).tolist()


def skew_extremes(skew: Sequence[int]) -> Dict[str, Any]:
    """
    Minimum / maximum skew values and the first index of each.

    Returns:
        Dict with 'min_skew', 'min_position', 'max_skew', 'max_position'
        (all None for an empty curve)
    """
    if len(skew) == 0:
        return {'min_skew': None, 'min_position': None, 'max_skew': None, 'max_position': None}
    values = np.asarray(skew)
    min_pos = int(values.argmin())
    max_pos = int(values.argmax())
    return {
        'min_skew': int(values[min_pos]),
        'min_position': min_pos,
        'max_skew': int(values[max_pos]),
        'max_position': max_pos,
    }
