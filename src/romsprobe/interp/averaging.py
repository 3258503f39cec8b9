"""Inverse-distance weighted combination of a handful of samples.

`combine` is applied at three nesting levels by the engine: across the four
horizontal corners, across the two vertical brackets and across the two
time brackets. Conventions:

- an entry flagged invalid contributes neither value nor weight;
- a negative weight (the ``NO_LEVEL`` sentinel, -1) also marks the entry
  invalid;
- a zero weight means the query coincides with the sample, so the first
  valid zero-weight entry is returned as-is;
- with no valid entry the result is ``BAD_VALUE`` (NaN).
"""
import math
from typing import Sequence

import numpy as np

from romsprobe.config import BAD_VALUE


def combine(values: Sequence[float], weights: Sequence[float], valid: Sequence[bool]) -> float:
    """Inverse-distance weighted mean of ``values`` over the ``valid`` entries.

    Parameters
    - values: N sample values
    - weights: N distances (planar meters, vertical meters or seconds)
    - valid: N flags; False entries are excluded entirely

    Returns a float, or ``BAD_VALUE`` when nothing is valid. NaN sample
    values are not filtered here and propagate to the result.
    """
    v = np.asarray(values, dtype=float).ravel()
    w = np.asarray(weights, dtype=float).ravel()
    ok = np.asarray(valid, dtype=bool).ravel()
    if not (v.shape == w.shape == ok.shape):
        raise ValueError(f'values, weights and valid must have the same length '
                         f'(got {v.size}, {w.size}, {ok.size})')

    # NaN weights fail the comparison and drop out with the sentinels
    ok = ok & (w >= 0.0)
    if not ok.any():
        return BAD_VALUE

    v = v[ok]
    w = w[ok]
    exact = np.flatnonzero(w == 0.0)
    if exact.size:
        return float(v[exact[0]])

    inv = 1.0 / w
    num = math.fsum((v * inv).tolist())
    den = math.fsum(inv.tolist())
    return num / den
