"""Local-extrema detection and sign validation on upsampled waveforms."""

from __future__ import annotations

import logging
from typing import List, Tuple

import numpy as np

from wavecat.config import ExtremumKind
from wavecat.types import Extremum

logger = logging.getLogger("wavecat")


def as_channel_matrix(x) -> np.ndarray:
    """Return ``x`` as a float (samples, channels) matrix.

    A 1-D vector becomes a single column and a single-row matrix is taken to
    be one channel laid out horizontally, so it is transposed.
    """
    x = np.asarray(x, dtype=np.float64)
    if x.ndim > 2:
        raise ValueError(f"Expected a vector or a matrix, got shape {x.shape}")
    if x.ndim < 2:
        return x.reshape(-1, 1)
    if x.shape[0] == 1 and x.shape[1] > 1:
        return x.T
    return x


def find_local_extrema(x) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Find all strict local extrema in every column of ``x``.

    A sign change of the first difference from +1 to -1 is a maximum, from -1
    to +1 a minimum. Plateaus and any neighbourhood touching a NaN do not
    qualify.

    Returns:
        (samples, channels, kinds) sorted by channel then sample; ``kinds`` is
        +1 for maxima and -1 for minima.
    """
    x = as_channel_matrix(x)
    if x.shape[0] < 3:
        empty = np.array([], dtype=np.int64)
        return empty, empty, empty

    with np.errstate(invalid='ignore'):
        d2 = np.diff(np.sign(np.diff(x, axis=0)), axis=0)
        row_min, col_min = np.nonzero(d2 > 1)
        row_max, col_max = np.nonzero(d2 < -1)

    rows = np.concatenate([row_min, row_max]) + 1
    cols = np.concatenate([col_min, col_max])
    kinds = np.concatenate([
        -np.ones(len(row_min), dtype=np.int64),
        np.ones(len(row_max), dtype=np.int64),
    ])
    order = np.lexsort((rows, cols))
    return rows[order], cols[order], kinds[order]


def detect_extrema(w2: np.ndarray, s2: np.ndarray) -> List[List[Extremum]]:
    """Detect sign-validated extrema per channel.

    Maxima are kept only when strictly positive and minima only when strictly
    negative; anything else is an artefact (e.g. spline ringing around the
    baseline). Returns one, possibly empty, list of candidates per channel.
    """
    w2 = as_channel_matrix(w2)
    s2 = as_channel_matrix(s2)
    rows, cols, kinds = find_local_extrema(w2)

    candidates: List[List[Extremum]] = [[] for _ in range(w2.shape[1])]
    for row, col, kind in zip(rows, cols, kinds):
        value = float(w2[row, col])
        if kind == 1 and not value > 0:
            continue
        if kind == -1 and not value < 0:
            continue
        sd = float(s2[row, col])
        candidates[col].append(Extremum(
            sample=int(row),
            channel=int(col),
            value=value,
            kind=ExtremumKind.PEAK if kind == 1 else ExtremumKind.TROUGH,
            sd=sd if np.isfinite(sd) else None,
        ))
    return candidates
