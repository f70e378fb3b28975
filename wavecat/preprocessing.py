"""Preprocessing: baseline removal, cubic-spline upsampling, edge suppression."""

from __future__ import annotations

import logging
from typing import Tuple

import numpy as np
from scipy.interpolate import CubicSpline

from wavecat.config import CategorizationConfiguration

logger = logging.getLogger("wavecat")


# ---------------------------------------------------------------------------
# Baseline
# ---------------------------------------------------------------------------

def subtract_baseline(w: np.ndarray, n_baseline: int) -> np.ndarray:
    """Subtract the mean of the first ``n_baseline`` samples from every channel.

    ``n_baseline`` is rounded and clamped to ``[1, n_samples]``. A NaN inside
    the baseline window turns the whole channel into NaN.
    """
    n_samples = w.shape[0]
    n_baseline = min(max(int(round(n_baseline)), 1), n_samples)
    return w - np.mean(w[:n_baseline, :], axis=0, keepdims=True)


# ---------------------------------------------------------------------------
# Upsampling
# ---------------------------------------------------------------------------

def upsample(x: np.ndarray, factor: int) -> np.ndarray:
    """Resample every channel onto a ``factor``-times denser grid.

    Original sample ``i`` lands on upsampled index ``i * factor``; the samples
    between are filled by a not-a-knot cubic spline, and the trailing
    ``factor - 1`` samples are extrapolated. Channels are interpolated
    independently. Input/output shape: (samples, channels) -> (factor * samples, channels).
    """
    factor = max(1, int(round(factor)))
    n_samples, n_channels = x.shape
    n_up = factor * n_samples
    nodes = np.arange(n_samples) * factor
    grid = np.arange(n_up)

    out = np.full((n_up, n_channels), np.nan)
    for ch in range(n_channels):
        column = x[:, ch]
        finite = np.isfinite(column)
        if finite.sum() < 2:
            continue
        spline = CubicSpline(nodes[finite], column[finite])
        out[:, ch] = spline(grid)
    return out


def suppress_edges(x: np.ndarray, factor: int) -> np.ndarray:
    """Blank the first and last ``factor`` samples of every channel with NaN."""
    factor = max(1, int(round(factor)))
    out = np.array(x, dtype=np.float64, copy=True)
    out[:factor, :] = np.nan
    out[-factor:, :] = np.nan
    return out


# ---------------------------------------------------------------------------
# Full preprocessing step
# ---------------------------------------------------------------------------

def preprocess(
    w: np.ndarray,
    s: np.ndarray,
    config: CategorizationConfiguration,
) -> Tuple[np.ndarray, np.ndarray]:
    """Baseline-correct ``w``, then upsample and edge-suppress ``w`` and ``s``.

    The SD matrix is not baseline-corrected. It is spline-resampled in its own
    right rather than propagated through the interpolation of the mean. This is
    an approximation, not a rigorous propagation of uncertainty, but the
    classification thresholds were calibrated against exactly this behaviour.
    """
    factor = config.upsampling_factor
    w = subtract_baseline(w, config.baseline_samples)
    w2 = suppress_edges(upsample(w, factor), factor)
    s2 = suppress_edges(upsample(s, factor), factor)
    return w2, s2
