"""Enums, constants and configuration dataclass for waveform categorization."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger("wavecat")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

BASELINE_SAMPLES = 3                          # samples averaged for baseline removal
UPSAMPLING_FACTOR = 4                         # spline upsampling factor
DEFAULT_THRESHOLDS: Tuple[float, float, float, float] = (1.25, -1.0, 1.75, -1.75)
BPI_WINDOW: Tuple[float, float] = (-0.6, 0.8)  # open interval for B-spikes


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Polarity(IntEnum):
    """Channel-level waveform category."""
    BIPHASIC = 0
    POSITIVE = 1
    NEGATIVE = -1


class UnitType(IntEnum):
    """Unit-level category, derived from the main channel."""
    OTHER = 1
    PUNIT = 2
    BIP = 3


class ExtremumKind(str, Enum):
    """Kind of a local extremum."""
    PEAK = 'peak'
    TROUGH = 'trough'


class DataFormat(str, Enum):
    """Supported unit dataset formats."""
    MAT = 'mat'
    NPZ = 'npz'
    PICKLE = 'pickle'
    AUTO = 'auto'


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CategorizationConfiguration:
    """Complete configuration for waveform categorization."""
    # Preprocessing settings
    baseline_samples: int = BASELINE_SAMPLES
    upsampling_factor: int = UPSAMPLING_FACTOR

    # Classification settings
    thresholds: Tuple[float, float, float, float] = DEFAULT_THRESHOLDS
    bpi_window: Tuple[float, float] = BPI_WINDOW

    # Batch settings
    data_format: DataFormat = DataFormat.AUTO
    channels_first: bool = True               # dataset matrices stored channels x samples
    n_jobs: int = 1                           # >1 categorizes units in a process pool

    def with_thresholds(self, thresholds: Optional[Sequence[float]]) -> "CategorizationConfiguration":
        """Return a copy using ``thresholds``, or the defaults if they are malformed."""
        return replace(self, thresholds=resolve_thresholds(thresholds))


def resolve_thresholds(thresholds: Optional[Sequence[float]]) -> Tuple[float, float, float, float]:
    """Validate a z-score threshold vector.

    The first two values apply to B-spikes, the third to P-spikes and the
    fourth to N-spikes. ``None``, an empty vector or a vector of any length
    other than four is silently replaced by ``DEFAULT_THRESHOLDS``; this is a
    permissive fallback rather than an error.
    """
    if thresholds is None:
        return DEFAULT_THRESHOLDS
    values = np.asarray(thresholds, dtype=np.float64).ravel()
    if values.size != 4:
        if values.size > 0:
            logger.warning(
                f"Expected 4 thresholds, got {values.size}; using defaults {DEFAULT_THRESHOLDS}"
            )
        return DEFAULT_THRESHOLDS
    return tuple(float(v) for v in values)
