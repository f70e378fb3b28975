"""
wavecat — categorization of multi-site extracellular waveforms.

Public API:
    categorize_waveform          per-unit B/P/N categorization
    WaveformCategorizer          batch orchestrator
    CategorizationConfiguration  all tunable parameters
    WaveformCategorization       per-unit result
    CategorizationResults        batch results with export methods
    UnitDataset                  (mean, sd) pairs per unit
"""

from wavecat.config import (
    BPI_WINDOW,
    DEFAULT_THRESHOLDS,
    CategorizationConfiguration,
    DataFormat,
    ExtremumKind,
    Polarity,
    UnitType,
)
from wavecat.types import (
    CategorizationResults,
    ChannelMetrics,
    UnitDataset,
    WaveformCategorization,
)
from wavecat.core import InvalidWaveformInput, WaveformCategorizer, categorize_waveform
from wavecat.io import load_units

__all__ = [
    "categorize_waveform",
    "WaveformCategorizer",
    "InvalidWaveformInput",
    "CategorizationConfiguration",
    "WaveformCategorization",
    "CategorizationResults",
    "ChannelMetrics",
    "UnitDataset",
    "Polarity",
    "UnitType",
    "ExtremumKind",
    "DataFormat",
    "DEFAULT_THRESHOLDS",
    "BPI_WINDOW",
    "load_units",
]
