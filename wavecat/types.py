"""Data containers: extrema, per-channel metrics, unit and batch results."""

from __future__ import annotations

import logging
import pickle
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
import scipy.io

from wavecat.config import (
    CategorizationConfiguration,
    ExtremumKind,
    Polarity,
    UnitType,
)

logger = logging.getLogger("wavecat")


@dataclass(frozen=True)
class Extremum:
    """Local extremum of one channel of an upsampled waveform."""
    sample: int                              # index on the upsampled grid
    channel: int
    value: float
    kind: ExtremumKind
    sd: Optional[float] = None               # SD at ``sample``; None if not finite


@dataclass(frozen=True)
class ChannelExtrema:
    """Dominant peak and trough of one channel; either may be absent."""
    channel: int
    peak: Optional[Extremum] = None
    trough: Optional[Extremum] = None


@dataclass(frozen=True)
class ChannelMetrics:
    """Per-channel extrema, timing (original samples), z-scores and BPI."""
    p: Optional[float] = None
    time_p: Optional[float] = None
    z_p: Optional[float] = None
    n: Optional[float] = None
    time_n: Optional[float] = None
    z_n: Optional[float] = None
    bpi: Optional[float] = None


@dataclass
class WaveformCategorization:
    """Categorization of a single unit.

    ``main_channel`` is a 0-based channel index. Unclassified channels and
    undefined values are ``None``.
    """
    polarity: List[Optional[Polarity]]
    unit_type: Optional[UnitType]
    main_channel: Optional[int]
    extremum: List[Optional[float]]
    bpi: List[Optional[float]]
    channels: List[ChannelMetrics] = field(default_factory=list)

    @property
    def n_channels(self) -> int:
        return len(self.polarity)

    def as_arrays(self) -> Dict[str, Any]:
        """Numeric view: NaN stands for every absent value."""
        return {
            'polarity': _nan_array(self.polarity),
            'unit_type': np.nan if self.unit_type is None else float(self.unit_type),
            'main_channel': np.nan if self.main_channel is None else float(self.main_channel),
            'extremum': _nan_array(self.extremum),
            'bpi': _nan_array(self.bpi),
        }


def _nan_array(values: Sequence[Optional[float]]) -> np.ndarray:
    return np.array([np.nan if v is None else float(v) for v in values], dtype=np.float64)


@dataclass
class UnitDataset:
    """A collection of units, each a (mean, sd) pair of samples x channels matrices.

    Metadata (session, spike counts, region) is carried along for the results
    but never inspected by the categorization.
    """
    means: List[np.ndarray]
    sds: List[np.ndarray]
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if len(self.means) != len(self.sds):
            raise ValueError(
                f"Number of mean waveforms ({len(self.means)}) and SDs ({len(self.sds)}) differ"
            )

    def __len__(self) -> int:
        return len(self.means)

    def __iter__(self):
        return iter(zip(self.means, self.sds))


@dataclass
class CategorizationResults:
    """Results of a batch run, aligned by unit index.

    Channel-indexed arrays are padded with NaN up to the largest channel count
    across units.
    """
    categorizations: List[WaveformCategorization]
    config: CategorizationConfiguration
    execution_time: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    polarity: np.ndarray = field(init=False)
    extremum: np.ndarray = field(init=False)
    bpi: np.ndarray = field(init=False)
    unit_type: np.ndarray = field(init=False)
    main_channel: np.ndarray = field(init=False)

    def __post_init__(self):
        n_units = len(self.categorizations)
        n_sites = max((c.n_channels for c in self.categorizations), default=0)
        self.polarity = np.full((n_units, n_sites), np.nan)
        self.extremum = np.full((n_units, n_sites), np.nan)
        self.bpi = np.full((n_units, n_sites), np.nan)
        self.unit_type = np.full(n_units, np.nan)
        self.main_channel = np.full(n_units, np.nan)
        for i, cat in enumerate(self.categorizations):
            arrays = cat.as_arrays()
            cidx = slice(0, cat.n_channels)
            self.polarity[i, cidx] = arrays['polarity']
            self.extremum[i, cidx] = arrays['extremum']
            self.bpi[i, cidx] = arrays['bpi']
            self.unit_type[i] = arrays['unit_type']
            self.main_channel[i] = arrays['main_channel']

    def __len__(self) -> int:
        return len(self.categorizations)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, filename: str) -> None:
        """Save results to disk."""
        with open(filename, 'wb') as f:
            pickle.dump(self, f)

    @classmethod
    def load(cls, filename: str) -> "CategorizationResults":
        """Load results from disk."""
        with open(filename, 'rb') as f:
            return pickle.load(f)

    def to_mat(self, filename: str) -> None:
        """Write the result fields into a MATLAB struct ``s``.

        Field names follow the dataset container: ``pol``, ``uType``, ``mch``,
        ``ext`` and ``vB``. ``mch`` is stored 1-based there.
        """
        s = {
            'pol': self.polarity,
            'uType': self.unit_type.reshape(-1, 1),
            'mch': (self.main_channel + 1).reshape(-1, 1),
            'ext': self.extremum,
            'vB': self.bpi,
        }
        for key, values in self.metadata.items():
            s[key] = values
        scipy.io.savemat(filename, {'s': s})
        logger.info(f"Results written to {filename}")

    # ------------------------------------------------------------------
    # Convenience views
    # ------------------------------------------------------------------

    def to_dataframe(self) -> pd.DataFrame:
        """One row per unit and channel."""
        data = []
        for unit_idx, cat in enumerate(self.categorizations):
            for ch in range(cat.n_channels):
                data.append({
                    'unit': unit_idx,
                    'channel': ch,
                    'polarity': self.polarity[unit_idx, ch],
                    'extremum': self.extremum[unit_idx, ch],
                    'bpi': self.bpi[unit_idx, ch],
                    'is_main': cat.main_channel == ch,
                    'unit_type': self.unit_type[unit_idx],
                })
        return pd.DataFrame(
            data,
            columns=['unit', 'channel', 'polarity', 'extremum', 'bpi', 'is_main', 'unit_type'],
        )

    def summary(self) -> Dict[str, Any]:
        """Count units per type."""
        types = [c.unit_type for c in self.categorizations]
        return {
            'total_units': len(self.categorizations),
            'bip': sum(t == UnitType.BIP for t in types),
            'punit': sum(t == UnitType.PUNIT for t in types),
            'other': sum(t == UnitType.OTHER for t in types),
            'unclassified': sum(t is None for t in types),
            'execution_time': self.execution_time,
        }
