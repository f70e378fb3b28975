"""Loading unit datasets from MATLAB, NumPy and pickle files."""

from __future__ import annotations

import logging
import pickle
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np
import scipy.io

from wavecat.config import CategorizationConfiguration, DataFormat
from wavecat.types import UnitDataset

logger = logging.getLogger("wavecat")

_WAVEFORM_FIELDS = ('mean', 'sd')


def load_units(
    data: Union[str, Path],
    config: Optional[CategorizationConfiguration] = None,
) -> UnitDataset:
    """Load a dataset of units from a file path.

    ``.mat`` files hold a struct ``s`` whose cell fields ``mean`` and ``sd``
    contain one matrix per unit; ``.npz`` files hold ``mean`` and ``sd`` object
    arrays; ``.pkl`` files hold a pickled UnitDataset. Any other field is kept
    as metadata. With ``config.channels_first`` the stored matrices are
    channels x samples and get transposed on load.
    """
    config = config or CategorizationConfiguration()
    data_path = Path(data)
    if not data_path.exists():
        raise FileNotFoundError(f"Data file not found: {data_path}")

    data_format = config.data_format
    if data_format == DataFormat.AUTO:
        data_format = detect_data_format(data_path)

    if data_format == DataFormat.PICKLE:
        with open(data_path, 'rb') as f:
            dataset = pickle.load(f)
        if not isinstance(dataset, UnitDataset):
            raise ValueError(f"Expected a pickled UnitDataset, got {type(dataset).__name__}")
        logger.info(f"Loaded {len(dataset)} units from {data_path}")
        return dataset

    if data_format == DataFormat.MAT:
        fields = _read_mat_struct(data_path)
    elif data_format == DataFormat.NPZ:
        with np.load(data_path, allow_pickle=True) as npz:
            fields = {key: npz[key] for key in npz.files}
    else:
        raise ValueError(f"Unsupported data format: {data_format}")

    missing = [name for name in _WAVEFORM_FIELDS if name not in fields]
    if missing:
        raise ValueError(f"Dataset {data_path} lacks field(s): {', '.join(missing)}")

    means = _unit_matrices(fields['mean'], config.channels_first)
    sds = _unit_matrices(fields['sd'], config.channels_first)
    metadata = {k: v for k, v in fields.items() if k not in _WAVEFORM_FIELDS}

    logger.info(f"Loaded {len(means)} units from {data_path}")
    return UnitDataset(means=means, sds=sds, metadata=metadata)


def detect_data_format(filepath: Path) -> DataFormat:
    """Guess data format from file extension (.mat, .npz, .pkl/.pickle)."""
    suffix = filepath.suffix.lower()

    if suffix == '.mat':
        return DataFormat.MAT
    elif suffix == '.npz':
        return DataFormat.NPZ
    elif suffix in ('.pkl', '.pickle', '.p'):
        return DataFormat.PICKLE

    raise ValueError(f"Could not detect dataset format for {filepath}")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _read_mat_struct(filepath: Path, name: str = 's') -> Dict[str, Any]:
    mat = scipy.io.loadmat(str(filepath))
    if name not in mat:
        raise ValueError(f"No struct '{name}' found in {filepath}")
    struct = mat[name]
    if struct.dtype.names is None:
        raise ValueError(f"Variable '{name}' in {filepath} is not a struct")
    return {field: struct[field][0, 0] for field in struct.dtype.names}


def _unit_matrices(stored, channels_first: bool) -> List[np.ndarray]:
    """Split a cell/object array (or a regular 3-D array) into per-unit matrices."""
    stored = np.asarray(stored)
    if stored.dtype == object:
        units = [np.atleast_2d(np.asarray(u, dtype=np.float64)) for u in stored.ravel()]
    elif stored.ndim == 3:
        units = [np.asarray(u, dtype=np.float64) for u in stored]
    else:
        units = [np.atleast_2d(np.asarray(stored, dtype=np.float64))]
    if channels_first:
        units = [u.T for u in units]
    return units
