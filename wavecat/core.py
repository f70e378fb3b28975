"""WaveformCategorizer — per-unit categorization and a thin batch orchestrator."""

from __future__ import annotations

import logging
import multiprocessing as mp
import time
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np

from wavecat.classification import (
    classify_channel,
    select_main_channel,
    unit_type_from_polarity,
)
from wavecat.config import CategorizationConfiguration
from wavecat.detection import as_channel_matrix, detect_extrema
from wavecat.io import load_units
from wavecat.metrics import channel_metrics, select_extrema
from wavecat.preprocessing import preprocess
from wavecat.types import CategorizationResults, UnitDataset, WaveformCategorization

logger = logging.getLogger("wavecat")


class InvalidWaveformInput(ValueError):
    """Raised before any computation when the (mean, sd) pair is unusable."""


def _validate_inputs(mean, sd):
    if mean is None or np.size(mean) == 0:
        raise InvalidWaveformInput("Mean waveform is required and must not be empty")
    if sd is None or np.size(sd) == 0:
        raise InvalidWaveformInput("SD of waveform is required and must not be empty")
    mean = np.asarray(mean, dtype=np.float64)
    sd = np.asarray(sd, dtype=np.float64)
    if mean.shape != sd.shape:
        raise InvalidWaveformInput(
            f"Input size mismatch: mean is {mean.shape}, sd is {sd.shape}"
        )
    try:
        return as_channel_matrix(mean), as_channel_matrix(sd)
    except ValueError as e:
        raise InvalidWaveformInput(str(e)) from e


def categorize_waveform(
    mean,
    sd,
    thresholds: Optional[Sequence[float]] = None,
    config: Optional[CategorizationConfiguration] = None,
) -> WaveformCategorization:
    """Categorize the multi-channel waveform of one unit.

    Args:
        mean: mean waveform, samples x channels.
        sd: SD of the waveform, same shape as ``mean``.
        thresholds: four z-score thresholds (B peak, B trough, P, N). Anything
            other than four values falls back to the defaults.
        config: preprocessing and classification settings.

    Returns:
        WaveformCategorization with per-channel polarity, extremum magnitude
        and BPI, the 0-based main channel and the unit type.

    Raises:
        InvalidWaveformInput: if either matrix is missing or their shapes differ.
    """
    config = config or CategorizationConfiguration()
    if thresholds is not None:
        config = config.with_thresholds(thresholds)
    w, s = _validate_inputs(mean, sd)

    w2, s2 = preprocess(w, s, config)
    candidates = detect_extrema(w2, s2)

    channels = [
        channel_metrics(select_extrema(cands, ch), config.upsampling_factor)
        for ch, cands in enumerate(candidates)
    ]
    labels = [classify_channel(m, config.thresholds, config.bpi_window) for m in channels]
    polarity = [pol for pol, _ in labels]
    extremum = [ext for _, ext in labels]

    main_channel = select_main_channel(extremum)
    unit_type = unit_type_from_polarity(polarity[main_channel] if main_channel is not None else None)

    return WaveformCategorization(
        polarity=polarity,
        unit_type=unit_type,
        main_channel=main_channel,
        extremum=extremum,
        bpi=[m.bpi for m in channels],
        channels=channels,
    )


def _categorize_unit(args) -> WaveformCategorization:
    mean, sd, config = args
    return categorize_waveform(mean, sd, config=config)


class WaveformCategorizer:
    """Runs categorization over a single unit or a whole dataset of units."""

    def __init__(self, config: Optional[CategorizationConfiguration] = None):
        """Initialize with a CategorizationConfiguration (uses defaults if None)."""
        self.config = config or CategorizationConfiguration()
        self.results: Optional[CategorizationResults] = None

    def categorize(self, mean, sd) -> WaveformCategorization:
        """Categorize one unit with the configured settings."""
        return categorize_waveform(mean, sd, config=self.config)

    def run(self, data: Union[str, Path, UnitDataset]) -> CategorizationResults:
        """Categorize every unit of a dataset file or UnitDataset. Returns CategorizationResults."""
        start = time.time()

        # Step 1: Load units
        if isinstance(data, UnitDataset):
            dataset = data
        else:
            dataset = load_units(data, self.config)
        logger.info(f"Categorizing {len(dataset)} units")

        # Step 2: Categorize, one independent task per unit
        tasks = [(mean, sd, self.config) for mean, sd in dataset]
        if self.config.n_jobs > 1 and len(tasks) > 1:
            logger.info(f"Using {self.config.n_jobs} worker processes")
            with mp.Pool(self.config.n_jobs) as pool:
                categorizations = pool.map(_categorize_unit, tasks)
        else:
            categorizations = [_categorize_unit(task) for task in tasks]

        execution_time = time.time() - start

        # Step 3: Package results
        self.results = CategorizationResults(
            categorizations=categorizations,
            config=self.config,
            execution_time=execution_time,
            metadata=dict(dataset.metadata),
        )

        summary = self.results.summary()
        logger.info(f"Categorization completed in {execution_time:.2f} seconds")
        logger.info(
            f"Found {summary['bip']} BIP, {summary['punit']} P-units, {summary['other']} other, "
            f"{summary['unclassified']} unclassified"
        )
        return self.results
