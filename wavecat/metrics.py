"""Extremum selection, time conversion, z-scores and the biphasic polarity index."""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from wavecat.config import ExtremumKind
from wavecat.types import ChannelExtrema, ChannelMetrics, Extremum

logger = logging.getLogger("wavecat")


def select_extrema(candidates: Sequence[Extremum], channel: int) -> ChannelExtrema:
    """Keep the largest peak and the deepest trough of one channel.

    Candidates are expected in sample order; on equal values the earliest
    one wins.
    """
    peak = None
    trough = None
    for ext in candidates:
        if ext.kind == ExtremumKind.PEAK:
            if peak is None or ext.value > peak.value:
                peak = ext
        elif trough is None or ext.value < trough.value:
            trough = ext
    return ChannelExtrema(channel=channel, peak=peak, trough=trough)


def to_original_time(sample: Optional[int], factor: int) -> Optional[float]:
    """Convert an upsampled index to (fractional) original samples."""
    if sample is None:
        return None
    return sample / max(1, int(round(factor)))


def zscore(value: Optional[float], sd: Optional[float]) -> Optional[float]:
    """``value / sd``; absent if either operand is absent.

    A zero SD gives a signed infinity.
    """
    if value is None or sd is None:
        return None
    if sd == 0:
        return math.copysign(math.inf, value)
    return value / sd


def biphasic_polarity_index(p: Optional[float], n: Optional[float]) -> Optional[float]:
    """BPI = (P - |N|) / (P + |N|).

    +1 when only the peak exists, -1 when only the trough exists, None when
    neither does.
    """
    if p is None and n is None:
        return None
    if n is None:
        return 1.0
    if p is None:
        return -1.0
    return (p - abs(n)) / (p + abs(n))


def channel_metrics(extrema: ChannelExtrema, factor: int) -> ChannelMetrics:
    """Reduce a channel's dominant extrema to amplitudes, timing, z-scores and BPI."""
    peak, trough = extrema.peak, extrema.trough
    p = peak.value if peak is not None else None
    n = trough.value if trough is not None else None
    return ChannelMetrics(
        p=p,
        time_p=to_original_time(peak.sample if peak is not None else None, factor),
        z_p=zscore(p, peak.sd if peak is not None else None),
        n=n,
        time_n=to_original_time(trough.sample if trough is not None else None, factor),
        z_n=zscore(n, trough.sd if trough is not None else None),
        bpi=biphasic_polarity_index(p, n),
    )
