"""Rule-based channel classification and unit-level aggregation."""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

from wavecat.config import BPI_WINDOW, DEFAULT_THRESHOLDS, Polarity, UnitType
from wavecat.types import ChannelMetrics

logger = logging.getLogger("wavecat")

_UNIT_TYPES = {
    Polarity.POSITIVE: UnitType.PUNIT,
    Polarity.BIPHASIC: UnitType.BIP,
    Polarity.NEGATIVE: UnitType.OTHER,
}


def _gt(a: Optional[float], b: Optional[float]) -> bool:
    return a is not None and b is not None and a > b


def _lt(a: Optional[float], b: Optional[float]) -> bool:
    return a is not None and b is not None and a < b


def classify_channel(
    metrics: ChannelMetrics,
    thresholds: Sequence[float] = DEFAULT_THRESHOLDS,
    bpi_window: Tuple[float, float] = BPI_WINDOW,
) -> Tuple[Optional[Polarity], Optional[float]]:
    """Label one channel; the first matching rule wins.

    B: both z-scores past the B thresholds, the peak precedes the trough and
       the BPI lies strictly inside ``bpi_window``. Magnitude P - N.
    P: peak z-score past the P threshold and the peak dominates (or there is
       no trough). Magnitude P.
    N: trough z-score past the N threshold and the trough dominates (or there
       is no peak). Magnitude N.

    Returns:
        (polarity, signed magnitude), both None when unclassified.
    """
    m = metrics
    th_bp, th_bn, th_p, th_n = thresholds
    lo, hi = bpi_window

    if (_gt(m.z_p, th_bp) and _lt(m.z_n, th_bn) and _lt(m.time_p, m.time_n)
            and _gt(m.bpi, lo) and _lt(m.bpi, hi)):
        return Polarity.BIPHASIC, m.p - m.n
    if _gt(m.z_p, th_p) and (m.n is None or m.p > abs(m.n)):
        return Polarity.POSITIVE, m.p
    if _lt(m.z_n, th_n) and (m.p is None or abs(m.n) > m.p):
        return Polarity.NEGATIVE, m.n
    return None, None


def select_main_channel(magnitudes: Sequence[Optional[float]]) -> Optional[int]:
    """Index of the largest ``|magnitude|``; first occurrence wins.

    Absent magnitudes never win. Returns None if every channel is absent.
    """
    best = None
    best_abs = None
    for ch, value in enumerate(magnitudes):
        if value is None:
            continue
        if best_abs is None or abs(value) > best_abs:
            best, best_abs = ch, abs(value)
    return best


def unit_type_from_polarity(polarity: Optional[Polarity]) -> Optional[UnitType]:
    """P-spike -> P-unit, B-spike -> BIP, N-spike -> Other."""
    if polarity is None:
        return None
    return _UNIT_TYPES[Polarity(polarity)]
