"""
Commodity Channel Index
CCI = (TP - SMA(TP)) / (0.015 * MeanDeviation(TP)), TP = (H + L + C) / 3
"""

from typing import List, Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from .candles import Candle, IndicatorPoint

CCI_CONSTANT = 0.015
CCI_LIMIT = 1000.0


def calculate_cci(series: Sequence[Candle], period: int = 20) -> List[IndicatorPoint]:
    """
    CCI over a trailing window of `period` bars.

    Needs at least period + 1 bars, then yields one point per bar from
    index period - 1 on. Values are clamped to [-1000, 1000]; a flat window
    (every typical price in it identical) is 0.
    """
    if period < 1:
        raise ValueError("CCI period must be >= 1")
    if len(series) < period + 1:
        return []

    highs = np.array([c.high for c in series], dtype=float)
    lows = np.array([c.low for c in series], dtype=float)
    closes = np.array([c.close for c in series], dtype=float)
    typical = (highs + lows + closes) / 3

    windows = sliding_window_view(typical, period)
    sma = windows.mean(axis=1)
    mean_dev = np.abs(windows - sma[:, None]).mean(axis=1)
    diff = typical[period - 1:] - sma

    with np.errstate(divide='ignore', invalid='ignore'):
        cci = diff / (CCI_CONSTANT * mean_dev)

    # flat means every typical price in the window is identical
    flat = np.ptp(windows, axis=1) == 0
    overflow = ~flat & (~np.isfinite(cci) | (np.abs(cci) > CCI_LIMIT))
    cci = np.where(overflow, np.sign(diff) * CCI_LIMIT, cci)
    cci = np.where(flat, 0.0, cci)

    times = [c.time for c in series[period - 1:]]
    return [IndicatorPoint(time=t, value=float(v)) for t, v in zip(times, cci)]
