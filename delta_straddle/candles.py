"""
Candle data model
Normalization of raw exchange candle arrays and live-update folding
"""

import bisect
import logging
from dataclasses import dataclass, asdict
from typing import Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candle:
    """One OHLC bar; time is UNIX seconds"""
    time: int
    open: float
    high: float
    low: float
    close: float
    volume: Optional[float] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        if self.volume is None:
            data.pop('volume')
        return data


# Output of the merge engine has the same shape as a raw candle
CombinedCandle = Candle


@dataclass(frozen=True)
class IndicatorPoint:
    time: int
    value: float

    def to_dict(self) -> dict:
        return {'time': self.time, 'value': float(self.value)}


def normalize_candles(candles: Iterable[Candle]) -> List[Candle]:
    """
    Sort ascending by time and drop duplicate timestamps.
    On a collision the last occurrence in input order wins.
    """
    by_time: Dict[int, Candle] = {}
    for candle in candles:
        by_time[candle.time] = candle
    return [by_time[t] for t in sorted(by_time)]


def _to_float(value, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def parse_candles(raw: Iterable[dict]) -> List[Candle]:
    """
    Convert exchange candle JSON into normalized Candles.
    OHLC strings are parsed as floats, missing fields become 0.0.
    """
    candles = []
    for entry in raw or []:
        if not isinstance(entry, dict):
            continue
        try:
            time = int(entry['time'])
        except (KeyError, TypeError, ValueError):
            logger.debug(f"Skipping candle without usable time: {entry}")
            continue
        volume = entry.get('volume')
        candles.append(Candle(
            time=time,
            open=_to_float(entry.get('open')),
            high=_to_float(entry.get('high')),
            low=_to_float(entry.get('low')),
            close=_to_float(entry.get('close')),
            volume=_to_float(volume) if volume not in (None, "") else None,
        ))
    return normalize_candles(candles)


def apply_candle_update(series: List[Candle], update: Candle) -> List[Candle]:
    """
    Fold a live candle into a series: replace the bar with the same time,
    append when newer than the last bar, insert in order otherwise.
    Returns a new list.
    """
    updated = list(series)
    if not updated or update.time > updated[-1].time:
        updated.append(update)
        return updated
    if update.time == updated[-1].time:
        updated[-1] = update
        return updated

    times = [c.time for c in updated]
    idx = bisect.bisect_left(times, update.time)
    if idx < len(updated) and updated[idx].time == update.time:
        updated[idx] = update
    else:
        updated.insert(idx, update)
    return updated
