"""
Align the underlying series with the combined options timeframe
"""

import logging
from datetime import datetime, timezone
from typing import List, Sequence

from .candles import Candle

logger = logging.getLogger(__name__)

FALLBACK_LENGTH = 100


def _iso(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def synchronize_with_options(reference_series: Sequence[Candle],
                             anchor_series: Sequence[Candle]) -> List[Candle]:
    """
    Trim reference_series (e.g. BTC candles) to the time window and length
    of anchor_series (the combined options series).

    Without any overlap the most recent min(len(anchor), 100) reference bars
    are returned instead.
    """
    if not anchor_series:
        return list(reference_series)

    start = min(c.time for c in anchor_series)
    end = max(c.time for c in anchor_series)
    logger.debug(f"Synchronization: options timeframe {_iso(start)} to {_iso(end)}")

    synchronized = [c for c in reference_series if start <= c.time <= end]

    if not synchronized:
        target_length = min(len(anchor_series), FALLBACK_LENGTH)
        logger.info(f"Synchronization: no overlap, using last {target_length} reference candles")
        return list(reference_series[-target_length:])

    min_length = min(len(anchor_series), len(synchronized))
    if len(synchronized) > min_length:
        synchronized = synchronized[-min_length:]
    logger.debug(f"Synchronization: final synchronized length {len(synchronized)}")
    return synchronized
