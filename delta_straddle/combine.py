"""
Straddle / Strangle series combination
Merges a call leg and a put leg into one OHLC series, tolerating timestamp skew
"""

import logging
from typing import List, Literal, Optional, Sequence, Tuple

import numpy as np

from .candles import Candle, CombinedCandle, normalize_candles

logger = logging.getLogger(__name__)

CalculationMethod = Literal['average', 'sum']
CALCULATION_METHODS = ('average', 'sum')

DEFAULT_INTERVAL = 300   # seconds, used when there are too few timestamps
MIN_TOLERANCE = 60       # seconds


def calculate_average_interval(call_data: Sequence[Candle], put_data: Sequence[Candle]) -> float:
    """Mean spacing of the union of both legs' timestamps"""
    all_times = sorted([c.time for c in call_data] + [p.time for p in put_data])
    if len(all_times) < 2:
        return float(DEFAULT_INTERVAL)
    return float(np.mean(np.diff(all_times)))


def interpolate_candle(previous: Candle, current: Candle, target_time: int) -> Candle:
    """
    Linear interpolation of a bar at target_time between two bars of one leg.
    The interpolated open is the previous close.
    """
    time_diff = current.time - previous.time
    target_diff = target_time - previous.time
    ratio = target_diff / time_diff if time_diff > 0 else 0.0

    return Candle(
        time=target_time,
        open=previous.close,
        high=previous.high + (current.high - previous.high) * ratio,
        low=previous.low + (current.low - previous.low) * ratio,
        close=previous.close + (current.close - previous.close) * ratio,
        volume=previous.volume or 0.0,
    )


def find_best_match_candle(data: Sequence[Candle], start_index: int,
                           target_time: int) -> Optional[Tuple[Candle, int]]:
    """
    Search data[start_index:] for the bar that best represents target_time.

    Returns the exact hit if present, an interpolation of the bracketing pair
    when the target lies within one interval of the previous bar, otherwise
    the first later bar, or the last bar when nothing later exists.
    """
    for i in range(start_index, len(data)):
        if data[i].time == target_time:
            return data[i], i
        if data[i].time > target_time:
            if i > start_index:
                previous = data[i - 1]
                time_diff = data[i].time - previous.time
                target_diff = target_time - previous.time
                if abs(target_diff) <= time_diff:
                    return interpolate_candle(previous, data[i], target_time), i
            return data[i], i

    if len(data) > start_index:
        return data[-1], len(data) - 1
    return None


def calculate_combined_candle(call_candle: Candle, put_candle: Candle,
                              calculation_method: CalculationMethod,
                              time: Optional[int] = None) -> CombinedCandle:
    """Aggregate a matched call/put pair; volume is always summed"""
    if calculation_method == 'average':
        open_, high, low, close = (
            (call_candle.open + put_candle.open) / 2,
            (call_candle.high + put_candle.high) / 2,
            (call_candle.low + put_candle.low) / 2,
            (call_candle.close + put_candle.close) / 2,
        )
    else:
        open_, high, low, close = (
            call_candle.open + put_candle.open,
            call_candle.high + put_candle.high,
            call_candle.low + put_candle.low,
            call_candle.close + put_candle.close,
        )

    return CombinedCandle(
        time=call_candle.time if time is None else time,
        open=open_,
        high=high,
        low=low,
        close=close,
        volume=(call_candle.volume or 0.0) + (put_candle.volume or 0.0),
    )


def combine_option_data(call_data: Sequence[Candle], put_data: Sequence[Candle],
                        calculation_method: CalculationMethod = 'average') -> List[CombinedCandle]:
    """
    Combine a call series and a put series into one straddle/strangle series.

    A lone leg passes through normalized. With both legs present the series
    are walked with two cursors; bars closer than the matching tolerance are
    paired (the later one interpolated back to the earlier time), otherwise
    the leading bar is paired with its best match on the other leg.
    """
    if calculation_method not in CALCULATION_METHODS:
        raise ValueError(f"Unknown calculation method: {calculation_method!r}")

    calls = normalize_candles(call_data)
    puts = normalize_candles(put_data)

    if calls and not puts:
        return calls
    if puts and not calls:
        return puts
    if not calls and not puts:
        return []

    avg_interval = calculate_average_interval(calls, puts)
    tolerance = max(avg_interval * 0.5, MIN_TOLERANCE)

    combined: List[CombinedCandle] = []
    call_index = 0
    put_index = 0

    while call_index < len(calls) and put_index < len(puts):
        call = calls[call_index]
        put = puts[put_index]

        if abs(call.time - put.time) <= tolerance:
            reference_time = min(call.time, put.time)
            call_match = call if call.time == reference_time else interpolate_candle(
                calls[call_index - 1] if call_index > 0 else call, call, reference_time)
            put_match = put if put.time == reference_time else interpolate_candle(
                puts[put_index - 1] if put_index > 0 else put, put, reference_time)

            combined.append(calculate_combined_candle(
                call_match, put_match, calculation_method, reference_time))

            if call.time <= put.time:
                call_index += 1
            if put.time <= call.time:
                put_index += 1

        elif call.time < put.time:
            match = find_best_match_candle(puts, put_index, call.time)
            if match:
                combined.append(calculate_combined_candle(
                    call, match[0], calculation_method, call.time))
                put_index = match[1] + 1
            call_index += 1

        else:
            match = find_best_match_candle(calls, call_index, put.time)
            if match:
                combined.append(calculate_combined_candle(
                    match[0], put, calculation_method, put.time))
                call_index = match[1] + 1
            put_index += 1

    # Trailing bars: once a leg is exhausted its last bar is the best match
    while call_index < len(calls):
        call = calls[call_index]
        match = find_best_match_candle(puts, min(put_index, len(puts) - 1), call.time)
        if match:
            combined.append(calculate_combined_candle(call, match[0], calculation_method, call.time))
        call_index += 1

    while put_index < len(puts):
        put = puts[put_index]
        match = find_best_match_candle(calls, min(call_index, len(calls) - 1), put.time)
        if match:
            combined.append(calculate_combined_candle(match[0], put, calculation_method, put.time))
        put_index += 1

    combined.sort(key=lambda c: c.time)
    result = [c for i, c in enumerate(combined) if i == 0 or c.time != combined[i - 1].time]

    logger.debug(f"Combined {len(calls)} call and {len(puts)} put candles into {len(result)} "
                 f"({calculation_method}, tolerance {tolerance:.0f}s)")
    return result
