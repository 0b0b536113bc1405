import math

import pytest

from delta_straddle.indicators import CCI_LIMIT, calculate_cci


def test_flat_series_yields_zero(flat_series):
    points = calculate_cci(flat_series, 20)
    assert len(points) == 6
    assert all(p.value == 0.0 for p in points)
    assert [p.time for p in points] == [c.time for c in flat_series[19:]]


@pytest.mark.parametrize("price", [512.3, 0.7, 0.1, 1234.57, 100.0])
def test_flat_series_zero_for_inexact_prices(candle, price):
    series = [candle(60 * i, price) for i in range(25)]
    points = calculate_cci(series, 20)
    assert [p.value for p in points] == [0.0] * 6


@pytest.mark.parametrize("length,expected", [(20, 0), (21, 2), (40, 21)])
def test_window_threshold(candle, length, expected):
    series = [candle(60 * i, 100 + i % 7, 105 + i % 5, 95 - i % 3, 100 + i % 4) for i in range(length)]
    assert len(calculate_cci(series, 20)) == expected


def test_values_are_clamped(candle):
    series = [candle(60 * i) for i in range(30)]
    # one spike after a long flat stretch drives the deviation towards zero
    series += [candle(60 * 30, 100, 100.0001, 100, 100.0001)]
    series += [candle(60 * (31 + i), 5000, 9000, 1, 8000) for i in range(3)]
    for p in calculate_cci(series, 20):
        assert math.isfinite(p.value)
        assert -CCI_LIMIT <= p.value <= CCI_LIMIT


def test_rising_series_positive(candle):
    series = [candle(60 * i, 100 + i) for i in range(25)]
    points = calculate_cci(series, 20)
    assert all(p.value > 0 for p in points)


def test_invalid_period(flat_series):
    with pytest.raises(ValueError):
        calculate_cci(flat_series, 0)
