from delta_straddle.candles import Candle, apply_candle_update, normalize_candles, parse_candles


def test_normalize_sorts_and_last_duplicate_wins(candle):
    series = [candle(120, 3), candle(60, 1), candle(120, 4), candle(0, 0)]
    result = normalize_candles(series)
    assert [c.time for c in result] == [0, 60, 120]
    assert result[-1].open == 4


def test_parse_candles_converts_strings_and_fills_missing():
    raw = [
        {'time': 120, 'open': '10.5', 'high': '11', 'low': '10', 'close': '10.8', 'volume': 5},
        {'time': 60, 'open': '9', 'close': '9.5'},
        {'open': '1'},
        "garbage",
    ]
    candles = parse_candles(raw)
    assert [c.time for c in candles] == [60, 120]
    assert candles[0].high == 0.0
    assert candles[0].volume is None
    assert candles[1] == Candle(time=120, open=10.5, high=11.0, low=10.0, close=10.8, volume=5.0)


def test_to_dict_omits_missing_volume(candle):
    assert 'volume' not in candle(60).to_dict()
    assert candle(60, v=2.0).to_dict()['volume'] == 2.0


def test_apply_update_appends_newer_bar(candle):
    series = [candle(0), candle(60)]
    updated = apply_candle_update(series, candle(120, 5))
    assert [c.time for c in updated] == [0, 60, 120]
    assert len(series) == 2


def test_apply_update_replaces_same_time(candle):
    series = [candle(0), candle(60)]
    updated = apply_candle_update(series, candle(60, 7))
    assert len(updated) == 2
    assert updated[-1].open == 7


def test_apply_update_inserts_out_of_order(candle):
    series = [candle(0), candle(120)]
    updated = apply_candle_update(series, candle(60, 3))
    assert [c.time for c in updated] == [0, 60, 120]
    replaced = apply_candle_update(updated, candle(0, 9))
    assert replaced[0].open == 9
    assert len(replaced) == 3


def test_apply_update_on_empty_series(candle):
    assert apply_candle_update([], candle(60)) == [candle(60)]
