import pytest

from delta_straddle.chain import Selection
from delta_straddle.strategy import UNLIMITED, StrategyType, detect_strategy


def _leg(option_type, strike):
    return Selection(type=option_type, symbol=f"{option_type}-{strike}", strike=strike,
                     settlement_date='2024-06-28')


def test_no_legs():
    info = detect_strategy([])
    assert info.name == "No Strategy"
    assert info.max_profit == 0
    assert info.max_loss == 0


def test_long_straddle():
    info = detect_strategy([_leg('call', 60000), _leg('put', 60000)])
    assert info.name == "Long Straddle"
    assert info.type == StrategyType.LONG_STRADDLE
    assert info.is_long
    assert info.max_profit == UNLIMITED
    assert info.max_loss == 120000
    assert info.breakeven_points == [0, 120000]


def test_long_strangle():
    info = detect_strategy([_leg('put', 58000), _leg('call', 62000)])
    assert info.name == "Long Strangle"
    assert info.type == StrategyType.LONG_STRANGLE
    assert info.max_profit == UNLIMITED
    assert info.max_loss == 4000


def test_bull_call_spread():
    info = detect_strategy([_leg('call', 65000), _leg('call', 60000)])
    assert info.name == "Bull Call Spread"
    assert info.max_profit == 5000
    assert info.max_loss == 60000


def test_bear_put_spread():
    info = detect_strategy([_leg('put', 55000), _leg('put', 60000)])
    assert info.name == "Bear Put Spread"
    assert info.type == StrategyType.BEAR_PUT_SPREAD
    assert info.max_profit == 5000


@pytest.mark.parametrize("legs", [
    [_leg('call', 60000)],
    [_leg('call', 60000), _leg('call', 61000), _leg('put', 59000)],
    [_leg('put', 60000), _leg('put', 61000), _leg('put', 62000)],
])
def test_custom_strategy(legs):
    info = detect_strategy(legs)
    assert info.name == "Custom Strategy"
    assert info.type == StrategyType.CUSTOM
    assert info.max_loss == UNLIMITED


def test_non_numeric_strike_rejected():
    with pytest.raises(ValueError):
        detect_strategy([_leg('call', 'abc'), _leg('put', 60000)])


def test_to_dict_serializes_type():
    data = detect_strategy([_leg('call', 60000), _leg('put', 60000)]).to_dict()
    assert data['type'] == 'long_straddle'
    assert data['name'] == "Long Straddle"
