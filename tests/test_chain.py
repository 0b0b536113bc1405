import pytest

from delta_straddle.chain import (
    OptionChain,
    Selection,
    create_straddle_pair,
    create_strangle_pair,
    find_atm_strike,
    format_settlement_date,
    get_strike_range,
    parse_option_chain,
    parse_settlement_dates,
    parse_product,
)


def _product(symbol, contract_type, strike, settlement="2024-06-28T12:00:00Z", asset="BTC", **extra):
    data = {
        'symbol': symbol,
        'contract_type': contract_type,
        'strike_price': str(strike),
        'settlement_time': settlement,
        'underlying_asset': {'symbol': asset},
    }
    data.update(extra)
    return data


@pytest.fixture
def products():
    return [
        _product('C-BTC-62000-280624', 'call_options', 62000, mark_price='850.5'),
        _product('C-BTC-60000-280624', 'call_options', 60000),
        _product('P-BTC-60000-280624', 'put_options', 60000, mark_price='700'),
        _product('P-BTC-58000-280624', 'put_options', 58000),
        _product('C-BTC-60000-290624', 'call_options', 60000, settlement="2024-06-29T12:00:00Z"),
        _product('C-ETH-3000-280624', 'call_options', 3000, asset="ETH"),
        {'symbol': 'broken', 'contract_type': 'call_options'},
    ]


def test_parse_option_chain_filters_and_sorts(products):
    chain = parse_option_chain(products, "2024-06-28T12:00:00Z")
    assert [c.strike_price for c in chain.calls] == [60000, 62000]
    assert [p.strike_price for p in chain.puts] == [58000, 60000]
    assert chain.calls[1].mark_price == 850.5
    assert chain.calls[0].mark_price is None
    assert chain.calls[0].option_type == 'call'
    assert chain.puts[0].option_type == 'put'


def test_parse_product_rejects_incomplete():
    assert parse_product({'symbol': 'x'}) is None
    assert parse_product(_product('x', 'call_options', 'abc')) is None


def test_parse_settlement_dates():
    payload = {'result': [
        {'contract_type': 'put_options', 'data': [{'asset': 'BTC', 'settlement_time': ['ignored']}]},
        {'contract_type': 'call_options', 'data': [
            {'asset': 'ETH', 'settlement_time': ['2024-06-27T12:00:00Z']},
            {'asset': 'BTC', 'settlement_time': ['2024-06-28T12:00:00Z', '2024-07-05T12:00:00Z']},
        ]},
    ]}
    assert parse_settlement_dates(payload, 'BTC') == ['2024-06-28T12:00:00Z', '2024-07-05T12:00:00Z']
    assert parse_settlement_dates({'result': []}, 'BTC') == []


def test_format_settlement_date():
    assert format_settlement_date("2024-06-28T12:00:00Z") == "28 JUN 24"


def test_strike_helpers(products):
    chain = parse_option_chain(products, "2024-06-28T12:00:00Z")
    assert get_strike_range(chain) == (58000, 62000)
    assert get_strike_range(OptionChain()) is None
    assert find_atm_strike(chain, 60900) == 60000
    assert find_atm_strike(OptionChain(), 60900) is None


def test_pair_helpers(products):
    chain = parse_option_chain(products, "2024-06-28T12:00:00Z")
    assert create_straddle_pair(chain, 60000) == {
        'call_symbol': 'C-BTC-60000-280624', 'put_symbol': 'P-BTC-60000-280624', 'strike': 60000}
    assert create_straddle_pair(chain, 62000) is None

    strangle = create_strangle_pair(chain, 62000, 58000)
    assert strangle['call_symbol'] == 'C-BTC-62000-280624'
    assert strangle['put_symbol'] == 'P-BTC-58000-280624'


def test_selection_from_contract(products):
    chain = parse_option_chain(products, "2024-06-28T12:00:00Z")
    selection = Selection.from_contract(chain.calls[1])
    assert selection.type == 'call'
    assert selection.strike == 62000
    assert selection.settlement_date == "2024-06-28"
    assert selection.price == "850.5"
