import asyncio

import pytest

from delta_straddle.config import Settings
from delta_straddle.delta import DeltaAPIError, DeltaClient, ResponseCache


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def client():
    return DeltaClient(Settings())


def _stub_request(client, responses):
    calls = []

    async def fake_request(url, params=None):
        calls.append((url, params))
        response = responses(url, params) if callable(responses) else responses
        if isinstance(response, Exception):
            raise response
        return response

    client._request = fake_request
    return calls


def test_response_cache_expires():
    clock = FakeClock()
    cache = ResponseCache(clock=clock)
    cache.set("k", 1)
    assert cache.get("k", 60) == 1
    clock.now = 61
    assert cache.get("k", 60) is None
    assert len(cache) == 0


def test_get_candles_uses_mark_prefix_for_options(client):
    calls = _stub_request(client, {'success': True, 'result': [
        {'time': 120, 'open': '2', 'high': '3', 'low': '1', 'close': '2.5'},
        {'time': 60, 'open': '1', 'high': '2', 'low': '0.5', 'close': '1.5'},
    ]})
    candles = asyncio.run(client.get_candles('C-BTC-60000-280624', '5'))
    assert [c.time for c in candles] == [60, 120]
    url, params = calls[0]
    assert url.endswith('/history/candles')
    assert params['symbol'] == 'MARK:C-BTC-60000-280624'
    assert params['resolution'] == '5m'

    asyncio.run(client.get_candles('BTCUSD', '60'))
    assert calls[1][1]['symbol'] == 'BTCUSD'


def test_get_candles_cached(client):
    calls = _stub_request(client, {'success': True, 'result': [{'time': 60, 'close': '1'}]})
    asyncio.run(client.get_candles('BTCUSD'))
    asyncio.run(client.get_candles('BTCUSD'))
    assert len(calls) == 1


def test_get_candles_failures_yield_empty(client):
    _stub_request(client, DeltaAPIError("down"))
    assert asyncio.run(client.get_candles('BTCUSD')) == []

    _stub_request(client, {'success': False})
    assert asyncio.run(client.get_candles('ETHUSD')) == []


def test_get_candles_invalid_resolution(client):
    with pytest.raises(ValueError):
        asyncio.run(client.get_candles('BTCUSD', '7'))


def test_get_option_chain(client):
    calls = _stub_request(client, {'success': True, 'result': [
        {'symbol': 'C-BTC-60000-280624', 'contract_type': 'call_options', 'strike_price': '60000',
         'settlement_time': '2024-06-28T12:00:00Z', 'underlying_asset': {'symbol': 'BTC'}},
        {'symbol': 'P-BTC-60000-280624', 'contract_type': 'put_options', 'strike_price': '60000',
         'settlement_time': '2024-06-28T12:00:00Z', 'underlying_asset': {'symbol': 'BTC'}},
    ]})
    chain = asyncio.run(client.get_option_chain('2024-06-28T12:00:00Z'))
    assert len(chain.calls) == 1
    assert len(chain.puts) == 1
    asyncio.run(client.get_option_chain('2024-06-28'))
    assert len(calls) == 1
    assert calls[0][1]['underlying_asset'] == 'BTC'


def test_get_option_chain_unsuccessful(client):
    _stub_request(client, {'success': False})
    with pytest.raises(DeltaAPIError):
        asyncio.run(client.get_option_chain('2024-06-28'))


def test_get_btc_price(client):
    calls = _stub_request(client, {'success': True, 'result': {'mark_price': '64250.5'}})
    assert asyncio.run(client.get_btc_price()) == 64250.5
    assert calls[0][0].endswith('/tickers/BTCUSD')

    client.cache.clear()
    _stub_request(client, {'success': True, 'result': {}})
    with pytest.raises(DeltaAPIError):
        asyncio.run(client.get_btc_price())


def test_get_ticker(client):
    _stub_request(client, {'success': True, 'result': {
        'mark_price': '850', 'bid_price': '840', 'ask_price': '860', 'volume_24h': 12}})
    ticker = asyncio.run(client.get_ticker('C-BTC-60000-280624'))
    assert ticker['symbol'] == 'C-BTC-60000-280624'
    assert ticker['mark_price'] == '850'
    assert ticker['volume_24h'] == 12


def test_get_settlement_dates(client):
    calls = _stub_request(client, {'result': [{'contract_type': 'call_options', 'data': [
        {'asset': 'BTC', 'settlement_time': ['2024-06-28T12:00:00Z']}]}]})
    assert asyncio.run(client.get_settlement_dates()) == ['2024-06-28T12:00:00Z']
    assert calls[0][0] == client.settings.options_info_url
