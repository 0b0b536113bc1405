"""
Delta Exchange API Client
Fetches option chains, candles and tickers from the public REST API
"""

import aiohttp
import asyncio
import logging
import ssl
import time
from typing import Any, Dict, List, Optional

import certifi

from .candles import Candle, parse_candles
from .chain import OptionChain, parse_option_chain, parse_settlement_dates
from .config import Settings

logger = logging.getLogger(__name__)

# Dashboard resolution codes (minutes) -> API resolution
RESOLUTION_MAP = {
    '1': '1m',
    '3': '3m',
    '5': '5m',
    '15': '15m',
    '30': '30m',
    '60': '1h',
    '120': '2h',
    '240': '4h',
    '360': '6h',
    '1440': '1d',
    '10080': '1w',
    '20160': '2w',
    '7d': '7d',
    '43200': '30d',
}

CHAIN_TTL = 5 * 60
TICKER_TTL = 60
PRICE_TTL = 2 * 60
CANDLE_TTL = 5 * 60

DEFAULT_LOOKBACK = 7 * 24 * 60 * 60   # seconds of history when no start is given


class DeltaAPIError(Exception):
    """Raised when the exchange cannot be reached or rejects a request"""


class ResponseCache:
    """Per-key response cache with a time-to-live checked on read"""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._items: Dict[str, tuple] = {}

    def get(self, key: str, ttl: float) -> Optional[Any]:
        item = self._items.get(key)
        if item is None:
            return None
        stored_at, value = item
        if self._clock() - stored_at > ttl:
            del self._items[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        self._items[key] = (self._clock(), value)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


class DeltaClient:
    """
    Async client for Delta Exchange public endpoints
    No authentication needed
    """

    HEADERS = {
        'User-Agent': 'Delta-Straddle-Dashboard/1.0',
        'Accept': 'application/json',
    }

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings.from_env()
        self._session: Optional[aiohttp.ClientSession] = None
        self._ssl_context = ssl.create_default_context(cafile=certifi.where())
        self.cache = ResponseCache()

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(ssl=self._ssl_context)
            self._session = aiohttp.ClientSession(
                connector=connector,
                headers=self.HEADERS,
                timeout=aiohttp.ClientTimeout(total=self.settings.timeout),
            )
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    async def _request(self, url: str, params: dict = None) -> dict:
        """
        GET with retries: 429 backs off 2s per attempt, transport errors and
        5xx back off 1s per attempt, other 4xx fail immediately.
        """
        session = await self._get_session()
        attempts = self.settings.max_retries
        last_error: Optional[BaseException] = None

        for attempt in range(1, attempts + 1):
            try:
                async with session.get(url, params=params) as response:
                    if response.status == 429:
                        last_error = DeltaAPIError("HTTP 429: rate limited")
                        if attempt < attempts:
                            logger.warning(f"Rate limited, waiting before retry {attempt}/{attempts}")
                            await asyncio.sleep(2.0 * attempt)
                        continue
                    if 400 <= response.status < 500:
                        text = await response.text()
                        raise DeltaAPIError(f"HTTP {response.status}: {response.reason} - {text}")
                    response.raise_for_status()
                    return await response.json(content_type=None)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_error = e
                logger.warning(f"Attempt {attempt}/{attempts} failed for {url}: {e}")
                if attempt < attempts:
                    await asyncio.sleep(1.0 * attempt)

        raise DeltaAPIError(f"Request to {url} failed after {attempts} attempts: {last_error}")

    @staticmethod
    def _result(data: dict, what: str) -> Any:
        if not isinstance(data, dict) or not data.get('success'):
            raise DeltaAPIError(f"Delta API returned unsuccessful response for {what}")
        return data.get('result')

    async def get_settlement_dates(self, asset: Optional[str] = None) -> List[str]:
        """Upcoming settlement times for the asset's options"""
        asset = asset or self.settings.underlying
        payload = await self._request(self.settings.options_info_url)
        return parse_settlement_dates(payload, asset)

    async def get_option_chain(self, settlement_time: str,
                               underlying: Optional[str] = None) -> OptionChain:
        """Calls and puts for one settlement date, sorted by strike"""
        underlying = underlying or self.settings.underlying
        cache_key = f"chain:{underlying}:{settlement_time.split('T')[0]}"
        cached = self.cache.get(cache_key, CHAIN_TTL)
        if cached is not None:
            return cached

        data = await self._request(f"{self.settings.base_url}/products", {
            'contract_types': 'call_options,put_options',
            'underlying_asset': underlying,
        })
        products = self._result(data, "products") or []
        chain = parse_option_chain(products, settlement_time, underlying)
        logger.info(f"Fetched {len(chain.calls)} calls and {len(chain.puts)} puts for {settlement_time}")

        self.cache.set(cache_key, chain)
        return chain

    async def get_candles(self, symbol: str, resolution: str = '1',
                          start: Optional[int] = None, end: Optional[int] = None) -> List[Candle]:
        """
        Historical candles for a symbol. Option symbols are read from the
        mark-price series. Exchange failures yield an empty list.
        """
        api_resolution = RESOLUTION_MAP.get(str(resolution))
        if api_resolution is None:
            raise ValueError(f"Invalid resolution: {resolution!r}. Valid values: {', '.join(RESOLUTION_MAP)}")

        use_cache = start is None and end is None
        cache_key = f"candles:{symbol}:{resolution}"
        if use_cache:
            cached = self.cache.get(cache_key, CANDLE_TTL)
            if cached is not None:
                return list(cached)

        effective_symbol = f"MARK:{symbol}" if '-' in symbol else symbol
        now = int(time.time())
        params = {
            'symbol': effective_symbol,
            'resolution': api_resolution,
            'start': str(start if start is not None else now - DEFAULT_LOOKBACK),
            'end': str(end if end is not None else now),
        }

        try:
            data = await self._request(f"{self.settings.base_url}/history/candles", params)
        except DeltaAPIError as e:
            logger.error(f"Candle request failed for {symbol}: {e}")
            return []

        if not isinstance(data, dict) or not data.get('success') or not isinstance(data.get('result'), list):
            logger.warning(f"No candle data found for {symbol}")
            return []

        candles = parse_candles(data['result'])
        logger.info(f"Fetched {len(candles)} candles for {symbol} ({api_resolution})")
        if use_cache:
            self.cache.set(cache_key, candles)
        return list(candles)

    async def get_ticker(self, symbol: str) -> Dict:
        """Mark/bid/ask and 24h stats for one symbol"""
        cache_key = f"ticker:{symbol}"
        cached = self.cache.get(cache_key, TICKER_TTL)
        if cached is not None:
            return cached

        data = await self._request(f"{self.settings.base_url}/tickers/{symbol}")
        result = self._result(data, f"ticker {symbol}")
        if not result:
            raise DeltaAPIError(f"No ticker data for {symbol}")

        ticker = {
            'symbol': symbol,
            'mark_price': result.get('mark_price'),
            'bid_price': result.get('bid_price'),
            'ask_price': result.get('ask_price'),
            'change_24h': result.get('change_24h'),
            'volume_24h': result.get('volume_24h'),
        }
        self.cache.set(cache_key, ticker)
        return ticker

    async def get_btc_price(self) -> float:
        """Current mark price of the underlying perpetual (e.g. BTCUSD)"""
        symbol = f"{self.settings.underlying}USD"
        cache_key = f"price:{symbol}"
        cached = self.cache.get(cache_key, PRICE_TTL)
        if cached is not None:
            return cached

        data = await self._request(f"{self.settings.base_url}/tickers/{symbol}")
        result = self._result(data, f"ticker {symbol}") or {}
        try:
            price = float(result['mark_price'])
        except (KeyError, TypeError, ValueError):
            raise DeltaAPIError(f"Invalid mark price in {symbol} ticker")

        self.cache.set(cache_key, price)
        return price
