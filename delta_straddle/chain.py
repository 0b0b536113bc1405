"""
Option chain model
Delta Exchange products filtered into calls / puts for one settlement date
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Literal, Optional, Tuple

logger = logging.getLogger(__name__)

OptionType = Literal['call', 'put']

CALL_CONTRACT = 'call_options'
PUT_CONTRACT = 'put_options'


def _optional_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass
class OptionContract:
    symbol: str
    contract_type: str          # "call_options" or "put_options"
    strike_price: float
    settlement_time: str
    underlying_asset: str
    settlement_date: str
    mark_price: Optional[float] = None
    bid_price: Optional[float] = None
    ask_price: Optional[float] = None
    volume: Optional[float] = None
    open_interest: Optional[float] = None

    @property
    def option_type(self) -> OptionType:
        return 'call' if self.contract_type == CALL_CONTRACT else 'put'

    def to_dict(self) -> dict:
        return {
            'symbol': self.symbol,
            'contract_type': self.contract_type,
            'strike_price': self.strike_price,
            'settlement_time': self.settlement_time,
            'underlying_asset': self.underlying_asset,
            'settlement_date': self.settlement_date,
            'mark_price': self.mark_price,
            'bid_price': self.bid_price,
            'ask_price': self.ask_price,
            'volume': self.volume,
            'open_interest': self.open_interest,
        }


@dataclass
class OptionChain:
    calls: List[OptionContract] = field(default_factory=list)
    puts: List[OptionContract] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'calls': [c.to_dict() for c in self.calls],
            'puts': [p.to_dict() for p in self.puts],
        }


@dataclass(frozen=True)
class Selection:
    """A leg picked from the chain; price is the quoted premium, if any"""
    type: OptionType
    symbol: str
    strike: float
    settlement_date: str
    price: Optional[str] = None

    @classmethod
    def from_contract(cls, contract: OptionContract) -> "Selection":
        return cls(
            type=contract.option_type,
            symbol=contract.symbol,
            strike=contract.strike_price,
            settlement_date=contract.settlement_date,
            price=str(contract.mark_price) if contract.mark_price is not None else None,
        )


def parse_product(product: Dict) -> Optional[OptionContract]:
    """Map one /products entry to an OptionContract, None if unusable"""
    try:
        settlement_time = product['settlement_time']
        strike = float(product['strike_price'])
        underlying = product.get('underlying_asset') or {}
        underlying_symbol = underlying.get('symbol') if isinstance(underlying, dict) else str(underlying)
        return OptionContract(
            symbol=product['symbol'],
            contract_type=product['contract_type'],
            strike_price=strike,
            settlement_time=settlement_time,
            underlying_asset=underlying_symbol,
            settlement_date=settlement_time.split('T')[0],
            mark_price=_optional_float(product.get('mark_price')),
            bid_price=_optional_float(product.get('bid_price')),
            ask_price=_optional_float(product.get('ask_price')),
            volume=_optional_float(product.get('volume_24h')),
            open_interest=_optional_float(product.get('open_interest_24h')),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        logger.debug(f"Skipping malformed product {product.get('symbol')}: {e}")
        return None


def parse_option_chain(products: List[Dict], settlement_time: str,
                       underlying: str = "BTC") -> OptionChain:
    """Filter products to one underlying and settlement date, sorted by strike"""
    selected_date = settlement_time.split('T')[0]
    contracts = []
    for product in products or []:
        contract = parse_product(product)
        if contract is None:
            continue
        if contract.underlying_asset != underlying:
            continue
        if not contract.settlement_time.startswith(selected_date):
            continue
        contracts.append(contract)

    calls = sorted((c for c in contracts if c.contract_type == CALL_CONTRACT),
                   key=lambda c: c.strike_price)
    puts = sorted((c for c in contracts if c.contract_type == PUT_CONTRACT),
                  key=lambda c: c.strike_price)
    return OptionChain(calls=calls, puts=puts)


def parse_settlement_dates(payload: Dict, asset: str = "BTC") -> List[str]:
    """Settlement times listed for the asset's call options in /web/options/info"""
    for group in payload.get('result', []) or []:
        if group.get('contract_type') != CALL_CONTRACT:
            continue
        for item in group.get('data', []) or []:
            if item.get('asset') == asset and item.get('settlement_time'):
                return list(item['settlement_time'])
    return []


def format_settlement_date(date_string: str) -> str:
    """'2024-06-28T12:00:00Z' -> '28 JUN 24'"""
    date = datetime.fromisoformat(date_string.replace('Z', '+00:00'))
    return date.strftime('%d %b %y').upper()


def _all_strikes(chain: OptionChain) -> List[float]:
    return [c.strike_price for c in chain.calls] + [p.strike_price for p in chain.puts]


def get_strike_range(chain: OptionChain) -> Optional[Tuple[float, float]]:
    strikes = _all_strikes(chain)
    if not strikes:
        return None
    return min(strikes), max(strikes)


def find_atm_strike(chain: OptionChain, current_price: float) -> Optional[float]:
    """Strike closest to the current underlying price"""
    strikes = _all_strikes(chain)
    if not strikes:
        return None
    return min(strikes, key=lambda k: abs(k - current_price))


def _find(contracts: List[OptionContract], strike: float) -> Optional[OptionContract]:
    return next((c for c in contracts if c.strike_price == strike), None)


def create_straddle_pair(chain: OptionChain, strike: float) -> Optional[Dict]:
    call = _find(chain.calls, strike)
    put = _find(chain.puts, strike)
    if call and put:
        return {'call_symbol': call.symbol, 'put_symbol': put.symbol, 'strike': strike}
    return None


def create_strangle_pair(chain: OptionChain, call_strike: float,
                         put_strike: float) -> Optional[Dict]:
    call = _find(chain.calls, call_strike)
    put = _find(chain.puts, put_strike)
    if call and put:
        return {
            'call_symbol': call.symbol,
            'put_symbol': put.symbol,
            'call_strike': call_strike,
            'put_strike': put_strike,
        }
    return None
