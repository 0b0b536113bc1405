"""
Position Management
In-memory option positions, portfolio summary and realized P&L on close
"""

import logging
import time
import uuid
from dataclasses import dataclass, asdict
from typing import List, Literal, Optional

from .chain import OptionType, Selection

logger = logging.getLogger(__name__)

Side = Literal['long', 'short']
SIDES = ('long', 'short')

SHORT_MARGIN_MULTIPLIER = 2


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class Position:
    id: str
    symbol: str
    type: OptionType
    strike: float
    position: Side
    quantity: int
    entry_price: float
    entry_time: int       # ms since epoch
    settlement_date: str
    current_price: Optional[float] = None
    unrealized_pnl: Optional[float] = None
    realized_pnl: Optional[float] = None
    close_time: Optional[int] = None

    @property
    def is_long(self) -> bool:
        return self.position == 'long'

    def premium_pnl(self, price: float) -> float:
        """P&L from entry to an option price"""
        per_option = price - self.entry_price if self.is_long else self.entry_price - price
        return per_option * self.quantity

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class PositionSummary:
    total_positions: int
    total_unrealized_pnl: float
    total_realized_pnl: float
    total_margin: float
    net_pnl: float
    long_positions: int
    short_positions: int

    def to_dict(self) -> dict:
        return asdict(self)


def generate_position_id() -> str:
    return f"pos_{_now_ms()}_{uuid.uuid4().hex[:9]}"


def create_position(option: Selection, position: Side, quantity: int,
                    entry_price: float) -> Position:
    """Open a position on a selected leg; no side effects"""
    if position not in SIDES:
        raise ValueError(f"position must be 'long' or 'short', got {position!r}")
    if quantity < 1:
        raise ValueError("quantity must be >= 1")

    return Position(
        id=generate_position_id(),
        symbol=option.symbol,
        type=option.type,
        strike=float(option.strike),
        position=position,
        quantity=int(quantity),
        entry_price=float(entry_price),
        entry_time=_now_ms(),
        settlement_date=option.settlement_date,
    )


def intrinsic_value(option_type: str, strike: float, underlying_price: float) -> float:
    if option_type == 'call':
        return max(0.0, underlying_price - strike)
    return max(0.0, strike - underlying_price)


def calculate_position_pnl(position: Position, underlying_price: float) -> float:
    """Expiration P&L of one position at an underlying price"""
    value = intrinsic_value(position.type, position.strike, underlying_price)
    return position.premium_pnl(value)


def calculate_portfolio_summary(positions: List[Position], current_price: float,
                                realized_pnl: float = 0.0) -> PositionSummary:
    """
    Aggregate counts, margin and P&L.

    Longs post the full premium as margin, shorts SHORT_MARGIN_MULTIPLIER
    times the premium. Unrealized P&L only counts positions that have been
    marked with a current price. current_price is not read here; it keeps
    the signature aligned with PositionManager.get_portfolio_summary.
    """
    total_unrealized = 0.0
    total_margin = 0.0
    longs = 0
    shorts = 0

    for p in positions:
        notional = p.entry_price * p.quantity
        if p.is_long:
            longs += 1
            total_margin += notional
        else:
            shorts += 1
            total_margin += notional * SHORT_MARGIN_MULTIPLIER

        if p.current_price is not None:
            total_unrealized += p.unrealized_pnl or 0.0

    return PositionSummary(
        total_positions=len(positions),
        total_unrealized_pnl=total_unrealized,
        total_realized_pnl=realized_pnl,
        total_margin=total_margin,
        net_pnl=total_unrealized + realized_pnl,
        long_positions=longs,
        short_positions=shorts,
    )


class PositionManager:
    """
    Sole owner of the open positions.
    Not thread-safe: one caller performs add/remove/close serially.
    """

    def __init__(self, initial_positions: Optional[List[Position]] = None):
        self._positions: List[Position] = list(initial_positions or [])
        self._closed: List[Position] = []

    def __len__(self) -> int:
        return len(self._positions)

    def _index(self, position_id: str) -> int:
        for i, p in enumerate(self._positions):
            if p.id == position_id:
                return i
        return -1

    def add_position(self, position: Position) -> None:
        self._positions.append(position)
        logger.info(f"Added {format_position(position)} ({position.id})")

    def remove_position(self, position_id: str) -> Optional[Position]:
        """Drop a position without booking any P&L"""
        idx = self._index(position_id)
        if idx == -1:
            return None
        return self._positions.pop(idx)

    def close_position(self, position_id: str, close_price: float,
                       close_time: Optional[int] = None) -> Optional[Position]:
        """Book realized P&L at close_price and evict the position"""
        idx = self._index(position_id)
        if idx == -1:
            return None

        position = self._positions[idx]
        position.realized_pnl = position.premium_pnl(close_price)
        position.current_price = close_price
        position.unrealized_pnl = 0.0
        position.close_time = close_time if close_time is not None else _now_ms()

        self._positions.pop(idx)
        self._closed.append(position)
        logger.info(f"Closed {format_position(position)} realized {format_pnl(position.realized_pnl)}")
        return position

    def update_position_price(self, position_id: str, new_price: float) -> Optional[Position]:
        """Mark a position to a new option price"""
        position = self.get_position_by_id(position_id)
        if position is None:
            return None
        position.current_price = new_price
        position.unrealized_pnl = position.premium_pnl(new_price)
        return position

    def get_all_positions(self) -> List[Position]:
        return list(self._positions)

    def get_closed_positions(self) -> List[Position]:
        return list(self._closed)

    def get_position_by_id(self, position_id: str) -> Optional[Position]:
        idx = self._index(position_id)
        return self._positions[idx] if idx != -1 else None

    def get_portfolio_summary(self, current_price: float) -> PositionSummary:
        realized = sum(p.realized_pnl or 0.0 for p in self._closed)
        return calculate_portfolio_summary(self._positions, current_price, realized)

    def clear_all_positions(self) -> None:
        self._positions = []


def format_pnl(value: float) -> str:
    if abs(value) >= 1000:
        return f"${value / 1000:.1f}K"
    return f"${value:.2f}"


def format_position(position: Position) -> str:
    side = 'Long' if position.is_long else 'Short'
    return f"{side} {position.quantity} {position.type.upper()} {position.strike:g}"
