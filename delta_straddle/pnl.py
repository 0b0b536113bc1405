"""
P&L curve generation at expiration
Intrinsic value only: no time value, no volatility, no Greeks
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .chain import Selection
from .positions import Position

ESTIMATED_PREMIUM_RATIO = 0.02   # of the underlying price, when a leg has no quote
DEFAULT_VOLATILITY = 0.3
DEFAULT_POINTS = 200


@dataclass(frozen=True)
class PriceRange:
    min: float
    max: float
    points: int = DEFAULT_POINTS

    def to_dict(self) -> dict:
        return {'min': self.min, 'max': self.max, 'points': self.points}


@dataclass(frozen=True)
class PnLPoint:
    price: float
    pnl: float
    label: Optional[str] = None

    def to_dict(self) -> dict:
        data = {'price': self.price, 'pnl': self.pnl}
        if self.label is not None:
            data['label'] = self.label
        return data


def _sample_prices(price_range: PriceRange) -> np.ndarray:
    if price_range.points < 2:
        raise ValueError("price range needs at least 2 points")
    step = (price_range.max - price_range.min) / (price_range.points - 1)
    return price_range.min + step * np.arange(price_range.points)


def _leg_payoff(prices: np.ndarray, option_type: str, strike: float, premium: float,
                is_long: bool, quantity: float) -> np.ndarray:
    if option_type == 'call':
        intrinsic = np.maximum(0.0, prices - strike)
    else:
        intrinsic = np.maximum(0.0, strike - prices)
    per_unit = intrinsic - premium if is_long else premium - intrinsic
    return per_unit * quantity


def _to_points(prices: np.ndarray, pnl: np.ndarray) -> List[PnLPoint]:
    return [PnLPoint(price=float(p), pnl=float(v)) for p, v in zip(prices, pnl)]


def generate_portfolio_pnl_curve(positions: Sequence[Position],
                                 price_range: PriceRange) -> List[PnLPoint]:
    """Total expiration P&L of the positions at each sampled underlying price"""
    prices = _sample_prices(price_range)
    total = np.zeros_like(prices)
    for p in positions:
        total += _leg_payoff(prices, p.type, p.strike, p.entry_price, p.is_long, p.quantity)
    return _to_points(prices, total)


def selection_premium(selection: Selection, current_price: float) -> float:
    """Quoted premium of a leg, or an estimate from the underlying price"""
    if selection.price is not None:
        try:
            premium = float(selection.price)
            if np.isfinite(premium):
                return premium
        except (TypeError, ValueError):
            pass
    return current_price * ESTIMATED_PREMIUM_RATIO


def generate_pnl_curve(selections: Sequence[Selection], price_range: PriceRange,
                       current_price: float) -> List[PnLPoint]:
    """Preview curve for selected legs, each held long with quantity 1"""
    prices = _sample_prices(price_range)
    total = np.zeros_like(prices)
    for s in selections:
        premium = selection_premium(s, current_price)
        total += _leg_payoff(prices, s.type, float(s.strike), premium, True, 1)
    return _to_points(prices, total)


def calculate_price_range(selections: Sequence[Selection], current_price: float,
                          volatility: float = DEFAULT_VOLATILITY,
                          points: int = DEFAULT_POINTS) -> PriceRange:
    """
    Strike span widened by current_price * volatility on both sides,
    lower bound floored at half the current price.
    """
    if not selections:
        return PriceRange(min=current_price * 0.7, max=current_price * 1.3, points=points)

    strikes = [float(s.strike) for s in selections]
    buffer = current_price * volatility
    return PriceRange(
        min=max(min(strikes) - buffer, current_price * 0.5),
        max=max(strikes) + buffer,
        points=points,
    )


def find_breakevens(curve: Sequence[PnLPoint]) -> List[float]:
    """Prices where the sampled curve crosses zero"""
    breakevens = []
    for prev, cur in zip(curve, curve[1:]):
        if prev.pnl == 0:
            breakevens.append(prev.price)
        elif prev.pnl * cur.pnl < 0:
            ratio = -prev.pnl / (cur.pnl - prev.pnl)
            breakevens.append(prev.price + (cur.price - prev.price) * ratio)
    if curve and curve[-1].pnl == 0:
        breakevens.append(curve[-1].price)
    return breakevens
