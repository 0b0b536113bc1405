"""
Strategy detection for selected legs
Recognizes straddles, strangles and vertical spreads; everything else is custom
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence, Union

from .chain import Selection

UNLIMITED = "unlimited"

Bound = Union[float, str]


class StrategyType(str, Enum):
    LONG_STRADDLE = "long_straddle"
    LONG_STRANGLE = "long_strangle"
    BULL_CALL_SPREAD = "bull_call_spread"
    BEAR_PUT_SPREAD = "bear_put_spread"
    CUSTOM = "custom"


@dataclass(frozen=True)
class StrategyInfo:
    name: str
    type: StrategyType
    description: str
    is_long: bool
    max_profit: Bound
    max_loss: Bound
    breakeven_points: List[float] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'type': self.type.value,
            'description': self.description,
            'is_long': self.is_long,
            'max_profit': self.max_profit,
            'max_loss': self.max_loss,
            'breakeven_points': list(self.breakeven_points),
        }


NO_STRATEGY = StrategyInfo(
    name="No Strategy",
    type=StrategyType.CUSTOM,
    description="No options selected",
    is_long=True,
    max_profit=0.0,
    max_loss=0.0,
)


def _strike(leg: Selection) -> float:
    try:
        strike = float(leg.strike)
    except (TypeError, ValueError):
        raise ValueError(f"Leg {leg.symbol!r} has no numeric strike: {leg.strike!r}")
    if not math.isfinite(strike):
        raise ValueError(f"Leg {leg.symbol!r} has no numeric strike: {leg.strike!r}")
    return strike


def detect_strategy(legs: Sequence[Selection]) -> StrategyInfo:
    """
    Classify a set of legs.

    Straddle metrics use strike prices in place of premiums (max loss is the
    sum of both strikes, breakevens are strike -/+ strike).
    """
    if not legs:
        return NO_STRATEGY

    strikes = [_strike(leg) for leg in legs]
    calls = [k for leg, k in zip(legs, strikes) if leg.type == 'call']
    puts = [k for leg, k in zip(legs, strikes) if leg.type == 'put']

    if len(calls) == 1 and len(puts) == 1:
        call_strike, put_strike = calls[0], puts[0]
        if call_strike == put_strike:
            return StrategyInfo(
                name="Long Straddle",
                type=StrategyType.LONG_STRADDLE,
                description=f"Long call and long put at {call_strike:,.0f}; profits from a large move either way",
                is_long=True,
                max_profit=UNLIMITED,
                max_loss=call_strike + put_strike,
                breakeven_points=[call_strike - call_strike, call_strike + call_strike],
            )
        return StrategyInfo(
            name="Long Strangle",
            type=StrategyType.LONG_STRANGLE,
            description=f"Long {call_strike:,.0f} call and long {put_strike:,.0f} put; "
                        f"needs a move beyond the strikes",
            is_long=True,
            max_profit=UNLIMITED,
            max_loss=abs(call_strike - put_strike),
        )

    if len(calls) == 2 and not puts:
        low, high = sorted(calls)
        return StrategyInfo(
            name="Bull Call Spread",
            type=StrategyType.BULL_CALL_SPREAD,
            description=f"Calls at {low:,.0f} / {high:,.0f}; profits from a moderate rise",
            is_long=True,
            max_profit=high - low,
            max_loss=low,
        )

    if len(puts) == 2 and not calls:
        low, high = sorted(puts)
        return StrategyInfo(
            name="Bear Put Spread",
            type=StrategyType.BEAR_PUT_SPREAD,
            description=f"Puts at {low:,.0f} / {high:,.0f}; profits from a moderate decline",
            is_long=True,
            max_profit=high - low,
            max_loss=low,
        )

    return StrategyInfo(
        name="Custom Strategy",
        type=StrategyType.CUSTOM,
        description=f"{len(calls)} call(s) and {len(puts)} put(s)",
        is_long=True,
        max_profit=UNLIMITED,
        max_loss=UNLIMITED,
    )
