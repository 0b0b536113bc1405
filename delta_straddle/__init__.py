"""
Delta Straddle Dashboard Package
Combined straddle/strangle charts, CCI and option strategy P&L for Delta Exchange
"""

from .candles import Candle, CombinedCandle, IndicatorPoint, normalize_candles, apply_candle_update
from .combine import combine_option_data
from .sync import synchronize_with_options
from .indicators import calculate_cci
from .chain import OptionChain, OptionContract, Selection
from .positions import Position, PositionManager, PositionSummary, create_position
from .pnl import PriceRange, PnLPoint, generate_pnl_curve, generate_portfolio_pnl_curve, calculate_price_range
from .strategy import StrategyInfo, StrategyType, detect_strategy
from .chart import CombinedChart, build_combined_chart

__version__ = "1.0.0"
__all__ = [
    "Candle",
    "CombinedCandle",
    "IndicatorPoint",
    "normalize_candles",
    "apply_candle_update",
    "combine_option_data",
    "synchronize_with_options",
    "calculate_cci",
    "OptionChain",
    "OptionContract",
    "Selection",
    "Position",
    "PositionManager",
    "PositionSummary",
    "create_position",
    "PriceRange",
    "PnLPoint",
    "generate_pnl_curve",
    "generate_portfolio_pnl_curve",
    "calculate_price_range",
    "StrategyInfo",
    "StrategyType",
    "detect_strategy",
    "CombinedChart",
    "build_combined_chart",
]
