"""
Combined chart data: merged options series, aligned underlying and both CCIs
"""

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from .candles import Candle, CombinedCandle, IndicatorPoint, normalize_candles
from .combine import CalculationMethod, combine_option_data
from .indicators import calculate_cci
from .sync import synchronize_with_options

logger = logging.getLogger(__name__)


@dataclass
class CombinedChart:
    combined: List[CombinedCandle] = field(default_factory=list)
    underlying: List[Candle] = field(default_factory=list)
    options_cci: List[IndicatorPoint] = field(default_factory=list)
    underlying_cci: List[IndicatorPoint] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'combined': [c.to_dict() for c in self.combined],
            'underlying': [c.to_dict() for c in self.underlying],
            'options_cci': [p.to_dict() for p in self.options_cci],
            'underlying_cci': [p.to_dict() for p in self.underlying_cci],
        }


def build_combined_chart(call_data: Sequence[Candle], put_data: Sequence[Candle],
                         underlying_data: Sequence[Candle],
                         calculation_method: CalculationMethod = 'average',
                         cci_period: int = 20) -> CombinedChart:
    combined = combine_option_data(call_data, put_data, calculation_method)
    underlying = synchronize_with_options(normalize_candles(underlying_data), combined)

    chart = CombinedChart(
        combined=combined,
        underlying=underlying,
        options_cci=calculate_cci(combined, cci_period),
        underlying_cci=calculate_cci(underlying, cci_period),
    )
    logger.info(f"Chart built: {len(combined)} combined candles, {len(underlying)} underlying, "
                f"{len(chart.options_cci)}/{len(chart.underlying_cci)} CCI points")
    return chart
