"""
Dashboard configuration
Defaults can be overridden through environment variables
"""

import os
from dataclasses import dataclass

from .combine import CALCULATION_METHODS

DEFAULT_DELTA_BASE_URL = "https://api.india.delta.exchange/v2"
DEFAULT_OPTIONS_INFO_URL = "https://cdn.india.deltaex.org/web/options/info"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass
class Settings:
    base_url: str = DEFAULT_DELTA_BASE_URL
    options_info_url: str = DEFAULT_OPTIONS_INFO_URL
    underlying: str = "BTC"
    max_retries: int = 3
    timeout: float = 10.0
    calculation_method: str = "average"
    cci_period: int = 20
    pnl_points: int = 200
    pnl_volatility: float = 0.3
    log_level: str = "INFO"

    def __post_init__(self):
        if self.calculation_method not in CALCULATION_METHODS:
            raise ValueError(f"calculation_method must be one of {CALCULATION_METHODS}")
        if self.max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        if self.cci_period < 1:
            raise ValueError("cci_period must be >= 1")
        if self.pnl_points < 2:
            raise ValueError("pnl_points must be >= 2")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from DELTA_* / dashboard environment variables"""
        return cls(
            base_url=os.getenv("DELTA_BASE_URL", DEFAULT_DELTA_BASE_URL).rstrip("/"),
            options_info_url=os.getenv("DELTA_OPTIONS_INFO_URL", DEFAULT_OPTIONS_INFO_URL),
            underlying=os.getenv("DELTA_UNDERLYING", "BTC").upper(),
            max_retries=_env_int("DELTA_MAX_RETRIES", 3),
            timeout=_env_float("DELTA_TIMEOUT", 10.0),
            calculation_method=os.getenv("CALCULATION_METHOD", "average").lower(),
            cci_period=_env_int("CCI_PERIOD", 20),
            pnl_points=_env_int("PNL_POINTS", 200),
            pnl_volatility=_env_float("PNL_VOLATILITY", 0.3),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
