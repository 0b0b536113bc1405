import sys
from pathlib import Path

import pytest

# Make the project root importable so tests can import delta_straddle and main directly
ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

from delta_straddle.candles import Candle  # noqa: E402


def make_candle(t, o=100.0, h=None, l=None, c=None, v=None):
    return Candle(time=t, open=o, high=o if h is None else h, low=o if l is None else l,
                  close=o if c is None else c, volume=v)


@pytest.fixture
def candle():
    return make_candle


@pytest.fixture
def flat_series():
    return [make_candle(60 * i) for i in range(25)]
