"""
Shared fixtures.
"""

import pytest

from fakes import FakeClock, InMemoryStore
from tickerintel.api.dependencies.rate_limit import limiter
from tickerintel.models.symbol_mapping import SymbolMapping


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryStore(clock)


@pytest.fixture
def btc_mapping():
    return SymbolMapping(
        symbol="BTC",
        display_name="Bitcoin",
        display_symbol="BTC",
        coingecko_id="bitcoin",
        polygon_ticker="X:BTCUSD",
        tradingview_symbol="BINANCE:BTCUSDT",
        aliases=["XBT"],
        price_supported=True,
        derivs_supported=True,
        social_supported=True,
    )


@pytest.fixture(autouse=True)
def disable_rate_limits():
    """Endpoint rate limits would leak between tests through shared storage."""
    limiter.enabled = False
    yield
    limiter.enabled = True
