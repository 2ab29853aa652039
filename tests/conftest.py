import pytest

from helpers import load_fixture


@pytest.fixture
def usdt():
    # Ethereum mainnet block 14,911,214: Tether treasury balance.
    return load_fixture("mainnet_usdt.json")


@pytest.fixture
def weth():
    # Polygon block 29,402,055: Aave amWETH balance of WETH.
    return load_fixture("polygon_weth.json")
