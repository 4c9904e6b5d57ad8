import pytest

from vrf_raffle.chain import Chain
from vrf_raffle.config import NetworkConfig
from vrf_raffle.coordinator import MockCoordinator
from vrf_raffle.project_constants import WEI_PER_ETHER
from vrf_raffle.raffle import Raffle

ENTRANCE_FEE = WEI_PER_ETHER // 10  # 0.1 ether
INTERVAL = 30
START_TIME = 1_700_000_000


@pytest.fixture
def chain():
    return Chain(timestamp=START_TIME)


@pytest.fixture
def coordinator(chain):
    return MockCoordinator(chain.new_address())


@pytest.fixture
def config(coordinator):
    return NetworkConfig(
        entrance_fee=ENTRANCE_FEE,
        interval=INTERVAL,
        vrf_coordinator=coordinator.address,
        key_hash="0x" + "ab" * 32,
        subscription_id=42,
        callback_gas_limit=500_000,
    )


@pytest.fixture
def raffle(config, chain, coordinator):
    return Raffle(config, chain, coordinator)


@pytest.fixture
def new_player(chain):
    """Factory for funded player addresses."""

    def _new_player(balance=10 * ENTRANCE_FEE):
        address = chain.new_address()
        chain.fund(address, balance)
        return address

    return _new_player


@pytest.fixture
def entered_raffle(raffle, new_player, chain):
    """A raffle with one player whose interval has passed."""
    raffle.enter(new_player(), ENTRANCE_FEE)
    chain.time_travel(INTERVAL + 1)
    return raffle
