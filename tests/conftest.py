import pytest
import pytest_asyncio

from wallet_session.core.session import WalletSessionManager, memory_session_store

from tests.fakes import ALICE, BOB, FakeProvider


# Balance used across tests: 1.234567999999999999 ETH
RAW_BALANCE = 1_234_567_999_999_999_999


@pytest.fixture
def provider() -> FakeProvider:
    """Provider holding two accounts on mainnet, also aware of Sepolia."""
    return FakeProvider(
        accounts=[ALICE, BOB],
        chain_id="0x1",
        balance=RAW_BALANCE,
        known_chains={"0x1", "0xaa36a7"},
    )


@pytest.fixture
def store():
    return memory_session_store()


@pytest_asyncio.fixture
async def manager(provider, store):
    """Session manager with a status window long enough to assert on messages."""
    manager = WalletSessionManager(provider, store, status_ttl_seconds=60)
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def connected(manager):
    """Manager already connected to ALICE on mainnet."""
    result = await manager.connect()
    assert result.ok
    return manager
