from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from lp_tracker.clients.chain import ChainReader
from lp_tracker.settings import TrackerSettings


@pytest.fixture
def config():
    return TrackerSettings(vaults=[])


@pytest.fixture
def chain():
    """ChainReader double whose contracts remember their address."""
    reader = MagicMock(spec=ChainReader)

    def _contract(address, abi):
        contract = MagicMock()
        contract.address = address
        return contract

    reader.contract.side_effect = _contract
    reader.to_checksum.side_effect = lambda address: address
    reader.read_view = AsyncMock()
    reader.block_number = AsyncMock(return_value=1_000)
    return reader


@pytest.fixture
def subgraph():
    client = MagicMock()
    client.query = AsyncMock()
    return client
