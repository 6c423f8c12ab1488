"""Contract view reads against the configured RPC node."""

from __future__ import annotations

import asyncio
from typing import Any

import backoff
import requests
from eth_typing import URI
from web3 import Web3
from web3.contract import Contract
from web3.exceptions import ProviderConnectionError
from web3.types import BlockIdentifier

from ..logger import TRACE, get_logger
from ..settings import TrackerSettings

logger = get_logger(__name__)

TRANSIENT_RPC_ERRORS = (
    ProviderConnectionError,
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
)


class ChainReader:
    """Async wrapper around blocking web3 contract calls.

    Calls run in worker threads, bounded by ``rpc_max_concurrent_calls``,
    and are retried on transport failures.
    """

    def __init__(self, config: TrackerSettings, w3: Web3 | None = None):
        self.config = config
        self.w3 = w3 or Web3(
            Web3.HTTPProvider(
                URI(config.rpc_url),
                request_kwargs={"timeout": config.request_timeout},
            )
        )
        self._rpc_sem = asyncio.Semaphore(config.rpc_max_concurrent_calls)

    def contract(self, address: str, abi: list[dict]) -> Contract:
        return self.w3.eth.contract(address=self.to_checksum(address), abi=abi)

    def to_checksum(self, address: str) -> str:
        return self.w3.to_checksum_address(address)

    @backoff.on_exception(
        backoff.expo,
        TRANSIENT_RPC_ERRORS,
        max_time=30,
        jitter=backoff.full_jitter,
    )
    async def _rpc(self, fn, *args, **kwargs):
        async with self._rpc_sem:
            return await asyncio.to_thread(fn, *args, **kwargs)

    async def read_view(
        self,
        contract: Contract,
        function_name: str,
        *args: Any,
        block_identifier: BlockIdentifier | None = None,
    ) -> Any:
        """Call a view function and return its decoded output."""
        bound = contract.functions[function_name](*args)
        logger.log(
            TRACE,
            "eth_call %s.%s%s @ %s",
            contract.address,
            function_name,
            args,
            block_identifier or "latest",
        )
        if block_identifier is None:
            return await self._rpc(bound.call)
        return await self._rpc(bound.call, block_identifier=block_identifier)

    async def block_number(self) -> int:
        return int(await self._rpc(lambda: self.w3.eth.block_number))
