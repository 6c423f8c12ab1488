from __future__ import annotations

from ...clients.chain import ChainReader
from ...domain import VaultKind
from ...settings import TrackerSettings, VaultSettings
from .balancer import BalancerV2Adapter, BalancerV3Adapter
from .base import BasePositionAdapter
from .beefy import BeefyVaultAdapter

POSITION_ADAPTERS: dict[VaultKind, type[BasePositionAdapter]] = {
    VaultKind.BALANCER_V2: BalancerV2Adapter,
    VaultKind.BALANCER_V3: BalancerV3Adapter,
    VaultKind.BEEFY: BeefyVaultAdapter,
}


def build_position_adapter(
    config: TrackerSettings, vault: VaultSettings, chain: ChainReader
) -> BasePositionAdapter:
    """Instantiate the position adapter registered for ``vault.kind``."""
    try:
        adapter_cls = POSITION_ADAPTERS[vault.kind]
    except KeyError:
        raise ValueError(f"No position adapter for vault kind '{vault.kind}'") from None
    return adapter_cls(config, vault, chain)


__all__ = [
    "BalancerV2Adapter",
    "BalancerV3Adapter",
    "BasePositionAdapter",
    "BeefyVaultAdapter",
    "POSITION_ADAPTERS",
    "build_position_adapter",
]
