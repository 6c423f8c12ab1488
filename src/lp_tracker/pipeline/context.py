from __future__ import annotations

from dataclasses import dataclass

from ..adapters.position_adapters.base import BasePositionAdapter
from ..domain import Deposit, PositionFacts, ValuationMode
from ..processors import PriceResolver
from ..settings import VaultSettings
from ..state import AppState


@dataclass
class VaultContext:
    state: AppState
    vault: VaultSettings
    wallet: str
    adapter: BasePositionAdapter
    prices: PriceResolver
    now: float
    facts: PositionFacts | None = None
    mode: ValuationMode | None = None
    current_block: int | None = None

    @property
    def facts_required(self) -> PositionFacts:
        if self.facts is None:
            raise RuntimeError(
                "Position facts have not been set. Ensure fetch_facts() is called before accessing this property."
            )
        return self.facts

    @property
    def deposit_required(self) -> Deposit:
        deposit = self.facts_required.initial_deposit
        if deposit is None:
            raise RuntimeError(
                f"Vault '{self.vault.name}' has no deposit history; it should have been omitted."
            )
        return deposit

    @property
    def mode_required(self) -> ValuationMode:
        if self.mode is None:
            raise RuntimeError(
                "Valuation mode has not been set. Ensure select_mode() is called before accessing this property."
            )
        return self.mode

    @property
    def current_block_required(self) -> int:
        if self.current_block is None:
            raise RuntimeError(
                "Current block has not been set. Ensure it is read before accessing this property."
            )
        return self.current_block
