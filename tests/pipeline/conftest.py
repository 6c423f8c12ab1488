from __future__ import annotations

import logging

import pytest

from factories import ONE_YEAR_LATER, WALLET
from lp_tracker.pipeline.context import VaultContext
from lp_tracker.settings import TrackerSettings, VaultSettings
from lp_tracker.state import AppState


@pytest.fixture
def make_state():
    def _make(**settings) -> AppState:
        settings.setdefault("vaults", [])
        return AppState(
            settings=TrackerSettings(**settings), logger=logging.getLogger("test")
        )

    return _make


@pytest.fixture
def make_ctx(make_state):
    def _make(vault: VaultSettings, adapter, prices, **settings) -> VaultContext:
        return VaultContext(
            state=make_state(**settings),
            vault=vault,
            wallet=WALLET,
            adapter=adapter,
            prices=prices,
            now=ONE_YEAR_LATER,
        )

    return _make
