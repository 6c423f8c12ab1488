from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

ABIS_DIR = Path(__file__).parent / "abis"

ERC20_ABI_PATH = ABIS_DIR / "ERC20.json"
REWARDS_GAUGE_ABI_PATH = ABIS_DIR / "RewardsGauge.json"
RATE_PROVIDER_ABI_PATH = ABIS_DIR / "RateProvider.json"
BEEFY_VAULT_ABI_PATH = ABIS_DIR / "BeefyVaultV7.json"


@lru_cache(maxsize=None)
def load_abi(path: str | Path) -> list[dict]:
    """Load an ABI from a JSON file and return its "abi" field.

    Args:
        path: Path to the JSON file containing an "abi" field.

    Returns:
        ABI as a list of dictionaries.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        KeyError: If the JSON does not contain an "abi" field.
    """
    p = Path(path)
    with p.open() as f:
        data = json.load(f)
    return data["abi"]


def load_erc20_abi() -> list[dict]:
    """Load the ERC20 ABI."""
    return load_abi(ERC20_ABI_PATH)


def load_rewards_gauge_abi() -> list[dict]:
    """Load the Balancer child-chain rewards gauge ABI."""
    return load_abi(REWARDS_GAUGE_ABI_PATH)


def load_rate_provider_abi() -> list[dict]:
    """Load the ERC4626 rate provider ABI."""
    return load_abi(RATE_PROVIDER_ABI_PATH)


def load_beefy_vault_abi() -> list[dict]:
    """Load the Beefy vault (V7) ABI."""
    return load_abi(BEEFY_VAULT_ABI_PATH)
