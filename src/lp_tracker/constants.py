"""Static price tables, contract addresses and default vault configuration."""

from typing import TypedDict

DEFAULT_SONIC_RPC_URL = "https://rpc.soniclabs.com"

# URL templates; ``{api_key}`` is filled from the subgraph API key setting.
DEFAULT_BALANCER_V2_SUBGRAPH_URL = (
    "https://gateway-arbitrum.network.thegraph.com/api/{api_key}"
    "/subgraphs/id/wwazpiPPt5oJMiTNnQ2VjVxKnKakGDuE2FfEZPD4TKj"
)
DEFAULT_BALANCER_V3_SUBGRAPH_URL = (
    "https://gateway-arbitrum.network.thegraph.com/api/{api_key}"
    "/subgraphs/id/8dRsm8mbA77DwEhVQVgzKmmYByjcbZoyXkafDbD5TuHq"
)
DEFAULT_BEEFY_SUBGRAPH_URL = (
    "https://api.goldsky.com/api/public/project_clu2walwem1qm01w40v3yhw1f"
    "/subgraphs/beefy-balances-sonic/latest/gn"
)
DEFAULT_COINGECKO_API_URL = "https://api.coingecko.com/api/v3"
DEFAULT_BEEFY_API_URL = "https://api.beefy.finance"

SECONDS_PER_DAY = 60 * 60 * 24
DAYS_PER_YEAR = 365
FIXED_POINT_ONE = 10**18
BPT_DECIMALS = 18

# deposit and reward slots per report row
MAX_REPORTED_TOKENS = 2

# Calendar date format of CoinGecko's /coins/{id}/history endpoint.
COINGECKO_DATE_FORMAT = "%d-%m-%Y"

# token symbol (lowercase) -> CoinGecko coin id
COINGECKO_TOKEN_IDS: dict[str, str] = {
    "swpx": "swapx-2",
    "usdt": "tether",
    "usdc.e": "sonic-bridged-usdc-e-sonic",
    "ws": "wrapped-sonic",
    "scusd": "rings-scusd",
    "shadow": "shadow-2",
    "x33": "shadow-liquid-staking-token",
    "frxusd": "frax-usd",
    "weth": "weth",
    "pendle": "pendle",
    "wbtc": "wrapped-bitcoin",
    "scbtc": "rings-scbtc",
    "lbtc": "lombard-staked-btc",
    "beets": "beets",
    "wasonicsolvbtcbbn": "solv-protocol-solvbtc-bbn",
    "wasonicsolvbtc": "solv-btc",
    "solvbtc": "solv-btc",
    "xsolvbtc": "solv-protocol-solvbtc-bbn",
    "sceth": "rings-sc-eth",
    "sts": "beets-staked-sonic",
    "beetsfragmentss1": "beetsfragmentss1",
    "gems": "gems",
}

# Known USD rates used before falling back to the network.
COINGECKO_RATES: dict[str, float] = {
    "swapx-2": 0.1329,
    "shadow-2": 55.84,
    "shadow-liquid-staking-token": 49.01,
    "wrapped-sonic": 0.4952,
    "sonic": 0.4952,
    "sonic-bridged-usdc-e-sonic": 1,
    "rings-scusd": 1,
    "tether": 1,
    "frax-usd": 1,
    "weth": 2298.87,
    "pendle": 3.80,
    "wrapped-bitcoin": 103637.04,
    "rings-scbtc": 108313,
    "solv-protocol-btc": 111139.0,
    "lombard-staked-btc": 106963,
    "gems": 32.52,
    "solv-protocol-solvbtc-bbn": 111637.53,
    "solv-btc": 111590.65,
    "beets-staked-sonic": 0.478688,
    "rings-sc-eth": 2528.03,
    "beetsfragmentss1": 0.211,
    "beets": 0.05295,
}

# coin id -> {dd-mm-yyyy -> USD}
COINGECKO_HISTORICAL_RATES: dict[str, dict[str, float]] = {
    "rings-scbtc": {
        "22-05-2025": 109353.807744479,
        "16-05-2025": 103393.983167005,
        "15-05-2025": 103331.502813178,
    },
    "lombard-staked-btc": {
        "22-05-2025": 109806.556180727,
        "16-05-2025": 103515.8513815589,
        "15-05-2025": 103102.080844769,
    },
    "solv-protocol-staked-btc": {
        "22-05-2025": 110388.0,
    },
    "solv-btc": {
        "22-05-2025": 109360.000053171,
    },
    "beets-staked-sonic": {
        "23-05-2025": 0.478688,
    },
    "rings-sc-eth": {
        "23-05-2025": 2657.34893766992,
    },
}

# ERC4626 rate providers for yield-bearing pool tokens (symbol lowercase).
RATE_PROVIDER_ADDRESSES: dict[str, str] = {
    "wasonicsolvbtcbbn": "0x00dE97829D01815346e58372be55aeFD84CA2457",
    "wasonicsolvbtc": "0xa6C292D06251dA638Be3B58f1473E03d99C26FF0",
}

DEFAULT_REWARD_SYMBOLS: list[str] = ["beets"]


class DefaultVault(TypedDict, total=False):
    name: str
    kind: str
    address: str
    gauge_address: str
    oracle_id: str
    url: str


DEFAULT_VAULTS: list[DefaultVault] = [
    {
        "name": "scBTC/LBTC Weighted Pool",
        "kind": "balancer-v2-pool",
        "address": "0x83952912178aa33c3853ee5d942c96254b235dcc",
        "gauge_address": "0x11c43F630b52F1271a5005839d34b07C0C125e72",
        "url": "https://beets.fi/pools/sonic/v2/0x83952912178aa33c3853ee5d942c96254b235dcc0002000000000000000000ab",
    },
    {
        "name": "Avalon Bitcoin Treble",
        "kind": "balancer-v3-pool",
        "address": "0xd5ab187442998f1a62ea58133a03050691a0c280",
        "gauge_address": "0x232c81fb683b830f2aa8457f88a7ced78ef956ac",
        "url": "https://beets.fi/pools/sonic/v3/0xd5ab187442998f1a62ea58133a03050691a0c280",
    },
    {
        "name": "beefy-wbtc-usdc.e",
        "kind": "beefy-vault",
        "address": "0x920D88cA46041eFdB317c1a4150e8f0515e88D9B",
        "oracle_id": "shadow-cow-sonic-wbtc-usdc.e",
        "url": "https://app.beefy.com/vault/shadow-cow-sonic-wbtc-usdc.e-vault",
    },
    {
        "name": "beefy-wbtc-scbtc",
        "kind": "beefy-vault",
        "address": "0x7152bf607BD043084f265c649a09A8F90BBdBF1B",
        "oracle_id": "swapx-ichi-wbtc-scbtc",
        "url": "https://app.beefy.com/vault/swapx-ichi-wbtc-scbtc",
    },
]
