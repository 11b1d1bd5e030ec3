"""
Contract Addresses and Constants

Provides the router/factory deployments, fixed gas limits, relayer endpoints
and EIP-712 domain names used by the relay client.
Supports BSC (Chain ID 56) and Polygon (Chain ID 137).
"""

from enum import Enum, IntEnum
from typing import Dict


class ChainId(IntEnum):
    """Chains with a relayer deployment"""
    BSC = 56
    MATIC = 137


class Environment(Enum):
    """Relayer deployment environment"""
    PRODUCTION = "production"
    STAGING = "staging"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """Convert string to Environment enum (case-insensitive)"""
        value_lower = value.lower()
        if value_lower in ("production", "prod"):
            return cls.PRODUCTION
        elif value_lower in ("staging", "stage", "test"):
            return cls.STAGING
        raise ValueError(f"Unknown environment: {value}. Supported: production, staging")


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Router (forwarder) and factory deployments, identical on every chain
ROUTER_ADDRESS = "0xe4c5cf259351d7877039cbae0e7f92eb2ab017eb"
FACTORY_ADDRESS = "0x5f8017621825bc10d63d15c3e863f893946781f7"

# Fixed gas limits used when the caller does not supply one
ADD_LIQUIDITY_GAS_LIMIT = 250_000
CREATE_PAIR_GAS_LIMIT = 4_000_000
REMOVE_LIQUIDITY_GAS_LIMIT = 250_000
SWAP_GAS_LIMIT = 200_000
# Extra gas for every hop beyond the first pair of a swap path
HOP_ADDITIONAL_GAS = 70_000

# EIP-712 domain names (router and pair tokens were deployed with different names)
ROUTER_DOMAIN_NAME = "ConveyorV2"
PAIR_DOMAIN_NAME = "Conveyor V2"

# Relayer JSON-RPC method namespace
META_TX_METHOD_PREFIX = "/v2/metaTx/"

# Relayer endpoints per environment and chain. A missing entry means unsupported.
RELAYER_ENDPOINT_MAP: Dict[Environment, Dict[int, str]] = {
    Environment.PRODUCTION: {
        ChainId.BSC: "https://gtoken-geode.conveyor.finance/bsc",
        ChainId.MATIC: "https://gtoken-geode.conveyor.finance/matic",
    },
    Environment.STAGING: {
        ChainId.BSC: "https://gtoken-geode-staging.conveyor.finance/bsc",
        ChainId.MATIC: "https://gtoken-geode-staging.conveyor.finance/matic",
    },
}

# Wrapped native token per chain (fee conversion through DEX reserves)
WRAPPED_NATIVE_ADDRESSES: Dict[int, str] = {
    ChainId.BSC: "0xbb4cdb9cbd36b01bd1cbaebf2de08d9173bc095c",  # WBNB
    ChainId.MATIC: "0x0d500b1d8e8ef31e21c99d1db9a6444d3adf1270",  # WMATIC
}

# Price feed identifiers per chain: (asset platform, native coin id)
PRICE_FEED_IDS: Dict[int, tuple] = {
    ChainId.BSC: ("binance-smart-chain", "binancecoin"),
    ChainId.MATIC: ("polygon-pos", "matic-network"),
}

CHAIN_NAMES = {
    ChainId.BSC: "BSC",
    ChainId.MATIC: "Polygon",
}


def get_relayer_endpoint(env: Environment, chain_id: int) -> str:
    """Relayer base URL for (environment, chain), empty string if unsupported"""
    return RELAYER_ENDPOINT_MAP.get(env, {}).get(chain_id, "")
