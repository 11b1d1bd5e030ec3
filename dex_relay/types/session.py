"""
Relay session

Immutable snapshot of everything a request needs from initialization: chain,
provider, contract handles and relayer endpoint. Operations capture the
session once at entry; switching the fee token produces a new session.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Optional

from web3 import Web3

from ..abis import ERC20_ABI, FACTORY_ABI, ROUTER_ABI
from ..config import RelayerConfig, config as global_config
from ..constants import Environment
from ..errors import InitializationError

logger = logging.getLogger(__name__)


def _contract(web3: Web3, address: str, abi: list) -> Any:
    return web3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)


@dataclass(frozen=True)
class Session:
    """
    Initialized relay session

    Attributes:
        chain_id: Chain ID reported by the provider at init
        web3: Provider handle
        fee_token: ERC20 contract the relayer is paid in
        router: Router (forwarder) contract
        factory: Pair factory contract
        relayer_endpoint: Relayer URL for chain and environment
        environment: Relayer deployment environment
    """
    chain_id: int
    web3: Web3
    fee_token: Any
    router: Any
    factory: Any
    relayer_endpoint: str
    environment: Environment = Environment.PRODUCTION

    @classmethod
    def create(
        cls,
        web3: Web3,
        fee_token_address: str,
        env: Environment = Environment.PRODUCTION,
        router_address: Optional[str] = None,
        factory_address: Optional[str] = None,
        relayer_config: Optional[RelayerConfig] = None,
    ) -> "Session":
        """
        Build a session from a connected provider

        Raises:
            InitializationError: If the chain has no relayer endpoint
        """
        relayer_config = relayer_config or global_config.relayer
        router_address = router_address or global_config.network.router_address
        factory_address = factory_address or global_config.network.factory_address

        chain_id = int(web3.eth.chain_id)
        endpoint = relayer_config.endpoint_for(env, chain_id)
        if not endpoint:
            raise InitializationError.chain_not_supported(chain_id)

        session = cls(
            chain_id=chain_id,
            web3=web3,
            fee_token=_contract(web3, fee_token_address, ERC20_ABI),
            router=_contract(web3, router_address, ROUTER_ABI),
            factory=_contract(web3, factory_address, FACTORY_ABI),
            relayer_endpoint=endpoint,
            environment=env,
        )
        logger.info(
            f"Session created: chain={chain_id} env={env.value} "
            f"fee_token={session.fee_token.address} relayer={endpoint}"
        )
        return session

    def with_fee_token(self, fee_token_address: str) -> "Session":
        """New session paying fees in another token"""
        return replace(self, fee_token=_contract(self.web3, fee_token_address, ERC20_ABI))

    @property
    def is_ready(self) -> bool:
        return all(
            value is not None
            for value in (self.chain_id, self.web3, self.fee_token, self.router, self.factory)
        ) and bool(self.relayer_endpoint)

    @property
    def router_address(self) -> str:
        return self.router.address

    def __repr__(self) -> str:
        return (
            f"Session(chain_id={self.chain_id}, env={self.environment.value}, "
            f"fee_token={self.fee_token.address}, relayer={self.relayer_endpoint})"
        )
