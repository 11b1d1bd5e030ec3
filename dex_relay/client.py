"""
RelayClient - entry point for relayed DEX operations

Initializes a session against a provider and exposes the router operations
(liquidity, swaps, LP permits) as gas-sponsored meta-transactions, falling
back to direct submission when the router has meta-transactions disabled.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from web3 import Web3

from .abis import PAIR_ABI
from .config import GasConfig, config as global_config
from .constants import Environment, PAIR_DOMAIN_NAME
from .errors import InitializationError, PairNotFoundError, PathNotFoundError
from .infra.evm_signer import ProviderSigner, TypedDataSigner, create_evm_signer, create_web3
from .infra.relayer import RelayerClient
from .modules.dispatch import Dispatcher
from .modules.eip712 import TypedMessageBuilder
from .modules.fees import FeeEstimator
from .modules.paths import PathValidator
from .modules.signatures import SignatureService
from .modules.verification import ResponseVerifier
from .types import (
    AddLiquidityCall,
    PermitSignature,
    RemoveLiquidityCall,
    Response,
    RouterCall,
    Session,
    SwapExactTokensForTokensCall,
    SwapTokensForExactTokensCall,
)

logger = logging.getLogger(__name__)


class RelayClient:
    """
    Relayed DEX operations client

    Usage:
        client = RelayClient(signer=EVMSigner.from_env())
        client.init(web3, fee_token_address="0x...")

        response = client.swap_exact_tokens_for_tokens(
            amount_in=10**18,
            amount_out_min=99 * 10**16,
            path=[token_a, token_b],
            user=client.signer.address,
            deadline=int(time.time()) + 600,
        )
        if response.success:
            print(response.txn_hash)

    Every operation captures the current session once at entry, so
    ``set_fee_token`` never affects a request already in flight.
    """

    def __init__(
        self,
        signer: Optional[TypedDataSigner] = None,
        relayer: Optional[RelayerClient] = None,
        verifier: Optional[ResponseVerifier] = None,
        fee_estimator: Optional[FeeEstimator] = None,
        gas_config: Optional[GasConfig] = None,
    ):
        """
        Args:
            signer: Key holder. Defaults to the provider's first account at init.
            relayer: Relayer transport
            verifier: Confirmation of relayed transactions
            fee_estimator: Fee policy/strategies. Defaults to the per-chain strategies.
            gas_config: Default gas limits
        """
        self._signer = signer
        self._owns_signer = signer is None
        self._relayer = relayer
        self._verifier = verifier
        self._fee_estimator = fee_estimator
        self._gas = gas_config or global_config.gas
        self._builder = TypedMessageBuilder()
        self._session: Optional[Session] = None
        self._dispatcher: Optional[Dispatcher] = None

    @classmethod
    def connect(
        cls,
        fee_token_address: str,
        rpc_url: Optional[str] = None,
        private_key: Optional[str] = None,
        env: Optional[Environment] = None,
    ) -> "RelayClient":
        """
        Create web3 and a local signer from arguments or environment, then init.

        Raises:
            SignerError: If no private key is configured
            InitializationError: If the chain is not supported
        """
        network = global_config.network
        web3 = create_web3(rpc_url or network.rpc_url, timeout=network.rpc_timeout)
        client = cls(signer=create_evm_signer(private_key))
        client.init(web3, fee_token_address, env or Environment.from_string(network.environment))
        return client

    def init(
        self,
        web3: Web3,
        fee_token_address: str,
        env: Environment = Environment.PRODUCTION,
        router_address: Optional[str] = None,
        factory_address: Optional[str] = None,
    ) -> Session:
        """
        Bind the client to a provider, fee token and environment

        Nothing is stored when initialization fails. Calling it again replaces
        the session and closes the previous dispatcher; a default provider
        signer is rebuilt for the new web3.

        Raises:
            InitializationError: If the chain has no relayer endpoint
        """
        session = Session.create(
            web3,
            fee_token_address,
            env=env,
            router_address=router_address,
            factory_address=factory_address,
        )
        signer = ProviderSigner(web3) if self._owns_signer else self._signer
        dispatcher = Dispatcher(
            signer,
            self._fee_estimator or FeeEstimator.for_session(session),
            relayer=self._relayer,
            verifier=self._verifier,
            builder=self._builder,
        )

        previous = self._dispatcher
        self._signer = signer
        self._dispatcher = dispatcher
        self._session = session

        if previous is not None:
            # Injected relayer and fee estimator carry over to the new dispatcher
            previous.close(relayer=self._relayer is None, fee_estimator=self._fee_estimator is None)
        return session

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def signer(self) -> Optional[TypedDataSigner]:
        return self._signer

    @property
    def is_initialized(self) -> bool:
        return self._session is not None and self._session.is_ready

    def _check_init(self) -> Session:
        session = self._session
        if session is None or not session.is_ready:
            raise InitializationError.not_initialized()
        return session

    def set_fee_token(self, fee_token_address: str) -> Session:
        """Switch the fee token for subsequent requests"""
        session = self._check_init().with_fee_token(fee_token_address)
        self._session = session
        logger.info(f"Fee token set to {session.fee_token.address}")
        return session

    def _dispatch(
        self,
        session: Session,
        call: RouterCall,
        gas_limit: int,
        gas_price: Optional[int],
    ) -> Response:
        return self._dispatcher.send_request(session, call, gas_limit, gas_price)

    def send_request(
        self,
        call: RouterCall,
        gas_limit: int,
        gas_price: Optional[int] = None,
    ) -> Response:
        """
        Dispatch a prepared router call

        Args:
            call: Typed router call arguments
            gas_limit: Gas limit of the router call
            gas_price: Gas price in wei (provider's current price if None)
        """
        return self._dispatch(self._check_init(), call, gas_limit, gas_price)

    # =========================================================================
    # Liquidity
    # =========================================================================

    def add_liquidity(
        self,
        token_a: str,
        token_b: str,
        amount_a_desired: int,
        amount_b_desired: int,
        amount_a_min: int,
        amount_b_min: int,
        user: str,
        deadline: int,
        gas_limit: Optional[int] = None,
        gas_price: Optional[int] = None,
    ) -> Response:
        """
        Add liquidity, creating the pair if needed

        Without an explicit gas limit, a missing pair gets the (much larger)
        pair creation limit.
        """
        session = self._check_init()
        if gas_limit is None:
            pair_exists = PathValidator(session.factory).pair_exists(token_a, token_b)
            gas_limit = self._gas.add_liquidity if pair_exists else self._gas.create_pair

        call = AddLiquidityCall(
            token_a=token_a,
            token_b=token_b,
            amount_a_desired=amount_a_desired,
            amount_b_desired=amount_b_desired,
            amount_a_min=amount_a_min,
            amount_b_min=amount_b_min,
            user=user,
            deadline=deadline,
        )
        return self._dispatch(session, call, gas_limit, gas_price)

    def remove_liquidity(
        self,
        token_a: str,
        token_b: str,
        liquidity: int,
        amount_a_min: int,
        amount_b_min: int,
        user: str,
        deadline: int,
        sig: PermitSignature,
        gas_limit: Optional[int] = None,
        gas_price: Optional[int] = None,
    ) -> Response:
        """
        Remove liquidity using an LP permit from ``permit_lp``

        Raises:
            PairNotFoundError: If the pair does not exist
        """
        session = self._check_init()
        if not PathValidator(session.factory).pair_exists(token_a, token_b):
            raise PairNotFoundError.for_tokens(token_a, token_b)

        call = RemoveLiquidityCall(
            token_a=token_a,
            token_b=token_b,
            liquidity=liquidity,
            amount_a_min=amount_a_min,
            amount_b_min=amount_b_min,
            user=user,
            deadline=deadline,
            sig=sig,
        )
        return self._dispatch(
            session, call,
            gas_limit if gas_limit is not None else self._gas.remove_liquidity,
            gas_price,
        )

    def permit_lp(
        self,
        pair_address: str,
        owner: str,
        spender: str,
        value: int,
        deadline: int,
    ) -> PermitSignature:
        """
        Sign an LP token permit

        The pair's permit nonce is read fresh; nothing is dispatched.

        Raises:
            SignatureMismatchError: If the signature does not recover to owner
        """
        session = self._check_init()
        pair = session.web3.eth.contract(address=Web3.to_checksum_address(pair_address), abi=PAIR_ABI)
        nonce = pair.functions.nonces(Web3.to_checksum_address(owner)).call()

        domain = self._builder.get_domain(pair_address, session.chain_id, PAIR_DOMAIN_NAME)
        message = self._builder.build_permit_message(owner, spender, value, nonce, deadline)
        typed_data = self._builder.build_typed_data(domain, message)

        _, (v, r, s) = SignatureService(self._signer).sign_and_verify(typed_data, owner)
        logger.info(f"LP permit signed: pair={pair_address} owner={owner} spender={spender} nonce={nonce}")
        return PermitSignature(v=v, r=r, s=s)

    # =========================================================================
    # Swaps
    # =========================================================================

    def _swap_gas_limit(self, session: Session, path: Sequence[str], gas_limit: Optional[int]) -> int:
        if not PathValidator(session.factory).path_exists(path):
            raise PathNotFoundError.for_path(path)
        return gas_limit if gas_limit is not None else self._gas.swap_limit(len(path))

    def swap_exact_tokens_for_tokens(
        self,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[str],
        user: str,
        deadline: int,
        gas_limit: Optional[int] = None,
        gas_price: Optional[int] = None,
    ) -> Response:
        """
        Swap an exact input amount along path

        Raises:
            PathNotFoundError: If any hop of the path has no pair
        """
        session = self._check_init()
        gas_limit = self._swap_gas_limit(session, path, gas_limit)
        call = SwapExactTokensForTokensCall(
            amount_in=amount_in,
            amount_out_min=amount_out_min,
            path=path,
            user=user,
            deadline=deadline,
        )
        return self._dispatch(session, call, gas_limit, gas_price)

    def swap_tokens_for_exact_tokens(
        self,
        amount_out: int,
        amount_in_max: int,
        path: Sequence[str],
        user: str,
        deadline: int,
        gas_limit: Optional[int] = None,
        gas_price: Optional[int] = None,
    ) -> Response:
        """
        Swap for an exact output amount along path

        Raises:
            PathNotFoundError: If any hop of the path has no pair
        """
        session = self._check_init()
        gas_limit = self._swap_gas_limit(session, path, gas_limit)
        call = SwapTokensForExactTokensCall(
            amount_out=amount_out,
            amount_in_max=amount_in_max,
            path=path,
            user=user,
            deadline=deadline,
        )
        return self._dispatch(session, call, gas_limit, gas_price)

    def close(self):
        """Close relayer and price feed connections"""
        if self._dispatcher is not None:
            self._dispatcher.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        if self._session is None:
            return "RelayClient(uninitialized)"
        return f"RelayClient(chain_id={self._session.chain_id}, signer={self._signer})"
