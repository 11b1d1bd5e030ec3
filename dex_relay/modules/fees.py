"""
Fee estimation

Converts the native-gas cost of a request into the maximum fee, in fee token
smallest units, that the user authorizes the relayer to collect.

Each chain has a policy (charge or waive, from config) and, when charged, a
named strategy:

- ``PriceFeedStrategy``: USD prices of the native coin and the fee token
  from a CoinGecko-compatible price API
- ``PairReserveStrategy``: on-chain quote through the factory's
  wrapped-native/fee-token pair reserves
"""

import logging
import math
from abc import ABC, abstractmethod
from fractions import Fraction
from typing import Any, Dict, Mapping, Optional

import httpx
from web3 import Web3

from ..abis import PAIR_ABI
from ..config import FEE_POLICY_CHARGE, FEE_POLICY_WAIVE, FeeConfig, config as global_config
from ..constants import ChainId, PRICE_FEED_IDS, WRAPPED_NATIVE_ADDRESSES, ZERO_ADDRESS
from ..errors import ConfigurationError, FeeEstimationError
from ..types import FeeQuote

logger = logging.getLogger(__name__)

NATIVE_DECIMALS = 18


class FeeStrategy(ABC):
    """Converts a native-gas cost into fee token units"""

    name: str = ""

    @abstractmethod
    def quote(self, chain_id: int, fee_token: str, token_decimals: int, txn_fee_wei: int) -> int:
        """
        Fee in fee token smallest units

        Raises:
            FeeEstimationError: If no price is available
        """

    def close(self):
        pass


class PriceFeedStrategy(FeeStrategy):
    """
    Fee from USD prices

    fee = txn_fee * native_usd / token_usd, rescaled from 18 decimals to the
    fee token's decimals and floored.
    """

    name = "price_feed"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ):
        self._base_url = (base_url or global_config.fees.price_api_url).rstrip("/")
        self._timeout = timeout or global_config.fees.price_api_timeout
        self._client = client

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self._timeout,
                headers={"Accept": "application/json"},
            )
        return self._client

    def _get_usd_price(self, chain_id: int, token: str, endpoint: str, params: Dict[str, str], key: str) -> Fraction:
        try:
            response = self._get_client().get(f"{self._base_url}/{endpoint}", params=params)
            response.raise_for_status()
            price = response.json()[key]["usd"]
        except httpx.HTTPError as e:
            raise FeeEstimationError.price_unavailable(chain_id, token, f"price API request failed: {e}") from e
        except (ValueError, KeyError, TypeError) as e:
            raise FeeEstimationError.price_unavailable(chain_id, token, f"no USD price for {key}") from e

        price = Fraction(str(price))
        if price <= 0:
            raise FeeEstimationError.price_unavailable(chain_id, token, f"non-positive USD price for {key}")
        return price

    def quote(self, chain_id: int, fee_token: str, token_decimals: int, txn_fee_wei: int) -> int:
        if chain_id not in PRICE_FEED_IDS:
            raise FeeEstimationError.price_unavailable(chain_id, fee_token, "no price feed ids for chain")

        platform, coin_id = PRICE_FEED_IDS[chain_id]
        token_key = fee_token.lower()

        native_usd = self._get_usd_price(
            chain_id, fee_token, "simple/price",
            {"ids": coin_id, "vs_currencies": "usd"}, coin_id,
        )
        token_usd = self._get_usd_price(
            chain_id, fee_token, f"simple/token_price/{platform}",
            {"contract_addresses": token_key, "vs_currencies": "usd"}, token_key,
        )

        fee = Fraction(txn_fee_wei) * native_usd * 10 ** token_decimals / (token_usd * 10 ** NATIVE_DECIMALS)
        logger.debug(
            f"Price feed quote: chain={chain_id} native_usd={float(native_usd)} "
            f"token_usd={float(token_usd)} fee={math.floor(fee)}"
        )
        return math.floor(fee)

    def close(self):
        if self._client is not None:
            self._client.close()
            self._client = None


class PairReserveStrategy(FeeStrategy):
    """
    Fee from the wrapped-native/fee-token pair reserves

    fee = txn_fee * reserve_token // reserve_native
    """

    name = "pair_reserve"

    def __init__(self, web3: Web3, factory: Any, wrapped_native: str):
        self._web3 = web3
        self._factory = factory
        self._wrapped_native = Web3.to_checksum_address(wrapped_native)

    def quote(self, chain_id: int, fee_token: str, token_decimals: int, txn_fee_wei: int) -> int:
        fee_token = Web3.to_checksum_address(fee_token)
        if fee_token == self._wrapped_native:
            return txn_fee_wei

        pair_address = self._factory.functions.getPair(self._wrapped_native, fee_token).call()
        if not pair_address or pair_address.lower() == ZERO_ADDRESS:
            raise FeeEstimationError.price_unavailable(chain_id, fee_token, "no wrapped-native pair")

        pair = self._web3.eth.contract(address=Web3.to_checksum_address(pair_address), abi=PAIR_ABI)
        reserve0, reserve1, _ = pair.functions.getReserves().call()
        token0 = pair.functions.token0().call()

        if token0.lower() == self._wrapped_native.lower():
            reserve_native, reserve_token = reserve0, reserve1
        else:
            reserve_native, reserve_token = reserve1, reserve0

        if reserve_native == 0 or reserve_token == 0:
            raise FeeEstimationError.price_unavailable(chain_id, fee_token, "pair has no liquidity")

        fee = txn_fee_wei * reserve_token // reserve_native
        logger.debug(
            f"Pair reserve quote: chain={chain_id} pair={pair_address} "
            f"reserves(native={reserve_native}, token={reserve_token}) fee={fee}"
        )
        return fee


class FeeEstimator:
    """
    Per-chain fee policy and strategy dispatch

    Usage:
        estimator = FeeEstimator.for_session(session)
        fee = estimator.estimate(56, "0x...", 18, gas_limit * gas_price)
    """

    def __init__(
        self,
        strategies: Mapping[int, FeeStrategy],
        fee_config: Optional[FeeConfig] = None,
    ):
        self._strategies = dict(strategies)
        self._fee_config = fee_config or global_config.fees

    @classmethod
    def for_session(cls, session, fee_config: Optional[FeeConfig] = None) -> "FeeEstimator":
        """Default strategies: price feed on BSC, pair reserves on Polygon"""
        fee_config = fee_config or global_config.fees
        strategies: Dict[int, FeeStrategy] = {
            ChainId.BSC: PriceFeedStrategy(fee_config.price_api_url, fee_config.price_api_timeout),
            ChainId.MATIC: PairReserveStrategy(
                session.web3, session.factory, WRAPPED_NATIVE_ADDRESSES[ChainId.MATIC]
            ),
        }
        return cls(strategies, fee_config)

    def strategy_for(self, chain_id: int) -> Optional[FeeStrategy]:
        return self._strategies.get(chain_id)

    def estimate(self, chain_id: int, fee_token_address: str, token_decimals: int, txn_fee_wei: int) -> int:
        """
        Maximum fee in fee token smallest units

        Raises:
            ValueError: If txn_fee_wei is negative
            ConfigurationError: If a charged chain has no strategy
            FeeEstimationError: If the strategy cannot price the token
        """
        if txn_fee_wei < 0:
            raise ValueError(f"txn_fee_wei must be non-negative, got {txn_fee_wei}")

        policy = self._fee_config.policy_for(chain_id)
        if policy == FEE_POLICY_WAIVE:
            logger.info(f"Fee waived on chain {chain_id} (policy={FEE_POLICY_WAIVE})")
            return 0

        strategy = self._strategies.get(chain_id)
        if policy != FEE_POLICY_CHARGE or strategy is None:
            raise ConfigurationError.invalid(
                f"FEE_POLICY_{chain_id}",
                f"chain is charged but has no fee strategy (policy={policy})",
            )

        fee = strategy.quote(chain_id, fee_token_address, token_decimals, txn_fee_wei)
        if fee < 0:
            raise FeeEstimationError.price_unavailable(chain_id, fee_token_address, "negative fee quote")

        logger.info(
            f"Fee quoted on chain {chain_id} via {strategy.name}: "
            f"txn_fee={txn_fee_wei} wei -> {fee} token units"
        )
        return fee

    def quote(self, chain_id: int, fee_token_address: str, token_decimals: int, txn_fee_wei: int) -> FeeQuote:
        """Same as ``estimate`` wrapped in a FeeQuote"""
        return FeeQuote(
            token_address=fee_token_address,
            token_decimals=token_decimals,
            max_token_fee=self.estimate(chain_id, fee_token_address, token_decimals, txn_fee_wei),
        )

    def close(self):
        for strategy in self._strategies.values():
            strategy.close()
