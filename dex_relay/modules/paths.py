"""
Pair and path existence checks against the factory
"""

import logging
from typing import Any, Sequence

from web3 import Web3

from ..constants import ZERO_ADDRESS

logger = logging.getLogger(__name__)


class PathValidator:
    """
    Read-only checks that swap hops and liquidity pairs exist

    A pair exists when ``factory.getPair(a, b)`` is not the zero address.
    """

    def __init__(self, factory: Any):
        self._factory = factory

    def pair_address(self, token_a: str, token_b: str) -> str:
        return self._factory.functions.getPair(
            Web3.to_checksum_address(token_a),
            Web3.to_checksum_address(token_b),
        ).call()

    def pair_exists(self, token_a: str, token_b: str) -> bool:
        address = self.pair_address(token_a, token_b)
        return bool(address) and address.lower() != ZERO_ADDRESS

    def path_exists(self, path: Sequence[str]) -> bool:
        """
        True when every consecutive pair of the path has a pair contract.

        Paths shorter than two tokens never exist. Stops at the first
        missing pair.
        """
        if len(path) < 2:
            logger.debug(f"Path too short: {list(path)}")
            return False

        for i in range(len(path) - 1):
            if not self.pair_exists(path[i], path[i + 1]):
                logger.debug(f"Missing pair in path: {path[i]} -> {path[i + 1]}")
                return False
        return True
