"""
On-chain confirmation of relayer responses

A relayer's ``success: true`` is only trusted once the transaction is mined,
did not revert, and the router emitted ``MetaStatus`` for the request's sender
with success set.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from eth_abi import decode
from eth_utils import keccak
from hexbytes import HexBytes
from web3 import Web3

from ..config import VerificationConfig, config as global_config
from ..errors import RelayIntegrityError
from ..types import Response

logger = logging.getLogger(__name__)

META_STATUS_SIGNATURE = "MetaStatus(address,bool,string)"
META_STATUS_TOPIC = HexBytes(keccak(text=META_STATUS_SIGNATURE))


def decode_meta_status(receipt: Dict[str, Any], router_address: str) -> List[Tuple[str, bool, str]]:
    """
    (sender, success, error) of every router MetaStatus log in the receipt

    Raises:
        ValueError: If a MetaStatus log cannot be decoded
    """
    events = []
    for log in receipt.get("logs", []):
        if Web3.to_checksum_address(log["address"]) != Web3.to_checksum_address(router_address):
            continue
        topics = log.get("topics") or []
        if not topics or HexBytes(topics[0]) != META_STATUS_TOPIC:
            continue
        try:
            sender, success, error = decode(["address", "bool", "string"], HexBytes(log["data"]))
        except Exception as e:
            raise ValueError(f"malformed MetaStatus log data: {e}") from e
        events.append((sender, success, error))
    return events


class ResponseVerifier:
    """
    Confirms relayed transactions

    Non-success responses pass through unchanged; a claimed success that
    cannot be confirmed becomes ``success: false`` with the reason. Only a
    MetaStatus event for the request's own sender counts as confirmation.
    """

    def __init__(self, verification_config: Optional[VerificationConfig] = None):
        self._config = verification_config or global_config.verification

    def _confirm(self, web3: Web3, txn_hash: str, router_address: str, expected_sender: str) -> None:
        try:
            receipt = web3.eth.wait_for_transaction_receipt(
                txn_hash,
                timeout=self._config.receipt_timeout,
                poll_latency=self._config.receipt_poll_latency,
            )
        except Exception as e:
            raise RelayIntegrityError.unconfirmed(txn_hash, f"no receipt ({e})") from e

        if receipt["status"] != 1:
            raise RelayIntegrityError.unconfirmed(txn_hash, "transaction reverted")

        try:
            events = decode_meta_status(receipt, router_address)
        except ValueError as e:
            raise RelayIntegrityError.unconfirmed(txn_hash, str(e)) from e

        own = [(success, error) for sender, success, error in events if sender.lower() == expected_sender.lower()]
        if not own:
            raise RelayIntegrityError.unconfirmed(txn_hash, f"no MetaStatus event for {expected_sender}")

        success, error = own[-1]
        if not success:
            raise RelayIntegrityError.unconfirmed(
                txn_hash, f"meta-transaction from {expected_sender} failed: {error or 'unknown error'}"
            )

    def verify(self, web3: Web3, response: Response, router_address: str, expected_sender: str) -> Response:
        if not response.success:
            return response

        try:
            self._confirm(web3, response.txn_hash, router_address, expected_sender)
        except RelayIntegrityError as e:
            logger.warning(str(e))
            return Response.failed(e.message, id=response.id, jsonrpc=response.jsonrpc)

        logger.info(f"Relayed transaction confirmed: {response.txn_hash}")
        return response
