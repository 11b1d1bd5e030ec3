"""
EVM signers using web3.py

Two key holders share one interface (``address``, ``sign_typed_data``,
``send_transaction``):

- ``EVMSigner``: local private key via eth_account
- ``ProviderSigner``: account managed by the node or wallet behind the provider
  (``eth_signTypedData_v4`` / ``eth_sendTransaction``)

Includes thread-safe nonce management for parallel local submissions.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Optional, Dict, Any, Protocol

from hexbytes import HexBytes
from web3 import Web3, HTTPProvider
from web3.middleware import ExtraDataToPOAMiddleware
from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data
from eth_account.signers.local import LocalAccount

from ..errors import SignerError

logger = logging.getLogger(__name__)

# Chains whose blocks carry PoA extra data (BSC, BSC testnet, Polygon, Mumbai)
POA_CHAIN_IDS = (56, 97, 137, 80001)


def signable_typed_data(typed_data: Dict[str, Any]) -> SignableMessage:
    """
    Encode a JSON-safe EIP-712 envelope for signing or recovery

    Hex strings in ``bytes``/``bytesN`` fields of the primary type are
    decoded first.
    """
    primary = typed_data["primaryType"]
    message = dict(typed_data["message"])
    for field_def in typed_data["types"][primary]:
        name = field_def["name"]
        if field_def["type"].startswith("bytes") and isinstance(message.get(name), str):
            message[name] = HexBytes(message[name])
    return encode_typed_data(full_message={**typed_data, "message": message})


class TypedDataSigner(Protocol):
    """Key holder used by the relay client"""

    @property
    def address(self) -> str: ...

    def sign_typed_data(self, typed_data: Dict[str, Any]) -> str: ...

    def send_transaction(
        self, web3: Web3, tx_dict: Dict[str, Any], timeout: float = 120
    ) -> Dict[str, Any]: ...


def _failure(error: Exception) -> Dict[str, Any]:
    logger.error(f"Transaction failed: {error}")
    return {"status": "failed", "error": str(error), "tx_hash": None}


def _await_receipt(web3: Web3, tx_hash: Any, timeout: float) -> Dict[str, Any]:
    """One confirmation for a broadcast transaction, as a result dict"""
    logger.info(f"Transaction sent: {Web3.to_hex(tx_hash)}")
    receipt = web3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)

    result = {"tx_hash": Web3.to_hex(tx_hash), "receipt": dict(receipt)}
    if receipt["status"] != 1:
        result.update(status="failed", error="Transaction reverted")
    else:
        result.update(status="success", block_number=receipt["blockNumber"], gas_used=receipt["gasUsed"])
    return result


class NonceManager:
    """
    Hands out nonces for locally signed transactions

    The next nonce is the larger of the chain's pending count and the last
    one handed out, so concurrent sends from one key do not reuse a nonce.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._next: Dict[str, int] = {}

    def get_nonce(self, web3: Web3, address: str) -> int:
        key = address.lower()
        with self._lock:
            on_chain = web3.eth.get_transaction_count(address, "pending")
            nonce = max(on_chain, self._next.get(key, on_chain))
            self._next[key] = nonce + 1
        logger.debug(f"Nonce {nonce} for {address} (pending on chain: {on_chain})")
        return nonce

    def release_nonce(self, address: str, nonce: int) -> None:
        """Give back a nonce whose transaction was never broadcast"""
        key = address.lower()
        with self._lock:
            if self._next.get(key) == nonce + 1:
                self._next[key] = nonce

    def reset(self, address: Optional[str] = None) -> None:
        """Forget tracked nonces, forcing a re-sync with the chain"""
        with self._lock:
            if address is None:
                self._next = {}
            else:
                self._next.pop(address.lower(), None)


_nonce_manager = NonceManager()


def get_nonce_manager() -> NonceManager:
    return _nonce_manager


class EVMSigner:
    """
    Key held in process by eth_account

    Usage:
        signer = EVMSigner.from_private_key(key)      # or EVMSigner.from_env()
        signature = signer.sign_typed_data(typed_data)
        result = signer.send_transaction(web3, {"to": router, "data": calldata, ...})
    """

    def __init__(self, account: LocalAccount):
        self._account = account

    @property
    def address(self) -> str:
        return self._account.address

    def sign_typed_data(self, typed_data: Dict[str, Any]) -> str:
        """
        Sign an EIP-712 envelope

        Returns:
            0x-prefixed 65-byte signature
        """
        try:
            signed = self._account.sign_message(signable_typed_data(typed_data))
        except Exception as e:
            raise SignerError.failed(str(e)) from e
        return Web3.to_hex(signed.signature)

    def send_transaction(
        self,
        web3: Web3,
        tx_dict: Dict[str, Any],
        timeout: float = 120,
    ) -> Dict[str, Any]:
        """
        Sign locally, broadcast and wait for one confirmation

        Never raises. The result dict has ``status`` ("success" or "failed"),
        ``tx_hash`` and either the receipt fields or ``error``.
        """
        tx = {**tx_dict}
        reserved = None
        try:
            if "nonce" not in tx:
                reserved = tx["nonce"] = _nonce_manager.get_nonce(web3, self.address)
            tx.setdefault("chainId", web3.eth.chain_id)
            raw = self._account.sign_transaction(tx).raw_transaction
            tx_hash = web3.eth.send_raw_transaction(raw)
        except Exception as e:
            if reserved is not None:
                _nonce_manager.release_nonce(self.address, reserved)
            return _failure(e)

        try:
            return _await_receipt(web3, tx_hash, timeout)
        except Exception as e:
            return _failure(e)

    @classmethod
    def from_private_key(cls, private_key: str) -> "EVMSigner":
        """Hex private key, 0x prefix optional"""
        key = private_key if private_key.startswith("0x") else f"0x{private_key}"
        return cls(Account.from_key(key))

    @classmethod
    def from_env(cls, env_var: str = "EVM_PRIVATE_KEY") -> "EVMSigner":
        """
        Raises:
            SignerError: If env_var is unset or empty
        """
        key = os.environ.get(env_var)
        if not key:
            raise SignerError.not_configured()
        return cls.from_private_key(key)

    @classmethod
    def from_keystore(cls, keystore_path: str, password: str) -> "EVMSigner":
        """Decrypt a V3 keystore JSON file"""
        keystore = Path(keystore_path).read_text()
        return cls(Account.from_key(Account.decrypt(keystore, password)))

    def __repr__(self) -> str:
        return f"EVMSigner(address={self.address})"


class ProviderSigner:
    """
    Signer backed by an account the provider manages

    The key never leaves the node or wallet; signing and submission are
    JSON-RPC requests.
    """

    def __init__(self, web3: Web3, address: Optional[str] = None):
        self._web3 = web3
        self._address = Web3.to_checksum_address(address) if address else None

    @property
    def address(self) -> str:
        """First provider account unless one was given"""
        if self._address is None:
            accounts = self._web3.eth.accounts
            if not accounts:
                raise SignerError.not_configured()
            self._address = Web3.to_checksum_address(accounts[0])
        return self._address

    def sign_typed_data(self, typed_data: Dict[str, Any]) -> str:
        response = self._web3.provider.make_request(
            "eth_signTypedData_v4", [self.address, json.dumps(typed_data)]
        )
        if response.get("error"):
            error = response["error"]
            reason = error.get("message", error) if isinstance(error, dict) else error
            raise SignerError.failed(str(reason))
        if not response.get("result"):
            raise SignerError.failed("provider returned no signature")
        return response["result"]

    def send_transaction(
        self,
        web3: Web3,
        tx_dict: Dict[str, Any],
        timeout: float = 120,
    ) -> Dict[str, Any]:
        """Submit through eth_sendTransaction and wait for one confirmation"""
        try:
            tx_hash = web3.eth.send_transaction({**tx_dict, "from": self.address})
            return _await_receipt(web3, tx_hash, timeout)
        except Exception as e:
            return _failure(e)

    def __repr__(self) -> str:
        return f"ProviderSigner(address={self._address or 'auto'})"


def create_web3(
    rpc_url: str,
    chain_id: Optional[int] = None,
    timeout: float = 30,
) -> Web3:
    """
    HTTP Web3 for rpc_url

    The PoA extra-data middleware is injected for BSC and Polygon. Without
    chain_id the chain is asked for it.
    """
    web3 = Web3(HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))

    if chain_id is None:
        try:
            chain_id = web3.eth.chain_id
        except Exception as e:
            logger.warning(f"Could not read chain id from {rpc_url}: {e}")

    if chain_id in POA_CHAIN_IDS:
        web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    return web3


def create_evm_signer(
    private_key: Optional[str] = None,
    keystore_path: Optional[str] = None,
    keystore_password: Optional[str] = None,
) -> EVMSigner:
    """
    Local signer from the first available source: explicit key, keystore
    file with password, then ``EVM_PRIVATE_KEY``.

    Raises:
        SignerError: If none is configured
    """
    if private_key is not None:
        return EVMSigner.from_private_key(private_key)
    if keystore_path is not None and keystore_password is not None:
        return EVMSigner.from_keystore(keystore_path, keystore_password)
    return EVMSigner.from_env()
