"""
Typed-data signing and signer verification
"""

import logging
from typing import Any, Dict, Optional, Tuple

from eth_account import Account
from hexbytes import HexBytes
from web3 import Web3

from ..errors import SignatureMismatchError, SignerError
from ..infra.evm_signer import TypedDataSigner, signable_typed_data

logger = logging.getLogger(__name__)


class SignatureService:
    """
    Signs EIP-712 envelopes with the configured key holder and checks that
    the recovered address is the expected signer.

    Usage:
        service = SignatureService(signer)
        signature, (v, r, s) = service.sign_and_verify(typed_data, signer.address)
    """

    def __init__(self, signer: Optional[TypedDataSigner]):
        self._signer = signer

    @property
    def signer(self) -> TypedDataSigner:
        if self._signer is None:
            raise SignerError.not_configured()
        return self._signer

    def sign(self, typed_data: Dict[str, Any], signer_address: Optional[str] = None) -> str:
        """
        Request a signature from the key holder

        Raises:
            SignerError: If the key holder does not hold signer_address or fails
        """
        signer = self.signer
        if signer_address and signer_address.lower() != signer.address.lower():
            raise SignerError.failed(f"configured signer {signer.address} cannot sign for {signer_address}")
        return signer.sign_typed_data(typed_data)

    @staticmethod
    def split(signature: str) -> Tuple[int, str, str]:
        """
        Split a 65-byte signature into (v, r, s)

        v is normalized to 27/28.
        """
        raw = HexBytes(signature)
        if len(raw) != 65:
            raise ValueError(f"Signature must be 65 bytes, got {len(raw)}")
        v = raw[64]
        if v < 27:
            v += 27
        return v, Web3.to_hex(raw[:32]), Web3.to_hex(raw[32:64])

    @staticmethod
    def recover(typed_data: Dict[str, Any], signature: str) -> str:
        return Account.recover_message(signable_typed_data(typed_data), signature=HexBytes(signature))

    def verify(self, typed_data: Dict[str, Any], signature: str, expected_signer: str) -> bool:
        """True if signature over typed_data recovers to expected_signer"""
        try:
            recovered = self.recover(typed_data, signature)
        except Exception as e:
            logger.warning(f"Signature recovery failed: {e}")
            return False
        return recovered.lower() == expected_signer.lower()

    def sign_and_verify(
        self,
        typed_data: Dict[str, Any],
        expected_signer: str,
    ) -> Tuple[str, Tuple[int, str, str]]:
        """
        Sign, verify and split

        Raises:
            SignatureMismatchError: If the signature does not recover to
                expected_signer. Nothing may be sent in that case.
        """
        signature = self.sign(typed_data)
        try:
            recovered = self.recover(typed_data, signature)
        except Exception as e:
            logger.error(f"Signature recovery failed: {e}")
            raise SignatureMismatchError.invalid_signature(expected_signer) from e

        if recovered.lower() != expected_signer.lower():
            logger.error(f"Signature mismatch: expected={expected_signer} recovered={recovered}")
            raise SignatureMismatchError.invalid_signature(expected_signer, recovered)

        return signature, self.split(signature)
