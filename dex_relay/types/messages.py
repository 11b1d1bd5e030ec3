"""
EIP-712 message types

Domains and messages are plain frozen values built per request. ``to_dict``
returns the JSON-safe form used both for signing and for the relayer envelope.
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from eth_utils import keccak
from web3 import Web3


def _hex(value: bytes) -> str:
    return Web3.to_hex(value)


@dataclass(frozen=True)
class TypedDomain:
    """EIP-712 domain separator fields"""
    name: str
    chain_id: int
    verifying_contract: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "chainId": self.chain_id,
            "verifyingContract": Web3.to_checksum_address(self.verifying_contract),
        }


@dataclass(frozen=True)
class ForwarderMessage:
    """
    Meta-transaction authorization

    Attributes:
        sender: Account that signs and whose router nonce is consumed
        fee_token: ERC20 token the relayer is paid in
        max_token_amount: Maximum fee in fee token smallest units
        deadline: Unix timestamp after which the call is invalid
        nonce: Router nonce of the sender at build time
        data: ABI-encoded router call
        hashed_payload: keccak256 of data
    """
    sender: str
    fee_token: str
    max_token_amount: int
    deadline: int
    nonce: int
    data: bytes
    hashed_payload: bytes

    PRIMARY_TYPE = "Forwarder"

    @classmethod
    def for_payload(
        cls,
        sender: str,
        fee_token: str,
        max_token_amount: int,
        deadline: int,
        nonce: int,
        data: bytes,
    ) -> "ForwarderMessage":
        """Create message with hashed_payload derived from data"""
        return cls(
            sender=sender,
            fee_token=fee_token,
            max_token_amount=max_token_amount,
            deadline=deadline,
            nonce=nonce,
            data=bytes(data),
            hashed_payload=keccak(bytes(data)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": Web3.to_checksum_address(self.sender),
            "feeToken": Web3.to_checksum_address(self.fee_token),
            "maxTokenAmount": self.max_token_amount,
            "deadline": self.deadline,
            "nonce": self.nonce,
            "data": _hex(self.data),
            "hashedPayload": _hex(self.hashed_payload),
        }


@dataclass(frozen=True)
class PermitMessage:
    """LP token permit (EIP-2612 style) scoped to one pair contract"""
    owner: str
    spender: str
    value: int
    nonce: int
    deadline: int

    PRIMARY_TYPE = "Permit"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner": Web3.to_checksum_address(self.owner),
            "spender": Web3.to_checksum_address(self.spender),
            "value": self.value,
            "nonce": self.nonce,
            "deadline": self.deadline,
        }


@dataclass(frozen=True)
class FeeQuote:
    """Maximum relay fee for one request, in fee token smallest units"""
    token_address: str
    token_decimals: int
    max_token_fee: int


@dataclass(frozen=True)
class PermitSignature:
    """Split secp256k1 signature"""
    v: int
    r: str
    s: str

    def to_abi(self) -> Tuple[int, bytes, bytes]:
        """Tuple form for the router's (uint8, bytes32, bytes32) argument"""
        return (self.v, Web3.to_bytes(hexstr=self.r), Web3.to_bytes(hexstr=self.s))

    def to_dict(self) -> Dict[str, Any]:
        return {"v": self.v, "r": self.r, "s": self.s}
