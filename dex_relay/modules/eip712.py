"""
EIP-712 typed message construction

Builds the domain, Forwarder and Permit messages and the full typed-data
envelope, and ABI-encodes router calls for the Forwarder ``data`` field.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from eth_abi import encode
from eth_utils import keccak
from web3 import Web3

from ..abis import ROUTER_ABI
from ..constants import ROUTER_DOMAIN_NAME
from ..types import ForwarderMessage, PermitMessage, RouterCall, TypedDomain

logger = logging.getLogger(__name__)

EIP712_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

FORWARDER_TYPE = [
    {"name": "from", "type": "address"},
    {"name": "feeToken", "type": "address"},
    {"name": "maxTokenAmount", "type": "uint256"},
    {"name": "deadline", "type": "uint256"},
    {"name": "nonce", "type": "uint256"},
    {"name": "data", "type": "bytes"},
    {"name": "hashedPayload", "type": "bytes32"},
]

PERMIT_TYPE = [
    {"name": "owner", "type": "address"},
    {"name": "spender", "type": "address"},
    {"name": "value", "type": "uint256"},
    {"name": "nonce", "type": "uint256"},
    {"name": "deadline", "type": "uint256"},
]

MESSAGE_TYPES = {
    ForwarderMessage.PRIMARY_TYPE: FORWARDER_TYPE,
    PermitMessage.PRIMARY_TYPE: PERMIT_TYPE,
}


def _abi_type(param: Dict[str, Any]) -> str:
    """Canonical type string of an ABI parameter, tuples expanded"""
    abi_type = param["type"]
    if abi_type.startswith("tuple"):
        inner = ",".join(_abi_type(c) for c in param["components"])
        return f"({inner}){abi_type[len('tuple'):]}"
    return abi_type


def _normalize(abi_type: str, value: Any) -> Any:
    if abi_type == "address":
        return Web3.to_checksum_address(value)
    if abi_type == "address[]":
        return [Web3.to_checksum_address(v) for v in value]
    return value


class TypedMessageBuilder:
    """
    Stateless message builder

    The domain is rebuilt for every request, never cached.
    """

    def __init__(self, router_abi: Optional[List[Dict[str, Any]]] = None):
        self._functions = {
            entry["name"]: entry
            for entry in (router_abi or ROUTER_ABI)
            if entry.get("type") == "function"
        }

    def _function(self, method: str) -> Dict[str, Any]:
        if method not in self._functions:
            raise ValueError(f"Router ABI has no function {method!r}")
        return self._functions[method]

    def function_signature(self, method: str) -> str:
        entry = self._function(method)
        return f"{method}({','.join(_abi_type(p) for p in entry['inputs'])})"

    def encode_call(self, call: RouterCall) -> bytes:
        """Selector plus ABI-encoded arguments of the call"""
        entry = self._function(call.METHOD)
        types = [_abi_type(p) for p in entry["inputs"]]
        args = call.abi_args()
        if len(types) != len(args):
            raise ValueError(
                f"{call.METHOD} takes {len(types)} arguments, call provides {len(args)}"
            )

        args = [_normalize(t, v) for t, v in zip(types, args)]
        selector = keccak(text=self.function_signature(call.METHOD))[:4]
        return selector + encode(types, args)

    def build_forwarder_message(
        self,
        call: RouterCall,
        sender: str,
        fee_token: str,
        max_token_fee: int,
        nonce: int,
    ) -> ForwarderMessage:
        return ForwarderMessage.for_payload(
            sender=sender,
            fee_token=fee_token,
            max_token_amount=max_token_fee,
            deadline=call.deadline,
            nonce=nonce,
            data=self.encode_call(call),
        )

    def build_permit_message(
        self,
        owner: str,
        spender: str,
        value: int,
        nonce: int,
        deadline: int,
    ) -> PermitMessage:
        return PermitMessage(owner=owner, spender=spender, value=value, nonce=nonce, deadline=deadline)

    def get_domain(
        self,
        verifying_contract: str,
        chain_id: int,
        name: str = ROUTER_DOMAIN_NAME,
    ) -> TypedDomain:
        return TypedDomain(name=name, chain_id=chain_id, verifying_contract=verifying_contract)

    def build_typed_data(
        self,
        domain: TypedDomain,
        message: Union[ForwarderMessage, PermitMessage],
    ) -> Dict[str, Any]:
        """JSON-safe EIP-712 envelope, used for signing and as the relayer payload"""
        primary_type = message.PRIMARY_TYPE
        return {
            "types": {
                "EIP712Domain": EIP712_DOMAIN_TYPE,
                primary_type: MESSAGE_TYPES[primary_type],
            },
            "domain": domain.to_dict(),
            "primaryType": primary_type,
            "message": message.to_dict(),
        }
