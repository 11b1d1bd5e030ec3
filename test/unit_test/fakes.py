"""
Test doubles for web3 providers and contracts

Contracts answer ``contract.functions.<name>(*args).call()`` from handlers
registered per function name and record every call.
"""

import itertools
import json
from typing import Any, Callable, Dict, List, Optional

import httpx
from eth_abi import encode
from web3 import Web3

from dex_relay.constants import FACTORY_ADDRESS, ROUTER_ADDRESS, ZERO_ADDRESS

TOKEN_A = "0x" + "a1" * 20
TOKEN_B = "0x" + "b2" * 20
TOKEN_C = "0x" + "c3" * 20
FEE_TOKEN = "0x" + "fe" * 20
PAIR_AB = "0x" + "ab" * 20
PAIR_BC = "0x" + "bc" * 20

# Test-only keys. DO NOT use in production.
PRIVATE_KEY = "0x" + "11" * 32
OTHER_PRIVATE_KEY = "0x" + "22" * 32


class FakeCall:
    def __init__(self, contract: "FakeContract", name: str, args: tuple):
        self._contract = contract
        self._name = name
        self._args = args

    def call(self):
        self._contract.calls.append((self._name, self._args))
        if self._name not in self._contract.handlers:
            raise AttributeError(f"{self._contract.address} has no handler for {self._name}")
        handler = self._contract.handlers[self._name]
        return handler(*self._args) if callable(handler) else handler


class FakeFunctions:
    def __init__(self, contract: "FakeContract"):
        self._contract = contract

    def __getattr__(self, name: str):
        return lambda *args: FakeCall(self._contract, name, args)


class FakeContract:
    def __init__(self, address: str, **handlers):
        self.address = Web3.to_checksum_address(address)
        self.handlers: Dict[str, Any] = dict(handlers)
        self.calls: List[tuple] = []
        self.functions = FakeFunctions(self)

    def call_count(self, name: str) -> int:
        return sum(1 for called, _ in self.calls if called == name)


class FakeEth:
    def __init__(self, chain_id: int, gas_price: int):
        self.chain_id = chain_id
        self.gas_price = gas_price
        self.accounts: List[str] = []
        self.contracts: Dict[str, FakeContract] = {}
        self.receipts: Dict[str, Dict[str, Any]] = {}
        self.receipt_requests: List[str] = []
        self.sent_raw: List[bytes] = []
        self.send_error: Optional[Exception] = None
        # Receipt status recorded for every raw transaction sent, None for no receipt
        self.mined_status: Optional[int] = 1
        self.transaction_count = 0

    def contract(self, address: str, abi: list) -> FakeContract:
        key = address.lower()
        if key not in self.contracts:
            self.contracts[key] = FakeContract(address)
        return self.contracts[key]

    def get_transaction_count(self, address: str, block: str = "latest") -> int:
        return self.transaction_count

    def send_raw_transaction(self, raw: bytes):
        if self.send_error is not None:
            raise self.send_error
        self.sent_raw.append(bytes(raw))
        tx_hash = Web3.keccak(raw)
        if self.mined_status is not None:
            self.receipts[Web3.to_hex(tx_hash).lower()] = {
                "transactionHash": tx_hash,
                "status": self.mined_status,
                "blockNumber": 1,
                "gasUsed": 21_000,
                "logs": [],
            }
        return tx_hash

    def wait_for_transaction_receipt(self, tx_hash, timeout: float = 120, poll_latency: float = 0.1):
        tx_hash = Web3.to_hex(tx_hash) if not isinstance(tx_hash, str) else tx_hash
        self.receipt_requests.append(tx_hash)
        if tx_hash.lower() not in self.receipts:
            raise TimeoutError(f"Transaction {tx_hash} is not in the chain after {timeout} seconds")
        return self.receipts[tx_hash.lower()]


class FakeWeb3:
    def __init__(self, chain_id: int = 56, gas_price: int = 5 * 10**9):
        self.eth = FakeEth(chain_id, gas_price)

    def add_contract(self, address: str, **handlers) -> FakeContract:
        contract = self.eth.contract(address=address, abi=[])
        contract.handlers.update(handlers)
        return contract

    def add_receipt(self, tx_hash: str, status: int = 1, logs: Optional[list] = None) -> Dict[str, Any]:
        receipt = {
            "transactionHash": tx_hash,
            "status": status,
            "blockNumber": 1,
            "gasUsed": 21_000,
            "logs": logs or [],
        }
        self.eth.receipts[tx_hash.lower()] = receipt
        return receipt


def pair_lookup(pairs: Dict[frozenset, str]) -> Callable[[str, str], str]:
    """getPair handler answering from {frozenset({a, b}): pair}"""
    normalized = {frozenset(t.lower() for t in key): value for key, value in pairs.items()}

    def get_pair(token_a: str, token_b: str) -> str:
        return normalized.get(frozenset((token_a.lower(), token_b.lower())), ZERO_ADDRESS)

    return get_pair


def counter(start: int = 0) -> Callable[..., int]:
    """Handler returning start, start + 1, ... on successive calls"""
    values = itertools.count(start)
    return lambda *args: next(values)


def make_web3(
    chain_id: int = 56,
    meta_enabled: bool = True,
    pairs: Optional[Dict[frozenset, str]] = None,
    nonces: Optional[Callable[..., int]] = None,
    decimals: int = 18,
) -> FakeWeb3:
    """Provider with router, factory and fee token deployed"""
    web3 = FakeWeb3(chain_id=chain_id)
    web3.add_contract(
        ROUTER_ADDRESS,
        nonces=nonces or counter(),
        metaEnabled=meta_enabled,
    )
    if pairs is None:
        pairs = {frozenset((TOKEN_A, TOKEN_B)): PAIR_AB}
    web3.add_contract(FACTORY_ADDRESS, getPair=pair_lookup(pairs))
    web3.add_contract(FEE_TOKEN, decimals=decimals, symbol="USDC")
    return web3


def router(web3: FakeWeb3) -> FakeContract:
    return web3.eth.contracts[ROUTER_ADDRESS.lower()]


def factory(web3: FakeWeb3) -> FakeContract:
    return web3.eth.contracts[FACTORY_ADDRESS.lower()]


def meta_status_log(sender: str, success: bool = True, error: str = "", address: str = ROUTER_ADDRESS) -> Dict[str, Any]:
    """Receipt log of the router's MetaStatus event"""
    from dex_relay.modules.verification import META_STATUS_TOPIC

    return {
        "address": Web3.to_checksum_address(address),
        "topics": [META_STATUS_TOPIC],
        "data": encode(["address", "bool", "string"], [Web3.to_checksum_address(sender), success, error]),
    }


class RecordingTransport:
    """httpx mock transport answering every request with one JSON body"""

    def __init__(self, body: Any = None, status_code: int = 200, text: Optional[str] = None):
        self.body = body
        self.status_code = status_code
        self.text = text
        self.requests: List[Dict[str, Any]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append({
            "url": str(request.url),
            "json": json.loads(request.content) if request.content else None,
        })
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.body)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


def relay_body(success: bool = True, txn_hash: str = "0xabc", error_message: str = "") -> Dict[str, Any]:
    return {
        "id": 1,
        "jsonrpc": "2.0",
        "result": {
            "errorMessage": error_message,
            "success": success,
            "txnHash": txn_hash if success else "",
        },
    }


def forwarder_typed_data(user: str, nonce: int = 0) -> Dict[str, Any]:
    """Signed-ready Forwarder envelope for a two-token swap on BSC"""
    from dex_relay.modules.eip712 import TypedMessageBuilder
    from dex_relay.types import SwapExactTokensForTokensCall

    builder = TypedMessageBuilder()
    call = SwapExactTokensForTokensCall(
        amount_in=1000, amount_out_min=990, path=[TOKEN_A, TOKEN_B], user=user, deadline=1_700_000_000,
    )
    message = builder.build_forwarder_message(call, user, FEE_TOKEN, 42, nonce)
    return builder.build_typed_data(builder.get_domain(ROUTER_ADDRESS, 56), message)
