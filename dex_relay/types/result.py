"""
Unified relay response

The same shape is produced whether a request travelled through the relayer
or was submitted directly on-chain.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict

_TX_HASH_RE = re.compile(r"^0x[0-9a-fA-F]+$")


def is_tx_hash(value: Any) -> bool:
    """Check that value is a 0x-prefixed hex transaction hash"""
    return isinstance(value, str) and bool(_TX_HASH_RE.match(value))


@dataclass(frozen=True)
class ResponseResult:
    """
    Outcome of a dispatched request

    Attributes:
        error_message: Empty on success
        success: Whether the operation was executed
        txn_hash: Transaction hash, empty on failure
    """
    error_message: str
    success: bool
    txn_hash: str

    def __post_init__(self):
        if self.success:
            if not is_tx_hash(self.txn_hash):
                raise ValueError(f"Successful result needs a transaction hash, got {self.txn_hash!r}")
            if self.error_message:
                raise ValueError("Successful result cannot carry an error message")
        elif self.txn_hash:
            raise ValueError("Failed result cannot carry a transaction hash")


@dataclass(frozen=True)
class Response:
    """
    JSON-RPC shaped relay response

    Build with ``Response.succeeded`` / ``Response.failed`` or parse a relayer
    body with ``Response.from_dict``.
    """
    result: ResponseResult
    id: int = 1
    jsonrpc: str = "2.0"

    @property
    def success(self) -> bool:
        return self.result.success

    @property
    def txn_hash(self) -> str:
        return self.result.txn_hash

    @property
    def error_message(self) -> str:
        return self.result.error_message

    @classmethod
    def succeeded(cls, txn_hash: str, id: int = 1, jsonrpc: str = "2.0") -> "Response":
        """Create successful response"""
        return cls(
            result=ResponseResult(error_message="", success=True, txn_hash=txn_hash),
            id=id,
            jsonrpc=jsonrpc,
        )

    @classmethod
    def failed(cls, error_message: str, id: int = 1, jsonrpc: str = "2.0") -> "Response":
        """Create failed response"""
        return cls(
            result=ResponseResult(
                error_message=error_message or "Request failed",
                success=False,
                txn_hash="",
            ),
            id=id,
            jsonrpc=jsonrpc,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Response":
        """
        Parse a relayer JSON body

        A claimed success without a usable transaction hash is turned into a
        failure, and a failure never keeps a transaction hash.

        Raises:
            ValueError: If the body is not a relay response
        """
        if not isinstance(data, dict) or not isinstance(data.get("result"), dict):
            raise ValueError("missing 'result' object")

        result = data["result"]
        if not isinstance(result.get("success"), bool):
            raise ValueError("'result.success' must be a boolean")

        rpc_id = data.get("id", 1)
        jsonrpc = data.get("jsonrpc", "2.0")
        if not isinstance(rpc_id, int) or isinstance(rpc_id, bool):
            raise ValueError("'id' must be an integer")

        if result["success"]:
            txn_hash = result.get("txnHash") or ""
            if not is_tx_hash(txn_hash):
                return cls.failed(
                    f"Relayer reported success without a valid transaction hash: {txn_hash!r}",
                    id=rpc_id,
                    jsonrpc=jsonrpc,
                )
            return cls.succeeded(txn_hash, id=rpc_id, jsonrpc=jsonrpc)

        # Relayer rejections keep their message as sent, even when empty
        return cls(
            result=ResponseResult(
                error_message=str(result.get("errorMessage") or ""),
                success=False,
                txn_hash="",
            ),
            id=rpc_id,
            jsonrpc=jsonrpc,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation"""
        return {
            "id": self.id,
            "jsonrpc": self.jsonrpc,
            "result": {
                "errorMessage": self.result.error_message,
                "success": self.result.success,
                "txnHash": self.result.txn_hash,
            },
        }

    def __str__(self) -> str:
        if self.success:
            return f"Response(SUCCESS, {self.txn_hash})"
        return f"Response(FAILED, error={self.error_message})"
