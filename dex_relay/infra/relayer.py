"""
Relayer HTTP client

JSON-RPC over HTTP POST to the meta-transaction relayer. One request per call,
no retries: a meta-transaction is single use.
"""

import logging
from typing import Optional, Dict, Any, List

import httpx

from ..config import config as global_config
from ..constants import META_TX_METHOD_PREFIX
from ..errors import RelayExecutionError

logger = logging.getLogger(__name__)


def build_relay_request(method: str, params: List[Any], request_id: int = 1) -> Dict[str, Any]:
    """JSON-RPC body for a router method"""
    return {
        "jsonrpc": "2.0",
        "method": f"{META_TX_METHOD_PREFIX}{method}",
        "id": request_id,
        "params": params,
    }


class RelayerClient:
    """
    Relayer transport

    Usage:
        with RelayerClient() as relayer:
            body = relayer.post(endpoint, "addLiquidity", params)
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ):
        """
        Args:
            timeout: Request timeout in seconds
            client: Pre-built httpx client (tests inject a mock transport here)
        """
        self._timeout = timeout or global_config.relayer.timeout
        self._client = client

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client"""
        if self._client is None:
            self._client = httpx.Client(
                timeout=self._timeout,
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    def post(self, endpoint: str, method: str, params: List[Any]) -> Dict[str, Any]:
        """
        Send a meta-transaction to the relayer

        Returns:
            Decoded JSON body

        Raises:
            RelayExecutionError: Transport failure, HTTP error status or non-JSON body
        """
        payload = build_relay_request(method, params)
        logger.debug(f"POST {endpoint} method={payload['method']}")

        try:
            response = self._get_client().post(endpoint, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RelayExecutionError.transport_failed(
                endpoint, Exception(f"HTTP {e.response.status_code}: {e.response.text[:200]}")
            ) from e
        except httpx.HTTPError as e:
            raise RelayExecutionError.transport_failed(endpoint, e) from e

        try:
            body = response.json()
        except ValueError as e:
            raise RelayExecutionError.invalid_response(endpoint, "body is not JSON") from e

        if not isinstance(body, dict):
            raise RelayExecutionError.invalid_response(endpoint, "body is not a JSON object")
        return body

    def close(self):
        """Close HTTP client"""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
