"""
Exception definitions for the relay client
"""

from enum import Enum
from typing import Optional, Sequence


class ErrorCode(Enum):
    """
    Unified error codes for relay operations

    1xxx - Initialization errors
    2xxx - Route/pair errors
    3xxx - Signature errors
    4xxx - Relayer errors
    5xxx - Direct submission errors
    9xxx - Configuration errors
    """
    # Initialization errors
    NOT_INITIALIZED = "1001"
    CHAIN_NOT_SUPPORTED = "1002"

    # Route/pair errors
    PATH_NOT_FOUND = "2001"
    PAIR_NOT_FOUND = "2002"

    # Signature errors
    SIGNATURE_MISMATCH = "3001"
    SIGNER_NOT_CONFIGURED = "3002"
    SIGNER_FAILED = "3003"

    # Relayer errors
    RELAY_REJECTED = "4001"
    RELAY_TRANSPORT_FAILED = "4002"
    RELAY_UNCONFIRMED = "4003"

    # Direct submission errors
    DIRECT_SUBMISSION_FAILED = "5001"

    # Fee estimation errors
    FEE_ESTIMATION_FAILED = "6001"

    # Configuration errors
    CONFIG_INVALID = "9001"
    CONFIG_MISSING = "9002"


class RelayError(Exception):
    """
    Base exception for all relay client errors

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        recoverable: Whether the error might succeed on retry
        original_error: The underlying exception if any
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"

    @property
    def should_retry(self) -> bool:
        """Indicate if the operation should be retried"""
        return self.recoverable


class InitializationError(RelayError):
    """
    Session is unusable - not recoverable

    Raised when:
    - An operation runs before the client was initialized
    - The provider is connected to a chain with no relayer endpoint
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.NOT_INITIALIZED,
        chain_id: Optional[int] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            details={"chain_id": chain_id} if chain_id is not None else None,
        )
        self.chain_id = chain_id

    @classmethod
    def not_initialized(cls) -> "InitializationError":
        return cls("Relay client has not been initialized yet")

    @classmethod
    def chain_not_supported(cls, chain_id: int) -> "InitializationError":
        return cls(
            f"Chain ID {chain_id} not supported",
            ErrorCode.CHAIN_NOT_SUPPORTED,
            chain_id=chain_id,
        )


class PathNotFoundError(RelayError):
    """
    Swap path is not tradable - not recoverable

    Raised when:
    - The path has fewer than two tokens
    - A consecutive pair of the path has no liquidity pair
    """

    def __init__(self, message: str, path: Optional[Sequence[str]] = None):
        super().__init__(
            message,
            ErrorCode.PATH_NOT_FOUND,
            recoverable=False,
            details={"path": list(path) if path is not None else None},
        )
        self.path = list(path) if path is not None else []

    @classmethod
    def for_path(cls, path: Sequence[str]) -> "PathNotFoundError":
        return cls("Trade path does not exist.", path=path)


class PairNotFoundError(RelayError):
    """
    Liquidity pair does not exist - not recoverable
    """

    def __init__(self, message: str, token_a: Optional[str] = None, token_b: Optional[str] = None):
        super().__init__(
            message,
            ErrorCode.PAIR_NOT_FOUND,
            recoverable=False,
            details={"token_a": token_a, "token_b": token_b},
        )
        self.token_a = token_a
        self.token_b = token_b

    @classmethod
    def for_tokens(cls, token_a: str, token_b: str) -> "PairNotFoundError":
        return cls("Pair does not exist.", token_a=token_a, token_b=token_b)


class SignatureMismatchError(RelayError):
    """
    Recovered signer differs from the expected one - never retried

    A payload that fails verification is never sent anywhere.
    """

    def __init__(
        self,
        message: str,
        expected: Optional[str] = None,
        recovered: Optional[str] = None,
    ):
        super().__init__(
            message,
            ErrorCode.SIGNATURE_MISMATCH,
            recoverable=False,
            details={"expected": expected, "recovered": recovered},
        )
        self.expected = expected
        self.recovered = recovered

    @classmethod
    def invalid_signature(cls, expected: str, recovered: Optional[str] = None) -> "SignatureMismatchError":
        return cls(
            f"Invalid signature: expected signer {expected}, recovered {recovered or 'nothing'}",
            expected=expected,
            recovered=recovered,
        )


class SignerError(RelayError):
    """
    Signing-related errors

    Raised when:
    - No signer configured
    - The key-holding agent refuses or fails to sign
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SIGNER_FAILED,
        recoverable: bool = False,
    ):
        super().__init__(message, code, recoverable=recoverable)

    @classmethod
    def not_configured(cls) -> "SignerError":
        return cls(
            "No signer configured. Provide a private key, keystore or provider account.",
            ErrorCode.SIGNER_NOT_CONFIGURED,
        )

    @classmethod
    def failed(cls, reason: str) -> "SignerError":
        return cls(f"Signing failed: {reason}", ErrorCode.SIGNER_FAILED)


class RelayExecutionError(RelayError):
    """
    Relayer call errors

    A relayer answer of ``success: false`` is returned to the caller inside the
    Response. This exception is raised only when the relayer could not be
    reached or answered with something that is not a relay response.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RELAY_TRANSPORT_FAILED,
        endpoint: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            original_error=original_error,
            details={"endpoint": endpoint} if endpoint else None,
        )
        self.endpoint = endpoint

    @classmethod
    def transport_failed(cls, endpoint: str, error: Exception) -> "RelayExecutionError":
        return cls(
            f"Relayer request to {endpoint} failed: {error}",
            endpoint=endpoint,
            original_error=error,
        )

    @classmethod
    def invalid_response(cls, endpoint: str, reason: str) -> "RelayExecutionError":
        return cls(
            f"Invalid relayer response from {endpoint}: {reason}",
            endpoint=endpoint,
        )


class RelayIntegrityError(RelayError):
    """
    A relayer's claimed success could not be confirmed on-chain

    Converted into a ``success: false`` Response by the verifier.
    """

    def __init__(self, message: str, txn_hash: Optional[str] = None):
        super().__init__(
            message,
            ErrorCode.RELAY_UNCONFIRMED,
            recoverable=False,
            details={"txn_hash": txn_hash},
        )
        self.txn_hash = txn_hash

    @classmethod
    def unconfirmed(cls, txn_hash: str, reason: str) -> "RelayIntegrityError":
        return cls(f"Relayed transaction {txn_hash} could not be confirmed: {reason}", txn_hash=txn_hash)


class DirectSubmissionError(RelayError):
    """
    On-chain submission or confirmation failed

    Normalized into a ``success: false`` Response by the direct path.
    """

    def __init__(
        self,
        message: str,
        txn_hash: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            ErrorCode.DIRECT_SUBMISSION_FAILED,
            recoverable=False,
            original_error=original_error,
            details={"txn_hash": txn_hash},
        )
        self.txn_hash = txn_hash

    @classmethod
    def reverted(cls, txn_hash: str) -> "DirectSubmissionError":
        return cls("Transaction reverted", txn_hash=txn_hash)


class FeeEstimationError(RelayError):
    """
    Fee token quote could not be produced

    Raised when:
    - The price feed is unreachable or has no price for the token
    - The price pair has no liquidity
    """

    def __init__(
        self,
        message: str,
        chain_id: Optional[int] = None,
        token: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            ErrorCode.FEE_ESTIMATION_FAILED,
            recoverable=False,
            original_error=original_error,
            details={"chain_id": chain_id, "token": token},
        )
        self.chain_id = chain_id
        self.token = token

    @classmethod
    def price_unavailable(cls, chain_id: int, token: str, reason: str) -> "FeeEstimationError":
        return cls(
            f"No price available for fee token {token} on chain {chain_id}: {reason}",
            chain_id=chain_id,
            token=token,
        )


class ConfigurationError(RelayError):
    """
    Configuration-related errors

    Raised when:
    - Required configuration is missing
    - Configuration values are invalid
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
    ):
        super().__init__(message, code, recoverable=False)

    @classmethod
    def missing(cls, param: str) -> "ConfigurationError":
        return cls(f"Missing required configuration: {param}", ErrorCode.CONFIG_MISSING)

    @classmethod
    def invalid(cls, param: str, reason: str) -> "ConfigurationError":
        return cls(f"Invalid configuration '{param}': {reason}", ErrorCode.CONFIG_INVALID)
