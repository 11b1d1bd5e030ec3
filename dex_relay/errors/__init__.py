"""
Error definitions for the relay client
"""

from .exceptions import (
    ErrorCode,
    RelayError,
    InitializationError,
    PathNotFoundError,
    PairNotFoundError,
    SignatureMismatchError,
    SignerError,
    RelayExecutionError,
    RelayIntegrityError,
    DirectSubmissionError,
    FeeEstimationError,
    ConfigurationError,
)

__all__ = [
    "ErrorCode",
    "RelayError",
    "InitializationError",
    "PathNotFoundError",
    "PairNotFoundError",
    "SignatureMismatchError",
    "SignerError",
    "RelayExecutionError",
    "RelayIntegrityError",
    "DirectSubmissionError",
    "FeeEstimationError",
    "ConfigurationError",
]
