"""
Relay pipeline components
"""

from .fees import FeeEstimator, FeeStrategy, PriceFeedStrategy, PairReserveStrategy
from .paths import PathValidator
from .eip712 import TypedMessageBuilder
from .signatures import SignatureService
from .verification import ResponseVerifier
from .dispatch import Dispatcher, DispatchContext, DispatchState, RelayPath, DirectPath

__all__ = [
    "FeeEstimator",
    "FeeStrategy",
    "PriceFeedStrategy",
    "PairReserveStrategy",
    "PathValidator",
    "TypedMessageBuilder",
    "SignatureService",
    "ResponseVerifier",
    "Dispatcher",
    "DispatchContext",
    "DispatchState",
    "RelayPath",
    "DirectPath",
]
