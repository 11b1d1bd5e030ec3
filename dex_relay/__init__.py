"""
DEX Relay - meta-transaction client for a Uniswap-V2 style router

Dispatches router operations either as gas-sponsored meta-transactions
through the relayer or, when the router has them disabled, as ordinary
on-chain transactions:
- addLiquidity / removeLiquidity (with LP permit signing)
- swapExactTokensForTokens / swapTokensForExactTokens

Supported chains: BSC (56), Polygon (137)
"""

from .client import RelayClient
from .constants import ChainId, Environment
from .types import (
    Response,
    Session,
    PermitSignature,
    FeeQuote,
    AddLiquidityCall,
    RemoveLiquidityCall,
    SwapExactTokensForTokensCall,
    SwapTokensForExactTokensCall,
)
from .errors import (
    RelayError,
    ErrorCode,
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
from .infra.evm_signer import EVMSigner, ProviderSigner, create_web3, create_evm_signer
from .config import setup_logging, enable_file_logging

__version__ = "0.1.0"

__all__ = [
    # Client
    "RelayClient",
    "ChainId",
    "Environment",
    # Types
    "Response",
    "Session",
    "PermitSignature",
    "FeeQuote",
    "AddLiquidityCall",
    "RemoveLiquidityCall",
    "SwapExactTokensForTokensCall",
    "SwapTokensForExactTokensCall",
    # Errors
    "RelayError",
    "ErrorCode",
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
    # Signers
    "EVMSigner",
    "ProviderSigner",
    "create_web3",
    "create_evm_signer",
    # Logging
    "setup_logging",
    "enable_file_logging",
]
