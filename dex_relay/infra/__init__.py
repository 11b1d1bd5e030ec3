"""
Infrastructure: signers, relayer transport and request tracing
"""

from .evm_signer import (
    EVMSigner,
    ProviderSigner,
    TypedDataSigner,
    NonceManager,
    get_nonce_manager,
    signable_typed_data,
    create_web3,
    create_evm_signer,
)
from .relayer import RelayerClient, build_relay_request
from .tracing import (
    CorrelationContext,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
    log_with_correlation,
)

__all__ = [
    "EVMSigner",
    "ProviderSigner",
    "TypedDataSigner",
    "NonceManager",
    "get_nonce_manager",
    "signable_typed_data",
    "create_web3",
    "create_evm_signer",
    "RelayerClient",
    "build_relay_request",
    "CorrelationContext",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
    "log_with_correlation",
]
