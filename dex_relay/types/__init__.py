"""
Type definitions for the relay client
"""

from .result import Response, ResponseResult, is_tx_hash
from .messages import (
    TypedDomain,
    ForwarderMessage,
    PermitMessage,
    FeeQuote,
    PermitSignature,
)
from .calls import (
    RouterCall,
    AddLiquidityCall,
    RemoveLiquidityCall,
    SwapExactTokensForTokensCall,
    SwapTokensForExactTokensCall,
)
from .session import Session

__all__ = [
    "Response",
    "ResponseResult",
    "is_tx_hash",
    "TypedDomain",
    "ForwarderMessage",
    "PermitMessage",
    "FeeQuote",
    "PermitSignature",
    "RouterCall",
    "AddLiquidityCall",
    "RemoveLiquidityCall",
    "SwapExactTokensForTokensCall",
    "SwapTokensForExactTokensCall",
    "Session",
]
