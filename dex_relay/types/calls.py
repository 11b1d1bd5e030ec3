"""
Typed router call arguments

One frozen dataclass per router method. ``SIGNED_FIELDS`` is the ABI argument
order of the method; ``user`` and ``deadline`` also feed the Forwarder message.
Gas limit and gas price are dispatch parameters and never part of a call.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, List, Sequence, Tuple

from .messages import PermitSignature


@dataclass(frozen=True)
class RouterCall:
    """Base class for router method arguments"""
    METHOD: ClassVar[str] = ""
    SIGNED_FIELDS: ClassVar[Tuple[str, ...]] = ()

    def abi_args(self) -> List[Any]:
        """Arguments in ABI order"""
        args = []
        for name in self.SIGNED_FIELDS:
            value = getattr(self, name)
            if isinstance(value, PermitSignature):
                value = value.to_abi()
            elif isinstance(value, tuple):
                value = list(value)
            args.append(value)
        return args


@dataclass(frozen=True)
class AddLiquidityCall(RouterCall):
    token_a: str
    token_b: str
    amount_a_desired: int
    amount_b_desired: int
    amount_a_min: int
    amount_b_min: int
    user: str
    deadline: int

    METHOD: ClassVar[str] = "addLiquidity"
    SIGNED_FIELDS: ClassVar[Tuple[str, ...]] = (
        "token_a", "token_b",
        "amount_a_desired", "amount_b_desired",
        "amount_a_min", "amount_b_min",
        "user", "deadline",
    )


@dataclass(frozen=True)
class RemoveLiquidityCall(RouterCall):
    token_a: str
    token_b: str
    liquidity: int
    amount_a_min: int
    amount_b_min: int
    user: str
    deadline: int
    sig: PermitSignature

    METHOD: ClassVar[str] = "removeLiquidity"
    SIGNED_FIELDS: ClassVar[Tuple[str, ...]] = (
        "token_a", "token_b", "liquidity",
        "amount_a_min", "amount_b_min",
        "user", "deadline", "sig",
    )


def _freeze_path(call, path: Sequence[str]):
    object.__setattr__(call, "path", tuple(path))


@dataclass(frozen=True)
class SwapExactTokensForTokensCall(RouterCall):
    amount_in: int
    amount_out_min: int
    path: Tuple[str, ...]
    user: str
    deadline: int

    METHOD: ClassVar[str] = "swapExactTokensForTokens"
    SIGNED_FIELDS: ClassVar[Tuple[str, ...]] = (
        "amount_in", "amount_out_min", "path", "user", "deadline",
    )

    def __post_init__(self):
        _freeze_path(self, self.path)


@dataclass(frozen=True)
class SwapTokensForExactTokensCall(RouterCall):
    amount_out: int
    amount_in_max: int
    path: Tuple[str, ...]
    user: str
    deadline: int

    METHOD: ClassVar[str] = "swapTokensForExactTokens"
    SIGNED_FIELDS: ClassVar[Tuple[str, ...]] = (
        "amount_out", "amount_in_max", "path", "user", "deadline",
    )

    def __post_init__(self):
        _freeze_path(self, self.path)
