"""
Request dispatch

Builds the signed meta-transaction for a router call and sends it along one
of two paths, chosen per call by the router's ``metaEnabled()`` flag:

- ``RelayPath``: sign, verify, POST to the relayer, confirm on-chain
- ``DirectPath``: submit the encoded call as an ordinary transaction

Both return the same ``Response`` shape.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from web3 import Web3

from ..config import config as global_config
from ..errors import DirectSubmissionError, InitializationError, RelayExecutionError
from ..infra.evm_signer import TypedDataSigner
from ..infra.relayer import RelayerClient
from ..infra.tracing import CorrelationContext, log_with_correlation
from ..types import FeeQuote, ForwarderMessage, Response, RouterCall, Session, TypedDomain
from .eip712 import TypedMessageBuilder
from .fees import FeeEstimator
from .signatures import SignatureService
from .verification import ResponseVerifier

logger = logging.getLogger(__name__)


class DispatchState(Enum):
    BUILDING = "building"
    FEE_QUOTED = "fee_quoted"
    MESSAGE_BUILT = "message_built"
    SIGNATURE_PENDING = "signature_pending"
    RELAYING = "relaying"
    DIRECT_SENDING = "direct_sending"
    VERIFYING = "verifying"
    DONE = "done"


def _log_state(call: RouterCall, state: DispatchState, message: str, level: int = logging.INFO, **extra):
    log_with_correlation(logger, level, message, call.METHOD, state=state.name, **extra)


@dataclass(frozen=True)
class DispatchContext:
    """Everything built for one request before it leaves the process"""
    session: Session
    call: RouterCall
    sender: str
    gas_limit: int
    gas_price: int
    fee: FeeQuote
    domain: TypedDomain
    message: ForwarderMessage
    typed_data: Dict[str, Any]


class DispatchPath(ABC):
    """Execution strategy for a built request"""

    name: str = ""

    @abstractmethod
    def execute(self, ctx: DispatchContext) -> Response:
        pass


class RelayPath(DispatchPath):
    """
    Gas-sponsored execution through the relayer

    Raises:
        SignatureMismatchError: Signature does not recover to the sender;
            the relayer is not contacted
        RelayExecutionError: Relayer unreachable or answered with a non-relay body
    """

    name = "relay"

    def __init__(
        self,
        signatures: SignatureService,
        relayer: RelayerClient,
        verifier: ResponseVerifier,
    ):
        self._signatures = signatures
        self._relayer = relayer
        self._verifier = verifier

    def execute(self, ctx: DispatchContext) -> Response:
        _log_state(ctx.call, DispatchState.SIGNATURE_PENDING, f"Requesting signature from {ctx.sender}")
        _, (v, r, s) = self._signatures.sign_and_verify(ctx.typed_data, ctx.sender)

        endpoint = ctx.session.relayer_endpoint
        params = [str(ctx.session.chain_id), ctx.typed_data, str(v), r, s]
        _log_state(ctx.call, DispatchState.RELAYING, f"POST {endpoint}")
        body = self._relayer.post(endpoint, ctx.call.METHOD, params)

        try:
            response = Response.from_dict(body)
        except ValueError as e:
            raise RelayExecutionError.invalid_response(endpoint, str(e)) from e

        if not response.success:
            _log_state(
                ctx.call, DispatchState.DONE,
                f"Relayer rejected request: {response.error_message}", level=logging.WARNING,
            )
            return response

        _log_state(ctx.call, DispatchState.VERIFYING, f"Confirming {response.txn_hash}")
        return self._verifier.verify(ctx.session.web3, response, ctx.session.router_address, ctx.sender)


class DirectPath(DispatchPath):
    """
    Ordinary on-chain submission by the sender

    Never raises: every failure becomes ``Response.failed`` carrying the
    underlying message.
    """

    name = "direct"

    def __init__(self, signer: TypedDataSigner, receipt_timeout: Optional[float] = None):
        self._signer = signer
        self._receipt_timeout = receipt_timeout or global_config.verification.receipt_timeout

    def _submit(self, ctx: DispatchContext) -> str:
        tx_dict = {
            "to": Web3.to_checksum_address(ctx.session.router_address),
            "data": Web3.to_hex(ctx.message.data),
            "gas": ctx.gas_limit,
            "gasPrice": ctx.gas_price,
            "value": 0,
        }
        result = self._signer.send_transaction(ctx.session.web3, tx_dict, timeout=self._receipt_timeout)
        if result.get("status") != "success":
            raise DirectSubmissionError(
                result.get("error") or "Transaction failed",
                txn_hash=result.get("tx_hash"),
            )
        return result["tx_hash"]

    def execute(self, ctx: DispatchContext) -> Response:
        _log_state(ctx.call, DispatchState.DIRECT_SENDING, f"Submitting from {ctx.sender}")
        try:
            txn_hash = self._submit(ctx)
            return Response.succeeded(txn_hash)
        except DirectSubmissionError as e:
            _log_state(ctx.call, DispatchState.DONE, f"Direct submission failed: {e.message}", level=logging.WARNING)
            return Response.failed(e.message)
        except Exception as e:
            _log_state(ctx.call, DispatchState.DONE, f"Direct submission failed: {e}", level=logging.WARNING)
            return Response.failed(str(e))


class Dispatcher:
    """
    Orchestrates one request: fee quote, message, path selection

    Usage:
        dispatcher = Dispatcher(signer, FeeEstimator.for_session(session))
        response = dispatcher.send_request(session, call, gas_limit=250_000)
    """

    def __init__(
        self,
        signer: TypedDataSigner,
        fee_estimator: FeeEstimator,
        relayer: Optional[RelayerClient] = None,
        verifier: Optional[ResponseVerifier] = None,
        builder: Optional[TypedMessageBuilder] = None,
    ):
        self._signer = signer
        self._fee_estimator = fee_estimator
        self._relayer = relayer or RelayerClient()
        self._builder = builder or TypedMessageBuilder()
        self._relay_path = RelayPath(SignatureService(signer), self._relayer, verifier or ResponseVerifier())
        self._direct_path = DirectPath(signer)

    @property
    def builder(self) -> TypedMessageBuilder:
        return self._builder

    def build_context(
        self,
        session: Session,
        call: RouterCall,
        gas_limit: int,
        gas_price: Optional[int] = None,
    ) -> DispatchContext:
        """Quote the fee and build the Forwarder envelope (read-only)"""
        _log_state(call, DispatchState.BUILDING, f"gas_limit={gas_limit} chain={session.chain_id}")

        price = gas_price if gas_price is not None else session.web3.eth.gas_price
        if price < 0:
            raise ValueError(f"gas_price must be non-negative, got {price}")

        sender = self._signer.address
        fee_token = session.fee_token.address
        decimals = session.fee_token.functions.decimals().call()
        fee = self._fee_estimator.quote(session.chain_id, fee_token, decimals, gas_limit * price)
        _log_state(call, DispatchState.FEE_QUOTED, f"max_token_fee={fee.max_token_fee} gas_price={price}")

        nonce = session.router.functions.nonces(sender).call()
        domain = self._builder.get_domain(session.router_address, session.chain_id)
        message = self._builder.build_forwarder_message(call, sender, fee_token, fee.max_token_fee, nonce)
        typed_data = self._builder.build_typed_data(domain, message)
        _log_state(call, DispatchState.MESSAGE_BUILT, f"nonce={nonce}")

        return DispatchContext(
            session=session,
            call=call,
            sender=sender,
            gas_limit=gas_limit,
            gas_price=price,
            fee=fee,
            domain=domain,
            message=message,
            typed_data=typed_data,
        )

    def send_request(
        self,
        session: Optional[Session],
        call: RouterCall,
        gas_limit: int,
        gas_price: Optional[int] = None,
    ) -> Response:
        """
        Dispatch a router call

        Raises:
            InitializationError: If the session is missing or incomplete
            SignatureMismatchError: Relay path signature check failed
            RelayExecutionError: Relayer transport failure
        """
        if session is None or not session.is_ready:
            raise InitializationError.not_initialized()
        if gas_limit <= 0:
            raise ValueError(f"gas_limit must be positive, got {gas_limit}")

        with CorrelationContext(call.METHOD):
            ctx = self.build_context(session, call, gas_limit, gas_price)

            meta_enabled = session.router.functions.metaEnabled().call()
            path = self._relay_path if meta_enabled else self._direct_path
            response = path.execute(ctx)

            _log_state(call, DispatchState.DONE, f"path={path.name} {response}")
            return response

    def close(self, relayer: bool = True, fee_estimator: bool = True):
        """Close the relayer and fee strategies, skipping any flagged False"""
        if relayer:
            self._relayer.close()
        if fee_estimator:
            self._fee_estimator.close()
