"""
Test Verification Module

Tests for on-chain confirmation of relayer responses.
"""

import sys
from pathlib import Path

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from dex_relay.config import VerificationConfig
from dex_relay.constants import ROUTER_ADDRESS
from dex_relay.modules.verification import META_STATUS_TOPIC, ResponseVerifier, decode_meta_status
from dex_relay.types import Response

from fakes import TOKEN_A, TOKEN_B, TOKEN_C, FakeWeb3, meta_status_log

TX_HASH = "0x" + "ab" * 32
USER = TOKEN_C


@pytest.fixture
def verifier():
    return ResponseVerifier(VerificationConfig(receipt_timeout=1.0, receipt_poll_latency=0.01))


def test_confirmed_success_passes_through(verifier):
    web3 = FakeWeb3()
    web3.add_receipt(TX_HASH, status=1, logs=[meta_status_log(USER)])
    response = Response.succeeded(TX_HASH)

    assert verifier.verify(web3, response, ROUTER_ADDRESS, USER) is response
    assert web3.eth.receipt_requests == [TX_HASH]


def test_failure_is_not_checked(verifier):
    web3 = FakeWeb3()
    response = Response.failed("Insufficient fee")

    assert verifier.verify(web3, response, ROUTER_ADDRESS, USER) is response
    assert web3.eth.receipt_requests == []


def test_missing_receipt_downgrades(verifier):
    response = Response.succeeded(TX_HASH, id=5)
    result = verifier.verify(FakeWeb3(), response, ROUTER_ADDRESS, USER)

    assert not result.success
    assert result.txn_hash == ""
    assert result.id == 5
    assert "no receipt" in result.error_message


def test_reverted_transaction_downgrades(verifier):
    web3 = FakeWeb3()
    web3.add_receipt(TX_HASH, status=0, logs=[meta_status_log(USER)])

    result = verifier.verify(web3, Response.succeeded(TX_HASH), ROUTER_ADDRESS, USER)
    assert not result.success
    assert "reverted" in result.error_message


def test_missing_event_downgrades(verifier):
    web3 = FakeWeb3()
    # MetaStatus from another contract does not count
    web3.add_receipt(TX_HASH, status=1, logs=[meta_status_log(USER, address=TOKEN_A)])

    result = verifier.verify(web3, Response.succeeded(TX_HASH), ROUTER_ADDRESS, USER)
    assert not result.success
    assert "MetaStatus" in result.error_message


def test_failed_meta_status_downgrades(verifier):
    web3 = FakeWeb3()
    web3.add_receipt(
        TX_HASH, status=1,
        logs=[meta_status_log(USER, success=False, error="UniswapV2Router: EXPIRED")],
    )

    result = verifier.verify(web3, Response.succeeded(TX_HASH), ROUTER_ADDRESS, USER)
    assert not result.success
    assert "EXPIRED" in result.error_message


def test_meta_status_for_other_sender_downgrades(verifier):
    web3 = FakeWeb3()
    web3.add_receipt(TX_HASH, status=1, logs=[meta_status_log(TOKEN_B)])

    result = verifier.verify(web3, Response.succeeded(TX_HASH), ROUTER_ADDRESS, USER)
    assert not result.success
    assert result.txn_hash == ""
    assert f"no MetaStatus event for {USER}" in result.error_message


def test_own_meta_status_found_among_others(verifier):
    web3 = FakeWeb3()
    web3.add_receipt(TX_HASH, status=1, logs=[meta_status_log(USER), meta_status_log(TOKEN_B, success=False)])
    response = Response.succeeded(TX_HASH)

    # Sender comparison ignores address case
    assert verifier.verify(web3, response, ROUTER_ADDRESS, "0x" + USER[2:].upper()) is response


def test_malformed_meta_status_log_downgrades(verifier):
    web3 = FakeWeb3()
    web3.add_receipt(
        TX_HASH, status=1,
        logs=[{"address": ROUTER_ADDRESS, "topics": [META_STATUS_TOPIC], "data": b"\x01"}],
    )

    result = verifier.verify(web3, Response.succeeded(TX_HASH), ROUTER_ADDRESS, USER)
    assert not result.success
    assert "malformed MetaStatus" in result.error_message


def test_decode_meta_status():
    receipt = {
        "logs": [
            {"address": TOKEN_A, "topics": [], "data": b""},
            meta_status_log(USER, success=True),
        ]
    }

    events = decode_meta_status(receipt, ROUTER_ADDRESS)
    assert len(events) == 1
    sender, success, error = events[0]
    assert sender.lower() == USER
    assert success is True
    assert error == ""


def test_decode_meta_status_rejects_bad_data():
    receipt = {"logs": [{"address": ROUTER_ADDRESS, "topics": [META_STATUS_TOPIC], "data": b"\x00" * 5}]}

    with pytest.raises(ValueError):
        decode_meta_status(receipt, ROUTER_ADDRESS)
