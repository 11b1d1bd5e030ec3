"""
Test Errors Module

Tests for dex_relay.errors package.
"""

import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def test_error_code():
    """Test ErrorCode enum"""
    from dex_relay.errors import ErrorCode

    print("Testing ErrorCode...")

    assert ErrorCode.NOT_INITIALIZED.value == "1001"
    assert ErrorCode.PATH_NOT_FOUND.value == "2001"
    assert ErrorCode.SIGNATURE_MISMATCH.value == "3001"
    assert ErrorCode.RELAY_UNCONFIRMED.value == "4003"
    assert ErrorCode.DIRECT_SUBMISSION_FAILED.value == "5001"

    print("  ErrorCode: PASSED")


def test_relay_error():
    """Test RelayError base class"""
    from dex_relay.errors import RelayError, ErrorCode

    print("Testing RelayError...")

    error = RelayError(
        message="Test error",
        code=ErrorCode.RELAY_TRANSPORT_FAILED,
        recoverable=True,
    )

    # __str__ returns "[code] message" format
    assert "[4002] Test error" == str(error)
    assert error.code == ErrorCode.RELAY_TRANSPORT_FAILED
    assert error.should_retry
    assert error.details == {}

    print("  RelayError: PASSED")


def test_initialization_error():
    """Test InitializationError constructors"""
    from dex_relay.errors import InitializationError, ErrorCode

    print("Testing InitializationError...")

    error1 = InitializationError.not_initialized()
    assert error1.code == ErrorCode.NOT_INITIALIZED
    assert "not been initialized" in error1.message

    error2 = InitializationError.chain_not_supported(1)
    assert error2.code == ErrorCode.CHAIN_NOT_SUPPORTED
    assert error2.chain_id == 1
    assert error2.message == "Chain ID 1 not supported"
    assert not error2.recoverable

    print("  InitializationError: PASSED")


def test_path_and_pair_errors():
    """Test PathNotFoundError and PairNotFoundError"""
    from dex_relay.errors import PathNotFoundError, PairNotFoundError, ErrorCode

    print("Testing PathNotFoundError / PairNotFoundError...")

    error = PathNotFoundError.for_path(("0xA", "0xB", "0xC"))
    assert error.code == ErrorCode.PATH_NOT_FOUND
    assert error.path == ["0xA", "0xB", "0xC"]
    assert error.message == "Trade path does not exist."

    error = PairNotFoundError.for_tokens("0xA", "0xB")
    assert error.code == ErrorCode.PAIR_NOT_FOUND
    assert error.message == "Pair does not exist."
    assert error.details == {"token_a": "0xA", "token_b": "0xB"}

    print("  PathNotFoundError / PairNotFoundError: PASSED")


def test_signature_mismatch_error():
    """Test SignatureMismatchError"""
    from dex_relay.errors import SignatureMismatchError

    print("Testing SignatureMismatchError...")

    error = SignatureMismatchError.invalid_signature("0xExpected", "0xRecovered")
    assert error.expected == "0xExpected"
    assert error.recovered == "0xRecovered"
    assert not error.should_retry
    assert "0xExpected" in str(error)

    error = SignatureMismatchError.invalid_signature("0xExpected")
    assert "nothing" in error.message

    print("  SignatureMismatchError: PASSED")


def test_relay_errors():
    """Test relayer, integrity and direct submission errors"""
    from dex_relay.errors import (
        RelayExecutionError,
        RelayIntegrityError,
        DirectSubmissionError,
        ErrorCode,
    )

    print("Testing relay errors...")

    cause = ConnectionError("refused")
    error = RelayExecutionError.transport_failed("https://relayer", cause)
    assert error.code == ErrorCode.RELAY_TRANSPORT_FAILED
    assert error.original_error is cause
    assert error.endpoint == "https://relayer"

    error = RelayExecutionError.invalid_response("https://relayer", "body is not JSON")
    assert "body is not JSON" in error.message

    error = RelayIntegrityError.unconfirmed("0xabc", "transaction reverted")
    assert error.code == ErrorCode.RELAY_UNCONFIRMED
    assert error.txn_hash == "0xabc"
    assert "transaction reverted" in error.message

    error = DirectSubmissionError.reverted("0xdef")
    assert error.message == "Transaction reverted"
    assert error.txn_hash == "0xdef"

    print("  relay errors: PASSED")


def test_error_inheritance():
    """Test every error derives from RelayError"""
    from dex_relay.errors import (
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

    print("Testing error inheritance...")

    for cls in (
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
    ):
        assert issubclass(cls, RelayError)
        assert issubclass(cls, Exception)

    assert SignerError.not_configured().code.value == "3002"
    assert ConfigurationError.missing("RPC_URL").code.value == "9002"

    print("  error inheritance: PASSED")


def main():
    """Run all error tests"""
    print("=" * 60)
    print("DEX Relay Errors Tests")
    print("=" * 60)

    tests = [
        test_error_code,
        test_relay_error,
        test_initialization_error,
        test_path_and_pair_errors,
        test_signature_mismatch_error,
        test_relay_errors,
        test_error_inheritance,
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"  FAILED: {e}")
            failed += 1

    print("=" * 60)
    print(f"Results: {passed} passed, {failed} failed")
    print("=" * 60)

    return failed == 0


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
