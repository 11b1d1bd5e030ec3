"""
Test Config Module

Tests for environment-driven configuration.
"""

import sys
import logging
from pathlib import Path

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from dex_relay import config as config_module
from dex_relay.config import (
    FEE_POLICY_CHARGE,
    FEE_POLICY_WAIVE,
    FeeConfig,
    GasConfig,
    LoggingConfig,
    RelayerConfig,
    setup_logging,
)
from dex_relay.constants import Environment


def test_gas_defaults():
    """Default gas limits come from constants"""
    gas = GasConfig()

    assert gas.add_liquidity == 250_000
    assert gas.create_pair == 4_000_000
    assert gas.remove_liquidity == 250_000
    assert gas.swap == 200_000
    assert gas.hop_additional == 70_000


def test_swap_limit_scales_with_hops():
    gas = GasConfig(swap=200_000, hop_additional=70_000)

    assert gas.swap_limit(2) == 200_000
    assert gas.swap_limit(3) == 270_000
    assert gas.swap_limit(4) == 340_000


def test_gas_env_override(monkeypatch):
    monkeypatch.setenv("SWAP_GAS_LIMIT", "300000")
    monkeypatch.setenv("HOP_ADDITIONAL_GAS", "not-a-number")

    gas = GasConfig()
    assert gas.swap == 300_000
    # Invalid values fall back to the default
    assert gas.hop_additional == 70_000


def test_relayer_endpoints(monkeypatch):
    monkeypatch.delenv("RELAYER_ENDPOINT_56", raising=False)
    relayer = RelayerConfig()

    assert relayer.endpoint_for(Environment.PRODUCTION, 56) == "https://gtoken-geode.conveyor.finance/bsc"
    assert relayer.endpoint_for(Environment.STAGING, 137) == "https://gtoken-geode-staging.conveyor.finance/matic"
    assert relayer.endpoint_for(Environment.PRODUCTION, 1) == ""


def test_relayer_endpoint_override(monkeypatch):
    monkeypatch.setenv("RELAYER_ENDPOINT_97", "http://localhost:8080/bsc-testnet")

    relayer = RelayerConfig()
    assert relayer.endpoint_for(Environment.PRODUCTION, 97) == "http://localhost:8080/bsc-testnet"


def test_fee_policies(monkeypatch):
    monkeypatch.delenv("FEE_POLICY_56", raising=False)
    monkeypatch.setenv("FEE_POLICY_137", "WAIVE")
    monkeypatch.setenv("FEE_POLICY_1", "charge")
    monkeypatch.setenv("FEE_POLICY_10", "sometimes")

    fees = FeeConfig()
    assert fees.policy_for(56) == FEE_POLICY_CHARGE
    assert fees.policy_for(137) == FEE_POLICY_WAIVE
    assert fees.policy_for(1) == FEE_POLICY_CHARGE
    # Unknown values are ignored, unknown chains are waived
    assert fees.policy_for(10) == FEE_POLICY_WAIVE
    assert fees.policy_for(42161) == FEE_POLICY_WAIVE


def test_environment_from_string():
    assert Environment.from_string("PROD") == Environment.PRODUCTION
    assert Environment.from_string("staging") == Environment.STAGING

    with pytest.raises(ValueError):
        Environment.from_string("devnet")


def test_reload_config(monkeypatch):
    monkeypatch.setenv("RECEIPT_TIMEOUT", "15")

    reloaded = config_module.reload_config()
    try:
        assert reloaded.verification.receipt_timeout == 15.0
        assert config_module.get_config() is reloaded
    finally:
        monkeypatch.delenv("RECEIPT_TIMEOUT")
        config_module.reload_config()


def test_setup_logging_file(tmp_path):
    log_file = tmp_path / "logs" / "relay.log"
    logger = setup_logging(
        LoggingConfig(log_file=str(log_file), log_level="DEBUG", console_output=False),
        logger_name="dex_relay.test_config",
    )
    try:
        logger.debug("hello")
        for handler in logger.handlers:
            handler.flush()

        assert logger.level == logging.DEBUG
        assert log_file.exists()
        assert "hello" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)
