"""
Relay client settings

Every value is read from the process environment, after a ``.env`` file next
to the package (if any) has been loaded. Settings are grouped in one dataclass
per concern and collected in the module-level ``config``.
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, TypeVar

from dotenv import load_dotenv

from . import constants

T = TypeVar("T")

_ENV_FILE = Path(__file__).resolve().parent.parent / ".env"


def _load_env_file():
    if _ENV_FILE.exists():
        load_dotenv(_ENV_FILE)


_load_env_file()


def _get_env(key: str, default: Optional[str] = "") -> Optional[str]:
    return os.environ.get(key, default)


def _parse_env(key: str, default: T, parse: Callable[[str], T]) -> T:
    raw = os.environ.get(key)
    if raw is None:
        return default
    try:
        return parse(raw)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"{key}={raw!r} is not a valid {parse.__name__}, falling back to {default}"
        )
        return default


def _get_env_float(key: str, default: float) -> float:
    return _parse_env(key, default, float)


def _get_env_int(key: str, default: int) -> int:
    return _parse_env(key, default, int)


def _get_env_bool(key: str, default: bool) -> bool:
    raw = os.environ.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _get_env_by_chain(prefix: str) -> Dict[int, str]:
    """Collect PREFIX_<CHAIN_ID> variables into {chain_id: value}"""
    values: Dict[int, str] = {}
    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue
        suffix = key[len(prefix):]
        if suffix.isdigit() and value:
            values[int(suffix)] = value
    return values


@dataclass
class NetworkConfig:
    """Provider and deployment configuration"""
    rpc_url: str = field(default_factory=lambda: _get_env("RPC_URL", ""))
    rpc_timeout: float = field(default_factory=lambda: _get_env_float("RPC_TIMEOUT", 30.0))
    environment: str = field(default_factory=lambda: _get_env("RELAY_ENV", "production"))
    router_address: str = field(default_factory=lambda: _get_env("ROUTER_ADDRESS", constants.ROUTER_ADDRESS))
    factory_address: str = field(default_factory=lambda: _get_env("FACTORY_ADDRESS", constants.FACTORY_ADDRESS))


@dataclass
class RelayerConfig:
    """Relayer HTTP configuration"""
    timeout: float = field(default_factory=lambda: _get_env_float("RELAYER_TIMEOUT", 30.0))
    # RELAYER_ENDPOINT_<CHAIN_ID> replaces the built-in endpoint for that chain
    endpoint_overrides: Dict[int, str] = field(default_factory=lambda: _get_env_by_chain("RELAYER_ENDPOINT_"))

    def endpoint_for(self, env: constants.Environment, chain_id: int) -> str:
        """Resolve the relayer endpoint, empty string if the chain is unsupported"""
        if chain_id in self.endpoint_overrides:
            return self.endpoint_overrides[chain_id]
        return constants.get_relayer_endpoint(env, chain_id)


@dataclass
class GasConfig:
    """Default gas limits for operations called without an explicit limit"""
    add_liquidity: int = field(default_factory=lambda: _get_env_int("ADD_LIQUIDITY_GAS_LIMIT", constants.ADD_LIQUIDITY_GAS_LIMIT))
    create_pair: int = field(default_factory=lambda: _get_env_int("CREATE_PAIR_GAS_LIMIT", constants.CREATE_PAIR_GAS_LIMIT))
    remove_liquidity: int = field(default_factory=lambda: _get_env_int("REMOVE_LIQUIDITY_GAS_LIMIT", constants.REMOVE_LIQUIDITY_GAS_LIMIT))
    swap: int = field(default_factory=lambda: _get_env_int("SWAP_GAS_LIMIT", constants.SWAP_GAS_LIMIT))
    hop_additional: int = field(default_factory=lambda: _get_env_int("HOP_ADDITIONAL_GAS", constants.HOP_ADDITIONAL_GAS))

    def swap_limit(self, path_length: int) -> int:
        """Swap gas limit scaled by hop count"""
        return self.swap + self.hop_additional * max(path_length - 2, 0)


FEE_POLICY_CHARGE = "charge"
FEE_POLICY_WAIVE = "waive"

# Chains charged by default; every other chain is waived
_DEFAULT_FEE_POLICIES: Dict[int, str] = {
    constants.ChainId.BSC: FEE_POLICY_CHARGE,
    constants.ChainId.MATIC: FEE_POLICY_CHARGE,
}


def _load_fee_policies() -> Dict[int, str]:
    policies = {int(k): v for k, v in _DEFAULT_FEE_POLICIES.items()}
    for chain_id, value in _get_env_by_chain("FEE_POLICY_").items():
        value = value.lower()
        if value not in (FEE_POLICY_CHARGE, FEE_POLICY_WAIVE):
            logging.getLogger(__name__).warning(
                f"Invalid fee policy for chain {chain_id}='{value}', keeping {policies.get(chain_id, FEE_POLICY_WAIVE)}"
            )
            continue
        policies[chain_id] = value
    return policies


@dataclass
class FeeConfig:
    """Fee token quoting configuration"""
    price_api_url: str = field(default_factory=lambda: _get_env("PRICE_API_URL", "https://api.coingecko.com/api/v3"))
    price_api_timeout: float = field(default_factory=lambda: _get_env_float("PRICE_API_TIMEOUT", 10.0))
    policies: Dict[int, str] = field(default_factory=_load_fee_policies)

    def policy_for(self, chain_id: int) -> str:
        """Fee policy for a chain ("charge" or "waive")"""
        return self.policies.get(chain_id, FEE_POLICY_WAIVE)


@dataclass
class VerificationConfig:
    """On-chain confirmation of relayed transactions"""
    receipt_timeout: float = field(default_factory=lambda: _get_env_float("RECEIPT_TIMEOUT", 120.0))
    receipt_poll_latency: float = field(default_factory=lambda: _get_env_float("RECEIPT_POLL_LATENCY", 1.0))


DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


@dataclass
class LoggingConfig:
    """
    Log output settings

    Environment variables:
        LOG_FILE          rotating log file, empty for none
        LOG_LEVEL         level name, INFO by default
        LOG_FORMAT        logging.Formatter format string
        LOG_CONSOLE       also log to stderr (true/false)
        LOG_MAX_BYTES     rotation size, 10 MiB by default
        LOG_BACKUP_COUNT  rotated files kept, 5 by default
    """
    log_file: str = field(default_factory=lambda: _get_env("LOG_FILE", ""))
    log_level: str = field(default_factory=lambda: _get_env("LOG_LEVEL", "INFO"))
    log_format: str = field(default_factory=lambda: _get_env("LOG_FORMAT", DEFAULT_LOG_FORMAT))
    console_output: bool = field(default_factory=lambda: _get_env_bool("LOG_CONSOLE", True))
    max_bytes: int = field(default_factory=lambda: _get_env_int("LOG_MAX_BYTES", 10 * 1024 * 1024))
    backup_count: int = field(default_factory=lambda: _get_env_int("LOG_BACKUP_COUNT", 5))

    @property
    def level(self) -> int:
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO


@dataclass
class Config:
    """
    All relay client settings

    Usage:
        from dex_relay.config import config

        endpoint = config.relayer.endpoint_for(Environment.PRODUCTION, 56)
        gas_limit = config.gas.swap_limit(3)
    """
    network: NetworkConfig = field(default_factory=NetworkConfig)
    relayer: RelayerConfig = field(default_factory=RelayerConfig)
    gas: GasConfig = field(default_factory=GasConfig)
    fees: FeeConfig = field(default_factory=FeeConfig)
    verification: VerificationConfig = field(default_factory=VerificationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def reload(cls) -> "Config":
        _load_env_file()
        return cls()


config = Config()


def get_config() -> Config:
    return config


def reload_config() -> Config:
    """Re-read the environment into a new global config"""
    global config
    config = Config.reload()
    return config


def _build_handlers(log_config: LoggingConfig) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []

    if log_config.log_file:
        from logging.handlers import RotatingFileHandler

        Path(log_config.log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            log_config.log_file,
            maxBytes=log_config.max_bytes,
            backupCount=log_config.backup_count,
            encoding="utf-8",
        ))

    if log_config.console_output:
        handlers.append(logging.StreamHandler())

    formatter = logging.Formatter(log_config.log_format)
    for handler in handlers:
        handler.setLevel(log_config.level)
        handler.setFormatter(formatter)
    return handlers


def setup_logging(
    log_config: Optional[LoggingConfig] = None,
    logger_name: str = "dex_relay",
) -> logging.Logger:
    """
    Attach file and/or console handlers to the package logger

    Existing handlers on the logger are closed and replaced, so calling this
    again reconfigures rather than duplicates output.

    Args:
        log_config: Settings to apply, the global ``config.logging`` if None
        logger_name: Logger to configure

    Returns:
        The configured logger
    """
    log_config = log_config or config.logging

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_config.level)

    for old in list(logger.handlers):
        old.close()
        logger.removeHandler(old)
    for handler in _build_handlers(log_config):
        logger.addHandler(handler)

    if log_config.log_file:
        logger.info(f"Logging to {log_config.log_file} at {log_config.log_level}")
    return logger


def enable_file_logging(
    log_file: Optional[str] = None,
    level: str = "INFO",
    console: bool = True,
) -> logging.Logger:
    """
    Log to a file, by default ``dex_relay/log/dex_relay_<UTC timestamp>.log``
    """
    if log_file is None:
        log_file = config.logging.log_file or _default_log_path()

    return setup_logging(LoggingConfig(log_file=log_file, log_level=level, console_output=console))


def _default_log_path() -> str:
    from datetime import datetime, timezone

    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return str(Path(__file__).parent / "log" / f"dex_relay_{stamp}.log")
