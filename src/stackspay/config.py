"""StacksPay client configuration.

Constants mirror the deployed contract and the Hiro API; `ClientConfig` holds
the per-deployment settings and loads them from the environment or YAML.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

# Units
MICRO_STX_PER_STX = 1_000_000

# Chain timing
BLOCK_TIME_MINUTES = 10

# Client behaviour
REFRESH_DELAY_SECONDS = 15.0
DEFAULT_REQUEST_TIMEOUT = 30.0
ADVANCE_LIMIT_DIVISOR = 2  # advances are capped at half of one period's salary

# Clarity integer bounds
U128_MAX = 2**128 - 1
I128_MIN = -(2**127)
I128_MAX = 2**127 - 1

# Address versions (c32check)
ADDRESS_VERSION_MAINNET_SINGLESIG = 22
ADDRESS_VERSION_MAINNET_MULTISIG = 20
ADDRESS_VERSION_TESTNET_SINGLESIG = 26
ADDRESS_VERSION_TESTNET_MULTISIG = 21
ADDRESS_VERSIONS = frozenset({
    ADDRESS_VERSION_MAINNET_SINGLESIG,
    ADDRESS_VERSION_MAINNET_MULTISIG,
    ADDRESS_VERSION_TESTNET_SINGLESIG,
    ADDRESS_VERSION_TESTNET_MULTISIG,
})

# Networks
NETWORK_TESTNET = "testnet"
NETWORK_MAINNET = "mainnet"
NETWORKS = (NETWORK_TESTNET, NETWORK_MAINNET)
DEFAULT_NETWORK = NETWORK_TESTNET
API_URLS = {
    NETWORK_TESTNET: "https://api.testnet.hiro.so",
    NETWORK_MAINNET: "https://api.hiro.so",
}

# Contract
DEFAULT_CONTRACT_ADDRESS = "ST1M9HB8FHTGZ0TA84TNW6MP9H8P39AYK13H3C9J1"
DEFAULT_CONTRACT_NAME = "stackspay"
MAX_CONTRACT_NAME_LENGTH = 128

# Local storage keys
STORAGE_KEY_NETWORK = "stackspay_network"
STORAGE_KEY_COMPANIES = "stackspay_companies"
STORAGE_KEY_EMPLOYEES = "stackspay_employees_{company_id}"

FAUCET_URL = "https://explorer.hiro.so/sandbox/faucet?chain=testnet"

_TRUTHY = ("true", "1", "yes")


def _truthy(value: object) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").lower() in _TRUTHY


@dataclass
class ClientConfig:
    """Settings for one contract deployment on one network."""

    contract_address: str = DEFAULT_CONTRACT_ADDRESS
    contract_name: str = DEFAULT_CONTRACT_NAME
    network: str = DEFAULT_NETWORK
    api_url: Optional[str] = None
    production: bool = False
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    refresh_delay: float = REFRESH_DELAY_SECONDS

    def __post_init__(self) -> None:
        if self.network not in NETWORKS:
            raise ConfigError(f"unknown network {self.network!r}")
        if not self.contract_name or len(self.contract_name) > MAX_CONTRACT_NAME_LENGTH:
            raise ConfigError(f"invalid contract name {self.contract_name!r}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientConfig":
        """Load configuration from environment variables."""
        env = os.environ if environ is None else environ
        try:
            return cls(
                contract_address=env.get("STACKSPAY_CONTRACT_ADDRESS", DEFAULT_CONTRACT_ADDRESS),
                contract_name=env.get("STACKSPAY_CONTRACT_NAME", DEFAULT_CONTRACT_NAME),
                network=env.get("STACKSPAY_NETWORK", DEFAULT_NETWORK).lower(),
                api_url=env.get("STACKSPAY_API_URL") or None,
                production=_truthy(env.get("STACKSPAY_PRODUCTION")),
                request_timeout=float(env.get("STACKSPAY_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)),
                refresh_delay=float(env.get("STACKSPAY_REFRESH_DELAY", REFRESH_DELAY_SECONDS)),
            )
        except ValueError as e:
            raise ConfigError(f"invalid numeric setting: {e}") from e

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ClientConfig":
        """Load configuration from a YAML mapping; unknown keys are rejected."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"cannot load config {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"config {path} must be a mapping")

        known = {
            "contract_address", "contract_name", "network", "api_url",
            "production", "request_timeout", "refresh_delay",
        }
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"unknown config keys: {', '.join(sorted(unknown))}")
        if "production" in data:
            data["production"] = _truthy(data["production"])
        return cls(**data)

    @property
    def contract_id(self) -> str:
        return f"{self.contract_address}.{self.contract_name}"

    def resolved_api_url(self) -> str:
        """Return the chain API base URL.

        A missing URL is fatal in production; elsewhere it falls back to the
        network default with a warning.
        """
        if self.api_url:
            return self.api_url.rstrip("/")
        if self.production:
            raise ConfigError("STACKSPAY_API_URL must be set in production")
        fallback = API_URLS[self.network]
        logger.warning(f"No API URL configured, falling back to {fallback}")
        return fallback
