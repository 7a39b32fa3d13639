"""Environment-driven settings for wasmledger."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

Network = Literal["mainnet", "testnet"]

NETWORKS: tuple[str, ...] = ("mainnet", "testnet")

DEFAULT_MAINNET_API_URL = "https://api.xion-mainnet-1.burnt.com"
DEFAULT_TESTNET_API_URL = "https://api.xion-testnet-2.burnt.com"


@dataclass(frozen=True)
class ChainEndpoint:
    """One network's REST base URL. Never mixed with another network in a fetch."""
    network: str
    base_url: str


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _env_log_level(name: str, default: str) -> str:
    value = os.getenv(name, default).strip().upper()
    # getLevelName maps known names to ints and echoes "Level X" for anything else
    if not value or not isinstance(logging.getLevelName(value), int):
        return default
    return value


@dataclass(frozen=True)
class Settings:
    mainnet_api_url: str
    testnet_api_url: str
    registry_path: str
    http_timeout: float
    proposal_status: str
    log_level: str

    def endpoint(self, network: str) -> ChainEndpoint:
        if network == "mainnet":
            return ChainEndpoint(network="mainnet", base_url=self.mainnet_api_url.rstrip("/"))
        if network == "testnet":
            return ChainEndpoint(network="testnet", base_url=self.testnet_api_url.rstrip("/"))
        raise ValueError(f"Unknown network '{network}' (expected one of: {', '.join(NETWORKS)})")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        mainnet_api_url=os.getenv("WASMLEDGER_MAINNET_API_URL", DEFAULT_MAINNET_API_URL),
        testnet_api_url=os.getenv("WASMLEDGER_TESTNET_API_URL", DEFAULT_TESTNET_API_URL),
        registry_path=os.getenv("WASMLEDGER_REGISTRY_PATH", "contracts.json"),
        http_timeout=_env_float("WASMLEDGER_HTTP_TIMEOUT", 30.0),
        proposal_status=os.getenv("WASMLEDGER_PROPOSAL_STATUS", "0").strip() or "0",
        log_level=_env_log_level("LOG_LEVEL", "WARNING"),
    )
