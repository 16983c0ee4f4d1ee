"""
Settings loaded from the environment.

    PRIVACY_DISTRO_RPC_URL              Solana RPC endpoint
    PRIVACY_DISTRO_RELAY_URL            privacy pool relay base URL
    PRIVACY_DISTRO_SECRET_STORE         JSON file holding the deposit wallet keypair
    PRIVACY_DISTRO_FUNDER_SECRET        Base58 keypair of a headless signing wallet (optional)
    PRIVACY_DISTRO_FEE_BUFFER_LAMPORTS  extra lamports sent with every funding transfer
    PRIVACY_DISTRO_DEFAULT_NETWORK_FEE  fee assumed when the ledger cannot price a transfer
    PRIVACY_DISTRO_SETTLE_ATTEMPTS      deposit wallet balance checks after finality
    PRIVACY_DISTRO_SETTLE_INTERVAL      seconds between those checks
    PRIVACY_DISTRO_FINALITY_INTERVAL    seconds between finality polls
    PRIVACY_DISTRO_HTTP_TIMEOUT         socket timeout for ledger and relay clients
    PRIVACY_DISTRO_LOG_LEVEL            process log level
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from privacy_distro.core.models import FEE_BUFFER_LAMPORTS
from privacy_distro.core.node import PUBLIC_RPC_URL
from privacy_distro.orchestration.funding import DEFAULT_NETWORK_FEE_LAMPORTS
from privacy_distro.orchestration.retry import RetryPolicy
from privacy_distro.relay.client import DEFAULT_RELAY_URL

ENV_PREFIX = "PRIVACY_DISTRO_"


@dataclass
class Settings:
    rpc_url: str = PUBLIC_RPC_URL
    relay_url: str = DEFAULT_RELAY_URL
    secret_store_path: str = "~/.privacy-distro/wallet.json"
    funder_secret: str | None = None
    fee_buffer_lamports: int = FEE_BUFFER_LAMPORTS
    default_network_fee: int = DEFAULT_NETWORK_FEE_LAMPORTS
    settle_attempts: int = 10
    settle_interval: float = 1.5
    finality_interval: float = 2.0
    http_timeout: float = 30.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """
        Build settings from `PRIVACY_DISTRO_*` variables, falling back to defaults.

        Raises:
            ValueError: if a numeric variable cannot be parsed
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        def text(name: str, default: str) -> str:
            return env.get(ENV_PREFIX + name) or default

        def number(name: str, default, kind):
            raw = env.get(ENV_PREFIX + name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return kind(raw)
            except ValueError:
                raise ValueError(f"{ENV_PREFIX}{name} must be a {kind.__name__}, got {raw!r}") from None

        return cls(
            rpc_url=text("RPC_URL", defaults.rpc_url),
            relay_url=text("RELAY_URL", defaults.relay_url),
            secret_store_path=text("SECRET_STORE", defaults.secret_store_path),
            funder_secret=env.get(ENV_PREFIX + "FUNDER_SECRET") or None,
            fee_buffer_lamports=number("FEE_BUFFER_LAMPORTS", defaults.fee_buffer_lamports, int),
            default_network_fee=number("DEFAULT_NETWORK_FEE", defaults.default_network_fee, int),
            settle_attempts=number("SETTLE_ATTEMPTS", defaults.settle_attempts, int),
            settle_interval=number("SETTLE_INTERVAL", defaults.settle_interval, float),
            finality_interval=number("FINALITY_INTERVAL", defaults.finality_interval, float),
            http_timeout=number("HTTP_TIMEOUT", defaults.http_timeout, float),
            log_level=text("LOG_LEVEL", defaults.log_level).upper(),
        )

    @property
    def settle_policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.settle_attempts, interval=self.settle_interval)

    def __repr__(self) -> str:
        # funder_secret stays out of reprs and logs
        return (
            f"Settings(rpc_url={self.rpc_url!r}, relay_url={self.relay_url!r}, "
            f"secret_store_path={self.secret_store_path!r}, "
            f"funder={'set' if self.funder_secret else 'unset'})"
        )
