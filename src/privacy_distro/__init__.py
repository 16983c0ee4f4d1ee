"""
privacy-distro: fund a disposable deposit wallet, relay it into a privacy pool,
and pay pooled funds out to a list of recipients in one batch.

Usage:
    from privacy_distro import PrivateCashService, Settings

    service = PrivateCashService.from_settings(Settings.from_env())
    result = await service.fund("1.5")
"""

from privacy_distro.config import Settings
from privacy_distro.core.identity import OwnerIdentity
from privacy_distro.core.node import SolanaNode
from privacy_distro.core.wallet import WalletSession
from privacy_distro.service import PrivateCashService

__version__ = "0.1.0"
__all__ = [
    "OwnerIdentity",
    "PrivateCashService",
    "Settings",
    "SolanaNode",
    "WalletSession",
]
