"""core module init"""
from privacy_distro.core.activity import ActivityLog
from privacy_distro.core.address import (
    AddressError,
    base58_decode,
    base58_encode,
    is_valid_address,
    shorten_address,
    to_address_string,
    validate_address,
)
from privacy_distro.core.amounts import format_short, format_sol, lamports_to_sol, to_lamports
from privacy_distro.core.identity import (
    FileSecretStore,
    MemorySecretStore,
    OwnerIdentity,
    SecretStore,
    load_or_create_identity,
)
from privacy_distro.core.models import (
    FEE_BUFFER_LAMPORTS,
    LAMPORTS_PER_SOL,
    FundingResult,
    LogEntry,
    PayoutReport,
    PendingTransfer,
    Recipient,
    WalletSessionState,
    WithdrawalResult,
)
from privacy_distro.core.node import SolanaNode
from privacy_distro.core.transfer import SystemTransfer, build_transfer_message
from privacy_distro.core.wallet import KeypairSigner, ProviderRegistry, SigningProvider, WalletSession

__all__ = [
    "ActivityLog",
    "AddressError",
    "FEE_BUFFER_LAMPORTS",
    "FileSecretStore",
    "FundingResult",
    "KeypairSigner",
    "LAMPORTS_PER_SOL",
    "LogEntry",
    "MemorySecretStore",
    "OwnerIdentity",
    "PayoutReport",
    "PendingTransfer",
    "ProviderRegistry",
    "Recipient",
    "SecretStore",
    "SigningProvider",
    "SolanaNode",
    "SystemTransfer",
    "WalletSession",
    "WalletSessionState",
    "WithdrawalResult",
    "base58_decode",
    "base58_encode",
    "build_transfer_message",
    "format_short",
    "format_sol",
    "is_valid_address",
    "lamports_to_sol",
    "load_or_create_identity",
    "shorten_address",
    "to_address_string",
    "to_lamports",
    "validate_address",
]
