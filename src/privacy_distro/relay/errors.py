"""
Classification of relay failures.

The relay reports failures as free-form messages and, when it can, a
structured code. This is the only place that turns them into domain errors;
replace the substring rules here if the relay grows better codes.
"""

from __future__ import annotations

import re

from privacy_distro.errors import (
    InsufficientFunds,
    PrivacyDistroError,
    RelayError,
    RelayNotYetSynced,
)

# Structured codes the relay may send alongside its message
NOT_SYNCED_CODES = frozenset({"relay_not_synced", "account_not_found"})
INSUFFICIENT_FUNDS_CODES = frozenset({"insufficient_funds", "insufficient_lamports"})

_NO_PRIOR_CREDIT = re.compile(r"Attempt to debit an account but found no record of a prior credit", re.I)
_INSUFFICIENT_LAMPORTS = re.compile(r"insufficient lamports", re.I)

INSUFFICIENT_FUNDS_MESSAGE = (
    "Not enough SOL was available for the transfer. Top up your wallet and try again."
)


def translate_relay_error(message: str, code: str | None = None) -> PrivacyDistroError:
    """
    Map a relay failure to a user-actionable error.

    Args:
        message: the relay's error message, kept verbatim for RelayError
        code: optional structured error code from the relay

    Returns:
        RelayNotYetSynced, InsufficientFunds or RelayError
    """
    if code:
        normalized = code.lower()
        if normalized in NOT_SYNCED_CODES:
            return RelayNotYetSynced()
        if normalized in INSUFFICIENT_FUNDS_CODES:
            return InsufficientFunds(INSUFFICIENT_FUNDS_MESSAGE)

    if _NO_PRIOR_CREDIT.search(message):
        return RelayNotYetSynced()
    if _INSUFFICIENT_LAMPORTS.search(message):
        return InsufficientFunds(INSUFFICIENT_FUNDS_MESSAGE)
    return RelayError(message)
