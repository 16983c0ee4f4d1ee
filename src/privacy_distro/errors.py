"""
Error taxonomy for the funding and payout engine.

Every failure surfaced to a caller is a PrivacyDistroError carrying one
human-readable message and a stable machine code. None of them are fatal to
the process; the HTTP layer renders them with `to_dict()`.

    ValidationError       bad input, nothing happened, retry after fixing it
    WalletUnavailable     no signing wallet could be discovered
    ConnectionRejected    the user declined or the wallet errored
    InsufficientFunds     not enough funds, carries the exact shortfall
    SubmissionExpired     transfer signed but not finalized in its window
    RelayNotYetSynced     relay cannot see the funding transfer yet
    RelayError            opaque relay failure, message passed verbatim
    LedgerError           ledger RPC failure
    PartialBatchFailure   payout batch aborted after some items completed
"""

from __future__ import annotations

from typing import Any


class PrivacyDistroError(Exception):
    """Base class for every domain error raised by privacy_distro."""

    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def details(self) -> dict[str, Any]:
        """Extra structured fields rendered alongside the message."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code, **self.details()}


class ValidationError(PrivacyDistroError):
    """Raised for bad caller input. No side effects have happened."""

    code = "validation_error"


class WalletUnavailable(PrivacyDistroError):
    """Raised when no signing wallet provider can be discovered."""

    code = "wallet_unavailable"

    def __init__(self, message: str = "Install the Phantom wallet extension to continue.") -> None:
        super().__init__(message)


class ConnectionRejected(PrivacyDistroError):
    """Raised when the user declines the connection or the provider errors."""

    code = "connection_rejected"


class InsufficientFunds(PrivacyDistroError):
    """
    Raised when a transfer or payout cannot be covered.

    `required_lamports` and `available_lamports` are known when the check was
    computed locally; a failure reported by the relay after the fact carries
    neither.
    """

    code = "insufficient_funds"

    def __init__(
        self,
        message: str,
        required_lamports: int | None = None,
        available_lamports: int | None = None,
    ) -> None:
        super().__init__(message)
        self.required_lamports = required_lamports
        self.available_lamports = available_lamports

    @property
    def shortfall_lamports(self) -> int | None:
        if self.required_lamports is None or self.available_lamports is None:
            return None
        return self.required_lamports - self.available_lamports

    def details(self) -> dict[str, Any]:
        return {
            "required_lamports": self.required_lamports,
            "available_lamports": self.available_lamports,
            "shortfall_lamports": self.shortfall_lamports,
        }


class SubmissionExpired(PrivacyDistroError):
    """
    Raised when a signed transfer did not finalize before its blockhash expired.

    The on-chain outcome is ambiguous. Callers must check the signature
    before trying again and must never resubmit automatically.
    """

    code = "submission_expired"

    def __init__(self, signature: str) -> None:
        super().__init__(
            f"Transfer {signature} was not finalized before its blockhash expired. "
            "Check the signature on-chain before retrying."
        )
        self.signature = signature

    def details(self) -> dict[str, Any]:
        return {"signature": self.signature}


class RelayNotYetSynced(PrivacyDistroError):
    """Raised when the relay cannot observe the funding transfer yet. Safe to retry."""

    code = "relay_not_synced"

    def __init__(
        self,
        message: str = "Relayer could not see the funding transfer yet. Wait a few seconds and try again.",
    ) -> None:
        super().__init__(message)


class RelayError(PrivacyDistroError):
    """Raised for any other relay failure. The relay's message is kept verbatim."""

    code = "relay_error"


class LedgerError(PrivacyDistroError):
    """Raised when the ledger RPC returns an error or an unusable response."""

    code = "ledger_error"


class PartialBatchFailure(PrivacyDistroError):
    """
    Raised when a payout batch aborts after at least one item completed.

    Completed items stay completed: `results` lists them in order, and
    `failed_index` / `failed_recipient` / `cause` describe the abort point.
    Items after the failed one were never attempted.
    """

    code = "partial_batch_failure"

    def __init__(
        self,
        results: list[Any],
        failed_index: int,
        failed_recipient: str,
        cause: PrivacyDistroError,
        pool_balance_lamports: int | None = None,
    ) -> None:
        completed = len(results)
        super().__init__(
            f"Payout {failed_index + 1} to {failed_recipient} failed after "
            f"{completed} completed payout{'' if completed == 1 else 's'}: {cause.message}"
        )
        self.results = results
        self.failed_index = failed_index
        self.failed_recipient = failed_recipient
        self.cause = cause
        self.pool_balance_lamports = pool_balance_lamports

    @property
    def completed_count(self) -> int:
        return len(self.results)

    def details(self) -> dict[str, Any]:
        return {
            "completed": self.completed_count,
            "failed_index": self.failed_index,
            "failed_recipient": self.failed_recipient,
            "cause": self.cause.to_dict(),
            "results": [r.model_dump() if hasattr(r, "model_dump") else r for r in self.results],
            "pool_balance_lamports": self.pool_balance_lamports,
        }
