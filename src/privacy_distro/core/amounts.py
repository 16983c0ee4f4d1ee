"""Conversions between lamports and SOL display amounts."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from privacy_distro.core.models import LAMPORTS_PER_SOL
from privacy_distro.errors import ValidationError

_LAMPORTS = Decimal(LAMPORTS_PER_SOL)


def to_lamports(amount: int | float | str | Decimal, label: str = "Amount") -> int:
    """
    Convert a SOL amount into lamports, rounding half-up to the nearest lamport.

    Args:
        amount: SOL amount as a number, numeric string or Decimal
        label: name used in the error message

    Returns:
        int: positive lamport amount

    Raises:
        ValidationError: if the amount is not a finite number above zero
    """
    if isinstance(amount, bool):
        raise ValidationError(f"{label} must be a number.")
    try:
        d = Decimal(str(amount).strip())
    except InvalidOperation:
        raise ValidationError(f"{label} must be a number.") from None
    if not d.is_finite():
        raise ValidationError(f"{label} must be a finite number.")
    if d <= 0:
        raise ValidationError(f"{label} must be greater than zero.")

    lamports = decimal_to_lamports(d)
    if lamports <= 0:
        raise ValidationError(f"{label} is smaller than one lamport.")
    return lamports


def decimal_to_lamports(amount: Decimal) -> int:
    """Round a SOL Decimal half-up to lamports, without any range checks."""
    return int((amount * _LAMPORTS).to_integral_value(rounding=ROUND_HALF_UP))


def lamports_to_sol(lamports: int) -> float:
    return lamports / LAMPORTS_PER_SOL


def format_short(value: float) -> str:
    """`1234.5` -> `1,234.5000`"""
    return f"{value:,.4f}"


def format_sol(lamports: int) -> str:
    """`1_500_000_000` -> `1.5000 SOL`"""
    return f"{format_short(lamports_to_sol(lamports))} SOL"
