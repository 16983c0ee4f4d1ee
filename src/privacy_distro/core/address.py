"""
Solana address utilities: Base58 encoding, validation, canonical string form.

A Solana address is the Base58 encoding of a 32-byte Ed25519 public key.
Wallet providers hand back either plain strings or key objects exposing
`to_base58()`; everything in this package compares addresses as strings.
"""

from __future__ import annotations

from typing import Any

# Base58 alphabet (same as Bitcoin)
_ALPHABET = b"123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_ALPHABET_MAP = {char: i for i, char in enumerate(_ALPHABET)}

PUBLIC_KEY_LENGTH = 32


class AddressError(Exception):
    """Raised for invalid Solana addresses."""

    pass


def validate_address(address: str) -> bool:
    """
    Validate a Solana address (Base58 alphabet + 32-byte length).

    Args:
        address: Base58 encoded public key

    Returns:
        True if valid

    Raises:
        AddressError: if the address is malformed
    """
    if not address:
        raise AddressError("Address is empty")
    try:
        raw = base58_decode(address)
    except (KeyError, UnicodeEncodeError) as e:
        raise AddressError(f"Invalid Base58 encoding: {e}") from None

    if len(raw) != PUBLIC_KEY_LENGTH:
        raise AddressError(
            f"Address decodes to {len(raw)} bytes (expected {PUBLIC_KEY_LENGTH})"
        )
    return True


def is_valid_address(address: str) -> bool:
    """
    Check if a Solana address is valid without raising exceptions.

    Returns:
        bool: True if valid, False otherwise
    """
    try:
        return validate_address(address)
    except AddressError:
        return False


def to_address_string(value: Any) -> str | None:
    """
    Canonicalize whatever a wallet provider returns into an address string.

    Accepts a string, raw public key bytes, or a key object with `to_base58()`.
    Returns None for empty or unrecognized values.
    """
    if not value:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)) and len(value) == PUBLIC_KEY_LENGTH:
        return base58_encode(bytes(value))
    to_base58 = getattr(value, "to_base58", None)
    if callable(to_base58):
        return to_base58()
    return None


def shorten_address(value: str) -> str:
    """Return `abcd…wxyz` for display; short values are returned unchanged."""
    if len(value) <= 8:
        return value
    return f"{value[:4]}…{value[-4:]}"


# ------------------------------------------------------------------
# Base58
# ------------------------------------------------------------------


def base58_decode(s: str) -> bytes:
    """Decode a Base58-encoded string to bytes."""
    n = 0
    for char in s.encode("ascii"):
        n = n * 58 + _ALPHABET_MAP[char]

    if n == 0:
        result = b""
    else:
        byte_length = (n.bit_length() + 7) // 8
        result = n.to_bytes(byte_length, "big")

    # Each leading '1' in Base58 is a 0x00 byte
    pad_size = 0
    for char in s.encode("ascii"):
        if char == _ALPHABET[0]:
            pad_size += 1
        else:
            break

    return b"\x00" * pad_size + result


def base58_encode(data: bytes) -> str:
    """Encode bytes to a Base58 string."""
    n = int.from_bytes(data, "big")
    result = []
    while n > 0:
        n, remainder = divmod(n, 58)
        result.append(_ALPHABET[remainder:remainder + 1])
    result.reverse()

    pad_size = 0
    for byte in data:
        if byte == 0:
            pad_size += 1
        else:
            break

    return (b"1" * pad_size + b"".join(result)).decode("ascii")
