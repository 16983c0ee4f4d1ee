"""
Funding transfer construction for Solana.

Builds the legacy wire format of a single System Program transfer:

    Message:
      header            [num_required_signatures=1, readonly_signed=0, readonly_unsigned=1]
      account keys      [from (signer, writable), to (writable), system program]
      recent blockhash  32 bytes
      instructions      [program=2, accounts=[0, 1], data=u32 LE 2 || u64 LE lamports]

    Transaction:
      signatures        shortvec count + 64-byte Ed25519 signatures
      message           as above

The message is what the wallet signs, and what the ledger prices in
`getFeeForMessage`.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from privacy_distro.core.address import AddressError, base58_decode, validate_address

SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"

# SystemInstruction::Transfer
_TRANSFER_INSTRUCTION_INDEX = 2
_SIGNATURE_LENGTH = 64


class TransferBuildError(Exception):
    pass


@dataclass(frozen=True)
class SystemTransfer:
    """A lamport transfer between two accounts, valid for one recent blockhash."""
    from_address: str
    to_address: str
    lamports: int
    recent_blockhash: str

    def message_bytes(self) -> bytes:
        """Serialize the message to be signed."""
        return build_transfer_message(
            self.from_address, self.to_address, self.lamports, self.recent_blockhash
        )


def build_transfer_message(
    from_address: str,
    to_address: str,
    lamports: int,
    recent_blockhash: str,
) -> bytes:
    """
    Serialize a legacy transfer message.

    Raises:
        TransferBuildError: if an address is malformed, the accounts are the
            same, or the amount does not fit a u64.
    """
    if lamports <= 0 or lamports >= 2**64:
        raise TransferBuildError(f"Transfer amount out of range: {lamports}")
    if from_address == to_address:
        raise TransferBuildError("Sender and destination must differ.")
    for address in (from_address, to_address, recent_blockhash):
        try:
            validate_address(address)
        except AddressError as e:
            raise TransferBuildError(f"Invalid key {address!r}: {e}") from None

    header = bytes([1, 0, 1])
    keys = [base58_decode(a) for a in (from_address, to_address, SYSTEM_PROGRAM_ID)]
    data = struct.pack("<IQ", _TRANSFER_INSTRUCTION_INDEX, lamports)

    instruction = (
        bytes([2])                      # program id index
        + shortvec(2) + bytes([0, 1])   # account indexes
        + shortvec(len(data)) + data
    )

    return (
        header
        + shortvec(len(keys)) + b"".join(keys)
        + base58_decode(recent_blockhash)
        + shortvec(1) + instruction
    )


def serialize_transaction(signatures: list[bytes], message: bytes) -> bytes:
    """Assemble the signed wire transaction."""
    for sig in signatures:
        if len(sig) != _SIGNATURE_LENGTH:
            raise TransferBuildError(f"Signature must be {_SIGNATURE_LENGTH} bytes, got {len(sig)}")
    return shortvec(len(signatures)) + b"".join(signatures) + message


def shortvec(n: int) -> bytes:
    """Encode a length as Solana compact-u16 (7 bits per byte, little-endian)."""
    result: list[int] = []
    while n >= 0x80:
        result.append((n & 0x7F) | 0x80)
        n >>= 7
    result.append(n)
    return bytes(result)
