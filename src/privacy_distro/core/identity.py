"""
Owner identity: the disposable custodial wallet that funds the privacy pool.

The identity is an Ed25519 keypair. Its secret is the Base58 encoding of the
64-byte keypair (32-byte seed followed by the 32-byte public key), the same
format wallet tooling exports. The secret is only ever handed to the relay;
it is never logged and never rendered.

Persistence is delegated to a SecretStore. The secret and the address are
always generated together and always saved together.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from ecdsa import Ed25519, SigningKey

from privacy_distro.core.address import base58_decode, base58_encode

logger = logging.getLogger("privacy_distro.identity")

SEED_LENGTH = 32
KEYPAIR_LENGTH = 64


class IdentityError(Exception):
    """Raised when a stored secret cannot be turned back into an identity."""
    pass


def keypair_from_seed(seed: bytes) -> tuple[SigningKey, bytes]:
    """Return the signing key and the 32-byte public key for an Ed25519 seed."""
    signing_key = SigningKey.from_string(seed, curve=Ed25519)
    public_key = signing_key.get_verifying_key().to_string()
    return signing_key, public_key


@dataclass(frozen=True)
class OwnerIdentity:
    """
    The owner keypair of the deposit wallet.

    SECURITY: `secret` controls the deposit wallet and the pooled funds.
              It is excluded from repr and must never reach a log line.
    """
    address: str
    secret: str = field(repr=False)

    @classmethod
    def generate(cls) -> OwnerIdentity:
        """Create a brand-new keypair."""
        signing_key = SigningKey.generate(curve=Ed25519)
        seed = signing_key.to_string()
        public_key = signing_key.get_verifying_key().to_string()
        return cls(
            address=base58_encode(public_key),
            secret=base58_encode(seed + public_key),
        )

    @classmethod
    def from_secret(cls, secret: str) -> OwnerIdentity:
        """
        Rebuild an identity from its Base58 keypair secret.

        Raises:
            IdentityError: if the secret is malformed or its public half does
                not match the key derived from its seed.
        """
        try:
            raw = base58_decode(secret)
        except (KeyError, UnicodeEncodeError):
            raise IdentityError("Owner secret is not valid Base58.") from None
        if len(raw) != KEYPAIR_LENGTH:
            raise IdentityError(f"Owner secret decodes to {len(raw)} bytes (expected {KEYPAIR_LENGTH}).")

        _, public_key = keypair_from_seed(raw[:SEED_LENGTH])
        if public_key != raw[SEED_LENGTH:]:
            raise IdentityError("Owner secret public key does not match its seed.")
        return cls(address=base58_encode(public_key), secret=secret)

    def signing_key(self) -> SigningKey:
        return SigningKey.from_string(base58_decode(self.secret)[:SEED_LENGTH], curve=Ed25519)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-safe dict (for secure storage only)."""
        return {"secret": self.secret, "address": self.address}


# ------------------------------------------------------------------
# Secret stores
# ------------------------------------------------------------------


class SecretStore(Protocol):
    """Persists the owner identity. Implementations save both halves atomically."""

    def load(self) -> OwnerIdentity | None: ...

    def save(self, identity: OwnerIdentity) -> None: ...


class MemorySecretStore:
    """Keeps the identity for the life of the process only."""

    def __init__(self, identity: OwnerIdentity | None = None) -> None:
        self._identity = identity

    def load(self) -> OwnerIdentity | None:
        return self._identity

    def save(self, identity: OwnerIdentity) -> None:
        self._identity = identity


class FileSecretStore:
    """
    Stores the identity as `{"secret": ..., "address": ...}` in a JSON file.

    A file that cannot be parsed, is missing either half, or holds a secret
    that does not match its address is discarded so that a fresh identity
    gets generated.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def load(self) -> OwnerIdentity | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            secret = data.get("secret")
            address = data.get("address")
            if not secret or not address:
                raise IdentityError("Stored wallet is missing its secret or address.")
            identity = OwnerIdentity.from_secret(secret)
            if identity.address != address:
                raise IdentityError("Stored wallet address does not match its secret.")
            return identity
        except (ValueError, AttributeError, IdentityError) as e:
            logger.warning(f"Discarding unreadable wallet file {self.path}: {e}")
            self.path.unlink(missing_ok=True)
            return None

    def save(self, identity: OwnerIdentity) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(identity.to_dict()), encoding="utf-8")
        tmp.chmod(0o600)
        tmp.replace(self.path)


def load_or_create_identity(store: SecretStore) -> OwnerIdentity:
    """Return the stored identity, generating and saving a new one if none exists."""
    identity = store.load()
    if identity is not None:
        return identity
    identity = OwnerIdentity.generate()
    store.save(identity)
    logger.info(f"Generated new deposit wallet {identity.address}")
    return identity
