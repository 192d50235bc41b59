"""Wallet and address generation.

Secrets use the connector's wire convention: the base32 encoding of the
64-byte Ed25519 private key (seed + public key). ``algosdk`` itself works
with base64 private keys, so the helpers below convert between the two.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass

from algosdk import account, mnemonic

from algo_gateway.errors.gateway_errors import InvalidKeyError

_PRIVATE_KEY_SIZE = 64


@dataclass(frozen=True)
class Wallet:
    """A generated account."""

    address: str
    secret: str
    mnemonic: str

    def to_dict(self) -> dict[str, str]:
        return {"address": self.address, "secret": self.secret, "mnemonic": self.mnemonic}


def secret_to_private_key(secret: str) -> str:
    """Decode a base32 secret into an ``algosdk`` base64 private key.

    Raises:
        InvalidKeyError: If the secret is not a base32-encoded 64-byte key.
    """
    normalized = secret.strip().upper()
    normalized += "=" * (-len(normalized) % 8)
    try:
        raw = base64.b32decode(normalized)
    except (binascii.Error, ValueError) as exc:
        raise InvalidKeyError("secret is not valid base32") from exc
    if len(raw) != _PRIVATE_KEY_SIZE:
        raise InvalidKeyError(f"secret must decode to {_PRIVATE_KEY_SIZE} bytes")
    return base64.b64encode(raw).decode()


def private_key_to_secret(private_key: str) -> str:
    """Encode an ``algosdk`` base64 private key as a base32 secret."""
    return base64.b32encode(base64.b64decode(private_key)).decode()


def generate_wallet(mnem: str | None = None) -> Wallet:
    """Create a new account, or recover one from a 25-word mnemonic.

    Raises:
        InvalidKeyError: If *mnem* is not a valid mnemonic.
    """
    if mnem:
        try:
            private_key = mnemonic.to_private_key(mnem)
        except Exception as exc:  # algosdk raises ValueError/WrongMnemonic*Error
            raise InvalidKeyError("invalid mnemonic") from exc
        address = account.address_from_private_key(private_key)
    else:
        private_key, address = account.generate_account()

    return Wallet(
        address=address,
        secret=private_key_to_secret(private_key),
        mnemonic=mnemonic.from_private_key(private_key),
    )


def generate_address(secret: str) -> str:
    """Derive the account address from a base32 secret."""
    return account.address_from_private_key(secret_to_private_key(secret))
