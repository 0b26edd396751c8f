"""
merkledrop/signing.py

secp256k1 claim signing and signer recovery using eth-keys.

Recovery never raises on malformed signatures: anything that cannot be
recovered to a public key yields None, which never equals an account,
so authorization stays a single comparison.

Usage:
    from merkledrop.signing import ClaimWallet, is_authorized

    wallet = ClaimWallet.from_private_key("0x...")
    signature = wallet.sign_digest(digest)

    assert is_authorized(wallet.address_bytes, digest, signature)
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import to_bytes, to_checksum_address

from .config import HASH_SIZE

logger = logging.getLogger("merkledrop.signing")


# secp256k1 group order
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECP256K1_HALF_N = SECP256K1_N // 2

# Accepted recovery ids (Ethereum v values)
RECOVERY_ID_OFFSET = 27
VALID_RECOVERY_IDS = (27, 28)

SIGNATURE_SIZE = 65


@dataclass(frozen=True)
class ClaimSignature:
    """A recoverable signature (recovery_id, r, s) over a claim digest."""
    recovery_id: int
    r: int
    s: int

    @classmethod
    def from_bytes(cls, data: Union[bytes, str]) -> "ClaimSignature":
        """
        Parse the 65-byte r || s || v form.

        A trailing v of 0/1 is shifted to 27/28.
        """
        if isinstance(data, str):
            data = to_bytes(hexstr=data)
        if len(data) != SIGNATURE_SIZE:
            raise ValueError(f"Signature must be {SIGNATURE_SIZE} bytes, got {len(data)}")
        v = data[64]
        if v < RECOVERY_ID_OFFSET:
            v += RECOVERY_ID_OFFSET
        return cls(
            recovery_id=v,
            r=int.from_bytes(data[0:32], "big"),
            s=int.from_bytes(data[32:64], "big"),
        )

    @classmethod
    def coerce(cls, value: Union["ClaimSignature", Tuple[int, int, int], bytes, str]) -> "ClaimSignature":
        """Accept a ClaimSignature, a (v, r, s) tuple, or 65 raw/hex bytes."""
        if isinstance(value, cls):
            return value
        if isinstance(value, (bytes, bytearray, str)):
            return cls.from_bytes(value if isinstance(value, str) else bytes(value))
        if isinstance(value, tuple) and len(value) == 3:
            v, r, s = value
            return cls(recovery_id=int(v), r=int(r), s=int(s))
        raise ValueError(f"Unsupported signature format: {type(value).__name__}")

    def to_bytes(self) -> bytes:
        """65-byte r || s || v encoding."""
        return (
            self.r.to_bytes(32, "big")
            + self.s.to_bytes(32, "big")
            + bytes([self.recovery_id])
        )

    def to_hex(self) -> str:
        return "0x" + self.to_bytes().hex()

    def to_dict(self) -> dict:
        return {'v': self.recovery_id, 'r': hex(self.r), 's': hex(self.s)}


def _well_formed(digest: bytes, signature: ClaimSignature) -> bool:
    """Range checks that mirror OpenZeppelin's ECDSA.tryRecover."""
    if not isinstance(digest, bytes) or len(digest) != HASH_SIZE:
        return False
    if signature.recovery_id not in VALID_RECOVERY_IDS:
        return False
    if not 0 < signature.r < SECP256K1_N:
        return False
    # Upper-half s values are malleable twins of valid signatures
    if not 0 < signature.s <= SECP256K1_HALF_N:
        return False
    return True


def recover_signer(digest: bytes, signature: ClaimSignature) -> Optional[bytes]:
    """
    Recover the signing address from a digest and signature.

    Args:
        digest: 32-byte message hash that was signed
        signature: (recovery_id, r, s)

    Returns:
        Canonical 20-byte address, or None if no signer can be recovered
    """
    if not isinstance(signature, ClaimSignature) or not _well_formed(digest, signature):
        return None

    try:
        sig = keys.Signature(vrs=(
            signature.recovery_id - RECOVERY_ID_OFFSET,
            signature.r,
            signature.s,
        ))
        public_key = sig.recover_public_key_from_msg_hash(digest)
    except (BadSignature, ValidationError) as e:
        logger.debug(f"Signature recovery failed: {e}")
        return None

    return public_key.to_canonical_address()


def is_authorized(claimed_signer: bytes, digest: bytes, signature: ClaimSignature) -> bool:
    """True if the signature recovers to exactly ``claimed_signer``."""
    return recover_signer(digest, signature) == claimed_signer


class ClaimWallet:
    """
    Lightweight signing key for claim authorizations.

    Used by account holders (and tests) to sign the digest returned by
    ClaimProcessor.get_message_hash().
    """

    def __init__(self, private_key: keys.PrivateKey):
        """
        Initialize with an eth-keys PrivateKey.

        Use the factory methods from_private_key() or generate() instead.
        """
        self._private_key = private_key
        self._address = private_key.public_key.to_canonical_address()

    @classmethod
    def from_private_key(cls, key: Union[bytes, str]) -> "ClaimWallet":
        """
        Create wallet from a 32-byte private key.

        Args:
            key: Raw bytes or 0x-hex string

        Returns:
            ClaimWallet instance
        """
        if isinstance(key, str):
            key = to_bytes(hexstr=key)
        if len(key) != 32:
            raise ValueError("Private key must be exactly 32 bytes")
        return cls(keys.PrivateKey(key))

    @classmethod
    def generate(cls) -> "ClaimWallet":
        """Create a wallet from fresh OS randomness."""
        return cls.from_private_key(os.urandom(32))

    @property
    def address(self) -> str:
        """Checksummed address."""
        return to_checksum_address(self._address)

    @property
    def address_bytes(self) -> bytes:
        """Canonical 20-byte address."""
        return self._address

    def sign_digest(self, digest: bytes) -> ClaimSignature:
        """
        Sign a 32-byte digest.

        Args:
            digest: Output of ClaimMessageHasher.message_hash()

        Returns:
            ClaimSignature with recovery_id 27 or 28
        """
        if len(digest) != HASH_SIZE:
            raise ValueError(f"Digest must be {HASH_SIZE} bytes")
        sig = self._private_key.sign_msg_hash(digest)
        return ClaimSignature(
            recovery_id=sig.v + RECOVERY_ID_OFFSET,
            r=sig.r,
            s=sig.s,
        )

    def verify(self, digest: bytes, signature: ClaimSignature) -> bool:
        """Check a signature was produced by this wallet."""
        return is_authorized(self._address, digest, signature)
