"""
merkledrop/leaf.py

Leaf encoding for the eligibility tree.

A leaf is keccak256(keccak256(abi.encode(account, amount))). The inner
encoding is fixed width (32-byte padded address followed by a 32-byte
big-endian amount), and hashing twice keeps a 64-byte internal node
from ever being accepted as a leaf.
"""

from dataclasses import dataclass
from typing import Union

from eth_utils import keccak, to_canonical_address, to_checksum_address

from .config import HASH_SIZE, MAX_UINT256


AddressLike = Union[str, bytes]


def normalize_account(account: AddressLike) -> bytes:
    """Return the canonical 20-byte form of an address (raises ValueError)."""
    return to_canonical_address(account)


def validate_amount(amount: int) -> int:
    """Check amount fits in a uint256."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"Amount must be an integer, got {type(amount).__name__}")
    if not 0 <= amount <= MAX_UINT256:
        raise ValueError(f"Amount out of uint256 range: {amount}")
    return amount


def serialize_claim(account: AddressLike, amount: int) -> bytes:
    """ABI-encode (address, uint256) as 64 bytes."""
    account_bytes = normalize_account(account)
    amount = validate_amount(amount)
    return account_bytes.rjust(HASH_SIZE, b"\x00") + amount.to_bytes(HASH_SIZE, "big")


def encode_leaf(account: AddressLike, amount: int) -> bytes:
    """Double-hashed Merkle leaf for an (account, amount) allocation."""
    return keccak(keccak(serialize_claim(account, amount)))


@dataclass(frozen=True)
class AirdropClaim:
    """An (account, amount) pair presented for a claim."""
    account: bytes
    amount: int

    @classmethod
    def create(cls, account: AddressLike, amount: int) -> "AirdropClaim":
        return cls(account=normalize_account(account), amount=validate_amount(amount))

    @property
    def checksum_account(self) -> str:
        return to_checksum_address(self.account)

    def leaf(self) -> bytes:
        return encode_leaf(self.account, self.amount)

    def to_dict(self) -> dict:
        return {'account': self.checksum_account, 'amount': self.amount}
