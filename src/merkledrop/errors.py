"""
merkledrop/errors.py

Claim failure kinds raised by ClaimProcessor.

Each failure is a distinct exception type so callers can tell which
check rejected a claim. Malformed arguments (bad address, amount out of
uint256 range, non-32-byte proof elements) raise ValueError instead.
"""

from typing import Optional


class ClaimError(Exception):
    """Base class for a rejected claim."""

    reason = "claim rejected"

    def __init__(self, account: str, message: Optional[str] = None):
        self.account = account
        super().__init__(message or f"{self.reason}: {account}")


class AlreadyClaimed(ClaimError):
    """The account has already claimed its allocation."""

    reason = "already claimed"


class InvalidSignature(ClaimError):
    """The signature does not recover to the claiming account."""

    reason = "invalid signature"


class InvalidProof(ClaimError):
    """The Merkle proof does not lead to the committed root."""

    reason = "invalid proof"
