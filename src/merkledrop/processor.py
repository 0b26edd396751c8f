"""
merkledrop/processor.py

Claim processing for a Merkle airdrop.

A claim is accepted once per account, and only when:
1. the account has not claimed yet,
2. the account holder signed the EIP-712 digest of (account, amount),
3. the (account, amount) leaf is proven under the committed root.

Checks run in that order. The account is marked claimed before the
token transfer, so a transfer that calls back into claim() for the same
account is rejected as AlreadyClaimed.

Usage:
    from merkledrop import ClaimProcessor, DomainConfig, InMemoryToken

    processor = ClaimProcessor(
        merkle_root=tree.root,
        token=InMemoryToken(supply=150),
        domain=DomainConfig.create(verifying_contract="0x..."),
    )
    digest = processor.get_message_hash(alice, 100)
    processor.claim(alice, 100, proof, wallet.sign_digest(digest))
"""

import logging
from typing import List, Optional, Sequence, Tuple, Union

from eth_utils import encode_hex, to_checksum_address

from .config import DomainConfig
from .errors import AlreadyClaimed, InvalidProof, InvalidSignature
from .events import Claimed, EventBus, EventCallback
from .leaf import AddressLike, encode_leaf, normalize_account, validate_amount
from .ledger import ClaimLedger
from .merkle import HashLike, to_hash32, verify
from .signing import ClaimSignature, is_authorized
from .token import TokenTransfer
from .typed_message import ClaimMessageHasher

logger = logging.getLogger("merkledrop.processor")


SignatureLike = Union[ClaimSignature, Tuple[int, int, int], bytes, str]


class ClaimProcessor:
    """
    Validates claims against a fixed Merkle root and pays them out.

    The root, token, and signing domain are fixed at construction.
    The claimed-account ledger is the only mutable state.
    """

    def __init__(
        self,
        merkle_root: HashLike,
        token: TokenTransfer,
        domain: Optional[DomainConfig] = None,
        ledger: Optional[ClaimLedger] = None,
        events: Optional[EventBus] = None,
    ):
        """
        Initialize ClaimProcessor.

        Args:
            merkle_root: Root of the eligibility tree
            token: Transfer capability used for payouts
            domain: Signing domain (defaults to DomainConfig())
            ledger: Claim ledger (a fresh one if omitted)
            events: Event bus for Claimed notifications
        """
        self._merkle_root = to_hash32(merkle_root)
        self._token = token
        self._hasher = ClaimMessageHasher(domain)
        self._ledger = ledger if ledger is not None else ClaimLedger()
        self._events = events if events is not None else EventBus()

        logger.info(
            f"Airdrop ready: root {encode_hex(self._merkle_root)}, "
            f"token {to_checksum_address(token.address)}, "
            f"chain {self._hasher.domain.chain_id}"
        )

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def merkle_root(self) -> bytes:
        return self._merkle_root

    @property
    def token(self) -> TokenTransfer:
        return self._token

    @property
    def domain(self) -> DomainConfig:
        return self._hasher.domain

    @property
    def ledger(self) -> ClaimLedger:
        return self._ledger

    @property
    def events(self) -> EventBus:
        return self._events

    def get_merkle_root(self) -> bytes:
        """Committed eligibility root."""
        return self._merkle_root

    def get_airdrop_token(self) -> TokenTransfer:
        """Token paid out by this airdrop."""
        return self._token

    def get_message_hash(self, account: AddressLike, amount: int) -> bytes:
        """Digest the account holder must sign to claim ``amount``."""
        return self._hasher.message_hash(account, amount)

    def get_typed_data(self, account: AddressLike, amount: int) -> dict:
        """EIP-712 payload for wallets that sign typed data directly."""
        return self._hasher.typed_data(account, amount)

    def has_claimed(self, account: AddressLike) -> bool:
        return self._ledger.has_claimed(normalize_account(account))

    def subscribe(self, callback: EventCallback) -> None:
        """Register a callback for Claimed notifications."""
        self._events.subscribe(callback)

    # ------------------------------------------------------------------
    # Claim
    # ------------------------------------------------------------------

    def claim(
        self,
        account: AddressLike,
        amount: int,
        proof: Sequence[HashLike],
        signature: SignatureLike,
    ) -> None:
        """
        Claim ``amount`` for ``account``.

        Args:
            account: Claiming address (bytes or hex)
            amount: Allocated amount committed in the tree
            proof: Sibling hashes from leaf to root
            signature: Account holder's signature over get_message_hash()

        Raises:
            AlreadyClaimed: account has claimed before
            InvalidSignature: signature does not recover to account
            InvalidProof: (account, amount) is not under the root
            ValueError: malformed account or amount
        """
        account = normalize_account(account)
        amount = validate_amount(amount)
        checksum = to_checksum_address(account)

        if self._ledger.has_claimed(account):
            logger.debug(f"Rejected claim from {checksum}: already claimed")
            raise AlreadyClaimed(checksum)

        digest = self._hasher.message_hash(account, amount)
        if not self._authorized(account, digest, signature):
            logger.debug(f"Rejected claim from {checksum}: invalid signature")
            raise InvalidSignature(checksum)

        leaf = encode_leaf(account, amount)
        if not self._proven(proof, leaf):
            logger.debug(f"Rejected claim from {checksum}: invalid proof")
            raise InvalidProof(checksum)

        with self._ledger.transaction(), self._events.batch():
            self._ledger.mark_claimed(account)
            self._events.emit(Claimed(account=account, amount=amount))
            self._token.transfer(account, amount)

        logger.info(f"Claimed {amount} for {checksum}")

    def _authorized(self, account: bytes, digest: bytes, signature: SignatureLike) -> bool:
        try:
            signature = ClaimSignature.coerce(signature)
        except (TypeError, ValueError) as e:
            logger.debug(f"Unparseable signature: {e}")
            return False
        return is_authorized(account, digest, signature)

    def _proven(self, proof: Sequence[HashLike], leaf: bytes) -> bool:
        try:
            siblings: List[bytes] = [to_hash32(node) for node in proof]
        except (TypeError, ValueError) as e:
            logger.debug(f"Unparseable proof: {e}")
            return False
        return verify(siblings, self._merkle_root, leaf)
