"""
merkledrop/merkle.py

Sorted-pair Merkle trees over keccak256.

Each parent is keccak256(min(a, b) || max(a, b)), so proofs are plain
lists of sibling hashes with no left/right markers. This matches the
proofs accepted by the common on-chain Merkle distributor contracts.

Usage:
    from merkledrop.merkle import MerkleTree, verify

    tree = MerkleTree.from_claims([(alice, 100), (bob, 50)])
    proof = tree.get_proof(encode_leaf(alice, 100))
    assert verify(proof, tree.root, encode_leaf(alice, 100))
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from eth_utils import keccak, to_bytes, encode_hex

from .config import HASH_SIZE
from .leaf import AddressLike, encode_leaf

logger = logging.getLogger("merkledrop.merkle")


HashLike = Union[str, bytes]


def to_hash32(value: HashLike) -> bytes:
    """
    Coerce a 0x-hex string or bytes into a 32-byte hash.

    Raises:
        ValueError: if the value is not exactly 32 bytes
    """
    if isinstance(value, str):
        value = to_bytes(hexstr=value)
    elif isinstance(value, (bytearray, memoryview)):
        value = bytes(value)
    if not isinstance(value, bytes) or len(value) != HASH_SIZE:
        raise ValueError(f"Expected {HASH_SIZE}-byte hash, got {value!r}")
    return value


def hash_pair(a: bytes, b: bytes) -> bytes:
    """Commutative parent hash."""
    if a < b:
        return keccak(a + b)
    return keccak(b + a)


def process_proof(proof: Sequence[bytes], leaf: bytes) -> bytes:
    """Fold a proof onto a leaf and return the resulting root."""
    current = leaf
    for sibling in proof:
        current = hash_pair(current, sibling)
    return current


def verify(proof: Sequence[bytes], root: bytes, leaf: bytes) -> bool:
    """
    Check that ``leaf`` is committed under ``root``.

    Args:
        proof: Sibling hashes from the leaf level upward
        root: Committed Merkle root
        leaf: Leaf hash being proven

    Returns:
        True if folding the proof onto the leaf yields the root
    """
    return process_proof(proof, leaf) == root


class MerkleTree:
    """
    Build eligibility trees and generate proofs.

    Offline tooling: the claim path only ever calls verify().
    Leaves are sorted before building so the root does not depend on
    input order. An odd node at the end of a level moves up unchanged.
    """

    def __init__(self, leaves: Optional[Iterable[HashLike]] = None):
        """
        Initialize MerkleTree.

        Args:
            leaves: Leaf hashes (32-byte values or 0x-hex strings)
        """
        self.leaves: List[bytes] = sorted(to_hash32(leaf) for leaf in (leaves or []))
        self.levels: List[List[bytes]] = []
        self.root: bytes = b""
        self._index: Dict[bytes, int] = {}

        if self.leaves:
            self._build()

    @classmethod
    def from_claims(cls, claims: Iterable[Tuple[AddressLike, int]]) -> "MerkleTree":
        """Build a tree from (account, amount) pairs."""
        return cls(encode_leaf(account, amount) for account, amount in claims)

    def _build(self) -> None:
        """Build all levels bottom-up."""
        if len(set(self.leaves)) != len(self.leaves):
            raise ValueError("Duplicate leaves in eligibility set")

        self._index = {leaf: i for i, leaf in enumerate(self.leaves)}
        self.levels = [list(self.leaves)]
        current_level = self.levels[0]

        while len(current_level) > 1:
            next_level = []
            for i in range(0, len(current_level), 2):
                if i + 1 < len(current_level):
                    next_level.append(hash_pair(current_level[i], current_level[i + 1]))
                else:
                    next_level.append(current_level[i])
            self.levels.append(next_level)
            current_level = next_level

        self.root = current_level[0]
        logger.debug(f"Built merkle tree: {len(self.leaves)} leaves, root {encode_hex(self.root)}")

    def add_leaf(self, leaf: HashLike) -> bytes:
        """Add a leaf and rebuild. Returns the new root."""
        self.leaves = sorted(self.leaves + [to_hash32(leaf)])
        self._build()
        return self.root

    def __len__(self) -> int:
        return len(self.leaves)

    def __contains__(self, leaf: bytes) -> bool:
        return leaf in self._index

    def get_proof(self, leaf: Union[HashLike, int]) -> List[bytes]:
        """
        Get the proof for a leaf.

        Args:
            leaf: Leaf hash, or index into the sorted leaves

        Returns:
            Sibling hashes from the bottom level up

        Raises:
            KeyError: if the leaf is not in the tree
        """
        if isinstance(leaf, int):
            if not 0 <= leaf < len(self.leaves):
                raise KeyError(leaf)
            idx = leaf
        else:
            idx = self._index[to_hash32(leaf)]

        proof = []
        for level in self.levels[:-1]:
            sibling_idx = idx ^ 1
            if sibling_idx < len(level):
                proof.append(level[sibling_idx])
            idx //= 2
        return proof

    def get_claim_proof(self, account: AddressLike, amount: int) -> List[bytes]:
        """Proof for an (account, amount) allocation."""
        return self.get_proof(encode_leaf(account, amount))
