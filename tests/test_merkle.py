"""
Tests for merkledrop/merkle.py

Sorted-pair proof verification and the offline tree builder.
"""

import pytest
from eth_utils import keccak, encode_hex

from merkledrop.leaf import encode_leaf
from merkledrop.merkle import MerkleTree, hash_pair, process_proof, to_hash32, verify


# ============================================================================
# Fixtures
# ============================================================================

def make_accounts(count: int):
    return ["0x" + f"{i + 1:040x}" for i in range(count)]


@pytest.fixture
def claims():
    """Seven allocations (odd count exercises promoted nodes)."""
    return [(account, (i + 1) * 10) for i, account in enumerate(make_accounts(7))]


@pytest.fixture
def tree(claims):
    return MerkleTree.from_claims(claims)


# ============================================================================
# Test hashing helpers
# ============================================================================

class TestHashPair:
    """Tests for the commutative parent hash."""

    def test_commutative(self):
        a, b = keccak(b"a"), keccak(b"b")
        assert hash_pair(a, b) == hash_pair(b, a)

    def test_sorted_concat(self):
        a, b = keccak(b"a"), keccak(b"b")
        lo, hi = sorted([a, b])
        assert hash_pair(a, b) == keccak(lo + hi)


class TestToHash32:
    """Tests for hash coercion."""

    def test_hex_string(self):
        value = keccak(b"x")
        assert to_hash32(encode_hex(value)) == value

    def test_bytes(self):
        value = keccak(b"x")
        assert to_hash32(value) == value
        assert to_hash32(bytearray(value)) == value

    def test_wrong_length(self):
        with pytest.raises(ValueError):
            to_hash32(b"\x00" * 31)
        with pytest.raises(ValueError):
            to_hash32("0x1234")

    def test_not_hex(self):
        with pytest.raises(ValueError):
            to_hash32("0xzz" + "00" * 31)


# ============================================================================
# Test verify
# ============================================================================

class TestVerify:
    """Tests for proof verification."""

    def test_two_leaf_tree(self):
        """A sibling leaf is the whole proof in a two-leaf tree."""
        a = encode_leaf("0x" + "aa" * 20, 1)
        b = encode_leaf("0x" + "bb" * 20, 2)
        root = hash_pair(a, b)
        assert verify([b], root, a)
        assert verify([a], root, b)

    def test_empty_proof_leaf_is_root(self):
        """Single-leaf tree: the leaf is the root."""
        leaf = encode_leaf("0x" + "aa" * 20, 1)
        assert verify([], leaf, leaf)

    def test_empty_proof_mismatch(self):
        """Empty proof against a different root is false, not an error."""
        leaf = encode_leaf("0x" + "aa" * 20, 1)
        assert verify([], keccak(b"root"), leaf) is False

    def test_process_proof(self):
        a, b, c = keccak(b"a"), keccak(b"b"), keccak(b"c")
        assert process_proof([b, c], a) == hash_pair(hash_pair(a, b), c)


# ============================================================================
# Test MerkleTree
# ============================================================================

class TestMerkleTree:
    """Tests for MerkleTree."""

    def test_every_leaf_verifies(self, tree, claims):
        """Each allocation's proof verifies against the root."""
        for account, amount in claims:
            leaf = encode_leaf(account, amount)
            proof = tree.get_proof(leaf)
            assert verify(proof, tree.root, leaf)

    def test_completeness_across_sizes(self):
        """Proofs verify for trees of many shapes."""
        for size in range(1, 18):
            claims = [(account, 1) for account in make_accounts(size)]
            tree = MerkleTree.from_claims(claims)
            for account, amount in claims:
                leaf = encode_leaf(account, amount)
                assert verify(tree.get_proof(leaf), tree.root, leaf)

    def test_root_independent_of_order(self, claims):
        """Leaves are sorted before building."""
        forward = MerkleTree.from_claims(claims)
        backward = MerkleTree.from_claims(list(reversed(claims)))
        assert forward.root == backward.root

    def test_proof_depth(self, tree):
        """Seven leaves give proofs of at most three hashes."""
        for i in range(len(tree)):
            assert len(tree.get_proof(i)) <= 3

    def test_wrong_amount_fails(self, tree, claims):
        """A proof for (a, x) does not prove (a, y)."""
        account, amount = claims[0]
        proof = tree.get_claim_proof(account, amount)
        assert not verify(proof, tree.root, encode_leaf(account, amount + 1))

    def test_wrong_account_fails(self, tree, claims):
        """A proof for one account does not prove another's leaf."""
        account, amount = claims[0]
        proof = tree.get_claim_proof(account, amount)
        assert not verify(proof, tree.root, encode_leaf("0x" + "ee" * 20, amount))

    def test_tampered_proof_fails(self, tree, claims):
        """Altering any proof element breaks verification."""
        account, amount = claims[3]
        leaf = encode_leaf(account, amount)
        proof = tree.get_proof(leaf)
        for i in range(len(proof)):
            tampered = list(proof)
            tampered[i] = keccak(tampered[i])
            assert not verify(tampered, tree.root, leaf)

    def test_truncated_proof_fails(self, tree, claims):
        account, amount = claims[2]
        leaf = encode_leaf(account, amount)
        proof = tree.get_proof(leaf)
        assert not verify(proof[:-1], tree.root, leaf)

    def test_internal_node_is_not_a_leaf(self):
        """
        The preimage of an internal node is 64 bytes, the same size as a
        serialized claim; double hashing keeps it from verifying as a leaf.
        """
        claims = [(account, 1) for account in make_accounts(4)]
        tree = MerkleTree.from_claims(claims)
        left, right = tree.levels[0][0], tree.levels[0][1]
        internal = tree.levels[1][0]
        # Proof that would apply to the internal node
        upper_proof = [tree.levels[1][1]]
        assert verify(upper_proof, tree.root, internal)
        # Reinterpreting its 64-byte preimage as (account, amount) fails
        lo, hi = sorted([left, right])
        forged_leaf = keccak(keccak(lo + hi))
        assert not verify(upper_proof, tree.root, forged_leaf)

    def test_unknown_leaf(self, tree):
        with pytest.raises(KeyError):
            tree.get_proof(keccak(b"missing"))
        with pytest.raises(KeyError):
            tree.get_proof(100)

    def test_duplicate_leaves_rejected(self):
        leaf = encode_leaf("0x" + "aa" * 20, 1)
        with pytest.raises(ValueError, match="Duplicate"):
            MerkleTree([leaf, leaf])

    def test_add_leaf(self, tree, claims):
        old_root = tree.root
        leaf = encode_leaf("0x" + "ab" * 20, 5)
        new_root = tree.add_leaf(leaf)
        assert new_root != old_root
        assert leaf in tree
        assert verify(tree.get_proof(leaf), new_root, leaf)

    def test_empty_tree(self):
        tree = MerkleTree()
        assert tree.root == b""
        assert len(tree) == 0
