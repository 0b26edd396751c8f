"""
merkledrop - Merkle airdrop claim validation

Pays each account in a committed eligibility set exactly once:
- Eligibility committed as a sorted-pair keccak256 Merkle root
- Double-hashed (account, amount) leaves
- EIP-712 domain-separated claim authorizations (secp256k1)
- Mark-before-transfer claim ledger

Usage:
    from merkledrop import ClaimProcessor, ClaimWallet, MerkleTree, InMemoryToken

    tree = MerkleTree.from_claims([(alice.address, 100), (bob.address, 50)])
    processor = ClaimProcessor(tree.root, InMemoryToken(supply=150))

    digest = processor.get_message_hash(alice.address, 100)
    processor.claim(
        alice.address,
        100,
        tree.get_claim_proof(alice.address, 100),
        alice.sign_digest(digest),
    )
"""

from .config import DomainConfig
from .errors import ClaimError, AlreadyClaimed, InvalidSignature, InvalidProof
from .events import Claimed, EventBus
from .leaf import AirdropClaim, encode_leaf
from .ledger import ClaimLedger
from .merkle import MerkleTree, verify
from .processor import ClaimProcessor
from .signing import ClaimSignature, ClaimWallet, is_authorized, recover_signer
from .token import TokenTransfer, InMemoryToken, InsufficientBalance
from .typed_message import ClaimMessageHasher

__version__ = "1.0.0"
__all__ = [
    # Core
    "ClaimProcessor",
    "ClaimLedger",
    "DomainConfig",
    # Hashing & proofs
    "AirdropClaim",
    "encode_leaf",
    "MerkleTree",
    "verify",
    "ClaimMessageHasher",
    # Signatures
    "ClaimSignature",
    "ClaimWallet",
    "is_authorized",
    "recover_signer",
    # Token
    "TokenTransfer",
    "InMemoryToken",
    "InsufficientBalance",
    # Events
    "Claimed",
    "EventBus",
    # Errors
    "ClaimError",
    "AlreadyClaimed",
    "InvalidSignature",
    "InvalidProof",
]
