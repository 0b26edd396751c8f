"""
merkledrop/config.py

Configuration constants and data classes for merkledrop.
"""

import os
from dataclasses import dataclass, asdict
from typing import Optional, Union

from eth_utils import to_canonical_address, to_checksum_address


# Keccak-256 output / secp256k1 scalar sizes
HASH_SIZE = 32
ADDRESS_SIZE = 20

# Largest amount a uint256 can carry
MAX_UINT256 = 2 ** 256 - 1

# EIP-712 domain defaults
DEFAULT_DOMAIN_NAME = "MerkleAirdrop"
DEFAULT_DOMAIN_VERSION = "1"
DEFAULT_CHAIN_ID = 1

# Unset verifying contract (local simulation only)
ZERO_ADDRESS = b"\x00" * ADDRESS_SIZE

# Typed-data layouts
EIP712_DOMAIN_TYPE = (
    "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
)
AIRDROP_CLAIM_TYPE = "AirdropClaim(address account,uint256 amount)"

# Environment overrides for DomainConfig.from_env()
ENV_DOMAIN_NAME = "MERKLEDROP_DOMAIN_NAME"
ENV_DOMAIN_VERSION = "MERKLEDROP_DOMAIN_VERSION"
ENV_CHAIN_ID = "MERKLEDROP_CHAIN_ID"
ENV_VERIFYING_CONTRACT = "MERKLEDROP_VERIFYING_CONTRACT"


@dataclass(frozen=True)
class DomainConfig:
    """
    Signing domain of one airdrop instance.

    Bound into every claim digest so a signature for one instance
    (or chain) cannot be replayed against another.
    """
    verifying_contract: bytes = ZERO_ADDRESS
    chain_id: int = DEFAULT_CHAIN_ID
    name: str = DEFAULT_DOMAIN_NAME
    version: str = DEFAULT_DOMAIN_VERSION

    def __post_init__(self):
        # Normalize hex/checksum strings to canonical 20 bytes
        object.__setattr__(
            self, "verifying_contract", to_canonical_address(self.verifying_contract)
        )
        if not 0 <= self.chain_id <= MAX_UINT256:
            raise ValueError(f"chain_id out of uint256 range: {self.chain_id}")

    @classmethod
    def create(
        cls,
        verifying_contract: Union[str, bytes] = ZERO_ADDRESS,
        chain_id: int = DEFAULT_CHAIN_ID,
        name: str = DEFAULT_DOMAIN_NAME,
        version: str = DEFAULT_DOMAIN_VERSION,
    ) -> "DomainConfig":
        """Build a config, accepting the contract as hex or bytes."""
        return cls(
            verifying_contract=verifying_contract,
            chain_id=int(chain_id),
            name=name,
            version=version,
        )

    @classmethod
    def from_env(cls, default: Optional["DomainConfig"] = None) -> "DomainConfig":
        """
        Load domain settings from environment variables.

        Unset variables fall back to ``default`` (or the module defaults).
        """
        base = default or cls()
        return cls.create(
            verifying_contract=os.environ.get(ENV_VERIFYING_CONTRACT, base.verifying_contract),
            chain_id=int(os.environ.get(ENV_CHAIN_ID, base.chain_id)),
            name=os.environ.get(ENV_DOMAIN_NAME, base.name),
            version=os.environ.get(ENV_DOMAIN_VERSION, base.version),
        )

    def to_dict(self) -> dict:
        """Convert to the EIP-712 domain dictionary."""
        result = asdict(self)
        return {
            'name': result['name'],
            'version': result['version'],
            'chainId': result['chain_id'],
            'verifyingContract': to_checksum_address(self.verifying_contract),
        }
