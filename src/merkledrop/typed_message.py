"""
merkledrop/typed_message.py

EIP-712 digests for claim authorization.

digest = keccak256(0x19 0x01 || domainSeparator || hashStruct(claim))

The domain separator binds the digest to one airdrop instance (name,
version, chain id, verifying contract); the type hash binds it to the
AirdropClaim layout so signatures over other typed messages do not
reinterpret as claims.
"""

from typing import Optional

from eth_utils import keccak, to_checksum_address

from .config import AIRDROP_CLAIM_TYPE, EIP712_DOMAIN_TYPE, HASH_SIZE, DomainConfig
from .leaf import AddressLike, normalize_account, validate_amount


EIP712_DOMAIN_TYPEHASH = keccak(text=EIP712_DOMAIN_TYPE)
CLAIM_TYPEHASH = keccak(text=AIRDROP_CLAIM_TYPE)

EIP191_PREFIX = b"\x19\x01"


def _word(value: int) -> bytes:
    return value.to_bytes(HASH_SIZE, "big")


def _address_word(address: bytes) -> bytes:
    return address.rjust(HASH_SIZE, b"\x00")


def domain_separator(domain: DomainConfig) -> bytes:
    """hashStruct(EIP712Domain) for a domain config."""
    return keccak(
        EIP712_DOMAIN_TYPEHASH
        + keccak(text=domain.name)
        + keccak(text=domain.version)
        + _word(domain.chain_id)
        + _address_word(domain.verifying_contract)
    )


def claim_struct_hash(account: AddressLike, amount: int) -> bytes:
    """hashStruct(AirdropClaim)."""
    return keccak(
        CLAIM_TYPEHASH
        + _address_word(normalize_account(account))
        + _word(validate_amount(amount))
    )


class ClaimMessageHasher:
    """
    Builds the digest an account holder signs to authorize a claim.

    The domain is fixed at construction; the separator is computed once.
    """

    def __init__(self, domain: Optional[DomainConfig] = None):
        self._domain = domain or DomainConfig()
        self._separator = domain_separator(self._domain)

    @property
    def domain(self) -> DomainConfig:
        return self._domain

    @property
    def separator(self) -> bytes:
        return self._separator

    def message_hash(self, account: AddressLike, amount: int) -> bytes:
        """Digest to sign for an (account, amount) claim."""
        return keccak(EIP191_PREFIX + self._separator + claim_struct_hash(account, amount))

    def typed_data(self, account: AddressLike, amount: int) -> dict:
        """
        Full EIP-712 payload for wallets that sign typed data
        (eth_signTypedData_v4).
        """
        return {
            'types': {
                'EIP712Domain': [
                    {'name': 'name', 'type': 'string'},
                    {'name': 'version', 'type': 'string'},
                    {'name': 'chainId', 'type': 'uint256'},
                    {'name': 'verifyingContract', 'type': 'address'},
                ],
                'AirdropClaim': [
                    {'name': 'account', 'type': 'address'},
                    {'name': 'amount', 'type': 'uint256'},
                ],
            },
            'primaryType': 'AirdropClaim',
            'domain': self._domain.to_dict(),
            'message': {
                'account': to_checksum_address(normalize_account(account)),
                'amount': validate_amount(amount),
            },
        }
