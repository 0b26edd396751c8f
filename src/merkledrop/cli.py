"""
merkledrop/cli.py

Command-line tooling around the claim core.

Usage:
    merkledrop build-tree claims.csv --out merkle.json
    merkledrop verify-proof --root 0x... --account 0x... --amount 100 --proof 0x... --proof 0x...
    merkledrop message-hash --account 0x... --amount 100 --chain-id 1 --contract 0x...
    MERKLEDROP_PRIVATE_KEY=0x... merkledrop sign --account 0x... --amount 100
"""

import csv
import json
import logging
import sys
from typing import List, Tuple

import click
from eth_utils import encode_hex, to_checksum_address

from .config import (
    DEFAULT_CHAIN_ID,
    DEFAULT_DOMAIN_NAME,
    DEFAULT_DOMAIN_VERSION,
    ENV_CHAIN_ID,
    ENV_DOMAIN_NAME,
    ENV_DOMAIN_VERSION,
    ENV_VERIFYING_CONTRACT,
    ZERO_ADDRESS,
    DomainConfig,
)
from .leaf import encode_leaf, normalize_account, validate_amount
from .merkle import MerkleTree, to_hash32, verify
from .signing import ClaimWallet
from .typed_message import ClaimMessageHasher

logger = logging.getLogger("merkledrop.cli")


def load_claims_csv(path: str) -> List[Tuple[bytes, int]]:
    """Read ``address,amount`` rows (header required)."""
    rows = []
    with open(path, newline="") as f:
        reader = csv.DictReader(f)
        if not reader.fieldnames or not {"address", "amount"} <= set(reader.fieldnames):
            raise ValueError("CSV needs header: address,amount")
        for line_no, row in enumerate(reader, start=2):
            address = (row.get("address") or "").strip()
            amount = (row.get("amount") or "").strip()
            if not address and not amount:
                continue
            if not amount.isdigit():
                raise ValueError(f"Line {line_no}: amount must be a non-negative integer, got {amount!r}")
            rows.append((normalize_account(address), validate_amount(int(amount))))
    if not rows:
        raise ValueError("No claims in CSV")

    accounts = [account for account, _ in rows]
    if len(set(accounts)) != len(accounts):
        raise ValueError("Duplicate address in CSV")
    return rows


def build_distribution(rows: List[Tuple[bytes, int]]) -> dict:
    """Root, total, and per-account proofs for a claim list."""
    tree = MerkleTree.from_claims(rows)
    claims = {}
    for account, amount in rows:
        leaf = encode_leaf(account, amount)
        claims[to_checksum_address(account)] = {
            'amount': str(amount),
            'leaf': encode_hex(leaf),
            'proof': [encode_hex(node) for node in tree.get_proof(leaf)],
        }
    return {
        'merkleRoot': encode_hex(tree.root),
        'tokenTotal': str(sum(amount for _, amount in rows)),
        'claims': claims,
    }


def domain_options(f):
    """Shared EIP-712 domain flags, each with an env-var fallback."""
    options = [
        click.option('--chain-id', type=int, default=DEFAULT_CHAIN_ID, envvar=ENV_CHAIN_ID,
                     show_default=True, help='Chain id bound into the signing domain'),
        click.option('--contract', default=encode_hex(ZERO_ADDRESS), envvar=ENV_VERIFYING_CONTRACT,
                     help='Verifying contract (airdrop instance) address'),
        click.option('--name', default=DEFAULT_DOMAIN_NAME, envvar=ENV_DOMAIN_NAME,
                     show_default=True, help='Domain name'),
        click.option('--domain-version', default=DEFAULT_DOMAIN_VERSION, envvar=ENV_DOMAIN_VERSION,
                     show_default=True, help='Domain version'),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _domain(chain_id: int, contract: str, name: str, domain_version: str) -> DomainConfig:
    try:
        return DomainConfig.create(
            verifying_contract=contract,
            chain_id=chain_id,
            name=name,
            version=domain_version,
        )
    except ValueError as e:
        raise click.BadParameter(str(e))


@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Enable debug logging')
def main(verbose):
    """Merkle airdrop claim tooling."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s [%(name)s] %(levelname)s: %(message)s',
    )


@main.command('build-tree')
@click.argument('csv_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--out', type=click.Path(dir_okay=False), default=None,
              help='Write JSON here instead of stdout')
def build_tree(csv_path, out):
    """Build the eligibility tree and proofs from an address,amount CSV."""
    try:
        rows = load_claims_csv(csv_path)
    except ValueError as e:
        raise click.ClickException(str(e))

    distribution = build_distribution(rows)
    payload = json.dumps(distribution, indent=2)
    if out:
        with open(out, "w") as f:
            f.write(payload)
        click.echo(f"Merkle root: {distribution['merkleRoot']}")
        click.echo(f"Wrote {len(rows)} claims to {out}")
    else:
        click.echo(payload)


@main.command('verify-proof')
@click.option('--root', required=True, help='Committed merkle root (0x-hex)')
@click.option('--account', required=True, help='Claiming address')
@click.option('--amount', required=True, type=int, help='Allocated amount')
@click.option('--proof', multiple=True, help='Sibling hash, repeat in order from the leaf up')
def verify_proof(root, account, amount, proof):
    """Check an (account, amount) allocation against a root."""
    try:
        leaf = encode_leaf(account, amount)
        valid = verify([to_hash32(node) for node in proof], to_hash32(root), leaf)
    except ValueError as e:
        raise click.BadParameter(str(e))

    click.echo("valid" if valid else "invalid")
    sys.exit(0 if valid else 1)


@main.command('message-hash')
@click.option('--account', required=True, help='Claiming address')
@click.option('--amount', required=True, type=int, help='Allocated amount')
@domain_options
def message_hash(account, amount, chain_id, contract, name, domain_version):
    """Print the EIP-712 digest an account signs to claim."""
    hasher = ClaimMessageHasher(_domain(chain_id, contract, name, domain_version))
    try:
        digest = hasher.message_hash(account, amount)
    except ValueError as e:
        raise click.BadParameter(str(e))
    click.echo(encode_hex(digest))


@main.command('sign')
@click.option('--account', required=True, help='Claiming address (must match the key)')
@click.option('--amount', required=True, type=int, help='Allocated amount')
@click.option('--private-key', required=True, envvar='MERKLEDROP_PRIVATE_KEY',
              help='Signing key (0x-hex); prefer the MERKLEDROP_PRIVATE_KEY env var')
@domain_options
def sign(account, amount, private_key, chain_id, contract, name, domain_version):
    """Sign a claim authorization and print the signature as JSON."""
    hasher = ClaimMessageHasher(_domain(chain_id, contract, name, domain_version))
    try:
        wallet = ClaimWallet.from_private_key(private_key)
        account_bytes = normalize_account(account)
        digest = hasher.message_hash(account_bytes, amount)
    except ValueError as e:
        raise click.BadParameter(str(e))

    if wallet.address_bytes != account_bytes:
        raise click.ClickException(
            f"Key belongs to {wallet.address}, not {to_checksum_address(account_bytes)}"
        )

    signature = wallet.sign_digest(digest)
    click.echo(json.dumps({
        'account': wallet.address,
        'amount': amount,
        'digest': encode_hex(digest),
        'signature': signature.to_hex(),
        **signature.to_dict(),
    }, indent=2))


if __name__ == '__main__':
    main()
