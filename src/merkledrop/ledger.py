"""
merkledrop/ledger.py

One-time claim tracking.

The ledger is a set of canonical addresses. Insertion is the only
mutation and membership the only read. transaction() journals the
insertions made inside it and discards them if the block raises, so a
claim whose payout fails leaves no trace.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Set

from eth_utils import to_checksum_address

logger = logging.getLogger("merkledrop.ledger")


class ClaimLedger:
    """Tracks which accounts have claimed."""

    def __init__(self):
        self._claimed: Set[bytes] = set()
        self._journals: List[List[bytes]] = []

    def has_claimed(self, account: bytes) -> bool:
        return account in self._claimed

    def mark_claimed(self, account: bytes) -> None:
        """Record a claim. A repeat mark is a no-op."""
        if account in self._claimed:
            logger.warning(f"Account already marked claimed: {to_checksum_address(account)}")
            return

        self._claimed.add(account)
        if self._journals:
            self._journals[-1].append(account)

    @contextmanager
    def transaction(self) -> Iterator["ClaimLedger"]:
        """
        All-or-nothing scope for marks.

        Nested scopes fold into their parent on success, so an outer
        failure also discards marks committed by inner scopes.
        """
        journal: List[bytes] = []
        self._journals.append(journal)
        try:
            yield self
        except BaseException:
            self._journals.pop()
            for account in journal:
                self._claimed.discard(account)
            if journal:
                logger.debug(f"Rolled back {len(journal)} claim mark(s)")
            raise
        else:
            self._journals.pop()
            if self._journals:
                self._journals[-1].extend(journal)

    @property
    def in_transaction(self) -> bool:
        return bool(self._journals)

    @property
    def claimed_count(self) -> int:
        return len(self._claimed)

    def __len__(self) -> int:
        return len(self._claimed)

    def __contains__(self, account: bytes) -> bool:
        return account in self._claimed
