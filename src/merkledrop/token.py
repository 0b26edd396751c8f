"""
merkledrop/token.py

Token transfer capability used for payouts.

Architecture:
    TokenTransfer (abstract)
    └── InMemoryToken (local balances - tests and simulation)

A real deployment injects an implementation backed by its token ledger.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple, Union

from eth_utils import to_canonical_address, to_checksum_address

from .config import ZERO_ADDRESS

logger = logging.getLogger("merkledrop.token")


class InsufficientBalance(ValueError):
    """Sender balance is below the transfer amount."""


class TokenTransfer(ABC):
    """Moves value from the airdrop's holdings to an account."""

    @property
    @abstractmethod
    def address(self) -> bytes:
        """Identity of the token."""

    @abstractmethod
    def transfer(self, to: bytes, amount: int) -> None:
        """
        Move ``amount`` to ``to``.

        Must raise on failure; returning means the transfer happened.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}({to_checksum_address(self.address)})"


class InMemoryToken(TokenTransfer):
    """
    Dictionary-backed token holding the airdrop supply.

    Every transfer draws on the distributor's balance and is recorded
    in ``transfers``.
    """

    def __init__(
        self,
        supply: int = 0,
        address: Union[str, bytes] = ZERO_ADDRESS,
        symbol: str = "DROP",
    ):
        self._address = to_canonical_address(address)
        self.symbol = symbol
        self.distributor_balance = supply
        self.balances: Dict[bytes, int] = {}
        self.transfers: List[Tuple[bytes, int]] = []

    @property
    def address(self) -> bytes:
        return self._address

    def balance_of(self, account: Union[str, bytes]) -> int:
        return self.balances.get(to_canonical_address(account), 0)

    def transfer(self, to: bytes, amount: int) -> None:
        if amount > self.distributor_balance:
            raise InsufficientBalance(
                f"Insufficient {self.symbol}: need {amount}, have {self.distributor_balance}"
            )
        self.distributor_balance -= amount
        self.balances[to] = self.balances.get(to, 0) + amount
        self.transfers.append((to, amount))
        logger.debug(f"Transferred {amount} {self.symbol} to {to_checksum_address(to)}")

    @property
    def total_transferred(self) -> int:
        return sum(amount for _, amount in self.transfers)

    def last_transfer(self) -> Optional[Tuple[bytes, int]]:
        return self.transfers[-1] if self.transfers else None
