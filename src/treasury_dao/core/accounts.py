from __future__ import annotations

import hashlib
import logging
import threading
from typing import Dict, List

from .exceptions import InsufficientBalanceError

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "0" * 40


def derive_address(seed: str) -> str:
    """Derive a deterministic 20-byte hex address from a seed string."""
    digest = hashlib.sha3_256(seed.encode()).digest()
    return f"0x{digest[-20:].hex()}"


def normalize_address(address: str) -> str:
    if not isinstance(address, str) or not address.strip():
        raise ValueError("Address cannot be empty.")
    return address.strip().lower()


class AccountLedger:
    """
    Native-currency balances keyed by account address.

    Plays the role of the chain's account state: dev accounts are funded here,
    the treasury keeps its pooled balance here under the DAO's address, and
    disbursements move funds between entries.
    """

    def __init__(self) -> None:
        self._balances: Dict[str, int] = {}
        self._lock = threading.RLock()

    def get_balance(self, address: str) -> int:
        """Returns the native balance of an account (0 for unknown accounts)."""
        with self._lock:
            return self._balances.get(normalize_address(address), 0)

    def accounts(self) -> List[str]:
        with self._lock:
            return list(self._balances)

    def credit(self, address: str, amount: int) -> None:
        """
        Add freshly issued funds to an account.

        Args:
            address: Account to fund
            amount: Amount in base units
        """
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise ValueError("Credit amount must be a positive integer.")
        addr = normalize_address(address)
        with self._lock:
            self._balances[addr] = self._balances.get(addr, 0) + amount
        logger.debug(
            "Account credited",
            extra={"event": "accounts.credit", "account": addr[:10], "amount": amount},
        )

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """
        Move funds between two accounts.

        Raises:
            ValueError: If the amount is not a positive integer
            InsufficientBalanceError: If the sender cannot cover the amount
        """
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise ValueError("Transfer amount must be a positive integer.")
        sender_norm = normalize_address(sender)
        recipient_norm = normalize_address(recipient)
        if recipient_norm == ZERO_ADDRESS:
            raise ValueError("Cannot transfer to the zero address.")

        with self._lock:
            balance = self._balances.get(sender_norm, 0)
            if balance < amount:
                raise InsufficientBalanceError(
                    f"Insufficient balance ({balance}) for transfer amount ({amount}).",
                    details={"account": sender_norm, "balance": balance, "amount": amount},
                )
            self._balances[sender_norm] = balance - amount
            self._balances[recipient_norm] = self._balances.get(recipient_norm, 0) + amount

        logger.debug(
            "Native transfer",
            extra={
                "event": "accounts.transfer",
                "from": sender_norm[:10],
                "to": recipient_norm[:10],
                "amount": amount,
            },
        )
