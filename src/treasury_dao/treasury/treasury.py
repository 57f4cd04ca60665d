from __future__ import annotations

import logging
import threading
import time
from typing import Any, Dict, List

from ..core.accounts import AccountLedger, normalize_address
from ..core.exceptions import DisbursementFailed, InsufficientBalanceError

logger = logging.getLogger(__name__)


class Treasury:
    def __init__(self, address: str, accounts: AccountLedger):
        """
        Pooled fund held by the DAO.

        The balance lives in the shared account ledger under ``address``; the
        treasury only moves it in (deposits) and out (disbursements).

        Args:
            address: Account address holding the pooled funds
            accounts: Native-currency account ledger
        """
        self.address = normalize_address(address)
        self.accounts = accounts

        # Track executed disbursements for fund tracking
        self.executed_transfers: List[Dict[str, Any]] = []
        self._lock = threading.RLock()

        logger.info(
            f"Treasury initialized at {self.address}. "
            f"Balance: {self.balance_of()}"
        )

    def balance_of(self) -> int:
        """Returns the current treasury balance."""
        return self.accounts.get_balance(self.address)

    def deposit(self, sender: str, amount: int) -> None:
        """
        Send funds from an account into the treasury.

        Args:
            sender: Funding account
            amount: Amount to deposit in base units
        """
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise ValueError("Deposit amount must be a positive number.")

        with self._lock:
            self.accounts.transfer(sender, self.address, amount)
            logger.info(
                f"Deposited {amount} from {sender}. New balance: {self.balance_of()}"
            )

    def transfer(self, recipient: str, amount: int) -> None:
        """
        Release funds to a recipient.

        Args:
            recipient: Recipient address
            amount: Amount to transfer in base units

        Raises:
            DisbursementFailed: If the amount is invalid or the balance
                cannot cover it; the treasury is left unchanged
        """
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise DisbursementFailed(
                "Disbursement amount must be a positive number.",
                details={"amount": amount},
            )

        with self._lock:
            balance = self.balance_of()
            try:
                self.accounts.transfer(self.address, recipient, amount)
            except (InsufficientBalanceError, ValueError) as exc:
                logger.warning(
                    "Treasury disbursement failed",
                    extra={
                        "event": "treasury.transfer_failed",
                        "recipient": recipient,
                        "amount": amount,
                        "balance": balance,
                    },
                )
                raise DisbursementFailed(
                    f"Treasury cannot disburse {amount} to {recipient}: {exc}",
                    details={"recipient": recipient, "amount": amount, "balance": balance},
                ) from exc

            self.executed_transfers.append(
                {
                    "recipient": normalize_address(recipient),
                    "amount": amount,
                    "executed_at": int(time.time()),
                }
            )
            logger.info(
                f"Disbursed {amount} to {recipient}. New balance: {self.balance_of()}"
            )

    def get_executed_transfers(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Get recently executed disbursements."""
        with self._lock:
            return self.executed_transfers[-limit:]
