"""
ERC20 governance token.

The token is the DAO's voting-power ledger: an account's token balance is its
vote weight and holding any balance at all is what makes it a member. The
DAO only ever reads balances from here.

Provides:
- Basic token operations (transfer, approve, transferFrom)
- Owner-only minting
- Metadata (name, symbol, decimals)
- Events (Transfer, Approval)
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict

from ..accounts import ZERO_ADDRESS, derive_address
from ..exceptions import TokenError

logger = logging.getLogger(__name__)


@dataclass
class TokenEvent:
    """Represents an ERC20 event."""

    event_type: str  # "Transfer" or "Approval"
    from_address: str
    to_address: str
    value: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class ERC20Token:
    """
    In-memory ERC20 token.

    Security considerations:
    - Zero address checks on all operations
    - Balance underflow prevention
    - Allowance validation
    """

    # Token metadata
    name: str
    symbol: str
    decimals: int = 18
    total_supply: int = 0

    # Contract address
    address: str = ""

    # Owner (for minting permissions)
    owner: str = ""

    # State
    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[str, dict[str, int]] = field(default_factory=dict)

    # Event log
    events: list[TokenEvent] = field(default_factory=list)

    _lock: threading.RLock = field(
        default_factory=threading.RLock, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if not self.address:
            self.address = derive_address(f"token:{self.name}:{self.symbol}:{self.owner}")
        self.address = self._normalize(self.address)
        if self.owner:
            self.owner = self._normalize(self.owner)

    # ==================== View Functions ====================

    def balance_of(self, account: str) -> int:
        """
        Get the token balance of an account.

        Args:
            account: Address to check

        Returns:
            Token balance
        """
        with self._lock:
            return self.balances.get(self._normalize(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        """Get the allowance granted by owner to spender."""
        with self._lock:
            return self.allowances.get(self._normalize(owner), {}).get(
                self._normalize(spender), 0
            )

    # ==================== State-Changing Functions ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Transfer tokens from sender to recipient.

        Args:
            sender: Address sending tokens (msg.sender)
            recipient: Address receiving tokens
            amount: Amount to transfer

        Returns:
            True if successful

        Raises:
            TokenError: If transfer fails
        """
        sender_norm = self._normalize(sender)
        recipient_norm = self._normalize(recipient)

        self._validate_address(recipient_norm, "recipient")
        self._validate_amount(amount)

        with self._lock:
            sender_balance = self.balances.get(sender_norm, 0)
            if sender_balance < amount:
                raise TokenError(
                    f"ERC20: transfer amount exceeds balance "
                    f"({amount} > {sender_balance})"
                )

            self.balances[sender_norm] = sender_balance - amount
            self.balances[recipient_norm] = self.balances.get(recipient_norm, 0) + amount
            self._emit("Transfer", sender_norm, recipient_norm, amount)

        logger.debug(
            "ERC20 transfer",
            extra={
                "event": "erc20.transfer",
                "token": self.symbol,
                "from": sender_norm[:10],
                "to": recipient_norm[:10],
                "amount": amount,
            },
        )
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Approve spender to spend tokens on behalf of owner."""
        owner_norm = self._normalize(owner)
        spender_norm = self._normalize(spender)

        self._validate_address(spender_norm, "spender")
        self._validate_amount(amount)

        with self._lock:
            self.allowances.setdefault(owner_norm, {})[spender_norm] = amount
            self._emit("Approval", owner_norm, spender_norm, amount)
        return True

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool:
        """
        Transfer tokens using an allowance.

        Raises:
            TokenError: If the allowance or the balance is insufficient
        """
        spender_norm = self._normalize(spender)
        from_norm = self._normalize(from_addr)
        to_norm = self._normalize(to_addr)

        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)

        with self._lock:
            current_allowance = self.allowance(from_norm, spender_norm)
            if current_allowance < amount:
                raise TokenError(
                    f"ERC20: insufficient allowance ({current_allowance} < {amount})"
                )

            from_balance = self.balances.get(from_norm, 0)
            if from_balance < amount:
                raise TokenError(
                    f"ERC20: transfer amount exceeds balance ({amount} > {from_balance})"
                )

            self.allowances.setdefault(from_norm, {})[spender_norm] = current_allowance - amount
            self.balances[from_norm] = from_balance - amount
            self.balances[to_norm] = self.balances.get(to_norm, 0) + amount
            self._emit("Transfer", from_norm, to_norm, amount)
        return True

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """
        Mint new tokens (owner only).

        Raises:
            TokenError: If the caller is not the owner or the input is invalid
        """
        if self._normalize(minter) != self.owner:
            raise TokenError("ERC20: caller is not owner")

        to_norm = self._normalize(to)
        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)

        with self._lock:
            self.total_supply += amount
            self.balances[to_norm] = self.balances.get(to_norm, 0) + amount
            self._emit("Transfer", ZERO_ADDRESS, to_norm, amount)

        logger.info(
            "ERC20 mint",
            extra={
                "event": "erc20.mint",
                "token": self.symbol,
                "to": to_norm[:10],
                "amount": amount,
                "new_supply": self.total_supply,
            },
        )
        return True

    # ==================== Helpers ====================

    def _normalize(self, address: str) -> str:
        """Normalize address to lowercase."""
        if not isinstance(address, str):
            raise TokenError("ERC20: address must be a string")
        return address.strip().lower()

    def _validate_address(self, address: str, field_name: str) -> None:
        if address == ZERO_ADDRESS or not address:
            raise TokenError(f"ERC20: {field_name} is zero address")

    def _validate_amount(self, amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise TokenError("ERC20: amount must be an integer")
        if amount < 0:
            raise TokenError("ERC20: amount cannot be negative")

    def _emit(self, event_type: str, from_addr: str, to_addr: str, amount: int) -> None:
        self.events.append(
            TokenEvent(
                event_type=event_type,
                from_address=from_addr,
                to_address=to_addr,
                value=amount,
            )
        )

    # ==================== Serialization ====================

    def to_dict(self) -> Dict:
        """Serialize token metadata to a dictionary."""
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "total_supply": self.total_supply,
            "address": self.address,
            "owner": self.owner,
        }
