from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class Proposal:
    """A request to release treasury funds to a recipient."""

    id: int
    name: str
    amount: int
    recipient: str
    proposer: str
    votes: int = 0
    finalized: bool = False
    created_at: float = field(default_factory=time.time)

    @property
    def status(self) -> str:
        return "finalized" if self.finalized else "open"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "amount": self.amount,
            "recipient": self.recipient,
            "proposer": self.proposer,
            "votes": self.votes,
            "finalized": self.finalized,
            "status": self.status,
            "created_at": self.created_at,
        }
