"""
Governance state machine.

Token holders propose transfers out of the treasury, vote with their token
balance as weight, and once the accumulated weight reaches the quorum any
holder can finalize the proposal, which releases the funds.

Per proposal the lifecycle is ``open -> finalized`` and never goes back.
All transitions run under a single re-entrant lock, one at a time and in
full; a rejected request leaves no trace in the registry.

Voting power is read from the token at the moment of the vote. Tokens moved
away afterwards do not reduce votes already cast.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from typing import Dict, List, Optional, Set, Tuple

from ..core.accounts import normalize_address
from ..core.contracts.erc20 import ERC20Token
from ..core.exceptions import (
    AlreadyFinalized,
    DuplicateVote,
    GovernanceError,
    InsufficientFunds,
    NotFound,
    QuorumNotReached,
    Unauthorized,
)
from ..core.metrics import GovernanceMetrics
from ..treasury.treasury import Treasury
from .events import FINALIZE, PROPOSE, VOTE, EventLog
from .proposal import Proposal

logger = logging.getLogger(__name__)


class DAO:
    def __init__(
        self,
        token: ERC20Token,
        treasury: Treasury,
        quorum: int,
        event_log: Optional[EventLog] = None,
        metrics: Optional[GovernanceMetrics] = None,
    ):
        """
        Args:
            token: Governance token used as the voting-power ledger
            treasury: Treasury that pays out finalized proposals
            quorum: Minimum accumulated voting power, in token base units,
                required to finalize a proposal
            event_log: Log receiving Propose/Vote/Finalize events
            metrics: Optional Prometheus metrics sink
        """
        if not isinstance(quorum, int) or isinstance(quorum, bool) or quorum <= 0:
            raise ValueError("Quorum must be a positive integer.")

        self.token = token
        self.treasury = treasury
        self.quorum = quorum
        self.events = event_log if event_log is not None else EventLog()
        self.metrics = metrics

        self._proposals: Dict[int, Proposal] = {}
        self._votes: Set[Tuple[int, str]] = set()
        self._proposal_count = 0
        self._lock = threading.RLock()

        logger.info(
            f"DAO deployed at {self.address}. Token: {token.symbol} ({token.address}), "
            f"Quorum: {quorum}"
        )

    @property
    def address(self) -> str:
        return self.treasury.address

    # ==================== Queries ====================

    @property
    def proposal_count(self) -> int:
        with self._lock:
            return self._proposal_count

    def get_proposal(self, proposal_id: int) -> Proposal:
        """
        Fetch a proposal by id.

        Returns a copy; mutating it does not affect the registry.

        Raises:
            NotFound: If no proposal has this id
        """
        with self._lock:
            return dataclasses.replace(self._get(proposal_id))

    def list_proposals(self) -> List[Proposal]:
        """All proposals in id order."""
        with self._lock:
            return [dataclasses.replace(self._proposals[i]) for i in sorted(self._proposals)]

    def has_voted(self, proposal_id: int, account: str) -> bool:
        with self._lock:
            return (proposal_id, normalize_address(account)) in self._votes

    def treasury_balance(self) -> int:
        return self.treasury.balance_of()

    def voting_power(self, account: str) -> int:
        return self.token.balance_of(account)

    # ==================== Commands ====================

    def create_proposal(self, name: str, amount: int, recipient: str, requester: str) -> Proposal:
        """
        Propose sending ``amount`` from the treasury to ``recipient``.

        Raises:
            Unauthorized: If the requester holds no tokens
            InsufficientFunds: If the treasury holds less than ``amount``
            ValueError: If the name, amount or recipient is malformed
        """
        if not isinstance(name, str) or not name.strip():
            raise ValueError("Proposal name cannot be empty.")
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise ValueError("Proposal amount must be a positive integer.")
        recipient = normalize_address(recipient)
        requester = normalize_address(requester)

        with self._lock:
            try:
                self._require_member(requester)
                balance = self.treasury.balance_of()
                if amount > balance:
                    raise InsufficientFunds(
                        "Not enough balance",
                        details={"amount": amount, "treasury_balance": balance},
                    )
            except GovernanceError as exc:
                self._reject("create", exc)
                raise

            self._proposal_count += 1
            proposal = Proposal(
                id=self._proposal_count,
                name=name,
                amount=amount,
                recipient=recipient,
                proposer=requester,
            )
            self._proposals[proposal.id] = proposal

            self.events.append(
                PROPOSE,
                id=proposal.id,
                amount=amount,
                recipient=recipient,
                creator=requester,
            )
            if self.metrics:
                self.metrics.proposals_created.inc()

            logger.info(
                f"Proposal {proposal.id} '{name}' created by {requester}: "
                f"{amount} to {recipient}",
                extra={"event": "dao.propose", "proposal_id": proposal.id},
            )
            return dataclasses.replace(proposal)

    def vote(self, proposal_id: int, requester: str) -> Proposal:
        """
        Add the requester's current token balance to a proposal's votes.

        Raises:
            NotFound: If the proposal does not exist
            AlreadyFinalized: If the proposal is no longer open
            Unauthorized: If the requester holds no tokens
            DuplicateVote: If the requester already voted on this proposal
        """
        requester = normalize_address(requester)

        with self._lock:
            try:
                proposal = self._get(proposal_id)
                if proposal.finalized:
                    raise AlreadyFinalized(
                        "Proposal already finalized", details={"proposal_id": proposal_id}
                    )
                weight = self._require_member(requester)
                if (proposal.id, requester) in self._votes:
                    raise DuplicateVote(
                        "Investor can only vote once",
                        details={"proposal_id": proposal_id, "voter": requester},
                    )
            except GovernanceError as exc:
                self._reject("vote", exc)
                raise

            proposal.votes += weight
            self._votes.add((proposal.id, requester))

            self.events.append(VOTE, id=proposal.id, investor=requester)
            if self.metrics:
                self.metrics.votes_cast.inc()
                self.metrics.vote_weight.inc(weight)

            logger.info(
                f"Vote cast on proposal {proposal.id} by {requester} with power {weight}. "
                f"Total: {proposal.votes}/{self.quorum}",
                extra={"event": "dao.vote", "proposal_id": proposal.id},
            )
            return dataclasses.replace(proposal)

    def finalize_proposal(self, proposal_id: int, requester: str) -> Proposal:
        """
        Execute a proposal that reached quorum.

        The treasury transfer runs first; the proposal is only marked
        finalized once the transfer succeeded.

        Raises:
            NotFound: If the proposal does not exist
            AlreadyFinalized: If the proposal was already finalized
            Unauthorized: If the requester holds no tokens
            QuorumNotReached: If the accumulated votes are below quorum
            DisbursementFailed: If the treasury cannot pay the recipient
        """
        requester = normalize_address(requester)

        with self._lock:
            try:
                proposal = self._get(proposal_id)
                if proposal.finalized:
                    raise AlreadyFinalized(
                        "Proposal already finalized", details={"proposal_id": proposal_id}
                    )
                self._require_member(requester)
                if proposal.votes < self.quorum:
                    raise QuorumNotReached(
                        "Quorum not reached",
                        details={
                            "proposal_id": proposal_id,
                            "votes": proposal.votes,
                            "quorum": self.quorum,
                        },
                    )
                self.treasury.transfer(proposal.recipient, proposal.amount)
            except GovernanceError as exc:
                self._reject("finalize", exc)
                raise

            proposal.finalized = True

            self.events.append(FINALIZE, id=proposal.id)
            if self.metrics:
                self.metrics.proposals_finalized.inc()
                self.metrics.treasury_balance.set(self.treasury.balance_of())

            logger.info(
                f"Proposal {proposal.id} finalized by {requester}. "
                f"{proposal.amount} sent to {proposal.recipient}",
                extra={"event": "dao.finalize", "proposal_id": proposal.id},
            )
            return dataclasses.replace(proposal)

    # ==================== Helpers ====================

    def _get(self, proposal_id: int) -> Proposal:
        proposal = self._proposals.get(proposal_id)
        if proposal is None:
            raise NotFound(
                f"Proposal {proposal_id} not found", details={"proposal_id": proposal_id}
            )
        return proposal

    def _require_member(self, account: str) -> int:
        power = self.token.balance_of(account)
        if power <= 0:
            raise Unauthorized("Must be token holder", details={"account": account})
        return power

    def _reject(self, operation: str, exc: GovernanceError) -> None:
        logger.warning(
            f"Rejected {operation}: {exc.message}",
            extra={"event": f"dao.{operation}_rejected", "code": exc.code, **exc.details},
        )
        if self.metrics:
            self.metrics.record_rejection(operation, exc.code)

    def to_dict(self) -> Dict:
        return {
            "address": self.address,
            "token": self.token.address,
            "quorum": self.quorum,
            "treasury_balance": self.treasury_balance(),
            "proposal_count": self.proposal_count,
        }
