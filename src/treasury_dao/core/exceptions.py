"""
Exception hierarchy for the treasury DAO.

Every governance transition either applies in full or raises one of the
typed errors below. Each governance error carries a stable ``code`` so the
kind survives a round trip through the node API and back into the client.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Type


class DAOError(Exception):
    """Base exception for all DAO-related errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
    """

    code = "dao_error"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code, "details": self.details}


# ==================== Governance Errors ====================


class GovernanceError(DAOError):
    """Raised when a governance transition is rejected."""

    code = "governance_error"


class Unauthorized(GovernanceError):
    """Raised when the requester holds no voting power."""

    code = "unauthorized"


class InsufficientFunds(GovernanceError):
    """Raised when a proposal asks for more than the treasury holds."""

    code = "insufficient_funds"


class NotFound(GovernanceError):
    """Raised when a proposal id does not reference an existing proposal."""

    code = "not_found"


class DuplicateVote(GovernanceError):
    """Raised when an account votes twice on the same proposal."""

    code = "duplicate_vote"


class AlreadyFinalized(GovernanceError):
    """Raised when a finalized proposal receives another transition."""

    code = "already_finalized"


class QuorumNotReached(GovernanceError):
    """Raised when finalization is attempted below the quorum threshold."""

    code = "quorum_not_reached"


class DisbursementFailed(GovernanceError):
    """Raised when the treasury cannot release the requested funds."""

    code = "disbursement_failed"


# ==================== Ledger Errors ====================


class LedgerError(DAOError):
    """Raised when a balance ledger operation fails."""

    code = "ledger_error"


class InsufficientBalanceError(LedgerError):
    """Raised when an account lacks sufficient native balance."""

    code = "insufficient_balance"


class TokenError(LedgerError):
    """Raised when a governance token operation fails."""

    code = "token_error"


GOVERNANCE_ERRORS: Dict[str, Type[GovernanceError]] = {
    cls.code: cls
    for cls in (
        Unauthorized,
        InsufficientFunds,
        NotFound,
        DuplicateVote,
        AlreadyFinalized,
        QuorumNotReached,
        DisbursementFailed,
    )
}


def error_for_code(code: str) -> Type[DAOError]:
    """Return the exception class registered for an error code."""
    if code in GOVERNANCE_ERRORS:
        return GOVERNANCE_ERRORS[code]
    for cls in (InsufficientBalanceError, TokenError, LedgerError, GovernanceError):
        if cls.code == code:
            return cls
    return DAOError
