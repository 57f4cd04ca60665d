"""Proposal registry, voting and finalization."""

from .dao import DAO
from .events import EventLog, GovernanceEvent
from .proposal import Proposal

__all__ = ["DAO", "EventLog", "GovernanceEvent", "Proposal"]
