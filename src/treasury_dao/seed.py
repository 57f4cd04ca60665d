"""
Seed a freshly deployed node with demo governance activity.

Sequence:
1. Give 200,000 tokens to each of three investors
2. Fund the treasury with 1,000 units
3. Three times: create a 100-unit proposal, vote with every investor,
   finalize it
4. Leave a fourth proposal open with two votes
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .client import DAOClient
from .core.units import parse_units

logger = logging.getLogger(__name__)

INVESTOR_TOKENS = 200_000
TREASURY_FUNDING = 1_000
PROPOSAL_AMOUNT = 100
FINALIZED_ROUNDS = 3


@dataclass
class SeedResult:
    funder: str
    investors: List[str]
    recipient: str
    finalized: List[int] = field(default_factory=list)
    open: List[int] = field(default_factory=list)


def seed(client: DAOClient, echo: Optional[Callable[[str], None]] = None) -> SeedResult:
    """
    Run the demo sequence against a node.

    Args:
        client: Client pointed at the node; its account is ignored
        echo: Optional progress printer (e.g. ``click.echo``)

    Returns:
        Summary of the accounts used and the proposals created
    """
    say = echo or (lambda message: None)

    def step(message: str) -> None:
        logger.info(message, extra={"event": "seed.step"})
        say(message)

    step("Fetching accounts & network...")
    accounts = client.accounts()
    if len(accounts) < 5:
        raise ValueError(f"Seeding needs at least 5 dev accounts, node has {len(accounts)}")
    funder, investors, recipient = accounts[0], accounts[1:4], accounts[4]
    as_funder = client.as_account(funder)

    step("Transferring tokens to investors...")
    for investor in investors:
        as_funder.transfer_tokens(investor, parse_units(INVESTOR_TOKENS))

    step(f"Sending {TREASURY_FUNDING} to the DAO treasury...")
    as_funder.deposit(parse_units(TREASURY_FUNDING))

    result = SeedResult(funder=funder, investors=list(investors), recipient=recipient)
    voters = [client.as_account(investor) for investor in investors]

    for round_number in range(1, FINALIZED_ROUNDS + 1):
        proposal = voters[0].create_proposal(
            f"Proposal {round_number}", parse_units(PROPOSAL_AMOUNT), recipient
        )
        step(f"Proposal {proposal['id']} created...")

        for voter in voters:
            voter.vote(proposal["id"])

        voters[0].finalize_proposal(proposal["id"])
        result.finalized.append(proposal["id"])
        step(f"Proposal {proposal['id']} finalized...")

    proposal = voters[0].create_proposal(
        f"Proposal {FINALIZED_ROUNDS + 1}", parse_units(PROPOSAL_AMOUNT), recipient
    )
    for voter in voters[1:]:
        voter.vote(proposal["id"])
    result.open.append(proposal["id"])

    step("Finished.")
    return result
